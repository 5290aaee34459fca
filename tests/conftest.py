import json

import pytest
from fastapi.testclient import TestClient

from civic_issues.core.config import Settings
from civic_issues.core.errors import AuthenticationError, UpstreamError
from civic_issues.core.security import hash_password, make_token
from civic_issues.db.base import Base
from civic_issues.main import create_app
from civic_issues.models.department import Department
from civic_issues.models.user import AccountStatus, AuthProvider, User, UserRole
from civic_issues.services.departments import department_code
from civic_issues.services.storage import StoredMedia

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)
JPEG = b"\xff\xd8\xff\xe0" + b"0" * 64


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail = False
        # fail once this many uploads have gone through
        self.fail_after = None

    def upload(self, data, folder, content_type, filename=None):
        if self.fail or (self.fail_after is not None and len(self.uploads) >= self.fail_after):
            raise UpstreamError("Media upload failed")
        self.uploads.append({"folder": folder, "content_type": content_type, "size": len(data)})
        n = len(self.uploads)
        return StoredMedia(url=f"https://cdn.test/{folder}/{n}", provider_id=f"{folder}/{n}")

    def delete(self, provider_id):
        self.deleted.append(provider_id)

    @property
    def live(self):
        stored = [f"{u['folder']}/{n}" for n, u in enumerate(self.uploads, start=1)]
        return [p for p in stored if p not in self.deleted]


class FakeGeocoder:
    def __init__(self):
        self.address = "12 MG Road, Bengaluru"
        self.calls = []

    def reverse(self, lat, lng):
        self.calls.append((lat, lng))
        return self.address


class FakeIdentity:
    def __init__(self):
        self.tokens = {}

    def verify(self, id_token):
        if id_token not in self.tokens:
            raise AuthenticationError("Invalid or expired ID token")
        return self.tokens[id_token]


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        RATE_LIMIT_ENABLED=False,
        GEOCODING_ENABLED=False,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    Base.metadata.create_all(app.state.engine)
    app.state.storage = FakeStorage()
    app.state.geocoder = FakeGeocoder()
    app.state.identity = FakeIdentity()
    yield app
    Base.metadata.drop_all(app.state.engine)
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.citizen, email=None, departments=(), status=AccountStatus.active, **extra):
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@example.com",
            hashed_password=PASSWORD_HASH,
            auth_provider=AuthProvider.local,
            full_name=extra.pop("full_name", f"{role.value.title()} {counter['n']}"),
            role=role,
            account_status=status,
            **extra,
        )
        user.departments.extend(departments)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_department(db):
    def _make(name="Roads and Transport", is_active=True, **extra):
        dept = Department(name=name, code=department_code(name), is_active=is_active, **extra)
        db.add(dept)
        db.commit()
        db.refresh(dept)
        return dept

    return _make


@pytest.fixture
def auth(settings):
    def _headers(user, **extra):
        token = make_token(user, settings)["access_token"]
        return {"Authorization": f"Bearer {token}", **extra}

    return _headers


@pytest.fixture
def submit_report(client, auth):
    """Post a report as ``citizen`` and return the raw response."""

    def _submit(citizen, department_id, coordinates=(77.5, 12.9), images=1, address="Near City Market", **fields):
        location = {"coordinates": list(coordinates)}
        if address is not None:
            location["address"] = address
        data = {
            "title": fields.pop("title", "Pothole on main road"),
            "description": fields.pop("description", "Large pothole causing traffic near the market"),
            "department_id": str(department_id),
            "location": fields.pop("location", json.dumps(location)),
            **fields,
        }
        files = [("images", (f"photo{i}.jpg", JPEG, "image/jpeg")) for i in range(images)]
        return client.post("/api/citizen/reports", data=data, files=files or None, headers=auth(citizen))

    return _submit
