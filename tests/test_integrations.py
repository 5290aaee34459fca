"""Outbound HTTP clients with ``requests`` patched out."""
import pytest
import requests

from civic_issues.core.errors import AuthenticationError, UpstreamError
from civic_issues.services import geocoding, identity, storage
from civic_issues.services.geocoding import NominatimGeocoder
from civic_issues.services.identity import FirebaseIdentityVerifier
from civic_issues.services.storage import SupabaseStorage, make_object_key


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def test_object_keys_keep_extension():
    key = make_object_key("civic-reports", "Pothole.JPG")
    assert key.startswith("civic-reports/") and key.endswith(".jpg")
    assert make_object_key("civic-reports", None).endswith(".bin")


def test_unconfigured_storage_inlines_bytes():
    stored = SupabaseStorage(None, None, "civic-media").upload(b"abc", "civic-reports", "image/png", "a.png")
    assert stored.url == "data:image/png;base64,YWJj"


def test_storage_upload_and_failure(monkeypatch):
    calls = []

    def fake_post(url, headers, data, timeout):
        calls.append(url)
        return FakeResponse(200)

    monkeypatch.setattr(storage.requests, "post", fake_post)
    client = SupabaseStorage("https://proj.supabase.co/", "service-key", "civic-media")
    stored = client.upload(b"abc", "civic-reports", "image/jpeg", "a.jpg")
    assert calls[0] == f"https://proj.supabase.co/storage/v1/object/civic-media/{stored.provider_id}"
    assert stored.url == f"https://proj.supabase.co/storage/v1/object/public/civic-media/{stored.provider_id}"

    monkeypatch.setattr(storage.requests, "post", lambda *a, **kw: FakeResponse(503))
    with pytest.raises(UpstreamError):
        client.upload(b"abc", "civic-reports", "image/jpeg", "a.jpg")


def test_geocoder_reads_display_name(monkeypatch):
    seen = {}

    def fake_get(url, params, headers, timeout):
        seen.update(url=url, params=params, agent=headers["User-Agent"])
        return FakeResponse(200, {"display_name": "MG Road, Bengaluru"})

    monkeypatch.setattr(geocoding.requests, "get", fake_get)
    geo = NominatimGeocoder("https://nominatim.test/", "civic-test/1.0")
    assert geo.reverse(12.9, 77.5) == "MG Road, Bengaluru"
    assert seen["url"] == "https://nominatim.test/reverse"
    assert (seen["params"]["lat"], seen["params"]["lon"]) == (12.9, 77.5)


@pytest.mark.parametrize("response", [FakeResponse(500), FakeResponse(200, None), FakeResponse(200, {})])
def test_geocoder_failures_yield_none(monkeypatch, response):
    monkeypatch.setattr(geocoding.requests, "get", lambda *a, **kw: response)
    assert NominatimGeocoder("https://nominatim.test", "ua").reverse(12.9, 77.5) is None


def test_disabled_geocoder_makes_no_call(monkeypatch):
    def boom(*a, **kw):
        raise AssertionError("network used")

    monkeypatch.setattr(geocoding.requests, "get", boom)
    assert NominatimGeocoder("https://nominatim.test", "ua", enabled=False).reverse(12.9, 77.5) is None


def test_identity_lookup(monkeypatch):
    payload = {"users": [{"localId": "uid-1", "email": "Ravi@Example.com", "displayName": "Ravi",
                          "emailVerified": True}]}
    monkeypatch.setattr(identity.requests, "post", lambda *a, **kw: FakeResponse(200, payload))
    ident = FirebaseIdentityVerifier("api-key").verify("token")
    assert (ident.uid, ident.email, ident.display_name, ident.email_verified) == ("uid-1", "ravi@example.com", "Ravi", True)


@pytest.mark.parametrize("response", [FakeResponse(400, {"error": {}}), FakeResponse(200, {"users": []})])
def test_identity_rejects_bad_tokens(monkeypatch, response):
    monkeypatch.setattr(identity.requests, "post", lambda *a, **kw: response)
    with pytest.raises(AuthenticationError):
        FirebaseIdentityVerifier("api-key").verify("token")


def test_identity_requires_configuration():
    with pytest.raises(UpstreamError):
        FirebaseIdentityVerifier(None).verify("token")
