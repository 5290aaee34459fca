# File: civic_issues/main.py
# Project: civic-issues-backend

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civic_issues.core.config import Settings
from civic_issues.core.errors import register_exception_handlers
from civic_issues.core.ratelimit import limiter
from civic_issues.db.session import make_engine, make_session_factory
from civic_issues.models import department, emergency, media, report, user  # noqa: F401  (register tables)
from civic_issues.routers import admin, auth, citizen, departments, emergencies, officer, reports
from civic_issues.services.geocoding import NominatimGeocoder
from civic_issues.services.identity import FirebaseIdentityVerifier
from civic_issues.services.storage import SupabaseStorage

API_VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title="Civic Issues API", version=API_VERSION)
    app.state.settings = settings
    app.state.engine = make_engine(settings.database_url)
    app.state.session_factory = make_session_factory(app.state.engine)
    app.state.storage = SupabaseStorage(settings.supabase_url, settings.supabase_service_role, settings.supabase_bucket)
    app.state.geocoder = NominatimGeocoder(
        settings.geocoding_base_url,
        settings.geocoding_user_agent,
        timeout=settings.geocoding_timeout,
        enabled=settings.geocoding_enabled,
    )
    app.state.identity = FirebaseIdentityVerifier(settings.firebase_api_key)

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/api")
    def api_root():
        return {"success": True, "name": app.title, "version": API_VERSION}

    app.include_router(auth.router)
    app.include_router(departments.router)
    app.include_router(citizen.router)
    app.include_router(officer.router)
    app.include_router(admin.router)
    app.include_router(emergencies.router)
    app.include_router(reports.router)
    return app
