from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

from drone_fleet.api.errors import register_error_handlers
from drone_fleet.api.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from drone_fleet.api.routers import accessories, catalog, equipment, health, roles
from drone_fleet.core.settings import Settings
from drone_fleet.db.base import Base
from drone_fleet.db.session import create_engine_and_sessionmaker
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService
from drone_fleet.services.audit_service import AuditService
from drone_fleet.services.db_log_handler import DBLogHandler
from drone_fleet.services.role_service import RoleService
from drone_fleet.services.sequence_service import ensure_counter

logger = logging.getLogger(__name__)


def _repo_root() -> Path:
    # .../repo_root/drone_fleet/api/app.py -> parents[2] == repo_root
    return Path(__file__).resolve().parents[2]


def _resolve(p: str) -> str:
    path = Path(p)
    if path.is_absolute():
        return str(path)
    return str((_repo_root() / path).resolve())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting drone fleet app...")

        app.state.settings = settings

        # --- DB ---
        db_rt = create_engine_and_sessionmaker(settings.database_url, echo=settings.db_echo)
        app.state.db_engine = db_rt.engine
        app.state.db_sessionmaker = db_rt.SessionLocal
        if settings.auto_create_db:
            Base.metadata.create_all(bind=db_rt.engine)

        app.state.audit_service = AuditService()
        app.state.role_service = RoleService()

        with db_rt.SessionLocal() as db:
            try:
                ensure_counter(db)
            except OperationalError as e:
                raise RuntimeError(
                    "Database schema not initialized. Run `alembic upgrade head` (or set AUTO_CREATE_DB=1 for dev)."
                ) from e

            app.state.role_service.ensure_initial_admin(db, user_id=settings.initial_admin_user_id)

            if settings.seed_accessory_catalog:
                AccessoryCatalogService(SqlFleetStore(db)).seed_from_yaml(_resolve(settings.accessory_catalog_file))

        # --- DB log handler (WARNING+) ---
        db_handler = None
        if settings.enable_db_log_handler:
            try:
                db_handler = DBLogHandler(db_rt.SessionLocal)
                logging.getLogger("drone_fleet").addHandler(db_handler)
            except Exception:
                logger.exception("Failed to attach DB log handler")

        try:
            yield
        finally:
            logger.info("Shutting down drone fleet app...")
            if db_handler is not None:
                logging.getLogger("drone_fleet").removeHandler(db_handler)
            db_rt.engine.dispose()

    is_dev = settings.env.lower() in ("dev", "development", "local")
    app = FastAPI(
        title="Drone Fleet",
        lifespan=lifespan,
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
    )

    # Middleware
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or [],
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_error_handlers(app)

    # Routers
    app.include_router(health.router)
    app.include_router(equipment.router)
    app.include_router(accessories.router)
    app.include_router(catalog.router)
    app.include_router(roles.router)

    return app
