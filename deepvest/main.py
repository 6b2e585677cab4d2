"""DeepVest API application: wiring, startup checks, health endpoints."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from . import models  # noqa: F401  registers every table on Base.metadata
from .api import (
    ai_router,
    auth_router,
    documents_router,
    permissions_router,
    projects_router,
    scoring_router,
    snapshots_router,
    team_members_router,
)
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import setup_logging
from .database import DATABASE_URL, Base, engine, get_db, is_postgresql, mask_url, ping, session_scope
from .exceptions import DeepVestError
from .middleware.exception_handler import deepvest_exception_handler, validation_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories import ProjectRepository
from .services import AIService, audit_service

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

# (substring of the driver error, what to tell the operator)
_POSTGRES_HINTS = (
    ("could not connect", "is PostgreSQL running? try: pg_isready -h <host> -p <port>"),
    ("Connection refused", "is PostgreSQL running? try: pg_isready -h <host> -p <port>"),
    ("authentication failed", "check the user name and password in DATABASE_URL"),
    ("does not exist", "create the database first: createdb <name>"),
)


def _connection_hint(error: str) -> str:
    if not is_postgresql():
        return "check that the SQLite file's directory exists and is writable"
    for needle, hint in _POSTGRES_HINTS:
        if needle in error:
            return hint
    return "check DATABASE_URL"


def _check_database() -> None:
    """Fail fast, with an actionable message, when the database is unreachable."""
    masked = mask_url(DATABASE_URL)
    try:
        ping()
    except SQLAlchemyError as e:
        logger.critical(
            "Cannot reach the database at %s: %s (%s)", masked, _connection_hint(str(e)), e,
        )
        raise SystemExit(1) from e
    logger.info("Database reachable at %s", masked)


_check_database()
Base.metadata.create_all(bind=engine)


def _warn_about_dev_defaults() -> None:
    for problem in settings.insecure_settings():
        logger.warning("Not deployable as configured: %s", problem)
    if not AIService.is_configured():
        logger.warning("AI_API_KEY is empty; /api/ai endpoints will answer 503")


def _purge_audit_log() -> None:
    if settings.audit_retention_days <= 0:
        return
    with session_scope() as db:
        purged = audit_service.purge_old_entries(db, days=settings.audit_retention_days)
    if purged:
        logger.info(
            "Purged %d audit entries older than %d days", purged, settings.audit_retention_days,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical("Refusing to start: %s", e)
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        _warn_about_dev_defaults()
    _purge_audit_log()

    logger.info(
        "DeepVest API ready",
        extra={
            "env": settings.environment.value,
            "db": "postgresql" if is_postgresql() else "sqlite",
            "wallet_verifier": settings.wallet_verifier.value,
        },
    )
    yield


app = FastAPI(
    title="DeepVest API",
    description=(
        "REST API for DeepVest project pages. Every project keeps a public "
        "snapshot and an optional working draft; owners publish drafts when "
        "they are ready. Access is governed by per-project roles "
        "(viewer < editor < admin < owner).\n\n"
        "**Authentication:** write endpoints require a `Bearer` token in the "
        "`Authorization` header. Read endpoints accept tokens optionally."
    ),
    version=__version__,
    lifespan=lifespan,
)

# The middleware added last runs first: request context wraps CORS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(DeepVestError, deepvest_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(snapshots_router)
app.include_router(permissions_router)
app.include_router(documents_router)
app.include_router(team_members_router)
app.include_router(ai_router)
app.include_router(scoring_router)

_started = time.monotonic()


@app.get("/")
def root():
    return {"name": "DeepVest API", "version": __version__, "status": "running"}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a database round-trip. Always 200; a failed query reports ``degraded``."""
    try:
        project_count = ProjectRepository(db).count()
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("Health check could not query the database", exc_info=True)
        project_count = 0
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _started),
        "version": __version__,
        "project_count": project_count,
    }
