import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.app_shell.config import configure_logging, validate_ops_rules
from src.components.registration import UnknownRegistrationField
from src.domain.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging()
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info(f"Rules loaded from {settings.rules_path}")
    except Exception as e:
        logger.critical(f"Startup failed: {e}")
        sys.exit(1)

    yield


app = FastAPI(
    title="Club Onboarding API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# --- Error mapping ---


def register_exception_handlers(target: FastAPI) -> None:
    """Map onboarding errors to HTTP responses."""

    @target.exception_handler(ValidationFailedError)
    async def validation_failed(request: Request, exc: ValidationFailedError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "errors": list(exc.errors)},
        )

    @target.exception_handler(UnknownRegistrationField)
    async def unknown_field(request: Request, exc: UnknownRegistrationField) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @target.exception_handler(InvalidTransitionError)
    async def invalid_transition(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "error": str(exc),
                "status": exc.from_status,
                "event": exc.event,
            },
        )

    @target.exception_handler(ForbiddenError)
    async def forbidden(request: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": exc.reason})

    @target.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @target.exception_handler(AlreadyExistsError)
    async def already_exists(request: Request, exc: AlreadyExistsError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"error": str(exc)})


register_exception_handlers(app)

# --- Routers ---
from src.api.routes import admin_verification, entity_setup  # noqa: E402

app.include_router(entity_setup.router, prefix="/api", tags=["Entity Setup"])
app.include_router(
    admin_verification.router, prefix="/api/admin", tags=["Admin Verification"]
)


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "onboarding"}
