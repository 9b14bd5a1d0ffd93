"""
Inventory API — FastAPI Application Entry Point
"""

from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from inventory_api.api.v1 import auth, categories, products, suppliers, users
from inventory_api.config import Settings, get_settings
from inventory_api.core.exceptions import InternalError, InventoryError
from inventory_api.core.logging_setup import configure_logging
from inventory_api.core.security import TokenService
from inventory_api.database import build_engine, init_db, make_session_factory

logger = logging.getLogger("inventory_api.main")

API_PREFIX = "/api"


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for err in exc.errors():
        # Drop the leading "body" / "query" / "path" segment
        loc = [str(part) for part in err.get("loc", ())][1:]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "")})
    return errors


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(
        request: Request, exc: InventoryError
    ) -> JSONResponse:
        headers = None
        if exc.http_status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        content = exc.to_dict()
        if exc.http_status_code >= 500:
            logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
            if not settings.is_development:
                content = InternalError().to_dict()
        return JSONResponse(status_code=exc.http_status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = _validation_errors(exc)
        return JSONResponse(
            status_code=400,
            content={
                "error_code": "VALIDATION_ERROR",
                "message": f"Request validation failed with {len(errors)} error(s)",
                "detail": {"validation_errors": errors},
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        if settings.is_development:
            content = InternalError(str(exc)).to_dict()
            content["traceback"] = traceback.format_exc()
        else:
            content = InternalError().to_dict()
        return JSONResponse(status_code=InternalError.http_status_code, content=content)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application from an explicit Settings object.
    Raises ConfigurationError when the JWT signing key is missing.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    token_service = TokenService(settings)
    engine = build_engine(settings.DATABASE_URL)
    session_factory = make_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create tables (and optionally seed) on startup."""
        init_db(engine)
        if settings.SEED_ON_STARTUP:
            from inventory_api.services.bootstrap import seed_initial_data

            with session_factory() as session:
                seed_initial_data(session, settings)
        logger.info("%s %s started (%s)", settings.APP_TITLE, settings.APP_VERSION, settings.ENVIRONMENT)
        yield
        engine.dispose()

    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        description=(
            "Supermarket inventory backend: users with role-based access, "
            "categories, suppliers and products, secured with JWT bearer tokens."
        ),
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_service = token_service
    app.state.engine = engine
    app.state.session_factory = session_factory

    # ─── CORS ─────────────────────────────────────────────────────────────────
    origins = settings.ALLOWED_ORIGINS if settings.is_production else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # ─── Health endpoint ──────────────────────────────────────────────────────
    @app.get("/health", tags=["health"])
    async def health_check(request: Request) -> Dict[str, Any]:
        """Returns service health including DB connectivity."""
        db_ok = False
        try:
            with request.app.state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            db_ok = True
        except Exception:
            logger.warning("health check: database unreachable", exc_info=True)

        return {
            "status": "healthy" if db_ok else "degraded",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "db_connected": db_ok,
        }

    # ─── Routers ──────────────────────────────────────────────────────────────
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(categories.router, prefix=API_PREFIX)
    app.include_router(suppliers.router, prefix=API_PREFIX)
    app.include_router(products.router, prefix=API_PREFIX)

    return app


app = create_app()
