"""
Dashboard tenancy API server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from csdash.api.v1 import router as api_v1_router
from csdash.core.config import get_settings
from csdash.core.database import get_session
from csdash.core.errors import AuthorizationError, NotAMember, ResourceNotFound
from csdash.core.logging import configure_logging

settings = get_settings()
log = structlog.get_logger()


def error_payload(exc: AuthorizationError) -> tuple[int, dict]:
    """Render an AuthorizationError as (status, JSON body)."""
    code, message, status = exc.code, exc.message, exc.status_code
    if settings.hide_tenant_existence and isinstance(exc, NotAMember):
        code = ResourceNotFound.code
        message = "Organization not found"
        status = ResourceNotFound.status_code
    return status, {"error": {"code": code, "message": message, "status": status}}


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="CS Dashboard Tenancy",
        description="Organization, DSO and invitation authorization for the customer-success dashboard.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError):
        status, body = error_payload(exc)
        if exc.retryable:
            log.warning("request.store_unavailable", path=request.url.path)
        return JSONResponse(status_code=status, content=body)

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check endpoint: verifies the database answers."""
        try:
            await session.execute(text("SELECT 1"))
        except Exception as exc:
            log.warning("readiness.db_unavailable", error=str(exc))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    return app


app = create_app()
