"""
ARBOLEDA ADMIN API - Main Application Entry Point

FastAPI backend for the La Arboleda Club admin panel access layer.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arboleda_admin.api.config import settings
from arboleda_admin.api.db.session import init_db, close_db
from arboleda_admin.api.services.access import init_access_services, close_access_services
from arboleda_admin.exceptions import (
    ArboledaError,
    ConflictError,
    NotFound,
    PermissionDenied,
    StoreError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    await init_db()
    await init_access_services()
    yield
    # Shutdown
    await close_access_services()
    await close_db()


async def arboleda_error_handler(request: Request, exc: ArboledaError) -> JSONResponse:
    """Render domain errors with a distinguishable code."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="La Arboleda Club - admin roles, permissions and audit trail",
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        lifespan=lifespan if use_lifespan else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ArboledaError, arboleda_error_handler)

    # Include routers
    from arboleda_admin.api.access.routes import router as access_router
    from arboleda_admin.api.users.routes import router as users_router

    app.include_router(access_router, prefix="/api/v1", tags=["Access"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["Admin Users"])

    # Health check endpoint
    @app.get("/api/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "service": settings.APP_NAME,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "arboleda_admin.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
