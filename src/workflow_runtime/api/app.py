"""
FastAPI application
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .dependencies import app_state, get_app_state
from .middleware import RequestLoggingMiddleware
from .routers import definitions, sessions, monitoring
from .. import __version__
from ..config import RuntimeSettings
from ..exceptions import DefinitionError
from ..storage.repository import InMemoryDefinitionRepository, InMemorySessionRepository


logger = logging.getLogger(__name__)


def create_app(settings: Optional[RuntimeSettings] = None) -> FastAPI:
    """Build the runtime API application"""
    settings = settings or RuntimeSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Workflow Runtime API...")

        definition_repo = InMemoryDefinitionRepository()
        session_repo = InMemorySessionRepository()

        if settings.definitions_dir is not None:
            await definition_repo.load_directory(settings.definitions_dir)

        app_state.update({
            "settings": settings,
            "definition_repo": definition_repo,
            "session_repo": session_repo
        })

        logger.info("Workflow Runtime API started successfully")

        yield

        logger.info("Shutting down Workflow Runtime API...")

        # cancel whatever the live sessions' renderers are still doing
        for session in list(session_repo.sessions.values()):
            session.runner.reset()
        app_state.clear()

        logger.info("Workflow Runtime API shut down successfully")

    app = FastAPI(
        title="Guest Workflow Runtime API",
        description="Step-by-step runtime for guest-facing workflow definitions",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(definitions.router, prefix="/api/v1/definitions", tags=["definitions"])
    app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["sessions"])
    app.include_router(monitoring.router, prefix="/api/v1/monitoring", tags=["monitoring"])

    @app.exception_handler(DefinitionError)
    async def definition_error_handler(request: Request, exc: DefinitionError):
        logger.warning(f"Rejected workflow definition: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "invalid_definition",
                "message": str(exc),
                "errors": exc.errors
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "request_id": request.state.request_id if hasattr(request.state, "request_id") else None
            }
        )

    @app.get("/", tags=["root"])
    async def root():
        """API root"""
        return {
            "name": "Guest Workflow Runtime API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/api/v1/monitoring/health"
        }

    return app


__all__ = ["create_app", "app_state", "get_app_state"]
