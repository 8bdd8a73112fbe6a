"""FastAPI application for mbestore."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mbestore import __version__
from mbestore.api.routers import branches
from mbestore.errors import MBEError, capture_error
from mbestore.infrastructure.store_connection_pool import StoreConnectionPool
from mbestore.utils.log import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    logger.info(f"Starting mbestore API v{__version__}")
    yield
    logger.info("Shutting down mbestore API")
    StoreConnectionPool.close_all()


def create_app(project_dir: Optional[Path] = None) -> FastAPI:
    """Create the API application for a project directory.

    Args:
        project_dir: Project to serve. If None, uses MBESTORE_PROJECT_DIR or
            searches from the current directory on the first request.
    """
    app = FastAPI(
        title="mbestore API",
        description="Branch-versioned store for model elements and artifacts",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.project_dir = project_dir
    app.state.context = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MBEError)
    async def mbe_error_handler(request: Request, exc: MBEError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        error = capture_error(exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    app.include_router(branches.router, prefix="/api", tags=["branches"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"name": "mbestore API", "version": __version__, "status": "running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
