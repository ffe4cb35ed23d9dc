"""
WagePlan API - FastAPI application entry point.

Run with:
    uvicorn wageplan_api.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .routers import (
    bands_router,
    dashboard_router,
    data_router,
    employees_router,
    system_router,
)

# Configure logging to show in console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# Set log level for our modules
logging.getLogger("wageplan_api").setLevel(logging.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Startup: ensure the data and upload directories exist
    settings.upload_path.parent.mkdir(parents=True, exist_ok=True)

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="WagePlan API",
        description="Backend API for the WagePlan compensation planning dashboard",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(system_router, prefix="/api", tags=["System"])
    app.include_router(employees_router, prefix="/api", tags=["Employees"])
    app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
    app.include_router(data_router, prefix="/api", tags=["Data"])
    app.include_router(bands_router, prefix="/api", tags=["Pay Bands"])

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "wageplan_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
