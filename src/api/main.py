"""
FastAPI application entry point.

Wires the classification and health routers together and owns the
ModelManager, which is created once at startup and shared by all requests.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import classification, health
from src.models.manager import ModelManager
from src.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Global application state
app_state = {}

def get_config_path() -> Path:
    return Path(os.getenv("CLASSIFIER_CONFIG_PATH") or DEFAULT_CONFIG_PATH)

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Loads the model configuration once at startup and releases provider
    clients at shutdown.
    """
    setup_logging()
    config_path = get_config_path()
    logger.info(f"Starting classifier API with config {config_path}")
    app_state["model_manager"] = ModelManager(config_path=config_path)
    logger.info("API server ready to accept requests")

    yield  # Server runs here

    logger.info("Shutting down classifier API")
    app_state["model_manager"].cleanup()
    app_state.clear()

def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """
    app = FastAPI(
        title="Plant & Fungus Classifier API",
        description="Identifies plants and fungi in uploaded photos with a vision model",
        version=health.API_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Common frontend ports
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(classification.router, prefix="/api", tags=["classification"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": app.title,
            "version": app.version,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "classify_image": "/api/classify-image",
                "docs": "/docs",
                "redoc": "/redoc"
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
