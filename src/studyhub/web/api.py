"""FastAPI application factory.

Main entry point for the studyhub Web API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyhub import __version__
from studyhub.config.app_config import AppConfig, load_app_config
from studyhub.db import build_data_service
from studyhub.db.data_service import DataService
from studyhub.web.errors import register_exception_handlers
from studyhub.web.routes import (
    auth_router,
    classes_router,
    contact_router,
    flashcards_router,
    goals_router,
    health_router,
    progress_router,
    quiz_taking_router,
    quizzes_router,
    resources_router,
    study_sessions_router,
    users_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config
    if app.state.data_service is None:
        app.state.data_service = build_data_service(config)
    logger.info(
        "api_startup",
        backend=config.backend.kind,
        service=type(app.state.data_service).__name__,
    )
    yield
    logger.info("api_shutdown")


def create_app(
    data_service: DataService | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        data_service: Service to use; built from config on startup if omitted
        config: App configuration; loaded from file if omitted

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    app = FastAPI(
        title="StudyHub API",
        description="Study management backend: classes, quizzes, flashcards and progress",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.data_service = data_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(classes_router)
    app.include_router(quizzes_router)
    app.include_router(quiz_taking_router)
    app.include_router(flashcards_router)
    app.include_router(study_sessions_router)
    app.include_router(progress_router)
    app.include_router(goals_router)
    app.include_router(resources_router)
    app.include_router(users_router)
    app.include_router(contact_router)

    return app


# Default app instance for uvicorn (data service is built on startup)
app = create_app()
