"""FastAPI application factory.

Main entry point for the journal Web API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from journal.config.app_config import AppConfig, load_app_config
from journal.core.models import Role
from journal.core.policy import AccessPolicy
from journal.db.database import init_db
from journal.web.auth import AuthMiddleware
from journal.web.routes import (
    courses,
    courses_router,
    disciplines,
    disciplines_router,
    exams,
    exams_router,
    health_router,
)

logger = structlog.get_logger(__name__)


def build_access_policy() -> AccessPolicy:
    """Register every protected route with the roles allowed to call it."""
    policy = AccessPolicy()
    table: dict[str, tuple[Role, ...]] = {
        **courses.POLICY,
        **disciplines.POLICY,
        **exams.POLICY,
    }
    for route, roles in table.items():
        policy = policy.register(route, *roles)
    return policy


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config: AppConfig = app.state.config
    logger.info(
        "api.startup",
        env=config.env,
        storage_path=str(config.storage_path),
        routes=app.state.access_policy.routes,
    )
    yield
    logger.info("api.shutdown")


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Service configuration. Loaded from $CONFIG_PATH when omitted.

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    init_db(config.storage_path)

    app = FastAPI(
        title="Journal API",
        description="Role-based academic records service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.access_policy = build_access_policy()

    app.add_middleware(AuthMiddleware, secret=config.secret)

    # CORS middleware for web clients (outermost, so preflights skip auth)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(disciplines_router)
    app.include_router(exams_router)

    return app
