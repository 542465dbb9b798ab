"""
FastAPI application entry point for the mission tracker.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from mission_tracker.auth import AuthStateNotifier
from mission_tracker.config import Settings, get_settings
from mission_tracker.routes import router
from mission_shared.types import AuthUser

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _log_auth_state(user: Optional[AuthUser]) -> None:
    if user:
        logger.info(f"Signed in: {user.uid}")
    else:
        logger.info("Signed out")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Daily Mission Tracker", version="0.1.0")
    app.state.auth_notifier = AuthStateNotifier()
    app.state.auth_notifier.subscribe(_log_auth_state)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
