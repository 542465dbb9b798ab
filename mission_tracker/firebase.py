"""
Process-wide, lazily initialized Firebase app handle.

The app is only created when Firebase is configured; otherwise callers get
``None`` and the adapters degrade to empty results.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from mission_tracker.config import Settings, get_settings

logger = logging.getLogger(__name__)

_app: Optional[firebase_admin.App] = None


def _build_credentials(settings: Settings) -> credentials.Base:
    if settings.firebase_credentials_path:
        return credentials.Certificate(settings.firebase_credentials_path)
    return credentials.ApplicationDefault()


def get_firebase_app(settings: Settings | None = None) -> Optional[firebase_admin.App]:
    """Return the shared Firebase app, initializing it on first use."""
    global _app
    if _app:
        return _app

    settings = settings or get_settings()
    if not settings.firebase_configured:
        return None

    try:
        try:
            _app = firebase_admin.get_app()
        except ValueError:
            options = {}
            if settings.firebase_project_id:
                options["projectId"] = settings.firebase_project_id
            _app = firebase_admin.initialize_app(
                _build_credentials(settings), options=options
            )
        logger.info("Firebase initialized successfully")
    except Exception as e:
        logger.error(f"Firebase initialization error: {e}")
        logger.error(
            "Firebase config: %s",
            json.dumps(
                {
                    "project_id": settings.firebase_project_id,
                    "credentials_path": settings.firebase_credentials_path,
                },
                indent=2,
            ),
        )
        _app = None
    return _app


def reset_firebase_app() -> None:
    """Forget the cached handle (useful in tests)."""
    global _app
    _app = None
