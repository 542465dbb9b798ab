"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from firebase_admin import firestore

from mission_tracker.auth import (
    AuthClient,
    AuthStateNotifier,
    FirebaseAuthClient,
    InMemoryAuthClient,
    resolve_user,
)
from mission_tracker.config import Settings, get_settings
from mission_tracker.db import DbClient, FirestoreDbClient, InMemoryDbClient, SqlDbClient
from mission_tracker.firebase import get_firebase_app
from mission_shared.types import AuthUser

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_db_resolved = False
_auth_client: AuthClient | None = None
_auth_resolved = False


def _build_db_client(settings: Settings) -> Optional[DbClient]:
    if settings.use_in_memory_backends:
        return InMemoryDbClient()
    if settings.database_url:
        return SqlDbClient(settings.database_url)
    app = get_firebase_app(settings)
    if app:
        return FirestoreDbClient(firestore.client(app))
    return None


def get_db_client() -> Optional[DbClient]:
    """
    Return a singleton mission store, or ``None`` when no backend is configured.
    """
    global _db_client, _db_resolved
    if _db_resolved:
        return _db_client

    settings = get_settings()
    try:
        _db_client = _build_db_client(settings)
    except Exception as e:
        logger.error(f"Mission store initialization error: {e}")
        _db_client = None
    if _db_client is None:
        logger.warning("No mission store available; missions will be empty")
    _db_resolved = True
    return _db_client


def get_auth_client() -> Optional[AuthClient]:
    global _auth_client, _auth_resolved
    if _auth_resolved:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _auth_client = InMemoryAuthClient()
    else:
        app = get_firebase_app(settings)
        _auth_client = FirebaseAuthClient(app) if app else None
        if not _auth_client:
            logger.warning("No auth provider configured; all sign-ins will fail")
    _auth_resolved = True
    return _auth_client


def get_auth_notifier(request: Request) -> AuthStateNotifier:
    return request.app.state.auth_notifier


def reset_clients() -> None:
    """Drop cached clients so the next request re-reads settings."""
    global _db_client, _db_resolved, _auth_client, _auth_resolved
    _db_client = None
    _db_resolved = False
    _auth_client = None
    _auth_resolved = False


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    auth_client: Optional[AuthClient] = Depends(get_auth_client),
    settings: Settings = Depends(get_settings),
) -> Optional[AuthUser]:
    bearer_token = None
    if authorization and authorization.lower().startswith("bearer "):
        bearer_token = authorization[len("bearer ") :].strip()
    return resolve_user(
        auth_client,
        session_cookie=request.cookies.get(settings.session_cookie_name),
        bearer_token=bearer_token,
    )


def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
