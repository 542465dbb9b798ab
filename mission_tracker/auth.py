"""
Auth adapter for Firebase Authentication and an in-memory test implementation.

The browser completes the Google popup flow with the Firebase JS SDK and posts
the resulting ID token here; the server exchanges it for a session cookie and
resolves the current user from that cookie (or a bearer ID token) on every
request.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, Optional, Protocol

from firebase_admin import App, auth as firebase_auth

from mission_shared.types import AuthUser

logger = logging.getLogger(__name__)

AuthStateListener = Callable[[Optional[AuthUser]], None]


class AuthClient(Protocol):
    """Operations the service needs from the identity provider."""

    def verify_id_token(self, id_token: str) -> AuthUser:
        ...

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        ...

    def verify_session_cookie(self, session_cookie: str) -> AuthUser:
        ...

    def revoke_refresh_tokens(self, uid: str) -> None:
        ...


def _user_from_claims(claims: dict) -> AuthUser:
    return AuthUser(
        uid=claims["uid"],
        display_name=claims.get("name"),
        email=claims.get("email"),
    )


@dataclass
class FirebaseAuthClient:
    """Forwards to ``firebase_admin.auth`` for a given Firebase app."""

    app: Optional[App] = None

    def verify_id_token(self, id_token: str) -> AuthUser:
        claims = firebase_auth.verify_id_token(id_token, app=self.app)
        return _user_from_claims(claims)

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        return firebase_auth.create_session_cookie(
            id_token, expires_in=expires_in, app=self.app
        )

    def verify_session_cookie(self, session_cookie: str) -> AuthUser:
        claims = firebase_auth.verify_session_cookie(
            session_cookie, check_revoked=True, app=self.app
        )
        return _user_from_claims(claims)

    def revoke_refresh_tokens(self, uid: str) -> None:
        firebase_auth.revoke_refresh_tokens(uid, app=self.app)


class InvalidCredential(ValueError):
    """Raised by the in-memory client for unknown tokens or cookies."""


@dataclass
class InMemoryAuthClient:
    """Test double mapping opaque ID tokens to users."""

    users_by_token: Dict[str, AuthUser] = field(default_factory=dict)
    sessions: Dict[str, AuthUser] = field(default_factory=dict)
    revoked: set = field(default_factory=set)

    def add_user(self, id_token: str, user: AuthUser) -> None:
        self.users_by_token[id_token] = user

    def verify_id_token(self, id_token: str) -> AuthUser:
        user = self.users_by_token.get(id_token)
        if not user:
            raise InvalidCredential("Unknown ID token")
        return user

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        user = self.verify_id_token(id_token)
        cookie = f"session-{user.uid}-{len(self.sessions)}"
        self.sessions[cookie] = user
        self.revoked.discard(user.uid)
        return cookie

    def verify_session_cookie(self, session_cookie: str) -> AuthUser:
        user = self.sessions.get(session_cookie)
        if not user or user.uid in self.revoked:
            raise InvalidCredential("Invalid session cookie")
        return user

    def revoke_refresh_tokens(self, uid: str) -> None:
        self.revoked.add(uid)


class AuthStateNotifier:
    """
    In-process fan-out of sign-in / sign-out transitions.

    Listeners receive the signed-in user, or ``None`` after a sign-out.
    A failing listener is logged and does not stop the others.
    """

    def __init__(self):
        self._listeners: list[AuthStateListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: AuthStateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, user: Optional[AuthUser]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(user)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}")


def sign_in(
    client: Optional[AuthClient], id_token: str, expires_in: timedelta
) -> Optional[tuple[AuthUser, str]]:
    """Verify a Google/Firebase ID token and mint a session cookie for it."""
    if client is None:
        logger.error("Auth is not initialized")
        return None

    try:
        user = client.verify_id_token(id_token)
        cookie = client.create_session_cookie(id_token, expires_in)
    except Exception as e:
        logger.error(f"Error signing in with Google: {e}")
        return None
    return user, cookie


def sign_out(client: Optional[AuthClient], user: Optional[AuthUser]) -> bool:
    if client is None or user is None:
        return False

    try:
        client.revoke_refresh_tokens(user.uid)
        return True
    except Exception as e:
        logger.error(f"Error signing out: {e}")
        return False


def resolve_user(
    client: Optional[AuthClient],
    *,
    session_cookie: Optional[str] = None,
    bearer_token: Optional[str] = None,
) -> Optional[AuthUser]:
    """Return the authenticated user, or ``None`` if there is no valid session."""
    if client is None:
        return None

    attempts = (
        (client.verify_session_cookie, session_cookie),
        (client.verify_id_token, bearer_token),
    )
    for verify, credential in attempts:
        if not credential:
            continue
        try:
            return verify(credential)
        except Exception as e:
            logger.info(f"Rejected credentials: {e}")
    return None
