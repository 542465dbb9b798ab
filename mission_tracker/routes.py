"""
HTTP routes for the mission tracker API.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from mission_tracker import auth, missions
from mission_tracker.auth import AuthClient, AuthStateNotifier
from mission_tracker.config import Settings, get_settings
from mission_tracker.db import DbClient
from mission_tracker.dependencies import (
    get_auth_client,
    get_auth_notifier,
    get_current_user,
    get_db_client,
    require_user,
)
from mission_tracker.schemas import (
    AddMissionRequest,
    AddMissionResponse,
    HealthResponse,
    ListMissionsResponse,
    MissionModel,
    MutationResponse,
    SessionResponse,
    SignInRequest,
    ToggleMissionRequest,
    UserModel,
)
from mission_shared.constants import MAX_MISSION_ID_LENGTH
from mission_shared.types import AuthUser, Mission

logger = logging.getLogger(__name__)

router = APIRouter()


def _today(settings: Settings) -> date:
    return datetime.now(settings.tzinfo).date()


def _owned_mission(
    db: DbClient, mission_id: str, user: AuthUser
) -> tuple[bool, Optional[Mission]]:
    """
    Look up a mission for a write by ``user``.

    Returns ``(False, None)`` when the lookup itself failed, so callers never
    write without having confirmed ownership. Missions owned by someone else
    raise a 404.
    """
    try:
        mission = db.get_mission(mission_id)
    except Exception as e:
        logger.error(f"Error getting mission {mission_id}: {e}")
        return False, None
    if mission and mission.user_id != user.uid:
        raise HTTPException(status_code=404, detail="Mission not found")
    return True, mission


@router.get("/healthz", response_model=HealthResponse)
def healthz(db: Optional[DbClient] = Depends(get_db_client)):
    return HealthResponse(status="ok", backend=db.kind if db else None)


@router.get("/auth/session", response_model=SessionResponse)
def get_session(user: Optional[AuthUser] = Depends(get_current_user)):
    if not user:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=UserModel.from_user(user))


@router.post("/auth/session", response_model=SessionResponse)
def create_session(
    payload: SignInRequest,
    response: Response,
    auth_client: Optional[AuthClient] = Depends(get_auth_client),
    notifier: AuthStateNotifier = Depends(get_auth_notifier),
    settings: Settings = Depends(get_settings),
):
    """
    Exchange a Firebase ID token (from the Google popup sign-in) for a session cookie.
    """
    expires_in = timedelta(days=settings.session_cookie_days)
    result = auth.sign_in(auth_client, payload.id_token, expires_in)
    if not result:
        raise HTTPException(status_code=401, detail="Sign-in failed")

    user, session_cookie = result
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_cookie,
        max_age=int(expires_in.total_seconds()),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    notifier.publish(user)
    return SessionResponse(authenticated=True, user=UserModel.from_user(user))


@router.delete("/auth/session", response_model=SessionResponse)
def delete_session(
    response: Response,
    user: Optional[AuthUser] = Depends(get_current_user),
    auth_client: Optional[AuthClient] = Depends(get_auth_client),
    notifier: AuthStateNotifier = Depends(get_auth_notifier),
    settings: Settings = Depends(get_settings),
):
    auth.sign_out(auth_client, user)
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    if user:
        notifier.publish(None)
    return SessionResponse(authenticated=False)


@router.get("/missions", response_model=ListMissionsResponse)
def list_missions(
    day: Optional[date] = Query(None, alias="date"),
    user: AuthUser = Depends(require_user),
    db: Optional[DbClient] = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    day = day or _today(settings)
    items = missions.get_missions(db, user.uid, day, settings.tzinfo)
    return ListMissionsResponse(
        date=day, missions=[MissionModel.from_mission(m) for m in items]
    )


@router.post("/missions", response_model=AddMissionResponse, status_code=201)
def create_mission(
    payload: AddMissionRequest,
    response: Response,
    user: AuthUser = Depends(require_user),
    db: Optional[DbClient] = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    day = payload.date or _today(settings)
    mission_id = missions.add_mission(
        db, user.uid, payload.title, day, settings.tzinfo
    )
    if not mission_id:
        response.status_code = 200
        return AddMissionResponse(mission_id="")

    # Echo the new mission without a read-back; created_at is approximate.
    mission = Mission(
        id=mission_id,
        user_id=user.uid,
        title=payload.title,
        completed=False,
        date=missions.mission_timestamp(day, settings.tzinfo),
        created_at=datetime.now(timezone.utc),
    )
    return AddMissionResponse(
        mission_id=mission_id, mission=MissionModel.from_mission(mission)
    )


@router.patch("/missions/{mission_id}", response_model=MutationResponse)
def toggle_mission(
    payload: ToggleMissionRequest,
    mission_id: str = Path(..., min_length=1, max_length=MAX_MISSION_ID_LENGTH),
    user: AuthUser = Depends(require_user),
    db: Optional[DbClient] = Depends(get_db_client),
):
    if db is None:
        return MutationResponse(success=False)
    found, mission = _owned_mission(db, mission_id, user)
    if not found:
        return MutationResponse(success=False)
    if not mission:
        raise HTTPException(status_code=404, detail="Mission not found")
    success = missions.toggle_mission_status(db, mission_id, payload.completed)
    return MutationResponse(success=success)


@router.delete("/missions/{mission_id}", response_model=MutationResponse)
def remove_mission(
    mission_id: str = Path(..., min_length=1, max_length=MAX_MISSION_ID_LENGTH),
    user: AuthUser = Depends(require_user),
    db: Optional[DbClient] = Depends(get_db_client),
):
    if db is None:
        return MutationResponse(success=False)
    found, _ = _owned_mission(db, mission_id, user)
    if not found:
        return MutationResponse(success=False)
    # Absent missions fall through: deletion is idempotent.
    success = missions.delete_mission(db, mission_id)
    return MutationResponse(success=success)
