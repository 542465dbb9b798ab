"""
Pydantic schemas for the mission tracker API.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from mission_shared.constants import MAX_ID_TOKEN_LENGTH, MAX_MISSION_TITLE_LENGTH
from mission_shared.types import AuthUser, Mission


class UserModel(BaseModel):
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: AuthUser) -> "UserModel":
        return cls(uid=user.uid, display_name=user.display_name, email=user.email)


class SessionResponse(BaseModel):
    authenticated: bool
    user: Optional[UserModel] = None


class SignInRequest(BaseModel):
    id_token: str = Field(..., min_length=1, max_length=MAX_ID_TOKEN_LENGTH)


class MissionModel(BaseModel):
    id: str
    user_id: str
    title: str
    completed: bool
    date: dt.datetime
    created_at: dt.datetime

    @classmethod
    def from_mission(cls, mission: Mission) -> "MissionModel":
        return cls(
            id=mission.id,
            user_id=mission.user_id,
            title=mission.title,
            completed=mission.completed,
            date=mission.date,
            created_at=mission.created_at,
        )


class ListMissionsResponse(BaseModel):
    date: dt.date
    missions: list[MissionModel]


class AddMissionRequest(BaseModel):
    title: str = Field(..., max_length=MAX_MISSION_TITLE_LENGTH)
    date: Optional[dt.date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value


class AddMissionResponse(BaseModel):
    mission_id: str
    mission: Optional[MissionModel] = None


class ToggleMissionRequest(BaseModel):
    completed: bool


class MutationResponse(BaseModel):
    success: bool


class HealthResponse(BaseModel):
    status: Literal["ok"]
    backend: Optional[str] = None
