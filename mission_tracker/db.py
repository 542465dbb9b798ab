"""
Mission store abstraction for Firestore, SQL and an in-memory test implementation.

Store clients raise on failure; the data adapter in ``mission_tracker.missions``
is responsible for turning failures into empty results.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from dacite import Config, from_dict
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import Boolean, Column, DateTime, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from mission_shared.firebase_constants import (
    FIELD_COMPLETED,
    FIELD_CREATED_AT,
    FIELD_DATE,
    FIELD_TITLE,
    FIELD_USER_ID,
    MISSIONS_COLLECTION,
)
from mission_shared.json_utils import convert_keys
from mission_shared.types import Mission


class MissionNotFound(LookupError):
    """Raised when updating a mission id the store does not know."""


class DbClient(Protocol):
    """Interface for mission persistence."""

    kind: str

    def list_missions(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Mission]:
        """Missions owned by ``user_id`` with ``start <= date <= end``."""
        ...

    def add_mission(self, user_id: str, title: str, date: datetime) -> str:
        ...

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        ...

    def set_completed(self, mission_id: str, completed: bool) -> None:
        ...

    def delete_mission(self, mission_id: str) -> None:
        ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class InMemoryDbClient:
    """Simple in-memory store for development and tests."""

    kind = "memory"

    def __init__(self):
        self.missions: Dict[str, Mission] = {}
        self._lock = threading.Lock()

    def list_missions(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Mission]:
        with self._lock:
            return [
                replace(mission)
                for mission in self.missions.values()
                if mission.user_id == user_id and start <= mission.date <= end
            ]

    def add_mission(self, user_id: str, title: str, date: datetime) -> str:
        mission_id = uuid.uuid4().hex
        with self._lock:
            self.missions[mission_id] = Mission(
                id=mission_id,
                user_id=user_id,
                title=title,
                completed=False,
                date=date,
                created_at=datetime.now(timezone.utc),
            )
        return mission_id

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        with self._lock:
            mission = self.missions.get(mission_id)
            return replace(mission) if mission else None

    def set_completed(self, mission_id: str, completed: bool) -> None:
        with self._lock:
            mission = self.missions.get(mission_id)
            if not mission:
                raise MissionNotFound(mission_id)
            mission.completed = completed

    def delete_mission(self, mission_id: str) -> None:
        with self._lock:
            self.missions.pop(mission_id, None)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.missions.clear()


class FirestoreDbClient:
    """
    Firestore-backed store. Expects a ``google.cloud.firestore.Client``, e.g.
    the one returned by ``firebase_admin.firestore.client(app)``.
    """

    kind = "firestore"

    def __init__(self, client: Any, collection: str = MISSIONS_COLLECTION):
        self.client = client
        self.collection_name = collection

    def _collection(self):
        return self.client.collection(self.collection_name)

    @staticmethod
    def _to_mission(snapshot) -> Mission:
        data = convert_keys(snapshot.to_dict() or {}, "camel_to_snake")
        # Missing or null fields fall back to the dataclass defaults.
        data = {key: value for key, value in data.items() if value is not None}
        data["id"] = snapshot.id
        data.setdefault("user_id", "")
        data.setdefault("title", "")
        return from_dict(
            data_class=Mission, data=data, config=Config(check_types=False)
        )

    def list_missions(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Mission]:
        query = (
            self._collection()
            .where(filter=FieldFilter(FIELD_USER_ID, "==", user_id))
            .where(filter=FieldFilter(FIELD_DATE, ">=", start))
            .where(filter=FieldFilter(FIELD_DATE, "<=", end))
        )
        return [self._to_mission(snapshot) for snapshot in query.stream()]

    def add_mission(self, user_id: str, title: str, date: datetime) -> str:
        _, doc_ref = self._collection().add(
            {
                FIELD_USER_ID: user_id,
                FIELD_TITLE: title,
                FIELD_COMPLETED: False,
                FIELD_DATE: date,
                FIELD_CREATED_AT: SERVER_TIMESTAMP,
            }
        )
        return doc_ref.id

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        snapshot = self._collection().document(mission_id).get()
        if not snapshot.exists:
            return None
        return self._to_mission(snapshot)

    def set_completed(self, mission_id: str, completed: bool) -> None:
        try:
            self._collection().document(mission_id).update(
                {FIELD_COMPLETED: completed}
            )
        except google_exceptions.NotFound as e:
            raise MissionNotFound(mission_id) from e

    def delete_mission(self, mission_id: str) -> None:
        self._collection().document(mission_id).delete()


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Timestamps are normalized to UTC before they are written or compared so
    that backends without timezone support (SQLite) order them correctly.
    """

    kind = "sql"

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_mission(self, row: "MissionRow") -> Mission:
        return Mission(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            completed=row.completed,
            date=_as_utc(row.date),
            created_at=_as_utc(row.created_at),
        )

    def list_missions(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Mission]:
        with self.Session() as session:
            stmt = (
                select(MissionRow)
                .where(
                    MissionRow.user_id == user_id,
                    MissionRow.date >= _as_utc(start),
                    MissionRow.date <= _as_utc(end),
                )
                .order_by(MissionRow.created_at.asc())
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_mission(row) for row in rows]

    def add_mission(self, user_id: str, title: str, date: datetime) -> str:
        mission_id = uuid.uuid4().hex
        with self.Session() as session:
            session.add(
                MissionRow(
                    id=mission_id,
                    user_id=user_id,
                    title=title,
                    completed=False,
                    date=_as_utc(date),
                    created_at=datetime.now(timezone.utc),
                )
            )
            session.commit()
        return mission_id

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        with self.Session() as session:
            row = session.get(MissionRow, mission_id)
            if not row:
                return None
            return self._to_mission(row)

    def set_completed(self, mission_id: str, completed: bool) -> None:
        with self.Session() as session:
            row = session.get(MissionRow, mission_id)
            if not row:
                raise MissionNotFound(mission_id)
            row.completed = completed
            session.commit()

    def delete_mission(self, mission_id: str) -> None:
        with self.Session() as session:
            row = session.get(MissionRow, mission_id)
            if row:
                session.delete(row)
                session.commit()


Base = declarative_base()


class MissionRow(Base):
    __tablename__ = "missions"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
