"""
Mission data adapter.

Thin wrappers around a ``DbClient`` that bound queries to a single calendar
day and convert every failure into a benign result: an empty list, an empty
id, or ``False``. Callers cannot tell "no results" apart from "error"; the
error is only visible in the logs.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, tzinfo
from typing import Optional, Union

from mission_tracker.db import DbClient
from mission_shared.types import Mission

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

# Day windows end at 23:59:59.999; bounds carry millisecond precision.
_END_OF_DAY = time(23, 59, 59, 999000)


def _ensure_db(db: Optional[DbClient]) -> Optional[DbClient]:
    if db is None:
        logger.error("Mission store is not initialized")
    return db


def calendar_day(value: DateLike, tz: tzinfo) -> date:
    """Return the calendar day ``value`` falls on in ``tz``."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(tz).date()
    return value


def day_bounds(value: DateLike, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the inclusive ``[00:00:00.000, 23:59:59.999]`` window for a day."""
    day = calendar_day(value, tz)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, _END_OF_DAY, tzinfo=tz)
    return start, end


def mission_timestamp(value: DateLike, tz: tzinfo) -> datetime:
    """
    Timestamp stored for a mission's target date.

    Plain dates become local midnight; naive datetimes are read as local time.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value
    return datetime.combine(value, time.min, tzinfo=tz)


def get_missions(
    db: Optional[DbClient], user_id: str, day: DateLike, tz: tzinfo
) -> list[Mission]:
    if not _ensure_db(db):
        return []

    start, end = day_bounds(day, tz)
    try:
        return db.list_missions(user_id, start, end)
    except Exception as e:
        logger.error(f"Error getting missions: {e}")
        return []


def add_mission(
    db: Optional[DbClient], user_id: str, title: str, day: DateLike, tz: tzinfo
) -> str:
    if not _ensure_db(db):
        return ""

    try:
        return db.add_mission(user_id, title, mission_timestamp(day, tz))
    except Exception as e:
        logger.error(f"Error adding mission: {e}")
        return ""


def toggle_mission_status(
    db: Optional[DbClient], mission_id: str, completed: bool
) -> bool:
    if not _ensure_db(db):
        return False

    try:
        db.set_completed(mission_id, completed)
        return True
    except Exception as e:
        logger.error(f"Error toggling mission status: {e}")
        return False


def delete_mission(db: Optional[DbClient], mission_id: str) -> bool:
    if not _ensure_db(db):
        return False

    try:
        db.delete_mission(mission_id)
        return True
    except Exception as e:
        logger.error(f"Error deleting mission: {e}")
        return False


def get_mission(db: Optional[DbClient], mission_id: str) -> Optional[Mission]:
    """Look up one mission; ``None`` when absent or on error."""
    if not _ensure_db(db):
        return None

    try:
        return db.get_mission(mission_id)
    except Exception as e:
        logger.error(f"Error getting mission {mission_id}: {e}")
        return None

