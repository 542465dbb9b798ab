import unittest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

from mission_tracker import missions
from mission_tracker.db import InMemoryDbClient

SEOUL = ZoneInfo("Asia/Seoul")


class DayBoundsTests(unittest.TestCase):
    def test_bounds_cover_whole_day_inclusive(self):
        start, end = missions.day_bounds(date(2026, 3, 1), timezone.utc)
        self.assertEqual(start, datetime(2026, 3, 1, tzinfo=timezone.utc))
        self.assertEqual(
            end, datetime(2026, 3, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)
        )

    def test_aware_datetime_uses_local_calendar_day(self):
        # 2026-02-28 20:00 UTC is already March 1st in Seoul.
        moment = datetime(2026, 2, 28, 20, 0, tzinfo=timezone.utc)
        start, end = missions.day_bounds(moment, SEOUL)
        self.assertEqual(start, datetime(2026, 3, 1, tzinfo=SEOUL))
        self.assertEqual(end.date(), date(2026, 3, 1))
        self.assertEqual(end.tzinfo, SEOUL)

    def test_naive_datetime_is_read_as_local_time(self):
        stamp = missions.mission_timestamp(datetime(2026, 3, 1, 9, 30), SEOUL)
        self.assertEqual(stamp, datetime(2026, 3, 1, 9, 30, tzinfo=SEOUL))
        self.assertEqual(
            missions.mission_timestamp(date(2026, 3, 1), SEOUL),
            datetime(2026, 3, 1, tzinfo=SEOUL),
        )


class InMemoryDbClientTests(unittest.TestCase):
    def test_reads_return_copies(self):
        db = InMemoryDbClient()
        day = datetime(2026, 3, 1, tzinfo=timezone.utc)
        mission_id = db.add_mission("alice", "Run", day)

        fetched = db.get_mission(mission_id)
        fetched.completed = True
        fetched.user_id = "mallory"
        listed = db.list_missions("alice", day, day)
        listed[0].title = "Changed"

        stored = db.get_mission(mission_id)
        self.assertEqual(stored.user_id, "alice")
        self.assertEqual(stored.title, "Run")
        self.assertFalse(stored.completed)

class MissionAdapterTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.tz = timezone.utc

    def test_create_then_list(self):
        mission_id = missions.add_mission(
            self.db, "alice", "Water plants", date(2026, 3, 1), self.tz
        )
        self.assertTrue(mission_id)

        listed = missions.get_missions(self.db, "alice", date(2026, 3, 1), self.tz)
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0].id, mission_id)
        self.assertEqual(listed[0].title, "Water plants")
        self.assertFalse(listed[0].completed)

    def test_date_filter_excludes_adjacent_days(self):
        day = date(2026, 3, 1)
        end_of_day = datetime(2026, 3, 1, 23, 59, 59, 999000, tzinfo=self.tz)
        missions.add_mission(self.db, "alice", "early", day, self.tz)
        missions.add_mission(self.db, "alice", "late", end_of_day, self.tz)
        missions.add_mission(
            self.db, "alice", "after", end_of_day + timedelta(milliseconds=1), self.tz
        )
        missions.add_mission(
            self.db, "alice", "before", day - timedelta(days=1), self.tz
        )

        titles = {m.title for m in missions.get_missions(self.db, "alice", day, self.tz)}
        self.assertEqual(titles, {"early", "late"})

    def test_toggle_and_delete(self):
        mission_id = missions.add_mission(
            self.db, "alice", "Run", date(2026, 3, 1), self.tz
        )
        self.assertTrue(missions.toggle_mission_status(self.db, mission_id, True))
        self.assertTrue(
            missions.get_missions(self.db, "alice", date(2026, 3, 1), self.tz)[0].completed
        )

        self.assertTrue(missions.delete_mission(self.db, mission_id))
        self.assertEqual(
            missions.get_missions(self.db, "alice", date(2026, 3, 1), self.tz), []
        )
        # Deleting again is not an error.
        self.assertTrue(missions.delete_mission(self.db, mission_id))

    def test_toggle_missing_mission_fails_quietly(self):
        with self.assertLogs("mission_tracker.missions", level="ERROR"):
            self.assertFalse(missions.toggle_mission_status(self.db, "missing", True))

    def test_unconfigured_store_returns_empty_results(self):
        with self.assertLogs("mission_tracker.missions", level="ERROR") as logs:
            self.assertEqual(
                missions.get_missions(None, "alice", date(2026, 3, 1), self.tz), []
            )
            self.assertEqual(
                missions.add_mission(None, "alice", "Run", date(2026, 3, 1), self.tz),
                "",
            )
            self.assertFalse(missions.toggle_mission_status(None, "m1", True))
            self.assertFalse(missions.delete_mission(None, "m1"))
            self.assertIsNone(missions.get_mission(None, "m1"))
        self.assertTrue(
            all("not initialized" in line for line in logs.output), logs.output
        )

    def test_store_errors_are_swallowed_and_logged(self):
        db = MagicMock()
        db.list_missions.side_effect = PermissionError("denied")
        db.add_mission.side_effect = ConnectionError("offline")
        db.set_completed.side_effect = ConnectionError("offline")
        db.delete_mission.side_effect = ConnectionError("offline")
        db.get_mission.side_effect = ConnectionError("offline")

        with self.assertLogs("mission_tracker.missions", level="ERROR") as logs:
            self.assertEqual(
                missions.get_missions(db, "alice", date(2026, 3, 1), self.tz), []
            )
            self.assertEqual(
                missions.add_mission(db, "alice", "Run", date(2026, 3, 1), self.tz), ""
            )
            self.assertFalse(missions.toggle_mission_status(db, "m1", True))
            self.assertFalse(missions.delete_mission(db, "m1"))
            self.assertIsNone(missions.get_mission(db, "m1"))

        self.assertEqual(len(logs.output), 5)
        self.assertIn("Error getting missions: denied", logs.output[0])

    def test_list_passes_day_window_to_store(self):
        db = MagicMock()
        db.list_missions.return_value = []
        missions.get_missions(db, "alice", date(2026, 3, 1), SEOUL)

        user_id, start, end = db.list_missions.call_args.args
        self.assertEqual(user_id, "alice")
        self.assertEqual(start, datetime(2026, 3, 1, tzinfo=SEOUL))
        self.assertEqual(end, datetime(2026, 3, 1, 23, 59, 59, 999000, tzinfo=SEOUL))


if __name__ == "__main__":
    unittest.main()
