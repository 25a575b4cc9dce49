from datetime import date, time

import pytest

from hahalab.data import Database, KEY_SCHEDULES, KEY_CHILDREN, KEY_CONTENTS
from hahalab.models import CalendarSettings, Child, ContentItem, Guardian, ScheduleItem
from hahalab.planner import SchedulePlanner


class FakeCloud:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail
        self.pushes = []

    def push(self, key, value):
        self.pushes.append(key)
        if self.fail:
            return False
        self.store[key] = value
        return True

    def fetch(self, key):
        if self.fail:
            return None
        return self.store.get(key)


def _item(item_id="s1", **kw):
    data = dict(id=item_id, title="수업", date=date(2024, 3, 1),
                start_time=time(10, 0), end_time=time(10, 40), child_id="c1")
    data.update(kw)
    return ScheduleItem(**data)


def test_schedule_roundtrip(tmp_path):
    db = Database(str(tmp_path / "test.db"))
    items = [_item(), _item("s2", is_recurring=True, recurring_group_id="g", status="noshow",
                          status_notes="감기")]
    db.save_schedules(items)
    db.close()

    db2 = Database(str(tmp_path / "test.db"))
    assert db2.load_schedules() == items
    db2.close()


def test_missing_status_loads_as_pending():
    db = Database(':memory:')
    db.set_value(KEY_SCHEDULES, [{"id": "x", "title": "t", "date": "2024-03-01",
                                  "startTime": "10:00", "endTime": "10:40", "type": "class"}])
    assert db.load_schedules()[0].status == "pending"
    db.close()


def test_invalid_entries_are_skipped():
    db = Database(':memory:')
    db.set_value(KEY_SCHEDULES, [{"id": "x"}, _item().to_dict()])
    assert [s.id for s in db.load_schedules()] == ["s1"]
    db.close()


def test_children_and_settings_roundtrip():
    db = Database(':memory:')
    child = Child(id="c1", name="이서윤", status="consultation", gender="female",
                  dob=date(2019, 5, 4), guardians=[Guardian("이엄마", "010-0000-0000")])
    db.save_children([child])
    assert db.load_children() == [child]
    assert db.load_settings() == CalendarSettings()
    db.save_settings(CalendarSettings(default_class_duration=50, enable_notifications=False))
    assert db.load_settings().default_class_duration == 50
    assert db.load_settings().enable_notifications is False
    db.close()


def test_save_replicates_to_cloud():
    cloud = FakeCloud()
    db = Database(':memory:', cloud=cloud)
    db.save_schedules([_item()])
    db.flush()
    assert cloud.store[KEY_SCHEDULES][0]["id"] == "s1"
    db.close()


def test_cloud_failure_keeps_local_data():
    cloud = FakeCloud(fail=True)
    db = Database(':memory:', cloud=cloud)
    db.save_schedules([_item()])
    db.flush()
    assert cloud.pushes == [KEY_SCHEDULES]
    assert [s.id for s in db.load_schedules()] == ["s1"]
    db.close()


def test_load_prefers_cloud_and_mirrors_locally():
    cloud = FakeCloud()
    cloud.store[KEY_CHILDREN] = [Child(id="c9", name="박도윤").to_dict()]
    db = Database(':memory:', cloud=cloud)
    assert [c.id for c in db.load_children()] == ["c9"]
    assert db.get_value(KEY_CHILDREN)[0]["id"] == "c9"
    db.close()


def test_push_and_pull_all():
    db = Database(':memory:')
    assert db.push_all_to_cloud() is False
    db.close()

    cloud = FakeCloud()
    db = Database(':memory:', cloud=cloud)
    db.set_value(KEY_SCHEDULES, [_item().to_dict()])
    assert db.push_all_to_cloud() is True
    assert KEY_SCHEDULES in cloud.store
    db.set_value(KEY_SCHEDULES, [])
    assert db.pull_all_from_cloud() == 1
    assert [s.id for s in db.load_schedules()] == ["s1"]
    db.close()


def test_export_import_roundtrip(tmp_path):
    db1 = Database(str(tmp_path / "original.db"))
    db1.save_schedules([_item()])
    dump = tmp_path / "dump.sql"
    db1.export_to_sql(str(dump))
    assert dump.exists() and dump.stat().st_size > 0

    db2 = Database(str(tmp_path / "restored.db"))
    db2.save_schedules([_item("other")])
    db2.import_from_sql(str(dump))
    assert [s.id for s in db2.load_schedules()] == ["s1"]
    db1.close()
    db2.close()


def test_restore_wins_over_stale_cloud_copy(tmp_path):
    backup = Database(str(tmp_path / "backup.db"))
    backup.save_schedules([_item("from-backup")])
    dump = tmp_path / "dump.sql"
    backup.export_to_sql(str(dump))
    backup.close()

    cloud = FakeCloud()
    db = Database(str(tmp_path / "live.db"), cloud=cloud)
    db.save_schedules([_item("current")])
    db.flush()
    assert cloud.store[KEY_SCHEDULES][0]["id"] == "current"

    db.import_from_sql(str(dump))
    assert [s["id"] for s in cloud.store[KEY_SCHEDULES]] == ["from-backup"]

    planner = SchedulePlanner(db)
    planner.load()
    assert [s.id for s in planner.schedules] == ["from-backup"]
    db.close()


def test_local_only_load_ignores_cloud():
    cloud = FakeCloud()
    cloud.store[KEY_SCHEDULES] = [_item("stale").to_dict()]
    db = Database(':memory:', cloud=cloud)
    db.set_value(KEY_SCHEDULES, [_item("restored").to_dict()])
    assert [s.id for s in db.load_schedules(local_only=True)] == ["restored"]
    assert [s.id for s in db.load_schedules()] == ["stale"]
    db.close()


def test_contents_roundtrip_and_invalid_entries():
    db = Database(':memory:')
    item = ContentItem(id="1", category_id="art", title="종이 접기 교실",
                       target_url="https://example.com/art", tags=["종이접기", "소근육"],
                       created_at=1700000000000)
    db.save_contents([item])
    assert db.load_contents() == [item]
    db.set_value(KEY_CONTENTS, [{"id": "kaputt"}, item.to_dict()])
    assert [c.id for c in db.load_contents()] == ["1"]
    db.close()
