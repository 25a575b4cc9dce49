from datetime import date, datetime, time

import pytest

from hahalab.data import Database
from hahalab.errors import (
    ContentNotFoundError, DuplicateChildNameError, EmptyRangeError, InvalidContentError, ScheduleNotFoundError,
)
from hahalab.models import CalendarSettings, Child, ContentItem, ScheduleTemplate
from hahalab.planner import SchedulePlanner


@pytest.fixture
def db():
    db = Database(':memory:')
    yield db
    db.close()


@pytest.fixture
def planner(db):
    p = SchedulePlanner(db)
    p.load()
    return p


def _template(**kw):
    data = dict(title="하준 수업", date=date(2024, 3, 1), start_time=time(10, 0))
    data.update(kw)
    return ScheduleTemplate(**data)


def test_create_single_persists_immediately(planner, db):
    items, conflicts = planner.create_schedules(_template())
    assert conflicts == []
    assert [s.id for s in db.load_schedules()] == [items[0].id]
    assert items[0].end_time == time(10, 40)


def test_default_duration_comes_from_settings(planner):
    planner.update_settings(CalendarSettings(default_class_duration=50))
    items, _ = planner.create_schedules(_template())
    assert items[0].end_time == time(10, 50)


def test_conflicts_are_reported_but_saved(planner, db):
    planner.create_schedules(_template(start_time=time(10, 30), end_time=time(11, 0)))
    items, conflicts = planner.create_schedules(_template())
    assert len(conflicts) == 1
    assert len(db.load_schedules()) == 2
    assert planner.check_conflict(date(2024, 3, 1), time(10, 0), time(10, 40))
    assert not planner.check_conflict(date(2024, 3, 1), time(11, 0), time(11, 40))


def test_recurring_batch(planner):
    items, _ = planner.create_schedules(_template(date=date(2024, 1, 1)), "recurring",
                                        end_date=date(2024, 1, 22), base_id="g")
    assert len(items) == 4
    assert len(planner.schedules) == 4


def test_empty_range_leaves_state_untouched(planner, db):
    with pytest.raises(EmptyRangeError):
        planner.create_schedules(_template(), "recurring", end_date=date(2024, 2, 1))
    assert planner.schedules == []
    assert db.load_schedules() == []


def test_reschedule_replaces_old_instance(planner, db):
    items, _ = planner.create_schedules(_template(), base_id="old")
    new = planner.reschedule("old", date(2024, 3, 5), time(14, 0))
    ids = [s.id for s in planner.schedules]
    assert "old" not in ids and new.id in ids
    assert new.end_time == time(14, 40)
    assert new.status == "rescheduled"
    stored = db.load_schedules()
    assert [s.id for s in stored] == [new.id]
    assert stored[0].status_notes.startswith("[일정변경] 2024-03-01 10:00 -> 2024-03-05 14:00")


def test_status_actions_persist(planner, db):
    planner.create_schedules(_template(), base_id="a")
    planner.mark_noshow("a", "연락 없음")
    assert db.load_schedules()[0].status == "noshow"
    planner.mark_completed("a")
    stored = db.load_schedules()[0]
    assert stored.status == "completed"
    assert stored.status_notes == "연락 없음"


def test_unknown_id_raises(planner):
    with pytest.raises(ScheduleNotFoundError):
        planner.mark_completed("nope")
    with pytest.raises(ScheduleNotFoundError):
        planner.delete_schedule("nope")


def test_delete_schedule(planner, db):
    planner.create_schedules(_template(), base_id="a")
    planner.delete_schedule("a")
    assert planner.schedules == []
    assert db.load_schedules() == []


def test_notifications_respect_settings(planner):
    planner.create_schedules(_template(), base_id="a")
    now = datetime(2024, 3, 1, 9, 55)
    planner.settings.enable_notifications = False
    assert planner.check_notifications(now) == []
    planner.settings.enable_notifications = True
    assert [s.id for s in planner.check_notifications(now)] == ["a"]
    assert planner.check_notifications(now) == []


def test_rescheduled_instance_gets_its_own_notification(planner):
    planner.create_schedules(_template(), base_id="a")
    planner.check_notifications(datetime(2024, 3, 1, 9, 55))
    new = planner.reschedule("a", date(2024, 3, 1), time(11, 0))
    assert [s.id for s in planner.check_notifications(datetime(2024, 3, 1, 10, 55))] == [new.id]


def test_children_crud_and_unique_names(planner, db):
    child = planner.add_child(Child(id='', name="김하늘"))
    assert child.id and child.created_at
    with pytest.raises(DuplicateChildNameError):
        planner.add_child(Child(id='', name="김하늘"))
    child.notes = "알레르기"
    planner.update_child(child)
    assert db.load_children()[0].notes == "알레르기"
    planner.delete_child(child.id)
    assert db.load_children() == []


def test_schedules_for_child_and_date(planner):
    planner.create_schedules(_template(child_id="c1", start_time=time(14, 0)), base_id="b")
    planner.create_schedules(_template(child_id="c1"), base_id="a")
    planner.create_schedules(_template(child_id="c2", start_time=time(11, 0)), base_id="c")
    assert [s.id for s in planner.schedules_for_child("c1")] == ["a", "b"]
    assert [s.id for s in planner.schedules_for_date(date(2024, 3, 1))] == ["a", "c", "b"]


def test_children_added_in_same_millisecond_get_distinct_ids(planner, db, monkeypatch):
    import hahalab.planner as planner_module
    monkeypatch.setattr(planner_module._time, "time", lambda: 1700000000.0)
    a = planner.add_child(Child(id='', name="김하늘"))
    b = planner.add_child(Child(id='', name="박도윤"))
    assert a.id != b.id
    assert a.created_at == b.created_at
    planner.delete_child(a.id)
    assert [c.name for c in db.load_children()] == ["박도윤"]


def test_content_crud_copy_and_validation(planner, db):
    item = planner.add_content(ContentItem(id='', category_id="thinking", title="숫자 세기 놀이",
                                           target_url="https://example.com/math", tags=["숫자"]))
    assert item.id and item.created_at
    copy = planner.copy_content(item.id)
    assert copy.id != item.id
    assert copy.title == "숫자 세기 놀이 (복사본)"
    copy.tags.append("기초")
    assert item.tags == ["숫자"]

    item.title = "숫자 놀이"
    planner.update_content(item)
    assert sorted(c.title for c in db.load_contents()) == ["숫자 놀이", "숫자 세기 놀이 (복사본)"]

    with pytest.raises(InvalidContentError):
        planner.add_content(ContentItem(id='', category_id="thinking", title="", target_url="x"))
    with pytest.raises(InvalidContentError):
        planner.add_content(ContentItem(id='', category_id="music", title="t", target_url="x"))
    planner.delete_content(item.id)
    with pytest.raises(ContentNotFoundError):
        planner.get_content(item.id)
    assert [c.id for c in db.load_contents()] == [copy.id]
