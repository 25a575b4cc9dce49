from datetime import date, time

from hahalab.models import ScheduleItem
from hahalab.status import (
    mark_completed, mark_noshow, rescheduled_copy, is_terminal,
)


def _item(**kw):
    data = dict(id="s1", title="서연 수업", date=date(2024, 3, 1),
                start_time=time(10, 0), end_time=time(10, 40))
    data.update(kw)
    return ScheduleItem(**data)


def test_default_status_is_pending():
    item = _item()
    assert item.status == "pending"
    assert not is_terminal(item)


def test_mark_completed_keeps_notes():
    item = _item(status_notes="메모")
    mark_completed(item)
    assert item.status == "completed"
    assert item.status_notes == "메모"
    assert is_terminal(item)


def test_mark_noshow_sets_reason():
    item = mark_noshow(_item(), "감기")
    assert item.status == "noshow"
    assert item.status_notes == "감기"


def test_noshow_then_completed_overwrites_status_keeps_note():
    item = _item()
    mark_noshow(item, "늦게 연락")
    mark_completed(item)
    assert item.status == "completed"
    assert item.status_notes == "늦게 연락"


def test_rescheduled_copy_preserves_duration_and_records_audit():
    old = _item()
    new = rescheduled_copy(old, date(2024, 3, 5), time(14, 0), new_id="s2")
    assert new.id == "s2"
    assert new.date == date(2024, 3, 5)
    assert new.start_time == time(14, 0)
    assert new.end_time == time(14, 40)
    assert new.status == "rescheduled"
    assert new.status_notes == "[일정변경] 2024-03-01 10:00 -> 2024-03-05 14:00"
    # Original bleibt unverändert
    assert old.status == "pending"


def test_rescheduled_copy_appends_to_existing_notes():
    old = _item(status_notes="첫 메모")
    new = rescheduled_copy(old, date(2024, 3, 8), note="보호자 요청")
    assert new.start_time == time(10, 0)
    assert new.status_notes.splitlines() == [
        "첫 메모",
        "[일정변경] 2024-03-01 10:00 -> 2024-03-08 10:00",
        "보호자 요청",
    ]
    assert new.id != old.id
