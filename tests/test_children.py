from datetime import date, datetime, time

import pytest

from hahalab.children import (
    calculate_age, get_chosung, filter_children, group_by_chosung,
    next_class, format_next_class, ensure_unique_name, default_title,
)
from hahalab.errors import DuplicateChildNameError
from hahalab.models import Child, ScheduleItem


def test_calculate_age_before_and_after_birthday():
    dob = date(2018, 6, 15)
    assert calculate_age(dob, date(2024, 6, 14)) == 5
    assert calculate_age(dob, date(2024, 6, 15)) == 6
    assert calculate_age(None) is None


@pytest.mark.parametrize("name,expected", [
    ("김하늘", "ㄱ"),
    ("이서윤", "ㅇ"),
    ("하준", "ㅎ"),
    ("Anna", "A"),
    ("", ""),
])
def test_get_chosung(name, expected):
    assert get_chosung(name) == expected


def test_filter_and_group():
    children = [
        Child(id="1", name="이서윤"),
        Child(id="2", name="김하늘"),
        Child(id="3", name="김도윤", status="consultation"),
        Child(id="4", name="이하은"),
    ]
    regular = filter_children(children, "regular")
    assert [c.name for c in regular] == ["김하늘", "이서윤", "이하은"]
    assert [c.name for c in filter_children(children, query="하")] == ["김하늘", "이하은"]
    groups = group_by_chosung(regular)
    assert list(groups) == ["ㄱ", "ㅇ"]
    assert [c.name for c in groups["ㅇ"]] == ["이서윤", "이하은"]


def test_next_class():
    now = datetime(2024, 3, 1, 12, 0)
    schedules = [
        ScheduleItem("a", "t", date(2024, 3, 1), time(10, 0), time(10, 40), child_id="c1"),
        ScheduleItem("b", "t", date(2024, 3, 8), time(10, 0), time(10, 40), child_id="c1"),
        ScheduleItem("c", "t", date(2024, 3, 4), time(15, 0), time(15, 40), child_id="c1"),
        ScheduleItem("d", "t", date(2024, 3, 2), time(9, 0), time(9, 40), child_id="c2"),
    ]
    assert next_class("c1", schedules, now).id == "c"
    assert format_next_class("c1", schedules, now) == "03-04 15:00"
    assert format_next_class("c3", schedules, now) == "일정 없음"


def test_unique_names():
    children = [Child(id="1", name="김하늘")]
    ensure_unique_name(children, Child(id="1", name="김하늘"))
    with pytest.raises(DuplicateChildNameError):
        ensure_unique_name(children, Child(id="2", name="김하늘"))


def test_default_title():
    assert default_title(Child(id="1", name="김하늘")) == "김하늘 수업"
