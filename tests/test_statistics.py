from datetime import date, time

from hahalab.models import ScheduleItem
from hahalab.statistics import summarize_schedules, count_by_weekday, calculate_trends


def _item(item_id, day, status="pending", child_id="c1"):
    return ScheduleItem(item_id, "t", day, time(10, 0), time(10, 40), child_id=child_id, status=status)


SCHEDULES = [
    _item("a", date(2024, 4, 1), "completed"),   # Mo
    _item("b", date(2024, 4, 8), "completed"),   # Mo
    _item("c", date(2024, 4, 9), "noshow"),      # Di
    _item("d", date(2024, 4, 10), "rescheduled"),
    _item("e", date(2024, 5, 6)),
    _item("f", date(2024, 4, 1), "noshow", child_id="c2"),
]


def test_summarize_for_child():
    stats = summarize_schedules(SCHEDULES, child_id="c1")
    assert stats == {
        'total': 5, 'completed': 2, 'noshow': 1, 'rescheduled': 1, 'pending': 1,
        'attendance_pct': 66.7,
    }


def test_summarize_with_period_and_empty():
    stats = summarize_schedules(SCHEDULES, start=date(2024, 5, 1))
    assert stats['total'] == 1
    assert stats['attendance_pct'] == 0.0


def test_count_by_weekday():
    counts = count_by_weekday(SCHEDULES, status="completed")
    assert counts[0] == 2
    assert sum(counts.values()) == 2


def test_monthly_trends():
    trends = calculate_trends(SCHEDULES, period='monthly')
    assert trends == {"periods": [4, 5], "counts": [5, 1]}
