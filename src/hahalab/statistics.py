from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from hahalab.models import (
    ScheduleItem, STATUS_COMPLETED, STATUS_NOSHOW, STATUS_PENDING, STATUS_RESCHEDULED,
)


def filter_schedules(schedules: Iterable[ScheduleItem], child_id: Optional[str] = None,
                     start: Optional[date] = None, end: Optional[date] = None) -> List[ScheduleItem]:
    return [
        s for s in schedules
        if (child_id is None or s.child_id == child_id)
        and (start is None or s.date >= start)
        and (end is None or s.date <= end)
    ]


def summarize_schedules(schedules: Iterable[ScheduleItem], child_id: Optional[str] = None,
                        start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, float]:
    """
    Zusammenfassung für den gewählten Zeitraum / das gewählte Kind:
      total          : Anzahl Termine
      completed      : durchgeführt
      noshow         : nicht erschienen
      rescheduled    : verschoben (Ersatztermine)
      pending        : offen
      attendance_pct : completed / (completed + noshow) in Prozent
    """
    selected = filter_schedules(schedules, child_id, start, end)
    counts = {st: 0 for st in (STATUS_COMPLETED, STATUS_NOSHOW, STATUS_RESCHEDULED, STATUS_PENDING)}
    for s in selected:
        counts[s.status] = counts.get(s.status, 0) + 1
    decided = counts[STATUS_COMPLETED] + counts[STATUS_NOSHOW]
    return {
        'total': len(selected),
        'completed': counts[STATUS_COMPLETED],
        'noshow': counts[STATUS_NOSHOW],
        'rescheduled': counts[STATUS_RESCHEDULED],
        'pending': counts[STATUS_PENDING],
        'attendance_pct': round(counts[STATUS_COMPLETED] / decided * 100, 1) if decided else 0.0,
    }


def count_by_weekday(schedules: Iterable[ScheduleItem], status: Optional[str] = None) -> Dict[int, int]:
    """0=Montag … 6=Sonntag -> Anzahl Termine (optional nur mit bestimmtem Status)."""
    counts = {i: 0 for i in range(7)}
    for s in schedules:
        if status is None or s.status == status:
            counts[s.date.weekday()] += 1
    return counts


def calculate_trends(schedules: Iterable[ScheduleItem], period: str = 'weekly') -> Dict[str, List]:
    """Anzahl Termine je Kalenderwoche, Monat oder Jahr."""
    trends = defaultdict(int)

    for s in schedules:
        day = s.date
        if period == 'weekly':
            key = day.isocalendar()[1]  # Kalenderwoche
        elif period == 'monthly':
            key = day.month
        else:
            key = day.year

        trends[key] += 1

    sorted_keys = sorted(trends.keys())
    return {"periods": sorted_keys, "counts": [trends[k] for k in sorted_keys]}
