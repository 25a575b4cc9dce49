from dataclasses import replace
from datetime import date, time
from typing import Optional

from .calendar_logic import moved_to, new_base_id
from .models import (
    ScheduleItem, STATUS_COMPLETED, STATUS_NOSHOW, STATUS_RESCHEDULED, format_hhmm,
)

RESCHEDULE_TAG = '[일정변경]'
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_NOSHOW)


def is_terminal(item: ScheduleItem) -> bool:
    return item.status in TERMINAL_STATUSES


def append_note(notes: str, line: str) -> str:
    return f"{notes}\n{line}" if notes else line


def mark_completed(item: ScheduleItem) -> ScheduleItem:
    item.status = STATUS_COMPLETED
    return item


def mark_noshow(item: ScheduleItem, reason: str = '') -> ScheduleItem:
    item.status = STATUS_NOSHOW
    item.status_notes = reason
    return item


def reschedule_note(old: ScheduleItem, new: ScheduleItem) -> str:
    return (f"{RESCHEDULE_TAG} {old.date.isoformat()} {format_hhmm(old.start_time)}"
            f" -> {new.date.isoformat()} {format_hhmm(new.start_time)}")


def rescheduled_copy(
    item: ScheduleItem,
    new_date: date,
    new_start_time: Optional[time] = None,
    note: Optional[str] = None,
    new_id: Optional[str] = None,
) -> ScheduleItem:
    """
    Ersatztermin für eine Verschiebung. Die Dauer bleibt erhalten (Endzeit wird
    neu berechnet), die bisherigen Notizen werden um eine Zeile
    '[일정변경] alt -> neu' und optional um `note` ergänzt.
    Das Löschen des alten Termins übernimmt der Planner.
    """
    moved = moved_to(item, new_date, new_start_time)
    notes = append_note(item.status_notes, reschedule_note(item, moved))
    if note:
        notes = append_note(notes, note)
    return replace(
        moved,
        id=new_id or new_base_id(),
        status=STATUS_RESCHEDULED,
        status_notes=notes,
    )
