import uuid
from dataclasses import replace
from datetime import date, time, timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from .errors import EmptyRangeError, InvalidIntervalError
from .models import ScheduleItem, ScheduleTemplate

MODE_SINGLE = 'single'
MODE_MULTI = 'multi'
MODE_RECURRING = 'recurring'

FREQ_WEEKLY = 'weekly'
FREQ_MONTHLY = 'monthly'

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def add_minutes(t: time, minutes: int) -> time:
    """Uhrzeit + Minuten. Über Mitternacht hinaus ist kein gültiger Termin."""
    total = time_to_minutes(t) + minutes
    if not 0 <= total < MINUTES_PER_DAY:
        raise InvalidIntervalError(f"{t.strftime('%H:%M')} + {minutes} min liegt nicht am selben Tag")
    return minutes_to_time(total)


def duration_minutes(start: time, end: time) -> int:
    return time_to_minutes(end) - time_to_minutes(start)


def validate_interval(start: time, end: time) -> None:
    if end <= start:
        raise InvalidIntervalError(
            f"Endzeit {end.strftime('%H:%M')} liegt nicht nach Startzeit {start.strftime('%H:%M')}"
        )


def new_base_id() -> str:
    return uuid.uuid4().hex[:12]


def generate_recurring_dates(start: date, end: date, frequency: str = FREQ_WEEKLY) -> List[date]:
    """Alle Termine von start bis end (inklusive).

    Monatlich wird jeweils vom Startdatum aus gerechnet (start + n Monate);
    relativedelta klemmt auf den Monatsletzten, d.h. ab 31.01. folgt 29.02.
    (bzw. 28.02.), danach wieder 31.03.
    """
    if end < start:
        raise EmptyRangeError(f"Enddatum {end} liegt vor Startdatum {start}")
    if frequency == FREQ_WEEKLY:
        step = lambda n: start + timedelta(weeks=n)
    elif frequency == FREQ_MONTHLY:
        step = lambda n: start + relativedelta(months=n)
    else:
        raise ValueError(f"Unbekannte Frequenz: {frequency!r}")

    dates: List[date] = []
    n = 0
    current = start
    while current <= end:
        dates.append(current)
        n += 1
        current = step(n)
    return dates


def _resolve_end(template: ScheduleTemplate, default_duration: int) -> time:
    if template.end_time is not None:
        end = template.end_time
    else:
        end = add_minutes(template.start_time, default_duration)
    validate_interval(template.start_time, end)
    return end


def _instance(template: ScheduleTemplate, item_id: str, day: date, end: time, **extra) -> ScheduleItem:
    return ScheduleItem(
        id=item_id,
        title=template.title,
        date=day,
        start_time=template.start_time,
        end_time=end,
        type=template.type,
        child_id=template.child_id or None,
        description=template.description,
        **extra
    )


def expand_schedule(
    template: ScheduleTemplate,
    mode: str = MODE_SINGLE,
    dates: Optional[Iterable[date]] = None,
    end_date: Optional[date] = None,
    frequency: str = FREQ_WEEKLY,
    base_id: Optional[str] = None,
    default_duration: int = 40,
) -> List[ScheduleItem]:
    """
    Erzeuge aus einer Vorlage die konkreten Termine:
      - single:    genau ein Termin am template.date
      - multi:     ein Termin je ausgewähltem Datum (dedupliziert, sortiert)
      - recurring: wöchentlich/monatlich von template.date bis end_date,
                   alle mit gemeinsamer recurring_group_id
    Wirft EmptyRangeError bei leerem Zeitraum bzw. leerer Auswahl.
    """
    end = _resolve_end(template, default_duration)
    base = base_id or new_base_id()

    if mode == MODE_SINGLE:
        return [_instance(template, base, template.date, end)]

    if mode == MODE_MULTI:
        days = sorted(set(dates or []))
        if not days:
            raise EmptyRangeError("Keine Daten ausgewählt")
        return [_instance(template, f"{base}-{idx}", d, end) for idx, d in enumerate(days)]

    if mode == MODE_RECURRING:
        if end_date is None:
            raise EmptyRangeError("Enddatum fehlt")
        days = generate_recurring_dates(template.date, end_date, frequency)
        return [
            _instance(template, f"{base}-{idx}", d, end, is_recurring=True, recurring_group_id=base)
            for idx, d in enumerate(days)
        ]

    raise ValueError(f"Unbekannter Modus: {mode!r}")


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # halboffen: [10:00,10:40) und [10:40,11:20) überschneiden sich nicht
    return a_start < b_end and b_start < a_end


def find_conflicts(
    day: date,
    start: time,
    end: time,
    schedules: Iterable[ScheduleItem],
    ignore_id: Optional[str] = None,
) -> List[ScheduleItem]:
    """Alle Termine am selben Tag, deren Zeitfenster sich mit [start, end) überschneidet."""
    s = time_to_minutes(start)
    e = time_to_minutes(end)
    return [
        sch for sch in schedules
        if sch.date == day
        and sch.id != ignore_id
        and _overlaps(s, e, time_to_minutes(sch.start_time), time_to_minutes(sch.end_time))
    ]


def has_conflict(day: date, start: time, end: time, schedules: Iterable[ScheduleItem],
                 ignore_id: Optional[str] = None) -> bool:
    return bool(find_conflicts(day, start, end, schedules, ignore_id))


def find_overlapping_pairs(schedules: List[ScheduleItem]) -> List[Tuple[ScheduleItem, ScheduleItem]]:
    """Überschneidende Paare (A, B), jedes Paar genau einmal."""
    pairs = []
    for i, a in enumerate(schedules):
        for b in schedules[i + 1:]:
            if a.date != b.date:
                continue
            if _overlaps(time_to_minutes(a.start_time), time_to_minutes(a.end_time),
                         time_to_minutes(b.start_time), time_to_minutes(b.end_time)):
                pairs.append((a, b))
    return pairs


def schedules_for_date(schedules: Iterable[ScheduleItem], day: date) -> List[ScheduleItem]:
    return sorted((s for s in schedules if s.date == day), key=lambda s: s.start_time)


def moved_to(item: ScheduleItem, new_date: date, new_start: Optional[time] = None) -> ScheduleItem:
    """Kopie mit neuem Datum/Startzeit; die Dauer bleibt erhalten."""
    start = new_start or item.start_time
    end = add_minutes(start, duration_minutes(item.start_time, item.end_time))
    return replace(item, date=new_date, start_time=start, end_time=end)
