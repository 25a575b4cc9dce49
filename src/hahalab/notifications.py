import logging
import math
from datetime import datetime
from typing import Iterable, List, Set

from .models import ScheduleItem
from .status import is_terminal

NOTIFY_LEAD_MINUTES = 5
POLL_INTERVAL_SECONDS = 10
# ceil(diff/60) == 5 gilt für 240s < diff <= 300s, also ein 60s-Fenster
MAX_POLL_INTERVAL_SECONDS = 60


def minutes_until(item: ScheduleItem, now: datetime) -> int:
    start = datetime.combine(item.date, item.start_time)
    return math.ceil((start - now).total_seconds() / 60)


class NotificationTrigger:
    """
    "Gleich geht's los"-Erkennung: meldet jeden Termin genau einmal, sobald
    sein Beginn aufgerundet NOTIFY_LEAD_MINUTES Minuten entfernt ist.
    Abgeschlossene/nicht erschienene Termine werden übersprungen.
    """

    def __init__(self, lead_minutes: int = NOTIFY_LEAD_MINUTES):
        self.lead_minutes = lead_minutes
        self.notified: Set[str] = set()

    def check(self, now: datetime, schedules: Iterable[ScheduleItem]) -> List[ScheduleItem]:
        due = []
        for item in schedules:
            if is_terminal(item) or item.id in self.notified:
                continue
            if minutes_until(item, now) == self.lead_minutes:
                self.notified.add(item.id)
                due.append(item)
        if due:
            logging.info(f"[HahaLab] {len(due)} Termin(e) beginnen in {self.lead_minutes} Minuten.")
        return due

    def reset(self):
        self.notified.clear()
