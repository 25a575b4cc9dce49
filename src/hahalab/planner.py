import logging
import time as _time
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from .calendar_logic import (
    FREQ_WEEKLY, MODE_SINGLE, expand_schedule, find_conflicts, new_base_id, schedules_for_date,
)
from .children import ensure_unique_name
from .contents import copy_of, validate_content
from .errors import ChildNotFoundError, ContentNotFoundError, ScheduleNotFoundError
from .models import CalendarSettings, Child, ContentItem, ScheduleItem, ScheduleTemplate
from .notifications import NotificationTrigger
from .status import mark_completed, mark_noshow, rescheduled_copy


class SchedulePlanner:
    """
    Hält Termine und Kinder im Speicher und schreibt jede Änderung sofort
    über den Storage-Adapter weg (optimistisch, ohne Rollback).

    Die Übergänge sind nicht idempotent: doppelter Aufruf von reschedule()
    erzeugt zwei Ersatztermine. Das muss der Aufrufer (UI) verhindern.
    """

    def __init__(self, storage, settings: Optional[CalendarSettings] = None,
                 trigger: Optional[NotificationTrigger] = None):
        self.storage = storage
        self.settings = settings or CalendarSettings()
        self.trigger = trigger or NotificationTrigger()
        self.schedules: List[ScheduleItem] = []
        self.children: List[Child] = []
        self.contents: List[ContentItem] = []

    def load(self, local_only: bool = False):
        """local_only=True nach einer Wiederherstellung: Cloud-Stand nicht lesen."""
        self.schedules = self.storage.load_schedules(local_only=local_only)
        self.children = self.storage.load_children(local_only=local_only)
        self.settings = self.storage.load_settings(local_only=local_only)
        self.contents = self.storage.load_contents(local_only=local_only)
        logging.info(f"[HahaLab] {len(self.schedules)} Termine, {len(self.children)} Kinder, "
                     f"{len(self.contents)} Inhalte geladen.")

    def _persist_schedules(self):
        self.storage.save_schedules(list(self.schedules))

    def _persist_children(self):
        self.storage.save_children(list(self.children))

    def _persist_contents(self):
        self.storage.save_contents(list(self.contents))

    def _new_id(self, taken) -> str:
        # zufällige Id, nie eine bereits vergebene
        new_id = new_base_id()
        while new_id in taken:
            new_id = new_base_id()
        return new_id

    # Termine
    def get_schedule(self, schedule_id: str) -> ScheduleItem:
        for s in self.schedules:
            if s.id == schedule_id:
                return s
        raise ScheduleNotFoundError(schedule_id)

    def check_conflict(self, day: date, start: time, end: time, ignore_id: Optional[str] = None) -> bool:
        return bool(find_conflicts(day, start, end, self.schedules, ignore_id))

    def create_schedules(
        self,
        template: ScheduleTemplate,
        mode: str = MODE_SINGLE,
        dates: Optional[Iterable[date]] = None,
        end_date: Optional[date] = None,
        frequency: str = FREQ_WEEKLY,
        base_id: Optional[str] = None,
    ) -> Tuple[List[ScheduleItem], List[ScheduleItem]]:
        """
        Termine erzeugen und speichern. Rückgabe: (neue Termine, Konflikte).
        Konflikte sind nur ein Hinweis; gespeichert wird trotzdem.
        """
        items = expand_schedule(
            template, mode, dates=dates, end_date=end_date, frequency=frequency,
            base_id=base_id, default_duration=self.settings.default_class_duration,
        )
        conflicts: List[ScheduleItem] = []
        for item in items:
            for c in find_conflicts(item.date, item.start_time, item.end_time, self.schedules):
                if all(c.id != seen.id for seen in conflicts):
                    conflicts.append(c)
        if conflicts:
            logging.warning(f"[HahaLab] {len(conflicts)} überschneidende Termine für '{template.title}'.")
        self.schedules.extend(items)
        self._persist_schedules()
        return items, conflicts

    def add_schedule(self, item: ScheduleItem) -> ScheduleItem:
        self.schedules.append(item)
        self._persist_schedules()
        return item

    def delete_schedule(self, schedule_id: str) -> ScheduleItem:
        item = self.get_schedule(schedule_id)
        self.schedules.remove(item)
        self._persist_schedules()
        return item

    def mark_completed(self, schedule_id: str) -> ScheduleItem:
        item = mark_completed(self.get_schedule(schedule_id))
        self._persist_schedules()
        return item

    def mark_noshow(self, schedule_id: str, reason: str = '') -> ScheduleItem:
        item = mark_noshow(self.get_schedule(schedule_id), reason)
        self._persist_schedules()
        return item

    def reschedule(self, schedule_id: str, new_date: date, new_start_time: Optional[time] = None,
                   note: Optional[str] = None) -> ScheduleItem:
        """Einziger Einstieg für Verschieben (Drag & Drop wie Dialog)."""
        old = self.get_schedule(schedule_id)
        new = rescheduled_copy(old, new_date, new_start_time, note)
        self.schedules.remove(old)
        self.schedules.append(new)
        self._persist_schedules()
        logging.info(f"[HahaLab] Termin {old.id} verschoben -> {new.id} ({new.date} {new.start_time:%H:%M}).")
        return new

    def schedules_for_date(self, day: date) -> List[ScheduleItem]:
        return schedules_for_date(self.schedules, day)

    def schedules_for_child(self, child_id: str) -> List[ScheduleItem]:
        return sorted((s for s in self.schedules if s.child_id == child_id),
                      key=lambda s: (s.date, s.start_time))

    def check_notifications(self, now: Optional[datetime] = None) -> List[ScheduleItem]:
        if not self.settings.enable_notifications:
            return []
        return self.trigger.check(now or datetime.now(), self.schedules)

    # Kinder
    def get_child(self, child_id: str) -> Child:
        for c in self.children:
            if c.id == child_id:
                return c
        raise ChildNotFoundError(child_id)

    def add_child(self, child: Child) -> Child:
        ensure_unique_name(self.children, child)
        if not child.id:
            child.id = self._new_id({c.id for c in self.children})
        if not child.created_at:
            child.created_at = int(_time.time() * 1000)
        self.children.append(child)
        self._persist_children()
        return child

    def update_child(self, child: Child) -> Child:
        ensure_unique_name(self.children, child)
        current = self.get_child(child.id)
        self.children[self.children.index(current)] = child
        self._persist_children()
        return child

    def delete_child(self, child_id: str) -> Child:
        child = self.get_child(child_id)
        self.children.remove(child)
        self._persist_children()
        return child

    def update_settings(self, settings: CalendarSettings):
        self.settings = settings
        self.storage.save_settings(settings)

    # Inhaltskatalog
    def get_content(self, content_id: str) -> ContentItem:
        for c in self.contents:
            if c.id == content_id:
                return c
        raise ContentNotFoundError(content_id)

    def add_content(self, item: ContentItem) -> ContentItem:
        validate_content(item)
        if not item.id:
            item.id = self._new_id({c.id for c in self.contents})
        if not item.created_at:
            item.created_at = int(_time.time() * 1000)
        self.contents.append(item)
        self._persist_contents()
        return item

    def update_content(self, item: ContentItem) -> ContentItem:
        validate_content(item)
        current = self.get_content(item.id)
        self.contents[self.contents.index(current)] = item
        self._persist_contents()
        return item

    def copy_content(self, content_id: str) -> ContentItem:
        item = copy_of(self.get_content(content_id), self._new_id({c.id for c in self.contents}),
                       int(_time.time() * 1000))
        self.contents.append(item)
        self._persist_contents()
        return item

    def delete_content(self, content_id: str) -> ContentItem:
        item = self.get_content(content_id)
        self.contents.remove(item)
        self._persist_contents()
        return item
