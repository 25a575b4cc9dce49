# src/hahalab/models.py
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional

SCHEDULE_TYPES = ('counseling', 'class', 'meeting')

STATUS_PENDING = 'pending'
STATUS_COMPLETED = 'completed'
STATUS_NOSHOW = 'noshow'
STATUS_RESCHEDULED = 'rescheduled'
SCHEDULE_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_NOSHOW, STATUS_RESCHEDULED)

CHILD_REGULAR = 'regular'            # 재원생
CHILD_CONSULTATION = 'consultation'  # 상담아동


def format_hhmm(t: time) -> str:
    return t.strftime('%H:%M')


def parse_hhmm(value) -> time:
    """'HH:MM' -> time. time-Objekte werden durchgereicht."""
    if isinstance(value, time):
        return value
    parts = str(value).strip().split(':')
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {value!r}")
    return time(int(parts[0]), int(parts[1]))


@dataclass
class ScheduleItem:
    """Ein konkreter Termin (eine Instanz, nicht die Wiederholungsvorlage)."""
    id: str
    title: str
    date: date
    start_time: time
    end_time: time
    type: str = 'class'
    child_id: Optional[str] = None
    description: str = ''
    status: str = STATUS_PENDING
    status_notes: str = ''
    is_recurring: bool = False
    recurring_group_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'title': self.title,
            'date': self.date.isoformat(),
            'startTime': format_hhmm(self.start_time),
            'endTime': format_hhmm(self.end_time),
            'type': self.type,
            'status': self.status,
        }
        if self.child_id:
            data['childId'] = self.child_id
        if self.description:
            data['description'] = self.description
        if self.status_notes:
            data['statusNotes'] = self.status_notes
        if self.is_recurring:
            data['isRecurring'] = True
            data['recurringGroupId'] = self.recurring_group_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'ScheduleItem':
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            date=date.fromisoformat(data['date']),
            start_time=parse_hhmm(data['startTime']),
            end_time=parse_hhmm(data['endTime']),
            type=data.get('type') or 'class',
            child_id=data.get('childId') or None,
            description=data.get('description') or '',
            # fehlender Status = pending
            status=data.get('status') or STATUS_PENDING,
            status_notes=data.get('statusNotes') or '',
            is_recurring=bool(data.get('isRecurring', False)),
            recurring_group_id=data.get('recurringGroupId'),
        )


@dataclass
class ScheduleTemplate:
    """Eingabe für den Recurrence Expander. end_time=None -> Standarddauer."""
    title: str
    date: date
    start_time: time
    end_time: Optional[time] = None
    type: str = 'class'
    child_id: Optional[str] = None
    description: str = ''


@dataclass
class Guardian:
    name: str
    phone: str = ''
    relationship: str = '모'


@dataclass
class Child:
    """Kind-Profil (재원생 oder 상담아동)."""
    id: str
    name: str
    status: str = CHILD_REGULAR
    gender: str = 'male'
    dob: Optional[date] = None
    guardians: List[Guardian] = field(default_factory=list)
    notes: str = ''
    created_at: int = 0      # epoch ms

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'gender': self.gender,
            'dob': self.dob.isoformat() if self.dob else '',
            'guardians': [g.__dict__.copy() for g in self.guardians],
            'notes': self.notes,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Child':
        dob = data.get('dob')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            status=data.get('status') or CHILD_REGULAR,
            gender=data.get('gender') or 'male',
            dob=date.fromisoformat(dob) if dob else None,
            guardians=[Guardian(**g) for g in data.get('guardians', [])],
            notes=data.get('notes') or '',
            created_at=int(data.get('createdAt') or 0),
        )


@dataclass
class CalendarSettings:
    default_class_duration: int = 40   # Minuten
    enable_notifications: bool = True  # 5분 전 알림

    def to_dict(self) -> dict:
        return {
            'defaultClassDuration': self.default_class_duration,
            'enableNotifications': self.enable_notifications,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CalendarSettings':
        return cls(
            default_class_duration=int(data.get('defaultClassDuration', 40)),
            enable_notifications=bool(data.get('enableNotifications', True)),
        )


# Kategorien des Inhaltskatalogs (id -> Anzeigename)
CATEGORIES = {
    'thinking': '생각 플레이',
    'sound': '소리 플레이',
    'listening': '듣기 플레이',
    'visual': '보기 플레이',
    'speaking': '말하기 플레이',
    'life': '생활 플레이',
    'art': '아트 플레이',
}


@dataclass
class ContentItem:
    """Lerninhalt im Katalog (Link auf ein Spiel oder Video)."""
    id: str
    category_id: str
    title: str
    target_url: str
    thumbnail_url: str = ''
    tags: List[str] = field(default_factory=list)
    created_at: int = 0      # epoch ms

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'categoryId': self.category_id,
            'title': self.title,
            'thumbnailUrl': self.thumbnail_url,
            'tags': list(self.tags),
            'targetUrl': self.target_url,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ContentItem':
        return cls(
            id=str(data['id']),
            category_id=data['categoryId'],
            title=data.get('title', ''),
            target_url=data.get('targetUrl', ''),
            thumbnail_url=data.get('thumbnailUrl') or '',
            tags=[str(t) for t in data.get('tags') or []],
            created_at=int(data.get('createdAt') or 0),
        )
