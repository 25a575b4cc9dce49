from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .errors import DuplicateChildNameError
from .models import Child, ScheduleItem

CHOSUNG = ['ㄱ', 'ㄲ', 'ㄴ', 'ㄷ', 'ㄸ', 'ㄹ', 'ㅁ', 'ㅂ', 'ㅃ', 'ㅅ',
           'ㅆ', 'ㅇ', 'ㅈ', 'ㅉ', 'ㅊ', 'ㅋ', 'ㅌ', 'ㅍ', 'ㅎ']
HANGUL_BASE = 0xAC00   # '가'
HANGUL_COUNT = 11172
SYLLABLES_PER_INITIAL = 588
NO_SCHEDULE_TEXT = '일정 없음'


def calculate_age(dob: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if dob is None:
        return None
    today = today or date.today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def get_chosung(name: str) -> str:
    """Anfangskonsonant der ersten Hangul-Silbe, sonst das erste Zeichen."""
    if not name:
        return ''
    code = ord(name[0]) - HANGUL_BASE
    if 0 <= code < HANGUL_COUNT:
        return CHOSUNG[code // SYLLABLES_PER_INITIAL]
    return name[0]


def filter_children(children: Iterable[Child], status: Optional[str] = None, query: str = '') -> List[Child]:
    out = [c for c in children
           if (status is None or c.status == status) and query in c.name]
    return sorted(out, key=lambda c: c.name)


def group_by_chosung(children: Iterable[Child]) -> Dict[str, List[Child]]:
    groups: Dict[str, List[Child]] = {}
    for child in children:
        groups.setdefault(get_chosung(child.name), []).append(child)
    return OrderedDict(sorted(groups.items()))


def next_class(child_id: str, schedules: Iterable[ScheduleItem], now: Optional[datetime] = None) -> Optional[ScheduleItem]:
    now = now or datetime.now()
    future = [s for s in schedules
              if s.child_id == child_id and datetime.combine(s.date, s.start_time) > now]
    if not future:
        return None
    return min(future, key=lambda s: (s.date, s.start_time))


def format_next_class(child_id: str, schedules: Iterable[ScheduleItem], now: Optional[datetime] = None) -> str:
    nxt = next_class(child_id, schedules, now)
    if nxt is None:
        return NO_SCHEDULE_TEXT
    return f"{nxt.date.strftime('%m-%d')} {nxt.start_time.strftime('%H:%M')}"


def ensure_unique_name(children: Iterable[Child], child: Child) -> None:
    if any(c.name == child.name and c.id != child.id for c in children):
        raise DuplicateChildNameError(
            f"이미 등록된 이름입니다: {child.name} (이름 뒤에 숫자나 별명을 붙여주세요)"
        )


def default_title(child: Child) -> str:
    return f"{child.name} 수업"
