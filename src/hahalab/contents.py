import dataclasses
from typing import Iterable, List, Optional

from .errors import InvalidContentError
from .models import CATEGORIES, ContentItem

SORT_LATEST = 'latest'
SORT_OLDEST = 'oldest'
SORT_NAME_ASC = 'nameAsc'
SORT_NAME_DESC = 'nameDesc'
SORT_ORDERS = (SORT_LATEST, SORT_OLDEST, SORT_NAME_ASC, SORT_NAME_DESC)

COPY_SUFFIX = ' (복사본)'


def validate_content(item: ContentItem):
    if not item.title.strip() or not item.target_url.strip():
        raise InvalidContentError("제목과 URL은 필수입니다.")
    if item.category_id not in CATEGORIES:
        raise InvalidContentError(f"Unknown category: {item.category_id!r}")


def filter_contents(contents: Iterable[ContentItem], category_id: Optional[str] = None,
                    query: str = '', sort_order: str = SORT_LATEST) -> List[ContentItem]:
    """
    Katalogansicht: Kategorie, Suche (Titel oder ein Tag, ohne Groß/Klein)
    und Sortierung.
    """
    term = query.strip().lower()
    out = [c for c in contents
           if (category_id is None or c.category_id == category_id)
           and (not term or term in c.title.lower() or any(term in t.lower() for t in c.tags))]
    if sort_order == SORT_NAME_ASC:
        out.sort(key=lambda c: c.title)
    elif sort_order == SORT_NAME_DESC:
        out.sort(key=lambda c: c.title, reverse=True)
    elif sort_order == SORT_OLDEST:
        out.sort(key=lambda c: c.created_at)
    else:
        out.sort(key=lambda c: c.created_at, reverse=True)
    return out


def add_tag(tags: List[str], tag: str) -> List[str]:
    # leere und doppelte Tags werden ignoriert
    tag = tag.strip()
    if not tag or tag in tags:
        return list(tags)
    return list(tags) + [tag]


def remove_tag(tags: List[str], tag: str) -> List[str]:
    return [t for t in tags if t != tag]


def copy_of(item: ContentItem, new_id: str, created_at: int) -> ContentItem:
    return dataclasses.replace(item, id=new_id, title=f"{item.title}{COPY_SUFFIX}",
                               tags=list(item.tags), created_at=created_at)


def count_by_category(contents: Iterable[ContentItem]) -> dict:
    counts = {cid: 0 for cid in CATEGORIES}
    for c in contents:
        counts[c.category_id] = counts.get(c.category_id, 0) + 1
    return counts
