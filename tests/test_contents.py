from hahalab.contents import (
    SORT_NAME_ASC, SORT_NAME_DESC, SORT_OLDEST, add_tag, count_by_category, filter_contents, remove_tag,
)
from hahalab.models import ContentItem


def _content(cid, title, category="thinking", tags=(), created_at=0):
    return ContentItem(id=cid, category_id=category, title=title, target_url=f"https://example.com/{cid}",
                       tags=list(tags), created_at=created_at)


CONTENTS = [
    _content("1", "숫자 세기 놀이", tags=["숫자", "Math"], created_at=100),
    _content("2", "색깔 맞추기", tags=["색깔"], created_at=300),
    _content("3", "같은 그림 찾기", tags=["집중력"], created_at=200),
    _content("4", "종이 접기 교실", category="art", tags=["종이접기"], created_at=400),
]


def test_filter_by_category_sorted_latest_first():
    assert [c.id for c in filter_contents(CONTENTS, "thinking")] == ["2", "3", "1"]
    assert [c.id for c in filter_contents(CONTENTS, "art")] == ["4"]
    assert len(filter_contents(CONTENTS)) == 4


def test_sort_orders():
    assert [c.id for c in filter_contents(CONTENTS, "thinking", sort_order=SORT_OLDEST)] == ["1", "3", "2"]
    names = [c.title for c in filter_contents(CONTENTS, "thinking", sort_order=SORT_NAME_ASC)]
    assert names == sorted(names)
    assert [c.title for c in filter_contents(CONTENTS, "thinking", sort_order=SORT_NAME_DESC)] == names[::-1]


def test_search_matches_title_or_tag_case_insensitive():
    assert [c.id for c in filter_contents(CONTENTS, "thinking", "색깔")] == ["2"]
    assert [c.id for c in filter_contents(CONTENTS, "thinking", "math")] == ["1"]
    assert [c.id for c in filter_contents(CONTENTS, "thinking", "  찾기 ")] == ["3"]
    assert filter_contents(CONTENTS, "art", "숫자") == []


def test_tags_ignore_blank_and_duplicates():
    tags = add_tag([], " 숫자 ")
    assert tags == ["숫자"]
    assert add_tag(tags, "숫자") == ["숫자"]
    assert add_tag(tags, "   ") == ["숫자"]
    assert remove_tag(add_tag(tags, "기초"), "숫자") == ["기초"]


def test_count_by_category_lists_every_category():
    counts = count_by_category(CONTENTS)
    assert counts["thinking"] == 3
    assert counts["art"] == 1
    assert counts["speaking"] == 0
