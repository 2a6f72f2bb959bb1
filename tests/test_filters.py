import pytest

from verdara.catalog.filters import (
    UNFILTERED,
    FilterCriteria,
    FilterTo,
    SortKey,
    apply_criteria,
    available_states,
    filter_by_difficulty,
    filter_featured,
    filter_by_max_distance,
    filter_by_query,
    filter_by_state,
    parse_distance,
    selection_from,
    sort_items,
)

from .conftest import make_item


def names(items):
    return [i.name for i in items]


@pytest.fixture
def two_trails():
    return [
        make_item(1, "Bear Trail", reviews=10, rating=4.2),
        make_item(2, "Cedar Loop", reviews=50, rating=3.9),
    ]


def test_popularity_sorts_by_reviews_descending(two_trails):
    assert names(sort_items(two_trails, SortKey.POPULARITY)) == ["Cedar Loop", "Bear Trail"]


def test_rating_sorts_descending(two_trails):
    assert names(sort_items(two_trails, "rating")) == ["Bear Trail", "Cedar Loop"]


def test_search_is_case_insensitive(two_trails):
    assert names(filter_by_query(two_trails, "bear")) == ["Bear Trail"]
    assert names(filter_by_query(two_trails, "BEAR")) == ["Bear Trail"]


def test_search_matches_location(sample_items):
    assert names(filter_by_query(sample_items, "moab")) == ["Cedar Loop"]


def test_blank_search_keeps_everything(sample_items):
    assert filter_by_query(sample_items, "   ") == sample_items


def test_state_filter_keeps_matches_in_order():
    items = [
        make_item(1, "A", state="CO"),
        make_item(2, "B", state="UT"),
        make_item(3, "C", state="CO"),
    ]
    assert [i.id for i in filter_by_state(items, FilterTo("CO"))] == [1, 3]


def test_unfiltered_state_keeps_everything(sample_items):
    assert filter_by_state(sample_items, UNFILTERED) == sample_items


@pytest.mark.parametrize("raw", [None, "", "  ", "all", "ALL"])
def test_selection_from_blank_or_all_is_unfiltered(raw):
    assert selection_from(raw) == UNFILTERED


def test_selection_from_value():
    assert selection_from(" CO ") == FilterTo("CO")


def test_state_value_all_is_not_confused_with_unfiltered():
    items = [make_item(1, "A", state="all"), make_item(2, "B", state="CO")]
    assert [i.id for i in filter_by_state(items, FilterTo("all"))] == [1]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("8.8 mi", 8.8),
        ("14 mi", 14.0),
        ("1,200 ft", 1200.0),
        (".5 mi", 0.5),
        ("n/a", None),
        ("", None),
        (None, None),
        ("mi 3", None),
    ],
)
def test_parse_distance(text, expected):
    assert parse_distance(text) == expected


def test_max_distance_keeps_only_items_within_bound(sample_items):
    result = filter_by_max_distance(sample_items, 5.0)
    assert names(result) == ["Bear Trail", "Cedar Loop"]
    assert all(parse_distance(i.distance) <= 5.0 for i in result)
    assert all(i in sample_items for i in result)


def test_max_distance_excludes_unparsable_by_default(sample_items):
    assert "River Walk" not in names(filter_by_max_distance(sample_items, 100.0))


def test_max_distance_can_keep_unparsable(sample_items):
    assert "River Walk" in names(filter_by_max_distance(sample_items, 100.0, keep_unparsable=True))


def test_max_distance_none_is_no_bound(sample_items):
    assert filter_by_max_distance(sample_items, None) == sample_items


def test_distance_sort_ascending_with_unparsable_last(sample_items):
    assert names(sort_items(sample_items, "distance")) == [
        "Cedar Loop", "Bear Trail", "Summit Ridge", "River Walk",
    ]


def test_difficulty_sort_uses_fixed_order(sample_items):
    assert [i.difficulty for i in sort_items(sample_items, "difficulty")] == [
        "Easy", "Moderate", "Difficult", "Expert",
    ]


def test_unknown_difficulty_ranks_with_easy():
    items = [make_item(1, "A", difficulty="Moderate"), make_item(2, "B", difficulty=None)]
    assert [i.id for i in sort_items(items, "difficulty")] == [2, 1]


def test_rating_sort_is_stable_and_idempotent():
    items = [
        make_item(1, "A", rating=4.5),
        make_item(2, "B", rating=4.0),
        make_item(3, "C", rating=4.5),
        make_item(4, "D", rating=None),
        make_item(5, "E", rating=4.0),
    ]
    once = sort_items(items, "rating")
    assert [i.id for i in once] == [1, 3, 2, 5, 4]
    assert sort_items(once, "rating") == once


def test_sort_does_not_mutate_input(sample_items):
    before = list(sample_items)
    sort_items(sample_items, "rating")
    assert sample_items == before


def test_filter_by_difficulty(sample_items):
    assert names(filter_by_difficulty(sample_items, {"Easy", "Expert"})) == ["Cedar Loop", "Summit Ridge"]
    assert filter_by_difficulty(sample_items, []) == sample_items


def test_apply_criteria_runs_whole_pipeline(sample_items):
    criteria = FilterCriteria(state=FilterTo("CO"), max_distance=20.0, sort=SortKey.RATING)
    assert names(apply_criteria(sample_items, criteria)) == ["Summit Ridge", "Bear Trail"]


def test_apply_criteria_skips_delegated_query(sample_items):
    criteria = FilterCriteria(query="zzz", query_delegated=True)
    assert len(apply_criteria(sample_items, criteria)) == len(sample_items)


def test_filter_featured(sample_items):
    items = [item.model_copy(update={"is_featured": item.id in (1, 3)}) for item in sample_items]
    assert names(filter_featured(items, True)) == ["Bear Trail", "Summit Ridge"]
    assert filter_featured(items, False) == items


def test_apply_criteria_featured_only(sample_items):
    items = [item.model_copy(update={"is_featured": item.id != 3}) for item in sample_items]
    criteria = FilterCriteria(state=FilterTo("CO"), featured_only=True)
    assert names(apply_criteria(items, criteria)) == ["Bear Trail"]
    assert len(apply_criteria(items, criteria.with_featured_only(False))) == 2


def test_apply_criteria_no_match_is_empty(sample_items):
    assert apply_criteria(sample_items, FilterCriteria(query="glacier")) == []


def test_criteria_updates_return_new_values():
    base = FilterCriteria()
    toggled = base.toggle_difficulty("Easy")
    assert base.difficulties == frozenset()
    assert toggled.difficulties == frozenset({"Easy"})
    assert toggled.toggle_difficulty("Easy").difficulties == frozenset()
    assert base.with_sort(SortKey.DISTANCE).sort == SortKey.DISTANCE
    assert base.with_state(FilterTo("UT")).state == FilterTo("UT")
    assert base.with_query("bear").query == "bear"
    assert base.with_max_distance(5.0).max_distance == 5.0


def test_available_states_sorted_and_distinct(sample_items):
    assert available_states(sample_items) == ["CO", "OR", "UT"]
