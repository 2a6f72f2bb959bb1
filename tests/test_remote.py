import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from verdara.catalog import remote
from verdara.catalog.remote import (
    ERROR,
    OK,
    PENDING,
    RemoteListError,
    RemoteListSource,
    build_query_params,
    cache_key,
    parse_items,
)


ROWS = [
    {"id": 1, "type": "hunting", "name": "Book Cliffs", "location": "Vernal, UT", "state": "UT"},
    {"id": 2, "type": "hunting", "name": "Gunnison Basin", "location": "Gunnison, CO", "state": "CO"},
]


@pytest.fixture
def calls(monkeypatch):
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        if "q=fail" in url:
            raise RemoteListError("boom")
        return ROWS

    monkeypatch.setattr(remote, "_http_get_json", fake_get)
    return seen


@pytest.fixture
def source():
    src = RemoteListSource("http://upstream.test/")
    yield src
    src.close()


def test_build_query_params_omits_blank_query():
    assert build_query_params("hunting", "  ") == {"type": "hunting"}
    assert build_query_params("hunting", " elk ") == {"type": "hunting", "q": "elk"}
    assert build_query_params() == {}


def test_cache_key_is_order_independent():
    assert cache_key({"q": "elk", "type": "hunting"}) == cache_key({"type": "hunting", "q": "elk"})


def test_url_for(source):
    assert source.url_for({"type": "hunting", "q": "elk"}) == (
        "http://upstream.test/api/activities?q=elk&type=hunting"
    )
    assert source.url_for({}) == "http://upstream.test/api/activities"


def test_parse_items_rejects_non_list():
    with pytest.raises(RemoteListError):
        parse_items({"items": []})


def test_parse_items_skips_invalid_entries():
    items = parse_items([
        {"id": 1, "name": "X", "rating": 7},
        "not an object",
        {"id": 2, "name": "Y", "location": "Moab, UT"},
    ])
    assert [i.id for i in items] == [2]


def test_parse_items_reads_null_lists_as_empty():
    items = parse_items([
        {"id": 1, "name": "Good", "location": "X"},
        {"id": 2, "name": "NullTags", "location": "Y", "tags": None, "reviews": None,
         "species": None, "amenities": None, "features": None},
    ])
    assert [i.name for i in items] == ["Good", "NullTags"]
    assert items[1].tags == []
    assert items[1].species == []
    assert items[1].reviews == 0


def test_parse_items_accepts_camel_case_featured_flag():
    items = parse_items([
        {"id": 1, "name": "A", "location": "X", "isFeatured": True},
        {"id": 2, "name": "B", "location": "Y", "is_featured": True},
        {"id": 3, "name": "C", "location": "Z"},
    ])
    assert [i.is_featured for i in items] == [True, True, False]
    assert items[0].model_dump()["is_featured"] is True


def test_parse_items_drops_duplicate_ids():
    items = parse_items([{"id": 1, "name": "A"}, {"id": 1, "name": "B"}])
    assert [i.name for i in items] == ["A"]


def test_fetch_returns_items(source, calls):
    items = source.fetch({"type": "hunting"})
    assert [i.name for i in items] == ["Book Cliffs", "Gunnison Basin"]
    assert calls == ["http://upstream.test/api/activities?type=hunting"]


def test_snapshot_before_any_request_is_pending(source):
    snap = source.snapshot()
    assert snap.status == PENDING
    assert snap.items == []


def test_request_resolves_and_is_cached(source, calls):
    source.request({"type": "hunting"})
    snap = source.wait(timeout=5)
    assert snap.status == OK
    assert len(snap.items) == 2

    again = source.request({"type": "hunting"})
    assert again.status == OK
    assert len(calls) == 1


def test_new_key_refetches(source, calls):
    source.request({"type": "hunting"})
    source.wait(timeout=5)
    source.request({"type": "hunting", "q": "elk"})
    source.wait(timeout=5)
    assert len(calls) == 2


def test_failure_is_an_error_state_without_retry(source, calls):
    source.request({"type": "hunting", "q": "fail"})
    snap = source.wait(timeout=5)
    assert snap.status == ERROR
    assert snap.items == []
    assert "boom" in snap.error
    assert len(calls) == 1


def test_invalidate_forces_revalidation(source, calls):
    params = {"type": "hunting"}
    source.request(params)
    source.wait(timeout=5)
    source.invalidate(params)
    assert source.request(params).status in (PENDING, OK)
    source.wait(timeout=5)
    assert len(calls) == 2


def test_stale_response_does_not_replace_current_key(monkeypatch, source):
    release = threading.Event()

    def slow_get(url, timeout):
        if "q=slow" in url:
            release.wait(5)
        return ROWS[:1] if "q=slow" in url else ROWS

    monkeypatch.setattr(remote, "_http_get_json", slow_get)
    source.request({"q": "slow"})
    source.request({"q": "fast"})
    assert len(source.wait(timeout=5).items) == 2

    release.set()
    source.request({"q": "fast"})
    assert source.snapshot().key == "q=fast"
    assert len(source.snapshot().items) == 2


def test_late_response_after_close_is_ignored(monkeypatch):
    release = threading.Event()

    def slow_get(url, timeout):
        release.wait(5)
        return ROWS

    monkeypatch.setattr(remote, "_http_get_json", slow_get)
    src = RemoteListSource("http://upstream.test")
    src.request({"type": "hunting"})
    src.close()
    release.set()
    assert src.closed
    assert src.snapshot().status == PENDING
    with pytest.raises(RuntimeError):
        src.request({"type": "hunting"})


def test_invalidate_during_fetch_discards_stale_result(monkeypatch):
    started = threading.Event()
    release = threading.Event()

    def slow_get(url, timeout):
        if not started.is_set():
            started.set()
            release.wait(5)
            return ROWS[:1]
        return ROWS

    monkeypatch.setattr(remote, "_http_get_json", slow_get)
    pool = ThreadPoolExecutor(max_workers=2)
    src = RemoteListSource("http://upstream.test", executor=pool)
    params = {"type": "hunting"}

    src.request(params)
    assert started.wait(5)
    src.invalidate(params)
    assert src.snapshot().status == PENDING

    src.request(params)
    assert len(src.wait(timeout=5).items) == 2

    release.set()
    pool.shutdown(wait=True)
    snap = src.snapshot()
    assert snap.status == OK
    assert len(snap.items) == 2
    src.close()


def test_invalidate_all_abandons_inflight_fetch(monkeypatch):
    release = threading.Event()

    def slow_get(url, timeout):
        release.wait(5)
        return ROWS

    monkeypatch.setattr(remote, "_http_get_json", slow_get)
    pool = ThreadPoolExecutor(max_workers=1)
    src = RemoteListSource("http://upstream.test", executor=pool)
    src.request({"type": "hunting"})
    src.invalidate()
    release.set()
    pool.shutdown(wait=True)
    assert src.snapshot().status == PENDING
    src.close()
