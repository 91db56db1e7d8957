"""Tests for WordQueryEngine: filtering, cursor pagination and seeded sampling."""

import asyncio
import threading
from pathlib import Path

import polars as pl
import pytest

from wordlist.core.enums import QueryMode
from wordlist.core.errors import StorageUnavailableError
from wordlist.core.query import (
    AttributeCatalog,
    QueryParameterResolver,
    WordQueryEngine,
    sample_rank,
)

from conftest import make_words


def run(resolver: QueryParameterResolver, engine: WordQueryEngine, params):
    return engine.find_words(resolver.resolve(params))


def texts(page):
    return [w.text for w in page]


def test_example_text_and_range_filter(animals_csv: Path, animals_attributes: Path):
    catalog = AttributeCatalog.load(animals_csv, attributes_path=animals_attributes)
    resolver = QueryParameterResolver(catalog)
    engine = WordQueryEngine(catalog, animals_csv)

    page = run(resolver, engine, {"text": "cat", "lengthMin": "1", "lengthMax": "5", "limit": "10"})

    assert page.to_dicts() == [{"text": "cat", "types": [], "attributes": {"length": 3}}]


def test_no_parameters_returns_default_bounded_page(resolver, engine, catalog):
    page = run(resolver, engine, {})

    assert 0 < len(page) <= 100
    assert texts(page) == sorted(make_words()["text"])
    for word in page:
        assert set(word.attributes) == set(catalog.names())
        for attr in catalog:
            assert attr.min <= word.attributes[attr.name] <= attr.max


def test_default_limit_bounds_large_tables(tmp_path: Path):
    path = tmp_path / "big.csv"
    pl.DataFrame(make_words(250)).write_csv(path)
    catalog = AttributeCatalog.load(path)

    page = run(QueryParameterResolver(catalog), WordQueryEngine(catalog, path), {})

    assert len(page) == 100
    assert page.has_more is True
    assert page.next_cursor == "word099"


@pytest.mark.parametrize(
    "name, lo, hi",
    [("score", 2, 4), ("score", 6, 6), ("tone", -2, 0), ("tone", -1, 1)],
)
def test_range_containment(resolver, engine, name, lo, hi):
    page = run(resolver, engine, {f"{name}Min": str(lo), f"{name}Max": str(hi)})

    assert len(page) > 0
    for word in page:
        assert lo <= word.attributes[name] <= hi


def test_cursor_mode_is_idempotent(resolver, engine):
    params = {"scoreMin": "1", "from": "word10", "limit": "5"}

    assert run(resolver, engine, params) == run(resolver, engine, params)


def test_pagination_visits_every_match_once(resolver, engine):
    params = {"toneMin": "0", "limit": "7"}
    expected = sorted(
        t for t, tone in zip(make_words()["text"], make_words()["tone"]) if tone >= 0
    )

    seen = []
    cursor = None
    while True:
        page_params = dict(params)
        if cursor is not None:
            page_params["from"] = cursor
        page = run(resolver, engine, page_params)
        if not page.words:
            break
        seen.extend(texts(page))
        cursor = page.words[-1].text

    assert seen == expected


def test_next_cursor_continues_pagination(resolver, engine):
    first = run(resolver, engine, {"limit": "20"})
    second = run(resolver, engine, {"limit": "20", "from": first.next_cursor})
    last = run(resolver, engine, {"limit": "20", "from": second.next_cursor})

    assert first.has_more and second.has_more
    assert not last.has_more
    assert last.next_cursor is None
    assert len(set(texts(first)) | set(texts(second)) | set(texts(last))) == 50


def test_cursor_past_the_end_is_empty(resolver, engine):
    page = run(resolver, engine, {"from": "zzz"})

    assert len(page) == 0
    assert page.has_more is False


def test_limit_zero_yields_empty_page(resolver, engine):
    page = run(resolver, engine, {"limit": "0"})

    assert len(page) == 0
    assert page.has_more is True


def test_malformed_limit_yields_empty_page(resolver, engine):
    assert len(run(resolver, engine, {"limit": "ten"})) == 0


def test_random_count_zero_uses_cursor_mode(resolver, engine):
    page = run(resolver, engine, {"randomCount": "0", "randomSeed": "abc", "limit": "5"})

    assert page.mode is QueryMode.CURSOR
    assert texts(page) == ["word00", "word01", "word02", "word03", "word04"]


def test_inverted_range_yields_no_matches(resolver, engine):
    page = run(resolver, engine, {"scoreMin": "10", "scoreMax": "1"})

    assert len(page) == 0


def test_random_sample_is_deterministic(words_csv: Path):
    params = {"randomSeed": "abc", "randomCount": "2"}
    catalog = AttributeCatalog.load(words_csv)
    first = run(QueryParameterResolver(catalog), WordQueryEngine(catalog, words_csv), params)
    # fresh catalog and engine, as after a restart
    catalog = AttributeCatalog.load(words_csv)
    second = run(QueryParameterResolver(catalog), WordQueryEngine(catalog, words_csv), params)

    assert first.mode is QueryMode.RANDOM_SAMPLE
    assert len(first) == 2
    assert texts(first) == texts(second)

    all_texts = make_words()["text"]
    assert texts(first) == sorted(all_texts, key=lambda t: (sample_rank("abc", t), t))[:2]


def test_random_sample_changes_with_seed(resolver, engine):
    a = run(resolver, engine, {"randomSeed": "abc", "randomCount": "10"})
    b = run(resolver, engine, {"randomSeed": "xyz", "randomCount": "10"})

    assert texts(a) != texts(b)


def test_random_sample_ignores_cursor(resolver, engine):
    a = run(resolver, engine, {"randomSeed": "abc", "randomCount": "5"})
    b = run(resolver, engine, {"randomSeed": "abc", "randomCount": "5", "from": "word40"})

    assert texts(a) == texts(b)


def test_random_sample_draws_from_filtered_set(resolver, engine):
    page = run(resolver, engine, {"randomSeed": "abc", "randomCount": "5", "scoreMin": "3", "scoreMax": "3"})

    matching = [t for t, s in zip(make_words()["text"], make_words()["score"]) if s == 3]
    assert len(page) == 5
    assert set(texts(page)) <= set(matching)
    assert texts(page) == sorted(matching, key=lambda t: (sample_rank("abc", t), t))[:5]


def test_random_sample_without_seed_is_reproducible(resolver, engine):
    a = run(resolver, engine, {"randomCount": "4"})
    b = run(resolver, engine, {"randomCount": "4"})

    assert len(a) == 4
    assert texts(a) == texts(b)


def test_limit_truncates_random_sample_in_rank_order(resolver, engine):
    full = run(resolver, engine, {"randomSeed": "s", "randomCount": "10", "limit": "10"})
    bounded = run(resolver, engine, {"randomSeed": "s", "randomCount": "10", "limit": "3"})

    assert texts(bounded) == texts(full)[:3]
    assert bounded.has_more is True
    assert bounded.next_cursor is None


def test_random_count_larger_than_matches(resolver, engine):
    page = run(resolver, engine, {"randomSeed": "s", "randomCount": "500", "limit": "500"})

    assert len(page) == 50
    assert page.has_more is False


def test_derived_length_attribute(words_csv: Path):
    catalog = AttributeCatalog.load(words_csv, derive_length=True)
    engine = WordQueryEngine(catalog, words_csv, derive_length=True)

    page = run(QueryParameterResolver(catalog), engine, {"limit": "1"})

    assert page.words[0].attributes == {"length": 6, "score": 0, "tone": -2}


def test_parquet_word_table(tmp_path: Path):
    path = tmp_path / "words.parquet"
    pl.DataFrame(make_words()).write_parquet(path)
    catalog = AttributeCatalog.load(path)

    page = run(QueryParameterResolver(catalog), WordQueryEngine(catalog, path), {"limit": "3"})

    assert texts(page) == ["word00", "word01", "word02"]


def test_storage_unavailable_is_raised_not_empty(resolver, engine, words_csv: Path):
    words_csv.unlink()

    with pytest.raises(StorageUnavailableError):
        run(resolver, engine, {})


def test_find_words_async(resolver, engine):
    spec = resolver.resolve({"limit": "2"})

    page = asyncio.run(engine.find_words_async(spec))

    assert texts(page) == ["word00", "word01"]


def test_header_only_table_with_attributes_file(tmp_path: Path, animals_attributes: Path):
    path = tmp_path / "empty.csv"
    path.write_text("text,length\n", encoding="utf-8")
    catalog = AttributeCatalog.load(path, attributes_path=animals_attributes)
    resolver = QueryParameterResolver(catalog)
    engine = WordQueryEngine(catalog, path)

    assert catalog.names() == ["length"]
    for params in ({}, {"lengthMin": "2", "text": "a"}, {"randomCount": "3"}):
        page = run(resolver, engine, params)
        assert len(page) == 0
        assert page.has_more is False


def test_null_rows_are_never_returned(tmp_path: Path):
    path = tmp_path / "nulls.csv"
    path.write_text("text,score\na,1\n,2\nc,\nd,3\n", encoding="utf-8")
    catalog = AttributeCatalog.load(path)

    page = run(QueryParameterResolver(catalog), WordQueryEngine(catalog, path), {})

    assert texts(page) == ["a", "d"]


def test_cancelled_find_words_async_yields_no_page(resolver, engine, monkeypatch):
    started = threading.Event()
    release = threading.Event()
    find_words = engine.find_words

    def blocking_find_words(spec):
        started.set()
        release.wait(5)
        return find_words(spec)

    monkeypatch.setattr(engine, "find_words", blocking_find_words)

    async def scenario():
        task = asyncio.create_task(engine.find_words_async(resolver.resolve({})))
        await asyncio.to_thread(started.wait, 5)
        task.cancel()
        try:
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()

    asyncio.run(scenario())
