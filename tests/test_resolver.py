from __future__ import annotations

import pytest

from contact_snapshot.aggregate.resolver import AggregationResolver
from contact_snapshot.errors import FallbackSourceError, PrimarySourceUnavailable, SourceError

from conftest import StubSource, cell


def test_primary_success_with_zero_rows_does_not_fall_back(window) -> None:
    primary = StubSource("precomputed", cells=[])
    fallback = StubSource("raw_records", cells=[cell("C1", "Ann", "2024-09", "meeting", 1)])

    res = AggregationResolver(primary, fallback).resolve(window, "S1")

    assert res.cells == ()
    assert res.source == "precomputed"
    assert not res.used_fallback
    assert (primary.calls, fallback.calls) == (1, 0)


def test_primary_failure_uses_fallback(window) -> None:
    primary = StubSource("precomputed", error=PrimarySourceUnavailable("rpc missing"))
    fallback = StubSource("raw_records", cells=[cell("X", "Xena", "2024-11", "phone_call", 3)])

    res = AggregationResolver(primary, fallback).resolve(window, "S1")

    assert res.source == "raw_records"
    assert res.used_fallback
    assert [(c.counselor_id, c.count) for c in res.cells] == [("X", 3)]
    assert (primary.calls, fallback.calls) == (1, 1)


def test_both_sources_failing_is_terminal(window) -> None:
    primary = StubSource("precomputed", error=PrimarySourceUnavailable("down"))
    fallback = StubSource("raw_records", error=SourceError("also down"))

    with pytest.raises(FallbackSourceError) as exc:
        AggregationResolver(primary, fallback).resolve(window, "S1")

    assert isinstance(exc.value, SourceError)
    assert exc.value.source == "raw_records"


def test_out_of_window_rows_are_ignored_and_duplicates_coalesced(window) -> None:
    primary = StubSource(
        "precomputed",
        cells=[
            cell("C1", "Ann", "2024-09", "meeting", 3),
            cell("C1", "Ann", "2024-09", "meeting", 2),
            cell("C1", "Ann", "2024-07", "meeting", 9),
            cell("C1", "Ann", "2025-08", "email", 4),
        ],
    )
    res = AggregationResolver(primary, StubSource("raw_records")).resolve(window, "S1")

    assert [(c.month, c.contact_type, c.count) for c in res.cells] == [("2024-09", "meeting", 5)]
    assert res.window == tuple(window)


def test_fallback_flag_does_not_depend_on_source_names(window) -> None:
    ok = StubSource("snapshot", cells=[cell("C1", "Ann", "2024-09", "meeting", 1)])
    res = AggregationResolver(ok, StubSource("notes")).resolve(window, "S1")
    assert res.source == "snapshot"
    assert not res.used_fallback

    down = StubSource("snapshot", error=PrimarySourceUnavailable("down"))
    res = AggregationResolver(down, StubSource("snapshot")).resolve(window, "S1")
    assert res.used_fallback
