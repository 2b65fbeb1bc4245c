from __future__ import annotations

import datetime as dt
from email.utils import format_datetime

import pytest

from friction.findings import (
    TODAY,
    YESTERDAY,
    Finding,
    FindingsCache,
    day_bounds,
    parse_timestamp,
)

NOW = dt.datetime(2026, 3, 10, 15, 30).astimezone()


def _local(day: int, hour: int) -> dt.datetime:
    return dt.datetime(2026, 3, day, hour).astimezone()


def _finding(finding_id: str, created_at: dt.datetime | None, **fields) -> Finding:
    return Finding(id=finding_id, type="pattern", created_at=created_at, **fields)


@pytest.fixture
def cache() -> FindingsCache:
    cache = FindingsCache()
    cache.replace(
        [
            _finding("t1", _local(10, 9), topic="Deploys", summary="Friday deploys fail"),
            _finding("y1", _local(9, 18), topic="Email", recall_anchor="inbox zero"),
            _finding("old", _local(7, 12), topic="Deploys"),
            _finding("undated", None, summary="no timestamp here"),
            _finding("t2", _local(10, 0), topic="Standups"),
            _finding("y2", _local(9, 0), summary="DEPLOY rollback"),
        ]
    )
    return cache


def test_day_bounds_are_local_midnights() -> None:
    start_today, start_yesterday = day_bounds(NOW)

    assert start_today == _local(10, 0)
    assert start_yesterday == _local(9, 0)


def test_view_buckets_today_and_yesterday(cache: FindingsCache) -> None:
    view = cache.view(now=NOW)

    assert [group.label for group in view.groups] == [TODAY, YESTERDAY]
    assert [f.id for f in view.group(TODAY)] == ["t1", "undated", "t2"]
    assert [f.id for f in view.group(YESTERDAY)] == ["y1", "y2"]


def test_view_drops_items_older_than_yesterday(cache: FindingsCache) -> None:
    assert "old" not in [f.id for f in cache.view(now=NOW).items]
    assert "old" not in [f.id for f in cache.view("deploy", now=NOW).items]


def test_undated_items_are_always_kept(cache: FindingsCache) -> None:
    far_future = NOW + dt.timedelta(days=400)

    assert [f.id for f in cache.view(now=far_future).items] == ["undated"]


def test_query_is_case_insensitive_over_topic_summary_and_recall(cache: FindingsCache) -> None:
    assert [f.id for f in cache.view("deploy", now=NOW).items] == ["t1", "y2"]
    assert [f.id for f in cache.view("INBOX", now=NOW).items] == ["y1"]
    assert [f.id for f in cache.view("  standups ", now=NOW).items] == ["t2"]


@pytest.mark.parametrize("query", ["deploy", "e", "zzz", "no timestamp"])
def test_query_narrows_the_unfiltered_view(cache: FindingsCache, query: str) -> None:
    everything = cache.view("", now=NOW)
    narrowed = cache.view(query, now=NOW)

    assert everything == cache.view(now=NOW)
    assert set(f.id for f in narrowed.items) <= set(f.id for f in everything.items)


def test_empty_result_is_a_state_not_an_error(cache: FindingsCache) -> None:
    view = cache.view("nothing matches this", now=NOW)

    assert view.is_empty
    assert view.groups == ()
    assert FindingsCache().view(now=NOW).is_empty


def test_only_yesterday_group_when_nothing_today() -> None:
    cache = FindingsCache()
    cache.replace([_finding("y", _local(9, 23))])

    view = cache.view(now=NOW)

    assert [group.label for group in view.groups] == [YESTERDAY]


def test_replace_swaps_the_working_set(cache: FindingsCache) -> None:
    cache.replace([_finding("fresh", None)])

    assert [f.id for f in cache.items] == ["fresh"]
    cache.clear()
    assert cache.items == []


def test_from_payload_fallbacks() -> None:
    finding = Finding.from_payload(
        {"id": 7, "type": "loop", "confidence": "medium", "created_at": "", "topic": None},
        default_status="confirmed",
    )

    assert finding.id == "7"
    assert finding.confidence == "medium"
    assert finding.created_at is None
    assert finding.topic is None
    assert finding.status == "confirmed"


def test_from_payload_prefers_server_status() -> None:
    finding = Finding.from_payload({"finding_id": "a", "status": "resolved"}, default_status="x")

    assert finding.status == "resolved"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2026-03-10T08:00:00Z", dt.datetime(2026, 3, 10, 8, tzinfo=dt.timezone.utc)),
        (
            "2026-03-10T08:00:00+02:00",
            dt.datetime(2026, 3, 10, 6, tzinfo=dt.timezone.utc),
        ),
        (
            "2026-03-10T08:00:00.1234+00",
            dt.datetime(2026, 3, 10, 8, 0, 0, 123400, tzinfo=dt.timezone.utc),
        ),
        (
            "2026-03-10T08:00:00.5+0530",
            dt.datetime(2026, 3, 10, 2, 30, 0, 500000, tzinfo=dt.timezone.utc),
        ),
        (
            "Tue, 10 Mar 2026 08:00:00 GMT",
            dt.datetime(2026, 3, 10, 8, tzinfo=dt.timezone.utc),
        ),
        (0, dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)),
        ("yesterday-ish", None),
        ("", None),
        (None, None),
        (True, None),
    ],
)
def test_parse_timestamp(value: object, expected: dt.datetime | None) -> None:
    assert parse_timestamp(value) == expected


def test_parse_timestamp_treats_offsetless_values_as_local() -> None:
    assert parse_timestamp("2026-03-10T08:00:00") == _local(10, 8)


def _http_date(value: dt.datetime) -> str:
    return format_datetime(value.astimezone(dt.timezone.utc), usegmt=True)


def test_http_dates_are_bucketed_like_iso_ones() -> None:
    cache = FindingsCache()
    cache.replace(
        [
            Finding.from_payload(
                {"finding_id": "old", "created_at": _http_date(NOW - dt.timedelta(days=3))},
                default_status="unreviewed",
            ),
            Finding.from_payload(
                {"finding_id": "recent", "created_at": _http_date(NOW - dt.timedelta(hours=1))},
                default_status="unreviewed",
            ),
        ]
    )

    view = cache.view(now=NOW)

    assert [f.id for f in view.group(TODAY)] == ["recent"]
    assert [f.id for f in view.items] == ["recent"]
