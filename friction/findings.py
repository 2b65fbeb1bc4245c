from __future__ import annotations

import datetime as dt
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Any

TODAY = "Today"
YESTERDAY = "Yesterday"


# Time of day, then optional fraction and offset at the end of an ISO string.
_ISO_TIME_TAIL = re.compile(
    r"(?P<time>\d{2}:\d{2}(?::\d{2})?)(?P<frac>\.\d+)?(?P<offset>[+-]\d{2}(?::?\d{2})?)?$"
)


def _normalize_iso(text: str) -> str:
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    match = _ISO_TIME_TAIL.search(text)
    if not match:
        return text
    frac = match.group("frac") or ""
    if frac:
        frac = "." + frac[1:7].ljust(6, "0")
    offset = match.group("offset") or ""
    if offset:
        digits = offset[1:].replace(":", "")
        offset = f"{offset[0]}{digits[:2]}:{digits[2:4] or '00'}"
    return f"{text[: match.start()]}{match.group('time')}{frac}{offset}"


def _parse_http_date(text: str) -> dt.datetime | None:
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        # "-0000" means UTC with no known local zone.
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_timestamp(value: object) -> dt.datetime | None:
    """Parse a server timestamp into an aware datetime.

    Accepts ISO-8601 (any fraction length, ``Z`` or short ``+HH`` offsets),
    RFC 2822 / HTTP dates and epoch milliseconds. Anything else is None.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return dt.datetime.fromtimestamp(value / 1000.0, tz=dt.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = dt.datetime.fromisoformat(_normalize_iso(text))
    except ValueError:
        return _parse_http_date(text)
    if parsed.tzinfo is None:
        # Offset-less timestamps are wall-clock local time.
        return parsed.astimezone()
    return parsed


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class Finding:
    id: str
    type: str
    topic: str | None = None
    summary: str | None = None
    confidence: str | None = None
    recall_anchor: str | None = None
    created_at: dt.datetime | None = None
    status: str = "unreviewed"

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, default_status: str) -> Finding:
        finding_id = payload.get("finding_id")
        if finding_id is None:
            finding_id = payload.get("id")
        confidence = payload.get("confidence_ai") or payload.get("confidence")
        created_at = payload.get("created_at") or payload.get("snapshot_created_at")
        status = payload.get("status") or payload.get("state") or default_status
        return cls(
            id=str(finding_id or ""),
            type=str(payload.get("type") or ""),
            topic=_optional_str(payload.get("topic")),
            summary=_optional_str(payload.get("summary")),
            confidence=_optional_str(confidence),
            recall_anchor=_optional_str(payload.get("recall_anchor")),
            created_at=parse_timestamp(created_at),
            status=str(status),
        )

    def haystack(self) -> str:
        return f"{self.topic or ''} {self.summary or ''} {self.recall_anchor or ''}".lower()


@dataclass(frozen=True)
class FindingGroup:
    label: str
    items: tuple[Finding, ...]


@dataclass(frozen=True)
class FindingsView:
    groups: tuple[FindingGroup, ...]

    @property
    def is_empty(self) -> bool:
        return not any(group.items for group in self.groups)

    @property
    def items(self) -> list[Finding]:
        return [item for group in self.groups for item in group.items]

    def group(self, label: str) -> tuple[Finding, ...]:
        for group in self.groups:
            if group.label == label:
                return group.items
        return ()


EMPTY_VIEW = FindingsView(groups=())


def day_bounds(now: dt.datetime | None = None) -> tuple[dt.datetime, dt.datetime]:
    """Return local midnight of today and of the previous calendar day."""

    local_now = (now or dt.datetime.now()).astimezone()
    today = local_now.date()
    start_today = dt.datetime.combine(today, dt.time()).astimezone()
    start_yesterday = dt.datetime.combine(today - dt.timedelta(days=1), dt.time()).astimezone()
    return start_today, start_yesterday


class FindingsCache:
    """Last-fetched working set of findings for the active state filter."""

    def __init__(self) -> None:
        self._items: list[Finding] = []

    @property
    def items(self) -> list[Finding]:
        return list(self._items)

    def replace(self, items: Iterable[Finding]) -> None:
        self._items = list(items)

    def clear(self) -> None:
        self._items = []

    def view(self, query: str = "", now: dt.datetime | None = None) -> FindingsView:
        start_today, start_yesterday = day_bounds(now)
        recent = [
            item
            for item in self._items
            if item.created_at is None or item.created_at >= start_yesterday
        ]
        needle = (query or "").strip().lower()
        if needle:
            recent = [item for item in recent if needle in item.haystack()]
        today: list[Finding] = []
        yesterday: list[Finding] = []
        for item in recent:
            # Undated findings count as current.
            if item.created_at is None or item.created_at >= start_today:
                today.append(item)
            else:
                yesterday.append(item)
        return FindingsView(groups=_non_empty_groups([(TODAY, today), (YESTERDAY, yesterday)]))


def _non_empty_groups(pairs: Sequence[tuple[str, list[Finding]]]) -> tuple[FindingGroup, ...]:
    return tuple(FindingGroup(label, tuple(items)) for label, items in pairs if items)
