from __future__ import annotations

from typing import Final

# States the findings list can be filtered by.
VIEW_STATES: Final[tuple[str, ...]] = ("unreviewed", "confirmed", "deferred")

REVIEW_ACTIONS: Final[tuple[str, ...]] = ("confirm", "defer", "resolve")

SOURCE_TYPES: Final[tuple[str, ...]] = ("highlight", "bulk_paste")

THEMES: Final[tuple[str, ...]] = ("system", "light", "dark")


def normalize_state(state: str) -> str:
    return (state or "").strip().lower()


def validate_view_state(state: str) -> str:
    normalized = normalize_state(state)
    if normalized in VIEW_STATES:
        return normalized
    raise ValueError(
        f"Invalid findings state '{normalized}'. Allowed states: {', '.join(VIEW_STATES)}"
    )


def validate_source_type(source_type: str) -> str:
    normalized = normalize_state(source_type)
    if normalized in SOURCE_TYPES:
        return normalized
    raise ValueError(
        f"Invalid source type '{normalized}'. Allowed types: {', '.join(SOURCE_TYPES)}"
    )


def next_theme(current: str) -> str:
    if current not in THEMES:
        return THEMES[1]
    return THEMES[(THEMES.index(current) + 1) % len(THEMES)]
