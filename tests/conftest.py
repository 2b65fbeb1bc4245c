from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import pytest

from friction.controller import SyncController
from friction.limiter import CaptureLimiter
from friction.remote import RemoteClient, http_client
from friction.session import SessionStore
from friction.status import StatusBoard

API_BASE = "https://api.friction.test"
REPORT_URL = "https://reports.friction.test/reports"


@pytest.fixture(autouse=True)
def _isolate_friction_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("FRICTION_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("FRICTION_STATE", str(tmp_path / "state.json"))
    for name in (
        "FRICTION_API_BASE",
        "FRICTION_REPORT_URL",
        "FRICTION_CAPTURE_COOLDOWN_MS",
        "FRICTION_LOG_FILE",
        "FRICTION_DEFAULT_STATE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    logger = logging.getLogger("friction")
    logger.handlers.clear()
    logger.propagate = True


class FakeApi:
    """Stands in for ``http_client.request_json`` and records every call."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        payload: dict[str, Any] | None = None,
        *,
        raises: Exception | None = None,
    ) -> None:
        self.routes[(method, path)] = raises if raises is not None else (status, payload)

    def __call__(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
        timeout_s: float = 10.0,
    ) -> tuple[int, dict[str, Any] | None]:
        parsed = urlparse(url)
        self.calls.append(
            {
                "method": method,
                "path": parsed.path,
                "query": {k: v[0] for k, v in parse_qs(parsed.query).items()},
                "headers": dict(headers or {}),
                "body": body,
            }
        )
        response = self.routes.get((method, parsed.path))
        if response is None:
            return 404, {"error": "not_found"}
        if isinstance(response, Exception):
            raise response
        return response

    def paths(self) -> list[str]:
        return [call["path"] for call in self.calls]


@pytest.fixture
def fake_api(monkeypatch: pytest.MonkeyPatch) -> FakeApi:
    api = FakeApi()
    monkeypatch.setattr(http_client, "request_json", api)
    return api


@pytest.fixture
def session(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "state.json")


@pytest.fixture
def opened() -> list[str]:
    return []


@pytest.fixture
def controller(session: SessionStore, fake_api: FakeApi, opened: list[str]) -> SyncController:
    return SyncController(
        session,
        RemoteClient(session, API_BASE),
        limiter=CaptureLimiter(3000),
        status=StatusBoard(0),
        badge=StatusBoard(0, max_chars=4),
        report_url=REPORT_URL,
        opener=opened.append,
    )
