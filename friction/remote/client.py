from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any, Union
from urllib.parse import quote

from ..findings import Finding
from ..session import SessionStore
from ..states import REVIEW_ACTIONS, validate_source_type, validate_view_state
from . import http_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    payload: Any = None


@dataclass(frozen=True)
class Unauthorized:
    pass


@dataclass(frozen=True)
class Failure:
    reason: str


RemoteResult = Union[Ok, Unauthorized, Failure]


@dataclass(frozen=True)
class Moment:
    raw_text: str
    source_type: str = "bulk_paste"
    source_url: str | None = None
    created_at: dt.datetime = field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )

    def to_payload(self) -> dict[str, Any]:
        created = self.created_at.astimezone(dt.timezone.utc)
        return {
            "raw_text": self.raw_text,
            "source_type": validate_source_type(self.source_type),
            "source_url": self.source_url,
            "created_at": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }


def _error_detail(payload: dict[str, Any] | None) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    detail = payload.get("detail") or payload.get("reason")
    if isinstance(error, str) and isinstance(detail, str):
        return f"{error}:{detail}"
    if isinstance(error, str):
        return error
    if isinstance(detail, str):
        return detail
    return None


def _is_unparsed(payload: dict[str, Any] | None) -> bool:
    if not isinstance(payload, dict):
        return False
    error = payload.get("error")
    return isinstance(error, str) and error.startswith(
        ("non_json_response", "unexpected_json_type")
    )


class RemoteClient:
    """Authenticated calls against the capture service.

    Every call resolves to ``Ok``, ``Unauthorized`` or ``Failure``; nothing is
    retried here.
    """

    def __init__(self, session: SessionStore, api_base: str, *, timeout_s: float = 10.0) -> None:
        self.session = session
        self.api_base = api_base
        self.timeout_s = timeout_s

    def _call(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        allow_empty: bool = False,
    ) -> RemoteResult:
        token = self.session.get_token()
        if not token:
            return Unauthorized()
        url = http_client.build_url(self.api_base, path, params)
        try:
            status, payload = http_client.request_json(
                method,
                url,
                headers={"Authorization": f"Bearer {token}"},
                body=body,
                timeout_s=self.timeout_s,
            )
        except (OSError, HTTPException, ValueError) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return Failure(f"network error: {exc}")
        if status == 401:
            logger.info("%s %s rejected the session token", method, path)
            return Unauthorized()
        if status < 200 or status >= 300:
            detail = _error_detail(payload)
            reason = f"http {status}: {detail}" if detail else f"http {status}"
            logger.warning("%s %s failed: %s", method, path, reason)
            return Failure(reason)
        if _is_unparsed(payload):
            if allow_empty:
                return Ok({})
            reason = _error_detail(payload) or "unparseable response"
            logger.warning("%s %s returned an unparseable body: %s", method, path, reason)
            return Failure(reason)
        return Ok(payload if payload is not None else {})

    def create_moment(self, moment: Moment) -> RemoteResult:
        return self._call("POST", "/api/moments", body=moment.to_payload(), allow_empty=True)

    def run_snapshot(self, trigger_type: str = "manual") -> RemoteResult:
        return self._call(
            "POST", "/api/snapshots/run", body={"trigger_type": trigger_type}, allow_empty=True
        )

    def list_findings(self, state: str) -> RemoteResult:
        state = validate_view_state(state)
        result = self._call("GET", "/api/findings", params={"state": state})
        if not isinstance(result, Ok):
            return result
        raw_items = result.payload.get("findings") if isinstance(result.payload, dict) else None
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            return Failure("findings must be a list")
        findings = [
            Finding.from_payload(item, default_status=state)
            for item in raw_items
            if isinstance(item, dict)
        ]
        return Ok(findings)

    def transition_finding(self, finding_id: str, action: str) -> RemoteResult:
        if action not in REVIEW_ACTIONS:
            raise ValueError(
                f"Invalid review action '{action}'. Allowed actions: {', '.join(REVIEW_ACTIONS)}"
            )
        path = f"/api/findings/{quote(finding_id, safe='')}/{action}"
        return self._call("POST", path, allow_empty=True)

    def who_am_i(self) -> RemoteResult:
        return self._call("GET", "/api/me", allow_empty=True)
