from __future__ import annotations

import datetime as dt
import logging
import math
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass

from .config import FrictionConfig
from .errors import (
    CaptureFailedError,
    EmptyCaptureError,
    InvalidTokenError,
    InvalidTransitionError,
    NoSessionError,
    RateLimitedError,
    SessionExpiredError,
)
from .findings import FindingsCache, FindingsView
from .limiter import CaptureLimiter
from .remote import Failure, Moment, Ok, RemoteClient, Unauthorized
from .review import ReviewWorkflow, needs_refresh
from .session import SessionStore
from .states import validate_source_type, validate_view_state
from .status import StatusBoard

logger = logging.getLogger(__name__)

MSG_EMPTY_CAPTURE = "Paste something first."
MSG_NO_TOKEN = "Missing token. Run `friction login` first."
MSG_RATE_LIMITED = "Slow down. Wait {seconds}s before capturing again."
MSG_SESSION_INVALID = "Token invalid. Login again."
MSG_SAVING = "Saving..."
MSG_SAVE_FAILED = "Save failed."
MSG_SAVED = "Moment saved."
MSG_GENERATING = "Generating..."
MSG_REPORT_OPENED = "Opened report."
MSG_REPORT_REQUESTED = "Report requested."
MSG_UPDATE_FAILED = "Update failed."
MSG_TOKEN_REQUIRED = "Token required."
MSG_TOKEN_SAVED = "Token saved."
MSG_LOGGED_OUT = "Logged out."

_PAST_TENSE = {"confirm": "confirmed", "defer": "deferred", "resolve": "resolved"}

CONNECTED = "Connected"
DISCONNECTED = "Disconnected"


@dataclass(frozen=True)
class ConnectionStatus:
    state: str
    detail: str = ""

    @property
    def connected(self) -> bool:
        return self.state == CONNECTED


class SyncController:
    """Runs the user-facing flows against the session, limiter, cache and remote.

    A 401 from any remote call goes through ``_session_rejected``: the token is
    cleared, listeners reset their views and the uniform status is posted.
    """

    def __init__(
        self,
        session: SessionStore,
        remote: RemoteClient,
        *,
        limiter: CaptureLimiter | None = None,
        cache: FindingsCache | None = None,
        status: StatusBoard | None = None,
        badge: StatusBoard | None = None,
        report_url: str = "",
        default_state: str = "unreviewed",
        opener: Callable[[str], object] | None = None,
    ) -> None:
        self.session = session
        self.remote = remote
        self.limiter = limiter or CaptureLimiter()
        self.cache = cache or FindingsCache()
        self.review_workflow = ReviewWorkflow(remote)
        self.status = status or StatusBoard()
        self.badge = badge or StatusBoard(1200, max_chars=4)
        self.report_url = report_url
        self.state = validate_view_state(default_state)
        self.query = ""
        self.opener = opener or webbrowser.open
        self.connection = ConnectionStatus(DISCONNECTED)
        self.session.subscribe(self._on_token_change)

    @classmethod
    def from_config(
        cls, cfg: FrictionConfig, *, opener: Callable[[str], object] | None = None
    ) -> SyncController:
        session = SessionStore(cfg.state_path)
        remote = RemoteClient(session, cfg.api_base, timeout_s=cfg.request_timeout_s)
        return cls(
            session,
            remote,
            limiter=CaptureLimiter(cfg.capture_cooldown_ms),
            status=StatusBoard(cfg.status_clear_ms),
            badge=StatusBoard(cfg.badge_clear_ms, max_chars=4),
            report_url=cfg.report_url,
            default_state=cfg.default_state,
            opener=opener,
        )

    def _on_token_change(self, token: str | None) -> None:
        if token is None:
            self.cache.clear()
            self.connection = ConnectionStatus(DISCONNECTED)

    def sync_session(self) -> bool:
        """Pick up a token written or cleared by another process.

        A newly stored token reloads the findings list and re-probes the
        connection. Returns True when the stored token had changed.
        """

        if not self.session.reload():
            return False
        if self.session.get_token():
            logger.info("session token changed elsewhere; reloading findings")
            self.refresh_findings()
            self.check_connection()
        return True

    def _session_rejected(self) -> None:
        logger.info("session token rejected by the server; logging out")
        self.session.clear_token()
        self.cache.clear()
        self.status.set(MSG_SESSION_INVALID, "error")

    def _require_token(self, *, badge: bool = False) -> str:
        self.sync_session()
        token = self.session.get_token()
        if not token:
            self.status.set(MSG_NO_TOKEN, "error")
            if badge:
                self.badge.set("No token")
            raise NoSessionError(MSG_NO_TOKEN)
        return token

    def capture(
        self,
        text: str,
        *,
        source_type: str = "bulk_paste",
        source_url: str | None = None,
        now: int | None = None,
    ) -> Moment:
        source_type = validate_source_type(source_type)
        highlight = source_type == "highlight"
        raw_text = (text or "").strip()
        if not raw_text:
            self.status.set(MSG_EMPTY_CAPTURE, "error")
            if highlight:
                self.badge.set("No selection")
            raise EmptyCaptureError(MSG_EMPTY_CAPTURE)
        self._require_token(badge=highlight)
        if not self.limiter.try_acquire(now):
            seconds = max(1, math.ceil(self.limiter.remaining_ms(now) / 1000))
            message = MSG_RATE_LIMITED.format(seconds=seconds)
            self.status.set(message, "error")
            if highlight:
                self.badge.set("Wait")
            raise RateLimitedError(message)

        self.status.set(MSG_SAVING)
        moment = Moment(
            raw_text=raw_text,
            source_type=source_type,
            source_url=source_url if highlight else None,
            created_at=dt.datetime.now(dt.timezone.utc),
        )
        result = self.remote.create_moment(moment)
        if isinstance(result, Unauthorized):
            self._session_rejected()
            if highlight:
                self.badge.set("Auth")
            raise SessionExpiredError(MSG_SESSION_INVALID)
        if isinstance(result, Failure):
            self.status.set(MSG_SAVE_FAILED, "error")
            if highlight:
                self.badge.set("Error" if result.reason.startswith("network") else "Save failed")
            raise CaptureFailedError(f"{MSG_SAVE_FAILED} ({result.reason})")

        self.limiter.record_success(now)
        logger.info("moment saved (%s, %d chars)", source_type, len(raw_text))
        self.status.set(MSG_SAVED, "success")
        if highlight:
            self.badge.set("Saved")
        else:
            self.refresh_findings()
        self.check_connection()
        return moment

    def generate_report(self, *, open_report: bool = True) -> str:
        self._require_token()
        self.status.set(MSG_GENERATING)
        result = self.remote.run_snapshot("manual")
        if isinstance(result, Unauthorized):
            self._session_rejected()
            raise SessionExpiredError(MSG_SESSION_INVALID)
        if isinstance(result, Failure):
            # The report page still shows earlier runs.
            logger.warning("snapshot run failed, opening reports anyway: %s", result.reason)
        if open_report:
            self.opener(self.report_url)
            self.status.set(MSG_REPORT_OPENED, "success")
        else:
            self.status.set(MSG_REPORT_REQUESTED, "success")
        self.refresh_findings()
        self.check_connection()
        return self.report_url

    def open_reports(self) -> str:
        self.opener(self.report_url)
        return self.report_url

    def refresh_findings(self, state: str | None = None) -> FindingsView:
        if state is not None:
            self.state = validate_view_state(state)
        self.sync_session()
        if not self.session.get_token():
            self.cache.clear()
            return self.view()
        result = self.remote.list_findings(self.state)
        if isinstance(result, Unauthorized):
            self._session_rejected()
        elif isinstance(result, Failure):
            self.cache.clear()
        elif isinstance(result, Ok):
            self.cache.replace(result.payload)
        return self.view()

    def view(self, now: dt.datetime | None = None) -> FindingsView:
        return self.cache.view(self.query, now)

    def search(self, query: str, now: dt.datetime | None = None) -> FindingsView:
        self.query = query or ""
        return self.view(now)

    def review(self, finding_id: str, action: str) -> FindingsView:
        self._require_token()
        try:
            result = self.review_workflow.apply(finding_id, action, self.state)
        except InvalidTransitionError as exc:
            self.status.set(str(exc), "error")
            raise
        if isinstance(result, Unauthorized):
            self._session_rejected()
        elif isinstance(result, Failure):
            self.status.set(MSG_UPDATE_FAILED, "error")
        else:
            self.status.set(f"Finding {_PAST_TENSE[action]}.", "success")
        if needs_refresh(result):
            return self.refresh_findings()
        return self.view()

    def check_connection(self) -> ConnectionStatus:
        self.sync_session()
        self.connection = self._probe()
        return self.connection

    def _probe(self) -> ConnectionStatus:
        if not self.session.get_token():
            return ConnectionStatus(DISCONNECTED)
        result = self.remote.who_am_i()
        if isinstance(result, Unauthorized):
            self._session_rejected()
            return ConnectionStatus(DISCONNECTED, "Token invalid")
        if isinstance(result, Failure):
            return ConnectionStatus(DISCONNECTED, result.reason)
        return ConnectionStatus(CONNECTED)

    def login(self, token: str) -> ConnectionStatus:
        try:
            self.session.set_token(token)
        except InvalidTokenError:
            self.status.set(MSG_TOKEN_REQUIRED, "error")
            raise
        self.status.set(MSG_TOKEN_SAVED, "success")
        self.refresh_findings()
        return self.check_connection()

    def logout(self) -> None:
        self.session.clear_token()
        self.cache.clear()
        self.status.set(MSG_LOGGED_OUT, "success")

    def toggle_theme(self) -> str:
        theme = self.session.cycle_theme()
        self.status.set(f"Theme: {theme}", "success")
        return theme
