from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import InvalidTokenError
from .states import THEMES, next_theme

logger = logging.getLogger(__name__)

TOKEN_KEY = "authToken"
THEME_KEY = "theme"

TokenListener = Callable[[str | None], None]


class SessionStore:
    """Process-wide token and theme preference backed by a JSON state file.

    Listeners are told about every token write, including the forced clear
    that follows a 401, so every open view can reset itself.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._listeners: list[TokenListener] = []
        self._last_seen_token = self.get_token()

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return {}
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("session state unreadable, treating as empty: %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
        os.replace(tmp_path, self.path)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("could not restrict permissions on %s", self.path)

    def get_token(self) -> str | None:
        token = self._read().get(TOKEN_KEY)
        if isinstance(token, str) and token.strip():
            return token
        return None

    def set_token(self, token: str) -> None:
        cleaned = (token or "").strip()
        if not cleaned:
            raise InvalidTokenError("Token required.")
        data = self._read()
        data[TOKEN_KEY] = cleaned
        self._write(data)
        self._emit(cleaned)

    def clear_token(self) -> None:
        data = self._read()
        data.pop(TOKEN_KEY, None)
        self._write(data)
        self._emit(None)

    def get_theme(self) -> str:
        theme = self._read().get(THEME_KEY)
        if theme in THEMES:
            return str(theme)
        return "system"

    def cycle_theme(self) -> str:
        theme = next_theme(self.get_theme())
        data = self._read()
        data[THEME_KEY] = theme
        self._write(data)
        return theme

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def reload(self) -> bool:
        """Notify listeners if another process changed the stored token."""

        token = self.get_token()
        if token == self._last_seen_token:
            return False
        self._emit(token)
        return True

    def _emit(self, token: str | None) -> None:
        self._last_seen_token = token
        for listener in list(self._listeners):
            try:
                listener(token)
            except Exception:
                logger.exception("session listener failed")
