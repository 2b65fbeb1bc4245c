from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Status:
    message: str = ""
    tone: str = ""


StatusListener = Callable[[Status], None]


class StatusBoard:
    """Single transient status line.

    Each write replaces the previous one and restarts the auto-clear timer;
    nothing is queued.
    """

    def __init__(self, clear_after_ms: int = 2000, *, max_chars: int | None = None) -> None:
        self.clear_after_ms = clear_after_ms
        self.max_chars = max_chars
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._current = Status()
        self._listeners: list[StatusListener] = []

    @property
    def current(self) -> Status:
        return self._current

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def set(self, message: str, tone: str = "info") -> Status:
        if self.max_chars is not None:
            message = message[: self.max_chars]
        status = Status(message, tone if message else "")
        with self._lock:
            existing = self._timer
            self._timer = None
            if existing:
                existing.cancel()
            self._current = status
            if message and self.clear_after_ms > 0:
                timer = threading.Timer(self.clear_after_ms / 1000.0, self._expire, args=(status,))
                timer.daemon = True
                self._timer = timer
                timer.start()
        self._notify(status)
        return status

    def clear(self) -> None:
        self.set("")

    def _expire(self, status: Status) -> None:
        with self._lock:
            # A newer status superseded this one.
            if self._current is not status:
                return
            self._timer = None
            self._current = Status()
        self._notify(self._current)

    def _notify(self, status: Status) -> None:
        for listener in list(self._listeners):
            listener(status)
