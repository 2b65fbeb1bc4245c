from __future__ import annotations

import time


def now_ms() -> int:
    return int(time.time() * 1000)


class CaptureLimiter:
    """Minimum spacing between successful captures, kept in memory only."""

    def __init__(self, cooldown_ms: int = 3000) -> None:
        self.cooldown_ms = max(0, int(cooldown_ms))
        self.last_success_at: int | None = None

    def try_acquire(self, now: int | None = None) -> bool:
        if self.last_success_at is None:
            return True
        current = now_ms() if now is None else now
        return current - self.last_success_at >= self.cooldown_ms

    def record_success(self, now: int | None = None) -> None:
        current = now_ms() if now is None else now
        if self.last_success_at is None or current > self.last_success_at:
            self.last_success_at = current

    def remaining_ms(self, now: int | None = None) -> int:
        if self.last_success_at is None:
            return 0
        current = now_ms() if now is None else now
        return max(0, self.cooldown_ms - (current - self.last_success_at))
