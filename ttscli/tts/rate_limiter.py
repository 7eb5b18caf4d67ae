"""Rate limiting gate for speech requests.

Responsibilities:
- Provide a single hook that paces outbound provider requests.
- Keep pacing policy independent from the transport and client.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Minimum-interval gate issuing at most one permit per interval.

    A non-positive interval disables the gate. The first permit is granted
    immediately; idle time never accumulates extra permits.
    """

    min_interval_seconds: float = 0.0
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: float | None = None

    @classmethod
    def from_calls_per_minute(
        cls,
        calls_per_minute: int,
        *,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], None] = sleep,
    ) -> RateLimiter:
        """Create a gate releasing `calls_per_minute` permits per minute."""

        interval = 60.0 / calls_per_minute if calls_per_minute > 0 else 0.0
        return cls(min_interval_seconds=interval, clock=clock, sleeper=sleeper)

    @property
    def enabled(self) -> bool:
        """Return whether the gate paces callers at all."""

        return self.min_interval_seconds > 0.0

    def acquire(self) -> None:
        """Block until the next permit is available."""

        if not self.enabled:
            return
        now = self.clock()
        if self._next_allowed_at is not None:
            wait_seconds = self._next_allowed_at - now
            if wait_seconds > 0.0:
                self.sleeper(wait_seconds)
                now = max(self.clock(), self._next_allowed_at)
        self._next_allowed_at = now + self.min_interval_seconds
