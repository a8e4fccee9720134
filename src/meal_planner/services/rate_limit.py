"""Fixed-window rate limiting keyed by caller identifier."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from meal_planner.domain.errors import RateLimitExceededError

_logger = logging.getLogger(__name__)

_CLEANUP_EVERY = 100


@dataclass(frozen=True)
class RateLimitConfig:
    """Ceiling for one feature: ``max_requests`` per ``window_ms``."""

    max_requests: int
    window_ms: int
    message: str | None = None


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: int


RATE_LIMITS: dict[str, RateLimitConfig] = {
    "ai_assistant": RateLimitConfig(
        max_requests=20,
        window_ms=60_000,
        message="Too many AI requests. Please wait a moment before trying again.",
    ),
    "ai_recipe_generation": RateLimitConfig(
        max_requests=5,
        window_ms=300_000,
        message=(
            "Recipe generation limit reached. "
            "Please wait before generating more recipes."
        ),
    ),
    "general": RateLimitConfig(
        max_requests=100,
        window_ms=60_000,
        message="Too many requests. Please slow down.",
    ),
}


@dataclass
class _Window:
    count: int
    reset_at_ms: float


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class FixedWindowRateLimiter:
    """Counts requests per identifier inside a fixed window.

    Bursts of up to twice the ceiling are possible across a window boundary.
    """

    clock_ms: Callable[[], float] = _monotonic_ms
    _windows: dict[str, _Window] = field(default_factory=dict)
    _checks: int = 0

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Record a request and report whether it is allowed."""
        now = self.clock_ms()
        self._checks += 1
        if self._checks % _CLEANUP_EVERY == 0:
            self.cleanup_expired()

        window = self._windows.get(identifier)
        if window is None or window.reset_at_ms <= now:
            self._windows[identifier] = _Window(
                count=1, reset_at_ms=now + config.window_ms
            )
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - 1,
                reset_in=config.window_ms,
            )

        reset_in = int(window.reset_at_ms - now)
        if window.count < config.max_requests:
            window.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - window.count,
                reset_in=reset_in,
            )

        return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in)

    def enforce(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Like ``check`` but raise RateLimitExceededError when over the limit."""
        result = self.check(identifier, config)
        if not result.allowed:
            _logger.info("Rate limit exceeded for %s", identifier)
            raise RateLimitExceededError(
                format_rate_limit_error(result.reset_in, config.message),
                retry_after_seconds=math.ceil(result.reset_in / 1000),
            )
        return result

    def cleanup_expired(self) -> None:
        """Remove windows that have already reset."""
        now = self.clock_ms()
        expired = [
            key for key, window in self._windows.items() if window.reset_at_ms <= now
        ]
        for key in expired:
            del self._windows[key]


def get_rate_limit_identifier(user_id: str | None, ip: str | None = None) -> str:
    """Pick the rate-limit key: user id, else IP, else ``anonymous``."""
    return user_id or ip or "anonymous"


def format_rate_limit_error(reset_in_ms: float, message: str | None = None) -> str:
    """Return a user-facing rate-limit message."""
    if message:
        return message
    seconds = math.ceil(reset_in_ms / 1000)
    return f"Rate limit exceeded. Please try again in {seconds} seconds."
