"""
Pacing between successive platform calls.

A ``Throttle`` is asked to ``wait()`` before every platform call after the
first, and is told the outcome of each call via ``record()``. The sleep
function is injectable so tests run without real delays.

Strategies
----------
FixedDelayThrottle : constant ``delay_seconds`` between calls (default 0.1 s).
BackoffThrottle    : ``delay_seconds`` while calls succeed; after ``n``
                     consecutive failures the delay grows by strategy:
                       exponential → 2^n * base
                       linear      → n * base
                       fixed       → base
                     capped at ``max_seconds``; resets on the next success.
NoThrottle         : never waits.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from inventory_signals.config import VisibilityConfig

logger = logging.getLogger(__name__)

VALID_BACKOFF_STRATEGIES = frozenset({"exponential", "linear", "fixed"})

SleepFn = Callable[[float], None]


def compute_backoff_delay(
    strategy: str,
    base_seconds: float,
    max_seconds: float,
    failures: int,
) -> float:
    """Delay after ``failures`` consecutive failed calls.

    Raises:
        ValueError: If ``strategy`` is not exponential, linear or fixed.
    """
    if strategy not in VALID_BACKOFF_STRATEGIES:
        raise ValueError(
            f"Backoff strategy must be one of {sorted(VALID_BACKOFF_STRATEGIES)}, got '{strategy}'."
        )
    if failures <= 0:
        return min(base_seconds, max_seconds)
    if strategy == "exponential":
        delay = (2 ** failures) * base_seconds
    elif strategy == "linear":
        delay = failures * base_seconds
    else:
        delay = base_seconds
    return min(delay, max_seconds)


class Throttle:
    """Base throttle: waits ``next_delay()`` seconds between calls."""

    def __init__(self, sleep: SleepFn = time.sleep) -> None:
        self._sleep = sleep
        self._calls = 0

    def next_delay(self) -> float:
        return 0.0

    def wait(self) -> None:
        """Pause before a platform call; the first call is never delayed."""
        if self._calls > 0:
            delay = self.next_delay()
            if delay > 0:
                self._sleep(delay)
        self._calls += 1

    def record(self, success: bool) -> None:
        """Observe the outcome of the call that just finished."""


class NoThrottle(Throttle):
    """Never waits."""


class FixedDelayThrottle(Throttle):
    """Constant delay between calls."""

    def __init__(self, delay_seconds: float = 0.1, sleep: SleepFn = time.sleep) -> None:
        super().__init__(sleep)
        self.delay_seconds = delay_seconds

    def next_delay(self) -> float:
        return self.delay_seconds


class BackoffThrottle(Throttle):
    """Base delay while calls succeed; growing delay after consecutive failures."""

    def __init__(
        self,
        base_seconds: float = 0.1,
        max_seconds: float = 5.0,
        strategy: str = "exponential",
        sleep: SleepFn = time.sleep,
    ) -> None:
        super().__init__(sleep)
        if strategy not in VALID_BACKOFF_STRATEGIES:
            raise ValueError(
                f"Backoff strategy must be one of {sorted(VALID_BACKOFF_STRATEGIES)}, got '{strategy}'."
            )
        self.base_seconds = base_seconds
        self.max_seconds = max_seconds
        self.strategy = strategy
        self.consecutive_failures = 0

    def next_delay(self) -> float:
        return compute_backoff_delay(
            self.strategy, self.base_seconds, self.max_seconds, self.consecutive_failures
        )

    def record(self, success: bool) -> None:
        if success:
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
            logger.debug(
                "Backoff: %d consecutive failures, next delay %.2fs",
                self.consecutive_failures, self.next_delay(),
            )


def build_throttle(config: VisibilityConfig, sleep: SleepFn = time.sleep) -> Throttle:
    """Throttle for one reconciliation pass, from configuration."""
    if config.throttle == "none":
        return NoThrottle(sleep)
    if config.throttle == "backoff":
        return BackoffThrottle(config.delay_seconds, config.max_delay_seconds, sleep=sleep)
    return FixedDelayThrottle(config.delay_seconds, sleep)
