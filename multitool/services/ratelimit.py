"""
Call budget for the paid search API.

Two counters are kept: calls in the current one-second window and calls in
the current month. Only the monthly budget blocks by default; per-second
blocking is opt-in. Counters live for the process lifetime and are never
persisted.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel

from multitool.core.errors import RateLimitExceeded

logger = logging.getLogger("MultiTool.services.ratelimit")

WINDOW_MS = 1000.0


def month_key(epoch: float) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m")


class RateBudget(BaseModel):
    per_second_count: int = 0
    per_month_count: int = 0
    window_start: float = 0.0
    month_key: str = ""


class RateLimiter:
    def __init__(
        self,
        per_second_budget: int = 1,
        per_month_budget: int = 15000,
        enforce_per_second: bool = False,
        monthly_rollover: bool = True,
        pacing_delay_ms: int = 1100,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.per_second_budget = per_second_budget
        self.per_month_budget = per_month_budget
        self.enforce_per_second = enforce_per_second
        self.monthly_rollover = monthly_rollover
        self.pacing_delay_ms = pacing_delay_ms
        self._clock = clock or time.time
        self._sleep = sleep or time.sleep
        self._lock = threading.Lock()

        now = self._clock()
        self.budget = RateBudget(window_start=now, month_key=month_key(now))

    @classmethod
    def from_config(cls, config) -> "RateLimiter":
        return cls(
            per_second_budget=config.per_second_budget,
            per_month_budget=config.per_month_budget,
            enforce_per_second=config.enforce_per_second,
            monthly_rollover=config.monthly_rollover,
            pacing_delay_ms=config.pacing_delay_ms,
        )

    def _roll_windows(self, now: float) -> None:
        budget = self.budget
        if (now - budget.window_start) * 1000.0 > WINDOW_MS:
            budget.per_second_count = 0
            budget.window_start = now

        if self.monthly_rollover:
            key = month_key(now)
            if key != budget.month_key:
                logger.info(
                    "Monthly search budget rolled over (%s -> %s, %d calls used)",
                    budget.month_key,
                    key,
                    budget.per_month_count,
                )
                budget.per_month_count = 0
                budget.month_key = key

    def _check_monthly(self) -> None:
        if self.budget.per_month_count >= self.per_month_budget:
            logger.warning("Monthly search budget exhausted (%d calls)", self.budget.per_month_count)
            raise RateLimitExceeded("Monthly rate limit exceeded")

    def check_and_consume(self) -> None:
        """Charge one call against both budgets or raise RateLimitExceeded."""
        with self._lock:
            now = self._clock()
            self._roll_windows(now)
            self._check_monthly()

            if self.enforce_per_second and self.budget.per_second_count >= self.per_second_budget:
                elapsed_ms = (now - self.budget.window_start) * 1000.0
                retry_after = max(0, int(WINDOW_MS - elapsed_ms) + 1)
                raise RateLimitExceeded(
                    f"Rate limit exceeded. Try again in {retry_after}ms",
                    retry_after_ms=retry_after,
                )

            self.budget.per_second_count += 1
            self.budget.per_month_count += 1

    def consume_monthly(self) -> None:
        """Charge a follow-up lookup against the monthly budget only."""
        with self._lock:
            self._roll_windows(self._clock())
            self._check_monthly()
            self.budget.per_month_count += 1

    def pace(self) -> None:
        """Fixed pause between dependent calls on the same budget."""
        if self.pacing_delay_ms > 0:
            self._sleep(self.pacing_delay_ms / 1000.0)

    def snapshot(self) -> RateBudget:
        with self._lock:
            return self.budget.model_copy()
