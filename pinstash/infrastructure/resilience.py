# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Retry and circuit breaking for outbound provider calls (mail delivery)."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pinstash.shared.logging import logger

T = TypeVar("T")


class CircuitOpenError(RuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"{name}: circuit open, call refused")
        self.name = name


@dataclass
class CircuitBreaker:
    """Counts consecutive failed calls; refuses calls while open."""

    name: str = "provider"
    failure_threshold: int = 5
    reset_timeout: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _failures: int = field(default=0, init=False, repr=False)
    _opened_at: float | None = field(default=None, init=False, repr=False)

    @property
    def is_open(self) -> bool:
        if self._opened_at is None:
            return False
        if self.clock() - self._opened_at >= self.reset_timeout:
            # half-open: let the next call probe the provider
            logger.info(f"{self.name}: circuit half-open")
            self._opened_at = None
            self._failures = 0
            return False
        return True

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold and self._opened_at is None:
            self._opened_at = self.clock()
            logger.error(f"{self.name}: circuit opened after {self._failures} failed calls")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    backoff_base: float = 0.5
    backoff_cap: float = 4.0
    timeout: float = 10.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff_base, max=self.backoff_cap),
            retry=retry_if_exception_type(self.retry_on),
            reraise=True,
        )


async def resilient_call(  # noqa: UP047
    func: Callable[..., Awaitable[T]],
    *args: Any,
    policy: RetryPolicy,
    breaker: CircuitBreaker,
    **kwargs: Any,
) -> T:
    """Run ``func`` under ``policy``; one breaker failure per exhausted call.

    The last exception is re-raised as-is once retries are spent, so callers
    can map provider errors themselves.
    """
    if breaker.is_open:
        raise CircuitOpenError(breaker.name)

    try:
        async for attempt in policy.retrying():
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.debug(f"{breaker.name}: retry attempt={number}")
                result = await asyncio.wait_for(func(*args, **kwargs), timeout=policy.timeout)
    except Exception:
        breaker.record_failure()
        raise

    breaker.record_success()
    return result


__all__ = ["CircuitBreaker", "CircuitOpenError", "RetryPolicy", "resilient_call"]
