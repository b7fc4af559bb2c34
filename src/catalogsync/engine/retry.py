"""Bounded retry with backoff at the billing client boundary."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from catalogsync.contracts.config import RetryPolicy
from catalogsync.contracts.remote import RemoteResult

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryingCaller:
    """Re-issues a client call while it fails with a transient ``RemoteError``.

    Semantic failures (not found, invalid request, authentication) are
    returned on the first attempt.
    """

    def __init__(self, policy: RetryPolicy | None = None, *, sleep: Sleep = asyncio.sleep) -> None:
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def call(self, operation: str, request: Callable[[], Awaitable[RemoteResult[T]]]) -> RemoteResult[T]:
        attempt = 0
        while True:
            result = await request()
            error = result.error
            if error is None or not error.retryable or attempt + 1 >= self._policy.max_attempts:
                return result
            delay = self.backoff(attempt)
            _LOG.warning(
                "Retrying %s after %s error (attempt %d of %d, waiting %.2fs)",
                operation,
                error.kind.value,
                attempt + 2,
                self._policy.max_attempts,
                delay,
            )
            await self._sleep(delay)
            attempt += 1

    def backoff(self, attempt: int) -> float:
        base = min(self._policy.max_backoff_seconds, self._policy.backoff_seconds * float(2**attempt))
        return base + random.uniform(0.0, self._policy.jitter_seconds)
