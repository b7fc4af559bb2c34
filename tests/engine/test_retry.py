from __future__ import annotations

import pytest

from catalogsync.contracts.config import RetryPolicy
from catalogsync.contracts.exceptions import RemoteError, RemoteErrorKind
from catalogsync.contracts.remote import RemoteResult
from catalogsync.engine.retry import RetryingCaller
from tests.fakes.builders import RecordingSleep


class ScriptedRequest:
    def __init__(self, *results: RemoteResult[str]) -> None:
        self._results = list(results)
        self.calls = 0

    async def __call__(self) -> RemoteResult[str]:
        self.calls += 1
        return self._results.pop(0)


def _failure(kind: RemoteErrorKind) -> RemoteResult[str]:
    return RemoteResult.failure(RemoteError(f"{kind.value} failure", kind=kind, operation="retrieve_product"))


@pytest.mark.asyncio
async def test_call_returns_first_success_without_sleeping() -> None:
    sleep = RecordingSleep()
    request = ScriptedRequest(RemoteResult.success("ok"))

    result = await RetryingCaller(sleep=sleep).call("retrieve_product", request)

    assert result.unwrap() == "ok"
    assert request.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", [RemoteErrorKind.TRANSPORT, RemoteErrorKind.RATE_LIMITED, RemoteErrorKind.SERVER])
async def test_call_retries_transient_failures(kind: RemoteErrorKind) -> None:
    sleep = RecordingSleep()
    request = ScriptedRequest(_failure(kind), RemoteResult.success("ok"))
    policy = RetryPolicy(max_attempts=3, backoff_seconds=0.5, jitter_seconds=0)

    result = await RetryingCaller(policy, sleep=sleep).call("retrieve_product", request)

    assert result.ok
    assert request.calls == 2
    assert sleep.delays == [0.5]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind", [RemoteErrorKind.NOT_FOUND, RemoteErrorKind.INVALID_REQUEST, RemoteErrorKind.AUTHENTICATION]
)
async def test_call_does_not_retry_semantic_failures(kind: RemoteErrorKind) -> None:
    sleep = RecordingSleep()
    request = ScriptedRequest(_failure(kind))

    result = await RetryingCaller(sleep=sleep).call("retrieve_product", request)

    assert result.error is not None
    assert result.error.kind is kind
    assert request.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_call_gives_up_after_max_attempts() -> None:
    sleep = RecordingSleep()
    request = ScriptedRequest(*[_failure(RemoteErrorKind.SERVER) for _ in range(3)])
    policy = RetryPolicy(max_attempts=3, backoff_seconds=1, max_backoff_seconds=10, jitter_seconds=0)

    result = await RetryingCaller(policy, sleep=sleep).call("retrieve_product", request)

    assert result.error is not None
    assert result.error.kind is RemoteErrorKind.SERVER
    assert request.calls == 3
    assert sleep.delays == [1.0, 2.0]


def test_backoff_is_capped_and_jittered() -> None:
    caller = RetryingCaller(RetryPolicy(backoff_seconds=1, max_backoff_seconds=4, jitter_seconds=0.5))

    assert caller.backoff(5) >= 4.0
    assert caller.backoff(5) <= 4.5
    assert 1.0 <= caller.backoff(0) <= 1.5
