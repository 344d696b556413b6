"""Tests for the result-based retry policy."""

import pytest

from sync import SyncResult
from sync.retry import retry_from_config, sync_retrying


def _scripted(*results):
    calls = []
    pending = list(results)

    async def attempt():
        calls.append(1)
        return pending.pop(0)

    return attempt, calls


@pytest.mark.asyncio
async def test_success_is_not_retried():
    attempt, calls = _scripted(SyncResult.ok(2))
    result = await sync_retrying(max_attempts=3, min_wait=0, max_wait=0)(attempt)
    assert result.success and result.count == 2
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_until_success():
    attempt, calls = _scripted(SyncResult.failure("a"), SyncResult.failure("b"), SyncResult.ok())
    result = await sync_retrying(max_attempts=3, min_wait=0, max_wait=0)(attempt)
    assert result.success
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_exhaustion_returns_last_failure():
    attempt, calls = _scripted(SyncResult.failure("first"), SyncResult.failure("second"))
    result = await sync_retrying(max_attempts=2, min_wait=0, max_wait=0)(attempt)
    assert result.success is False
    assert result.error == "second"
    assert len(calls) == 2


def test_retry_from_config_reads_section():
    retrying = retry_from_config({"retry": {"max_attempts": 5, "min_wait": 0, "max_wait": 1}})
    assert retrying.stop.max_attempt_number == 5


def test_retry_from_config_defaults():
    retrying = retry_from_config({})
    assert retrying.stop.max_attempt_number == 3
