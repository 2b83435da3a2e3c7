from __future__ import annotations

import time
from typing import Any

import pytest

from projectfield import retry
from projectfield.errors import GraphQLError, TransientGraphQLError

FIRST_SUCCESS_ATTEMPT = 2  # transient once then success
RETRY_AFTER_SECONDS = 7.0
FLOAT_TOL = 0.05


@pytest.fixture()
def sleeps(monkeypatch: Any) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr(time, "sleep", recorded.append)
    return recorded


def test_is_transient_tokens():
    assert retry.is_transient("API rate limit exceeded for installation")
    assert retry.is_transient("You have exceeded a secondary rate limit")
    assert retry.is_transient("ABUSE DETECTION mechanism")
    assert not retry.is_transient("Could not resolve to a node with the global id")


def test_run_with_retries_transient_then_success(sleeps):
    attempts: list[int] = []

    def fn() -> str:
        attempts.append(1)
        if len(attempts) < FIRST_SUCCESS_ATTEMPT:
            raise TransientGraphQLError("GraphQL request failed with HTTP 502", status=502)
        return "ok"

    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.01))
    assert result == "ok"
    assert len(attempts) == FIRST_SUCCESS_ATTEMPT
    assert len(sleeps) == 1


def test_run_with_retries_non_transient_is_not_retried(sleeps):
    attempts: list[int] = []

    def fn() -> None:
        attempts.append(1)
        raise GraphQLError("GraphQL errors: Field 'bogus' doesn't exist")

    with pytest.raises(GraphQLError):
        retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=4, base_sleep=0.01))
    assert len(attempts) == 1
    assert sleeps == []


def test_run_with_retries_transient_exhausts(sleeps):
    attempts: list[int] = []

    def fn() -> None:
        attempts.append(1)
        raise TransientGraphQLError("secondary rate limit")

    cfg = retry.RetryConfig(attempts=3, base_sleep=0.0)
    with pytest.raises(TransientGraphQLError):
        retry.run_with_retries(fn, cfg=cfg)
    assert len(attempts) == cfg.attempts
    assert len(sleeps) == cfg.attempts - 1


def test_retry_honors_retry_after_attribute(sleeps):
    state = {"count": 0}

    def fn() -> str:
        state["count"] += 1
        if state["count"] == 1:
            raise TransientGraphQLError("HTTP 429", status=429, retry_after=RETRY_AFTER_SECONDS)
        return "ok"

    assert retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.01)) == "ok"
    assert (RETRY_AFTER_SECONDS - FLOAT_TOL) <= sleeps[0] <= (RETRY_AFTER_SECONDS + FLOAT_TOL)


def test_retry_parses_hint_from_message(sleeps):
    state = {"count": 0}

    def fn() -> str:
        state["count"] += 1
        if state["count"] == 1:
            raise TransientGraphQLError("rate limit hit, please wait 4 seconds")
        return "ok"

    retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=2, base_sleep=0.01))
    assert sleeps == [4.0]


def test_retry_max_sleep_cap(monkeypatch, sleeps):
    monkeypatch.setenv("PROJECTFIELD_RETRY_MAX_SLEEP", "1.5")
    state = {"count": 0}

    def fn() -> str:
        state["count"] += 1
        if state["count"] == 1:
            raise TransientGraphQLError("HTTP 429", retry_after=60)
        return "ok"

    retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=2, base_sleep=0.01))
    assert sleeps == [1.5]


def test_retry_config_reads_environment(monkeypatch):
    monkeypatch.setenv("PROJECTFIELD_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("PROJECTFIELD_RETRY_BASE", "0.25")
    cfg = retry.RetryConfig()
    assert cfg.attempts == 5
    assert cfg.base_sleep == 0.25
