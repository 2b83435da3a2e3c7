"""Backoff for transient GraphQL transport failures.

``run_with_retries`` re-invokes a thunk only while it raises
:class:`~projectfield.errors.TransientGraphQLError` (rate limits, gateway
errors, dropped connections). Any other exception escapes on the first
attempt. The Graph Client facade above the transport never retries.

Environment overrides:
  PROJECTFIELD_RETRY_ATTEMPTS   total attempts, default 3
  PROJECTFIELD_RETRY_BASE       first backoff in seconds, default 0.5
  PROJECTFIELD_RETRY_MAX_SLEEP  upper bound for any single sleep
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .errors import TransientGraphQLError
from .logging import get_logger

T = TypeVar("T")

# matched case-insensitively against response bodies and GraphQL error messages
RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limited",
    "secondary rate",
    "abuse detection",
)

_BACKOFF_HINTS = (
    re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE),
)
_JITTER = random.SystemRandom()


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class RetryConfig:
    attempts: int = field(
        default_factory=lambda: int(os.environ.get("PROJECTFIELD_RETRY_ATTEMPTS", "3"))
    )
    base_sleep: float = field(
        default_factory=lambda: _env_float("PROJECTFIELD_RETRY_BASE", 0.5) or 0.0
    )


def is_transient(text: str) -> bool:
    """True when ``text`` reads like a GitHub rate-limit rejection."""
    lowered = text.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def backoff_hint(text: str) -> float | None:
    """Seconds the server asked us to wait, if the message says so.

    Recognises ``Retry-After: 12``, ``retry after 12`` and ``wait 30 seconds``.
    """
    for pattern in _BACKOFF_HINTS:
        found = pattern.search(text or "")
        if found and int(found.group(1)) > 0:
            return float(found.group(1))
    return None


def _sleep_for(attempt: int, cfg: RetryConfig, exc: TransientGraphQLError) -> float:
    requested = exc.retry_after if exc.retry_after is not None else backoff_hint(str(exc))
    if requested is None:
        requested = cfg.base_sleep * 2 ** (attempt - 1) + _JITTER.uniform(0, 0.25)
    cap = _env_float("PROJECTFIELD_RETRY_MAX_SLEEP", None)
    if cap is not None and cap >= 0:
        return min(requested, cap)
    return requested


def run_with_retries(fn: Callable[[], T], *, cfg: RetryConfig | None = None) -> T:
    cfg = cfg or RetryConfig()
    total = max(1, cfg.attempts)
    attempt = 1
    while True:
        try:
            return fn()
        except TransientGraphQLError as exc:
            if attempt >= total:
                raise
            delay = _sleep_for(attempt, cfg, exc)
            get_logger().warning(
                f"Transient GraphQL failure ({attempt}/{total}), retrying in {delay:.2f}s",
                error=str(exc),
                status=exc.status,
            )
            time.sleep(delay)
            attempt += 1


__all__ = ["RATE_LIMIT_MARKERS", "RetryConfig", "backoff_hint", "is_transient", "run_with_retries"]
