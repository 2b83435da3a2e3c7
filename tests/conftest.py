"""Pytest configuration for projectfield tests.

Puts the in-repo ``src`` directory on ``sys.path`` so the package imports
without an editable install, and isolates every test from the Actions
environment of whatever runner executes the suite.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from projectfield import logging as pf_logging  # noqa: E402

_RUNNER_VARS = (
    "GITHUB_ACTIONS",
    "GITHUB_OUTPUT",
    "GITHUB_EVENT_PATH",
    "GITHUB_EVENT_NAME",
    "GITHUB_REPOSITORY",
    "GITHUB_GRAPHQL_URL",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "GITHUB_ACCESS_TOKEN",
    "GH_ACCESS_TOKEN",
    "GITHUB_PAT",
    "RUNNER_DEBUG",
    "PROJECTFIELD_OTEL_EXPORTER",
    "PROJECTFIELD_RETRY_ATTEMPTS",
    "PROJECTFIELD_RETRY_BASE",
    "PROJECTFIELD_RETRY_MAX_SLEEP",
)


@pytest.fixture(autouse=True)
def _isolated_runner_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _RUNNER_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(pf_logging, "_GLOBAL", None)
    yield


