"""GitHub Actions runner plumbing: step outputs and failure reporting."""

from __future__ import annotations

import os
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from .logging import escape_data, get_logger


class OutputWriter:
    """Append step outputs to the file named by ``GITHUB_OUTPUT``.

    Without that file (local runs) outputs are only logged. Every value is
    written as soon as it is set, so outputs recorded before a failure stay.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self.values: dict[str, str] = {}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OutputWriter:
        env = os.environ if environ is None else environ
        return cls(env.get("GITHUB_OUTPUT") or None)

    def set_output(self, name: str, value: str) -> None:
        self.values[name] = value
        if self.path is None:
            get_logger().info(f"output {name}={value}")
            return
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(_format_output(name, value))

    __call__ = set_output


def _format_output(name: str, value: str) -> str:
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def set_failed(message: str, stream: TextIO | None = None) -> int:
    """Report ``message`` as the step failure and return the exit code."""
    out = stream or sys.stdout
    out.write(f"::error::{escape_data(message)}\n")
    out.flush()
    return 1


__all__ = ["OutputWriter", "set_failed"]
