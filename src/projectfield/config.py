from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigError, InputError
from .evaluator import DEFAULT_TIMEOUT

INPUT_NAMES = (
    "project-url",
    "github-token",
    "field-name",
    "field-value",
    "field-value-script",
    "skip-update-script",
    "all-items",
    "snippet-timeout",
    "log-level",
    "json-logs",
)
REQUIRED_INPUTS = ("project-url", "github-token", "field-name")

_TRUE_VALUES = ("true", "True", "TRUE")
_FALSE_VALUES = ("false", "False", "FALSE")


@dataclass
class ActionInputs:
    project_url: str
    github_token: str
    field_name: str
    field_value: str = ""
    field_value_script: str = ""
    skip_update_script: str | None = None
    all_items: bool = False
    snippet_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    json_logs: bool = False

    def __repr__(self) -> str:  # keep the token out of tracebacks and logs
        return (
            f"ActionInputs(project_url={self.project_url!r}, field_name={self.field_name!r}, "
            f"all_items={self.all_items!r})"
        )


def input_env_name(name: str) -> str:
    """Environment variable the Actions runner uses for input ``name``."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def parse_boolean(name: str, value: str) -> bool:
    """Parse a boolean input with the Actions YAML 1.2 core-schema grammar."""
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def _resolve_env_var(value: Any, environ: Mapping[str, str]) -> Any:
    """Resolve ``$NAME`` values from the environment, keeping the literal if unset."""
    if isinstance(value, str) and value.startswith("$") and len(value) > 1:
        return environ.get(value[1:], value)
    return value


def load_config_file(path: str | Path, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Load input values from a YAML mapping keyed by input name.

    Keys may use dashes or underscores. Booleans and numbers are turned back
    into the strings the Actions runner would have passed.
    """
    env = os.environ if environ is None else environ
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Configuration file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file {p} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {p} must contain a mapping")
    values: dict[str, str] = {}
    for key, value in cast(dict[str, Any], raw).items():
        name = str(key).replace("_", "-")
        if name not in INPUT_NAMES:
            raise ConfigError(f"Unknown option '{key}' in {p}")
        if value is None:
            continue
        value = _resolve_env_var(value, env)
        if isinstance(value, bool):
            value = "true" if value else "false"
        values[name] = str(value)
    return values


def collect_raw_inputs(
    *,
    overrides: Mapping[str, str | None] | None = None,
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge input sources: CLI overrides > config file > ``INPUT_*`` env."""
    env = os.environ if environ is None else environ
    merged: dict[str, str] = {}
    for name in INPUT_NAMES:
        value = env.get(input_env_name(name))
        if value is not None:
            merged[name] = value
    if config_path:
        merged.update(load_config_file(config_path, env))
    for name, value in (overrides or {}).items():
        if value is not None:
            merged[name] = value
    return merged


def build_inputs(raw: Mapping[str, str], *, token_fallback: str | None = None) -> ActionInputs:
    """Validate raw string inputs into :class:`ActionInputs`.

    Values are trimmed like ``core.getInput`` does; snippet bodies keep their
    inner whitespace.
    """
    values = {name: (raw.get(name) or "").strip() for name in INPUT_NAMES}
    if not values["github-token"] and token_fallback:
        values["github-token"] = token_fallback
    for name in REQUIRED_INPUTS:
        if not values[name]:
            raise InputError(f"Input required and not supplied: {name}")

    timeout_raw = values["snippet-timeout"]
    try:
        snippet_timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
    except ValueError as exc:
        raise InputError(f"snippet-timeout must be a number of seconds: {timeout_raw!r}") from exc
    if snippet_timeout < 0:
        raise InputError("snippet-timeout must not be negative")

    return ActionInputs(
        project_url=values["project-url"],
        github_token=values["github-token"],
        field_name=values["field-name"],
        field_value=values["field-value"],
        field_value_script=values["field-value-script"],
        skip_update_script=values["skip-update-script"] or None,
        all_items=parse_boolean("all-items", values["all-items"]) if values["all-items"] else False,
        snippet_timeout=snippet_timeout,
        log_level=values["log-level"] or "INFO",
        json_logs=parse_boolean("json-logs", values["json-logs"]) if values["json-logs"] else False,
    )


__all__ = [
    "ActionInputs",
    "INPUT_NAMES",
    "REQUIRED_INPUTS",
    "build_inputs",
    "collect_raw_inputs",
    "input_env_name",
    "load_config_file",
    "parse_boolean",
]
