"""projectfield CLI.

Runs one field update. Inputs come from flags, an optional YAML config file
and the ``INPUT_*`` variables the Actions runner exports, in that order of
precedence, so the same entry point serves ``uses:`` steps and local shells::

    projectfield --project-url https://github.com/orgs/acme/projects/3 \\
        --field-name Status --field-value Done --event-path event.json
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence
from typing import Any

from . import __version__
from .actions import OutputWriter, set_failed
from .config import ActionInputs, build_inputs, collect_raw_inputs
from .context import TriggerContext
from .env_auth import create_env_auth_manager
from .errors import GraphQLError, classify_error, redact
from .evaluator import SnippetEvaluator
from .graph import ProjectsGraphClient
from .logging import StructuredLogger, configure_logging, get_logger
from .observability import configure_telemetry
from .orchestrator import run_update
from .transport import RequestsTransport

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.RawDescriptionHelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="projectfield",
        description="Update a GitHub Projects (v2) item field",
        formatter_class=_HelpFormatter,
        epilog=(
            "Every option may also be given as an Actions input "
            "(INPUT_<NAME>, e.g. INPUT_FIELD-NAME)."
        ),
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", help="YAML file with input values keyed by input name")
    p.add_argument("--project-url", help="Project URL (/orgs/<o>/projects/<n> or /users/...)")
    p.add_argument("--github-token", help="Token with project scope (env: GITHUB_TOKEN)")
    p.add_argument("--field-name", help="Name of the project field to update")
    p.add_argument("--field-value", help="Literal value to set")
    p.add_argument("--field-value-script", help="Snippet returning the value to set")
    p.add_argument("--skip-update-script", help="Snippet returning True to skip an item")
    p.add_argument(
        "--all-items",
        action="store_const",
        const="true",
        default=None,
        help="Update every item in the project instead of the triggering issue/PR",
    )
    p.add_argument("--snippet-timeout", help="Seconds a snippet may run (0 disables)")
    p.add_argument("--event-path", help="Event payload JSON (env: GITHUB_EVENT_PATH)")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument(
        "--json-logs", action="store_const", const="true", default=None, help="Emit JSON log lines"
    )
    return p


def _overrides(args: argparse.Namespace) -> dict[str, str | None]:
    return {
        "project-url": args.project_url,
        "github-token": args.github_token,
        "field-name": args.field_name,
        "field-value": args.field_value,
        "field-value-script": args.field_value_script,
        "skip-update-script": args.skip_update_script,
        "all-items": args.all_items,
        "snippet-timeout": args.snippet_timeout,
        "log-level": args.log_level,
        "json-logs": args.json_logs,
    }


def _configure_observability(logger: StructuredLogger) -> None:
    exporter = os.environ.get("PROJECTFIELD_OTEL_EXPORTER")
    if not exporter:
        return
    enabled = configure_telemetry(
        service_name="projectfield",
        exporter=exporter,
        endpoint=os.environ.get("PROJECTFIELD_OTEL_ENDPOINT"),
    )
    if not enabled:
        logger.warning("PROJECTFIELD_OTEL_EXPORTER set but the telemetry extra is not installed")


def _load_inputs(args: argparse.Namespace) -> ActionInputs:
    raw = collect_raw_inputs(overrides=_overrides(args), config_path=args.config)
    token_fallback = None
    if not (raw.get("github-token") or "").strip():
        token_fallback = create_env_auth_manager().get_github_token()
    return build_inputs(raw, token_fallback=token_fallback)


def execute(args: argparse.Namespace, outputs: OutputWriter) -> int:
    inputs = _load_inputs(args)
    logger = configure_logging(json_logging=inputs.json_logs, level=inputs.log_level)
    _configure_observability(logger)

    context = TriggerContext.from_env(event_path=args.event_path)
    client = ProjectsGraphClient(RequestsTransport(inputs.github_token, url=context.graphql_url))
    run_update(
        inputs,
        client,
        context,
        evaluator=SnippetEvaluator(inputs.snippet_timeout),
        outputs=outputs,
    )
    return 0


def _report_failure(exc: BaseException) -> int:
    info = classify_error(exc)
    extra: dict[str, Any] = {"category": info.category, "error_type": info.original_type}
    if isinstance(exc, GraphQLError) and exc.status is not None:
        extra["status"] = exc.status
    get_logger().debug("run failed", **extra)
    return set_failed(redact(str(exc)) or info.original_type)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    outputs = OutputWriter.from_env()
    try:
        return execute(args, outputs)
    except Exception as exc:  # noqa: BLE001 - any failure fails the step with its message
        return _report_failure(exc)


__all__ = ["main", "execute"]
