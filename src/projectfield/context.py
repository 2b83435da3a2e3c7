"""Trigger context of the workflow run.

A Python rendition of the Actions toolkit ``context`` object: the event
payload plus the run metadata the runner exports as ``GITHUB_*`` variables.
It is built once at the edge (:meth:`TriggerContext.from_env`) and handed to
the orchestrator and to operator snippets explicitly.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError, MissingContentId
from .logging import get_logger
from .transport import DEFAULT_GRAPHQL_URL


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str


@dataclass(frozen=True)
class IssueRef:
    owner: str
    repo: str
    number: int | None


def load_event_payload(path: str | Path | None) -> dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        get_logger().warning(f"GITHUB_EVENT_PATH {p} does not exist")
        return {}
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Event payload {p} is not valid JSON: {exc}") from exc
    return raw if isinstance(raw, dict) else {}


@dataclass
class TriggerContext:
    payload: dict[str, Any] = field(default_factory=dict)
    event_name: str = ""
    sha: str = ""
    ref: str = ""
    workflow: str = ""
    action: str = ""
    actor: str = ""
    job: str = ""
    run_number: int = 0
    run_id: int = 0
    repository: str = ""
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    graphql_url: str = DEFAULT_GRAPHQL_URL

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, event_path: str | Path | None = None
    ) -> TriggerContext:
        env = os.environ if environ is None else environ

        def _int(name: str) -> int:
            try:
                return int(env.get(name, "0") or 0)
            except ValueError:
                return 0

        return cls(
            payload=load_event_payload(event_path or env.get("GITHUB_EVENT_PATH")),
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            sha=env.get("GITHUB_SHA", ""),
            ref=env.get("GITHUB_REF", ""),
            workflow=env.get("GITHUB_WORKFLOW", ""),
            action=env.get("GITHUB_ACTION", ""),
            actor=env.get("GITHUB_ACTOR", ""),
            job=env.get("GITHUB_JOB", ""),
            run_number=_int("GITHUB_RUN_NUMBER"),
            run_id=_int("GITHUB_RUN_ID"),
            repository=env.get("GITHUB_REPOSITORY", ""),
            api_url=env.get("GITHUB_API_URL") or "https://api.github.com",
            server_url=env.get("GITHUB_SERVER_URL") or "https://github.com",
            graphql_url=env.get("GITHUB_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
        )

    @property
    def repo(self) -> RepoRef:
        if self.repository and "/" in self.repository:
            owner, repo = self.repository.split("/", 1)
            return RepoRef(owner=owner, repo=repo)
        repository = self.payload.get("repository")
        if isinstance(repository, Mapping):
            owner = repository.get("owner")
            login = owner.get("login") if isinstance(owner, Mapping) else None
            name = repository.get("name")
            if isinstance(login, str) and isinstance(name, str):
                return RepoRef(owner=login, repo=name)
        raise ConfigError("context.repo requires GITHUB_REPOSITORY or a repository payload")

    @property
    def issue(self) -> IssueRef:
        source = self.payload.get("issue") or self.payload.get("pull_request") or self.payload
        number = source.get("number") if isinstance(source, Mapping) else None
        repo = self.repo
        return IssueRef(
            owner=repo.owner,
            repo=repo.repo,
            number=number if isinstance(number, int) else None,
        )

    def content_id(self) -> str:
        """Node id of the triggering issue or pull request."""
        for key in ("issue", "pull_request"):
            entity = self.payload.get(key)
            if isinstance(entity, Mapping):
                node_id = entity.get("node_id")
                if isinstance(node_id, str) and node_id:
                    return node_id
        raise MissingContentId()


__all__ = ["IssueRef", "RepoRef", "TriggerContext", "load_event_payload"]
