from __future__ import annotations

import json

import pytest

from projectfield.context import TriggerContext, load_event_payload
from projectfield.errors import ConfigError, MissingContentId
from projectfield.transport import DEFAULT_GRAPHQL_URL


def test_from_env_reads_event_and_run_metadata(tmp_path):
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"action": "opened", "issue": {"number": 7, "node_id": "I_7"}}))
    context = TriggerContext.from_env(
        {
            "GITHUB_EVENT_PATH": str(event),
            "GITHUB_EVENT_NAME": "issues",
            "GITHUB_REPOSITORY": "myorg/widgets",
            "GITHUB_RUN_ID": "123",
            "GITHUB_RUN_NUMBER": "not-a-number",
            "GITHUB_GRAPHQL_URL": "https://ghe.example.com/api/graphql",
        }
    )
    assert context.payload["action"] == "opened"
    assert context.event_name == "issues"
    assert context.run_id == 123
    assert context.run_number == 0
    assert context.graphql_url == "https://ghe.example.com/api/graphql"
    assert context.content_id() == "I_7"
    assert context.issue.number == 7
    assert (context.repo.owner, context.repo.repo) == ("myorg", "widgets")


def test_from_env_explicit_event_path_wins(tmp_path):
    event = tmp_path / "local.json"
    event.write_text(json.dumps({"pull_request": {"node_id": "PR_1", "number": 3}}))
    context = TriggerContext.from_env({"GITHUB_EVENT_PATH": "/nonexistent"}, event_path=event)
    assert context.content_id() == "PR_1"
    assert context.graphql_url == DEFAULT_GRAPHQL_URL


def test_repo_falls_back_to_payload():
    context = TriggerContext(
        payload={"repository": {"name": "widgets", "owner": {"login": "myorg"}}}
    )
    assert context.repo.owner == "myorg"
    with pytest.raises(ConfigError):
        _ = TriggerContext().repo


def test_content_id_missing():
    with pytest.raises(MissingContentId):
        TriggerContext(payload={"issue": {"number": 1}}).content_id()


def test_load_event_payload_edge_cases(tmp_path):
    assert load_event_payload(None) == {}
    assert load_event_payload(tmp_path / "missing.json") == {}
    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]")
    assert load_event_payload(listing) == {}
    broken = tmp_path / "broken.json"
    broken.write_text("{")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_event_payload(broken)
