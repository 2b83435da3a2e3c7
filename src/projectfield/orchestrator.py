"""Sequencing of a field update run.

validate inputs -> resolve project id -> resolve field -> single item (add the
triggering issue/PR) or all items (paginate) -> per-item update.

Every error is fatal and aborts the rest of the run, including the remaining
items of an all-items update: items before the failing one were updated,
items from it onwards were not.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import ActionInputs
from .context import TriggerContext
from .errors import (
    AddItemFailed,
    FieldNotFound,
    MissingFieldValue,
    ProjectIdUndefined,
    UpdateFailed,
)
from .evaluator import SnippetEvaluator
from .field_values import build_field_value
from .graph import ProjectsGraphClient
from .logging import get_logger
from .models import Field, FieldValue, Item
from .urls import resolve_project_url

OutputSink = Callable[[str, str], None]


def _discard_output(name: str, value: str) -> None:  # pragma: no cover - trivial
    return


class ItemOutcome(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass
class RunResult:
    project_id: str
    field_id: str
    item_id: str | None = None
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def record(self, item: Item, outcome: ItemOutcome) -> None:
        (self.updated if outcome is ItemOutcome.UPDATED else self.skipped).append(item.id)


class FieldUpdater:
    def __init__(
        self,
        inputs: ActionInputs,
        client: ProjectsGraphClient,
        context: TriggerContext,
        *,
        evaluator: SnippetEvaluator | None = None,
        outputs: OutputSink | None = None,
    ) -> None:
        self.inputs = inputs
        self.client = client
        self.context = context
        self.evaluator = evaluator or SnippetEvaluator(inputs.snippet_timeout)
        self.outputs = outputs or _discard_output
        self.logger = get_logger()

    def validate_inputs(self) -> None:
        if self.inputs.field_value == "" and self.inputs.field_value_script == "":
            raise MissingFieldValue()

    def resolve_project_id(self) -> str:
        ref = resolve_project_url(self.inputs.project_url)
        self.logger.debug(
            "resolved project url",
            owner_kind=ref.owner_kind,
            owner_name=ref.owner_name,
            project_number=ref.number,
        )
        project_id = self.client.fetch_project_id(ref.owner_kind, ref.owner_name, ref.number)
        if not project_id:
            raise ProjectIdUndefined()
        return project_id

    def resolve_field(self, project_id: str) -> Field:
        field_meta = self.client.fetch_field_by_name(project_id, self.inputs.field_name)
        if field_meta is None:
            raise FieldNotFound(self.inputs.field_name)
        return field_meta

    def _bindings(self, item: Item) -> dict[str, Any]:
        return {"context": self.context, "item": item}

    def should_skip(self, item: Item) -> bool:
        script = self.inputs.skip_update_script
        if not script:
            return False
        is_skip = self.evaluator.evaluate_flag(self._bindings(item), script)
        self.logger.debug(f"isSkip: {is_skip!r}", item_id=item.id)
        return is_skip

    def resolve_value(self, item: Item) -> str:
        if self.inputs.field_value != "":
            return self.inputs.field_value
        return str(self.evaluator.evaluate(self._bindings(item), self.inputs.field_value_script))

    def update_item(self, project_id: str, item: Item, field_meta: Field) -> ItemOutcome:
        if self.should_skip(item):
            self.logger.info(f"Skip updating the field. item-id: {item.id}")
            return ItemOutcome.SKIPPED

        value: FieldValue = build_field_value(field_meta, self.resolve_value(item))
        updated = self.client.update_item_field_value(project_id, item.id, field_meta.id, value)
        if updated is None:
            raise UpdateFailed(item.id)

        self.logger.info(f"Update the project V2 item field. item-id: {item.id}")
        self.logger.debug(f"ProjectV2 ID: {project_id}")
        self.logger.debug(f"Item ID: {item.id}")
        self.logger.debug(f"Field ID: {field_meta.id}")
        self.logger.debug(f"Field Value: {json.dumps(value.to_input(), separators=(',', ':'))}")
        return ItemOutcome.UPDATED

    def update_single_item(self, project_id: str, field_meta: Field, result: RunResult) -> None:
        content_id = self.context.content_id()
        self.logger.debug(f"Content ID: {content_id}")
        item = self.client.add_item_by_content_id(project_id, content_id)
        if item is None:
            raise AddItemFailed()
        outcome = self.update_item(project_id, item, field_meta)
        result.record(item, outcome)
        if outcome is ItemOutcome.UPDATED:
            result.item_id = item.id
            self.outputs("itemId", item.id)

    def update_all_items(self, project_id: str, field_meta: Field, result: RunResult) -> None:
        items = self.client.fetch_all_items(project_id)
        self.logger.info(f"Updating {len(items)} project items", project_id=project_id)
        for item in items:
            result.record(item, self.update_item(project_id, item, field_meta))

    def run(self) -> RunResult:
        self.validate_inputs()
        with self.logger.timed_operation("resolve_project"):
            project_id = self.resolve_project_id()
        self.outputs("projectId", project_id)
        field_meta = self.resolve_field(project_id)
        result = RunResult(project_id=project_id, field_id=field_meta.id)
        if self.inputs.all_items:
            self.update_all_items(project_id, field_meta, result)
        else:
            self.update_single_item(project_id, field_meta, result)
        self.logger.log_operation(
            "update_complete",
            project_id=project_id,
            updated=len(result.updated),
            skipped=len(result.skipped),
        )
        return result


def run_update(
    inputs: ActionInputs,
    client: ProjectsGraphClient,
    context: TriggerContext,
    *,
    evaluator: SnippetEvaluator | None = None,
    outputs: OutputSink | None = None,
) -> RunResult:
    return FieldUpdater(inputs, client, context, evaluator=evaluator, outputs=outputs).run()


__all__ = ["FieldUpdater", "ItemOutcome", "OutputSink", "RunResult", "run_update"]
