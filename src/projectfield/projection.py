"""Flatten raw ``ProjectV2Item`` payloads into :class:`~projectfield.models.Item`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .logging import get_logger
from .models import FieldScalar, Item

# __typename -> attribute carrying the value
VALUE_ATTRIBUTES: dict[str, str] = {
    "ProjectV2ItemFieldDateValue": "date",
    "ProjectV2ItemFieldIterationValue": "title",
    "ProjectV2ItemFieldNumberValue": "number",
    "ProjectV2ItemFieldSingleSelectValue": "name",
    "ProjectV2ItemFieldTextValue": "text",
}


def _field_name(node: Mapping[str, Any]) -> str | None:
    field = node.get("field")
    if not isinstance(field, Mapping):
        return None
    name = field.get("name")
    return name if isinstance(name, str) and name else None


def project_field_values(nodes: Any) -> dict[str, FieldScalar]:
    """Map field display name -> scalar for the five supported value kinds.

    Nodes without a field name or with another ``__typename`` (repository,
    labels, assignees, ...) are skipped.
    """
    values: dict[str, FieldScalar] = {}
    if not isinstance(nodes, list):
        return values
    for node in nodes:
        if not isinstance(node, Mapping):
            continue
        name = _field_name(node)
        if name is None:
            continue
        attribute = VALUE_ATTRIBUTES.get(str(node.get("__typename")))
        if attribute is None:
            get_logger().debug(
                "skipping unsupported field value", typename=node.get("__typename"), field=name
            )
            continue
        value = node.get(attribute)
        if value is not None:
            values[name] = value
    return values


def project_item(raw: Mapping[str, Any]) -> Item:
    field_values = raw.get("fieldValues")
    nodes = field_values.get("nodes") if isinstance(field_values, Mapping) else None
    item_type = raw.get("type")
    return Item(
        id=str(raw.get("id")),
        type=item_type if isinstance(item_type, str) else None,
        field_values=project_field_values(nodes),
    )


__all__ = ["VALUE_ATTRIBUTES", "project_field_values", "project_item"]
