from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

OwnerKind = Literal["organization", "user"]
FieldScalar = str | float | int

VALUE_KINDS = ("text", "number", "date", "singleSelectOptionId", "iterationId")


@dataclass(frozen=True)
class ProjectRef:
    owner_kind: OwnerKind
    owner_name: str
    number: int


@dataclass(frozen=True)
class FieldOption:
    id: str
    name: str


@dataclass(frozen=True)
class Iteration:
    id: str
    title: str


def _pairs(nodes: Any, label: str) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    if not isinstance(nodes, list):
        return out
    for node in nodes:
        if not isinstance(node, Mapping):
            continue
        node_id = node.get("id")
        node_label = node.get(label)
        if isinstance(node_id, str) and isinstance(node_label, str):
            out.append((node_id, node_label))
    return out


@dataclass(frozen=True)
class Field:
    """A project field as returned by the ``field(name:)`` lookup.

    ``data_type`` keeps whatever the API reported so unsupported kinds reach
    the value engine and fail there with a precise message.
    """

    id: str
    name: str
    data_type: str
    typename: str = "ProjectV2Field"
    options: tuple[FieldOption, ...] = ()
    completed_iterations: tuple[Iteration, ...] = ()
    iterations: tuple[Iteration, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Field:
        configuration = payload.get("configuration")
        completed: list[tuple[str, str]] = []
        active: list[tuple[str, str]] = []
        if isinstance(configuration, Mapping):
            completed = _pairs(configuration.get("completedIterations"), "title")
            active = _pairs(configuration.get("iterations"), "title")
        return cls(
            id=str(payload.get("id")),
            name=str(payload.get("name", "")),
            data_type=str(payload.get("dataType", "")),
            typename=str(payload.get("__typename", "ProjectV2Field")),
            options=tuple(FieldOption(i, n) for i, n in _pairs(payload.get("options"), "name")),
            completed_iterations=tuple(Iteration(i, t) for i, t in completed),
            iterations=tuple(Iteration(i, t) for i, t in active),
        )


@dataclass
class Item:
    """A project item flattened for snippet evaluation.

    ``field_values`` is keyed by the field's display name, not its id.
    """

    id: str
    type: str | None = None
    field_values: dict[str, FieldScalar] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.field_values.get(name, default)

    def __getitem__(self, name: str) -> FieldScalar:
        return self.field_values[name]


@dataclass(frozen=True)
class FieldValue:
    """``ProjectV2FieldValue`` input with exactly one populated key."""

    kind: str
    value: FieldScalar

    def __post_init__(self) -> None:
        if self.kind not in VALUE_KINDS:
            raise ValueError(f"Unknown field value kind: {self.kind}")

    def to_input(self) -> dict[str, FieldScalar]:
        return {self.kind: self.value}


@dataclass
class ItemsPage:
    items: list[Item]
    has_next_page: bool
    end_cursor: str = ""


__all__ = [
    "VALUE_KINDS",
    "Field",
    "FieldOption",
    "FieldScalar",
    "FieldValue",
    "Item",
    "ItemsPage",
    "Iteration",
    "OwnerKind",
    "ProjectRef",
]
