"""Resolve a declared value into the ``ProjectV2FieldValue`` mutation input.

:func:`build_field_value` is pure: no I/O, no logging, same output for the
same inputs. Option and iteration lookups are exact, case-sensitive string
matches on the human-facing names.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .errors import InvalidNumber, IterationNotFound, OptionNotFound, UnsupportedFieldType
from .models import Field, FieldValue, Iteration


def parse_number(raw_value: str) -> float:
    text = raw_value.strip()
    if not text:
        raise InvalidNumber(raw_value)
    try:
        number = float(text)
    except ValueError as exc:
        raise InvalidNumber(raw_value) from exc
    if math.isnan(number) or math.isinf(number):
        raise InvalidNumber(raw_value)
    return number


def _find_iteration(iterations: Iterable[Iteration], title: str) -> Iteration | None:
    return next((it for it in iterations if it.title == title), None)


def build_field_value(field: Field, raw_value: str) -> FieldValue:
    data_type = field.data_type
    if data_type == "TEXT":
        return FieldValue("text", raw_value)
    if data_type == "NUMBER":
        return FieldValue("number", parse_number(raw_value))
    if data_type == "DATE":
        return FieldValue("date", raw_value)
    if data_type == "SINGLE_SELECT":
        option = next((o for o in field.options if o.name == raw_value), None)
        if option is None:
            raise OptionNotFound(raw_value)
        return FieldValue("singleSelectOptionId", option.id)
    if data_type == "ITERATION":
        # completed iterations win when titles collide
        iteration = _find_iteration(field.completed_iterations, raw_value) or _find_iteration(
            field.iterations, raw_value
        )
        if iteration is None:
            raise IterationNotFound(raw_value)
        return FieldValue("iterationId", iteration.id)
    raise UnsupportedFieldType(data_type)


__all__ = ["build_field_value", "parse_number"]
