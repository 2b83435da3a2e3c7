from __future__ import annotations

import pytest

from projectfield.errors import (
    InvalidNumber,
    IterationNotFound,
    OptionNotFound,
    UnsupportedFieldType,
)
from projectfield.field_values import build_field_value, parse_number
from projectfield.models import VALUE_KINDS, Field, FieldOption, FieldValue, Iteration

STATUS = Field(
    id="field-status",
    name="Status",
    data_type="SINGLE_SELECT",
    typename="ProjectV2SingleSelectField",
    options=(
        FieldOption("1", "To Do"),
        FieldOption("2", "In Progress"),
        FieldOption("3", "Done"),
    ),
)

SPRINT = Field(
    id="field-iteration",
    name="Iteration",
    data_type="ITERATION",
    typename="ProjectV2IterationField",
    completed_iterations=(Iteration("c1", "Iteration 0"), Iteration("c2", "Shared")),
    iterations=(
        Iteration("1", "Iteration 1"),
        Iteration("2", "Iteration 2"),
        Iteration("a3", "Shared"),
    ),
)


def _field(data_type: str) -> Field:
    return Field(id=f"field-{data_type.lower()}", name=data_type.title(), data_type=data_type)


@pytest.mark.parametrize(
    ("field", "raw", "expected"),
    [
        (_field("TEXT"), "Hello, World!", {"text": "Hello, World!"}),
        (_field("NUMBER"), "100.2", {"number": 100.2}),
        (_field("DATE"), "2024-02-02", {"date": "2024-02-02"}),
        (STATUS, "Done", {"singleSelectOptionId": "3"}),
        (SPRINT, "Iteration 2", {"iterationId": "2"}),
    ],
)
def test_each_data_type_populates_exactly_its_key(field, raw, expected):
    value = build_field_value(field, raw)
    payload = value.to_input()
    assert payload == expected
    assert len(payload) == 1
    assert set(payload) <= set(VALUE_KINDS)


def test_text_and_date_are_passed_through_untouched():
    assert build_field_value(_field("TEXT"), "  padded  ").to_input() == {"text": "  padded  "}
    assert build_field_value(_field("DATE"), "not a date").to_input() == {"date": "not a date"}


def test_single_select_is_exact_and_case_sensitive():
    with pytest.raises(OptionNotFound, match="Option is not found: Missing"):
        build_field_value(STATUS, "Missing")
    with pytest.raises(OptionNotFound):
        build_field_value(STATUS, "done")
    with pytest.raises(OptionNotFound):
        build_field_value(STATUS, " Done")


def test_single_select_first_match_wins():
    field = Field(
        id="f",
        name="Dup",
        data_type="SINGLE_SELECT",
        options=(FieldOption("first", "Same"), FieldOption("second", "Same")),
    )
    assert build_field_value(field, "Same").to_input() == {"singleSelectOptionId": "first"}


def test_iteration_prefers_completed_iterations():
    assert build_field_value(SPRINT, "Shared").to_input() == {"iterationId": "c2"}
    assert build_field_value(SPRINT, "Iteration 0").to_input() == {"iterationId": "c1"}


def test_iteration_without_completed_iterations():
    field = Field(
        id="f",
        name="Iteration",
        data_type="ITERATION",
        iterations=(Iteration("1", "Iteration 1"), Iteration("2", "Iteration 2")),
    )
    assert build_field_value(field, "Iteration 2").to_input() == {"iterationId": "2"}


def test_iteration_not_found():
    with pytest.raises(IterationNotFound, match="Iteration is not found: Iteration 9"):
        build_field_value(SPRINT, "Iteration 9")


def test_unsupported_data_type():
    with pytest.raises(UnsupportedFieldType, match="Unsupported field data type: ASSIGNEES"):
        build_field_value(_field("ASSIGNEES"), "octocat")


@pytest.mark.parametrize("raw", ["abc", "", "   ", "nan", "inf", "1,5"])
def test_number_rejects_non_numeric_input(raw):
    with pytest.raises(InvalidNumber):
        build_field_value(_field("NUMBER"), raw)


def test_number_parsing_accepts_decimal_forms():
    assert parse_number(" 42 ") == 42.0
    assert parse_number("-0.5") == -0.5
    assert parse_number("1e3") == 1000.0


def test_build_field_value_is_deterministic():
    first = build_field_value(STATUS, "In Progress")
    second = build_field_value(STATUS, "In Progress")
    assert first == second
    assert first.to_input() == second.to_input() == {"singleSelectOptionId": "2"}


def test_field_value_rejects_unknown_kind():
    with pytest.raises(ValueError):
        FieldValue("labels", "bug")
