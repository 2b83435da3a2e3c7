from __future__ import annotations

import logging
import threading

import pytest

from projectfield.errors import EvaluationError, EvaluationTimeout
from projectfield.evaluator import SnippetEvaluator, evaluate_snippet
from projectfield.models import Item


@pytest.fixture()
def evaluator() -> SnippetEvaluator:
    return SnippetEvaluator(timeout=5, environ={"GITHUB_REF": "refs/heads/main", "GITHUB_TOKEN": "x"})


def test_explicit_return(evaluator):
    assert evaluator.evaluate({"a": 2, "b": 3}, "return a + b") == 5


def test_trailing_expression_is_returned(evaluator):
    item = Item(id="i1", field_values={"Status": "Done"})
    assert evaluator.evaluate({"item": item}, 'item.get("Status") == "Done"') is True


def test_multi_statement_snippet(evaluator):
    source = "\n".join(
        [
            'if payload["action"] == "closed":',
            '    return "Done"',
            'return "In Progress"',
        ]
    )
    assert evaluator.evaluate({"payload": {"action": "closed"}}, source) == "Done"
    assert evaluator.evaluate({"payload": {"action": "opened"}}, source) == "In Progress"


def test_snippet_without_result_returns_none(evaluator):
    assert evaluator.evaluate({}, "x = 1") is None
    assert evaluator.evaluate({}, "") is None


def test_unresolved_identifier_fails(evaluator):
    with pytest.raises(EvaluationError, match="NameError"):
        evaluator.evaluate({"item": None}, "return context")


def test_runtime_error_is_wrapped(evaluator):
    with pytest.raises(EvaluationError, match="ZeroDivisionError") as excinfo:
        evaluator.evaluate({}, "1 / 0")
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)


def test_syntax_error_is_reported(evaluator):
    with pytest.raises(EvaluationError, match="syntax error"):
        evaluator.evaluate({}, "return (")


@pytest.mark.parametrize(
    "source",
    ["import os", "from os import path", "return ().__class__", "return __import__('os')"],
)
def test_imports_and_dunders_are_rejected(evaluator, source):
    with pytest.raises(EvaluationError, match="Snippets cannot"):
        evaluator.evaluate({}, source)


def test_open_is_not_available(evaluator):
    with pytest.raises(EvaluationError, match="NameError"):
        evaluator.evaluate({}, "open('/etc/passwd')")


def test_environ_excludes_tokens(evaluator):
    assert evaluator.evaluate({}, 'environ["GITHUB_REF"]') == "refs/heads/main"
    assert evaluator.evaluate({}, '"GITHUB_TOKEN" in environ') is False


def test_logger_is_available(caplog):
    evaluator = SnippetEvaluator(timeout=5, logger=logging.getLogger("snippet-test"))
    with caplog.at_level(logging.INFO, logger="snippet-test"):
        evaluator.evaluate({"n": 3}, 'logger.info("count=%s", n)')
    assert "count=3" in caplog.text


def test_timeout_is_enforced():
    gate = threading.Event()
    evaluator = SnippetEvaluator(timeout=0.2)
    try:
        with pytest.raises(EvaluationTimeout, match="0.2s"):
            evaluator.evaluate({"gate": gate}, "gate.wait(10)")
    finally:
        gate.set()


def test_timeout_can_be_disabled():
    assert SnippetEvaluator(timeout=0).evaluate({}, "sum(range(10))") == 45


def test_invalid_binding_name(evaluator):
    with pytest.raises(EvaluationError, match="Invalid binding name"):
        evaluator.evaluate({"not valid": 1}, "return 1")


def test_evaluate_snippet_helper():
    assert evaluate_snippet({"value": "a"}, "value.upper()") == "A"


@pytest.mark.parametrize(
    "source",
    ["yield True", "yield from [1]", "x = [(yield) for _ in range(1)]"],
)
def test_generators_are_rejected(evaluator, source):
    with pytest.raises(EvaluationError, match="yield"):
        evaluator.evaluate({}, source)


def test_evaluate_flag_returns_truthiness(evaluator):
    assert evaluator.evaluate_flag({"items": []}, "items") is False
    assert evaluator.evaluate_flag({"items": [1]}, "items") is True


def test_evaluate_flag_wraps_truthiness_errors(evaluator):
    class _Ambiguous:
        def __bool__(self) -> bool:
            raise ValueError("truth value is ambiguous")

    with pytest.raises(EvaluationError, match="ValueError") as excinfo:
        evaluator.evaluate_flag({"value": _Ambiguous()}, "value")
    assert isinstance(excinfo.value.__cause__, ValueError)
