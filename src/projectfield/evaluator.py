"""Evaluation of operator-supplied snippets.

A snippet is a short piece of Python. Its statements become the body of a
function whose parameters are the bindings (``context`` and ``item`` in a
normal run), so ``return`` works, and a trailing bare expression is returned
as the result::

    item.get("Status") == "Done"

    if context.payload["action"] == "closed":
        return "Done"
    return "In Progress"

Globals are closed: a curated set of builtins plus ``logger`` and
``environ``. Imports and dunder names are rejected before anything runs, so an
unresolved identifier fails with ``NameError``. This keeps typos and stray
ambient state out; it is not a security boundary against a hostile author of
the workflow file, who already controls the job.
"""

from __future__ import annotations

import ast
import builtins
import logging
import os
import threading
from collections.abc import Callable, Mapping
from types import CodeType, MappingProxyType
from typing import Any

from .errors import EvaluationError, EvaluationTimeout
from .logging import get_logger

DEFAULT_TIMEOUT = 30.0
SNIPPET_FILENAME = "<snippet>"
_FUNCTION_NAME = "snippet"

_ALLOWED_BUILTINS = (
    "abs",
    "all",
    "any",
    "bool",
    "callable",
    "dict",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "format",
    "frozenset",
    "hasattr",
    "int",
    "isinstance",
    "len",
    "list",
    "map",
    "max",
    "min",
    "next",
    "print",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "sorted",
    "str",
    "sum",
    "tuple",
    "zip",
    "ArithmeticError",
    "AttributeError",
    "Exception",
    "IndexError",
    "KeyError",
    "LookupError",
    "RuntimeError",
    "TypeError",
    "ValueError",
    "ZeroDivisionError",
)

SAFE_BUILTINS: Mapping[str, Any] = MappingProxyType(
    {name: getattr(builtins, name) for name in _ALLOWED_BUILTINS}
)


class _Guard(ast.NodeVisitor):
    def visit_Import(self, node: ast.Import) -> None:
        raise EvaluationError(f"Snippets cannot import modules (line {node.lineno})")

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        raise EvaluationError(f"Snippets cannot import modules (line {node.lineno})")

    def visit_Yield(self, node: ast.Yield) -> None:
        raise EvaluationError(f"Snippets cannot use yield (line {node.lineno})")

    def visit_YieldFrom(self, node: ast.YieldFrom) -> None:
        raise EvaluationError(f"Snippets cannot use yield (line {node.lineno})")

    def visit_Await(self, node: ast.Await) -> None:
        raise EvaluationError(f"Snippets cannot use await (line {node.lineno})")

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if node.attr.startswith("__"):
            raise EvaluationError(
                f"Snippets cannot access dunder attribute '{node.attr}' (line {node.lineno})"
            )
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id.startswith("__"):
            raise EvaluationError(f"Snippets cannot use name '{node.id}' (line {node.lineno})")


def _compile(source: str, params: tuple[str, ...]) -> CodeType:
    try:
        module = ast.parse(source, filename=SNIPPET_FILENAME, mode="exec")
    except SyntaxError as exc:
        raise EvaluationError(f"Snippet has a syntax error: {exc.msg} (line {exc.lineno})") from exc
    _Guard().visit(module)

    body: list[ast.stmt] = list(module.body) or [ast.Pass()]
    last = body[-1]
    if isinstance(last, ast.Expr):
        body[-1] = ast.copy_location(ast.Return(value=last.value), last)

    wrapper = ast.parse(f"def {_FUNCTION_NAME}({', '.join(params)}):\n    pass\n")
    func = wrapper.body[0]
    assert isinstance(func, ast.FunctionDef)
    func.body = body
    ast.fix_missing_locations(wrapper)
    try:
        code = compile(wrapper, SNIPPET_FILENAME, "exec")
    except SyntaxError as exc:
        raise EvaluationError(f"Snippet has a syntax error: {exc.msg} (line {exc.lineno})") from exc
    return code


class SnippetEvaluator:
    """Compile and run snippets against an explicit set of bindings."""

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        *,
        logger: logging.Logger | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self._logger = logger or get_logger().stdlib.getChild("snippet")
        source_env = os.environ if environ is None else environ
        # process metadata only; credentials stay out of snippet reach
        self._environ = MappingProxyType(
            {k: v for k, v in source_env.items() if "TOKEN" not in k.upper()}
        )
        self._compiled: dict[tuple[str, tuple[str, ...]], CodeType] = {}

    def _function(self, source: str, params: tuple[str, ...]) -> Callable[..., Any]:
        key = (source, params)
        code = self._compiled.get(key)
        if code is None:
            code = _compile(source, params)
            self._compiled[key] = code
        namespace: dict[str, Any] = {
            "__builtins__": dict(SAFE_BUILTINS),
            "logger": self._logger,
            "environ": self._environ,
        }
        exec(code, namespace)  # nosec B102 - runs operator snippets with closed globals
        fn: Callable[..., Any] = namespace[_FUNCTION_NAME]
        return fn

    def _run_bounded(self, fn: Callable[..., Any], args: list[Any]) -> Any:
        if not self.timeout:
            return fn(*args)
        outcome: dict[str, Any] = {}

        def _target() -> None:
            try:
                outcome["value"] = fn(*args)
            except BaseException as exc:  # noqa: BLE001 - re-raised on the calling thread
                outcome["error"] = exc

        # abandoned on timeout; must not block interpreter exit
        worker = threading.Thread(target=_target, name="projectfield-snippet", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise EvaluationTimeout(self.timeout)
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("value")

    def _call(
        self, bindings: Mapping[str, Any], source: str, convert: Callable[[Any], Any]
    ) -> Any:
        params = tuple(bindings)
        for name in params:
            if not name.isidentifier() or name.startswith("__"):
                raise EvaluationError(f"Invalid binding name: {name!r}")
        fn = self._function(source, params)
        try:
            return convert(self._run_bounded(fn, [bindings[name] for name in params]))
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(
                f"Snippet raised {exc.__class__.__name__}: {exc}"
            ) from exc

    def evaluate(self, bindings: Mapping[str, Any], source: str) -> Any:
        return self._call(bindings, source, lambda value: value)

    def evaluate_flag(self, bindings: Mapping[str, Any], source: str) -> bool:
        """Evaluate ``source`` and return the truthiness of its result."""
        result: bool = self._call(bindings, source, bool)
        return result


def evaluate_snippet(
    bindings: Mapping[str, Any], source: str, *, timeout: float | None = DEFAULT_TIMEOUT
) -> Any:
    """One-off convenience wrapper around :class:`SnippetEvaluator`."""
    return SnippetEvaluator(timeout).evaluate(bindings, source)


__all__ = ["DEFAULT_TIMEOUT", "SAFE_BUILTINS", "SnippetEvaluator", "evaluate_snippet"]
