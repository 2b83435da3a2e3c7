"""Error taxonomy & redaction.

Every domain failure a run can hit is a subclass of :class:`ProjectFieldError`.
Transport and GraphQL-level failures are :class:`GraphQLError` instead, so
callers can tell "the API call broke" apart from "the data is not there".
All of them are fatal: the CLI reports the redacted message and exits non-zero.

Public API:
- ProjectFieldError and its subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


class ProjectFieldError(RuntimeError):
    """Base class for domain failures of a field update run."""

    category = "generic"


class ConfigError(ProjectFieldError):
    category = "input"


class InputError(ProjectFieldError):
    """Raised when action inputs are missing or malformed."""

    category = "input"


class MissingFieldValue(InputError):
    def __init__(self) -> None:
        super().__init__("`field-value` or `field-value-script` is required.")


class InvalidProjectUrl(InputError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid project URL: {url}.")
        self.url = url


class UnsupportedOwnerType(InputError):
    def __init__(self, token: str | None) -> None:
        super().__init__(
            f"Unsupported ownerType: {token}. Must be one of 'orgs' or 'users'"
        )
        self.token = token


class MissingContentId(InputError):
    def __init__(self) -> None:
        super().__init__(
            "Trigger event payload has no issue or pull_request node_id"
        )


class ProjectIdUndefined(ProjectFieldError):
    def __init__(self) -> None:
        super().__init__("ProjectV2 ID is undefined")


class FieldNotFound(ProjectFieldError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Field is not found: {name}")
        self.name = name


class AddItemFailed(ProjectFieldError):
    def __init__(self) -> None:
        super().__init__("Failed to add item to project")


class UpdateFailed(ProjectFieldError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Failed to update item field value. item-id: {item_id}")
        self.item_id = item_id


class FieldValueError(ProjectFieldError):
    category = "field_value"


class OptionNotFound(FieldValueError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Option is not found: {value}")
        self.value = value


class IterationNotFound(FieldValueError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Iteration is not found: {value}")
        self.value = value


class UnsupportedFieldType(FieldValueError):
    def __init__(self, data_type: str) -> None:
        super().__init__(f"Unsupported field data type: {data_type}")
        self.data_type = data_type


class InvalidNumber(FieldValueError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid number for NUMBER field: {value!r}")
        self.value = value


class EvaluationError(ProjectFieldError):
    """Raised when an operator snippet fails to compile or run."""

    category = "snippet"


class EvaluationTimeout(EvaluationError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Snippet did not finish within {timeout:g}s")
        self.timeout = timeout


class GraphQLError(RuntimeError):
    """Raised when the GraphQL endpoint fails or returns ``errors``."""

    category = "graphql"
    transient = False

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        errors: list[Any] | None = None,
        response_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.errors = errors or []
        self.response_text = response_text


class TransientGraphQLError(GraphQLError):
    """A transport failure worth retrying (rate limits, gateway errors)."""

    transient = True

    def __init__(self, message: str, *, retry_after: float | None = None, **kw: Any) -> None:
        super().__init__(message, **kw)
        self.retry_after = retry_after


# GitHub token shapes; extend when new prefixes appear
_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"gh[pousr]_[A-Za-z0-9]{20,255}"),
    re.compile(r"github_pat_\w{20,}"),
    re.compile(r"(?i)(authorization:\s*bearer\s+)\S+"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Replace token-looking substrings with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        if pat.groups:
            redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
        else:
            redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception for failure reporting.

    Rate limits win over everything else; domain and GraphQL errors then use
    their own ``category``; the rest is sorted by message keywords before
    falling back to ``generic``.
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    name = exc.__class__.__name__

    if "rate limit" in low or "secondary rate" in low:
        return ErrorInfo("github.rate_limit", redact(msg), name, transient=True)
    category = getattr(exc, "category", None)
    if isinstance(category, str) and category != "generic":
        transient = bool(getattr(exc, "transient", False))
        return ErrorInfo(category, redact(msg), name, transient=transient)
    if any(k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "AddItemFailed",
    "ConfigError",
    "ErrorInfo",
    "EvaluationError",
    "EvaluationTimeout",
    "FieldNotFound",
    "FieldValueError",
    "GraphQLError",
    "InputError",
    "InvalidNumber",
    "InvalidProjectUrl",
    "IterationNotFound",
    "MissingContentId",
    "MissingFieldValue",
    "OptionNotFound",
    "ProjectFieldError",
    "ProjectIdUndefined",
    "TransientGraphQLError",
    "UnsupportedFieldType",
    "UnsupportedOwnerType",
    "UpdateFailed",
    "classify_error",
    "redact",
]
