"""HTTP transport for the GitHub GraphQL API.

The rest of the package only sees :class:`GraphQLTransport`, a single
``execute(query, variables) -> data`` call. :class:`RequestsTransport` is the
production implementation on top of :mod:`requests`; tests substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from . import __version__
from .errors import GraphQLError, TransientGraphQLError
from .retry import RetryConfig, is_transient, run_with_retries

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = f"projectfield/{__version__}"
HTTP_OK = 200
HTTP_FORBIDDEN = 403
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})


class GraphQLTransport(Protocol):  # pragma: no cover - interface only
    def execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]: ...


def _retry_after(response: requests.Response) -> float | None:
    raw = response.headers.get("Retry-After") if response.headers else None
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass
class RequestsTransport:
    """GraphQL transport authenticated with a bearer token."""

    token: str = field(repr=False)
    url: str = DEFAULT_GRAPHQL_URL
    timeout: float = 30.0
    session: requests.Session | None = None
    retry: RetryConfig | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            }
        )

    def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._session.post(
                self.url,
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
        except requests.ConnectionError as exc:
            raise TransientGraphQLError(f"GraphQL request failed: {exc}") from exc
        except requests.Timeout as exc:
            raise TransientGraphQLError(f"GraphQL request timed out: {exc}") from exc

        if response.status_code != HTTP_OK:
            message = f"GraphQL request failed with HTTP {response.status_code}"
            text = response.text
            if response.status_code in TRANSIENT_STATUSES or (
                response.status_code == HTTP_FORBIDDEN and is_transient(text)
            ):
                raise TransientGraphQLError(
                    message,
                    status=response.status_code,
                    response_text=text,
                    retry_after=_retry_after(response),
                )
            raise GraphQLError(message, status=response.status_code, response_text=text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise GraphQLError(
                "GraphQL response was not valid JSON", status=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise GraphQLError("GraphQL response was not a JSON object")
        errors = payload.get("errors")
        if errors:
            messages = [
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            ]
            text = "; ".join(messages)
            if is_transient(text):
                raise TransientGraphQLError(f"GraphQL errors: {text}", errors=errors)
            raise GraphQLError(f"GraphQL errors: {text}", errors=errors)
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    def execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        return run_with_retries(lambda: self._post(query, variables), cfg=self.retry)


__all__ = [
    "DEFAULT_GRAPHQL_URL",
    "GraphQLTransport",
    "RequestsTransport",
]
