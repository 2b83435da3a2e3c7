"""Project URL parsing.

Only the path matters: ``/orgs/<name>/projects/<n>`` or
``/users/<name>/projects/<n>``. Hosts other than github.com are accepted so
GitHub Enterprise Server URLs work unchanged.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .errors import InvalidProjectUrl, UnsupportedOwnerType
from .models import OwnerKind, ProjectRef

_PROJECT_PATH = re.compile(
    r"/(?P<owner_type>orgs|users)/(?P<owner_name>[^/]+)/projects/(?P<number>\d+)"
)

_OWNER_KINDS: dict[str, OwnerKind] = {
    "orgs": "organization",
    "users": "user",
}


def owner_kind_for(token: str | None) -> OwnerKind:
    """Map the URL owner segment to the GraphQL root field name."""
    if token is None or token not in _OWNER_KINDS:
        raise UnsupportedOwnerType(token)
    return _OWNER_KINDS[token]


def resolve_project_url(url: str) -> ProjectRef:
    match = _PROJECT_PATH.search(urlsplit(url).path)
    if not match:
        raise InvalidProjectUrl(url)
    return ProjectRef(
        owner_kind=owner_kind_for(match.group("owner_type")),
        owner_name=match.group("owner_name"),
        number=int(match.group("number")),
    )


__all__ = ["owner_kind_for", "resolve_project_url"]
