"""Typed facade over the GraphQL operations used by a field update run.

Two failure channels:

* transport / GraphQL-level failures raise :class:`~projectfield.errors.GraphQLError`,
* expected-but-missing data (unknown project, unknown field, null mutation
  payload) returns ``None``.

The facade issues exactly one request per call; retries belong to the
transport.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .logging import get_logger
from .models import Field, FieldValue, Item, ItemsPage, OwnerKind
from .observability import span
from .projection import project_item
from .transport import GraphQLTransport

PAGE_SIZE = 100
# Safety valve against runaway pagination, not an expected project size
MAX_PAGES = 13

FIELD_VALUES_FRAGMENT = """
          fieldValues(first: 100) {
            nodes {
              __typename
              ... on ProjectV2ItemFieldDateValue {
                field {
                  ... on ProjectV2Field {
                    name
                  }
                }
                date
              }
              ... on ProjectV2ItemFieldIterationValue {
                field {
                  ... on ProjectV2IterationField {
                    name
                  }
                }
                title
              }
              ... on ProjectV2ItemFieldNumberValue {
                field {
                  ... on ProjectV2Field {
                    name
                  }
                }
                number
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                field {
                  ... on ProjectV2SingleSelectField {
                    name
                  }
                }
                name
              }
              ... on ProjectV2ItemFieldTextValue {
                field {
                  ... on ProjectV2Field {
                    name
                  }
                }
                text
              }
            }
          }"""

PROJECT_ID_QUERY = """
query fetchProjectV2Id($projectOwnerName: String!, $projectNumber: Int!) {{
  {owner_kind}(login: $projectOwnerName) {{
    projectV2(number: $projectNumber) {{
      id
    }}
  }}
}}
"""

FIELD_BY_NAME_QUERY = """
query fetchProjectV2FieldByName($projectV2Id: ID!, $fieldName: String!) {
  node(id: $projectV2Id) {
    ... on ProjectV2 {
      field(name: $fieldName) {
        __typename
        ... on ProjectV2Field {
          id
          name
          dataType
        }
        ... on ProjectV2SingleSelectField {
          id
          name
          dataType
          options {
            id
            name
          }
        }
        ... on ProjectV2IterationField {
          id
          name
          dataType
          configuration {
            completedIterations {
              id
              title
            }
            iterations {
              id
              title
            }
          }
        }
      }
    }
  }
}
"""

ITEMS_PAGE_QUERY = (
    """
query fetchProjectV2Items($projectV2Id: ID!, $after: String) {
  node(id: $projectV2Id) {
    ... on ProjectV2 {
      items(first: %d, after: $after) {
        edges {
          node {
            id
            type"""
    % PAGE_SIZE
    + FIELD_VALUES_FRAGMENT
    + """
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
  }
}
"""
)

ADD_ITEM_MUTATION = (
    """
mutation addProjectV2ItemById($projectV2Id: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: { projectId: $projectV2Id, contentId: $contentId }) {
    item {
      id
      type"""
    + FIELD_VALUES_FRAGMENT
    + """
    }
  }
}
"""
)

UPDATE_FIELD_VALUE_MUTATION = """
mutation updateProjectV2ItemFieldValue(
  $projectV2Id: ID!,
  $itemId: ID!,
  $fieldId: ID!,
  $value: ProjectV2FieldValue!
) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $projectV2Id,
    itemId: $itemId,
    fieldId: $fieldId,
    value: $value
  }) {
    projectV2Item {
      id
      type
    }
  }
}
"""


def _dig(data: Any, *path: str) -> Any:
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


class ProjectsGraphClient:
    def __init__(self, transport: GraphQLTransport) -> None:
        self.transport = transport
        self.logger = get_logger()

    def _execute(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        with span(f"graphql.{operation}", **{"graphql.operation.name": operation}):
            return self.transport.execute(query, variables)

    def fetch_project_id(
        self, owner_kind: OwnerKind, owner_name: str, number: int
    ) -> str | None:
        data = self._execute(
            "fetchProjectV2Id",
            PROJECT_ID_QUERY.format(owner_kind=owner_kind),
            {"projectOwnerName": owner_name, "projectNumber": number},
        )
        project_id = _dig(data, owner_kind, "projectV2", "id")
        return project_id if isinstance(project_id, str) else None

    def fetch_field_by_name(self, project_id: str, name: str) -> Field | None:
        data = self._execute(
            "fetchProjectV2FieldByName",
            FIELD_BY_NAME_QUERY,
            {"projectV2Id": project_id, "fieldName": name},
        )
        payload = _dig(data, "node", "field")
        if not isinstance(payload, Mapping) or "id" not in payload:
            return None
        return Field.from_payload(payload)

    def add_item_by_content_id(self, project_id: str, content_id: str) -> Item | None:
        data = self._execute(
            "addProjectV2ItemById",
            ADD_ITEM_MUTATION,
            {"projectV2Id": project_id, "contentId": content_id},
        )
        payload = _dig(data, "addProjectV2ItemById", "item")
        return project_item(payload) if isinstance(payload, Mapping) else None

    def update_item_field_value(
        self, project_id: str, item_id: str, field_id: str, value: FieldValue
    ) -> Item | None:
        data = self._execute(
            "updateProjectV2ItemFieldValue",
            UPDATE_FIELD_VALUE_MUTATION,
            {
                "projectV2Id": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "value": value.to_input(),
            },
        )
        payload = _dig(data, "updateProjectV2ItemFieldValue", "projectV2Item")
        return project_item(payload) if isinstance(payload, Mapping) else None

    def fetch_items_page(self, project_id: str, after: str = "") -> ItemsPage:
        data = self._execute(
            "fetchProjectV2Items",
            ITEMS_PAGE_QUERY,
            # an empty cursor means "from the start"
            {"projectV2Id": project_id, "after": after or None},
        )
        connection = _dig(data, "node", "items")
        if not isinstance(connection, Mapping):
            return ItemsPage(items=[], has_next_page=False)
        edges = connection.get("edges")
        items = [
            project_item(edge["node"])
            for edge in (edges if isinstance(edges, list) else [])
            if isinstance(edge, Mapping) and isinstance(edge.get("node"), Mapping)
        ]
        page_info = connection.get("pageInfo")
        has_next = bool(_dig(page_info, "hasNextPage"))
        end_cursor = _dig(page_info, "endCursor")
        return ItemsPage(
            items=items,
            has_next_page=has_next,
            end_cursor=end_cursor if isinstance(end_cursor, str) else "",
        )

    def fetch_all_items(self, project_id: str) -> list[Item]:
        all_items: list[Item] = []
        after = ""
        for page_number in range(1, MAX_PAGES + 1):
            page = self.fetch_items_page(project_id, after)
            all_items.extend(page.items)
            self.logger.debug(
                "fetched items page",
                page=page_number,
                after=after,
                count=len(page.items),
                has_next_page=page.has_next_page,
            )
            if not page.has_next_page:
                return all_items
            if not page.end_cursor:
                # an empty cursor would restart from the first page
                self.logger.warning(
                    "Page reports more items but no end cursor; stopped paginating",
                    project_id=project_id,
                    page=page_number,
                )
                return all_items
            after = page.end_cursor
        self.logger.warning(
            f"Stopped paginating after {MAX_PAGES} pages; remaining items are not updated",
            project_id=project_id,
        )
        return all_items


__all__ = [
    "MAX_PAGES",
    "PAGE_SIZE",
    "ProjectsGraphClient",
]
