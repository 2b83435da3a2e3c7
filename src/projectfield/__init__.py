"""projectfield - update a GitHub Projects (v2) item field from CI.

High-level public API:

from projectfield import ActionInputs, ProjectsGraphClient, RequestsTransport, run_update
from projectfield import TriggerContext

client = ProjectsGraphClient(RequestsTransport(token))
result = run_update(inputs, client, TriggerContext.from_env())
print(result.item_id)

The CLI (``projectfield`` / ``python -m projectfield``) wraps the same calls
for use as a workflow step.
"""

from __future__ import annotations

# Version constant (keep in sync with pyproject.toml)
__version__ = "0.3.0"

from .config import ActionInputs, build_inputs  # noqa: E402
from .context import TriggerContext  # noqa: E402
from .field_values import build_field_value  # noqa: E402
from .graph import ProjectsGraphClient  # noqa: E402
from .models import Field, FieldValue, Item, ProjectRef  # noqa: E402
from .orchestrator import FieldUpdater, RunResult, run_update  # noqa: E402
from .transport import RequestsTransport  # noqa: E402
from .urls import resolve_project_url  # noqa: E402

__all__ = [
    "ActionInputs",
    "Field",
    "FieldUpdater",
    "FieldValue",
    "Item",
    "ProjectRef",
    "ProjectsGraphClient",
    "RequestsTransport",
    "RunResult",
    "TriggerContext",
    "build_field_value",
    "build_inputs",
    "resolve_project_url",
    "run_update",
    "__version__",
]
