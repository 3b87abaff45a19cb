"""
Decoders from Linear payloads to typed snapshots, and encoders for write inputs.

Both API responses and webhook deliveries go through here. API responses nest
related entities ({"project": {"id": ...}}) while webhook payloads flatten them
({"projectId": ...}); decoders accept either form.

A payload missing a required field raises MalformedResponseError rather than
producing a partially-populated snapshot.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from tracksync.core.domain.snapshots import (
    IssueInput,
    ProjectInput,
    RemoteIssue,
    RemoteProject,
    RemoteState,
    RemoteTeam,
    RemoteUser,
)
from tracksync.core.exceptions import MalformedResponseError


def _require(data: Any, key: str, entity: str) -> Any:
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a {entity} object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or value == "":
        raise MalformedResponseError(f"Linear {entity} is missing required field '{key}'")
    return value


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_date(value: Any) -> date | None:
    """Parse a Linear date or timestamp ("2025-01-31" or "2025-01-31T10:00:00.000Z")."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise MalformedResponseError(f"Invalid date in Linear payload: {value!r}", cause=e) from e


def _parse_priority(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _parse_progress(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"Invalid project progress in Linear payload: {value!r}")
    return float(value)


def _nested_id(data: dict[str, Any], nested: str, flat: str) -> str | None:
    child = data.get(nested)
    if isinstance(child, dict) and child.get("id"):
        return str(child["id"])
    return _optional_str(data.get(flat))


# =============================================================================
# Snapshots
# =============================================================================


def decode_user(data: Any) -> RemoteUser | None:
    if data is None:
        return None
    return RemoteUser(
        id=str(_require(data, "id", "user")),
        name=str(data.get("name") or ""),
        email=_optional_str(data.get("email")),
    )


def decode_team(data: Any) -> RemoteTeam:
    return RemoteTeam(
        id=str(_require(data, "id", "team")),
        name=str(_require(data, "name", "team")),
        key=str(_require(data, "key", "team")),
        description=_optional_str(data.get("description")),
    )


def decode_state(data: Any) -> RemoteState:
    return RemoteState(
        id=str(_require(data, "id", "workflow state")),
        name=str(_require(data, "name", "workflow state")),
        type=_optional_str(data.get("type")),
        color=_optional_str(data.get("color")),
    )


def decode_project(data: Any) -> RemoteProject:
    """
    Decode a Linear project.

    Required: id, name, state. The API sends state as a string while webhooks
    send {"id", "name", "type"}. Team ids come from teams.nodes (API) or
    teamIds (webhook).
    """
    project_id = str(_require(data, "id", "project"))
    name = str(_require(data, "name", "project"))
    raw_state = _require(data, "state", "project")
    if isinstance(raw_state, dict):
        raw_state = raw_state.get("name") or raw_state.get("type")
        if not raw_state:
            raise MalformedResponseError("Linear project state has no name")
    state = str(raw_state)

    teams = data.get("teams")
    if isinstance(teams, dict):
        team_ids = tuple(
            str(t["id"]) for t in teams.get("nodes") or [] if isinstance(t, dict) and t.get("id")
        )
    else:
        team_ids = tuple(str(t) for t in data.get("teamIds") or [])

    return RemoteProject(
        id=project_id,
        name=name,
        state=state,
        description=_optional_str(data.get("description")),
        progress=_parse_progress(data.get("progress")),
        start_date=parse_date(data.get("startDate")),
        target_date=parse_date(data.get("targetDate")),
        url=_optional_str(data.get("url")),
        team_ids=team_ids,
        lead=decode_user(data.get("lead")),
    )


def decode_issue(data: Any) -> RemoteIssue:
    """
    Decode a Linear issue.

    Required: id, identifier, title, and a state with id and name.
    """
    issue_id = str(_require(data, "id", "issue"))
    identifier = str(_require(data, "identifier", "issue"))
    title = str(_require(data, "title", "issue"))
    state = decode_state(_require(data, "state", "issue"))

    return RemoteIssue(
        id=issue_id,
        identifier=identifier,
        title=title,
        state=state,
        priority=_parse_priority(data.get("priority")),
        description=_optional_str(data.get("description")),
        assignee=decode_user(data.get("assignee")),
        project_id=_nested_id(data, "project", "projectId"),
        team_id=_nested_id(data, "team", "teamId"),
        url=_optional_str(data.get("url")),
        due_date=parse_date(data.get("dueDate")),
    )


# =============================================================================
# Write Inputs
# =============================================================================


def encode_project_input(data: ProjectInput) -> dict[str, Any]:
    """Build a ProjectCreateInput/ProjectUpdateInput, omitting unset fields."""
    result: dict[str, Any] = {}
    if data.name is not None:
        result["name"] = data.name
    if data.description is not None:
        result["description"] = data.description
    if data.state is not None:
        result["state"] = data.state
    if data.start_date is not None:
        result["startDate"] = data.start_date.isoformat()
    if data.target_date is not None:
        result["targetDate"] = data.target_date.isoformat()
    if data.team_ids:
        result["teamIds"] = list(data.team_ids)
    if data.lead_id is not None:
        result["leadId"] = data.lead_id
    return result


def encode_issue_input(data: IssueInput, state_id: str | None = None) -> dict[str, Any]:
    """
    Build an IssueCreateInput/IssueUpdateInput, omitting unset fields.

    state_name is not sent; the caller resolves it to state_id.
    """
    result: dict[str, Any] = {}
    if data.title is not None:
        result["title"] = data.title
    if data.description is not None:
        result["description"] = data.description
    if state_id is not None:
        result["stateId"] = state_id
    if data.priority is not None:
        result["priority"] = data.priority
    if data.team_id is not None:
        result["teamId"] = data.team_id
    if data.project_id is not None:
        result["projectId"] = data.project_id
    if data.assignee_id is not None:
        result["assigneeId"] = data.assignee_id
    if data.due_date is not None:
        result["dueDate"] = data.due_date.isoformat()
    return result
