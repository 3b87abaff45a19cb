"""
Linear Adapter - Implements RemoteTrackerPort for Linear.

This is the main entry point for Linear integration.
Maps the RemoteTrackerPort interface to Linear's GraphQL model.

Key mappings:
- Project -> Linear project (state: planned/started/paused/completed/canceled)
- Task -> Linear issue
- Task status -> team workflow state, resolved by name per team
- Task priority -> Linear priority integer (0 none .. 4 low)
"""

from __future__ import annotations

import logging

from tracksync.core.domain.snapshots import (
    IssueInput,
    ProjectInput,
    RemoteIssue,
    RemoteProject,
    RemoteState,
    RemoteTeam,
)
from tracksync.core.exceptions import RemoteValidationError
from tracksync.core.ports.config_provider import LinearConfig
from tracksync.core.ports.remote_tracker import RemoteTrackerPort

from .client import LinearApiClient
from .decoders import (
    decode_issue,
    decode_project,
    decode_state,
    decode_team,
    encode_issue_input,
    encode_project_input,
)


# Fallback from a local state name to Linear's workflow state category, used
# when a team has renamed its states
STATE_TYPE_FALLBACK = {
    "backlog": "backlog",
    "todo": "unstarted",
    "in progress": "started",
    "in review": "started",
    "done": "completed",
    "canceled": "canceled",
}


class LinearAdapter(RemoteTrackerPort):
    """
    Linear implementation of the RemoteTrackerPort.

    Translates between snapshots and Linear's GraphQL API.

    Linear concepts:
    - Team: Owner of workflow states; every issue belongs to one
    - Project: Cross-team container with its own state and progress
    - Issue: Work item with an identifier such as ENG-42
    - Workflow state: Team-specific status with a fixed category (type)
    """

    def __init__(
        self,
        config: LinearConfig | None = None,
        client: LinearApiClient | None = None,
    ):
        """
        Initialize the Linear adapter.

        Args:
            config: Linear configuration, used to build the API client
            client: Pre-built API client (takes precedence over config)
        """
        if client is None:
            if config is None:
                raise ValueError("LinearAdapter needs either a config or a client")
            client = LinearApiClient(
                api_key=config.api_key,
                api_url=config.api_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                requests_per_second=config.requests_per_second,
            )

        self.config = config
        self._client = client
        self.logger = logging.getLogger("LinearAdapter")

        # Workflow states per team id
        self._states_cache: dict[str, list[RemoteState]] = {}

    # -------------------------------------------------------------------------
    # RemoteTrackerPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Linear"

    @property
    def client(self) -> LinearApiClient:
        return self._client

    def test_connection(self) -> bool:
        return self._client.test_connection()

    # -------------------------------------------------------------------------
    # RemoteTrackerPort Implementation - Teams
    # -------------------------------------------------------------------------

    def get_teams(self) -> list[RemoteTeam]:
        return [decode_team(team) for team in self._client.get_teams()]

    # -------------------------------------------------------------------------
    # RemoteTrackerPort Implementation - Projects
    # -------------------------------------------------------------------------

    def get_project(self, project_id: str) -> RemoteProject:
        return decode_project(self._client.get_project(project_id))

    def create_project(self, data: ProjectInput) -> RemoteProject:
        """Create a project; Linear requires at least one team."""
        if not data.name or not data.team_ids:
            raise RemoteValidationError(
                "Creating a Linear project requires a name and at least one team", resource="project"
            )

        payload = encode_project_input(data)
        self.logger.debug(f"Creating project {data.name!r} for teams {list(data.team_ids)}")
        return decode_project(self._client.create_project(payload))

    def update_project(self, project_id: str, data: ProjectInput) -> RemoteProject:
        payload = encode_project_input(data)
        self.logger.debug(f"Updating project {project_id}: {sorted(payload)}")
        return decode_project(self._client.update_project(project_id, payload))

    def get_project_issues(self, project_id: str) -> list[RemoteIssue]:
        return [decode_issue(issue) for issue in self._client.get_project_issues(project_id)]

    # -------------------------------------------------------------------------
    # RemoteTrackerPort Implementation - Issues
    # -------------------------------------------------------------------------

    def get_issue(self, issue_id: str) -> RemoteIssue:
        return decode_issue(self._client.get_issue(issue_id))

    def create_issue(self, data: IssueInput) -> RemoteIssue:
        """Create an issue; Linear requires a title and a team."""
        if not data.title or not data.team_id:
            raise RemoteValidationError("Creating a Linear issue requires a title and a team", resource="issue")

        state_id = self._resolve_state_id(data.team_id, data.state_name)
        payload = encode_issue_input(data, state_id=state_id)
        return decode_issue(self._client.create_issue(payload))

    def update_issue(self, issue_id: str, data: IssueInput) -> RemoteIssue:
        state_id = None
        if data.state_name is not None:
            if data.team_id:
                state_id = self._resolve_state_id(data.team_id, data.state_name)
            else:
                self.logger.warning(
                    f"Cannot set state {data.state_name!r} on {issue_id} without a team id"
                )

        payload = encode_issue_input(data, state_id=state_id)
        return decode_issue(self._client.update_issue(issue_id, payload))

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def get_team_states(self, team_id: str) -> list[RemoteState]:
        """Get a team's workflow states (cached)."""
        if team_id not in self._states_cache:
            self._states_cache[team_id] = [
                decode_state(state) for state in self._client.get_team_states(team_id)
            ]
        return self._states_cache[team_id]

    def _resolve_state_id(self, team_id: str, state_name: str | None) -> str | None:
        """
        Find the team's workflow state id for a state name.

        Matches the name case-insensitively first, then falls back to the
        first state of the equivalent category. Returns None (state left
        unchanged) when neither matches.
        """
        if not state_name:
            return None

        states = self.get_team_states(team_id)
        target = state_name.strip().lower()

        for state in states:
            if state.name.strip().lower() == target:
                return state.id

        fallback_type = STATE_TYPE_FALLBACK.get(target)
        if fallback_type:
            for state in states:
                if (state.type or "").lower() == fallback_type:
                    return state.id

        self.logger.warning(f"No workflow state matching {state_name!r} in team {team_id}")
        return None

    def clear_cache(self) -> None:
        """Forget cached workflow states."""
        self._states_cache.clear()

    def close(self) -> None:
        self._client.close()
