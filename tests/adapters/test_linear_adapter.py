"""
Tests for LinearAdapter.

The API client is mocked; these tests cover decoding and workflow state
resolution.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from tracksync.adapters.linear import LinearAdapter, LinearApiClient
from tracksync.core.domain import IssueInput, ProjectInput
from tracksync.core.exceptions import MalformedResponseError, RemoteValidationError
from tracksync.core.ports.config_provider import LinearConfig


TEAM_STATES = [
    {"id": "st-backlog", "name": "Backlog", "type": "backlog"},
    {"id": "st-todo", "name": "Todo", "type": "unstarted"},
    {"id": "st-doing", "name": "Doing", "type": "started"},
    {"id": "st-done", "name": "Done", "type": "completed"},
    {"id": "st-canceled", "name": "Canceled", "type": "canceled"},
]


@pytest.fixture
def api_client(linear_issue_payload, linear_project_payload):
    client = Mock(spec=LinearApiClient)
    client.get_team_states.return_value = TEAM_STATES
    client.get_issue.return_value = linear_issue_payload
    client.create_issue.return_value = linear_issue_payload
    client.update_issue.return_value = linear_issue_payload
    client.get_project.return_value = linear_project_payload
    client.create_project.return_value = linear_project_payload
    client.update_project.return_value = linear_project_payload
    client.get_project_issues.return_value = [linear_issue_payload]
    client.get_teams.return_value = [{"id": "team-1", "name": "Engineering", "key": "ENG"}]
    return client


@pytest.fixture
def adapter(api_client):
    return LinearAdapter(client=api_client)


class TestLinearAdapterInit:
    def test_requires_config_or_client(self):
        with pytest.raises(ValueError):
            LinearAdapter()

    def test_builds_client_from_config(self, monkeypatch):
        built = {}

        class FakeClient:
            def __init__(self, **kwargs):
                built.update(kwargs)

        monkeypatch.setattr("tracksync.adapters.linear.adapter.LinearApiClient", FakeClient)

        LinearAdapter(config=LinearConfig(api_key="lin_api_x", timeout=10))

        assert built["api_key"] == "lin_api_x"
        assert built["timeout"] == 10

    def test_name(self, adapter):
        assert adapter.name == "Linear"


class TestProjects:
    """Tests for project operations."""

    def test_get_project_decodes_snapshot(self, adapter):
        project = adapter.get_project("proj-123")

        assert project.id == "proj-123"
        assert project.state == "started"
        assert project.progress == pytest.approx(0.456)
        assert project.start_date == date(2025, 1, 6)
        assert project.team_ids == ("team-1",)
        assert project.lead.email == "alice@example.com"

    def test_create_project_sends_encoded_input(self, adapter, api_client):
        adapter.create_project(
            ProjectInput(name="Website", state="started", team_ids=("team-1",), target_date=date(2025, 4, 30))
        )

        payload = api_client.create_project.call_args.args[0]
        assert payload == {
            "name": "Website",
            "state": "started",
            "targetDate": "2025-04-30",
            "teamIds": ["team-1"],
        }

    def test_create_project_requires_team(self, adapter):
        with pytest.raises(RemoteValidationError):
            adapter.create_project(ProjectInput(name="Website"))

    def test_update_project_partial(self, adapter, api_client):
        adapter.update_project("proj-123", ProjectInput(description="New"))

        api_client.update_project.assert_called_once_with("proj-123", {"description": "New"})

    def test_get_project_issues(self, adapter):
        issues = adapter.get_project_issues("proj-123")

        assert [i.identifier for i in issues] == ["ENG-1"]

    def test_get_teams(self, adapter):
        assert adapter.get_teams()[0].key == "ENG"


class TestIssues:
    """Tests for issue operations and state resolution."""

    def test_get_issue(self, adapter):
        issue = adapter.get_issue("ENG-1")

        assert issue.state.name == "Todo"
        assert issue.priority == 2
        assert issue.project_id == "proj-123"
        assert issue.assignee.email == "alice@example.com"
        assert issue.due_date == date(2025, 3, 15)

    def test_create_issue_resolves_state_by_name(self, adapter, api_client):
        adapter.create_issue(IssueInput(title="x", team_id="team-1", state_name="done", priority=1))

        payload = api_client.create_issue.call_args.args[0]
        assert payload["stateId"] == "st-done"
        assert payload["priority"] == 1
        assert "stateName" not in payload

    def test_renamed_state_falls_back_to_category(self, adapter, api_client):
        adapter.create_issue(IssueInput(title="x", team_id="team-1", state_name="in progress"))

        assert api_client.create_issue.call_args.args[0]["stateId"] == "st-doing"

    def test_unknown_state_is_left_out(self, adapter, api_client):
        adapter.create_issue(IssueInput(title="x", team_id="team-1", state_name="blocked"))

        assert "stateId" not in api_client.create_issue.call_args.args[0]

    def test_create_issue_requires_title_and_team(self, adapter):
        with pytest.raises(RemoteValidationError):
            adapter.create_issue(IssueInput(title="x"))

    def test_states_are_cached_per_team(self, adapter, api_client):
        adapter.update_issue("iss-1", IssueInput(team_id="team-1", state_name="todo"))
        adapter.update_issue("iss-1", IssueInput(team_id="team-1", state_name="done"))

        assert api_client.get_team_states.call_count == 1
        adapter.clear_cache()
        adapter.update_issue("iss-1", IssueInput(team_id="team-1", state_name="done"))
        assert api_client.get_team_states.call_count == 2

    def test_update_without_team_skips_state(self, adapter, api_client):
        adapter.update_issue("iss-1", IssueInput(title="Renamed", state_name="done"))

        api_client.get_team_states.assert_not_called()
        api_client.update_issue.assert_called_once_with("iss-1", {"title": "Renamed"})

    def test_malformed_issue_raises(self, adapter, api_client):
        api_client.get_issue.return_value = {"id": "iss-1", "identifier": "ENG-1"}

        with pytest.raises(MalformedResponseError):
            adapter.get_issue("iss-1")
