"""
Tests for the tracksync command line: parser, console output, exit codes and
end-to-end command runs against a temporary database.
"""

import json
import logging

import pytest

from tracksync.adapters.config.environment import ENV_MAPPING
from tracksync.adapters.repository import SqliteRepository
from tracksync.application import IssueSyncResult, SyncResult
from tracksync.cli import ExitCode, main
from tracksync.cli.app import create_parser
from tracksync.cli.output import Console
from tracksync.core.domain import Project, SyncStatus
from tracksync.core.exceptions import (
    AlreadyLinkedError,
    AuthenticationError,
    ConfigError,
    NotFoundError,
    NotLinkedError,
    RemoteValidationError,
    TrackerUnavailableError,
    TransientError,
)


# =============================================================================
# Parser
# =============================================================================


class TestCreateParser:
    """Tests for argument parsing."""

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_sync_issues(self):
        args = create_parser().parse_args(["--orphan-policy", "archive", "sync-issues", "--project", "p-1"])

        assert args.command == "sync-issues"
        assert args.project == "p-1"
        assert args.orphan_policy == "archive"

    def test_invalid_orphan_policy(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--orphan-policy", "delete", "projects"])

    def test_global_defaults(self):
        args = create_parser().parse_args(["projects"])

        assert args.output == "text"
        assert args.log_format == "text"
        assert args.verbose is False

    def test_pull_requires_remote_project(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["pull"])


# =============================================================================
# Exit Codes
# =============================================================================


class TestExitCode:
    @pytest.mark.parametrize(
        "exc,code",
        [
            (KeyboardInterrupt(), ExitCode.SIGINT),
            (ConfigError("bad"), ExitCode.CONFIG_ERROR),
            (FileNotFoundError("x"), ExitCode.FILE_NOT_FOUND),
            (AuthenticationError("denied"), ExitCode.CONNECTION_ERROR),
            (TrackerUnavailableError("no connection"), ExitCode.CONNECTION_ERROR),
            (NotFoundError("missing"), ExitCode.NOT_FOUND),
            (NotLinkedError("unlinked"), ExitCode.NOT_LINKED),
            (AlreadyLinkedError("linked"), ExitCode.NOT_LINKED),
            (TransientError("503"), ExitCode.SYNC_FAILED),
            (RemoteValidationError("no title"), ExitCode.SYNC_FAILED),
            (RuntimeError("boom"), ExitCode.ERROR),
        ],
    )
    def test_from_exception(self, exc, code):
        assert ExitCode.from_exception(exc) == code


# =============================================================================
# Console
# =============================================================================


class TestConsole:
    """Tests for console output."""

    def test_success_and_quiet(self, capsys):
        Console(color=False).success("Pushed")
        Console(color=False, quiet=True).success("Hidden")

        out = capsys.readouterr().out
        assert "Pushed" in out
        assert "Hidden" not in out

    def test_error_prints_even_when_quiet(self, capsys):
        Console(color=False, quiet=True).error("Linear unreachable")

        assert "Linear unreachable" in capsys.readouterr().out

    def test_debug_only_when_verbose(self, capsys, console, verbose_console):
        console.debug("hidden")
        verbose_console.debug("shown")

        out = capsys.readouterr().out
        assert "shown" in out
        assert "hidden" not in out

    def test_table_aligns_columns(self, capsys, console):
        console.table(["Key", "Name"], [["ENG", "Engineering"], ["DESIGN", "Design"]])

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].index("Name") == lines[2].index("Engineering")

    def test_json_errors_are_collected(self, capsys):
        console = Console(json_mode=True)
        console.error("first")

        assert capsys.readouterr().out == ""
        console.emit_json({"success": False})

        assert json.loads(capsys.readouterr().out)["errors"] == ["first"]

    def test_flush_json_errors(self, capsys):
        console = Console(json_mode=True)
        console.flush_json_errors()
        assert capsys.readouterr().out == ""

        console.config_errors(["Missing Linear API key"])
        console.flush_json_errors()

        assert json.loads(capsys.readouterr().out) == {
            "success": False,
            "errors": ["Missing Linear API key"],
        }

    def test_sync_result_json_for_issue_sync(self, capsys):
        result = IssueSyncResult(operation="sync_project_issues", entity_id="p-1", created=["t-1"])
        result.add_failed_operation("sync_issue", "iss-2", "disk full", remote_id="iss-2")

        Console(json_mode=True).sync_result(result)

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is False
        assert data["stats"] == {"created": 1, "updated": 0, "orphaned": 0, "failed": 1}
        assert data["failed_operations"][0]["error"] == "disk full"

    def test_sync_result_quiet_line(self, capsys):
        result = SyncResult(operation="push_project_to_remote", entity_id="p-1")

        Console(color=False, quiet=True).sync_result(result)

        assert capsys.readouterr().out.strip() == "status=OK operation=push_project_to_remote id=p-1"

    def test_sync_result_text_failure(self, capsys, console):
        result = SyncResult(operation="push_task_to_remote", entity_id="t-1")
        result.add_error("Linear server error 503")

        console.sync_result(result)

        out = capsys.readouterr().out
        assert "Linear server error 503" in out
        assert "completed with errors" in out


# =============================================================================
# End-to-end
# =============================================================================


@pytest.fixture
def cli_db(monkeypatch, tmp_path):
    """A clean environment and a database path for main()."""
    for key in ENV_MAPPING:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield str(tmp_path / "tracksync.db")
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)


def run_json(capsys, argv):
    code = main(argv)
    return code, json.loads(capsys.readouterr().out)


class TestMain:
    """Tests for whole command runs."""

    def test_add_and_list_projects(self, capsys, cli_db):
        code, created = run_json(capsys, ["--db", cli_db, "-o", "json", "add-project", "--name", "Website"])
        assert code == ExitCode.SUCCESS
        assert created["project"]["sync_status"] == "not_synced"

        code, listed = run_json(capsys, ["--db", cli_db, "-o", "json", "projects"])

        assert code == ExitCode.SUCCESS
        assert [p["name"] for p in listed["projects"]] == ["Website"]

    def test_projects_text_when_empty(self, capsys, cli_db):
        assert main(["--db", cli_db, "--no-color", "projects"]) == ExitCode.SUCCESS
        assert "No local projects" in capsys.readouterr().out

    def test_create_without_connection_records_failure(self, capsys, cli_db):
        with SqliteRepository(cli_db) as repo:
            repo.save_project(Project(id="p-1", name="Website"))

        code, data = run_json(capsys, ["--db", cli_db, "-o", "json", "create", "--project", "p-1", "--team", "team-1"])

        assert code == ExitCode.SYNC_FAILED
        assert data["success"] is False
        assert "No Linear access token" in data["errors"][0]
        with SqliteRepository(cli_db) as repo:
            stored = repo.find_project_by_id("p-1")
        assert stored.sync_status == SyncStatus.SYNC_FAILED
        assert stored.remote_project_id is None

    def test_create_without_team_is_config_error(self, capsys, cli_db):
        code = main(["--db", cli_db, "--no-color", "create", "--project", "p-1"])

        assert code == ExitCode.CONFIG_ERROR

    def test_create_unknown_project(self, capsys, cli_db):
        assert main(["--db", cli_db, "create", "--project", "nope", "--team", "t"]) == ExitCode.NOT_FOUND

    def test_push_unlinked_project(self, capsys, cli_db):
        with SqliteRepository(cli_db) as repo:
            repo.save_project(Project(id="p-1", name="Website"))

        code, data = run_json(capsys, ["--db", cli_db, "-o", "json", "push", "--project", "p-1"])

        assert code == ExitCode.NOT_LINKED
        assert "not linked" in data["errors"][0]

    def test_status_of_missing_project(self, capsys, cli_db):
        assert main(["--db", cli_db, "status", "--project", "nope"]) == ExitCode.NOT_FOUND

    def test_status_json(self, capsys, cli_db):
        with SqliteRepository(cli_db) as repo:
            repo.save_project(Project(id="p-1", name="Website"))

        code, data = run_json(capsys, ["--db", cli_db, "-o", "json", "status", "--project", "p-1"])

        assert code == ExitCode.SUCCESS
        assert data["linked"] is False
        assert data["tasks"]["total"] == 0

    def test_teams_requires_api_key(self, capsys, cli_db):
        code = main(["--db", cli_db, "--no-color", "teams"])

        assert code == ExitCode.CONFIG_ERROR
        assert "LINEAR_API_KEY" in capsys.readouterr().out

    def test_invalid_env_value_is_config_error(self, capsys, cli_db, monkeypatch):
        monkeypatch.setenv("LINEAR_TIMEOUT", "soon")

        assert main(["--db", cli_db, "projects"]) == ExitCode.CONFIG_ERROR


class TestWebhookCommand:
    """Tests for applying a saved webhook delivery."""

    def test_ignored_delivery(self, capsys, cli_db, tmp_path):
        payload = tmp_path / "delivery.json"
        payload.write_text(json.dumps({"type": "Comment", "action": "create", "data": {}}))

        code, data = run_json(capsys, ["--db", cli_db, "-o", "json", "webhook", "--payload", str(payload)])

        assert code == ExitCode.SUCCESS
        assert data["ignored"] is True
        assert data["status_code"] == 200

    def test_bad_signature(self, capsys, cli_db, tmp_path, monkeypatch):
        monkeypatch.setenv("LINEAR_WEBHOOK_SECRET", "whsec-test")
        payload = tmp_path / "delivery.json"
        payload.write_text("{}")

        code = main(["--db", cli_db, "webhook", "--payload", str(payload), "--signature", "deadbeef"])

        assert code == ExitCode.CONNECTION_ERROR

    def test_missing_payload_file(self, capsys, cli_db, tmp_path):
        code = main(["--db", cli_db, "webhook", "--payload", str(tmp_path / "missing.json")])

        assert code == ExitCode.FILE_NOT_FOUND

    def test_invalid_json(self, capsys, cli_db, tmp_path):
        payload = tmp_path / "delivery.json"
        payload.write_text("not json")

        assert main(["--db", cli_db, "webhook", "--payload", str(payload)]) == ExitCode.ERROR
