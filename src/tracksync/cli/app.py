"""
CLI Application - Main entry point for tracksync.
"""

import argparse
import logging
import sys
from pathlib import Path

from tracksync.adapters.config import EnvironmentConfigProvider
from tracksync.adapters.linear import TrackerFactory, WorkspaceConnection
from tracksync.adapters.repository import SqliteRepository
from tracksync.application import SyncOrchestrator, WebhookHandler
from tracksync.core.domain import EventBus, Project, ProjectPriority, ProjectStatus
from tracksync.core.exceptions import ConfigError, TrackSyncError
from tracksync.core.ports.config_provider import AppConfig

from .exit_codes import ExitCode
from .output import Console, Symbols


COMMANDS = (
    "teams",
    "projects",
    "add-project",
    "create",
    "push",
    "pull",
    "sync-issues",
    "push-task",
    "pull-task",
    "status",
    "webhook",
)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for tracksync.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="tracksync",
        description="Keep local projects and tasks in sync with Linear",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List Linear teams visible to the API key
  tracksync teams

  # Create the Linear project for a local project and link them
  tracksync create --project 6f1c... --team TEAM_ID

  # Push local changes / pull remote changes
  tracksync push --project 6f1c...
  tracksync pull --remote-project proj-123

  # Import or refresh every issue of a linked project as local tasks
  tracksync sync-issues --project 6f1c... --orphan-policy mark_not_synced

  # Show sync health as JSON
  tracksync status --project 6f1c... --output json

  # Apply a webhook delivery saved to a file
  tracksync webhook --payload delivery.json --signature <hex>

Environment:
  LINEAR_API_KEY, LINEAR_TEAM_ID, LINEAR_WEBHOOK_SECRET, TRACKSYNC_DB_PATH,
  TRACKSYNC_ORPHAN_POLICY (leave, mark_not_synced, archive)
""",
    )

    # Global options
    parser.add_argument("--env-file", type=str, help="Path to .env file (default: ./.env)")
    parser.add_argument("--db", type=str, help="SQLite database path (overrides TRACKSYNC_DB_PATH)")
    parser.add_argument(
        "--orphan-policy",
        choices=["leave", "mark_not_synced", "archive"],
        help="What to do with linked tasks whose issue left the project",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors and a summary line")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument(
        "-o",
        "--output",
        choices=["text", "json"],
        default="text",
        help="Result output format (default: text)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("teams", help="List Linear teams")
    subparsers.add_parser("projects", help="List local projects")

    add_project = subparsers.add_parser("add-project", help="Create a local project")
    add_project.add_argument("--name", required=True, help="Project name")
    add_project.add_argument("--description", default="", help="Project description")
    add_project.add_argument(
        "--status",
        default="planning",
        choices=[s.value for s in ProjectStatus],
        help="Project status (default: planning)",
    )
    add_project.add_argument(
        "--priority",
        default="medium",
        choices=[p.value for p in ProjectPriority],
        help="Project priority (default: medium)",
    )

    create = subparsers.add_parser("create", help="Create the Linear project for a local project")
    create.add_argument("--project", required=True, help="Local project id")
    create.add_argument("--team", help="Linear team id (default: LINEAR_TEAM_ID)")

    push = subparsers.add_parser("push", help="Push a linked project to Linear")
    push.add_argument("--project", required=True, help="Local project id")

    pull = subparsers.add_parser("pull", help="Pull a Linear project into its local project")
    pull.add_argument("--remote-project", required=True, help="Linear project id")

    sync_issues = subparsers.add_parser("sync-issues", help="Reconcile Linear issues into local tasks")
    sync_issues.add_argument("--project", required=True, help="Local project id")

    push_task = subparsers.add_parser("push-task", help="Create or update the Linear issue of a task")
    push_task.add_argument("--task", required=True, help="Local task id")

    pull_task = subparsers.add_parser("pull-task", help="Refresh a task from its Linear issue")
    pull_task.add_argument("--task", required=True, help="Local task id")

    status = subparsers.add_parser("status", help="Show a project's sync status")
    status.add_argument("--project", required=True, help="Local project id")

    webhook = subparsers.add_parser("webhook", help="Apply a Linear webhook delivery")
    webhook.add_argument("--payload", required=True, help="Path to the raw JSON body, or - for stdin")
    webhook.add_argument("--signature", help="Value of the Linear-Signature header")

    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    """
    Load configuration with CLI overrides applied.

    Raises:
        ConfigError: If a configured value is invalid
    """
    env_file = Path(args.env_file) if getattr(args, "env_file", None) else None
    overrides = {
        "db": getattr(args, "db", None),
        "team": getattr(args, "team", None),
        "orphan_policy": getattr(args, "orphan_policy", None),
        "verbose": True if getattr(args, "verbose", False) else None,
    }
    provider = EnvironmentConfigProvider(env_file=env_file, cli_overrides=overrides)
    return provider.load()


def build_orchestrator(config: AppConfig, repository: SqliteRepository) -> SyncOrchestrator:
    """Wire the orchestrator to the database and the configured workspace connection."""
    factory = TrackerFactory(
        connection_loader=lambda: WorkspaceConnection.from_config(config.linear),
        config=config.linear,
    )
    return SyncOrchestrator(
        repository=repository,
        tracker_factory=factory,
        config=config.sync,
        event_bus=EventBus(),
    )


def run_teams(console: Console, config: AppConfig) -> int:
    """List the Linear teams visible to the configured key."""
    errors = config.validate()
    if errors:
        console.config_errors(errors)
        return ExitCode.CONFIG_ERROR

    factory = TrackerFactory(
        connection_loader=lambda: WorkspaceConnection.from_config(config.linear),
        config=config.linear,
    )
    result = factory()
    if result.is_err():
        console.error(str(result.unwrap_err()))
        return ExitCode.CONNECTION_ERROR

    tracker = result.unwrap()
    try:
        console.section("Linear teams")
        console.teams(tracker.get_teams())
    finally:
        factory.refresh()
    return ExitCode.SUCCESS


def run_projects(console: Console, repository: SqliteRepository) -> int:
    """List local projects and their link state."""
    projects = repository.list_projects()
    if console.json_mode:
        console.emit_json({"projects": [p.to_dict() for p in projects]})
        return ExitCode.SUCCESS

    if not projects:
        console.info("No local projects")
        return ExitCode.SUCCESS

    console.table(
        ["ID", "Name", "Status", "Linear", "Sync"],
        [
            [
                p.id,
                p.name,
                p.status.value,
                p.remote_project_id or "-",
                f"{p.sync_status.emoji} {p.sync_status.display_name}",
            ]
            for p in projects
        ],
    )
    return ExitCode.SUCCESS


def run_add_project(console: Console, repository: SqliteRepository, args: argparse.Namespace) -> int:
    """Create a local (unlinked) project."""
    project = repository.save_project(
        Project(
            name=args.name,
            description=args.description,
            status=ProjectStatus.from_string(args.status),
            priority=ProjectPriority.from_string(args.priority),
        )
    )
    if console.json_mode:
        console.emit_json({"project": project.to_dict()})
    else:
        console.success(f"Created project {project.name}")
        console.detail(f"id: {project.id}")
    return ExitCode.SUCCESS


def run_webhook(console: Console, orchestrator: SyncOrchestrator, config: AppConfig, args: argparse.Namespace) -> int:
    """Apply one webhook delivery read from a file or stdin."""
    if args.payload == "-":
        body = sys.stdin.buffer.read()
    else:
        path = Path(args.payload)
        if not path.exists():
            raise FileNotFoundError(f"Payload file not found: {path}")
        body = path.read_bytes()

    handler = WebhookHandler(orchestrator, secret=config.sync.webhook_secret)
    headers = {"Linear-Signature": args.signature} if args.signature else {}
    result = handler.handle(body, headers)

    if console.json_mode:
        console.emit_json({"status_code": result.status_code, **result.to_dict()})
    elif result.accepted:
        if result.ignored:
            console.warning(result.message)
        else:
            console.success(f"{result.event_type} {result.action} applied")
            if result.sync_result is not None:
                console.detail(result.sync_result.summary())
    else:
        console.error(f"Rejected ({result.status_code}): {result.message}")

    if result.status_code == 401:
        return ExitCode.CONNECTION_ERROR
    return ExitCode.SUCCESS if result.accepted else ExitCode.ERROR


def run_command(console: Console, args: argparse.Namespace) -> int:
    """
    Run the selected subcommand.

    Args:
        console: Console instance for output.
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    try:
        config = load_config(args)
    except ConfigError as e:
        console.config_errors([str(e)])
        return ExitCode.CONFIG_ERROR

    if args.command == "teams":
        return run_teams(console, config)

    console.debug(f"Database: {config.storage.db_path}")
    with SqliteRepository(config.storage.db_path) as repository:
        if args.command == "projects":
            return run_projects(console, repository)
        if args.command == "add-project":
            return run_add_project(console, repository, args)

        orchestrator = build_orchestrator(config, repository)

        if args.command == "status":
            console.sync_status(orchestrator.get_project_sync_status(args.project))
            return ExitCode.SUCCESS
        if args.command == "webhook":
            return run_webhook(console, orchestrator, config, args)

        if args.command == "create":
            team_id = args.team or config.sync.default_team_id
            if not team_id:
                console.config_errors(["No Linear team given (--team or LINEAR_TEAM_ID)"])
                return ExitCode.CONFIG_ERROR
            project = repository.find_project_by_id(args.project)
            if project is None:
                console.error(f"Project not found: {args.project}")
                return ExitCode.NOT_FOUND
            console.info(f"Creating Linear project for {project.name} {Symbols.ARROW} team {team_id}")
            result = orchestrator.create_remote_project(project, team_id)
        elif args.command == "push":
            result = orchestrator.push_project_to_remote(args.project)
        elif args.command == "pull":
            result = orchestrator.pull_project_from_remote(args.remote_project)
        elif args.command == "sync-issues":
            result = orchestrator.sync_project_issues(args.project)
        elif args.command == "push-task":
            result = orchestrator.push_task_to_remote(args.task)
        elif args.command == "pull-task":
            result = orchestrator.pull_task_from_remote(args.task)
        else:
            console.error(f"Unknown command: {args.command}")
            return ExitCode.ERROR

        console.sync_result(result)

        if result.success:
            return ExitCode.SUCCESS
        if getattr(result, "partial_success", False):
            return ExitCode.PARTIAL_SUCCESS
        return ExitCode.SYNC_FAILED


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the tracksync CLI.

    Parses arguments, sets up logging, and runs the selected command.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    from .logging import setup_logging

    if args.verbose:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR
    else:
        log_level = logging.WARNING
    setup_logging(
        level=log_level,
        log_format=args.log_format,
        log_file=args.log_file,
        static_fields={"service": "tracksync"} if args.log_format == "json" else None,
    )

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        quiet=args.quiet,
        json_mode=args.output == "json",
    )

    try:
        return run_command(console, args)

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.SIGINT

    except (TrackSyncError, FileNotFoundError) as e:
        console.error(str(e))
        return ExitCode.from_exception(e)

    except Exception as e:
        console.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback

            console.print()
            traceback.print_exc()
        return ExitCode.from_exception(e)

    finally:
        console.flush_json_errors()


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
