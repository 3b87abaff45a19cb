"""
Output - Console output formatting.

Provides pretty-printed output with colors and formatting, plus a JSON mode
for scripting.
"""

import json
import sys
from typing import Any

from tracksync.application.sync import IssueSyncResult, ProjectSyncStatus, SyncResult
from tracksync.core.domain.snapshots import RemoteTeam


class Colors:
    """
    ANSI color codes for terminal output.
    """

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """
    Unicode symbols for terminal output.
    """

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    LINK = "🔗"

    BOX_H = "─"


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress most output (for CI/scripting).
        json_mode: Whether to output JSON format for programmatic use.
    """

    def __init__(
        self,
        color: bool = True,
        verbose: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        """
        Initialize the console output helper.

        Args:
            color: Enable colored output. Automatically disabled if stdout is not a TTY.
            verbose: Enable verbose debug output.
            quiet: Suppress most output, only show errors and final summary.
            json_mode: Output JSON format instead of text.
        """
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose
        self.quiet = quiet or json_mode  # JSON mode implies quiet for intermediate output

        self._json_errors: list[str] = []

        # Quiet mode overrides verbose
        if self.quiet:
            self.verbose = False

    def _c(self, text: str, *codes: str) -> str:
        """Apply color codes to text, or return it unchanged when color is off."""
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "", force: bool = False) -> None:
        """
        Print text to stdout.

        Args:
            text: Text to print. Defaults to empty string for blank line.
            force: Print even in quiet mode.
        """
        if self.quiet and not force:
            return
        print(text)

    def header(self, text: str) -> None:
        """Print a prominent header with borders."""
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        """Print a section header."""
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        """Print a success message with checkmark."""
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """
        Print an error message with cross symbol.

        Always prints, even in quiet mode. Collected in JSON mode.
        """
        if self.json_mode:
            self._json_errors.append(text)
            return
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED))

    def config_errors(self, errors: list[str]) -> None:
        """Print configuration errors with a hint. Always prints."""
        if self.json_mode:
            self._json_errors.extend(errors)
            return
        print(self._c(f"  {Symbols.CROSS} Configuration errors:", Colors.RED, Colors.BOLD))
        for error in errors:
            print(f"    {Symbols.DOT} {error}")
        print(self._c("    Set the values in the environment or a .env file.", Colors.DIM))

    def warning(self, text: str) -> None:
        """Print a warning message with warning symbol."""
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        """Print an info message with info symbol."""
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        """Print detail text in dimmed color with extra indentation."""
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        """Print debug message (only visible in verbose mode)."""
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def item(self, text: str, status: str | None = None) -> None:
        """
        Print a list item with optional status indicator.

        Args:
            text: Item text to display.
            status: "ok", "fail", or any other label shown dimmed.
        """
        if self.quiet:
            return
        status_str = ""
        if status == "ok":
            status_str = self._c(f" [{Symbols.CHECK}]", Colors.GREEN)
        elif status == "fail":
            status_str = self._c(f" [{Symbols.CROSS}]", Colors.RED)
        elif status:
            status_str = self._c(f" [{status}]", Colors.DIM)

        self.print(f"    {Symbols.DOT} {text}{status_str}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """
        Print a formatted table with headers.

        Automatically calculates column widths based on content.
        """
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        header_line = "  " + "  ".join(
            self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers)
        )
        self.print(header_line)
        self.print("  " + "  ".join("-" * w for w in widths))

        for row in rows:
            row_line = "  " + "  ".join(
                str(cell).ljust(widths[i]) if i < len(widths) else str(cell)
                for i, cell in enumerate(row)
            )
            self.print(row_line)

    def emit_json(self, payload: dict[str, Any]) -> None:
        """Print a JSON document, merging any collected errors."""
        if self._json_errors:
            payload = {**payload, "errors": list(payload.get("errors", [])) + self._json_errors}
        self._json_errors = []
        print(json.dumps(payload, indent=2, default=str))

    def flush_json_errors(self) -> None:
        """In JSON mode, emit errors that no result document carried."""
        if self.json_mode and self._json_errors:
            self.emit_json({"success": False})

    # -------------------------------------------------------------------------
    # Result Rendering
    # -------------------------------------------------------------------------

    def teams(self, teams: list[RemoteTeam]) -> None:
        """Print the Linear teams visible to the token."""
        if self.json_mode:
            self.emit_json({"teams": [{"id": t.id, "key": t.key, "name": t.name} for t in teams]})
            return
        if not teams:
            self.warning("No teams visible to this API key")
            return
        self.table(["Key", "Name", "ID"], [[t.key, t.name, t.id] for t in teams])

    def sync_result(self, result: SyncResult) -> None:
        """
        Print the outcome of a single-entity sync operation.

        In quiet mode, prints a single line summary suitable for CI/scripting.
        """
        if self.json_mode:
            output: dict[str, Any] = {
                "operation": result.operation,
                "entity_id": result.entity_id,
                "success": result.success,
                "remote_id": result.remote_id,
                "errors": result.errors,
                "warnings": result.warnings,
            }
            if result.project is not None:
                output["project"] = result.project.to_dict()
            if result.task is not None:
                output["task"] = result.task.to_dict()
            if isinstance(result, IssueSyncResult):
                output["stats"] = {
                    "created": len(result.created),
                    "updated": len(result.updated),
                    "orphaned": len(result.orphaned),
                    "failed": len(result.failed_operations),
                }
                output["failed_operations"] = [
                    {
                        "operation": op.operation,
                        "entity_id": op.entity_id,
                        "remote_id": op.remote_id,
                        "error": op.error,
                    }
                    for op in result.failed_operations
                ]
            self.emit_json(output)
            return

        if self.quiet:
            status = "OK" if result.success else "FAILED"
            parts = [f"status={status}", f"operation={result.operation}", f"id={result.entity_id}"]
            if isinstance(result, IssueSyncResult):
                parts += [
                    f"created={len(result.created)}",
                    f"updated={len(result.updated)}",
                    f"orphaned={len(result.orphaned)}",
                ]
            if result.errors:
                parts.append(f"errors={len(result.errors)}")
            print(" ".join(parts))
            for e in result.errors:
                print(f"ERROR: {e}")
            return

        if isinstance(result, IssueSyncResult):
            self.section("Issue Sync Complete")
            self.table(
                ["Metric", "Count"],
                [
                    ["Created", str(len(result.created))],
                    ["Updated", str(len(result.updated))],
                    ["Orphaned", str(len(result.orphaned))],
                    ["Failed", str(len(result.failed_operations))],
                ],
            )
        elif result.remote_id:
            self.detail(f"{Symbols.LINK} Linear: {result.remote_id}")

        if result.warnings:
            self.print()
            self.warning(f"{len(result.warnings)} warning(s):")
            for w in result.warnings[:5]:
                self.detail(w)

        if result.errors:
            self.print()
            self.error(f"{len(result.errors)} error(s):")
            for e in result.errors[:5]:
                self.detail(e)
            if len(result.errors) > 5:
                self.detail(f"... and {len(result.errors) - 5} more")

        self.print()
        if result.success:
            self.success(f"{result.operation} completed successfully")
        else:
            self.error(f"{result.operation} completed with errors")

    def sync_status(self, status: ProjectSyncStatus) -> None:
        """Print a project's sync health."""
        project = status.project
        metrics = status.metrics

        if self.json_mode:
            self.emit_json(
                {
                    "project": project.to_dict(),
                    "linked": status.is_linked,
                    "remote_project": (
                        {
                            "id": status.remote_project.id,
                            "name": status.remote_project.name,
                            "state": status.remote_project.state,
                            "progress": status.remote_project.progress,
                            "url": status.remote_project.url,
                        }
                        if status.remote_project
                        else None
                    ),
                    "remote_error": status.remote_error,
                    "tasks": {
                        "total": metrics.total,
                        "synced": metrics.synced,
                        "pending": metrics.pending,
                        "failed": metrics.failed,
                        "not_synced": metrics.not_synced,
                    },
                }
            )
            return

        self.header(f"{project.name} ({project.id})")
        self.item(f"Status: {project.status.display_name}")
        self.item(f"Sync: {project.sync_status.emoji} {project.sync_status.display_name}")
        if project.last_synced_at:
            self.item(f"Last synced: {project.last_synced_at.isoformat()}")
        if project.last_sync_error:
            self.item(f"Last error: {project.last_sync_error}", status="fail")

        if not status.is_linked:
            self.warning("Not linked to Linear")
        elif status.remote_project:
            remote = status.remote_project
            self.item(f"Linear: {remote.name} [{remote.state}]", status="ok")
            if remote.url:
                self.detail(f"{Symbols.LINK} {remote.url}")
        elif status.remote_error:
            self.warning(f"Could not fetch Linear project: {status.remote_error}")

        self.section("Tasks")
        self.table(
            ["Total", "Synced", "Pending", "Failed", "Not synced"],
            [[str(metrics.total), str(metrics.synced), str(metrics.pending), str(metrics.failed), str(metrics.not_synced)]],
        )
