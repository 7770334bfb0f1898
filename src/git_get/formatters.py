"""Output formatters for console and JSON display."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from .models import FleetSummary, RepositoryStatus


STATUS_COLUMNS = (
    "REPOSITORY",
    "PATH",
    "LOCAL_CHANGES",
    "NOT_ON_REF",
    "ERROR",
    "SKIPPED",
    "CLEAN",
)

PLACEHOLDER = "-"


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def status_row(status: RepositoryStatus, root_path: Path | None = None) -> list[str]:
    """Plain cell values for one repository, in STATUS_COLUMNS order."""
    if status.skipped:
        return [
            status.url,
            PLACEHOLDER,
            PLACEHOLDER,
            PLACEHOLDER,
            PLACEHOLDER,
            _flag(True),
            _flag(status.clean),
        ]
    return [
        status.url,
        _relative_path(status.full_path, root_path),
        _flag(status.uncommitted_changes),
        _flag(status.not_on_ref_branch),
        _flag(status.error),
        _flag(False),
        _flag(status.clean),
    ]


def _relative_path(path: str, root: Path | None) -> str:
    """Get relative path from root."""
    if not path or root is None:
        return path or PLACEHOLDER
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path


class OutputFormatter:
    """Format output for console or JSON."""

    def __init__(self, console: Console, use_json: bool = False):
        self.console = console
        self.use_json = use_json

    def print_status_list(
        self,
        statuses: list[RepositoryStatus],
        summary: FleetSummary,
        root_path: Path | None = None,
    ):
        """Print status list."""
        if self.use_json:
            self._print_status_json(statuses, summary)
        else:
            self._print_status_table(statuses, summary, root_path)

    def _print_status_table(
        self,
        statuses: list[RepositoryStatus],
        summary: FleetSummary,
        root_path: Path | None,
    ):
        """Print rich table output."""
        table = Table(title="Repositories")
        for column in STATUS_COLUMNS:
            if column == "REPOSITORY":
                table.add_column(column, style="cyan", no_wrap=True)
            elif column == "PATH":
                table.add_column(column)
            else:
                table.add_column(column, justify="center")

        for status in statuses:
            repo_display, path_display, *flags = status_row(status, root_path)
            styled = [
                self._style_flag(column, value)
                for column, value in zip(STATUS_COLUMNS[2:], flags)
            ]
            table.add_row(repo_display, path_display, *styled)

        self.console.print(table)
        self.console.print()
        self._print_summary(summary)

    def _style_flag(self, column: str, value: str) -> str:
        if value != "yes":
            return f"[dim]{value}[/]"
        match column:
            case "CLEAN":
                return "[green]yes[/]"
            case "ERROR":
                return "[red]yes[/]"
            case "SKIPPED":
                return "[blue]yes[/]"
            case _:
                return "[yellow]yes[/]"

    def _print_summary(self, summary: FleetSummary):
        """Print summary."""
        parts = [f"[bold]Total:[/] {summary.total}"]

        if summary.clean > 0:
            parts.append(f"[green]✓ Clean:[/] {summary.clean}")
        if summary.local_changes > 0:
            parts.append(f"[yellow]✎ Local changes:[/] {summary.local_changes}")
        if summary.not_on_ref > 0:
            parts.append(f"[yellow]⎇ Not on ref:[/] {summary.not_on_ref}")
        if summary.skipped > 0:
            parts.append(f"[blue]Skipped:[/] {summary.skipped}")
        if summary.errors > 0:
            parts.append(f"[red]✗ Errors:[/] {summary.errors}")

        self.console.print(" | ".join(parts))

    def _print_status_json(self, statuses: list[RepositoryStatus], summary: FleetSummary):
        """Print JSON output."""
        output = {
            "repositories": [s.to_dict() for s in statuses],
            "summary": summary.to_dict(),
        }
        self.console.print(
            json.dumps(output, indent=2, default=str), markup=False, highlight=False, soft_wrap=True
        )
