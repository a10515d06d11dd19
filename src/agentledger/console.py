"""Rich console utilities for the AgentLedger CLI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agentledger.domain.models import (
    AgentIdentity,
    CoordinationStatus,
    HistoryEntry,
    PatternMatch,
    PatternRecord,
)

# Shared console instances
console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    "declared": "cyan",
    "attempting": "yellow",
    "running": "yellow",
    "completed": "green",
    "failed": "red",
    "active": "green",
    "idle": "dim",
    "blocked": "red",
}


def styled_status(status: str) -> Text:
    return Text(status, style=STATUS_STYLES.get(status, ""))


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_coordination(status: CoordinationStatus) -> None:
    """Print recent executions and a per-status summary."""
    table = Table(title=f"Executions as of {status.as_of:%Y-%m-%d %H:%M:%S}")
    table.add_column("Execution", style="cyan")
    table.add_column("Agent", style="magenta")
    table.add_column("Intent")
    table.add_column("Status")
    table.add_column("Started")

    for entry in status.executions:
        table.add_row(
            entry.execution_id,
            entry.agent_id,
            truncate(entry.intent, 40),
            styled_status(entry.status),
            f"{entry.started_at:%H:%M:%S}",
        )
    console.print(table)

    line = f"Total: {status.total_executions} execution(s)"
    if status.by_status:
        counts = ", ".join(f"{k}: {v}" for k, v in sorted(status.by_status.items()))
        line += f" ({counts})"
    console.print(line)


def print_history(execution_id: str, history: Sequence[HistoryEntry]) -> None:
    table = Table(title=f"History of {execution_id}")
    table.add_column("#", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("At")
    table.add_column("Details")

    for i, entry in enumerate(history, 1):
        table.add_row(
            str(i),
            entry.type,
            f"{entry.timestamp:%Y-%m-%d %H:%M:%S}",
            _history_details(entry.data),
        )
    console.print(table)


def _history_details(data: dict[str, Any]) -> str:
    for key in ("intent", "action", "output", "reason"):
        if data.get(key):
            return truncate(str(data[key]), 50)
    if "passed" in data:
        if data["passed"]:
            return "passed"
        return truncate("failed: " + "; ".join(data.get("errors", [])), 50)
    return ""


def print_matches(query: str, matches: Sequence[PatternMatch]) -> None:
    table = Table(title=f"Patterns matching {query!r}")
    table.add_column("Method", style="magenta")
    table.add_column("Confidence", justify="right")
    table.add_column("Intent pattern", style="cyan")
    table.add_column("Approach")

    for m in matches:
        table.add_row(
            m.method,
            f"{m.confidence:.2f}",
            m.pattern.intent_pattern,
            truncate(m.pattern.approach, 40),
        )
    console.print(table)


def print_patterns(patterns: Sequence[PatternRecord]) -> None:
    table = Table(title="Knowledge patterns")
    table.add_column("Intent pattern", style="cyan")
    table.add_column("Approach")
    table.add_column("Success", justify="right")
    table.add_column("Captured")

    for p in patterns:
        table.add_row(
            p.intent_pattern,
            truncate(p.approach, 40),
            f"{p.success_rate:.0%}",
            f"{p.timestamp:%Y-%m-%d %H:%M}",
        )
    console.print(table)


def print_agents(agents: Sequence[AgentIdentity]) -> None:
    table = Table(title="Agents")
    table.add_column("Agent", style="cyan")
    table.add_column("Name")
    table.add_column("Role", style="magenta")
    table.add_column("Status")
    table.add_column("Last active")

    for a in agents:
        table.add_row(
            a.agent_id,
            a.name,
            a.role,
            styled_status(a.status.value),
            f"{a.last_active_at:%Y-%m-%d %H:%M:%S}" if a.last_active_at else "-",
        )
    console.print(table)


def print_containers(containers: Sequence[dict[str, Any]]) -> None:
    table = Table(title="Containers")
    table.add_column("ID", style="cyan")
    table.add_column("Repository")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Created")

    for c in containers:
        table.add_row(
            truncate(str(c.get("id", "")), 12),
            str(c.get("repo", "")),
            truncate(str(c.get("task", "")), 30),
            styled_status(str(c.get("status", ""))),
            str(c.get("created_at", "-")),
        )
    console.print(table)
    console.print(f"Total: {len(containers)} container(s)")


def print_properties(title: str, rows: Sequence[tuple[str, Any]]) -> None:
    """Print a two-column Property/Value table."""
    table = Table(title=title, show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)
