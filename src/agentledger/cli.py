"""
Command line interface for AgentLedger.

Usage:
    agentledger status
    agentledger history <execution_id>
    agentledger match "fix lint errors" --threshold 0.8
    agentledger containers spawn --repo org/repo --task "fix lint errors"
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from pathlib import Path

import click

from agentledger.application import PatternMatcher
from agentledger.config import load_config
from agentledger.console import (
    console,
    print_agents,
    print_containers,
    print_coordination,
    print_error,
    print_history,
    print_matches,
    print_patterns,
    print_properties,
    print_success,
    truncate,
)
from agentledger.domain.exceptions import ConfigurationError, ContainerDaemonError
from agentledger.domain.interfaces import ContainerDaemonInterface
from agentledger.domain.models import AgentStatus
from agentledger.infrastructure import ContainerDaemonClient
from agentledger.ledger import Ledger
from agentledger.logging_setup import setup_logging

EXIT_FAILURE = 1
EXIT_CONNECTION = 2
EXIT_AUTH = 3
EXIT_NOT_FOUND = 4


def _ledger(ctx: click.Context) -> Ledger:
    obj = ctx.ensure_object(dict)
    if "ledger" not in obj:
        obj["ledger"] = Ledger.from_config(obj["config"])
    ledger: Ledger = obj["ledger"]
    return ledger


def _daemon(ctx: click.Context) -> ContainerDaemonInterface:
    obj = ctx.ensure_object(dict)
    if "daemon" not in obj:
        config = obj["config"]
        obj["daemon"] = ContainerDaemonClient(
            config.daemon_url, token=config.daemon_token, timeout=config.daemon_timeout
        )
    daemon: ContainerDaemonInterface = obj["daemon"]
    return daemon


def _daemon_failed(ctx: click.Context, e: ContainerDaemonError) -> None:
    """Report a daemon error and exit with its code."""
    if e.is_connection_error:
        url = ctx.ensure_object(dict)["config"].daemon_url
        print_error(
            "Could not connect to container daemon",
            hint=f"Make sure the daemon is running at {url}",
        )
        ctx.exit(EXIT_CONNECTION)
    if e.is_auth_error:
        print_error(
            "Authentication failed",
            hint="Check your CONTAINER_DAEMON_TOKEN environment variable",
        )
        ctx.exit(EXIT_AUTH)
    if e.is_not_found:
        print_error(str(e))
        ctx.exit(EXIT_NOT_FOUND)
    print_error(str(e))
    ctx.exit(EXIT_FAILURE)


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to agentledger JSON configuration",
)
@click.option(
    "--storage-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the event log and identities (overrides config)",
)
@click.option("--log-file", default=None, type=click.Path(), help="Path to log file")
@click.option(
    "-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging to console"
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    storage_dir: Path | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Inspect and coordinate agents recorded in the ledger."""
    if verbose or log_file:
        setup_logging("agentledger", log_file=log_file, verbose=verbose)

    obj = ctx.ensure_object(dict)
    if "config" in obj:
        return
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print_error(str(e))
        ctx.exit(EXIT_FAILURE)
    if storage_dir is not None:
        config = replace(config, storage_dir=storage_dir)
    obj["config"] = config


# =============================================================================
# Ledger commands
# =============================================================================


@main.command()
@click.option(
    "--window",
    default=None,
    type=click.IntRange(min=1),
    help="Look-back window in seconds (default: from config, 1 hour)",
)
@click.pass_context
def status(ctx: click.Context, window: int | None) -> None:
    """Show executions declared in the recent coordination window."""
    knowledge = _ledger(ctx).knowledge
    snapshot = knowledge.get_coordination_status(
        timedelta(seconds=window) if window else None
    )
    print_coordination(snapshot)


@main.command()
@click.argument("execution_id")
@click.pass_context
def history(ctx: click.Context, execution_id: str) -> None:
    """Show every event of one execution, oldest first."""
    knowledge = _ledger(ctx).knowledge
    entries = knowledge.get_execution_history(execution_id)
    if not entries:
        print_error(f"No events recorded for execution {execution_id}")
        ctx.exit(EXIT_NOT_FOUND)
    print_history(execution_id, entries)

    state = knowledge.get_execution_state(execution_id)
    if state is not None:
        console.print(f"Status: {state.status.value}")


@main.command()
@click.argument("query")
@click.option(
    "--threshold",
    default=None,
    type=click.FloatRange(0.0, 1.0),
    help="Fuzzy match threshold (default: from config, 0.6)",
)
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Maximum matches")
@click.pass_context
def match(
    ctx: click.Context, query: str, threshold: float | None, limit: int | None
) -> None:
    """Find captured patterns similar to QUERY."""
    ledger = _ledger(ctx)
    matcher = ledger.matcher
    if threshold is not None:
        matcher = PatternMatcher(
            ledger.event_log,
            fuzzy_threshold=threshold,
            embedding_top_k=ledger.config.embedding_top_k,
        )
    matches = matcher.match(query, limit=limit)
    if not matches:
        console.print(f"No patterns match {query!r}")
        return
    print_matches(query, matches)


@main.command()
@click.argument("search", default="")
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1))
@click.pass_context
def patterns(ctx: click.Context, search: str, limit: int) -> None:
    """List captured knowledge patterns, newest first."""
    found = _ledger(ctx).knowledge.query_patterns(search, limit=limit)
    if not found:
        console.print("No patterns captured" + (f" matching {search!r}" if search else ""))
        return
    print_patterns(found)


@main.command()
@click.option(
    "--status",
    "status_filter",
    default=None,
    type=click.Choice([s.value for s in AgentStatus]),
    help="Only agents with this status",
)
@click.pass_context
def agents(ctx: click.Context, status_filter: str | None) -> None:
    """List registered agents."""
    registry = _ledger(ctx).identities
    found = registry.list_agents(AgentStatus(status_filter) if status_filter else None)
    if not found:
        console.print("No agents registered")
        return
    print_agents(found)


# =============================================================================
# Container daemon commands
# =============================================================================


@main.group()
def containers() -> None:
    """Manage agent containers through the container daemon."""


@containers.command("list")
@click.option(
    "--status",
    "status_filter",
    default=None,
    help="Filter by status (running, completed, failed)",
)
@click.pass_context
def list_containers(ctx: click.Context, status_filter: str | None) -> None:
    """List agent containers."""
    try:
        found = _daemon(ctx).list_containers(status_filter)
    except ContainerDaemonError as e:
        _daemon_failed(ctx, e)
        return
    if not found:
        if status_filter:
            console.print(f"No containers with status: {status_filter}")
        else:
            console.print("No containers found")
        return
    print_containers(found)


@containers.command()
@click.option("--repo", required=True, help="Repository in org/repo format")
@click.option("--task", required=True, help="Task description for the agent")
@click.option("--branch", default=None, help="Branch to work on (default: main)")
@click.option("--timeout", default=None, type=click.IntRange(min=1), help="Timeout in seconds")
@click.pass_context
def spawn(
    ctx: click.Context, repo: str, task: str, branch: str | None, timeout: int | None
) -> None:
    """Spawn a new agent container."""
    try:
        container = _daemon(ctx).spawn(repo, task, branch=branch, timeout=timeout)
    except ContainerDaemonError as e:
        _daemon_failed(ctx, e)
        return
    print_success("Container spawned")
    print_properties(
        "Container",
        [
            ("ID", container.get("container_id") or container.get("id", "unknown")),
            ("Repository", container.get("repo", repo)),
            ("Branch", branch or "main"),
            ("Task", truncate(task, 50)),
            ("Status", container.get("status", "running")),
        ],
    )


@containers.command("status")
@click.argument("container_id")
@click.pass_context
def container_status(ctx: click.Context, container_id: str) -> None:
    """Show detailed status of a container."""
    try:
        container = _daemon(ctx).get(container_id)
    except ContainerDaemonError as e:
        _daemon_failed(ctx, e)
        return
    print_properties(
        f"Container {container.get('id', container_id)}",
        [
            ("ID", container.get("id", container_id)),
            ("Repository", container.get("repo")),
            ("Task", container.get("task")),
            ("Status", container.get("status")),
            ("Exit Code", container.get("exit_code")),
            ("Created", container.get("created_at")),
            ("Completed", container.get("completed_at")),
        ],
    )
    if container.get("output"):
        console.print("Output (preview):", style="bold")
        console.print(truncate(container["output"], 500), markup=False)
    if container.get("error"):
        console.print("Error:", style="bold red")
        console.print(container["error"], markup=False)


@containers.command()
@click.argument("container_id")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def kill(ctx: click.Context, container_id: str, force: bool) -> None:
    """Terminate a running container."""
    daemon = _daemon(ctx)
    try:
        container = daemon.get(container_id)
        if container.get("status") != "running":
            console.print(f"Container is not running (status: {container.get('status')})")
            return
        confirmed = force or click.confirm(
            f"Terminate container {container_id}?", default=False
        )
        if not confirmed:
            console.print("Cancelled")
            return
        result = daemon.kill(container_id)
    except ContainerDaemonError as e:
        _daemon_failed(ctx, e)
        return
    if not result.get("success", False):
        print_error(result.get("message") or "Failed to terminate container")
        ctx.exit(EXIT_FAILURE)
    print_success("Container terminated")


@containers.command()
@click.argument("container_id")
@click.option("--tail", default=100, show_default=True, type=click.IntRange(min=1))
@click.pass_context
def logs(ctx: click.Context, container_id: str, tail: int) -> None:
    """Show container logs."""
    try:
        text = _daemon(ctx).logs(container_id, tail=tail)
    except ContainerDaemonError as e:
        _daemon_failed(ctx, e)
        return
    if not text:
        console.print("No logs available")
        return
    console.print(text, markup=False, highlight=False)


if __name__ == "__main__":
    main()
