"""Sync commands for GitHub Org Mirror."""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import typer
from rich.table import Table

from github_org_mirror.config import get_settings
from github_org_mirror.db import MirrorStore, create_tables, dispose_engine, get_session
from github_org_mirror.db.models import RunType
from github_org_mirror.github import ConfigurationError, GitHubClient, RequestExecutor
from github_org_mirror.github.sync import NodeResync, OutputFormat, SyncService
from github_org_mirror.timestamps import to_iso

from .common import (
    OutputFormatOption,
    SinceOption,
    UntilOption,
    console,
    parse_date,
    run_async_command,
)

app = typer.Typer(help="Mirror organization activity from GitHub")


@asynccontextmanager
async def _open_store() -> AsyncIterator[MirrorStore]:
    """Store on a fresh session whose commits are managed by the sync engine."""
    await create_tables()
    try:
        async with get_session(auto_commit=False) as session:
            yield MirrorStore(session)
    finally:
        await dispose_engine()


@asynccontextmanager
async def _open_mirror() -> AsyncIterator[tuple[RequestExecutor, MirrorStore]]:
    """Executor and store for a command that talks to GitHub."""
    settings = get_settings()
    if not settings.github_token:
        raise ConfigurationError("GitHub token is not configured. Set GITHUB_TOKEN.")

    async with GitHubClient(settings.github_token) as client, _open_store() as store:
        yield RequestExecutor.from_config(client, settings.retry), store


def _print_counts(counts: dict[str, int], indent: str = "  ") -> None:
    for resource, count in counts.items():
        label = resource.replace("_", " ").title() + ":"
        console.print(f"{indent}{label:<16} {count}")


@app.command("run")
def sync_run(
    since: SinceOption = None,
    until: UntilOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Run an incremental sync of the configured organization.

    Examples:
        orgmirror sync run
        orgmirror sync run --since 2024-10-01
        orgmirror sync run --since 2024-10-01 --until 2024-11-01 --format json
    """
    try:
        since_dt = parse_date(since)
        until_dt = parse_date(until)
    except typer.BadParameter as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    async def _sync() -> dict[str, Any]:
        async with _open_mirror() as (executor, store):
            service = SyncService(executor, store)
            result = await service.run_incremental(since_dt, until_dt, RunType.MANUAL)
            return result.to_dict()

    if output_format == OutputFormat.TEXT:
        console.print(f"[dim]Syncing {get_settings().github_org or '(no organization)'}...[/dim]")
        if since_dt:
            console.print(f"[dim]  Since: {to_iso(since_dt)}[/dim]")
        if until_dt:
            console.print(f"[dim]  Until: {to_iso(until_dt)}[/dim]")
        console.print()

    result = run_async_command(_sync(), error_prefix="Sync failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        return

    summary = result["summary"]
    console.print(f"[bold]Sync Complete[/bold] (run {result['run_id']})")
    console.print()
    console.print(f"  Repositories:    {summary['repositories_processed']}")
    _print_counts(summary["counts"])
    console.print()
    for resource, latest in summary["timestamps"].items():
        console.print(f"  [dim]Latest {resource}: {latest or '-'}[/dim]")


@app.command("backfill")
def sync_backfill(
    start_date: str = typer.Argument(
        ...,
        help="First day to re-sync (YYYY-MM-DD)",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Re-sync everything from START_DATE to now, one chunk at a time.

    Examples:
        orgmirror sync backfill 2024-10-01
        orgmirror sync backfill 2024-10-01 --format json
    """

    async def _backfill() -> dict[str, Any]:
        async with _open_mirror() as (executor, store):
            result = await SyncService(executor, store).run_backfill(start_date)
            return result.to_dict()

    result = run_async_command(_backfill(), error_prefix="Backfill failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
    else:
        console.print(
            f"[bold]Backfill {result['start_date']} to {result['end_date']}[/bold] "
            f"({result['chunk_count']} chunks)"
        )
        console.print()
        _print_counts(result["totals"])

    failed = [chunk for chunk in result["chunks"] if chunk["status"] == "failed"]
    if failed:
        if output_format == OutputFormat.TEXT:
            chunk = failed[0]
            console.print()
            console.print(
                f"[red]Chunk [{chunk['since']} - {chunk['until']}) failed:[/red] {chunk['error']}"
            )
        raise typer.Exit(1)


@app.command("node")
def sync_node(
    node_id: str = typer.Argument(
        ...,
        help="Global node id of an issue, pull request or discussion",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Re-import a single issue, pull request or discussion.

    Examples:
        orgmirror sync node I_kwDOAbc123
        orgmirror sync node PR_kwDOAbc456 --format json
    """

    async def _resync() -> dict[str, Any]:
        settings = get_settings()
        async with _open_mirror() as (executor, store):
            resync = NodeResync(
                executor,
                store,
                target_project=settings.target_project_name.strip() or None,
                commit_batch_size=settings.sync.commit_batch_size,
            )
            result = await resync.resync(node_id)
            return result.to_dict()

    result = run_async_command(_resync(), error_prefix="Resync failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        return

    kind = result["type"].replace("_", " ")
    console.print(f"[bold]Re-imported {kind}[/bold] {result['node_id']} ({result['repository']})")
    console.print(f"  Comments: {result['comments']}")
    if result["type"] == "pull_request":
        console.print(f"  Reviews:  {result['reviews']}")
        console.print(
            f"  Review requests: +{result['review_requests_added']} "
            f"-{result['review_requests_removed']}"
        )


@app.command("status")
def sync_status(
    limit: int = typer.Option(
        5,
        "--limit",
        "-n",
        help="Number of recent runs to show",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show watermarks and recent sync runs.

    Examples:
        orgmirror sync status
        orgmirror sync status --limit 10 --format json
    """

    async def _status() -> dict[str, Any]:
        async with _open_store() as store:
            watermarks = await store.list_watermarks()
            runs = await store.list_recent_runs(limit)
            run_dicts: list[dict[str, Any]] = []
            for run in runs:
                logs = await store.list_run_logs(run.id)
                run_dicts.append(
                    {
                        "id": run.id,
                        "run_type": run.run_type.value,
                        "strategy": run.strategy.value,
                        "status": run.status.value,
                        "since": to_iso(run.since),
                        "until": to_iso(run.until),
                        "started_at": to_iso(run.started_at),
                        "completed_at": to_iso(run.completed_at),
                        "message": run.message,
                        "logs": [
                            {
                                "resource": entry.resource,
                                "status": entry.status.value,
                                "message": entry.message,
                            }
                            for entry in logs
                        ],
                    }
                )
            return {
                "last_successful_sync_at": to_iso(await store.last_successful_sync_at()),
                "watermarks": {
                    state.resource: to_iso(state.last_item_timestamp) for state in watermarks
                },
                "runs": run_dicts,
            }

    result = run_async_command(_status())

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        return

    console.print(f"Last successful sync: {result['last_successful_sync_at'] or 'never'}")
    console.print()

    table = Table(title="Watermarks")
    table.add_column("Resource", style="cyan")
    table.add_column("Latest item")
    for resource, latest in result["watermarks"].items():
        table.add_row(resource, latest or "-")
    console.print(table)

    if not result["runs"]:
        console.print("[dim]No sync runs recorded[/dim]")
        return

    runs_table = Table(title="Recent Runs")
    runs_table.add_column("Run", style="cyan", justify="right")
    runs_table.add_column("Type")
    runs_table.add_column("Status")
    runs_table.add_column("Started")
    runs_table.add_column("Resources")
    for run in result["runs"]:
        status = run["status"]
        style = {"success": "green", "failed": "red"}.get(status, "yellow")
        resources = ", ".join(
            f"{entry['resource']}={entry['status']}" for entry in run["logs"]
        )
        runs_table.add_row(
            str(run["id"]),
            f"{run['run_type']}/{run['strategy']}",
            f"[{style}]{status}[/{style}]",
            run["started_at"] or "-",
            resources or "-",
        )
    console.print(runs_table)


@app.command("cleanup")
def sync_cleanup(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Mark runs left running by an interrupted process as failed.

    Examples:
        orgmirror sync cleanup
    """

    async def _cleanup() -> dict[str, int]:
        async with _open_store() as store:
            runs, logs = await store.cleanup_running("Marked as failed by cleanup.")
            return {"runs": runs, "logs": logs}

    result = run_async_command(_cleanup())

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        return

    if result["runs"] == 0 and result["logs"] == 0:
        console.print("[dim]No running syncs to clean up[/dim]")
        return
    console.print(
        f"Marked {result['runs']} runs and {result['logs']} log entries as [red]failed[/red]"
    )
