"""Shared CLI plumbing: the console, option types and async execution."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from datetime import datetime
from typing import Annotated, TypeVar

import typer
from rich.console import Console

from github_org_mirror.github.sync.enums import OutputFormat
from github_org_mirror.timestamps import parse_timestamp

console = Console()

T = TypeVar("T")


def run_async_command(coro: Coroutine[object, object, T], *, error_prefix: str = "Error") -> T:
    """Run ``coro`` to completion; any failure is printed and exits with code 1."""
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


def parse_date(date_str: str | None) -> datetime | None:
    """Parse ``--since``/``--until`` values into aware UTC datetimes.

    Accepts a bare date (midnight UTC) or any ISO 8601 timestamp; naive
    timestamps are taken as UTC.

    Raises:
        typer.BadParameter: If the value is not a date
    """
    if date_str is None:
        return None
    parsed = parse_timestamp(date_str)
    if parsed is None:
        raise typer.BadParameter(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS format."
        )
    return parsed


OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option("--format", "-f", help="Output format"),
]

SinceOption = Annotated[
    str | None,
    typer.Option(
        "--since",
        help="Lower bound (YYYY-MM-DD or ISO format). Defaults to the last successful sync.",
    ),
]

UntilOption = Annotated[
    str | None,
    typer.Option(
        "--until",
        help="Exclusive upper bound (YYYY-MM-DD or ISO format). Defaults to now.",
    ),
]
