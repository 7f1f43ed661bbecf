"""``orgmirror`` entry point."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from github_org_mirror import __version__
from github_org_mirror.cli import sync as sync_cmd
from github_org_mirror.config import get_settings
from github_org_mirror.logging import setup_logging

app = typer.Typer(
    name="orgmirror",
    help="Incremental mirror of a GitHub organization's activity.",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(sync_cmd.app, name="sync")

console = Console()


def _show_version(value: bool) -> None:
    if not value:
        return
    console.print(f"orgmirror {__version__}")
    raise typer.Exit()


VersionFlag = Annotated[
    bool,
    typer.Option("--version", help="Show version and exit.", callback=_show_version, is_eager=True),
]
VerboseFlag = Annotated[bool, typer.Option("--verbose", "-v", help="Log at DEBUG level.")]
QuietFlag = Annotated[bool, typer.Option("--quiet", "-q", help="Log warnings and errors only.")]
LogFileOption = Annotated[
    Path | None,
    typer.Option("--log-file", help="Also write DEBUG logs to this file (overrides LOGGING__LOG_FILE)."),
]


@app.callback()
def main(
    version: VersionFlag = False,
    verbose: VerboseFlag = False,
    quiet: QuietFlag = False,
    log_file: LogFileOption = None,
) -> None:
    """Keep a local copy of a GitHub organization's issues, discussions and pull requests."""
    settings = get_settings()
    file_sink = log_file or (Path(settings.logging.log_file) if settings.logging.log_file else None)

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=file_sink,
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
        serialize=settings.logging.serialize,
    )


if __name__ == "__main__":
    app()
