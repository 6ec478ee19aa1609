# src/driftwatch/cli.py: Command-Line Interface (CLI) entry point.
# Implemented using Typer, this module provides the 'driftctl' command. It
# can show the drift status of configured patterns, resolve a revision on a
# remote, run a one-off drift check, and start the watcher daemon.

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import daemon
from .conditions import (
    GIT_SYNC_TYPES,
    ConditionReporter,
    ConditionStatus,
    ConditionType,
    get_condition_by_status,
)
from .config import Config, load_config
from .drift import DriftDetector
from .gitwrap import git_ls_remote
from .remote.gitcli import git_remote_factory
from .resolver import resolve as resolve_revision
from .util.errors import DriftwatchError
from .watcher import utcnow

app = typer.Typer(
    help="Watch GitOps patterns for drift between their origin and target repositories."
)
console = Console()

state = {"config_path": None}

@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (defaults to the XDG config location)."
    )
):
    state["config_path"] = config

def fail(e: DriftwatchError):
    console.print(f"[bold red]Error:[/bold red] {e}")
    raise typer.Exit(e.exit_code)

def get_config() -> Config:
    """Loads the config and handles errors."""
    try:
        return load_config(state["config_path"])
    except DriftwatchError as e:
        fail(e)

@app.command()
def status():
    """Show each pattern's git configuration and current sync condition."""
    config = get_config()
    try:
        store = daemon.build_store(config, state["config_path"])
        patterns = store.list_patterns()
    except DriftwatchError as e:
        fail(e)

    table = Table("Namespace", "Name", "Origin", "Target", "Interval", "Git")
    for pattern in patterns:
        git = pattern.git_config
        active = [c for c in pattern.conditions if c.type in GIT_SYNC_TYPES]
        _, condition = get_condition_by_status(active, ConditionStatus.TRUE)
        if condition is None:
            sync = "[dim]unknown[/dim]"
        elif condition.type == ConditionType.GIT_IN_SYNC:
            sync = "[green]GitInSync[/green]"
        else:
            sync = "[red]GitOutOfSync[/red]"
        interval = "disabled" if not git.watchable else f"{git.poll_interval}s"
        table.add_row(
            pattern.namespace,
            pattern.name,
            f"{git.origin_repo} ({git.origin_revision or 'HEAD'})",
            f"{git.target_repo} ({git.target_revision or 'HEAD'})",
            interval,
            sync,
        )
    console.print(table)

@app.command()
def resolve(
    url: str = typer.Argument(..., help="Remote repository URL."),
    revision: str = typer.Argument("", help="Branch, tag, commit or HEAD. Defaults to 'main'."),
    timeout: int = typer.Option(120, help="Timeout in seconds for listing the remote."),
):
    """Resolve a revision on a remote repository to a commit hash."""
    try:
        references = git_ls_remote(url, timeout=timeout)
        commit = resolve_revision(references, revision)
    except DriftwatchError as e:
        fail(e)
    console.print(commit)

@app.command()
def check(
    name: str = typer.Argument(..., help="The name of the pattern to check."),
    namespace: str = typer.Option("default", "--namespace", "-n"),
    report: bool = typer.Option(False, help="Write the resulting condition to the pattern's status."),
):
    """Run a single drift check for a pattern."""
    config = get_config()
    try:
        store = daemon.build_store(config, state["config_path"])
        detector = DriftDetector(store, git_remote_factory(config.defaults.git_timeout_sec))
        with console.status(f"Checking [bold cyan]{namespace}/{name}[/bold cyan]...", spinner="dots"):
            drifted = detector.has_drifted(name, namespace)
        if report:
            ConditionReporter(store).report(name, namespace, drifted, utcnow())
    except DriftwatchError as e:
        fail(e)

    if drifted:
        console.print(f"[bold red]{namespace}/{name}: git repositories are out of sync[/bold red]")
        raise typer.Exit(1)
    console.print(f"[bold green]{namespace}/{name}: git repositories are in sync[/bold green]")

@app.command()
def watch():
    """Run the drift watcher daemon in the foreground."""
    daemon.main(state["config_path"])

if __name__ == "__main__":
    app()
