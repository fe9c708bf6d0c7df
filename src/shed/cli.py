"""CLI interface for shed."""

import logging
from typing import Optional

import typer

from shed import __version__
from shed.analyzer import collect_all
from shed.cache import load_cached_snapshot
from shed.categories import CLEANUP_DEFINITIONS, expand_path, get_cleanup_definition
from shed.cleaner import estimate_size, run_cleanup_action
from shed.config import load_config, save_config, effective_scan_roots
from shed.display import (
    confirm_action,
    console,
    show_caches,
    show_cleanup_preview,
    show_dashboard,
    show_docker,
    show_links,
    show_repos,
    show_scan_roots,
    show_scanning_progress,
)
from shed.models import CleanupAction, ScanRoot, Snapshot

app = typer.Typer(
    name="shed",
    help="Inventory developer disk usage and see which projects use what",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"shed version {__version__}")
        raise typer.Exit()


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        count=True,
        help="Increase log verbosity (repeat for debug output).",
    ),
) -> None:
    """shed - developer disk usage inventory."""
    _setup_logging(verbose)


def load_snapshot(refresh: bool = False) -> Snapshot:
    """Return the cached snapshot, or run a fresh inventory."""
    if not refresh:
        cached = load_cached_snapshot()
        if cached is not None:
            return cached

    with show_scanning_progress() as progress:
        task = progress.add_task("Collecting...", total=None)

        def update_progress(done: int, total: int):
            progress.update(task, completed=done, total=total)

        return collect_all(progress_callback=update_progress, config=load_config())


@app.command()
def scan(
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached scan"),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
) -> None:
    """Inventory developer disk usage."""
    snapshot = load_snapshot(refresh)
    if as_json:
        typer.echo(snapshot.model_dump_json(indent=2))
        return
    console.print()
    show_dashboard(snapshot)


@app.command()
def links(
    package: str = typer.Argument(..., help="Homebrew or npm package name"),
) -> None:
    """Show which projects reference a package."""
    snapshot = load_snapshot()
    if package not in snapshot.links and package not in snapshot.package_names:
        console.print(f"[red]Unknown package: {package}[/red]")
        console.print("[dim]Run [bold]shed scan --json[/bold] to list installed packages[/dim]")
        raise typer.Exit(1)
    show_links(package, snapshot.links.get(package, []))


@app.command()
def repos() -> None:
    """List git repositories and their Docker images."""
    show_repos(load_snapshot().git_repos)


@app.command()
def docker() -> None:
    """List Docker images, containers and volumes with their projects."""
    show_docker(load_snapshot().docker)


@app.command()
def caches() -> None:
    """List developer caches and cleanup actions."""
    snapshot = load_snapshot()
    show_caches(snapshot.dev_caches, snapshot.cleanup_actions)


@app.command()
def clean(
    action_id: str = typer.Argument(..., help="Cleanup action to run"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Run a cleanup action."""
    definition = get_cleanup_definition(action_id)
    if definition is None:
        console.print(f"[red]Unknown action: {action_id}[/red]")
        console.print("\nAvailable actions:")
        for d in CLEANUP_DEFINITIONS:
            console.print(f"  • [bold]{d.id}[/bold] - {d.label}")
        raise typer.Exit(1)

    action = CleanupAction(
        id=definition.id,
        label=definition.label,
        description=definition.description,
        command=definition.command,
        args=list(definition.args),
        warning=definition.warning,
        size_bytes=estimate_size(definition),
    )
    show_cleanup_preview(action)

    if not yes and not confirm_action("Proceed with cleanup?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    try:
        process = run_cleanup_action(action, lambda line: console.print(line.rstrip("\n"), markup=False))
    except OSError as e:
        console.print(f"[red]Could not run {action.command}: {e}[/red]")
        raise typer.Exit(1)

    try:
        code = process.wait()
    except KeyboardInterrupt:
        process.kill()
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)

    if code != 0:
        console.print(f"[red]✗ {action.label} failed (exit {code})[/red]")
        raise typer.Exit(code)
    console.print(f"[green]✓ {action.label} done[/green]")


@app.command()
def config(
    add: Optional[str] = typer.Option(None, "--add", help="Add a project scan root"),
    depth: int = typer.Option(3, "--depth", min=0, help="Depth for the added root"),
    show: bool = typer.Option(False, "--show", help="Show the effective scan roots"),
) -> None:
    """Show or extend project scan roots."""
    settings = load_config()

    if add:
        path = str(expand_path(add))
        roots = [r for r in settings.git_scan_paths if str(expand_path(r.path)) != path]
        roots.append(ScanRoot(path=path, depth=depth))
        settings = settings.model_copy(update={"git_scan_paths": roots})
        try:
            save_config(settings)
        except OSError as e:
            console.print(f"[red]Could not save configuration: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Added {path} (depth {depth})[/green]")
        if not show:
            return

    show_scan_roots(effective_scan_roots(settings))


if __name__ == "__main__":
    app()
