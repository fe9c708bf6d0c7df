"""Rich terminal display for shed."""

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from shed.models import (
    NO_VALUE,
    CleanupAction,
    CleanupActionsData,
    DevCachesData,
    DockerData,
    GitReposData,
    ProjectLink,
    ScanRoot,
    Snapshot,
    format_size,
)

console = Console()


def usage_color(part: int, whole: int) -> str:
    """Color for a share of the disk."""
    if whole <= 0:
        return "white"
    share = part / whole
    if share >= 0.25:
        return "red"
    elif share >= 0.10:
        return "yellow"
    return "green"


def show_dashboard(snapshot: Snapshot) -> None:
    """Display the per-section totals of a snapshot."""
    total_disk = snapshot.total_disk_bytes

    table = Table(title="Developer Disk Usage", show_header=True, header_style="bold")
    table.add_column("Section", style="bold")
    table.add_column("Items", justify="right")
    table.add_column("Size", justify="right")

    rows = [
        ("Homebrew packages", len(snapshot.brew.packages), snapshot.brew.total_bytes),
        ("Homebrew cache", None, snapshot.brew.cache_bytes),
        ("npm globals", len(snapshot.npm_globals.packages), snapshot.npm_globals.total_bytes),
        ("npm / pnpm cache", None, snapshot.npm_cache.total_bytes),
        ("node_modules", len(snapshot.node_modules.entries), snapshot.node_modules.total_bytes),
        ("Git repositories", len(snapshot.git_repos.repos), snapshot.git_repos.total_bytes),
        ("Applications", len(snapshot.apps.apps), snapshot.apps.total_bytes),
        ("Developer caches", len(snapshot.dev_caches.entries), snapshot.dev_caches.total_bytes),
    ]
    for label, count, size in rows:
        color = usage_color(size, total_disk)
        table.add_row(label, "" if count is None else str(count), f"[{color}]{format_size(size)}[/{color}]")

    docker = snapshot.docker
    if docker.online:
        table.add_row("Docker", str(len(docker.images) + len(docker.containers) + len(docker.volumes)), docker.total_size_str)
    else:
        table.add_row("Docker", "", "[dim]offline[/dim]")

    console.print(table)

    summary = f"[bold]Tracked:[/bold] {format_size(snapshot.tracked_bytes)}"
    if total_disk:
        summary += f" of {format_size(total_disk)} disk"
    summary += f"\n[dim]Scanned {snapshot.created_at:%Y-%m-%d %H:%M}[/dim]"
    console.print(Panel(summary, title="Summary", border_style="blue"))


def show_links(package: str, links: list[ProjectLink]) -> None:
    """Display the projects referencing a package."""
    if not links:
        console.print(f"[yellow]No projects reference {package}.[/yellow]")
        return

    console.print(f"[bold]{package}[/bold] is referenced by {len(links)} project(s)\n")
    for link in links:
        console.print(f"  [bold cyan]{link.project_name}[/bold cyan]")
        for file in link.files:
            console.print(f"    • {file}")


def show_repos(data: GitReposData) -> None:
    """Display git repositories."""
    if not data.repos:
        console.print("[yellow]No git repositories found.[/yellow]")
        return

    table = Table(title="Git Repositories", show_header=True, header_style="bold")
    table.add_column("Repository", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column(".git", justify="right")
    table.add_column("node_modules", justify="right")
    table.add_column("Docker images")

    for repo in data.repos:
        table.add_row(
            repo.name,
            repo.size_human,
            format_size(repo.git_size_bytes),
            format_size(repo.node_modules_size_bytes) if repo.node_modules_size_bytes else "",
            ", ".join(repo.linked_docker_images),
        )

    console.print(table)
    console.print(
        f"Total: {format_size(data.total_bytes)} "
        f"(.git {format_size(data.total_git_bytes)}, "
        f"node_modules {format_size(data.total_node_modules_bytes)})"
    )


def show_docker(data: DockerData) -> None:
    """Display Docker images, containers and volumes."""
    if not data.online:
        console.print("[yellow]Docker is not running.[/yellow]")
        return

    images = Table(title="Images", show_header=True, header_style="bold")
    images.add_column("Image", style="cyan")
    images.add_column("Size", justify="right")
    images.add_column("Projects")
    for image in data.images:
        images.add_row(image.display_tag, image.size_str, ", ".join(image.linked_projects))
    console.print(images)

    containers = Table(title="Containers", show_header=True, header_style="bold")
    containers.add_column("Name", style="cyan")
    containers.add_column("Image")
    containers.add_column("State")
    containers.add_column("Size", justify="right")
    containers.add_column("Projects")
    for container in data.containers:
        state_color = "green" if container.state == "running" else "dim"
        containers.add_row(
            container.name,
            container.image,
            f"[{state_color}]{container.state}[/{state_color}]",
            container.size_str,
            ", ".join(container.linked_projects),
        )
    console.print(containers)

    volumes = Table(title="Volumes", show_header=True, header_style="bold")
    volumes.add_column("Name", style="cyan")
    volumes.add_column("Driver")
    volumes.add_column("Size", justify="right")
    volumes.add_column("Projects")
    for volume in data.volumes:
        volumes.add_row(volume.name, volume.driver, volume.size_str, ", ".join(volume.linked_projects))
    console.print(volumes)

    console.print(f"Build cache: {data.build_cache_size_str} ({data.build_cache_reclaimable_str} reclaimable)")
    if data.total_size_str != NO_VALUE:
        console.print(f"Total: {data.total_size_str} ({data.reclaimable_size_str} reclaimable)")


def show_caches(data: DevCachesData, actions: CleanupActionsData) -> None:
    """Display developer caches grouped by tool, then the cleanup actions."""
    if data.groups:
        table = Table(title="Developer Caches", show_header=True, header_style="bold")
        table.add_column("Tool", style="cyan")
        table.add_column("Cache")
        table.add_column("Size", justify="right")
        table.add_column("")

        for group in data.groups:
            for entry in group.entries:
                flag = "[green]✓[/green]" if entry.cleanable else "[yellow]![/yellow]"
                table.add_row(group.tool, entry.label, entry.size_human, flag)

        console.print(table)
        console.print(f"Total: {format_size(data.total_bytes)}\n")
    else:
        console.print("[yellow]No developer caches found.[/yellow]\n")

    show_cleanup_actions(actions.actions)


def show_cleanup_actions(actions: list[CleanupAction]) -> None:
    """Display the available cleanup actions."""
    table = Table(title="Cleanup Actions", show_header=True, header_style="bold")
    table.add_column("ID", style="bold")
    table.add_column("Action")
    table.add_column("Frees", justify="right")
    table.add_column("Command", style="dim")

    for action in actions:
        table.add_row(
            action.id,
            action.label,
            action.size_human if action.size_bytes else "?",
            " ".join([action.command, *action.args]),
        )

    console.print(table)
    console.print("[dim]Run [bold]shed clean <id>[/bold] to run an action[/dim]")


def show_cleanup_preview(action: CleanupAction) -> None:
    """Display what a cleanup action is about to do."""
    body = f"{action.description}\n\n[bold]Command:[/bold] {' '.join([action.command, *action.args])}"
    if action.size_bytes:
        body += f"\n[bold]Expected to free:[/bold] {action.size_human}"
    console.print(Panel(body, title=action.label, border_style="blue"))
    if action.warning:
        console.print(Panel(f"[bold]Warning:[/bold] {action.warning}", border_style="red"))


def show_scan_roots(roots: list[ScanRoot]) -> None:
    """Display the effective project scan roots."""
    table = Table(title="Scan Roots", show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Depth", justify="right")
    for root in roots:
        table.add_row(root.path, str(root.depth))
    console.print(table)


def show_scanning_progress() -> Progress:
    """Create progress bar for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
