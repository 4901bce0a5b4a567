"""Command-line interface for releaselog."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from releaselog.errors import IngestionError, RefResolutionError
from releaselog.feeds import fetch_new_features, fetch_security_advisories
from releaselog.logging import configure_logging
from releaselog.models import Commit, IngestionConfig, Settings
from releaselog.pipeline import IngestionPipeline
from releaselog.query import ChangelogQueryEngine, CommitFilter, get_commit_type
from releaselog.storage import write_json_document

app = typer.Typer(
    name="releaselog",
    help="Build and query a multi-branch release changelog snapshot",
    add_completion=False,
)
console = Console()


def _settings() -> Settings:
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)
    return settings


def _engine(settings: Settings, snapshot: Optional[Path]) -> ChangelogQueryEngine:
    try:
        return ChangelogQueryEngine.from_files(
            snapshot or settings.snapshot_path,
            settings.features_path,
            settings.advisories_path,
        )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] Could not load snapshot: {e}")
        raise typer.Exit(1)


def _commit_table(commits: List[Commit]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Hash", style="cyan", width=12)
    table.add_column("Version", style="green")
    table.add_column("Date", style="blue")
    table.add_column("Type", style="yellow")
    table.add_column("Subject", style="white")

    for commit in commits:
        table.add_row(
            commit.short_hash,
            commit.version,
            commit.date.strftime("%Y-%m-%d %H:%M"),
            get_commit_type(commit.subject),
            commit.subject[:72],
        )
    return table


@app.command()
def ingest(
    base_tag: Optional[str] = typer.Option(None, "--base-tag", help="Override the configured base tag"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Snapshot output path"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Version strategy: bfs or describe"),
) -> None:
    """Fetch upstream history and write the commit snapshot."""
    settings = _settings()
    config = settings.to_ingestion_config()
    updates = {}
    if base_tag:
        updates["base_tag"] = base_tag
    if output:
        updates["output_path"] = output
    if strategy:
        updates["version_strategy"] = strategy
    if updates:
        config = IngestionConfig.model_validate({**config.model_dump(), **updates})

    console.print(f"[bold green]Ingesting from:[/bold green] {config.origin}")
    console.print(f"[bold blue]Base tag:[/bold blue] {config.base_tag}")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Building commit graph...", total=None)
            result = IngestionPipeline(config).run()
            progress.update(task, completed=True)
    except IngestionError as e:
        console.print(f"[bold red]Ingestion failed:[/bold red] {e}")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    for version, provisional in result.provisional_versions.items():
        console.print(f"  [cyan]{version}[/cyan] -> {provisional.branch}")

    console.print(
        f"\n[bold green]✓[/bold green] Written {result.commits} commits "
        f"({result.tags} tags, {result.branches} branches) to {result.snapshot_path}"
    )


@app.command("fetch-features")
def fetch_features(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Download the feature-announcement feed."""
    settings = _settings()
    try:
        features = fetch_new_features(settings.features_url, timeout=settings.http_timeout)
    except IngestionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    path = write_json_document(output or settings.features_path, features)
    console.print(f"[bold green]✓[/bold green] Written {len(features)} features to {path}")


@app.command("fetch-advisories")
def fetch_advisories(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Download published security advisories."""
    settings = _settings()
    try:
        advisories = fetch_security_advisories(
            settings.advisories_owner,
            settings.advisories_repo,
            token=settings.github_token,
            timeout=settings.http_timeout,
        )
    except IngestionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    path = write_json_document(
        output or settings.advisories_path,
        [advisory.model_dump() for advisory in advisories],
    )
    console.print(f"[bold green]✓[/bold green] Written {len(advisories)} advisories to {path}")

    for advisory in advisories:
        if advisory.patched_versions:
            console.print(f"  [cyan]{advisory.ghsa_id}[/cyan]: {', '.join(advisory.patched_versions)}")


@app.command()
def resolve(
    ref: str = typer.Argument(..., help="Tag, branch, commit hash or hash prefix"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot path"),
) -> None:
    """Resolve a ref to a full commit hash."""
    engine = _engine(_settings(), snapshot)
    resolution = engine.resolve(ref)

    if resolution.kind == "resolved":
        commit = engine.get_commit(resolution.hash)
        console.print(f"[cyan]{resolution.hash}[/cyan]")
        if commit is not None:
            console.print(f"[dim]{commit.version}  {commit.subject}[/dim]")
        return

    console.print(f"[bold red]Not found:[/bold red] {resolution.message}")
    if resolution.kind == "ambiguous":
        for match in resolution.matches:
            console.print(f"  [cyan]{match}[/cyan]")
    raise typer.Exit(1)


@app.command("range")
def commit_range(
    start: str = typer.Argument(..., help="Start ref (exclusive)"),
    end: str = typer.Argument(..., help="End ref (inclusive)"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot path"),
) -> None:
    """List commits reachable from END but not from START."""
    engine = _engine(_settings(), snapshot)
    try:
        result = engine.changelog(end, start)
    except RefResolutionError as e:
        console.print(f"[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(_commit_table(result.commits))
    console.print(f"\n{len(result.commits)} commits")


@app.command()
def previous(
    ref: str = typer.Argument(..., help="Ref to look below"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot path"),
) -> None:
    """Show the newest tag in the history of a ref."""
    engine = _engine(_settings(), snapshot)
    try:
        tag = engine.get_previous_version(ref)
    except RefResolutionError as e:
        console.print(f"[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(tag or "[dim]No previous version[/dim]")


@app.command()
def refs(
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot path"),
) -> None:
    """List branches and tags in canonical order."""
    engine = _engine(_settings(), snapshot)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Ref", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Commit", style="blue")

    for option in engine.sorted_refs():
        table.add_row(option.value, option.type, engine.resolve_ref(option.value)[:12])

    console.print(table)


@app.command()
def changelog(
    end: Optional[str] = typer.Argument(None, help="End ref (defaults to the development branch)"),
    start: Optional[str] = typer.Option(None, "--start", help="Start ref (defaults to the previous version)"),
    commit_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only show this commit type"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Only show subjects containing this text"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot path"),
) -> None:
    """Show the changelog for a range, with features and advisories."""
    engine = _engine(_settings(), snapshot)
    try:
        result = engine.changelog(end, start, CommitFilter(type=commit_type, search_term=search))
    except RefResolutionError as e:
        console.print(f"[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]{result.start_ref or 'beginning'}[/bold] → [bold]{result.end_ref}[/bold]\n")

    counts = ", ".join(f"{key}: {count}" for key, count in result.counts.items() if count)
    console.print(f"[dim]{counts}[/dim]\n")

    for feature in result.features:
        console.print(f"[bold green]★ {feature.title}[/bold green] {feature.description}")
    for advisory in result.advisories:
        console.print(f"[bold red]⚠ {advisory.ghsa_id}[/bold red] ({advisory.severity}) {advisory.summary}")

    console.print(_commit_table(result.visible_commits))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
