"""RepoLens CLI - tech-stack and health analysis for repositories.

Usage:
    repolens analyze <repo-path-or-url> [options]
    repolens analyze . --skip-model
    repolens analyze https://github.com/facebook/react
    repolens history
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import DEFAULT_STORE, ENV_MODEL, ENV_OLLAMA_URL, ENV_SKIP_MODEL, ENV_STORE, ENV_TIMEOUT
from .health import BREAKDOWN_KEYS, describe
from .log import configure_logging, get_logger
from .model import DEFAULT_MODEL, GENERATE_TIMEOUT, OLLAMA_BASE_URL, ModelError, OllamaClient
from .pipeline import AI_POWERED, AnalysisReport, EmptyRepositoryError, RepoAnalyzer
from .source import RepoSnapshot, SourceError, clone_repo, parse_repo_url, scan_repo
from .store import AnalysisStore, json_file_backend
from .techstack import RepoInfo

console = Console()
logger = get_logger(__name__)

BREAKDOWN_LABELS = {
    "testCoverage": "Test coverage",
    "readmeQuality": "README",
    "linterPresence": "Linter",
    "ciCdPresence": "CI/CD",
    "codeQuality": "Code quality",
    "security": "Security",
}


def _resolve_target(
    target: str, max_depth: int | None, out: Console = console
) -> tuple[RepoSnapshot, Path | None]:
    """Scan a local directory, or clone and scan a GitHub repository.

    Returns the snapshot and the temporary directory to remove afterwards
    (None for local paths).
    """
    local = Path(target).expanduser()
    if local.is_dir():
        snapshot = scan_repo(local, max_depth=max_depth)
        snapshot.url = str(local.resolve())
        return snapshot, None

    try:
        ref = parse_repo_url(target)
    except ValueError:
        raise click.ClickException(f"Not a directory or GitHub repository: {target}")

    tmpdir = Path(tempfile.mkdtemp(prefix="repolens-"))
    try:
        out.print(f"  Cloning {ref.url}...", style="dim")
        clone_path = clone_repo(ref, tmpdir)
        snapshot = scan_repo(clone_path, info=RepoInfo(name=ref.name, owner=ref.owner), max_depth=max_depth)
    except Exception:
        shutil.rmtree(tmpdir, ignore_errors=True)
        raise
    snapshot.url = ref.url
    return snapshot, tmpdir


def _open_store(path: str) -> AnalysisStore:
    load, save = json_file_backend(path)
    return AnalysisStore(load, save)


@click.group()
@click.version_option(version=__version__)
def cli():
    """RepoLens - tech-stack and health analysis for repositories.

    Detects languages, frameworks and infrastructure, and scores the
    engineering health of any repository. Uses a local Ollama model when one
    is available and falls back to offline heuristics when it is not.
    """
    pass


@cli.command()
@click.argument("target", default=".")
@click.option("--model", "-m", default=DEFAULT_MODEL, envvar=ENV_MODEL, help="Ollama model name")
@click.option("--ollama-url", default=OLLAMA_BASE_URL, envvar=ENV_OLLAMA_URL, help="Ollama server URL")
@click.option("--skip-model", is_flag=True, envvar=ENV_SKIP_MODEL, help="Heuristic-only analysis, no model inference")
@click.option("--timeout", default=GENERATE_TIMEOUT, type=float, envvar=ENV_TIMEOUT, help="Seconds to wait for each model answer")
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
@click.option("--save/--no-save", default=True, help="Record the analysis in the history store")
@click.option("--store", "store_path", default=str(DEFAULT_STORE), envvar=ENV_STORE, help="History file")
@click.option("--max-depth", default=4, type=int, help="Depth of the scanned file tree")
@click.option("--setup-guide", is_flag=True, help="Print the development setup guide")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def analyze(
    target: str,
    model: str,
    ollama_url: str,
    skip_model: bool,
    timeout: float,
    json_only: bool,
    save: bool,
    store_path: str,
    max_depth: int,
    setup_guide: bool,
    verbose: bool,
):
    """Analyze a repository's tech stack and health.

    TARGET can be a local path, GitHub URL, or owner/repo shorthand.

    Examples:

        repolens analyze .

        repolens analyze https://github.com/facebook/react

        repolens analyze pallets/flask --skip-model
    """
    configure_logging(verbose=verbose)
    out = Console(quiet=True) if json_only else console

    tmpdir = None
    client = None
    setup_errors: list[str] = []
    try:
        out.print()
        out.print(Panel.fit(
            f"[bold cyan]RepoLens v{__version__}[/] - Repository Analyzer",
            border_style="cyan",
        ))

        try:
            snapshot, tmpdir = _resolve_target(target, max_depth, out)
        except SourceError as e:
            raise click.ClickException(str(e))

        if not skip_model:
            client = OllamaClient(model=model, base_url=ollama_url, timeout=timeout)
            try:
                client.ensure_ready()
            except ModelError as e:
                logger.warning("Model unavailable, using local heuristics: %s", e)
                setup_errors.append(f"model: {e}")
                client.close()
                client = None

        analyzer = RepoAnalyzer(client)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=out,
        ) as progress:
            task = progress.add_task("Analyzing...", total=4)

            def on_progress(status, current, total):
                progress.update(task, description=status, completed=current, total=total)

            try:
                report = analyzer.analyze(snapshot, progress_callback=on_progress)
            except EmptyRepositoryError as e:
                raise click.ClickException(str(e))
            progress.update(task, description="Done!")

        report.errors[:0] = setup_errors

        if save:
            try:
                _open_store(store_path).put(report.url, report)
            except (OSError, ValueError) as e:
                logger.warning("Could not save analysis to %s: %s", store_path, e)

        if json_only:
            click.echo(json.dumps(report.to_dict(), indent=2))
        else:
            _print_report(report, setup_guide=setup_guide)

    finally:
        if client is not None:
            client.close()
        # Clean up temp clone
        if tmpdir is not None:
            shutil.rmtree(tmpdir, ignore_errors=True)


@cli.command()
@click.option("--store", "store_path", default=str(DEFAULT_STORE), envvar=ENV_STORE, help="History file")
@click.option("--search", "query", default=None, help="Only show analyses matching this text")
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
def history(store_path: str, query: str | None, json_only: bool):
    """List saved analyses, most recent first."""
    store = _load_store_or_fail(store_path)
    records = store.search(query) if query else store.list()

    if json_only:
        click.echo(json.dumps(records, indent=2))
        return

    if not records:
        console.print("[yellow]No saved analyses. Run: repolens analyze <repo>[/]")
        return

    table = Table(title="Analysis History", show_header=True)
    table.add_column("", justify="center")
    table.add_column("Repository", style="bold")
    table.add_column("Tech Stack")
    table.add_column("Health", justify="right")
    table.add_column("Analyzed")

    for record in records:
        health = record.get("report", {}).get("health", {})
        table.add_row(
            "*" if record.get("isFavorite") else "",
            record.get("url", ""),
            ", ".join(record.get("techStack", [])[:5]),
            str(health.get("overall", "")),
            record.get("analyzedAt", "")[:19].replace("T", " "),
        )
    console.print(table)


@cli.command()
@click.argument("url")
@click.option("--store", "store_path", default=str(DEFAULT_STORE), envvar=ENV_STORE, help="History file")
def favorite(url: str, store_path: str):
    """Mark or unmark a saved analysis as favorite."""
    store = _load_store_or_fail(store_path)
    try:
        is_favorite = store.toggle_favorite(url)
    except KeyError:
        raise click.ClickException(f"No saved analysis for {url}")
    console.print(f"{url}: {'favorite' if is_favorite else 'no longer favorite'}")


@cli.command()
@click.argument("url")
@click.option("--store", "store_path", default=str(DEFAULT_STORE), envvar=ENV_STORE, help="History file")
def forget(url: str, store_path: str):
    """Delete a saved analysis."""
    store = _load_store_or_fail(store_path)
    if not store.delete(url):
        raise click.ClickException(f"No saved analysis for {url}")
    console.print(f"Removed {url}")


@cli.command()
def version():
    """Show version information."""
    console.print(f"repolens v{__version__}")
    console.print("Tech-stack and health analysis for repositories")


def _load_store_or_fail(store_path: str) -> AnalysisStore:
    store = _open_store(store_path)
    try:
        store.records
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read history file {store_path}: {e}")
    return store


def _print_report(report: AnalysisReport, setup_guide: bool = False) -> None:
    """Print the tech stack, health and environment panels."""
    stack = report.tech_stack

    table = Table(title="Tech Stack", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Repository", f"{report.repo.owner}/{report.repo.name}" if report.repo.owner else report.repo.name)
    if report.repo.description:
        table.add_row("Description", report.repo.description[:80])
    langs = ", ".join(f"{k} ({v}%)" for k, v in sorted(report.language_stats.items(), key=lambda x: -x[1])[:5])
    table.add_row("Languages", langs)
    table.add_row("Language", stack.language)
    if stack.frontend:
        table.add_row("Frontend", stack.frontend)
    if stack.backend:
        table.add_row("Backend", stack.backend)
    if stack.database:
        table.add_row("Database", stack.database)
    if stack.infra:
        table.add_row("Infrastructure", ", ".join(stack.infra))
    table.add_row("Project type", stack.project_type)
    table.add_row("Architecture", stack.architecture)
    table.add_row("Purpose", stack.purpose)
    table.add_row("Confidence", f"{stack.confidence}%")
    source = "AI-powered" if report.source == AI_POWERED else "Local heuristics"
    table.add_row("Source", f"{source} ({report.model_used})" if report.model_used else source)
    console.print(table)

    if stack.rationale:
        console.print()
        console.print("[bold]Rationale:[/]")
        for line in stack.rationale:
            console.print(f"  - {line}")

    health = report.health
    console.print()
    console.print(Panel.fit(
        f"[bold]{health.overall}/100[/] (grade {health.grade})\n{describe(health.overall)}",
        title="Repository Health",
        border_style="green" if health.overall >= 70 else "yellow",
    ))

    breakdown = Table(show_header=True)
    breakdown.add_column("Area", style="bold")
    breakdown.add_column("Score", justify="right")
    for key in BREAKDOWN_KEYS:
        breakdown.add_row(BREAKDOWN_LABELS[key], str(health.breakdown.get(key, 0)))
    console.print(breakdown)

    if health.ai_tips:
        console.print()
        console.print("[bold]Tips:[/]")
        for tip in health.ai_tips:
            console.print(f"  - {tip}")

    environment = report.environment
    if environment is not None:
        console.print()
        env_table = Table(title="Development Environment", show_header=True)
        env_table.add_column("Requirement", style="bold")
        env_table.add_column("Version")
        env_table.add_column("Category")
        env_table.add_column("Status")
        env_table.add_column("Verify", style="dim")
        for req in environment.requirements:
            env_table.add_row(
                req.name,
                req.version or "",
                req.category,
                req.status,
                req.verify_command or "",
            )
        console.print(env_table)
        console.print(f"  Estimated setup time: [bold]{environment.estimated_setup_time}[/]")
        if environment.docker_available:
            console.print(f"  Docker: {environment.docker_instructions}")
        if setup_guide:
            console.print()
            console.print(Markdown(environment.setup_instructions))

    if report.errors:
        console.print()
        console.print("[bold yellow]Fell back to local analysis:[/]")
        for e in report.errors:
            console.print(f"  [yellow]{e}[/]")


if __name__ == "__main__":
    cli()
