"""Command-line interface for package_guard.

Provides the analyze command checking projects against their package
policy, and the cache command managing the package cache.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from package_guard.analyzer import AnalysisResult, ProjectAnalyzer
from package_guard.cache import PackageCache
from package_guard.config import find_config_files, load_policy
from package_guard.exceptions import PolicyConfigurationError
from package_guard.models import AnalyzerSettings, PackageManager, ProjectPolicy
from package_guard.reporters import MarkdownReporter

app = typer.Typer(
    name="package-guard",
    help="License and package policy checks for npm, Yarn, pnpm and .NET projects.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("package_guard")

DEFAULT_CACHE_FILE = Path(".packageguard") / "cache.db"


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("package_guard").setLevel(level)


def _policy_provider(config: Optional[list[Path]]):
    """Return a function giving the policy of a project.

    Explicit configuration files apply to every project; otherwise each
    project uses the configuration files found in its own directory.
    """
    if config:
        policy = load_policy(config)
        return lambda project_path: policy

    def _discover(project_path: Path) -> ProjectPolicy:
        return load_policy(find_config_files(project_path))

    return _discover


def _print_violations(result: AnalysisResult) -> None:
    table = Table(title=f"{len(result.violations)} package(s) violate the policy")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    table.add_column("License")
    table.add_column("Risk", justify="right")
    table.add_column("Feed")
    table.add_column("Projects")

    for violation in sorted(result.violations, key=lambda v: (v.package_id.lower(), v.version)):
        table.add_row(
            violation.package_id,
            violation.version,
            violation.license,
            f"{violation.risk_score:.0f}" if violation.risk_score is not None else "-",
            violation.feed_name or violation.feed_url,
            "\n".join(violation.projects),
        )

    console.print(table)


async def _run_analyze(
    paths: list[Path],
    config: Optional[list[Path]],
    settings: AnalyzerSettings,
) -> AnalysisResult:
    """Async implementation of the analyze command."""
    analyzer = ProjectAnalyzer(settings)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Analyzing packages...", total=None)
        result = await analyzer.analyze(paths, _policy_provider(config))
        progress.update(task, completed=True)

    return result


@app.command()
def analyze(
    paths: Annotated[
        Optional[list[Path]],
        typer.Argument(
            help="Project directories or lock files (package-lock.json, yarn.lock, "
            "pnpm-lock.yaml, project.assets.json)",
            exists=True,
        ),
    ] = None,
    config: Annotated[
        Optional[list[Path]],
        typer.Option(
            "--config",
            "-c",
            help="Policy file (JSON or YAML); may be repeated",
            exists=True,
            readable=True,
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Write a Markdown violation report to this file",
        ),
    ] = None,
    template: Annotated[
        Optional[Path],
        typer.Option(
            "--template",
            "-t",
            help="Custom Jinja2 template for the report",
            exists=True,
            readable=True,
        ),
    ] = None,
    use_caching: Annotated[
        bool,
        typer.Option(
            "--use-caching",
            help="Reuse package information cached by previous runs",
        ),
    ] = False,
    cache_file: Annotated[
        Path,
        typer.Option(
            "--cache-file",
            help="Location of the package cache",
        ),
    ] = DEFAULT_CACHE_FILE,
    force_restore: Annotated[
        bool,
        typer.Option(
            "--force-restore",
            help="Always run install/restore before analyzing",
        ),
    ] = False,
    skip_restore: Annotated[
        bool,
        typer.Option(
            "--skip-restore",
            help="Never run install/restore",
        ),
    ] = False,
    package_manager: Annotated[
        Optional[PackageManager],
        typer.Option(
            "--package-manager",
            help="Package manager to use instead of detecting it",
        ),
    ] = None,
    package_manager_exe: Annotated[
        Optional[str],
        typer.Option(
            "--package-manager-exe",
            help="Path to the npm, yarn or pnpm executable",
        ),
    ] = None,
    max_concurrency: Annotated[
        int,
        typer.Option(
            "--max-concurrency",
            min=1,
            help="Maximum number of concurrent license lookups",
        ),
    ] = 8,
    github_token: Annotated[
        Optional[str],
        typer.Option(
            "--github-token",
            envvar="GITHUB_TOKEN",
            help="GitHub API token for higher rate limits",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Check the packages of one or more projects against their policy.

    Exit codes:
        0 - All packages compliant
        1 - Violations found or error occurred
    """
    _setup_logging(verbose)

    settings = AnalyzerSettings(
        force_restore=force_restore,
        skip_restore=skip_restore,
        use_caching=use_caching,
        cache_file_path=cache_file,
        package_manager=package_manager,
        package_manager_exe=package_manager_exe,
        max_concurrency=max_concurrency,
        github_token=github_token,
    )

    try:
        result = asyncio.run(_run_analyze(paths or [Path(".")], config, settings))
    except PolicyConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    for project, reason in result.failed_projects.items():
        err_console.print(f"[yellow]Skipped {project}:[/yellow] {reason}")

    if output:
        reporter = MarkdownReporter(template_path=template)
        reporter.write(result.violations, output)
        console.print(f"[green]Generated:[/green] {output}")

    if result.violations:
        _print_violations(result)
        raise typer.Exit(code=1)

    console.print(f"[green]All {len(result.packages)} packages are compliant![/green]")


@app.command()
def cache(
    action: Annotated[
        str,
        typer.Argument(help="Cache action: 'show' or 'clear'"),
    ],
    cache_file: Annotated[
        Path,
        typer.Option(
            "--cache-file",
            help="Location of the package cache",
        ),
    ] = DEFAULT_CACHE_FILE,
) -> None:
    """Manage the package cache.

    Actions:
        show  - Display cache location, entry count, and size
        clear - Clear all cached entries
    """
    cache_instance = PackageCache(cache_file)

    if action == "show":
        info = cache_instance.info()
        console.print(f"[bold]Cache Location:[/bold] {info['path']}")
        console.print(f"[bold]Entries:[/bold] {info['count']}")
        console.print(f"[bold]Size:[/bold] {info['size_bytes'] / 1024:.1f} KB")

    elif action == "clear":
        cache_instance.clear()
        console.print("[green]Cache cleared[/green]")

    else:
        err_console.print(f"[red]Unknown action:[/red] {action}")
        err_console.print("Valid actions: show, clear")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
