"""Main CLI entry point for converge-all.

This module defines the Typer application and main commands.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__

if TYPE_CHECKING:
    from providers import ProviderRegistry

    from core import AgentConfig, PackageResource, TransactionReport

# Create the main Typer app
app = typer.Typer(
    name="converge",
    help="Converge installed packages to their declared state.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Create console for rich output
console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-C", help="Path to the configuration file."),
]
ProviderOption = Annotated[
    str | None,
    typer.Option("--provider", "-P", help="Provider kind for all packages (e.g. apt, yum)."),
]
TagOption = Annotated[
    list[str] | None,
    typer.Option("--tag", "-t", help="Only evaluate packages carrying this tag."),
]
SourceOption = Annotated[
    list[str] | None,
    typer.Option("--source", "-s", help="Package source as NAME=PATH. Repeatable."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]converge[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """converge: declarative package convergence.

    Declare packages as NAME or NAME=VALUE, where VALUE is installed,
    notinstalled, latest or an exact version. Several acceptable values
    can be given separated by commas; the first one is used for changes.
    """


def configure_logging(log_level: str) -> None:
    """Configure structlog and standard logging with the specified level.

    Args:
        log_level: Log level string (debug, info, warning, error).
    """
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    level = level_map.get(log_level.lower(), logging.INFO)

    logging.basicConfig(format="%(message)s", level=level, force=True)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def detect_platform() -> str:
    """Detect the platform identifier of the running system.

    Returns:
        The os-release ID on Linux (e.g. ``debian``), ``solaris`` on SunOS,
        otherwise the lowercased system name.
    """
    system = platform.system()
    if system == "SunOS":
        return "solaris"
    if system == "Linux":
        try:
            return platform.freedesktop_os_release().get("ID", "linux").lower()
        except OSError:
            return "linux"
    return system.lower()


def _load_config(config_path: Path | None) -> AgentConfig:
    from core import ConfigManager

    return ConfigManager(config_path).load()


def _get_registry(config: AgentConfig) -> ProviderRegistry:
    """Get the provider registry with built-in kinds registered."""
    from providers import ProviderRegistry, register_builtin_providers

    registry = ProviderRegistry(
        platform=config.platform or detect_platform(),
        default=config.default_provider,
    )
    return register_builtin_providers(registry)


def parse_declarations(
    items: list[str],
    *,
    provider: str | None = None,
    sources: list[str] | None = None,
    audit: bool = False,
) -> list[PackageResource]:
    """Turn NAME[=VALUE[,VALUE...]] arguments into package resources.

    Args:
        items: Package declarations from the command line.
        provider: Provider kind applied to every package.
        sources: NAME=PATH package sources.
        audit: Declare the packages as audit-only.

    Returns:
        Package resources in argument order.

    Raises:
        typer.BadParameter: If a declaration or source is malformed.
    """
    from core import PackageResource

    source_map: dict[str, str] = {}
    for item in sources or []:
        name, sep, path = item.partition("=")
        if not sep or not name or not path:
            raise typer.BadParameter(f"Source must be NAME=PATH: {item}")
        source_map[name] = path

    resources: list[PackageResource] = []
    for index, item in enumerate(items, start=1):
        name, sep, value = item.partition("=")
        ensure: list[object] = [True]
        if sep:
            ensure = [v.strip() for v in value.split(",") if v.strip()]
        try:
            resources.append(
                PackageResource(
                    name=name.strip(),
                    ensure=ensure,
                    provider=provider,
                    source=source_map.get(name.strip()),
                    file="<command line>",
                    line=index,
                    audit=audit,
                )
            )
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e
    return resources


def _converge(
    packages: list[str],
    *,
    config_path: Path | None,
    provider: str | None,
    tags: list[str] | None,
    sources: list[str] | None,
    verbose: bool,
    audit: bool,
    store: bool,
) -> TransactionReport:
    from core import ConvergeError, ReportStore, Transaction

    try:
        config = _load_config(config_path)
        configure_logging("debug" if verbose else config.log_level.value)
        registry = _get_registry(config)
        resources = parse_declarations(packages, provider=provider, sources=sources, audit=audit)
    except ConvergeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e

    transaction = Transaction(registry, tags=tags or config.tags)
    report = transaction.evaluate(resources)

    if store and config.store_reports:
        ReportStore(config.report_dir).save(report)
    return report


@app.command()
def apply(
    packages: Annotated[list[str], typer.Argument(help="Packages as NAME[=VALUE].")],
    config_path: ConfigOption = None,
    provider: ProviderOption = None,
    tags: TagOption = None,
    sources: SourceOption = None,
    verbose: VerboseOption = False,
    no_report: Annotated[
        bool,
        typer.Option("--no-report", help="Do not store the transaction report."),
    ] = False,
) -> None:
    """Bring packages to their declared state.

    Exits with status 1 if any package failed.
    """
    report = _converge(
        packages,
        config_path=config_path,
        provider=provider,
        tags=tags,
        sources=sources,
        verbose=verbose,
        audit=False,
        store=not no_report,
    )
    print_report(report)
    raise typer.Exit(code=report.exit_code)


@app.command()
def check(
    packages: Annotated[list[str], typer.Argument(help="Packages as NAME[=VALUE].")],
    config_path: ConfigOption = None,
    provider: ProviderOption = None,
    tags: TagOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Audit packages without changing anything."""
    report = _converge(
        packages,
        config_path=config_path,
        provider=provider,
        tags=tags,
        sources=None,
        verbose=verbose,
        audit=True,
        store=False,
    )
    print_report(report)
    raise typer.Exit(code=report.exit_code)


@app.command()
def providers(config_path: ConfigOption = None) -> None:
    """List the registered provider kinds and their capabilities."""
    from core import Feature

    config = _load_config(config_path)
    registry = _get_registry(config)
    default = registry.default_kind

    table = Table(title="Provider Kinds", show_header=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Parent")
    table.add_column("Capabilities")
    table.add_column("Versionable", justify="center")
    table.add_column("Description")

    for kind in registry:
        name = f"{kind.name} [green](default)[/green]" if kind.name == default else kind.name
        table.add_row(
            name,
            kind.parent or "",
            ", ".join(sorted(c.value for c in kind.capabilities)),
            "[green]✓[/green]" if kind.has_feature(Feature.VERSIONABLE) else "[dim]✗[/dim]",
            kind.description,
        )

    console.print(table)
    if default is None:
        console.print(f"[yellow]No default provider for platform {registry.platform}[/yellow]")


@app.command()
def report(config_path: ConfigOption = None) -> None:
    """Show the most recently stored transaction report."""
    from core import ReportStore

    config = _load_config(config_path)
    stored = ReportStore(config.report_dir).load_latest()
    if stored is None:
        console.print("[dim]No reports stored yet.[/dim]")
        return
    print_report(stored)


@app.command("config-init")
def config_init(
    config_path: ConfigOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing configuration."),
    ] = False,
) -> None:
    """Write a default configuration file."""
    from core import ConfigManager

    manager = ConfigManager(config_path)
    if manager.init_config(force=force):
        console.print(f"[green]Configuration written to {manager.config_path}[/green]")
    else:
        console.print(f"[yellow]Configuration already exists at {manager.config_path}[/yellow]")


def print_report(report: TransactionReport) -> None:
    """Print a transaction report as a table with totals."""
    table = Table(title=f"Transaction {report.run_id}", show_header=True)
    table.add_column("Resource", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Events")
    table.add_column("Time", justify="right")

    for status in report.statuses:
        if status.failed:
            label = "[red]✗ Failed[/red]"
        elif status.skipped:
            label = "[yellow]⊘ Skipped[/yellow]"
        elif status.changed:
            label = "[green]✓ Changed[/green]"
        else:
            label = "[dim]In sync[/dim]"

        events = escape("; ".join(f"{e.name}: {e.message}" for e in status.events))
        elapsed = f"{status.evaluation_time:.2f}s" if status.evaluation_time is not None else ""
        table.add_row(escape(status.resource), label, events, elapsed)

    console.print(table)
    console.print()
    console.print(f"[bold]Total:[/bold] {report.total_resources} resources")
    console.print(f"  [green]Changed:[/green] {report.changed_resources}")
    console.print(f"  [red]Failed:[/red] {report.failed_resources}")
    console.print(f"  [yellow]Skipped:[/yellow] {report.skipped_resources}")
    if report.duration_seconds is not None:
        console.print(f"  [dim]Duration:[/dim] {report.duration_seconds:.1f}s")


if __name__ == "__main__":
    app()
