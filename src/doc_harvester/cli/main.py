"""
Main CLI application for doc-harvester.

Provides the primary command-line interface for:
- Scraping a single page or a whole documentation site
- Inspecting how a site's structure is classified
- Managing configuration
"""

import asyncio
import re
import signal
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TaskProgressColumn, TextColumn
from rich.table import Table

from doc_harvester import __version__
from doc_harvester.config import Settings, load_config
from doc_harvester.config.loader import get_default_config_path
from doc_harvester.core.channels import ContentUpdate, DetailedProgress
from doc_harvester.core.types import ScrapeDocument, SiteProfile
from doc_harvester.utils.logging import get_logger, setup_logging
from doc_harvester.utils.metrics import Metrics

# Initialize Typer app
app = typer.Typer(
    name="doc-harvester",
    help="Adaptive documentation scraper - turn a docs site into one LLM-ready text file",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_PARTIAL_PREFIX = re.compile(r"^PARTIAL[-_\s]*")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]doc-harvester[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    doc-harvester - Scrape documentation sites into LLM-ready text.

    Use 'doc-harvester --help' for command list.
    """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level)


def generate_filename(title: str, comprehensive: bool = False, partial: bool = False) -> str:
    """
    Output file name for a scraped document.

    Example:
        >>> generate_filename("Complete Documentation - Acme API", comprehensive=True)
        'COMPLETE_DOCS_Complete_Documentation_-_Acme_API_2024-05-01.txt'
    """
    clean_title = _UNSAFE_FILENAME_CHARS.sub("", title)
    clean_title = re.sub(r"\s+", "_", clean_title)
    clean_title = _PARTIAL_PREFIX.sub("", clean_title)[:50]

    if partial:
        prefix = "PARTIAL_"
    elif comprehensive:
        prefix = "COMPLETE_DOCS_"
    else:
        prefix = ""

    return f"{prefix}{clean_title}_{date.today().isoformat()}.txt"


def format_document(document: ScrapeDocument) -> str:
    """Render a document with its metadata header."""
    return (
        f"# {document.title or 'Webpage Content'}\n\n"
        f"**URL:** {document.url}\n"
        f"**Scraped:** {document.timestamp.isoformat()}\n"
        f"**Word Count:** ~{document.word_count}\n"
        f"**Sections Found:** {document.sections_count or 'N/A'}\n\n"
        f"---\n\n"
        f"{document.content}"
    )


class RichProgressChannel:
    """Progress channel that drives a Rich progress bar."""

    def __init__(self, bar: Progress, task_id: TaskID) -> None:
        self.bar = bar
        self.task_id = task_id

    def progress(self, percent: int, status: str) -> None:
        self.bar.update(self.task_id, completed=percent, description=f"[cyan]{status}")

    def detailed(self, update: DetailedProgress) -> None:
        if update.current_action:
            self.bar.update(self.task_id, description=f"[cyan]{update.current_action}")

    def content_update(self, update: ContentUpdate) -> None:
        self.bar.console.print(
            f"  [green]✓[/green] {update.title} [dim]({update.word_count} words)[/dim]")

    def complete(self, document: ScrapeDocument) -> None:
        self.bar.update(self.task_id, completed=100, description="[green]Complete")

    def error(self, message: str) -> None:
        self.bar.console.print(f"[red]Error:[/red] {message}")


@app.command()
def scrape(
    url: str = typer.Argument(
        ...,
        help="URL of the documentation page to start from",
    ),
    comprehensive: bool = typer.Option(
        True,
        "--all/--single",
        help="Scrape every discovered page, or only the given page",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file or directory (default: generated name in the current directory)",
    ),
    links: Optional[bool] = typer.Option(
        None,
        "--links/--no-links",
        help="Render links inline as [text](url)",
    ),
    dynamic: Optional[bool] = typer.Option(
        None,
        "--dynamic/--no-dynamic",
        help="Wait for dynamically loaded content",
    ),
    embedded: Optional[bool] = typer.Option(
        None,
        "--embedded/--no-embedded",
        help="Include the text of embedded frames",
    ),
    optimize: bool = typer.Option(
        False,
        "--optimize",
        help="Normalize typography and spacing for LLM input",
    ),
    headless: bool = typer.Option(
        True,
        "--headless/--no-headless",
        help="Run browser in headless mode",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """
    Scrape a documentation site into one text file.

    Example:
        doc-harvester scrape https://docs.example.com --no-links
    """
    try:
        asyncio.run(_scrape_async(
            url=url,
            comprehensive=comprehensive,
            output=output,
            options={
                "include_links": links,
                "wait_for_dynamic": dynamic,
                "include_embedded": embedded,
            },
            optimize=optimize,
            headless=headless,
            config_file=config_file,
        ))
    except KeyboardInterrupt:
        console.print("\n[yellow]Scrape cancelled by user[/yellow]")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        logger.exception("Scrape failed")
        raise typer.Exit(1)


async def _scrape_async(
    url: str,
    comprehensive: bool,
    output: Optional[Path],
    options: dict,
    optimize: bool,
    headless: bool,
    config_file: Optional[Path],
) -> None:
    """Async scrape implementation."""
    from doc_harvester.browser import BrowserManager
    from doc_harvester.extraction import (
        analyze_content,
        extract_key_terms,
        generate_summary,
        optimize_for_llm,
    )
    from doc_harvester.scraper import ScrapeOrchestrator

    settings = load_config(config_file or get_default_config_path())
    settings.browser.headless = headless

    mode = "all pages" if comprehensive else "single page"
    console.print(Panel(
        f"[bold]Scraping:[/bold] {url}\n"
        f"[dim]Mode: {mode} | Headless: {headless}[/dim]",
        title="doc-harvester",
        border_style="blue",
    ))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("[cyan]Starting...", total=100)
        channel = RichProgressChannel(progress, task_id)

        async with BrowserManager(settings.browser) as browser:
            async with browser.open_environment(url) as env:
                orchestrator = ScrapeOrchestrator(env, settings, channel)
                session = orchestrator.open_session(url)
                _install_stop_handler(orchestrator)

                if comprehensive:
                    document = await orchestrator.run_comprehensive(session, options)
                else:
                    document = await orchestrator.run_single_page(session, options)

    if document is None:
        if session.error_message:
            console.print(f"[red]Scrape failed:[/red] {session.error_message}")
        else:
            console.print("[yellow]Nothing was captured[/yellow]")
        raise typer.Exit(1)

    text = format_document(document)
    if optimize:
        text = optimize_for_llm(text)

    filename = generate_filename(
        document.title or "webpage",
        comprehensive="Complete Documentation" in document.title,
        partial=document.partial,
    )
    path = _resolve_output(output, filename)
    path.write_text(text, encoding="utf-8")

    analysis = analyze_content(document.content)
    terms = ", ".join(term for term, _ in extract_key_terms(document.content, limit=8))
    summary = generate_summary(document.content, max_length=160)
    console.print()
    console.print(Panel(
        f"[green]✓ Saved:[/green] {path}\n\n"
        f"Sections: [bold]{document.sections_count}[/bold]\n"
        f"Words: [bold]{document.word_count}[/bold]\n"
        f"Reading time: [bold]{analysis.reading_time_minutes} min[/bold] "
        f"[dim]({analysis.complexity})[/dim]"
        + (f"\nKey terms: [dim]{terms}[/dim]" if terms else "")
        + ("\n[yellow]Partial result[/yellow]" if document.partial else "")
        + ("\n[yellow]Content truncated[/yellow]" if document.truncated else "")
        + (f"\n\n[dim]{escape(summary)}[/dim]" if summary else ""),
        title="Summary",
        border_style="green",
    ))
    logger.debug(Metrics.get().summary())


def _install_stop_handler(orchestrator) -> None:
    """Ctrl-C asks the session to stop so captured pages are still saved."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.request_stop)
    except (NotImplementedError, RuntimeError) as e:
        logger.debug(f"Stop handler not installed: {e}")


def _resolve_output(output: Optional[Path], filename: str) -> Path:
    if output is None:
        return Path(filename)
    if output.is_dir():
        return output / filename
    output.parent.mkdir(parents=True, exist_ok=True)
    return output


@app.command()
def analyze(
    url: str = typer.Argument(
        ...,
        help="URL of the documentation page to analyze",
    ),
    headless: bool = typer.Option(
        True,
        "--headless/--no-headless",
        help="Run browser in headless mode",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """
    Show how a site's structure is classified and which strategy would run.

    Example:
        doc-harvester analyze https://docs.example.com
    """
    try:
        profile, strategy_name, doc_links = asyncio.run(
            _analyze_async(url, headless, config_file))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        logger.exception("Analysis failed")
        raise typer.Exit(1)

    _show_profile(url, profile, strategy_name, doc_links)


async def _analyze_async(
    url: str,
    headless: bool,
    config_file: Optional[Path],
) -> tuple[SiteProfile, str, int]:
    from doc_harvester.browser import BrowserManager
    from doc_harvester.discovery import (
        ExpansionEngine,
        SiteStructureAnalyzer,
        count_documentation_links,
        select_strategy,
    )

    settings = load_config(config_file or get_default_config_path())
    settings.browser.headless = headless

    async with BrowserManager(settings.browser) as browser:
        async with browser.open_environment(url) as env:
            profile = await SiteStructureAnalyzer(env).analyze()
            strategy = select_strategy(profile, env, ExpansionEngine(env, settings.timing))
            doc_links = await count_documentation_links(env)
            return profile, strategy.name, doc_links


def _show_profile(url: str, profile: SiteProfile, strategy_name: str, doc_links: int) -> None:
    console.print(Panel(
        f"[bold]{url}[/bold]\n"
        f"Confidence: [bold]{profile.confidence}%[/bold]",
        title="Site Analysis",
        border_style="blue",
    ))

    table = Table(show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Site type", profile.site_type)
    table.add_row("Navigation style", profile.navigation_style)
    table.add_row("Content pattern", profile.content_pattern)
    table.add_row("Discovery strategy", strategy_name)
    table.add_row("Navigation areas", str(len(profile.navigation_areas)))
    table.add_row("Expandable elements", str(len(profile.expandable_elements)))
    table.add_row("Documentation links", str(doc_links))
    console.print(table)

    if profile.link_patterns:
        patterns = Table(title="Link Patterns", show_header=True)
        patterns.add_column("Pattern", style="cyan")
        patterns.add_column("Count", justify="right")
        patterns.add_column("Example", style="dim")
        for pattern in profile.link_patterns[:10]:
            example = pattern.examples[0] if pattern.examples else ""
            patterns.add_row(pattern.pattern, str(pattern.count), example)
        console.print(patterns)


@app.command()
def config(
    show: bool = typer.Option(
        False,
        "--show",
        "-s",
        help="Show current configuration",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Create default configuration file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """
    Configuration management.

    View or initialize configuration files.

    Examples:
        doc-harvester config --show
        doc-harvester config --init --output ./doc_harvester.yaml
    """
    if init:
        _init_config(output)
    elif show:
        _show_config()
    else:
        console.print(
            "Use --show to view config or --init to create default config")


def _show_config() -> None:
    """Show current configuration."""
    settings = load_config(get_default_config_path())
    config_dict = settings.model_dump(mode="json")

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in config_dict.items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                console.print(f"  {key}: [dim]{value}[/dim]")
        else:
            console.print(f"  {values}")


def _init_config(output: Optional[Path]) -> None:
    """Create default configuration file."""
    import yaml

    config_dict = Settings().model_dump(mode="json")
    output_path = output or Path("doc_harvester.yaml")

    if output_path.exists():
        if not typer.confirm(f"File {output_path} exists. Overwrite?"):
            raise typer.Exit(0)

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]✓[/green] Configuration saved to: {output_path}")


if __name__ == "__main__":
    app()
