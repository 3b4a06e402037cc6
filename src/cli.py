"""Typer CLI application for the SEO Page Enhancer.

Provides commands to enhance pages (files, directories or URLs), inspect
keyword counts, print the configured structured data, and check status.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="seo-enhance",
    help="SEO Page Enhancer -- structured data, microdata and crawler hints for static pages.",
    add_completion=False,
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_settings(config: Optional[Path]) -> dict:
    from src.config import load_settings
    try:
        return load_settings(config)
    except (ValueError, OSError) as exc:
        console.print("[red]✘[/red] Could not load settings: " + str(exc))
        raise typer.Exit(code=1)


def _get_workflow(settings: dict, ping: bool = True):
    """Lazy-import and return an EnhancementWorkflow instance."""
    from src.workflows import EnhancementWorkflow
    return EnhancementWorkflow(settings=settings, ping=ping)


def _is_url(source: str) -> bool:
    from src.utils.validators import is_http_url
    return is_http_url(source)


def _print_results(results: dict, title: str = "Results") -> None:
    """Pretty-print enhancement step results using Rich."""
    steps = results.get("steps", {})
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Step", style="cyan", min_width=22)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=60)

    for step_name, step_data in steps.items():
        status = step_data.get("status", "unknown")
        if status == "success":
            status_display = "[green]✔ success[/green]"
        elif status == "error":
            status_display = "[red]✘ error[/red]"
        elif status == "skipped":
            status_display = "[yellow]○ skipped[/yellow]"
        else:
            status_display = status

        detail_parts = []
        if status == "error":
            detail_parts.append(step_data.get("error", "")[:80])
        elif status == "skipped":
            detail_parts.append(step_data.get("reason", ""))
        else:
            for key in ("count", "portfolio_items", "pinged", "tagged"):
                if key in step_data:
                    detail_parts.append(f"{key}={step_data[key]}")
        display_name = step_name.replace("_", " ").title()
        table.add_row(display_name, status_display, "; ".join(detail_parts))

    console.print(table)
    elapsed = results.get("elapsed_seconds", 0)
    if elapsed:
        console.print(f"Elapsed: {elapsed}s")


def _print_keyword_report(report: dict[str, int], density: dict[str, float]) -> None:
    table = Table(title="Keyword Density Report", show_header=True, header_style="bold magenta")
    table.add_column("Keyword", style="cyan", min_width=22)
    table.add_column("Occurrences", justify="right")
    table.add_column("Density", justify="right")
    for keyword, count in report.items():
        table.add_row(keyword, str(count), f"{density.get(keyword, 0.0):.2f}%")
    console.print(table)


# ------------------------------------------------------------------
# enhance
# ------------------------------------------------------------------
@app.command()
def enhance(
    source: str = typer.Argument(..., help="HTML file, directory of HTML files, or http(s) URL."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file or directory (default: in place / stdout for URLs)."),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Public URL of the page (or site root for directories)."),
    no_ping: bool = typer.Option(False, "--no-ping", help="Do not send the sitemap ping."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Run the enhancement passes over a page, a directory, or a URL."""
    _setup_logging(verbose)
    settings = _load_settings(config)
    workflow = _get_workflow(settings, ping=not no_ping)
    failures = 0

    try:
        if _is_url(source):
            # Without --output stdout carries the page and nothing else.
            status_console = console if output else err_console
            if output:
                console.print(Panel("[bold cyan]Enhancing URL: " + source + "[/bold cyan]"))
            result = asyncio.run(workflow.enhance_url(source))
            if result.get("status") == "error":
                status_console.print("[red]✘[/red] " + result.get("error", "Failed"))
                raise typer.Exit(code=1)
            html = result.pop("html")
            if not output:
                typer.echo(html)
                return
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(html, encoding="utf-8")
            console.print("[green]✔[/green] Written to " + str(output))
            _print_results(result, title="Enhancement Results: " + source)
            return

        path = Path(source)
        if path.is_dir():
            console.print(Panel("[bold cyan]Enhancing directory: " + source + "[/bold cyan]"))
            results = workflow.enhance_directory(path, output, base_url=url)
            table = Table(title="Enhanced Files", show_header=True, header_style="bold magenta")
            table.add_column("File", style="cyan")
            table.add_column("Status")
            for res in results:
                status = res.get("status", "unknown")
                if status == "error":
                    failures += 1
                table.add_row(res.get("source", ""), status)
            console.print(table)
        elif path.is_file():
            console.print(Panel("[bold cyan]Enhancing file: " + source + "[/bold cyan]"))
            result = workflow.enhance_file(path, output, page_url=url)
            if result.get("status") == "error":
                failures += 1
                console.print("[red]✘[/red] " + result.get("error", "Failed"))
            else:
                _print_results(result, title="Enhancement Results: " + source)
        else:
            console.print("[red]✘[/red] Source not found: " + source)
            raise typer.Exit(code=1)
    finally:
        workflow.close()

    if failures:
        raise typer.Exit(code=1)
    console.print("[green]✔[/green] Enhancement complete.")


# ------------------------------------------------------------------
# keywords
# ------------------------------------------------------------------
@app.command()
def keywords(
    source: Path = typer.Argument(..., help="HTML file to inspect."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Print keyword occurrence counts for a page without modifying it."""
    _setup_logging(verbose)
    settings = _load_settings(config)
    if not source.is_file():
        console.print("[red]✘[/red] Source not found: " + str(source))
        raise typer.Exit(code=1)

    from src.modules.page_enhancer import Page, PageEnhancer
    from src.utils.text_processing import keyword_density
    try:
        html = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print("[red]✘[/red] Could not read " + str(source) + ": " + str(exc))
        raise typer.Exit(code=1)
    page = Page.from_html(html)
    report = PageEnhancer(settings).analyze_keyword_density(page)
    density = keyword_density(page.body_text(), report.keys())
    _print_keyword_report(report, density)


# ------------------------------------------------------------------
# schema
# ------------------------------------------------------------------
@app.command()
def schema(
    schema_type: Optional[str] = typer.Option(None, "--type", "-t", help="person, breadcrumb or faq (default: all)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Print the configured JSON-LD records and their validation result."""
    _setup_logging(verbose)
    settings = _load_settings(config)

    from src.modules.page_enhancer import SchemaGenerator
    gen = SchemaGenerator(settings)
    schemas = gen.all_schemas()
    if schema_type:
        if schema_type not in schemas:
            console.print("[red]✘[/red] Unknown schema type: " + schema_type)
            raise typer.Exit(code=1)
        schemas = {schema_type: schemas[schema_type]}

    invalid = 0
    for name, record in schemas.items():
        validation = gen.validate_schema(record)
        console.print(Panel(json.dumps(record, indent=2, ensure_ascii=False), title=name))
        if validation["is_valid"]:
            console.print("[green]✔[/green] " + name + " is valid.")
        else:
            invalid += 1
            for err in validation["errors"]:
                console.print("[red]✘[/red] " + name + ": " + err)
        for warning in validation["warnings"]:
            console.print("[yellow]⚠[/yellow] " + name + ": " + warning)

    if invalid:
        raise typer.Exit(code=1)


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------
@app.command()
def status(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show configuration and component status."""
    _setup_logging(verbose)
    from src.config import resolve_config_path
    from src.utils.validators import validate_settings

    console.print(Panel("[bold cyan]System Status[/bold cyan]"))
    table = Table(title="Component Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=20)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=60)

    config_path = resolve_config_path(config)
    if config_path.exists():
        table.add_row("Configuration", "[green]✔ OK[/green]", str(config_path))
    else:
        table.add_row("Configuration", "[yellow]⚠ Missing[/yellow]", "Using built-in defaults")

    settings = _load_settings(config)
    problems = validate_settings(settings)
    if problems:
        table.add_row("Settings", "[red]✘ Invalid[/red]", "; ".join(problems))
    else:
        table.add_row("Settings", "[green]✔ OK[/green]", settings["site"]["url"])

    indexing = settings.get("indexing", {})
    if indexing.get("enabled", True):
        table.add_row("Indexing Ping", "[green]✔ Enabled[/green]", indexing.get("ping_endpoint", ""))
    else:
        table.add_row("Indexing Ping", "[yellow]○ Disabled[/yellow]", "")

    table.add_row("Keywords", "[green]✔ OK[/green]", str(len(settings.get("keywords", []))) + " tracked")
    console.print(table)

    if problems:
        raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
