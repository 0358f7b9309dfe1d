"""
PairMorph CLI - Main entry point.

Provides commands for translating one file of a paired project, inspecting its
dependency closure, and managing configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pairmorph.config.loader import (
    DEFAULT_CONFIG_NAME,
    ConfigurationError,
    generate_default_config,
    load_config,
)
from pairmorph.config.models import PairMorphConfig
from pairmorph.resolver.dependency_resolver import (
    DependencyResolver,
    MissingDependencyError,
    UnsupportedExtensionError,
)
from pairmorph.translator.llm_client import (
    CredentialError,
    EngineInvocationError,
    InvalidModelError,
)

app = typer.Typer(
    name="pairmorph",
    help="Dependency-grounded, one-file-at-a-time translation between paired languages",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def setup_logging(verbose: bool) -> None:
    """Configure logging for a CLI run."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")
    # Silence noisy HTTP libraries even in verbose mode
    for noisy in ("httpcore", "httpx", "openai._base_client", "anthropic._base_client"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_config(config: Optional[str], root: Path) -> PairMorphConfig:
    """Load configuration or exit with code 1."""
    try:
        return load_config(Path(config) if config else None, search_dir=root)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)


def print_missing(error: MissingDependencyError) -> None:
    console.print("[bold red]ERROR:[/bold red] Missing dependencies. Generate these files first:")
    for entry in error.missing:
        console.print(f"  - {entry.path} [dim]({entry.side.value})[/dim]")


def display_summary(config: PairMorphConfig, focal: str, model_key: str, root: Path) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Pair", config.get_pair_description())
    table.add_row("Focal file", focal)
    table.add_row("Model", model_key)
    table.add_row("Project root", str(root))
    console.print(Panel(table, title="PairMorph", border_style="cyan"))


# =============================================================================
# Commands
# =============================================================================


@app.command()
def translate(
    file: str = typer.Argument(..., help="Focal file; its extension selects the source language"),
    model: Optional[str] = typer.Argument(None, help="Model selector key (see `pairmorph models`)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    root: str = typer.Option(".", "--root", "-r", help="Project root the paths are relative to"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build and log the prompt without calling the engine"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Generate or revise the counterpart of FILE.

    Examples:
        pairmorph translate Base/Nat/add.agda
        pairmorph translate Base/Nat/add.kind g
        pairmorph translate Main.agda --dry-run
    """
    setup_logging(verbose)
    root_path = Path(root)
    cfg = get_config(config, root_path)
    model_key = model or cfg.llm.default_model

    from pairmorph.pipeline.orchestrator import TranslationPipeline

    display_summary(cfg, file, model_key, root_path)
    pipeline = TranslationPipeline(cfg, project_root=root_path, output_console=console)

    try:
        result = pipeline.run(file, model_key, dry_run=dry_run)
    except InvalidModelError as e:
        console.print(f"Invalid model. Available models: {', '.join(e.available)}")
        raise typer.Exit(1)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)
    except (UnsupportedExtensionError, CredentialError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except MissingDependencyError as e:
        print_missing(e)
        raise typer.Exit(1)
    except EngineInvocationError as e:
        console.print(f"\n[bold red]Engine call failed:[/bold red] {e}")
        console.print("[dim]Nothing was written. Re-run the same command to retry.[/dim]")
        raise typer.Exit(1)

    if result.dry_run:
        console.print(f"[yellow]Dry run:[/yellow] {len(result.document.blocks)} context blocks")
        console.print(f"Saved prompt log: {result.prompt_log}")
        return

    report = result.report
    for path in report.written:
        console.print(f"[green]✓[/green] Saved: {path}")
    for failure in report.failures:
        console.print(f"[bold red]✗[/bold red] {failure}")
    if report.nothing_written and not report.failures:
        console.print(
            f"[yellow]⚠ The response contained no {result.resolution.target_language.extension} "
            f"file. Nothing written.[/yellow]"
        )
    console.print(f"Saved prompt log: {result.prompt_log}")


@app.command()
def deps(
    file: str = typer.Argument(..., help="Focal file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    root: str = typer.Option(".", "--root", "-r", help="Project root the paths are relative to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the dependency closure of FILE and which pairs are complete."""
    setup_logging(verbose)
    root_path = Path(root)
    cfg = get_config(config, root_path)
    resolver = DependencyResolver(cfg, project_root=root_path)

    try:
        result = resolver.resolve(file)
    except UnsupportedExtensionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    missing_paths = {entry.path for entry in result.missing}
    table = Table(title=f"Dependencies of {file}")
    table.add_column("#", justify="right", style="dim")
    table.add_column(result.source_language.name, style="cyan")
    table.add_column(result.target_language.name, style="magenta")
    table.add_column("Status")

    for i, dep in enumerate(result.closure.paths, 1):
        counterpart = resolver.counterpart_path(dep)
        absent = [p for p in (dep, counterpart) if p in missing_paths]
        status = "[green]paired[/green]" if not absent else "[red]missing[/red]"
        table.add_row(str(i), dep, counterpart, status)

    console.print(table)
    target_state = "draft" if result.counterpart.exists else "missing"
    console.print(f"Counterpart: {result.counterpart.path} ({target_state})")

    if not result.is_complete:
        print_missing(MissingDependencyError(result.missing))
        raise typer.Exit(1)
    console.print("[green]✓[/green] Dependency closure is complete")


@app.command()
def models(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
):
    """List model selector keys."""
    cfg = get_config(config, Path("."))

    table = Table(title="Models")
    table.add_column("Key", style="cyan")
    table.add_column("Provider")
    table.add_column("Model")
    for key, entry in cfg.llm.models.items():
        marker = " (default)" if key == cfg.llm.default_model else ""
        table.add_row(f"{key}{marker}", entry.provider.value, entry.model)
    console.print(table)


@app.command("init-config")
def init_config(
    output: str = typer.Argument(DEFAULT_CONFIG_NAME, help="Where to write the configuration"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write a default configuration file."""
    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]{output_path} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Wrote {output_path}")


def main():
    app()


if __name__ == "__main__":
    main()
