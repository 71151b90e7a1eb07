"""TintSmith CLI application.

Commands:
    generate - Print the 9-step ramp for one color
    emit     - Print Lunacy color objects for one color's ramp
    update   - Insert or regenerate named ramps in a .free document or .json file
    show     - List the palettes stored in a .free document or .json file
    extract  - Unpack a .free document for inspection
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.table import Table

from tintsmith import __version__
from tintsmith.config import (
    DEFAULT_BASE_STEP,
    DEFAULT_EXTREME_RATIO,
    DEFAULT_LIGHTNESS_MAX,
    DEFAULT_LIGHTNESS_MIN,
    DEFAULT_WORKERS,
)
from tintsmith.core.palette import NamedPalette, normalize_requests
from tintsmith.core.ramp import generate_ramp, ramp_lightness
from tintsmith.core.types import (
    ColorRequest,
    DuplicatePolicy,
    PaletteEntry,
    Ramp,
    RampConfig,
    TargetKind,
)
from tintsmith.errors import TintSmithError

app = typer.Typer(
    name="tintsmith",
    help="Tint/shade palette generation for Lunacy documents and JSON color files.",
    no_args_is_help=True,
)
console = Console()

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)


def version_callback(value: bool):
    if value:
        console.print(f"TintSmith v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version and exit.",
        callback=version_callback, is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    if verbose:
        logging.getLogger("tintsmith").setLevel(logging.DEBUG)


_STAGE_WEIGHTS = {
    "load": 20,
    "compute": 50,
    "merge": 10,
    "write": 20,
}

_LIGHTNESS_MAX_OPTION = typer.Option(
    DEFAULT_LIGHTNESS_MAX, "--lightness-max", min=0.0, max=1.0,
    help="HSL lightness of step 100 (0-1).",
)
_LIGHTNESS_MIN_OPTION = typer.Option(
    DEFAULT_LIGHTNESS_MIN, "--lightness-min", min=0.0, max=1.0,
    help="HSL lightness of step 900 (0-1).",
)
_EXTREME_RATIO_OPTION = typer.Option(
    DEFAULT_EXTREME_RATIO, "--extreme-ratio", min=0.0, max=1.0,
    help="Share of remaining headroom used past very light/dark bases.",
)


def _build_ramp_config(lightness_max: float, lightness_min: float, extreme_ratio: float) -> RampConfig:
    """Create RampConfig from shared CLI options."""
    try:
        return RampConfig(
            lightness_max=lightness_max,
            lightness_min=lightness_min,
            extreme_ratio=extreme_ratio,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _resolve_policy(policy: str) -> DuplicatePolicy:
    """Resolve --policy option to DuplicatePolicy."""
    try:
        return DuplicatePolicy(policy.strip().lower())
    except ValueError:
        raise typer.BadParameter("Policy must be one of: last_wins, strict.") from None


def _build_progress_callback(progress: Progress, task_id: int):
    """Create weighted stage-progress callback for update runs."""

    stage_order = list(_STAGE_WEIGHTS.keys())

    def on_progress(stage: str, fraction: float, message: str):
        base = sum(
            _STAGE_WEIGHTS[s]
            for s in stage_order
            if stage in _STAGE_WEIGHTS and stage_order.index(s) < stage_order.index(stage)
        )
        weight = _STAGE_WEIGHTS.get(stage, 0)
        progress.update(
            task_id,
            completed=base + weight * fraction,
            description=f"{stage}: {message}" if message else stage,
        )

    return on_progress


def _fail(error):
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


def _single_ramp(name: str, color: str, step: int, config: RampConfig) -> tuple[str, Ramp]:
    [(name, base, step)] = normalize_requests([ColorRequest(name=name, value=color, step=step)])
    return name, generate_ramp(base, step, config)


@app.command()
def generate(
    name: str = typer.Argument(..., help="Palette name."),
    color: str = typer.Argument(..., help="Base color (#RRGGBB, RGB, rgb(r, g, b))."),
    step: int = typer.Option(DEFAULT_BASE_STEP, "-s", "--step", help="Step the base color sits at (100-900)."),
    as_json: bool = typer.Option(False, "--json", help="Print as a JSON color definition."),
    lightness_max: float = _LIGHTNESS_MAX_OPTION,
    lightness_min: float = _LIGHTNESS_MIN_OPTION,
    extreme_ratio: float = _EXTREME_RATIO_OPTION,
):
    """Print the 9-step ramp for one color."""
    from tintsmith.io.palette_json import entry_to_mapping

    config = _build_ramp_config(lightness_max, lightness_min, extreme_ratio)
    try:
        name, ramp = _single_ramp(name, color, step, config)
    except TintSmithError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps({name: entry_to_mapping(PaletteEntry(name=name, ramp=ramp))}, indent=2))
        return

    _print_ramp(name, ramp)


@app.command()
def emit(
    name: str = typer.Argument(..., help="Palette name."),
    color: str = typer.Argument(..., help="Base color (#RRGGBB, RGB, rgb(r, g, b))."),
    step: int = typer.Option(DEFAULT_BASE_STEP, "-s", "--step", help="Step the base color sits at (100-900)."),
    lightness_max: float = _LIGHTNESS_MAX_OPTION,
    lightness_min: float = _LIGHTNESS_MIN_OPTION,
    extreme_ratio: float = _EXTREME_RATIO_OPTION,
):
    """Print Lunacy color objects for one color's ramp."""
    from tintsmith.io.lunacy import ramp_color_objects

    config = _build_ramp_config(lightness_max, lightness_min, extreme_ratio)
    try:
        name, ramp = _single_ramp(name, color, step, config)
    except TintSmithError as e:
        _fail(e)

    typer.echo(json.dumps(ramp_color_objects(name, ramp), indent=2))


@app.command()
def update(
    target: Path = typer.Argument(..., help="Lunacy document (.free) or color definition file (.json)."),
    color: Optional[list[str]] = typer.Option(
        None, "-c", "--color",
        help="Colors as name:value[:step], separated by ';' or ','. Repeatable.",
    ),
    from_json: Optional[Path] = typer.Option(
        None, "--from-json", help="JSON file of {name: {value, step}} definitions.",
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write here instead of overwriting TARGET.",
    ),
    policy: str = typer.Option(
        "last_wins", "--policy", help="Repeated names in one batch: last_wins, strict.",
    ),
    workers: int = typer.Option(DEFAULT_WORKERS, "--workers", min=1, help="Threads for ramp generation."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute and report, but write nothing."),
    prefix: str = typer.Option("", "--prefix", help="Prepended to every requested palette name."),
    lightness_max: float = _LIGHTNESS_MAX_OPTION,
    lightness_min: float = _LIGHTNESS_MIN_OPTION,
    extreme_ratio: float = _EXTREME_RATIO_OPTION,
):
    """Insert or regenerate named ramps in a document or definition file."""
    from tintsmith.io.palette_json import load_requests
    from tintsmith.pipeline.requests import RequestBuilder
    from tintsmith.pipeline.runner import UpdateConfig, run_update

    ramp_config = _build_ramp_config(lightness_max, lightness_min, extreme_ratio)
    dup_policy = _resolve_policy(policy)

    try:
        builder = RequestBuilder()
        if from_json is not None:
            builder.extend(load_requests(from_json))
        builder.add_specs(color or [])
    except (TintSmithError, OSError) as e:
        _fail(e)

    config = UpdateConfig(
        target=target,
        requests=builder.build(),
        output=output,
        ramp=ramp_config,
        policy=dup_policy,
        workers=workers,
        dry_run=dry_run,
        name_prefix=prefix,
    )

    console.print(f"\n[bold]TintSmith Palette Update[/bold]")
    console.print(f"  Target:   {target}")
    if output:
        console.print(f"  Output:   {output}")
    console.print(f"  Requests: {len(config.requests)}")
    console.print(f"  Policy:   {dup_policy.value}")
    if prefix:
        console.print(f"  Prefix:   {escape(prefix)}")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Updating palettes...", total=100)
        on_progress = _build_progress_callback(progress, task)

        try:
            result = run_update(config, progress_callback=on_progress)
            progress.update(task, completed=100, description="Complete")
        except (TintSmithError, OSError) as e:
            progress.stop()
            _fail(e)

    console.print()
    _print_summary(result)

    if result.output_path:
        console.print(f"\n[green]Output:[/green] {result.output_path}")
    elif dry_run:
        console.print("\n[yellow]Dry run:[/yellow] nothing written")

    total_time = result.diagnostics.get("total_time", 0)
    console.print(f"[dim]Total time: {total_time:.2f}s[/dim]\n")


@app.command()
def show(
    target: Path = typer.Argument(..., help="Lunacy document (.free) or color definition file (.json)."),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Show the full ramp of one palette."),
):
    """List the palettes stored in a document or definition file."""
    from tintsmith.io import lunacy, palette_json
    from tintsmith.pipeline.runner import detect_target_kind

    try:
        kind = detect_target_kind(target)
        if kind is TargetKind.LUNACY:
            palette = lunacy.palette_from_document(lunacy.read_document(target))
        else:
            palette = palette_json.palette_from_mapping(palette_json.read_palette_file(target))
    except (TintSmithError, OSError) as e:
        _fail(e)

    if name is not None:
        entry = palette.get(name)
        if entry is None:
            _fail(f"No palette named {name!r} in {target}")
        _print_ramp(entry.name, entry.ramp)
        return

    _print_palette(palette, title=str(target))


@app.command()
def extract(
    document: Path = typer.Argument(..., help="Lunacy document (.free)."),
    destination: Optional[Path] = typer.Option(
        None, "-d", "--dest", help="Directory to extract into. Default: <document>_extracted.",
    ),
):
    """Unpack a .free archive so its JSON can be inspected."""
    from tintsmith.io.lunacy import extract_document

    dest = destination or document.with_name(f"{document.stem}_extracted")
    try:
        out = extract_document(document, dest)
    except (TintSmithError, OSError) as e:
        _fail(e)

    console.print(f"[green]Extracted:[/green] {out}")


def _swatch(hex_value: str) -> str:
    return f"[on {hex_value[:7]}]      [/]"


def _print_ramp(name: str, ramp: Ramp):
    """Display one ramp with swatches, marking the base step."""
    table = Table(title=f"{name} (base {ramp.base_step})", show_header=True, header_style="bold")
    table.add_column("Step", justify="right", style="cyan")
    table.add_column("Hex")
    table.add_column("Swatch")
    table.add_column("Lightness", justify="right")

    for (step, color), L in zip(ramp.items(), ramp_lightness(ramp)):
        marker = " [bold]*[/bold]" if step == ramp.base_step else ""
        table.add_row(f"{step}{marker}", color.hex, _swatch(color.hex), f"{L:.3f}")

    console.print(table)


def _print_palette(palette: NamedPalette, title: str):
    """Display every palette as one row of swatches."""
    if not len(palette):
        console.print(f"[yellow]No palettes in {title}[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Base", justify="right")
    table.add_column("Ramp")
    table.add_column("Version", justify="right")

    for entry in palette:
        ramp = "".join(f"[on {c.hex[:7]}]   [/]" for c in entry.ramp.colors)
        table.add_row(entry.name, f"{entry.base_color.hex} @ {entry.base_step}", ramp, str(entry.version))

    console.print(table)


def _print_summary(result):
    """Display created/updated/unchanged names."""
    table = Table(title="Update Summary", show_header=True, header_style="bold")
    table.add_column("Palette", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Base", justify="right")

    for label, names, style in (
        ("Created", result.summary.created, "green"),
        ("Updated", result.summary.updated, "yellow"),
        ("Unchanged", result.summary.unchanged, "dim"),
    ):
        for name in names:
            entry = result.palette[name]
            table.add_row(name, f"[{style}]{label}[/{style}]", f"{entry.base_color.hex} @ {entry.base_step}")

    console.print(table)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
