"""CLI interface for overlap resolution."""

import math
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

from . import __version__
from .config import DEFAULT_MIN_SEGMENT_DURATION, ResolverConfig
from .formatters import FORMATTERS, EXTENSIONS, format_json, format_rttm, format_txt
from .loaders import RESOLVED_SUFFIX, SUPPORTED_EXTENSIONS, discover_segment_files, load_segments
from .resolver import OverlapResolver

app = typer.Typer(
    name="resolve-overlaps",
    help="Resolve cross-speaker overlaps in diarization output.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def parse_formats(format_str: str) -> list[str]:
    """Parse comma-separated format string into list of formats."""
    formats = []
    for part in format_str.split(","):
        fmt = part.strip().lower()
        if fmt == "all":
            return list(FORMATTERS.keys())
        if fmt and fmt in FORMATTERS:
            formats.append(fmt)
        elif fmt:
            err_console.print(f"[yellow]Warning: Unknown format '{fmt}', ignoring[/yellow]")
    return formats or ["json"]  # Default to json if nothing valid


def version_callback(value: bool) -> None:
    if value:
        console.print(f"resolve-overlaps {__version__}")
        raise typer.Exit()


def output_path(input_path: Path, fmt: str, output: Path | None) -> Path:
    """Output file for one input and format: <stem>.resolved<ext>."""
    out_dir = output or input_path.parent
    return out_dir / (input_path.stem + RESOLVED_SUFFIX + EXTENSIONS[fmt])


def _write_outputs(
    segments,
    regions,
    input_path: Path,
    formats: list[str],
    output: Path | None,
    console: Console,
    verbose: bool,
) -> None:
    """Write resolved segments to files in all requested formats."""
    for fmt in formats:
        out_file = output_path(input_path, fmt, output)

        if fmt == "json":
            content = format_json(segments, regions=regions, source_path=str(input_path))
        elif fmt == "rttm":
            content = format_rttm(segments, file_id=input_path.stem)
        else:
            content = format_txt(segments)

        out_file.write_text(content, encoding="utf-8")

        if verbose:
            console.print(f"  [green]✓[/green] {out_file}")


def _show_dry_run(
    segment_files: list[Path],
    formats: list[str],
    output: Path | None,
    console: Console,
) -> None:
    """Show what files would be processed in dry run mode."""
    console.print(f"[bold]Would process {len(segment_files)} file(s):[/bold]")
    for path in segment_files:
        for fmt in formats:
            console.print(f"  {path} → {output_path(path, fmt, output)}")


def _process_file(
    path: Path,
    resolver: OverlapResolver,
    formats: list[str],
    output: Path | None,
    console: Console,
    err_console: Console,
    verbose: bool,
) -> tuple[int, int, int] | None:
    """Process a single segment file.

    Returns (segments_in, overlap_regions, segments_out) on success, None on error.
    """
    try:
        segments = load_segments(path)
        regions = resolver.overlap_regions(segments)
        resolved = resolver.resolve(segments)
        _write_outputs(resolved, regions, path, formats, output, console, verbose)
    except Exception as e:
        err_console.print(f"[red]Error processing {path}: {e}[/red]")
        return None

    if verbose:
        console.print(
            f"  {path.name}: {len(segments)} segment(s), {len(regions)} overlap region(s) "
            f"→ {len(resolved)} segment(s)"
        )
    return len(segments), len(regions), len(resolved)


def _process_files(
    segment_files: list[Path],
    resolver: OverlapResolver,
    formats: list[str],
    output: Path | None,
    console: Console,
    err_console: Console,
    verbose: bool,
    fail_fast: bool,
) -> tuple[int, int, tuple[int, int, int]]:
    """Process all segment files.

    Returns (success_count, error_count, totals) where totals sums
    (segments_in, overlap_regions, segments_out) over successful files.
    """
    success_count = 0
    error_count = 0
    totals = (0, 0, 0)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=not verbose and len(segment_files) == 1,
    ) as progress:
        task = progress.add_task("Resolving...", total=len(segment_files))

        for path in segment_files:
            progress.update(task, description=f"[cyan]{path.name}[/cyan]")

            stats = _process_file(path, resolver, formats, output, console, err_console, verbose)
            if stats is not None:
                success_count += 1
                totals = tuple(t + s for t, s in zip(totals, stats))
            else:
                error_count += 1
                if fail_fast:
                    raise typer.Exit(1)

            progress.advance(task)

    return success_count, error_count, totals


def _print_summary(
    segment_files: list[Path],
    success_count: int,
    error_count: int,
    totals: tuple[int, int, int],
    verbose: bool,
    console: Console,
) -> None:
    """Print processing summary."""
    segments_in, region_count, segments_out = totals
    if len(segment_files) > 1 or verbose:
        console.print()
        console.print(
            f"[bold green]✓ {success_count} file(s) resolved[/bold green]"
            f" ({region_count} overlap region(s), {segments_in} → {segments_out} segment(s))"
            + (f", [bold red]{error_count} error(s)[/bold red]" if error_count else "")
        )


@app.command()
def main(
    inputs: Annotated[
        list[Path],
        typer.Argument(
            help="Segment files (.json, .rttm) or directories to process",
            exists=True,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output", "-o",
            help="Output directory (default: same as input file)",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option(
            "--format", "-f",
            help="Output format(s): json, rttm, txt, or 'all'. Comma-separated.",
        ),
    ] = "json",
    min_duration: Annotated[
        float,
        typer.Option(
            "--min-duration",
            help="Drop resolved segments shorter than this (seconds)",
        ),
    ] = DEFAULT_MIN_SEGMENT_DURATION,
    resolve: Annotated[
        bool,
        typer.Option(
            "--resolve/--no-resolve",
            help="Resolve overlaps, or only sort segments by start time",
        ),
    ] = True,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive", "-r",
            help="Search directories recursively",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show what would be processed without resolving",
        ),
    ] = False,
    fail_fast: Annotated[
        bool,
        typer.Option(
            "--fail-fast/--continue-on-error",
            help="Stop on first error vs continue processing",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Show detailed progress",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Resolve overlapping speaker segments into one speaker per instant."""
    if not math.isfinite(min_duration) or min_duration < 0:
        raise typer.BadParameter("Must be a finite value >= 0", param_hint="--min-duration")

    formats = parse_formats(format)

    segment_files = discover_segment_files(inputs, recursive=recursive)

    if not segment_files:
        err_console.print("[red]No segment files found.[/red]")
        err_console.print(f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")
        raise typer.Exit(1)

    if output:
        output.mkdir(parents=True, exist_ok=True)

    if dry_run:
        _show_dry_run(segment_files, formats, output, console)
        raise typer.Exit(0)

    resolver = OverlapResolver(
        ResolverConfig(min_segment_duration=min_duration, resolve_overlaps=resolve)
    )

    success_count, error_count, totals = _process_files(
        segment_files,
        resolver,
        formats,
        output,
        console,
        err_console,
        verbose,
        fail_fast,
    )

    _print_summary(segment_files, success_count, error_count, totals, verbose, console)

    if error_count:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
