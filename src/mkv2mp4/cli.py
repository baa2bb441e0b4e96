"""mkv2mp4 CLI entry point.

Three commands:

- ``convert``: ASS/SSA scripts -> SRT files.
- ``remux``: Matroska videos -> M4V with the subtitle track muxed in as SRT.
- ``rip``: extract the ASS track of Matroska videos under a cleaned-up name.

Batch commands keep going after a failing file and exit with status 1 if
any file failed.  Typed errors are shown as Rich panels, never tracebacks.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from mkv2mp4.config import ConversionOptions, DedupPolicy, ToolSettings
from mkv2mp4.errors import ConversionError, Mkv2Mp4Error
from mkv2mp4.naming import srt_path
from mkv2mp4.pipeline import process_many, rip_subtitles
from mkv2mp4.subtitles import convert_many

app = typer.Typer(
    name="mkv2mp4",
    help="Convert Matroska videos to MP4 and ASS/SSA subtitles to SRT.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

_VALID_SCRIPT_EXTS = {".ass", ".ssa"}


def _error_panel(message: str, title: str = "Error") -> None:
    err_console.print(Panel(message, title=f"[red]{title}[/red]", border_style="red"))


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Convert Matroska videos to MP4 and ASS/SSA subtitles to SRT."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command("convert")
def convert_command(
    files: Annotated[list[Path], typer.Argument(help="ASS/SSA scripts to convert.")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", dir_okay=False, help="Output SRT path (single input only)."),
    ] = None,
    dedup: Annotated[
        DedupPolicy,
        typer.Option("--dedup", help="Repeated text under one timecode: exact, substring or none."),
    ] = DedupPolicy.EXACT,
    encoding: Annotated[
        Optional[str],
        typer.Option("--encoding", help="Input encoding (default: UTF-8, detected if that fails)."),
    ] = None,
    jobs: Annotated[int, typer.Option("--jobs", "-j", min=1, help="Files converted in parallel.")] = 1,
) -> None:
    """Convert ASS/SSA subtitle scripts to SRT."""
    if output is not None and len(files) > 1:
        _error_panel("--output can only be used with a single input file.", "Input Error")
        raise typer.Exit(1)

    pairs: list[tuple[Path, Path]] = []
    failed = 0
    for path in files:
        if path.suffix.lower() not in _VALID_SCRIPT_EXTS:
            _error_panel(
                f"Unsupported subtitle format: [bold]{path.suffix}[/bold]\n"
                f"Supported formats: {', '.join(sorted(_VALID_SCRIPT_EXTS))}",
                "Input Error",
            )
            failed += 1
            continue
        if not path.exists():
            _error_panel(f"File not found: [bold]{escape(str(path))}[/bold]", "Input Error")
            failed += 1
            continue
        pairs.append((path, output or srt_path(path)))

    options = ConversionOptions(dedup=dedup, encoding=encoding)
    for (source, _), outcome in zip(pairs, convert_many(pairs, options, workers=jobs)):
        if isinstance(outcome, ConversionError):
            _error_panel(escape(str(outcome)), "Conversion Error")
            failed += 1
            continue
        console.print(
            f"[green]{escape(source.name)}[/green] -> [dim]{escape(str(outcome.output))}[/dim]  "
            f"{outcome.entry_count} entries ({outcome.skipped_count} skipped, {outcome.merged_count} merged)"
        )

    if failed:
        raise typer.Exit(1)


@app.command("remux")
def remux_command(
    files: Annotated[list[Path], typer.Argument(help="Matroska (.mkv) videos.")],
    crf: Annotated[float, typer.Option("--crf", help="x264 quality when the video must be re-encoded.")] = 20.0,
    audio_bitrate: Annotated[int, typer.Option("--audio-bitrate", help="AAC bitrate in kbit/s.")] = 160,
    language: Annotated[str, typer.Option("--language", help="Subtitle language tag.")] = "eng",
    dedup: Annotated[DedupPolicy, typer.Option("--dedup", help="Duplicate text policy for ASS tracks.")] = DedupPolicy.EXACT,
) -> None:
    """Convert MKV videos to M4V and mux in their subtitles as SRT."""
    try:
        settings = ToolSettings(
            crf=crf,
            audio_bitrate_k=audio_bitrate,
            subtitle_language=language,
            conversion=ConversionOptions(dedup=dedup),
        )
    except ValidationError as e:
        _error_panel(escape(str(e)), "Input Error")
        raise typer.Exit(1)

    failed = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Remuxing...", total=len(files))

        def _progress_callback(current: int, total: int, name: str) -> None:
            progress.update(task, completed=current, description=f"Remuxing {name}...")

        results = process_many(files, settings, progress_callback=_progress_callback)

    for result in results:
        name = result.source.name
        if not result.success:
            _error_panel(escape(result.error), "Pipeline Error")
            failed += 1
        elif result.skipped_reason:
            console.print(f"[yellow]Skipped[/yellow] {escape(name)}: {result.skipped_reason}")
        elif result.subtitle_track is None:
            console.print(f"[green]{escape(result.output.name)}[/green] (no subtitle track)")
        else:
            kind = "SRT" if result.subtitle_track.is_srt else "ASS -> SRT"
            console.print(f"[green]{escape(result.output.name)}[/green] subtitles: {kind}")

    if failed:
        raise typer.Exit(1)


@app.command("rip")
def rip_command(
    files: Annotated[list[Path], typer.Argument(help="Matroska (.mkv) videos.")],
    dest: Annotated[
        Optional[Path],
        typer.Option("--dest", "-d", file_okay=False, help="Directory for the .ass files (default: next to each video)."),
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the mkvextract commands without running them.")] = False,
) -> None:
    """Extract ASS/SSA subtitle tracks from MKV videos."""
    failed = 0
    for path in files:
        try:
            target, cmd = rip_subtitles(path, dest, dry_run=dry_run)
        except Mkv2Mp4Error as e:
            _error_panel(escape(str(e)), "Pipeline Error")
            failed += 1
            continue
        if dry_run:
            console.print(" ".join(cmd), markup=False, highlight=False)
        else:
            console.print(f"[green]{escape(path.name)}[/green] -> [dim]{escape(str(target))}[/dim]")

    if failed:
        raise typer.Exit(1)
