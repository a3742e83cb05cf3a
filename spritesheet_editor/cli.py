#!/usr/bin/env python3
"""
Spritesheet Editor - Command Line Interface

Runs the editor's batch tools on spritesheet files produced by the generation
service. Every command reads a 4-column grid sheet, slices it using the job's
logical length, and writes its result next to the given output path.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from spritesheet_editor.background import remove_background
from spritesheet_editor.codec import frame_count_for_length, reconstruct_spritesheet, slice_spritesheet, visualize_grid
from spritesheet_editor.config import (
    DEFAULT_BACKGROUND_TOLERANCE,
    DEFAULT_FPS,
    DEFAULT_LENGTH,
    DEFAULT_PALETTE_SIZE,
    EXPORT_SIZE,
    MAX_FPS,
    MIN_FPS,
)
from spritesheet_editor.errors import SpritesheetEditorError
from spritesheet_editor.export import export_animated_sequence, export_spritesheet
from spritesheet_editor.logging_config import setup_logging
from spritesheet_editor.quantize import quantize_frames
from spritesheet_editor.raster import encode_png, load_image


def _parse_exclude(value: str | None) -> set[int]:
    if not value:
        return set()
    try:
        return {int(v) for v in value.split(",") if v.strip()}
    except ValueError:
        raise click.BadParameter(f"expected comma separated frame indices, got {value!r}")


def _parse_color(value: str) -> tuple[int, int, int]:
    """Accept '#rrggbb' or 'r,g,b'."""
    try:
        if value.startswith("#") and len(value) == 7:
            return int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16)
        r, g, b = (int(v) for v in value.split(","))
    except ValueError:
        raise click.BadParameter(f"expected '#rrggbb' or 'r,g,b', got {value!r}")
    if any(not 0 <= c <= 255 for c in (r, g, b)):
        raise click.BadParameter(f"colour channels must be in [0, 255], got {value!r}")
    return r, g, b


def _load_frames(input_path: str, length: int):
    """Return the decoded sheet and its frames."""
    sheet = load_image(input_path)
    click.echo(f"Loaded sheet {sheet.shape[1]}x{sheet.shape[0]} from {input_path}")
    return sheet, slice_spritesheet(sheet, length)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _write(output_path: str, data: bytes) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


length_option = click.option('--length', '-l', type=int, default=DEFAULT_LENGTH,
                             help='Logical animation length of the job; frame count is (length - 1) / 2')
exclude_option = click.option('--exclude', '-x', type=str, default=None,
                              help='Comma separated frame indices to leave out, e.g. 0,5,6')


@click.group(context_settings=dict(show_default=True))
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Also write the log to this file')
def main(verbose: bool, log_file: Path | None) -> None:
    """Slice, clean up and re-export grid-packed sprite animations."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file)


@main.command("slice")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_dir', type=click.Path(file_okay=False))
@length_option
@click.option('--debug', '-d', is_flag=True, help='Also save the sheet with the slicing grid drawn on it')
def slice_command(input_path: str, output_dir: str, length: int, debug: bool) -> None:
    """Cut INPUT_PATH into one PNG per frame inside OUTPUT_DIR."""
    try:
        sheet, frames = _load_frames(input_path, length)
    except SpritesheetEditorError as e:
        _fail(str(e))
        return

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(input_path).stem
    for i, frame in enumerate(frames):
        (out_dir / f"{stem}_frame_{i:02d}.png").write_bytes(encode_png(frame))

    if debug:
        grid = visualize_grid(sheet, frame_count_for_length(length))
        (out_dir / f"{stem}_grid.png").write_bytes(encode_png(grid))

    click.echo(f"Saved {len(frames)} frame(s) to {out_dir}")


@main.command("export")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
@length_option
@exclude_option
def export_command(input_path: str, output_path: str, length: int, exclude: str | None) -> None:
    """Repack INPUT_PATH without the excluded frames."""
    excluded = _parse_exclude(exclude)
    try:
        _, frames = _load_frames(input_path, length)
        data = export_spritesheet(frames, excluded)
    except SpritesheetEditorError as e:
        _fail(str(e))
        return
    _write(output_path, data)
    click.echo(f"Spritesheet saved to {output_path}")


@main.command("animate")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
@length_option
@exclude_option
@click.option('--fps', '-f', type=click.IntRange(MIN_FPS, MAX_FPS), default=DEFAULT_FPS, help='Playback speed')
@click.option('--background', '-b', type=str, default="#000000", help="Background colour, '#rrggbb' or 'r,g,b'")
@click.option('--size', '-s', type=click.IntRange(min=1), default=EXPORT_SIZE[0],
              help='Output width and height in pixels')
@click.option('--format', 'fmt', type=click.Choice(['gif', 'png'], case_sensitive=False), default='gif',
              help='gif, or png for a lossless animated PNG')
def animate_command(input_path: str, output_path: str, length: int, exclude: str | None,
                    fps: int, background: str, size: int, fmt: str) -> None:
    """Render INPUT_PATH as a looping animation."""
    excluded = _parse_exclude(exclude)
    bg = _parse_color(background)
    try:
        _, frames = _load_frames(input_path, length)
        data = export_animated_sequence(frames, excluded, fps=fps,
                                        background=bg, size=(size, size), fmt=fmt)
    except SpritesheetEditorError as e:
        _fail(str(e))
        return
    _write(output_path, data)
    click.echo(f"Animation saved to {output_path}")


@main.command("remove-bg")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
@length_option
@click.option('--tolerance', '-t', type=float, default=DEFAULT_BACKGROUND_TOLERANCE,
              help='Maximum RGB distance from a corner colour')
@click.option('--despeckle', is_flag=True, help='Remove isolated opaque specks afterwards')
def remove_bg_command(input_path: str, output_path: str, length: int, tolerance: float, despeckle: bool) -> None:
    """Clear the corner-connected background of every frame."""
    try:
        _, frames = _load_frames(input_path, length)
        frames = remove_background(frames, tolerance, despeckle)
    except SpritesheetEditorError as e:
        _fail(str(e))
        return
    _write(output_path, encode_png(reconstruct_spritesheet(frames)))
    click.echo(f"Cleaned spritesheet saved to {output_path}")


@main.command("quantize")
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False))
@length_option
@click.option('--colors', '-k', type=click.IntRange(1, 256), default=DEFAULT_PALETTE_SIZE, help='Palette size')
@click.option('--seed', type=int, default=None, help='Random seed for a reproducible palette')
def quantize_command(input_path: str, output_path: str, length: int, colors: int, seed: int | None) -> None:
    """Reduce all frames of INPUT_PATH to one shared palette."""
    try:
        _, frames = _load_frames(input_path, length)
        frames = quantize_frames(frames, colors, seed=seed)
    except SpritesheetEditorError as e:
        _fail(str(e))
        return
    _write(output_path, encode_png(reconstruct_spritesheet(frames)))
    click.echo(f"Quantized spritesheet saved to {output_path}")


if __name__ == "__main__":
    main()
