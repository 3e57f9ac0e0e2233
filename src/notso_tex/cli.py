"""Command-line interface for texture compression."""

import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

try:
    __version__ = version("notso-tex")
except PackageNotFoundError:
    __version__ = "unknown"

from notso_tex.exporters import read_document, write_document
from notso_tex.transforms import Transform, mozjpeg, oxipng, to_webp, webp
from notso_tex.utils.constants import MATCH_ALL
from notso_tex.utils.logging import (
    Logger,
    Verbosity,
    bright_cyan,
    format_bytes,
    format_count,
    log_ok,
    print_header,
    timed,
)
from notso_tex.utils.squoosh import SquooshError

app = typer.Typer(
    name="notso-tex",
    help="Recompress GLB/glTF textures with squoosh-cli",
    add_completion=False,
    rich_markup_mode="rich",
    suggest_commands=True,
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        print(f"notso-tex {__version__}")
        raise typer.Exit()


InputArg = Annotated[
    str,
    typer.Argument(
        help="Input file ([bold green].glb[/] or [bold green].gltf[/])",
        metavar="INPUT",
    ),
]
OutputOpt = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output path (default: [italic]input_<command>.\\[glb|gltf][/])",
        rich_help_panel="Core Options",
    ),
]
SlotsOpt = Annotated[
    str,
    typer.Option(
        "--slots",
        help="Glob over texture slots, e.g. [italic]'*Color*'[/] (case-insensitive)",
        rich_help_panel="Selection",
    ),
]
FormatsOpt = Annotated[
    str,
    typer.Option(
        "--formats",
        help="Only textures of this image subtype ([italic]jpeg[/], [italic]png[/], *)",
        rich_help_panel="Selection",
    ),
]
QualityOpt = Annotated[
    int | None,
    typer.Option(
        "--quality",
        min=0,
        max=100,
        help="Encoder quality 0-100 (default: encoder default)",
        rich_help_panel="Encoder",
    ),
]
VerboseOpt = Annotated[
    bool,
    typer.Option(
        "--verbose", help="Log every texture decision", rich_help_panel="Output"
    ),
]
QuietOpt = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Only print warnings and errors",
        rich_help_panel="Output",
    ),
]


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    """
    Compress the textures of GLB/glTF files for the web.
    """


def _verbosity(verbose: bool, quiet: bool) -> Verbosity:
    if verbose:
        return Verbosity.DEBUG
    if quiet:
        return Verbosity.WARN
    return Verbosity.INFO


def _run_transform(
    command: str,
    input_path: str,
    output: Path | None,
    transform: Transform,
    verbose: bool,
    quiet: bool,
) -> None:
    """Load INPUT, apply the transform, write the result."""
    abs_input_path = os.path.abspath(input_path)
    if not os.path.isfile(abs_input_path):
        console.print(f"[bold red][ERROR][/] File not found: {abs_input_path}")
        raise typer.Exit(code=1)

    base, ext = os.path.splitext(abs_input_path)
    if ext.lower() not in (".glb", ".gltf"):
        console.print(f"[bold red][ERROR][/] Unsupported format: {ext}")
        console.print("        Supported: .glb, .gltf")
        raise typer.Exit(code=1)

    final_output_path: str
    if output is None:
        final_output_path = f"{base}_{command}{ext.lower()}"
    else:
        final_output_path = os.path.abspath(str(output))

    if not quiet:
        print_header(f"notso-tex {command}")

    logger = Logger(_verbosity(verbose, quiet))
    try:
        document = read_document(abs_input_path, logger=logger)
    except ValueError as e:
        console.print(f"[bold red][ERROR][/] {e}")
        raise typer.Exit(code=1) from e

    try:
        with timed(f"Texture {command}", print_on_exit=not quiet):
            count = transform(document)
    except (SquooshError, ValueError) as e:
        console.print(f"[bold red][ERROR][/] {e}")
        raise typer.Exit(code=1) from e

    write_document(document, final_output_path)

    if not quiet:
        in_size = os.path.getsize(abs_input_path)
        out_size = os.path.getsize(final_output_path)
        log_ok(
            f"Compressed {format_count(count, 'texture')} -> "
            f"{bright_cyan(final_output_path)} "
            f"({format_bytes(in_size)} → {format_bytes(out_size)})"
        )


@app.command("webp")
def webp_command(
    input_path: InputArg,
    output: OutputOpt = None,
    slots: SlotsOpt = MATCH_ALL,
    formats: FormatsOpt = MATCH_ALL,
    quality: QualityOpt = None,
    verbose: VerboseOpt = False,
    quiet: QuietOpt = False,
) -> None:
    """
    Compress textures to WebP (requires EXT_texture_webp).
    """
    transform = webp(slots=slots, formats=formats, quality=quality)
    _run_transform("webp", input_path, output, transform, verbose, quiet)


@app.command("mozjpeg")
def mozjpeg_command(
    input_path: InputArg,
    output: OutputOpt = None,
    slots: SlotsOpt = MATCH_ALL,
    formats: FormatsOpt = "jpeg",
    quality: QualityOpt = None,
    verbose: VerboseOpt = False,
    quiet: QuietOpt = False,
) -> None:
    """
    Recompress JPEG textures with MozJPEG.
    """
    transform = mozjpeg(slots=slots, formats=formats, quality=quality)
    _run_transform("mozjpeg", input_path, output, transform, verbose, quiet)


@app.command("oxipng")
def oxipng_command(
    input_path: InputArg,
    output: OutputOpt = None,
    slots: SlotsOpt = MATCH_ALL,
    formats: FormatsOpt = "png",
    effort: Annotated[
        int | None,
        typer.Option(
            "--effort",
            min=0,
            max=6,
            help="OxiPNG effort 0-6 (default: encoder default)",
            rich_help_panel="Encoder",
        ),
    ] = None,
    verbose: VerboseOpt = False,
    quiet: QuietOpt = False,
) -> None:
    """
    Losslessly optimize PNG textures with OxiPNG.
    """
    transform = oxipng(slots=slots, formats=formats, effort=effort)
    _run_transform("oxipng", input_path, output, transform, verbose, quiet)


@app.command("towebp")
def towebp_command(
    input_path: InputArg,
    output: OutputOpt = None,
    slots: SlotsOpt = MATCH_ALL,
    verbose: VerboseOpt = False,
    quiet: QuietOpt = False,
) -> None:
    """
    Convert every texture that is not WebP yet to WebP.
    """
    transform = to_webp(slots=slots)
    _run_transform("towebp", input_path, output, transform, verbose, quiet)


def main() -> None:
    """Entry point for the notso-tex console script."""
    app(prog_name="notso-tex")


if __name__ == "__main__":
    main()
