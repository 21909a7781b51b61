#!/usr/bin/env python3
"""
CV Rendering CLI

Renders a CV context (YAML) to LaTeX and compiles it to PDF with LuaLaTeX.

Commands:
    render - Build the LaTeX source, compile it, and move the PDF to the dist directory
    tex    - Build the LaTeX source only (no compilation)

Examples:\n

    render_cv.py render data/cv.yaml                          # Compile with settings from .env

    render_cv.py render data/cv.yaml --compiler lualatex      # Use lualatex from PATH

    render_cv.py render data/cv.yaml --escape --verbose       # Escape plain text, show compiler output

    render_cv.py tex data/cv.yaml -o cv.tex                   # Write the LaTeX source only
"""

import os
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from cvtex.contexts.rendering import RenderSettings, render_cv
from cvtex.contexts.rendering.logger import setup_rendering_logger
from cvtex.contexts.templating import (
    ContextLoadError,
    FormatterOptions,
    UnsafeContentError,
    build_document,
    load_context,
)
from cvtex.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))


app = typer.Typer(
    help="Render a CV from structured data to PDF with LuaLaTeX",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load(context_file: Path):
    try:
        return load_context(context_file)
    except (ContextLoadError, FileNotFoundError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("render")
def render_command(
    context_file: Annotated[
        Path,
        typer.Argument(help="YAML file with the CV data (site, cv, collections, projects-*)"),
    ],
    work_dir: Annotated[
        Optional[Path],
        typer.Option("--work-dir", "-w", help="Directory LuaLaTeX runs in (default: CVTEX_WORK_DIR or tmp)"),
    ] = None,
    dist_dir: Annotated[
        Optional[Path],
        typer.Option("--dist-dir", "-d", help="Directory for the finished PDF (default: CVTEX_DIST_DIR or dist)"),
    ] = None,
    compiler: Annotated[
        Optional[str],
        typer.Option("--compiler", "-c", help="LuaLaTeX executable (default: CVTEX_LATEX_COMPILER)"),
    ] = None,
    jobname: Annotated[
        Optional[str],
        typer.Option("--jobname", "-j", help="Output base name (default: CVTEX_JOBNAME or cv)"),
    ] = None,
    escape: Annotated[
        bool,
        typer.Option("--escape", "-e", help="Escape LaTeX special characters in plain-text fields"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation output (compiler stdout/stderr)"),
    ] = False,
):
    """
    Render a CV to PDF.

    Examples:\n

        $ render_cv.py render data/cv.yaml                 # Render with defaults

        $ render_cv.py render data/cv.yaml -c lualatex -v  # Compiler from PATH, verbose
    """
    settings = RenderSettings.from_env()
    overrides = {
        "work_dir": work_dir,
        "dist_dir": dist_dir,
        "compiler": compiler,
        "jobname": jobname,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})
    if escape:
        settings = replace(settings, escape_text=True)

    log_dir = LOGS_PATH / f"render_{now()}"
    setup_rendering_logger(log_dir, compiler=settings.resolved_compiler, verbose=verbose)

    typer.secho(f"\nRendering: {context_file}", fg=typer.colors.BLUE, bold=True)
    typer.echo("")

    context = _load(context_file)
    try:
        result = render_cv(context, settings=settings, verbose=verbose)
    except UnsafeContentError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    if result.success:
        typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  LaTeX warnings: {len(result.compilation.warnings)}")
        typer.echo(f"  PDF: {result.pdf_path}")
    else:
        typer.secho(
            f"✗ Compilation failed with {len(result.errors)} errors", fg=typer.colors.RED, bold=True
        )
        if result.errors:
            typer.echo("\nErrors:")
            for error in result.errors[:10]:
                typer.secho(f"  - {error}", fg=typer.colors.RED)
            if len(result.errors) > 10:
                typer.echo(f"  ... and {len(result.errors) - 10} more")

    typer.echo(f"  Log: {log_dir / 'render.log'}")
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


@app.command("tex")
def tex_command(
    context_file: Annotated[
        Path,
        typer.Argument(help="YAML file with the CV data"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the LaTeX source here instead of stdout"),
    ] = None,
    escape: Annotated[
        bool,
        typer.Option("--escape", "-e", help="Escape LaTeX special characters in plain-text fields"),
    ] = False,
):
    """
    Build the LaTeX source of the CV without compiling it.

    Examples:\n

        $ render_cv.py tex data/cv.yaml              # Print to stdout

        $ render_cv.py tex data/cv.yaml -o cv.tex    # Write to file
    """
    context = _load(context_file)
    settings = RenderSettings.from_env()
    try:
        document = build_document(
            context,
            FormatterOptions(escape_text=escape or settings.escape_text),
            settings.template_dir,
        )
    except UnsafeContentError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(document)
    else:
        output.write_text(document, encoding="utf-8")
        typer.secho(f"✓ Wrote {output}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
