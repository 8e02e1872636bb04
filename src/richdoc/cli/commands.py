"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from richdoc.config import Settings, load_config
from richdoc.core.pipeline import run_import, run_render, run_validate
from richdoc.core.utils.logger import set_level


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    set_level(settings.log_level)
    return settings


def render_cmd(
    path: Annotated[str, typer.Argument(help="JSON document/post file or directory")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    toc: Annotated[bool, typer.Option("--toc", help="Also write <name>.toc.json with h2 anchors")] = False,
    max_depth: Annotated[Optional[int], typer.Option("--max-depth", help="Max node nesting depth")] = None,
    ):
    """Render stored documents or posts to HTML."""
    settings = _settings(overrides={"output_dir": out, "max_depth": max_depth})
    output_dir = Path(settings.output_dir)
    try:
        results = run_render(path, output_dir, settings, toc=toc)
    except RuntimeError as e:
        _fail(str(e))
    except Exception as e:
        _fail("Render failed", e)
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Rendered {len(results)} document(s) to {output_dir}/")


def validate_cmd(
    path: Annotated[str, typer.Argument(help="JSON document/post file or directory")],
    max_depth: Annotated[Optional[int], typer.Option("--max-depth", help="Max node nesting depth")] = None,
    ):
    """Strictly check documents against the schema; exits 1 if any fail."""
    settings = _settings(overrides={"max_depth": max_depth})
    results = run_validate(path, settings.max_depth)
    if not results:
        typer.echo("No JSON files found.")
        raise typer.Exit(1)

    failed = 0
    for src, error in results:
        if error is None:
            typer.echo(f"  ok: {src}")
        else:
            failed += 1
            typer.echo(f"  invalid: {src}: {error}", err=True)
    typer.echo(f"Validated {len(results)} document(s), {failed} invalid")
    if failed:
        raise typer.Exit(1)


def import_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    ):
    """Convert markdown posts into document JSON records."""
    settings = _settings(overrides={"output_dir": out})
    output_dir = Path(settings.output_dir)
    try:
        results = run_import(path, output_dir)
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Imported {len(results)} document(s) to {output_dir}/")
