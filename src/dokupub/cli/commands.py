"""CLI command implementations"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from dokupub.config import Settings, load_config
from dokupub.core.pipeline import run_build
from dokupub.core.render import Renderer


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging from it."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return settings


def render_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Page file to render; reads stdin when omitted")] = None,
    namespace: Annotated[Optional[str], typer.Option("--namespace", help="Namespace relative links resolve against")] = None,
    no_typography: Annotated[bool, typer.Option("--no-typography", help="Disable arrow/dash/symbol substitutions")] = False,
    no_html: Annotated[bool, typer.Option("--no-html", help="Escape <html> blocks and tags in text")] = False,
    ):
    """Render one page of wiki markup to an HTML fragment on stdout."""
    settings = _settings(overrides={
        "current_namespace": namespace,
        "typography": False if no_typography else None,
        "html_ok": False if no_html else None,
    })

    try:
        if path:
            text = Path(path).read_text(encoding='utf-8')
        else:
            text = typer.get_text_stream("stdin").read()
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Could not read {path or 'stdin'}", e)

    if not text.strip():
        _fail("No input to render.")

    typer.echo(Renderer(settings).render(text))


def build_cmd(
    path: Annotated[str, typer.Argument(help="Page file or directory tree to build")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    namespace: Annotated[Optional[str], typer.Option("--namespace", help="Base namespace for the tree")] = None,
    ):
    """Render every page under PATH to HTML + sidecar JSON, mirroring the source tree."""
    settings = _settings(overrides={"output_dir": out, "current_namespace": namespace})
    output_dir = Path(settings.output_dir)

    if not Path(path).exists():
        _fail(f"Path not found: {path}")

    try:
        results = run_build(path, settings, output_dir)
    except RuntimeError as e:
        _fail(str(e))
    if not results:
        typer.echo(f"No {settings.page_extension} pages found under {path}.")
        raise typer.Exit(1)

    for src, html_path in results:
        typer.echo(f"  {src} -> {html_path}")
    typer.echo(f"Built {len(results)} page(s) to {output_dir}/")
