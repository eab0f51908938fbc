"""CLI entrypoint: Typer app definition and command registration"""

import typer

from dokupub.cli.commands import build_cmd, render_cmd


app = typer.Typer(name="dokupub", no_args_is_help=True, help="DokuWiki markup to HTML renderer")

app.command(name="render")(render_cmd)
app.command(name="build")(build_cmd)
