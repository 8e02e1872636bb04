"""CLI entrypoint: Typer app definition and command registration"""

import typer

from richdoc.cli.commands import import_cmd, render_cmd, validate_cmd


app = typer.Typer(name="richdoc", no_args_is_help=True, help="Rich-text document validation and HTML rendering")

app.command(name="render")(render_cmd)
app.command(name="validate")(validate_cmd)
app.command(name="import")(import_cmd)
