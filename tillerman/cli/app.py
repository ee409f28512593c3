from __future__ import annotations

import os
from pathlib import Path

import typer

from tillerman import __version__
from tillerman.cli.commands.init_cmd import init
from tillerman.cli.commands.modules_cmd import modules
from tillerman.cli.commands.releases_cmd import prune, releases
from tillerman.cli.commands.run_cmd import run
from tillerman.cli.commands.values_cmd import values
from tillerman.cli.context import VERBOSE_ENV_VAR
from tillerman.core.errors import ErrorCode
from tillerman.core.workspace import WORKDIR_ENV_VAR, is_workspace_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command()(modules)
app.command()(values)
app.command()(releases)
app.command()(prune)
app.command()(init)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    workdir: Path | None = typer.Option(
        None,
        "--workdir",
        "-C",
        help="Working directory holding modules/ (overrides auto detection)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if verbose:
        os.environ[VERBOSE_ENV_VAR] = "1"

    if workdir is not None:
        try:
            root = workdir.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workdir: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_workspace_root(root):
            typer.echo(
                f"error: --workdir '{root}' is not a working directory (missing modules/)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[WORKDIR_ENV_VAR] = str(root)


def main() -> None:
    app()
