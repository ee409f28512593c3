from __future__ import annotations

import typer

from tillerman.cli.commands._helpers import exit_on_error, exit_with_code, prepare
from tillerman.cli.context import build_context
from tillerman.core.errors import ErrorCode
from tillerman.services.values.codec import values_to_string


def values(
    module: str = typer.Argument(..., help="Module name (without the NNN- prefix)."),
    local: bool = typer.Option(False, "--local", help="Ignore the cluster values config map."),
    deployed: bool = typer.Option(
        False,
        "--deployed",
        help="Show the values of the deployed release instead.",
    ),
) -> None:
    """Print the effective values of a module."""
    ctx = build_context()

    if deployed:
        release_values = exit_on_error(ctx.helm.get_release_values(module), ctx)
        ctx.console.print(values_to_string(release_values).rstrip())
        return

    registry, run_context = prepare(ctx, local=local)
    if registry.get(module) is None:
        ctx.console.error(f"unknown module: {module}")
        exit_with_code(ErrorCode.USER_ERROR)

    composed = run_context.values.compose(module)
    ctx.console.print(values_to_string(composed).rstrip())
