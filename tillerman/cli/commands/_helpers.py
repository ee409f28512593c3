"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from tillerman.core.errors import ErrorCode
from tillerman.core.result import Err, Result
from tillerman.output.errors import module_error_exit_code, print_module_error
from tillerman.services.errors import ModuleError
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.orchestrator import prepare_run
from tillerman.services.modules.registry import ModuleRegistry

if TYPE_CHECKING:
    from tillerman.cli.context import CLIContext

T = TypeVar("T")


def exit_on_error(result: Result[T, ModuleError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        print_module_error(result.error, ctx.console)
        raise typer.Exit(code=module_error_exit_code(result.error))
    return result.value


def exit_with_code(code: ErrorCode) -> NoReturn:
    raise typer.Exit(code=int(code))


def prepare(ctx: CLIContext, *, local: bool) -> tuple[ModuleRegistry, RunContext]:
    """Registry and run context for the working directory.

    With `local`, the cluster values config map is not read.
    """
    paths = ctx.config.paths
    prepared = prepare_run(
        modules_dir=ctx.workspace.modules_dir(paths),
        temp_dir=ctx.workspace.temp_dir(paths),
        kube=None if local else ctx.kube,
        kube_namespace=ctx.config.kube.namespace,
        config_map=ctx.config.kube.config_map,
        console=ctx.console,
    )
    return exit_on_error(prepared, ctx)
