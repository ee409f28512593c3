from __future__ import annotations

import typer

from tillerman.cli.commands._helpers import exit_with_code, prepare
from tillerman.cli.context import build_context
from tillerman.core.errors import ErrorCode
from tillerman.output.console import Style
from tillerman.output.errors import module_error_exit_code
from tillerman.services.modules.orchestrator import Orchestrator


def run(
    module: list[str] | None = typer.Option(
        None,
        "--module",
        "-m",
        help="Only reconcile this module (repeatable).",
    ),
    local: bool = typer.Option(False, "--local", help="Ignore the cluster values config map."),
) -> None:
    """Reconcile modules in order: cleanup, hooks and helm upgrade."""
    ctx = build_context()
    registry, run_context = prepare(ctx, local=local)

    if module:
        unknown = [name for name in module if registry.get(name) is None]
        if unknown:
            ctx.console.error(f"unknown module(s): {', '.join(unknown)}")
            ctx.console.print(f"available: {', '.join(registry.names)}", Style.DIM)
            exit_with_code(ErrorCode.USER_ERROR)

    orchestrator = Orchestrator(
        registry=registry,
        context=run_context,
        helm=ctx.helm,
        runner=ctx.runner,
        console=ctx.console,
    )
    report = orchestrator.run(only=module or None)

    ctx.console.header("Summary")
    ctx.console.print(f"deployed: {', '.join(report.deployed) or '-'}", Style.DIM)
    ctx.console.print(f"skipped: {', '.join(report.skipped) or '-'}", Style.DIM)
    for outcome in report.failed:
        ctx.console.error(f"{outcome.module_name}: failed at {outcome.stage}")

    if report.failed:
        first = report.failed[0].error
        raise typer.Exit(
            code=module_error_exit_code(first) if first else int(ErrorCode.USER_ERROR)
        )
