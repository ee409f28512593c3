from __future__ import annotations

import typer

from tillerman.cli.commands._helpers import exit_on_error
from tillerman.cli.context import build_context
from tillerman.output.console import Style


def releases(
    status: str | None = typer.Option(
        None,
        "--status",
        "-s",
        help="Only releases with a record in this status (e.g. DEPLOYED, FAILED).",
    ),
) -> None:
    """List releases known to Tiller."""
    ctx = build_context()

    labels = {"STATUS": status.upper()} if status else None
    names = exit_on_error(ctx.helm.list_release_names(labels), ctx)
    if not names:
        ctx.console.print("no releases", Style.DIM)
        return
    for name in names:
        ctx.console.print(name)


def prune(
    release: str = typer.Argument(..., help="Release name."),
) -> None:
    """Delete failed history records of a release, except the latest one."""
    ctx = build_context()

    deleted = exit_on_error(ctx.helm.delete_old_failed_revisions(release), ctx)
    if not deleted:
        ctx.console.print(f"{release}: nothing to prune", Style.DIM)
        return
    ctx.console.success(f"{release}: deleted {len(deleted)} failed record(s)")
    for name in deleted:
        ctx.console.print(f"  {name}", Style.DIM)
