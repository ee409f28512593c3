from __future__ import annotations

from tillerman.cli.commands._helpers import prepare
from tillerman.cli.context import build_context
from tillerman.output.console import Style


def modules() -> None:
    """List discovered modules in execution order."""
    ctx = build_context()
    registry, _ = prepare(ctx, local=True)

    if not registry.modules:
        ctx.console.print(f"no modules in {registry.modules_dir}", Style.DIM)
        return

    for module in registry.modules:
        hooks = registry.hooks_for(module)
        flags: list[str] = []
        if not module.has_chart():
            flags.append("no chart")
        if module.enabled_script_path.exists():
            flags.append("enabled script")
        suffix = f" ({', '.join(flags)})" if flags else ""
        ctx.console.print(f"{module.directory_name}{suffix}")
        ctx.console.print(
            f"  hooks: {len(hooks.before_helm)} before-helm, {len(hooks.after_helm)} after-helm",
            Style.DIM,
        )
        for hook in (*hooks.before_helm, *hooks.after_helm):
            ctx.console.print(f"    {hook.binding.value}/{hook.name}", Style.DIM)
