from __future__ import annotations

from tillerman.cli.commands._helpers import exit_on_error
from tillerman.cli.context import build_context
from tillerman.services.helm.tiller import init_helm


def init() -> None:
    """Install or upgrade the private Tiller and wait until it answers."""
    ctx = build_context()

    version = init_helm(
        ctx.helm,
        service_account=ctx.config.helm.service_account,
        deployment_namespace=ctx.config.kube.namespace,
        deployment_name=ctx.config.kube.deployment,
    )
    exit_on_error(version, ctx)
    ctx.console.success(f"tiller ready in namespace '{ctx.config.helm.tiller_namespace}'")
