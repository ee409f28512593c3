"""Bootstrap of the private Tiller.

Tiller is scheduled like the orchestrator itself: node selectors and
tolerations are copied from the orchestrator's deployment into the
`helm init` arguments.
"""

from __future__ import annotations

from collections.abc import Mapping

from tillerman.core.result import Err, Ok, Result
from tillerman.core.structured import as_obj_list, as_str_dict, get_path
from tillerman.services.errors import BackendInvocationError
from tillerman.services.helm.client import CliHelm

__all__ = ["build_init_args", "init_helm", "node_selector_args", "toleration_overrides"]


def node_selector_args(deployment: Mapping[str, object]) -> list[str]:
    """`--node-selectors=k=v,...` or nothing when the pod has no selector."""
    selector = as_str_dict(get_path(deployment, "spec", "template", "spec", "nodeSelector"))
    if not selector:
        return []
    pairs = [f"{k}={v}" for k, v in sorted(selector.items())]
    return [f"--node-selectors={','.join(pairs)}"]


def toleration_overrides(deployment: Mapping[str, object]) -> list[str]:
    """`spec.template.spec.tolerations[i].<field>=<value>` override entries."""
    tolerations = as_obj_list(get_path(deployment, "spec", "template", "spec", "tolerations"))
    overrides: list[str] = []
    for i, raw in enumerate(tolerations or []):
        toleration = as_str_dict(raw) or {}
        prefix = f"spec.template.spec.tolerations[{i}]"
        for key in ("key", "operator", "value", "effect"):
            overrides.append(f"{prefix}.{key}={_text(toleration.get(key))}")
        seconds = toleration.get("tolerationSeconds")
        if seconds is not None:
            overrides.append(f"{prefix}.tolerationSeconds={seconds}")
    return overrides


def _text(value: object) -> str:
    return "" if value is None else str(value)


def build_init_args(service_account: str, deployment: Mapping[str, object]) -> list[str]:
    args = [
        "init",
        "--service-account",
        service_account,
        "--upgrade",
        "--wait",
        "--skip-refresh",
        *node_selector_args(deployment),
    ]
    overrides = toleration_overrides(deployment)
    if overrides:
        args.append(f"--override={','.join(overrides)}")
    return args


def init_helm(
    helm: CliHelm,
    *,
    service_account: str,
    deployment_namespace: str,
    deployment_name: str,
) -> Result[str, BackendInvocationError]:
    """Install or upgrade Tiller, then probe `helm version`.

    Returns:
        Ok(version text) once Tiller answers.
    """
    helm.console.info("helm: run helm init")

    deployment = helm.kube.get_deployment(deployment_namespace, deployment_name)
    if isinstance(deployment, Err):
        return Err(
            BackendInvocationError(
                operation="helm init",
                message=(
                    f"cannot fetch deployment {deployment_namespace}/{deployment_name} "
                    f"to gather settings for tiller: {deployment.error}"
                ),
                returncode=deployment.error.returncode,
                stdout=deployment.error.stdout,
                stderr=deployment.error.stderr,
            )
        )

    init = helm.cmd(*build_init_args(service_account, deployment.value))
    if isinstance(init, Err):
        e = init.error
        return Err(
            BackendInvocationError(
                operation="helm init",
                message=str(e),
                returncode=e.returncode,
                stdout=e.stdout.strip(),
                stderr=e.stderr.strip(),
            )
        )
    helm.console.debug(f"helm: tiller initialization done: {init.value.stdout} {init.value.stderr}")

    version = helm.version()
    if isinstance(version, Err):
        return version
    helm.console.info(f"helm: version {version.value}")
    return Ok(version.value)
