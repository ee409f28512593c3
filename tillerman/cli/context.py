from __future__ import annotations

import os
from dataclasses import dataclass

import typer

from tillerman.core.config import Config, load_config_or_default
from tillerman.core.errors import ErrorCode
from tillerman.core.result import Err
from tillerman.core.workspace import Workspace, detect_workspace
from tillerman.output.console import ConsoleProtocol, RichConsole
from tillerman.platform.process import ProcessRunner, SubprocessRunner
from tillerman.services.helm.client import CliHelm
from tillerman.services.kube import KubeClient, KubectlClient

VERBOSE_ENV_VAR = "TILLERMAN_VERBOSE"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: Config
    console: ConsoleProtocol
    runner: ProcessRunner
    kube: KubeClient
    helm: CliHelm


def build_context() -> CLIContext:
    workspace_result = detect_workspace()
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    workspace = workspace_result.value

    config_result = load_config_or_default(workspace.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    config = config_result.value

    console = RichConsole(verbose=os.environ.get(VERBOSE_ENV_VAR) == "1")
    runner = SubprocessRunner()
    kube = KubectlClient(binary=config.kube.binary, cwd=workspace.root, runner=runner)
    helm = CliHelm(
        tiller_namespace=config.helm.tiller_namespace,
        storage_namespace=config.helm.tiller_namespace,
        kube=kube,
        binary=config.helm.binary,
        cwd=workspace.root,
        runner=runner,
        console=console,
    )

    return CLIContext(
        workspace=workspace,
        config=config,
        console=console,
        runner=runner,
        kube=kube,
        helm=helm,
    )
