"""One reconcile run over every discovered module.

Modules run strictly one after another in registry order. A failing module
is recorded and the run continues with the next one.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path

from tillerman.core.result import Err, Ok, Result
from tillerman.output.console import ConsoleProtocol
from tillerman.output.errors import print_module_error
from tillerman.platform.process import ProcessRunner
from tillerman.services.errors import BackendInvocationError, ParseError, ValidationError
from tillerman.services.helm.client import HelmClient
from tillerman.services.kube import KubeClient
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.hooks import HookRunner
from tillerman.services.modules.pipeline import ModuleOutcome, ModulePipeline, Stage
from tillerman.services.modules.registry import ModuleRegistry, build_registry, is_enabled
from tillerman.services.values.cluster import load_cluster_values

__all__ = ["Orchestrator", "RunReport", "prepare_run"]

PrepareError = ValidationError | ParseError | BackendInvocationError


@dataclass(frozen=True, slots=True)
class RunReport:
    outcomes: tuple[ModuleOutcome, ...]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> list[ModuleOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def deployed(self) -> list[str]:
        return [o.module_name for o in self.outcomes if o.stage is Stage.DONE]

    @property
    def skipped(self) -> list[str]:
        return [o.module_name for o in self.outcomes if o.skipped]


class Orchestrator:
    """Drives enablement and the module pipeline for every module."""

    def __init__(
        self,
        *,
        registry: ModuleRegistry,
        context: RunContext,
        helm: HelmClient,
        runner: ProcessRunner,
        console: ConsoleProtocol,
    ) -> None:
        self._registry = registry
        self._context = context
        self._helm = helm
        self._runner = runner
        self._console = console
        self._pipeline = ModulePipeline(
            helm=helm,
            hook_runner=HookRunner(runner=runner, base_env=helm.command_env(), console=console),
            context=context,
            console=console,
        )

    def run(self, only: Collection[str] | None = None) -> RunReport:
        """Reconcile all modules, or the named subset, in registry order."""
        outcomes: list[ModuleOutcome] = []
        for module in self._registry.modules:
            if only is not None and module.name not in only:
                continue

            self._console.header(f"module {module.name} ({module.directory_name})")
            enabled = is_enabled(
                module,
                self._context,
                runner=self._runner,
                base_env=self._helm.command_env(),
            )
            if isinstance(enabled, Err):
                outcome = ModuleOutcome(module.name, Stage.INIT, enabled.error)
            else:
                self._context.enabled_modules.append(module.name)
                outcome = self._pipeline.run(module, self._registry.hooks_for(module))

            self._report(outcome)
            outcomes.append(outcome)

        return RunReport(outcomes=tuple(outcomes))

    def _report(self, outcome: ModuleOutcome) -> None:
        name = outcome.module_name
        if outcome.error is not None:
            self._console.error(f"module '{name}': failed at {outcome.stage}")
            print_module_error(outcome.error, self._console)
        elif outcome.stage is Stage.DONE:
            self._console.success(f"module '{name}'")
        else:
            self._console.debug(f"module '{name}': {outcome.stage}")


def prepare_run(
    *,
    modules_dir: Path,
    temp_dir: Path,
    kube: KubeClient | None,
    kube_namespace: str,
    config_map: str,
    console: ConsoleProtocol,
) -> Result[tuple[ModuleRegistry, RunContext], PrepareError]:
    """Build the registry and a RunContext with static and cluster layers.

    `kube=None` leaves the cluster layers empty.
    """
    context = RunContext(temp_dir=temp_dir)
    registry = build_registry(modules_dir, context, console)
    if isinstance(registry, Err):
        return registry

    if kube is not None:
        loaded = load_cluster_values(
            context.values,
            kube=kube,
            namespace=kube_namespace,
            config_map=config_map,
            module_names=registry.value.names,
        )
        if isinstance(loaded, Err):
            return loaded

    return Ok((registry.value, context))
