"""Reconciliation of a single module.

    INIT -> CHECK_CHART -> (SKIPPED if no Chart.yaml)
         -> CLEANUP -> BEFORE_HOOKS -> UPGRADE -> AFTER_HOOKS -> DONE

The first failing stage ends the module; the outcome records which stage
failed and why.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from tillerman.core.result import Err, Result
from tillerman.output.console import ConsoleProtocol
from tillerman.platform.process import ProcessOutput
from tillerman.services.errors import BackendInvocationError, ModuleError
from tillerman.services.helm.client import HelmClient
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.hooks import HookRunner
from tillerman.services.modules.model import Module, ModuleHooks

__all__ = ["ModuleOutcome", "ModulePipeline", "Stage"]


class Stage(Enum):
    INIT = auto()
    CHECK_CHART = auto()
    SKIPPED = auto()
    CLEANUP = auto()
    BEFORE_HOOKS = auto()
    UPGRADE = auto()
    AFTER_HOOKS = auto()
    DONE = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True, slots=True)
class ModuleOutcome:
    """Where a module's pipeline stopped.

    Attributes:
        stage: Terminal stage (DONE, SKIPPED) or the failing stage.
        error: Set when `stage` failed.
    """

    module_name: str
    stage: Stage
    error: ModuleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        return self.stage is Stage.SKIPPED


@dataclass
class ModulePipeline:
    helm: HelmClient
    hook_runner: HookRunner
    context: RunContext
    console: ConsoleProtocol

    def run(self, module: Module, hooks: ModuleHooks) -> ModuleOutcome:
        if not module.has_chart():
            self.console.debug(
                f"module '{module.name}': chart file not found '{module.chart_path}', skipped"
            )
            return ModuleOutcome(module.name, Stage.SKIPPED)

        cleaned = self.cleanup(module)
        if isinstance(cleaned, Err):
            return ModuleOutcome(module.name, Stage.CLEANUP, cleaned.error)

        before = self.hook_runner.run_hooks(hooks.before_helm, self.context)
        if isinstance(before, Err):
            return ModuleOutcome(module.name, Stage.BEFORE_HOOKS, before.error)

        upgraded = self.upgrade(module)
        if isinstance(upgraded, Err):
            return ModuleOutcome(module.name, Stage.UPGRADE, upgraded.error)

        after = self.hook_runner.run_hooks(hooks.after_helm, self.context)
        if isinstance(after, Err):
            return ModuleOutcome(module.name, Stage.AFTER_HOOKS, after.error)

        return ModuleOutcome(module.name, Stage.DONE)

    def cleanup(self, module: Module) -> Result[bool, BackendInvocationError]:
        """Purge the release if its first and only revision failed."""
        self.console.info(f"module '{module.name}': running cleanup")
        return self.helm.delete_single_failed_revision(module.release_name)

    def upgrade(self, module: Module) -> Result[ProcessOutput, BackendInvocationError]:
        self.console.info(f"module '{module.name}': running helm")
        values_path = self.context.materialize_values(module.name)
        return self.helm.upgrade_release(
            module.release_name,
            str(module.path),
            [values_path],
            [],
            self.helm.tiller_namespace,
        )
