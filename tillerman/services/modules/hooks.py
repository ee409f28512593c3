"""Execution of module lifecycle hooks.

A hook is run from its module directory with:

- VALUES_PATH: the module's effective values (YAML), written just before
  the hook starts
- MODULE_NAME: the module name
- DYNAMIC_VALUES_PATH: where the hook may write values for every module
- MODULE_DYNAMIC_VALUES_PATH: where the hook may write values for its own
  module
- TILLER_NAMESPACE and anything else the release backend requires

Files the hook writes are merged into the dynamic value layers after a
successful exit.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from tillerman.core.result import Err, Ok, Result
from tillerman.output.console import ConsoleProtocol, MockConsole
from tillerman.platform.files import remove_if_exists
from tillerman.platform.process import ProcessRunner, SubprocessRunner, command_env
from tillerman.services.errors import HookExecutionError, ParseError
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.model import ModuleHook
from tillerman.services.values.codec import read_values_file

__all__ = [
    "DYNAMIC_VALUES_PATH_ENV",
    "HookRunner",
    "MODULE_DYNAMIC_VALUES_PATH_ENV",
    "MODULE_NAME_ENV",
    "VALUES_PATH_ENV",
]

VALUES_PATH_ENV = "VALUES_PATH"
MODULE_NAME_ENV = "MODULE_NAME"
DYNAMIC_VALUES_PATH_ENV = "DYNAMIC_VALUES_PATH"
MODULE_DYNAMIC_VALUES_PATH_ENV = "MODULE_DYNAMIC_VALUES_PATH"

HookError = HookExecutionError | ParseError


@dataclass
class HookRunner:
    """Runs hooks through a ProcessRunner.

    Attributes:
        base_env: Extra variables for every hook (the release backend's
            command environment).
    """

    runner: ProcessRunner = field(default_factory=SubprocessRunner)
    base_env: Mapping[str, str] = field(default_factory=dict)
    console: ConsoleProtocol = field(default_factory=MockConsole)

    def run_hook(self, hook: ModuleHook, context: RunContext) -> Result[None, HookError]:
        module = hook.module
        values_path = context.materialize_values(module.name)

        out_dir = context.hook_output_dir(hook)
        out_dir.mkdir(parents=True, exist_ok=True)
        global_out = out_dir / "dynamic-values.yaml"
        module_out = out_dir / "module-dynamic-values.yaml"
        remove_if_exists(global_out)
        remove_if_exists(module_out)

        env = command_env(
            {
                **self.base_env,
                VALUES_PATH_ENV: str(values_path),
                MODULE_NAME_ENV: module.name,
                DYNAMIC_VALUES_PATH_ENV: str(global_out),
                MODULE_DYNAMIC_VALUES_PATH_ENV: str(module_out),
            }
        )

        self.console.info(f"module '{module.name}': run {hook.binding} hook '{hook.name}'")
        result = self.runner.run([str(hook.path)], cwd=module.path, env=env)
        if isinstance(result, Err):
            e = result.error
            return Err(
                HookExecutionError(
                    module_name=module.name,
                    hook_name=hook.name,
                    returncode=e.returncode,
                    stdout=e.stdout,
                    stderr=e.stderr,
                )
            )
        output = f"{result.value.stdout}{result.value.stderr}".strip()
        if output:
            self.console.debug(f"hook '{hook.key}' output:\n{output}")

        global_values = read_values_file(global_out)
        if isinstance(global_values, Err):
            return global_values
        module_values = read_values_file(module_out)
        if isinstance(module_values, Err):
            return module_values

        if global_values.value:
            context.values.update_dynamic(global_values.value)
        if module_values.value:
            context.values.update_dynamic(module_values.value, module=module.name)
        return Ok(None)

    def run_hooks(
        self, hooks: Sequence[ModuleHook], context: RunContext
    ) -> Result[None, HookError]:
        """Run `hooks` in order, stopping at the first failure."""
        for hook in hooks:
            result = self.run_hook(hook, context)
            if isinstance(result, Err):
                return result
        return Ok(None)
