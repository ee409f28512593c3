"""Module discovery, ordering, hook discovery and enablement.

Modules are the immediate subdirectories of the modules directory named
`NNN-name`. They run in byte-wise ascending order of their directory names,
so the zero-padded prefix defines the order.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from tillerman.core.result import Err, Ok, Result
from tillerman.output.console import ConsoleProtocol
from tillerman.platform.files import is_executable
from tillerman.platform.process import ProcessRunner, command_env
from tillerman.services.errors import HookExecutionError, ParseError, ValidationError
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.model import (
    ENABLED_SCRIPT,
    VALUES_FILE,
    BindingType,
    Module,
    ModuleHook,
    ModuleHooks,
)
from tillerman.services.values.store import Layer

__all__ = [
    "ENABLED_MODULES_PATH_ENV",
    "MODULE_DIR_RE",
    "ModuleRegistry",
    "build_registry",
    "discover_hooks",
    "discover_modules",
    "is_enabled",
    "seed_static_values",
]

MODULE_DIR_RE = re.compile(r"^[0-9][0-9][0-9]-(.+)$")

ENABLED_MODULES_PATH_ENV = "ENABLED_MODULES_PATH"


def _byte_order(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")


def discover_modules(modules_dir: Path) -> Result[list[Module], ValidationError]:
    """List modules in execution order.

    Every badly named directory is collected before failing, so one error
    names all of them.
    """
    modules_dir = modules_dir.resolve()
    try:
        entries = [p for p in modules_dir.iterdir() if p.is_dir()]
    except OSError as e:
        return Err(
            ValidationError(
                modules_dir=modules_dir,
                bad_names=(),
                reason=f"cannot list modules directory: {e}",
            )
        )

    modules: list[Module] = []
    bad: list[str] = []
    seen: set[str] = set()
    for entry in sorted(entries, key=lambda p: _byte_order(p.name)):
        match = MODULE_DIR_RE.match(entry.name)
        if match is None or match.group(1) in seen:
            bad.append(entry.name)
            continue
        seen.add(match.group(1))
        modules.append(Module(name=match.group(1), directory_name=entry.name, path=entry))

    if bad:
        return Err(
            ValidationError(
                modules_dir=modules_dir,
                bad_names=tuple(bad),
                valid_names=tuple(m.directory_name for m in modules),
            )
        )
    return Ok(modules)


def discover_hooks(module: Module, console: ConsoleProtocol) -> ModuleHooks:
    """Executables under `hooks/before-helm/` and `hooks/after-helm/`.

    Nested directories are scanned too; hooks are ordered by their path
    relative to the binding directory. Non-executable files are skipped.
    """
    found: dict[BindingType, tuple[ModuleHook, ...]] = {}
    for binding in BindingType:
        binding_dir = module.hooks_dir / binding.value
        if not binding_dir.is_dir():
            found[binding] = ()
            continue

        hooks: list[ModuleHook] = []
        for path in binding_dir.rglob("*"):
            if path.is_dir():
                continue
            name = path.relative_to(binding_dir).as_posix()
            if not is_executable(path):
                console.warning(f"module '{module.name}': ignoring non executable file {path}")
                continue
            hooks.append(ModuleHook(module=module, name=name, path=path, binding=binding))
        found[binding] = tuple(sorted(hooks, key=lambda h: _byte_order(h.name)))

    return ModuleHooks(
        before_helm=found[BindingType.BEFORE_HELM],
        after_helm=found[BindingType.AFTER_HELM],
    )


def seed_static_values(
    context: RunContext, modules_dir: Path, modules: list[Module]
) -> Result[None, ParseError]:
    """Load modules/values.yaml and each module's values.yaml."""
    loaded = context.values.load_layer(Layer.GLOBAL_STATIC, modules_dir / VALUES_FILE)
    if isinstance(loaded, Err):
        return loaded
    for module in modules:
        loaded = context.values.load_layer(
            Layer.MODULE_STATIC, module.values_path, module=module.name
        )
        if isinstance(loaded, Err):
            return loaded
    return Ok(None)


def is_enabled(
    module: Module,
    context: RunContext,
    *,
    runner: ProcessRunner,
    base_env: Mapping[str, str] | None = None,
) -> Result[None, HookExecutionError]:
    """Evaluate the module's `enabled` script.

    Without a script the module is enabled. The script sees the modules
    enabled so far as a JSON list at $ENABLED_MODULES_PATH. Exit code 0
    enables the module; any other exit code fails the module.
    """
    script = module.enabled_script_path
    if not script.exists():
        return Ok(None)

    enabled_path = context.write_enabled_modules(module.name)
    env = command_env({**(base_env or {}), ENABLED_MODULES_PATH_ENV: str(enabled_path)})
    result = runner.run([str(script)], cwd=module.path, env=env)
    if isinstance(result, Err):
        e = result.error
        return Err(
            HookExecutionError(
                module_name=module.name,
                hook_name=ENABLED_SCRIPT,
                returncode=e.returncode,
                stdout=e.stdout,
                stderr=e.stderr,
                message=f"enabled script exited with {e.returncode}",
            )
        )
    return Ok(None)


def _empty_hooks() -> dict[str, ModuleHooks]:
    return {}


@dataclass(frozen=True, slots=True)
class ModuleRegistry:
    """Discovered modules in execution order, with their hooks."""

    modules_dir: Path
    modules: tuple[Module, ...] = ()
    hooks: Mapping[str, ModuleHooks] = field(default_factory=_empty_hooks)

    @property
    def names(self) -> list[str]:
        return [m.name for m in self.modules]

    def get(self, name: str) -> Module | None:
        for module in self.modules:
            if module.name == name:
                return module
        return None

    def hooks_for(self, module: Module) -> ModuleHooks:
        return self.hooks.get(module.name, ModuleHooks())


def build_registry(
    modules_dir: Path,
    context: RunContext,
    console: ConsoleProtocol,
) -> Result[ModuleRegistry, ValidationError | ParseError]:
    """Discover modules, seed their static values and discover their hooks."""
    console.debug(f"init modules from {modules_dir}")
    discovered = discover_modules(modules_dir)
    if isinstance(discovered, Err):
        return discovered
    modules = discovered.value

    seeded = seed_static_values(context, modules_dir, modules)
    if isinstance(seeded, Err):
        return seeded

    hooks = {module.name: discover_hooks(module, console) for module in modules}
    for module in modules:
        console.debug(f"module '{module.name}': {len(hooks[module.name])} hooks")

    return Ok(ModuleRegistry(modules_dir=modules_dir, modules=tuple(modules), hooks=hooks))
