"""Per-run state shared by the registry, hooks and module pipelines."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from tillerman.services.modules.model import ModuleHook
from tillerman.services.values.codec import write_json_file
from tillerman.services.values.store import ValueStore

__all__ = ["RunContext"]

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class RunContext:
    """Everything a run mutates.

    Attributes:
        temp_dir: Root of materialized files (values, hook output,
            enabled-module lists).
        values: The six value layers. Dynamic layers grow while modules run,
            so module N+1 sees what module N's hooks produced.
        enabled_modules: Names of the modules enabled so far, in run order.
    """

    temp_dir: Path
    values: ValueStore = field(default_factory=ValueStore)
    enabled_modules: list[str] = field(default_factory=list)

    @property
    def values_dir(self) -> Path:
        return self.temp_dir / "values"

    def materialize_values(self, module_name: str) -> Path:
        """Write the module's effective values and return the file path."""
        return self.values.materialize(module_name, self.values_dir)

    def write_enabled_modules(self, module_name: str) -> Path:
        path = self.temp_dir / "enabled-modules" / f"{module_name}.json"
        return write_json_file(path, list(self.enabled_modules))

    def hook_output_dir(self, hook: ModuleHook) -> Path:
        safe = _UNSAFE_CHARS_RE.sub("_", hook.name)
        return self.temp_dir / "hooks" / hook.module.name / hook.binding.value / safe
