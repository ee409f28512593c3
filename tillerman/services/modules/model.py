from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"
ENABLED_SCRIPT = "enabled"
HOOKS_DIR = "hooks"


class BindingType(Enum):
    """When a hook runs relative to the helm upgrade.

    The value is the subdirectory of `hooks/` holding such hooks.
    """

    BEFORE_HELM = "before-helm"
    AFTER_HELM = "after-helm"

    def __str__(self) -> str:
        return "BeforeHelm" if self is BindingType.BEFORE_HELM else "AfterHelm"


@dataclass(frozen=True, slots=True)
class Module:
    """A `NNN-name` directory under modules/.

    Attributes:
        name: Directory name without the numeric prefix; also the release name.
        directory_name: Raw directory name, prefix included.
        path: Absolute module directory.
    """

    name: str
    directory_name: str
    path: Path

    @property
    def release_name(self) -> str:
        return self.name

    @property
    def chart_path(self) -> Path:
        return self.path / CHART_FILE

    @property
    def values_path(self) -> Path:
        return self.path / VALUES_FILE

    @property
    def enabled_script_path(self) -> Path:
        return self.path / ENABLED_SCRIPT

    @property
    def hooks_dir(self) -> Path:
        return self.path / HOOKS_DIR

    def has_chart(self) -> bool:
        return self.chart_path.is_file()


@dataclass(frozen=True, slots=True)
class ModuleHook:
    """An executable bound to one module and one binding type.

    `name` is the path relative to the binding directory, e.g. `010-seed`
    or `db/020-migrate`.
    """

    module: Module
    name: str
    path: Path
    binding: BindingType

    @property
    def key(self) -> str:
        return f"{self.module.name}/{self.binding.value}/{self.name}"


@dataclass(frozen=True, slots=True)
class ModuleHooks:
    """Hooks of one module, each tuple already in execution order."""

    before_helm: tuple[ModuleHook, ...] = ()
    after_helm: tuple[ModuleHook, ...] = ()

    def for_binding(self, binding: BindingType) -> tuple[ModuleHook, ...]:
        if binding is BindingType.BEFORE_HELM:
            return self.before_helm
        return self.after_helm

    def __len__(self) -> int:
        return len(self.before_helm) + len(self.after_helm)
