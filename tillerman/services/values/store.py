"""Six-layer values store.

Effective values of a module are the deep merge, in this order, of:

1. GLOBAL_STATIC   - modules/values.yaml
2. MODULE_STATIC   - modules/NNN-name/values.yaml
3. CLUSTER_GLOBAL  - cluster config map, `values` key
4. CLUSTER_MODULE  - cluster config map, `<name>-values` key
5. GLOBAL_DYNAMIC  - written by hooks during the run
6. MODULE_DYNAMIC  - written by the module's hooks during the run
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path

from tillerman.core.result import Err, Ok, Result
from tillerman.services.errors import ParseError
from tillerman.services.values.codec import read_values_file, write_values_file
from tillerman.services.values.merge import Values, merge_values

__all__ = ["Layer", "ValueStore"]


class Layer(IntEnum):
    """Value layers in merge order (later overrides earlier)."""

    GLOBAL_STATIC = 1
    MODULE_STATIC = 2
    CLUSTER_GLOBAL = 3
    CLUSTER_MODULE = 4
    GLOBAL_DYNAMIC = 5
    MODULE_DYNAMIC = 6

    @property
    def module_scoped(self) -> bool:
        return self in (Layer.MODULE_STATIC, Layer.CLUSTER_MODULE, Layer.MODULE_DYNAMIC)

    @property
    def dynamic(self) -> bool:
        return self in (Layer.GLOBAL_DYNAMIC, Layer.MODULE_DYNAMIC)

    def __str__(self) -> str:
        return self.name.lower()


class ValueStore:
    """Holds the global and per-module layers of one orchestrator process."""

    def __init__(self) -> None:
        self._global: dict[Layer, Values] = {}
        self._modules: dict[Layer, dict[str, Values]] = {}

    def set_layer(self, layer: Layer, tree: Values, *, module: str | None = None) -> None:
        """Install or replace one layer.

        Raises:
            ValueError: `module` given for a global layer or missing for a
                module-scoped one.
        """
        self._check_scope(layer, module)
        if module is None:
            self._global[layer] = merge_values(tree)
        else:
            self._modules.setdefault(layer, {})[module] = merge_values(tree)

    def get_layer(self, layer: Layer, *, module: str | None = None) -> Values:
        """Copy of a layer's tree (empty if never set)."""
        self._check_scope(layer, module)
        if module is None:
            return merge_values(self._global.get(layer, {}))
        return merge_values(self._modules.get(layer, {}).get(module, {}))

    def load_layer(
        self, layer: Layer, path: Path, *, module: str | None = None
    ) -> Result[None, ParseError]:
        """Read `path` into a layer. A missing file installs an empty layer."""
        values = read_values_file(path)
        if isinstance(values, Err):
            return values
        self.set_layer(layer, values.value, module=module)
        return Ok(None)

    def update_dynamic(self, patch: Values, *, module: str | None = None) -> None:
        """Deep-merge hook output into GLOBAL_DYNAMIC or MODULE_DYNAMIC."""
        layer = Layer.GLOBAL_DYNAMIC if module is None else Layer.MODULE_DYNAMIC
        current = self.get_layer(layer, module=module)
        self.set_layer(layer, merge_values(current, patch), module=module)

    def compose(self, module: str) -> Values:
        """Effective values of `module`. Pure: layers are left untouched."""
        trees: list[Values] = []
        for layer in Layer:
            if layer.module_scoped:
                trees.append(self._modules.get(layer, {}).get(module, {}))
            else:
                trees.append(self._global.get(layer, {}))
        return merge_values(*trees)

    def materialize(self, module: str, directory: Path) -> Path:
        """Compose `module` and write it to `<directory>/<module>.yaml`."""
        return write_values_file(directory / f"{module}.yaml", self.compose(module))

    @staticmethod
    def _check_scope(layer: Layer, module: str | None) -> None:
        if layer.module_scoped and module is None:
            raise ValueError(f"layer {layer} requires a module name")
        if not layer.module_scoped and module is not None:
            raise ValueError(f"layer {layer} is global, got module {module!r}")
