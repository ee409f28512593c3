"""Cluster-supplied value layers.

The config map named in `[kube] config_map` carries YAML documents:
`values` for the global layer and `<module>-values` for each module.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from tillerman.core.result import Err, Ok, Result
from tillerman.services.errors import BackendInvocationError, ParseError
from tillerman.services.kube import KubeClient, config_map_data
from tillerman.services.values.codec import parse_values
from tillerman.services.values.store import Layer, ValueStore

__all__ = ["GLOBAL_VALUES_KEY", "load_cluster_values", "module_values_key"]

GLOBAL_VALUES_KEY = "values"


def module_values_key(module_name: str) -> str:
    return f"{module_name}-values"


def load_cluster_values(
    store: ValueStore,
    *,
    kube: KubeClient,
    namespace: str,
    config_map: str,
    module_names: Iterable[str],
) -> Result[None, BackendInvocationError | ParseError]:
    """Replace CLUSTER_GLOBAL and every CLUSTER_MODULE layer.

    A missing config map or key yields empty layers.
    """
    found = kube.get_config_map(namespace, config_map)
    if isinstance(found, Err):
        return found
    data = config_map_data(found.value) if found.value is not None else {}

    def parse(key: str) -> Result[dict[str, object], ParseError]:
        source = PurePosixPath("configmap", namespace, config_map, key)
        return parse_values(data.get(key, ""), source=source)

    global_values = parse(GLOBAL_VALUES_KEY)
    if isinstance(global_values, Err):
        return global_values
    store.set_layer(Layer.CLUSTER_GLOBAL, global_values.value)

    for name in module_names:
        module_values = parse(module_values_key(name))
        if isinstance(module_values, Err):
            return module_values
        store.set_layer(Layer.CLUSTER_MODULE, module_values.value, module=name)

    return Ok(None)
