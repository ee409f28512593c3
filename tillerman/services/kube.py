"""Cluster access through kubectl.

Only the handful of calls the orchestrator needs: Tiller's release config
maps, the cluster values config map and the orchestrator's own deployment.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from tillerman.core.result import Err, Ok, Result
from tillerman.core.structured import StrDict, as_str_dict, get_list
from tillerman.platform.process import ProcessRunner, SubprocessRunner, command_env
from tillerman.services.errors import BackendInvocationError

__all__ = [
    "KubeClient",
    "KubectlClient",
    "config_map_data",
    "config_map_names",
    "format_label_selector",
]


def format_label_selector(labels: Mapping[str, str]) -> str:
    """`{"b": "2", "a": "1"}` -> `a=1,b=2`."""
    return ",".join(f"{k}={labels[k]}" for k in sorted(labels))


class KubeClient(Protocol):
    """Cluster operations used by the release backend client and value loading."""

    def list_config_maps(
        self, namespace: str, labels: Mapping[str, str]
    ) -> Result[list[StrDict], BackendInvocationError]:
        ...

    def get_config_map(
        self, namespace: str, name: str
    ) -> Result[StrDict | None, BackendInvocationError]:
        """The config map object, or None if it does not exist."""
        ...

    def delete_config_map(self, namespace: str, name: str) -> Result[None, BackendInvocationError]:
        ...

    def get_deployment(self, namespace: str, name: str) -> Result[StrDict, BackendInvocationError]:
        ...


@dataclass(frozen=True, slots=True)
class KubectlClient:
    """KubeClient backed by the kubectl binary (`-o json` output)."""

    binary: str = "kubectl"
    cwd: Path = field(default_factory=Path.cwd)
    runner: ProcessRunner = field(default_factory=SubprocessRunner)

    def list_config_maps(
        self, namespace: str, labels: Mapping[str, str]
    ) -> Result[list[StrDict], BackendInvocationError]:
        args = ["get", "configmaps", "--namespace", namespace, "--output", "json"]
        if labels:
            args += ["--selector", format_label_selector(labels)]

        obj = self._json(args, operation="list configmaps")
        if isinstance(obj, Err):
            return obj
        if obj.value is None:
            return Ok([])

        items = get_list(obj.value, "items")
        if items is None:
            return Err(
                BackendInvocationError(
                    operation="list configmaps",
                    message="kubectl output has no `items` list",
                )
            )
        return Ok([item for raw in items if (item := as_str_dict(raw)) is not None])

    def get_config_map(
        self, namespace: str, name: str
    ) -> Result[StrDict | None, BackendInvocationError]:
        args = ["get", "configmap", name, "--namespace", namespace, "--output", "json"]
        return self._json([*args, "--ignore-not-found"], operation=f"get configmap/{name}")

    def delete_config_map(self, namespace: str, name: str) -> Result[None, BackendInvocationError]:
        result = self.runner.run(
            [self.binary, "delete", "configmap", name, "--namespace", namespace],
            cwd=self.cwd,
            env=command_env(),
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                BackendInvocationError(
                    operation=f"delete configmap/{name}",
                    message=str(e),
                    returncode=e.returncode,
                    stdout=e.stdout,
                    stderr=e.stderr,
                )
            )
        return Ok(None)

    def get_deployment(self, namespace: str, name: str) -> Result[StrDict, BackendInvocationError]:
        obj = self._json(
            ["get", "deployment", name, "--namespace", namespace, "--output", "json"],
            operation=f"get deployment/{name}",
        )
        if isinstance(obj, Err):
            return obj
        if obj.value is None:
            return Err(
                BackendInvocationError(
                    operation=f"get deployment/{name}",
                    message="kubectl returned no object",
                )
            )
        return Ok(obj.value)

    def _json(
        self, args: list[str], *, operation: str
    ) -> Result[StrDict | None, BackendInvocationError]:
        result = self.runner.run([self.binary, *args], cwd=self.cwd, env=command_env())
        if isinstance(result, Err):
            e = result.error
            return Err(
                BackendInvocationError(
                    operation=operation,
                    message=str(e),
                    returncode=e.returncode,
                    stdout=e.stdout,
                    stderr=e.stderr,
                )
            )

        text = result.value.stdout.strip()
        if not text:
            return Ok(None)

        try:
            obj: object = json.loads(text)
        except json.JSONDecodeError as e:
            return Err(
                BackendInvocationError(
                    operation=operation,
                    message=f"kubectl returned invalid JSON: {e}",
                    stdout=result.value.stdout,
                    stderr=result.value.stderr,
                )
            )

        data = as_str_dict(obj)
        if data is None:
            return Err(
                BackendInvocationError(
                    operation=operation,
                    message="kubectl returned a non-object JSON document",
                    stdout=result.value.stdout,
                )
            )
        return Ok(data)


def config_map_names(items: list[StrDict]) -> list[str]:
    """`metadata.name` of each item that has one."""
    names: list[str] = []
    for item in items:
        metadata = as_str_dict(item.get("metadata"))
        if metadata is None:
            continue
        name = metadata.get("name")
        if isinstance(name, str):
            names.append(name)
    return names


def config_map_data(item: StrDict) -> dict[str, str]:
    data = as_str_dict(item.get("data")) or {}
    return {k: v for k, v in data.items() if isinstance(v, str)}
