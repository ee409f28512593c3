"""Typed configuration loading and access.

This module provides dataclasses for the config.toml structure found at the
root of a working directory. Every key is optional; defaults match a Tiller
and an orchestrator deployment both living in the `tillerman` namespace.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "HelmConfig",
    "KubeConfig",
    "PathsConfig",
    "load_config",
    "load_config_or_default",
    "DEFAULT_NAMESPACE",
]

DEFAULT_NAMESPACE = "tillerman"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class HelmConfig:
    """Release backend settings."""

    binary: str = "helm"
    tiller_namespace: str = DEFAULT_NAMESPACE
    service_account: str = DEFAULT_NAMESPACE


@dataclass(frozen=True, slots=True)
class KubeConfig:
    """Cluster access settings.

    Attributes:
        namespace: Namespace holding the orchestrator deployment and the
            cluster values config map. Release records live in the Tiller
            namespace (`[helm] tiller_namespace`).
        deployment: Name of the orchestrator's own deployment; its node
            selectors and tolerations are copied to Tiller on init.
        config_map: Config map providing the cluster-supplied value layers.
    """

    binary: str = "kubectl"
    namespace: str = DEFAULT_NAMESPACE
    deployment: str = DEFAULT_NAMESPACE
    config_map: str = DEFAULT_NAMESPACE


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Paths relative to the working directory.

    An empty `temp` selects `<system temp>/tillerman`.
    """

    modules: str = "modules"
    temp: str = ""


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    helm: HelmConfig = field(default_factory=HelmConfig)
    kube: KubeConfig = field(default_factory=KubeConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        helm: StrDict = get_table(data, "helm") or {}
        kube: StrDict = get_table(data, "kube") or {}
        paths: StrDict = get_table(data, "paths") or {}

        return cls(
            helm=HelmConfig(
                binary=get_str(helm, "binary") or "helm",
                tiller_namespace=get_str(helm, "tiller_namespace") or DEFAULT_NAMESPACE,
                service_account=get_str(helm, "service_account") or DEFAULT_NAMESPACE,
            ),
            kube=KubeConfig(
                binary=get_str(kube, "binary") or "kubectl",
                namespace=get_str(kube, "namespace") or DEFAULT_NAMESPACE,
                deployment=get_str(kube, "deployment") or DEFAULT_NAMESPACE,
                config_map=get_str(kube, "config_map") or DEFAULT_NAMESPACE,
            ),
            paths=PathsConfig(
                modules=get_str(paths, "modules") or "modules",
                temp=get_str(paths, "temp") or "",
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, otherwise return the defaults.

    A present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
