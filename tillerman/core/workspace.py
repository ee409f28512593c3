"""Working directory detection and paths.

The working directory holds the `modules/` tree (one `NNN-name` directory
per module, plus the shared `values.yaml`) and an optional `config.toml`.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .config import PathsConfig
from .result import Err, Ok, Result

__all__ = [
    "Workspace",
    "WorkspaceError",
    "WorkspaceSource",
    "WORKDIR_ENV_VAR",
    "detect_workspace",
    "is_workspace_root",
]

WORKDIR_ENV_VAR = "TILLERMAN_WORKDIR"

WorkspaceSource = Literal["option", "env", "cwd"]


@dataclass(frozen=True)
class WorkspaceError:
    """Error when the working directory cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A detected working directory.

    The root contains:
    - modules/ with NNN-name module directories (required)
    - modules/values.yaml shared static values (optional)
    - config.toml (optional)
    """

    root: Path
    source: WorkspaceSource = "cwd"

    @property
    def config_path(self) -> Path:
        """Path to config.toml."""
        return self.root / "config.toml"

    def modules_dir(self, paths: PathsConfig | None = None) -> Path:
        """Directory scanned for modules."""
        return self.root / (paths or PathsConfig()).modules

    def temp_dir(self, paths: PathsConfig | None = None) -> Path:
        """Directory for materialized values and hook output files.

        Relative `temp` settings resolve against the working directory.
        """
        configured = (paths or PathsConfig()).temp
        if not configured:
            return Path(tempfile.gettempdir()) / "tillerman"
        temp = Path(configured).expanduser()
        return temp if temp.is_absolute() else self.root / temp

    def __str__(self) -> str:
        return str(self.root)


def is_workspace_root(path: Path, paths: PathsConfig | None = None) -> bool:
    """A working directory must contain the modules directory."""
    return (path / (paths or PathsConfig()).modules).is_dir()


def detect_workspace(
    *,
    workdir: Path | None = None,
    start_dir: Path | None = None,
    env_var: str = WORKDIR_ENV_VAR,
) -> Result[Workspace, WorkspaceError]:
    """Detect the working directory.

    Detection order:
    1. Explicit `workdir` (the --workdir option)
    2. TILLERMAN_WORKDIR environment variable
    3. Search upward from start_dir (or cwd) for a modules/ directory
    """
    if workdir is not None:
        root = workdir.expanduser().resolve()
        if is_workspace_root(root):
            return Ok(Workspace(root=root, source="option"))
        return Err(
            WorkspaceError(
                message=f"--workdir '{root}' has no modules directory",
                searched_from=root,
            )
        )

    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if is_workspace_root(env_path):
            return Ok(Workspace(root=env_path, source="env"))
        return Err(
            WorkspaceError(
                message=f"${env_var} is set to '{env_value}' but it has no modules directory",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    for parent in (search_start, *search_start.parents):
        if is_workspace_root(parent):
            return Ok(Workspace(root=parent, source="cwd"))

    return Err(
        WorkspaceError(
            message="Could not find a working directory (modules/ not found)",
            searched_from=search_start,
        )
    )
