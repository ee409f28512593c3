from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePath


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Module directories with unusable names (no `NNN-` prefix, duplicates).

    All offenders of one scan are reported together. `reason` is set instead
    when the modules directory itself cannot be listed.
    """

    modules_dir: Path
    bad_names: tuple[str, ...]
    valid_names: tuple[str, ...] = ()
    reason: str = ""

    def __str__(self) -> str:
        if self.reason:
            return f"{self.modules_dir}: {self.reason}"
        return (
            f"bad module directory names in {self.modules_dir}, "
            f"expected unique `NNN-name`: {', '.join(self.bad_names)}"
        )


@dataclass(frozen=True, slots=True)
class NotFoundError:
    """The release backend has no release with this name.

    `revision` is always the "0" sentinel.
    """

    release_name: str
    stdout: str = ""
    stderr: str = ""
    revision: str = "0"

    def __str__(self) -> str:
        return f"release '{self.release_name}' not found"


@dataclass(frozen=True, slots=True)
class BackendInvocationError:
    """helm or kubectl exited non-zero or printed something unparsable."""

    operation: str
    message: str
    returncode: int = -1
    stdout: str = ""
    stderr: str = ""
    release_name: str | None = None

    def __str__(self) -> str:
        target = f" '{self.release_name}'" if self.release_name else ""
        return f"{self.operation}{target}: {self.message}"


@dataclass(frozen=True, slots=True)
class HookExecutionError:
    """A lifecycle hook or enablement script failed."""

    module_name: str
    hook_name: str
    returncode: int
    stdout: str = ""
    stderr: str = ""
    message: str = ""

    def __str__(self) -> str:
        detail = self.message or f"exit {self.returncode}"
        return f"module '{self.module_name}': hook '{self.hook_name}' failed ({detail})"


@dataclass(frozen=True, slots=True)
class ParseError:
    """A values file or hook output is not a valid YAML mapping."""

    path: PurePath
    reason: str

    def __str__(self) -> str:
        return f"bad values file {self.path}: {self.reason}"


HelmError = NotFoundError | BackendInvocationError

ModuleError = (
    ValidationError | NotFoundError | BackendInvocationError | HookExecutionError | ParseError
)
