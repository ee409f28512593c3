"""Subprocess execution with Result-based error handling.

Wraps subprocess.run so that helm, kubectl, hooks and enablement scripts all
return captured output or a structured error instead of raising.

Usage:
    result = run(["helm", "version"], cwd=Path("."), env=command_env({"TILLER_NAMESPACE": "ns"}))
    match result:
        case Ok(output):
            print(output.stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tillerman.core.result import Err, Ok, Result

__all__ = [
    "ProcessError",
    "ProcessOutput",
    "ProcessRunner",
    "SubprocessRunner",
    "command_env",
    "run",
]


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Captured output of a successful process."""

    stdout: str
    stderr: str


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def command_env(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Current process environment with `extra` variables appended."""
    env = dict(os.environ)
    if extra:
        env.update(extra)
    return env


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[ProcessOutput, ProcessError]:
    """Execute a command and return its output or an error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Full environment (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(ProcessOutput) on exit code 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(ProcessOutput(stdout=proc.stdout, stderr=proc.stderr))


class ProcessRunner(Protocol):
    """Protocol for running external commands.

    This abstraction allows replacing helm, kubectl and hook processes
    with fakes in tests.
    """

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> Result[ProcessOutput, ProcessError]:
        """Run a command to completion and return its captured output."""
        ...


@dataclass(frozen=True, slots=True)
class SubprocessRunner:
    """Default runner using subprocess.run."""

    timeout: float | None = None

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> Result[ProcessOutput, ProcessError]:
        return run(cmd, cwd, env, timeout=self.timeout)
