"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
Captured process output is always shown in full.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tillerman.core.errors import ErrorCode
from tillerman.output.console import Style
from tillerman.services.errors import (
    BackendInvocationError,
    HookExecutionError,
    ModuleError,
    NotFoundError,
    ParseError,
    ValidationError,
)

if TYPE_CHECKING:
    from tillerman.output.console import ConsoleProtocol

__all__ = ["module_error_exit_code", "print_module_error", "print_process_output"]


def print_process_output(stdout: str, stderr: str, console: ConsoleProtocol) -> None:
    if stdout.strip():
        console.print(f"stdout:\n{stdout.rstrip()}", Style.DIM)
    if stderr.strip():
        console.print(f"stderr:\n{stderr.rstrip()}", Style.DIM)


def print_module_error(error: ModuleError, console: ConsoleProtocol) -> None:
    """Print an error with its captured output."""
    match error:
        case ValidationError(reason=reason) if reason:
            console.error(str(error))
        case ValidationError(bad_names=bad, valid_names=valid):
            console.error(str(error))
            if valid:
                console.print(f"valid: {', '.join(valid)}", Style.DIM)
            if bad:
                console.print("hint: rename to NNN-name, e.g. 010-nginx", Style.DIM)
        case NotFoundError(stdout=stdout, stderr=stderr):
            console.error(str(error))
            print_process_output(stdout, stderr, console)
        case BackendInvocationError(stdout=stdout, stderr=stderr):
            console.error(str(error))
            print_process_output(stdout, stderr, console)
        case HookExecutionError(stdout=stdout, stderr=stderr):
            console.error(str(error))
            print_process_output(stdout, stderr, console)
        case ParseError():
            console.error(str(error))


def module_error_exit_code(error: ModuleError) -> int:
    """Get exit code for a module error."""
    match error:
        case ValidationError():
            return int(ErrorCode.ENV_ERROR)
        case NotFoundError():
            return int(ErrorCode.USER_ERROR)
        case BackendInvocationError():
            return int(ErrorCode.RELEASE_ERROR)
        case HookExecutionError():
            return int(ErrorCode.HOOK_ERROR)
        case ParseError():
            return int(ErrorCode.IO_ERROR)
