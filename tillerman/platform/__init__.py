"""Platform abstraction layer."""

from .files import atomic_write_text, is_executable, remove_if_exists
from .process import (
    ProcessError,
    ProcessOutput,
    ProcessRunner,
    SubprocessRunner,
    command_env,
    run,
)

__all__ = [
    # files
    "atomic_write_text",
    "is_executable",
    "remove_if_exists",
    # process
    "ProcessError",
    "ProcessOutput",
    "ProcessRunner",
    "SubprocessRunner",
    "command_env",
    "run",
]
