"""Exit codes for CLI commands.

Each failure kind of a reconcile run maps to one stable process exit code.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (unknown module, bad arguments)
    - 2: Environment error (bad module layout, unreadable config)
    - 3: Release error (helm or kubectl invocation failed)
    - 4: Hook error (a lifecycle hook or enablement script failed)
    - 5: I/O error (values file missing or malformed)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    HOOK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
