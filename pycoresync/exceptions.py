"""Custom exceptions for pycoresync."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .sync.operations import ReconcileResult


class CoreSyncError(Exception):
    """Base exception for all core update errors."""

    pass


class CoreSyncConfigError(CoreSyncError):
    """Raised when the project configuration is invalid."""

    pass


class CoreSyncConfigReadError(CoreSyncConfigError):
    """Raised when the tracked revision cannot be read from the project config."""

    pass


class CoreSyncConfigWriteError(CoreSyncConfigError):
    """Raised when the tracked revision cannot be written to the project config."""

    pass


class CoreSyncNetworkError(CoreSyncError):
    """Raised when querying the upstream repository fails."""

    pass


class CoreSyncInvalidResponseError(CoreSyncNetworkError):
    """Raised when the upstream API returns an unusable response."""

    pass


class CoreSyncVcsError(CoreSyncError):
    """Raised when a git invocation fails.

    Attributes:
        returncode: Exit code of the git process (None if it never started)
        stderr: Diagnostic output captured from the process
    """

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr.strip():
            return f"{message}\n{self.stderr.strip()}"
        return message


class CoreSyncIOError(CoreSyncError):
    """Raised when reading or writing project files fails."""

    pass


class CoreSyncTransplantError(CoreSyncIOError):
    """Raised when some files could not be copied into the project tree.

    The attached result lists which paths were written and which failed,
    since the project tree may be partially updated.
    """

    def __init__(self, message: str, result: ReconcileResult):
        super().__init__(message)
        self.result = result
