"""Domain errors for sqlaction."""

from typing import Optional


class SqlActionError(RuntimeError):
    """Raised when the action cannot continue safely."""


class CommandFailedError(SqlActionError):
    """Raised when an external command exits with a non-zero code."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode
