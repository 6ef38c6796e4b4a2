"""Subprocess execution service for sqlaction."""

import subprocess
from typing import Optional

from sqlaction.errors import CommandFailedError, SqlActionError
from sqlaction.models import ToolInvocation


class CommandRunner:
    """Runs shell command lines with consistent error handling.

    Only the redacted ``display`` form of an invocation is ever logged or
    placed in error messages.
    """

    def __init__(self, logger, default_timeout: Optional[float] = None, subprocess_module=subprocess):
        self.logger = logger
        self.default_timeout = default_timeout
        self.subprocess = subprocess_module

    def run(
        self,
        invocation: ToolInvocation,
        capture_output: bool = False,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        display = invocation.display
        self.logger.debug("Executing: %s", display)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = self.subprocess.run(
                invocation.command_line,
                shell=True,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
            )
        except self.subprocess.TimeoutExpired as exc:
            raise SqlActionError(
                f"Command timed out after {effective_timeout}s: {display}"
            ) from exc
        except OSError as exc:
            raise SqlActionError(f"Failed to execute command: {display}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == invocation.expected_returncode:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {display}"
        if stderr:
            message = f"{message}\n{stderr}"
        raise CommandFailedError(message, returncode=result.returncode)
