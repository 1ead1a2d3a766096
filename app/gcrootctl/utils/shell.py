"""Shell execution utilities.

Provides subprocess execution with captured output for external
programs such as root filters.
"""

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    input_text: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Input and output are UTF-8; undecodable output bytes are replaced.

    Args:
        args: Command and arguments to execute.
        input_text: Text written to the command's standard input. The
            stream is closed once written.
        timeout: Maximum time in seconds to wait for command, or None to
            wait until it exits.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
        PermissionError: If command executable cannot be executed.
    """
    result = subprocess.run(
        args,
        input=input_text if input_text is not None else "",
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )
