"""Firewall tool invocation.

Provides:
- Synchronous command execution with combined output capture
- Path lookup for tool presence checks
- Dry-run mode support
"""

import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fwb.core.context import ExecutionContext
from fwb.core.exceptions import ExecutionError


@dataclass
class CommandResult:
    """Result of a command execution.

    ``output`` holds stdout and stderr interleaved as the tool wrote them.
    """
    command: list[str]
    return_code: int
    output: str

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.return_code == 0


class CommandExecutor:
    """Runs firewall control commands one at a time.

    Holds no state between calls. No timeout is applied unless the
    caller passes one.
    """

    def __init__(self, ctx: ExecutionContext) -> None:
        """Initialize executor with context.

        Args:
            ctx: Execution context with flags
        """
        self.ctx = ctx

    def run(
        self,
        command: list[str],
        *,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """Execute a command and capture its combined output.

        Args:
            command: Command as list of strings
            timeout: Command timeout in seconds

        Returns:
            CommandResult with output

        Raises:
            ExecutionError: If the command cannot be launched or times out
        """
        cmd_display = shlex.join(command)
        self.ctx.console.debug(f"Running: {cmd_display}")

        if self.ctx.dry_run:
            self.ctx.console.dry_run_msg(f"Run: {cmd_display}")
            return CommandResult(command=command, return_code=0, output="")

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise ExecutionError(
                f"Command timed out after {timeout}s: {cmd_display}",
                command=cmd_display,
            )
        except OSError as e:
            raise ExecutionError(
                f"Cannot run {command[0]}: {e}",
                command=cmd_display,
            ) from e

        return CommandResult(
            command=command,
            return_code=result.returncode,
            output=result.stdout or "",
        )

    def which(self, tool: str) -> Optional[str]:
        """Resolve a tool on the search path (absolute paths are checked as-is).

        Args:
            tool: Command name or path

        Returns:
            Resolved path, or None if not found/not executable
        """
        return shutil.which(tool)

    def path_exists(self, path: Path) -> bool:
        """Check if a filesystem path exists.

        Args:
            path: Path to check

        Returns:
            True if path exists
        """
        return path.exists()
