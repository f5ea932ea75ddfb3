"""Shell execution utilities.

Provides safe asynchronous subprocess execution with proper error handling.
"""

import asyncio
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
        timed_out: Whether the command was killed after its timeout.
    """

    stdout: str
    stderr: str
    returncode: int
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0 and not self.timed_out


def _decode(data: bytes | None) -> str:
    """Decode process output.

    ``wsl.exe`` writes UTF-16LE for its own messages (``wsl -l``), which shows
    up as NUL bytes between characters when read as UTF-8.
    """
    if not data:
        return ""
    if b"\x00" in data:
        try:
            return data.decode("utf-16-le").replace("\x00", "")
        except UnicodeDecodeError:
            return data.replace(b"\x00", b"").decode("utf-8", errors="replace")
    return data.decode("utf-8", errors="replace")


async def run_command(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Args:
        args: Command and arguments to execute (no shell interpretation).
        timeout: Maximum time in seconds to wait for the command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode. A timed out
        command is killed and reported with ``timed_out=True``.

    Raises:
        FileNotFoundError: If command executable is not found.
        asyncio.CancelledError: If the awaiting task is cancelled; the
            process is killed first.
    """
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        return CommandResult(
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            returncode=-1,
            timed_out=True,
        )
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
        raise

    return CommandResult(
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        returncode=proc.returncode if proc.returncode is not None else -1,
    )
