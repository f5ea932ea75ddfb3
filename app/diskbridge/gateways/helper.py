"""Execution of PowerShell helper scripts.

Helpers print their outcome as ``KEY=VALUE`` lines. Elevated helpers run in a
separate UAC-elevated process whose stdout cannot be captured, so they write
their output to a uniquely named temp file that is polled for after the
process exits.
"""

import asyncio
import logging
import tempfile
import uuid
from datetime import UTC, datetime
from pathlib import Path

from diskbridge.core.config import HelperConfig
from diskbridge.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

POWERSHELL_EXE = "powershell.exe"


class HelperError(Exception):
    """Raised when a helper cannot be started at all."""


def ps_quote(value: str) -> str:
    """Quote ``value`` as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


def error_output(message: str) -> str:
    """Render an error in helper output format."""
    return f"STATUS=ERROR\nErrorMessage={message}"


class HelperRunner:
    """Runs helper scripts and elevated commands.

    Attributes:
        config: Helper execution settings.
    """

    def __init__(self, config: HelperConfig | None = None) -> None:
        """Initialize the runner.

        Args:
            config: Helper settings. Defaults to :class:`HelperConfig` defaults.
        """
        self.config = config or HelperConfig()

    @property
    def scripts_dir(self) -> Path:
        """Directory holding the helper scripts."""
        return self.config.effective_scripts_dir

    def script_path(self, name: str) -> Path:
        """Resolve a helper script.

        Raises:
            HelperError: If the script does not exist.
        """
        path = self.scripts_dir / name
        if not path.is_file():
            raise HelperError(f"Helper script not found at: {path}")
        return path

    def _script_args(self, script: Path, args: list[str]) -> list[str]:
        return [
            POWERSHELL_EXE,
            "-NoProfile",
            "-ExecutionPolicy",
            "Bypass",
            "-File",
            str(script),
            *args,
        ]

    async def run_script(self, name: str, args: list[str]) -> CommandResult:
        """Run a helper script unelevated and capture its output.

        Args:
            name: Script file name relative to the scripts directory.
            args: Script arguments.

        Returns:
            CommandResult of the PowerShell process. Start failures are
            reported as a result with returncode 127 and error output.
        """
        try:
            script = self.script_path(name)
            return await run_command(
                self._script_args(script, args),
                timeout=self.config.command_timeout_s,
            )
        except (HelperError, OSError) as e:
            logger.warning("Helper %s could not be started: %s", name, e)
            return CommandResult(stdout=error_output(str(e)), stderr="", returncode=127)

    async def run_elevated_script(self, name: str, args: list[str]) -> str:
        """Run a helper script elevated and return its ``KEY=VALUE`` output.

        With ``skip_elevation`` the script runs in-process-tree instead and
        stdout is returned, falling back to stderr when stdout carries no
        outcome.

        Args:
            name: Script file name relative to the scripts directory.
            args: Script arguments (``-OutputFile`` is appended).

        Returns:
            Helper output, or an error in helper output format.
        """
        try:
            script = self.script_path(name)
        except HelperError as e:
            return error_output(str(e))

        output_file = Path(tempfile.gettempdir()) / f"diskbridge_{uuid.uuid4().hex}.txt"
        full_args = [*args, "-OutputFile", str(output_file)]

        if self.config.skip_elevation:
            logger.warning("Running %s without elevation (skip_elevation is set)", name)
            result = await self.run_script(name, [*full_args, "-SkipAdminCheck"])
            stdout = result.stdout
            if result.stderr.strip() and "STATUS=" not in stdout.upper():
                return error_output(result.stderr.strip())
            return stdout

        correlation_id = output_file.stem
        logger.info(
            "Elevated operation requested: correlation_id=%s script=%s at=%s",
            correlation_id,
            script.name,
            datetime.now(UTC).isoformat(),
        )
        argument_list = " ".join(
            f'"{arg}"' for arg in self._script_args(script, full_args)[1:]
        )
        launch = await self._start_elevated(POWERSHELL_EXE, argument_list)
        if launch.timed_out or launch.returncode == 127:
            return error_output(launch.stderr.strip() or "Failed to start elevated helper")

        return await self._collect_output_file(output_file, launch.returncode)

    async def run_elevated(self, executable: str, args: list[str]) -> CommandResult:
        """Run an arbitrary executable elevated and report its exit code.

        Output of elevated processes is not available; only the exit code is.
        """
        if self.config.skip_elevation:
            try:
                return await run_command([executable, *args], timeout=self.config.command_timeout_s)
            except OSError as e:
                return CommandResult(stdout="", stderr=str(e), returncode=127)
        return await self._start_elevated(executable, " ".join(args))

    async def _start_elevated(self, executable: str, argument_list: str) -> CommandResult:
        command = (
            f"$p = Start-Process -FilePath {ps_quote(executable)} "
            f"-ArgumentList {ps_quote(argument_list)} "
            "-Verb RunAs -Wait -PassThru -WindowStyle Hidden; exit $p.ExitCode"
        )
        try:
            result = await run_command(
                [POWERSHELL_EXE, "-NoProfile", "-Command", command],
                timeout=self.config.command_timeout_s,
            )
        except OSError as e:
            logger.warning("Elevated %s could not be started: %s", executable, e)
            return CommandResult(stdout="", stderr=str(e), returncode=127)
        if not result.success:
            stderr = result.stderr.strip() or f"Exit code: {result.returncode}"
            return CommandResult(stdout=result.stdout, stderr=stderr, returncode=result.returncode)
        return result

    async def _collect_output_file(self, output_file: Path, exit_code: int) -> str:
        """Poll for an elevated helper's output file, read it and delete it."""
        timeout = self.config.output_poll_timeout_s
        interval = self.config.poll_interval_ms / 1000
        waited = 0.0

        while waited < timeout:
            if await asyncio.to_thread(output_file.exists):
                break
            await asyncio.sleep(interval)
            waited += interval

        if not await asyncio.to_thread(output_file.exists):
            return error_output(
                f"Elevated helper produced no output. Expected file: {output_file}, "
                f"process exit code: {exit_code}"
            )

        try:
            output = await asyncio.to_thread(output_file.read_text, encoding="utf-8-sig")
        except OSError as e:
            logger.warning("Failed to read helper output %s: %s", output_file, e)
            return error_output(f"Failed to read output file: {e}")

        try:
            await asyncio.to_thread(output_file.unlink)
        except OSError as e:
            logger.warning("Failed to delete helper output %s: %s", output_file, e)

        return output
