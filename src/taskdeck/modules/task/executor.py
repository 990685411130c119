"""Command executor spawning one external process per task run."""

from __future__ import annotations

import asyncio
import os
import shlex
import shutil
import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import TypeAlias, assert_never

from taskdeck.core.exceptions import ExecutionTimeoutError, ProcessFailedError, SpawnError
from taskdeck.core.logging import get_logger

from .schemas import CommandType, ExecutionResult

logger = get_logger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
_READ_CHUNK_SIZE = 64 * 1024
_POSIX = os.name == "posix"


@dataclass(frozen=True, slots=True)
class ExecInvocation:
    """Spawn a program directly with an argument vector."""

    argv: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ShellInvocation:
    """Spawn a command line through the platform shell."""

    command: str


Invocation: TypeAlias = ExecInvocation | ShellInvocation


@dataclass(slots=True)
class _CapturedStream:
    data: bytes = b""
    truncated: bool = False


class CommandExecutor:
    """Runs task commands with the interpreter selected by their command type."""

    def __init__(
        self,
        *,
        python_executable: str | None = None,
        powershell_executable: str | None = None,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        timeout: float | None = None,
        platform: str | None = None,
    ) -> None:
        """Initialize executor with interpreter paths, output cap and optional timeout."""
        if max_output_bytes <= 0:
            raise ValueError("max_output_bytes must be positive")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")

        self.platform = platform or sys.platform
        self.python_executable = python_executable or sys.executable or "python"
        self.powershell_executable = powershell_executable or (
            "powershell.exe" if self.is_windows else "pwsh"
        )
        self.max_output_bytes = max_output_bytes
        self.timeout = timeout

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    def interpreters(self) -> dict[str, str | None]:
        """Resolve the program behind each command type, None when it is not on PATH."""
        shell = "cmd.exe" if self.is_windows else "/bin/sh"
        return {
            CommandType.POWERSHELL.value: shutil.which(self.powershell_executable),
            CommandType.BATCH.value: shutil.which(shell),
            CommandType.PYTHON.value: shutil.which(self.python_executable),
            CommandType.APPLICATION.value: shutil.which(shell),
        }

    def build_invocation(self, command: str, command_type: CommandType) -> Invocation:
        """Select the spawn strategy for a command type."""
        match command_type:
            case CommandType.POWERSHELL:
                return ExecInvocation(
                    (self.powershell_executable, "-NoProfile", "-NonInteractive", "-Command", command)
                )
            case CommandType.BATCH:
                if self.is_windows:
                    return ExecInvocation(("cmd.exe", "/c", command))
                return ShellInvocation(command)
            case CommandType.PYTHON:
                return ShellInvocation(f"{self._quote(self.python_executable)} {command}")
            case CommandType.APPLICATION:
                return ShellInvocation(command)
            case _:
                assert_never(command_type)

    async def run(self, command: str, command_type: str) -> ExecutionResult:
        """Execute a command and return its captured output.

        Raises UnknownCommandTypeError for an unrecognised tag, SpawnError when
        the process cannot be started, ProcessFailedError for a nonzero exit
        code and ExecutionTimeoutError when the configured timeout elapses.
        """
        invocation = self.build_invocation(command, CommandType.parse(command_type))
        logger.info("executor.spawn", command_type=command_type, invocation=repr(invocation))

        process = await self._spawn(invocation)

        try:
            if self.timeout is None:
                stdout, stderr = await self._communicate(process)
            else:
                stdout, stderr = await asyncio.wait_for(self._communicate(process), timeout=self.timeout)
        except TimeoutError:
            await self._kill(process)
            logger.warning("executor.timeout", pid=process.pid, timeout=self.timeout)
            raise ExecutionTimeoutError(self.timeout or 0) from None
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        result = ExecutionResult(
            stdout=stdout.data.decode("utf-8", errors="replace"),
            stderr=stderr.data.decode("utf-8", errors="replace"),
            exit_code=exit_code,
            truncated=stdout.truncated or stderr.truncated,
        )

        if exit_code != 0:
            logger.warning("executor.failed", pid=process.pid, exit_code=exit_code, stderr=result.stderr[:500])
            raise ProcessFailedError(result)

        logger.info("executor.completed", pid=process.pid, exit_code=exit_code, truncated=result.truncated)
        return result

    async def _spawn(self, invocation: Invocation) -> asyncio.subprocess.Process:
        try:
            match invocation:
                case ExecInvocation(argv=argv):
                    return await asyncio.create_subprocess_exec(
                        *argv,
                        stdin=asyncio.subprocess.DEVNULL,
                        start_new_session=_POSIX,
                        stdout=asyncio.subprocess.PIPE,
                        stderr=asyncio.subprocess.PIPE,
                    )
                case ShellInvocation(command=command):
                    return await asyncio.create_subprocess_shell(
                        command,
                        stdin=asyncio.subprocess.DEVNULL,
                        start_new_session=_POSIX,
                        stdout=asyncio.subprocess.PIPE,
                        stderr=asyncio.subprocess.PIPE,
                    )
                case _:
                    assert_never(invocation)
        except OSError as e:
            logger.error("executor.spawn_failed", error=str(e))
            raise SpawnError(f"Failed to execute command: {e}") from e

    async def _communicate(self, process: asyncio.subprocess.Process) -> tuple[_CapturedStream, _CapturedStream]:
        assert process.stdout is not None
        assert process.stderr is not None
        stdout, stderr = await asyncio.gather(
            self._read_capped(process.stdout),
            self._read_capped(process.stderr),
        )
        await process.wait()
        return stdout, stderr

    async def _read_capped(self, stream: asyncio.StreamReader) -> _CapturedStream:
        """Read a stream to EOF, keeping at most max_output_bytes."""
        captured = _CapturedStream()
        buffer = bytearray()
        while chunk := await stream.read(_READ_CHUNK_SIZE):
            room = self.max_output_bytes - len(buffer)
            if room > 0:
                buffer.extend(chunk[:room])
            if len(chunk) > room:
                captured.truncated = True
        captured.data = bytes(buffer)
        return captured

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        """Kill the child and, on POSIX, everything in its process group."""
        if process.returncode is None:
            try:
                if _POSIX:
                    os.killpg(process.pid, signal.SIGKILL)
                else:
                    process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    def _quote(self, value: str) -> str:
        if self.is_windows:
            return subprocess.list2cmdline([value])
        return shlex.quote(value)
