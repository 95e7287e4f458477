"""
================================================================================
Process Supervisor
================================================================================

Lifecycle management for the external processes the sanity check needs: the
application server and the browser automation driver.

Features:
    - Async context manager that terminates every started process on exit
    - Idempotent termination (SIGTERM, then SIGKILL after a grace period)
    - Whole process group is signalled on POSIX, so forked workers go too
    - stdout/stderr drained in bounded chunks and forwarded to our stderr

Usage:
    async with ProcessSupervisor() as supervisor:
        server = await supervisor.start(["pub", "serve", "--port", "8123"], name="server")
        ...
    # every process started above is terminated here

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Sequence

from loguru import logger


# Bytes read from a child pipe per chunk
READ_CHUNK_SIZE = 4096

# Seconds to wait for SIGTERM before escalating to SIGKILL
DEFAULT_KILL_TIMEOUT = 5.0

_POSIX = os.name == "posix"


class SpawnError(OSError):
    """Raised when an external process cannot be located or launched."""

    def __init__(self, command: Sequence[str], cause: OSError):
        self.command = list(command)
        self.executable = self.command[0] if self.command else ""
        self.cause = cause
        super().__init__(
            cause.errno,
            f"Cannot start {self.executable!r}: {cause.strerror or cause}",
        )

    def __str__(self) -> str:
        return self.args[1] if len(self.args) > 1 else super().__str__()


@dataclass
class ManagedProcess:
    """
    A subprocess owned by a ProcessSupervisor.

    Attributes:
        name: Label used in logs
        command: Full argv the process was started with
        process: Underlying asyncio subprocess
        terminated: Whether the supervisor has already torn it down
    """
    name: str
    command: List[str]
    process: asyncio.subprocess.Process
    terminated: bool = False
    _forwarders: List["asyncio.Task[None]"] = field(default_factory=list, repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    @property
    def running(self) -> bool:
        return self.process.returncode is None


async def _forward_stream(stream: asyncio.StreamReader, sink: BinaryIO) -> None:
    """Copy a child pipe to sink chunk by chunk until EOF."""
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        sink.write(chunk)
        sink.flush()


def _default_sink() -> BinaryIO:
    return getattr(sys.stderr, "buffer", sys.stderr)


class ProcessSupervisor:
    """
    Starts external processes and guarantees their termination.

    Termination runs when the ``async with`` block exits, whether it ends
    normally, with an assertion failure, or with any other exception.
    """

    def __init__(
        self,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
        output: Optional[BinaryIO] = None,
    ) -> None:
        """
        Initialize supervisor.

        Args:
            kill_timeout: Seconds between SIGTERM and SIGKILL
            output: Binary sink for child output (defaults to our stderr)
        """
        self.kill_timeout = kill_timeout
        self._output = output
        self._processes: List[ManagedProcess] = []

    async def __aenter__(self) -> "ProcessSupervisor":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.terminate_all()

    @property
    def processes(self) -> List[ManagedProcess]:
        return list(self._processes)

    async def start(self, command: Sequence[str], name: Optional[str] = None) -> ManagedProcess:
        """
        Launch a process and begin forwarding its output.

        Args:
            command: Executable followed by its arguments
            name: Label for logs (defaults to the executable)

        Returns:
            The ManagedProcess, registered for termination

        Raises:
            SpawnError: If the executable is missing or cannot be executed
        """
        command = [str(part) for part in command]
        if not command:
            raise ValueError("command must not be empty")
        name = name or os.path.basename(command[0])

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            logger.debug(f"Failed to start {name}: {e}")
            raise SpawnError(command, e) from e

        sink = self._output or _default_sink()
        managed = ManagedProcess(name=name, command=command, process=process)
        managed._forwarders = [
            asyncio.create_task(_forward_stream(process.stdout, sink)),
            asyncio.create_task(_forward_stream(process.stderr, sink)),
        ]
        self._processes.append(managed)

        logger.info(f"Started {name} (pid {process.pid}): {' '.join(command)}")
        return managed

    async def terminate(self, managed: ManagedProcess) -> None:
        """
        Terminate a process. Idempotent and safe on processes that already exited.
        """
        if managed.terminated:
            return
        managed.terminated = True

        process = managed.process
        if process.returncode is None:
            self._signal(process, signal.SIGTERM)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"{managed.name} (pid {process.pid}) ignored SIGTERM for "
                    f"{self.kill_timeout}s, killing"
                )
                self._signal(process, signal.SIGKILL if _POSIX else signal.SIGTERM)
                await process.wait()
        elif _POSIX:
            # Leader is gone but forked children may still hold the group
            self._signal(process, signal.SIGKILL)

        # Pipes reach EOF once every writer has exited
        if managed._forwarders:
            _, pending = await asyncio.wait(managed._forwarders, timeout=self.kill_timeout)
            for task in pending:
                task.cancel()

        logger.info(f"Stopped {managed.name} (pid {process.pid}, exit code {process.returncode})")

    async def terminate_all(self) -> None:
        """Terminate every started process, most recent first."""
        for managed in reversed(self._processes):
            await self.terminate(managed)

    @staticmethod
    def _signal(process: asyncio.subprocess.Process, sig: int) -> None:
        try:
            if _POSIX:
                os.killpg(process.pid, sig)
            elif sig == signal.SIGTERM:
                process.terminate()
            else:
                process.kill()
        except ProcessLookupError:
            pass


__all__ = [
    "ManagedProcess",
    "ProcessSupervisor",
    "SpawnError",
]
