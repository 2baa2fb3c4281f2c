"""The supervised child process.

This module provides ChildProcess, a thin wrapper around an anyio process
handle that tracks the pid, start time and last exit status, streams output
when capture is enabled, and knows how to terminate its child. The process
handle is closed once the child has been reaped.
"""

from __future__ import annotations

import signal
import subprocess
from typing import TYPE_CHECKING, Literal, final

import anyio
import anyio.abc
from anyio.streams.text import TextReceiveStream

from vigil.exceptions import ServiceStartError, ServiceStopError
from vigil.utils import utc_now

from ._models import exit_status_from_returncode

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from pendulum import DateTime

    from ._models import ExitStatus
    from ._protocol import OutputSink


@final
class ChildProcess:
    """A single spawned instance of the supervised program.

    Attributes:
        executable: Resolved path of the program.
        args: Arguments passed after the executable.
        pid: Process ID once started.
        started_at: When the child was spawned.
        exit_status: Exit status once the child has been reaped.
    """

    __slots__ = (
        "_output_sink",
        "_process",
        "args",
        "capture_output",
        "executable",
        "exit_status",
        "pid",
        "started_at",
    )

    def __init__(
        self,
        executable: Path,
        args: Sequence[str] = (),
        *,
        capture_output: bool = False,
        output_sink: OutputSink | None = None,
    ) -> None:
        """Initialize without spawning.

        Args:
            executable: Resolved path of the program.
            args: Arguments passed after the executable.
            capture_output: Pipe stdout/stderr to the output sink instead of
                inheriting the supervisor's stdio.
            output_sink: Receiver for captured lines.
        """
        self.executable = executable
        self.args = tuple(args)
        self.capture_output = capture_output
        self.pid: int | None = None
        self.started_at: DateTime | None = None
        self.exit_status: ExitStatus | None = None
        self._output_sink = output_sink
        self._process: anyio.abc.Process | None = None

    @property
    def name(self) -> str:
        """Return the program name used in output prefixes."""
        return self.executable.name

    @property
    def command(self) -> list[str]:
        """Return the full argument vector."""
        return [str(self.executable), *self.args]

    async def start(self) -> None:
        """Spawn the child.

        Raises:
            ServiceStartError: If the OS refuses to execute the program.
        """
        stream = subprocess.PIPE if self.capture_output else None
        try:
            self._process = await anyio.open_process(
                self.command,
                stdin=None,
                stdout=stream,
                stderr=stream,
            )
        except OSError as e:
            msg = f"Failed to start '{self.executable}': {e}"
            raise ServiceStartError(msg, executable=str(self.executable), cause=e) from e

        self.pid = self._process.pid
        self.started_at = utc_now()
        self.exit_status = None

    async def _stream_output(
        self,
        stream: TextReceiveStream,
        stream_name: Literal["stdout", "stderr"],
    ) -> None:
        """Forward lines from one pipe to the output sink."""
        try:
            async for raw_line in stream:
                for line in raw_line.splitlines():
                    if self._output_sink is None or self.pid is None:
                        continue
                    try:  # noqa: SIM105
                        await self._output_sink.write_line(self.name, self.pid, stream_name, line)
                    except Exception:  # noqa: BLE001, S110
                        # Output sink errors should not crash streaming
                        pass
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # Stream closed, which is expected on process exit
            pass

    async def wait(self) -> ExitStatus:
        """Wait for the child to exit, streaming output if captured.

        Returns:
            The exit status of the child.
        """
        if self._process is None:
            msg = f"'{self.executable}' has not been started"
            raise ServiceStartError(msg, executable=str(self.executable))

        process = self._process
        try:
            async with anyio.create_task_group() as tg:
                if process.stdout is not None:
                    tg.start_soon(self._stream_output, TextReceiveStream(process.stdout), "stdout")
                if process.stderr is not None:
                    tg.start_soon(self._stream_output, TextReceiveStream(process.stderr), "stderr")
                returncode = await process.wait()
        finally:
            await self.aclose()

        self.exit_status = exit_status_from_returncode(returncode)
        return self.exit_status

    async def aclose(self) -> None:
        """Close the pipes and reap the child.

        The child must already have exited or been told to stop; a cancelled
        close kills it.
        """
        if self._process is not None:
            await self._process.aclose()

    def is_alive(self) -> bool:
        """Check whether the child is still running."""
        return self._process is not None and self._process.returncode is None

    async def terminate(self, grace: float) -> None:
        """Stop the child, escalating to SIGKILL after the grace period.

        Args:
            grace: Seconds to wait after SIGTERM before sending SIGKILL.

        Raises:
            ServiceStopError: If signalling the child fails.
        """
        process = self._process
        if process is None or process.returncode is not None:
            return

        try:
            process.send_signal(signal.SIGTERM)

            with anyio.move_on_after(grace):
                _ = await process.wait()

            if process.returncode is None:
                process.kill()
                _ = await process.wait()

        except ProcessLookupError:
            # Process already exited
            pass

        except OSError as e:
            msg = f"Failed to stop process {self.pid}: {e}"
            raise ServiceStopError(msg, pid=self.pid, cause=e) from e

        if process.returncode is not None:
            self.exit_status = exit_status_from_returncode(process.returncode)
