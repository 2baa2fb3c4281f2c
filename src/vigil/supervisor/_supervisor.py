"""Supervisor that keeps a single child process alive.

This module provides the Supervisor class, which restarts its child after
every abnormal exit, records each crash in a durable ledger, and stops
restarting while too many crashes fall inside the trailing window.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING, final

import anyio

from vigil.config import WatchdogConfig
from vigil.exceptions import ServiceStopError, SupervisorError
from vigil.utils import create_null_logger, utc_now

from ._ledger import CrashLedger
from ._models import (
    Clean,
    Crashed,
    CrashRecord,
    Signaled,
    SupervisorEvent,
    SupervisorEventType,
    SupervisorState,
)
from ._output import LogOutputSink
from ._process import ChildProcess
from ._resolve import resolve_executable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from vigil.utils import Clock

    from ._protocol import OutputSink


@final
class Supervisor:
    """Keeps one child process running until told to stop.

    The supervisor owns at most one live child at a time. A clean exit (code 0)
    ends supervision, any other exit is recorded and followed by a restart
    after `restart_delay`. Before each start the crash ledger is consulted and
    the start is held back while the trailing window is saturated.

    Shutdown is requested through `shutdown()` or SIGINT/SIGTERM and is
    idempotent.
    """

    __slots__ = (
        "_args",
        "_child",
        "_clock",
        "_config",
        "_executable",
        "_handle_signals_enabled",
        "_ledger",
        "_logger",
        "_output_sink",
        "_restart_count",
        "_shutdown_complete",
        "_shutdown_event",
        "_shutdown_requested",
        "_state",
        "_stop_error",
    )

    def __init__(
        self,
        executable: str,
        args: Sequence[str] = (),
        config: WatchdogConfig | None = None,
        *,
        output_sink: OutputSink | None = None,
        logger: FilteringBoundLogger | None = None,
        ledger: CrashLedger | None = None,
        clock: Clock = utc_now,
        handle_signals: bool = True,
    ) -> None:
        """Initialize the supervisor.

        Args:
            executable: Name or path of the program to supervise.
            args: Arguments passed through to the program.
            config: Watchdog settings. Uses defaults if None.
            output_sink: Receiver for lifecycle events and captured output.
                Logs through `logger` if None.
            logger: Structured logger. Uses a null logger if None.
            ledger: Crash ledger. Opens `config.crash_log` if None.
            clock: Source of the current time.
            handle_signals: Request shutdown on SIGINT and SIGTERM.
        """
        self._executable = executable
        self._args = tuple(args)
        self._config = config or WatchdogConfig()
        self._logger = logger or create_null_logger()
        self._output_sink: OutputSink = output_sink or LogOutputSink(self._logger)
        self._clock = clock
        self._ledger = ledger or CrashLedger(self._config.crash_log, clock=clock)
        self._child: ChildProcess | None = None
        self._state = SupervisorState.IDLE
        self._restart_count = 0
        self._shutdown_requested = False
        self._handle_signals_enabled = handle_signals
        self._shutdown_event: anyio.Event | None = None
        self._shutdown_complete: anyio.Event | None = None
        self._stop_error: ServiceStopError | None = None

    @property
    def state(self) -> SupervisorState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def restart_count(self) -> int:
        """Return how many times the child has been restarted after a crash."""
        return self._restart_count

    @property
    def child(self) -> ChildProcess | None:
        """Return the current or most recent child, if any."""
        return self._child

    @property
    def ledger(self) -> CrashLedger:
        """Return the crash ledger."""
        return self._ledger

    async def _emit(
        self,
        event_type: SupervisorEventType,
        *,
        message: str | None = None,
        exit_code: int | None = None,
    ) -> None:
        child = self._child
        event = SupervisorEvent(
            name=child.name if child is not None else self._executable,
            event_type=event_type,
            timestamp=self._clock().to_iso8601_string(),
            pid=child.pid if child is not None else None,
            exit_code=exit_code,
            message=message,
        )
        try:
            await self._output_sink.write_event(event)
        except Exception as e:  # noqa: BLE001
            # Output sink errors should not stop supervision
            self._logger.warning("output_sink_failed", error=str(e))

    async def _sleep(self, delay: float) -> None:
        """Wait for the delay or until shutdown is requested."""
        if self._shutdown_event is None:
            await anyio.sleep(delay)
            return
        with anyio.move_on_after(delay):
            await self._shutdown_event.wait()

    async def _handle_signals(self, scope: anyio.CancelScope) -> None:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for signum in signals:
                self._logger.info("signal_received", signal=signal.Signals(signum).name)
                try:
                    await self.shutdown()
                except ServiceStopError as e:
                    # The child may still be running, so stop waiting for it;
                    # run() re-raises the error once the task group has closed
                    self._logger.error("shutdown_failed", pid=e.pid, error=str(e))
                    self._stop_error = e
                    scope.cancel()

    async def _wait_for_breaker(self) -> bool:
        """Hold back while the crash window is saturated.

        Returns:
            True if the child may be started, False if shutdown was requested.
        """
        config = self._config
        while not self._shutdown_requested:
            try:
                count = self._ledger.count_recent(config.window)
            except OSError as e:
                self._logger.error(
                    "crash_ledger_read_failed", crash_log=str(self._ledger.path), error=str(e)
                )
                count = 0
            if count < config.max_crashes_per_hour:
                if count > 0:
                    self._logger.warning(
                        "recent_crashes",
                        count=count,
                        max_crashes=config.max_crashes_per_hour,
                    )
                    await self._emit(
                        SupervisorEventType.CRASH_WARNING,
                        message=f"{count} crash(es) in the last {config.window:g}s",
                    )
                return True

            self._state = SupervisorState.THRESHOLD_COOLDOWN
            self._logger.error(
                "crash_threshold_exceeded",
                count=count,
                max_crashes=config.max_crashes_per_hour,
                window=config.window,
                crash_log=str(self._ledger.path),
            )
            await self._emit(
                SupervisorEventType.THRESHOLD_EXCEEDED,
                message=(
                    f"{count} crashes in the last {config.window:g}s, "
                    f"see {self._ledger.path}; retrying in {config.threshold_cooldown:g}s"
                ),
            )
            await self._sleep(config.threshold_cooldown)
            self._state = SupervisorState.STARTING
        return False

    async def _supervise(self, executable: Path) -> None:
        config = self._config

        while not self._shutdown_requested:
            self._state = SupervisorState.STARTING
            if not await self._wait_for_breaker():
                break

            child = ChildProcess(
                executable,
                self._args,
                capture_output=config.capture_output,
                output_sink=self._output_sink,
            )
            self._child = child
            await child.start()
            self._state = SupervisorState.RUNNING
            self._logger.info("child_started", pid=child.pid, restart=self._restart_count)
            await self._emit(
                SupervisorEventType.STARTED,
                message=f"Started {' '.join(child.command)} (restart {self._restart_count})",
            )

            if self._shutdown_requested:
                # Spawned while shutdown was in progress
                try:
                    await child.terminate(config.shutdown_grace)
                finally:
                    await child.aclose()
                break

            status = await child.wait()

            if self._shutdown_requested:
                break

            match status:
                case Clean():
                    self._logger.info("child_exited_cleanly", pid=child.pid)
                    await self._emit(
                        SupervisorEventType.STOPPED,
                        exit_code=0,
                        message="Exited cleanly, not restarting",
                    )
                    break
                case Crashed() | Signaled():
                    await self._record_crash(child, status)
                    self._state = SupervisorState.BACKOFF
                    await self._emit(
                        SupervisorEventType.RESTARTING,
                        message=f"Restarting in {config.restart_delay:g}s",
                    )
                    await self._sleep(config.restart_delay)
                    if not self._shutdown_requested:
                        self._restart_count += 1

    async def _record_crash(self, child: ChildProcess, status: Crashed | Signaled) -> None:
        record = CrashRecord.from_status(status, self._clock())
        try:
            self._ledger.append(record)
        except OSError as e:
            # The crash still counts for this run; only its history is lost
            self._logger.error(
                "crash_ledger_write_failed", crash_log=str(self._ledger.path), error=str(e)
            )
        self._state = SupervisorState.CRASH_RECORDED
        self._logger.error(
            "child_crashed",
            pid=child.pid,
            exit_code=record.exit_code,
            signal=record.signal,
            crash_log=str(self._ledger.path),
        )
        message = f"Exited with code {record.exit_code}"
        if record.signal:
            message = f"Killed by {record.signal}"
        await self._emit(SupervisorEventType.CRASHED, exit_code=record.exit_code, message=message)

    async def run(self) -> int:
        """Supervise the child until shutdown or a clean exit.

        Returns:
            0 once supervision has ended normally.

        Raises:
            ExecutableNotFoundError: If the program cannot be found or built.
            ServiceStartError: If the resolved program cannot be executed.
            ServiceStopError: If a signal-triggered shutdown could not stop
                the child.
        """
        config = self._config
        self._state = SupervisorState.STARTING
        self._shutdown_event = anyio.Event()
        self._shutdown_complete = anyio.Event()
        if self._shutdown_requested:
            self._shutdown_event.set()
            self._shutdown_complete.set()

        try:
            executable = resolve_executable(
                self._executable,
                candidates=config.candidates,
                build_command=config.build_command,
                logger=self._logger,
            )
        except SupervisorError:
            self._state = SupervisorState.TERMINATED
            raise

        self._logger.info(
            "supervisor_starting",
            executable=str(executable),
            args=list(self._args),
            crash_log=str(self._ledger.path),
            restart_delay=config.restart_delay,
            max_crashes_per_hour=config.max_crashes_per_hour,
            window=config.window,
        )

        error: SupervisorError | None = None
        async with anyio.create_task_group() as tg:
            if self._handle_signals_enabled:
                tg.start_soon(self._handle_signals, tg.cancel_scope)
            try:
                await self._supervise(executable)
            except SupervisorError as e:
                error = e
            if self._shutdown_requested and self._shutdown_complete is not None:
                await self._shutdown_complete.wait()
            tg.cancel_scope.cancel()

        self._state = SupervisorState.TERMINATED
        if error is None:
            error = self._stop_error
        if error is not None:
            self._logger.error("supervisor_failed", error=str(error))
            raise error

        self._logger.info("supervisor_stopped", restarts=self._restart_count)
        return 0

    async def shutdown(self) -> None:
        """Stop supervising and terminate the child.

        Sends SIGTERM to a live child, waits up to `shutdown_grace` seconds,
        then sends SIGKILL. No crash is recorded for this exit. Calling this
        more than once has no further effect.
        """
        if self._shutdown_requested:
            return
        self._shutdown_requested = True
        self._state = SupervisorState.STOPPING
        if self._shutdown_event is not None:
            self._shutdown_event.set()

        try:
            child = self._child
            if child is not None and child.is_alive():
                self._logger.info("child_terminating", pid=child.pid, grace=self._config.shutdown_grace)
                await child.terminate(self._config.shutdown_grace)
            await self._emit(SupervisorEventType.SHUTDOWN, message="Shutdown requested")
        finally:
            if self._shutdown_complete is not None:
                self._shutdown_complete.set()
