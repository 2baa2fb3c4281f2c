"""Watchdog (supervisor) configuration model."""

import tempfile
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CRASH_LOG = Path(tempfile.gettempdir()) / "vigil_crashes.log"


class WatchdogConfig(BaseModel):
    """Supervisor configuration section.

    Attributes:
        crash_log: Path of the append-only crash ledger.
        restart_delay: Seconds to wait after a crash before restarting.
        max_crashes_per_hour: Crashes within the window that trip the breaker.
        window: Length of the trailing crash window in seconds.
        threshold_cooldown: Seconds to wait before re-checking a tripped breaker.
        shutdown_grace: Seconds the child gets to exit after SIGTERM.
        candidates: Paths tried in order when the executable is given by name.
        build_command: Shell command run once if no executable can be found.
        capture_output: Pipe child output through the supervisor's output sink.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    crash_log: Path = DEFAULT_CRASH_LOG
    restart_delay: float = Field(default=5.0, ge=0)
    max_crashes_per_hour: int = Field(default=10, ge=1)
    window: float = Field(default=3600.0, gt=0)
    threshold_cooldown: float = Field(default=60.0, ge=0)
    shutdown_grace: float = Field(default=5.0, ge=0)
    candidates: tuple[str, ...] = ()
    build_command: str | None = None
    capture_output: bool = False
