"""Deployment orchestrator configuration models."""

import tempfile
from pathlib import Path
from typing import ClassVar

import platformdirs
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LOCK_FILE = Path(tempfile.gettempdir()) / "vigil-deploy.lock"


def default_state_file() -> Path:
    """Return the default applied-revision store location."""
    return platformdirs.user_state_path("vigil") / "deploy-state.json"


class TargetConfig(BaseModel):
    """One tracked repository and its build/deploy commands.

    Attributes:
        name: Target name used in logs and the revision store. Defaults to
            the working copy's directory name.
        path: Local working copy.
        remote: Remote to fetch from.
        branch: Branch whose remote tracking ref is deployed.
        build: Shell command that builds the target.
        deploy: Shell command that deploys the built target.
        status: Optional informational command run after a deploy.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    path: Path
    remote: str = "origin"
    branch: str = "main"
    build: str | None = None
    deploy: str | None = None
    status: str | None = None


class DeployConfig(BaseModel):
    """Deployment orchestrator configuration section.

    Attributes:
        lock_file: Well-known path of the run lock.
        state_file: JSON file recording the last applied revision per target.
        shell: Shell used to run build, deploy, status, and cleanup commands.
        command_timeout: Per-command timeout in seconds (0 means no timeout).
        cleanup: Best-effort housekeeping commands run at the end of each run.
        targets: Tracked repositories, processed in order.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    lock_file: Path = DEFAULT_LOCK_FILE
    state_file: Path = Field(default_factory=default_state_file)
    shell: str = "/bin/sh"
    command_timeout: float = Field(default=0.0, ge=0)
    cleanup: tuple[str, ...] = ()
    targets: tuple[TargetConfig, ...] = ()
