"""Data models for the deployment orchestrator.

This module defines:
- DeploymentTarget: One tracked repository with its build/deploy commands
- Stage: The pipeline stage a target failed in
- UpToDate, Deployed, Failed: The tagged outcome of one target
- TargetResult, RunResult: Results of one orchestration run
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from vigil.exceptions import TargetSpecError

if TYPE_CHECKING:
    from vigil.config import TargetConfig

_SPEC_PATTERN = re.compile(r"^(?P<path>.+?)(?:@(?P<remote>[^/@\s]+)/(?P<branch>[^@\s]+))?$")


@dataclass(frozen=True, slots=True)
class DeploymentTarget:
    """One source repository paired with its build and deploy commands.

    Attributes:
        name: Label used in logs and command output. Unique within a run.
        path: Local working copy.
        remote: Remote to fetch from.
        branch: Branch whose remote tracking ref is deployed.
        build: Shell command building the target, or None to skip the stage.
        deploy: Shell command deploying the target, or None to skip the stage.
        status: Informational command run after a successful deploy.
    """

    name: str
    path: Path
    remote: str = "origin"
    branch: str = "main"
    build: str | None = None
    deploy: str | None = None
    status: str | None = None

    @property
    def key(self) -> str:
        """Return the applied-revision store key: the resolved working copy path.

        Two working copies with the same directory name never share a key.
        """
        return str(self.path.expanduser().resolve())

    @property
    def tracking_ref(self) -> bytes:
        """Return the remote tracking reference for the branch."""
        return f"refs/remotes/{self.remote}/{self.branch}".encode()

    @classmethod
    def from_config(cls, config: TargetConfig) -> DeploymentTarget:
        """Create a target from its configuration section."""
        path = config.path.expanduser()
        return cls(
            name=config.name or path.name,
            path=path,
            remote=config.remote,
            branch=config.branch,
            build=config.build,
            deploy=config.deploy,
            status=config.status,
        )

    @classmethod
    def parse(cls, spec: str, *, template: DeploymentTarget | None = None) -> DeploymentTarget:
        """Parse a `PATH` or `PATH@REMOTE/BRANCH` descriptor.

        Args:
            spec: Target descriptor.
            template: Target whose commands are reused (matched by path).

        Returns:
            The parsed target.

        Raises:
            TargetSpecError: If the descriptor is empty or malformed.
        """
        match = _SPEC_PATTERN.match(spec.strip())
        if match is None or not match["path"]:
            msg = f"Invalid target '{spec}', expected PATH or PATH@REMOTE/BRANCH"
            raise TargetSpecError(msg, spec=spec)

        path = Path(match["path"]).expanduser()
        remote = match["remote"] or (template.remote if template else "origin")
        branch = match["branch"] or (template.branch if template else "main")

        if template is not None:
            return cls(
                name=template.name,
                path=path,
                remote=remote,
                branch=branch,
                build=template.build,
                deploy=template.deploy,
                status=template.status,
            )
        return cls(name=path.name or str(path), path=path, remote=remote, branch=branch)


class Stage(StrEnum):
    """Pipeline stages of a target update."""

    FETCH = "fetch"
    PULL = "pull"
    BUILD = "build"
    DEPLOY = "deploy"


# =============================================================================
# Target outcome
# =============================================================================


@dataclass(frozen=True, slots=True)
class UpToDate:
    """Nothing to do: remote, local and applied revisions agree."""

    revision: str | None = None


@dataclass(frozen=True, slots=True)
class Deployed:
    """The target was pulled, built and deployed."""

    revision: str


@dataclass(frozen=True, slots=True)
class Failed:
    """A stage failed; the applied revision was not advanced."""

    stage: Stage
    error: str


TargetOutcome: TypeAlias = "UpToDate | Deployed | Failed"


@dataclass(frozen=True, slots=True)
class TargetResult:
    """Outcome for a single target within a run."""

    target: DeploymentTarget
    outcome: TargetOutcome

    @property
    def ok(self) -> bool:
        """Return True unless the target failed."""
        return not isinstance(self.outcome, Failed)


class RunOutcome(StrEnum):
    """Overall outcome of an orchestration run."""

    SKIPPED = "skipped"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class RunResult:
    """Result of one orchestration run.

    Attributes:
        outcome: Whether the run was skipped or completed.
        targets: Per-target results, in processing order.
        reason: Why the run was skipped, if it was.
        holder_pid: Pid of the run holding the lock when skipped.
    """

    outcome: RunOutcome
    targets: tuple[TargetResult, ...] = field(default=())
    reason: str | None = None
    holder_pid: int | None = None

    @classmethod
    def skipped(cls, reason: str, *, holder_pid: int | None = None) -> RunResult:
        """Create a result for a run that did nothing."""
        return cls(outcome=RunOutcome.SKIPPED, reason=reason, holder_pid=holder_pid)

    @property
    def failed(self) -> tuple[TargetResult, ...]:
        """Return the targets that failed."""
        return tuple(r for r in self.targets if isinstance(r.outcome, Failed))

    @property
    def deployed(self) -> tuple[TargetResult, ...]:
        """Return the targets that were deployed."""
        return tuple(r for r in self.targets if isinstance(r.outcome, Deployed))
