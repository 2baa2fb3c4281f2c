"""Pull-based continuous deployment.

This package checks tracked git working copies for new remote revisions and
pulls, builds and deploys them, with a run lock guaranteeing that at most one
orchestration run is active at a time.
"""

from ._fake import FakeGit
from ._git import DulwichGit, GitBackend
from ._lock import LockHolder, RunLock
from ._models import (
    Deployed,
    DeploymentTarget,
    Failed,
    RunOutcome,
    RunResult,
    Stage,
    TargetOutcome,
    TargetResult,
    UpToDate,
)
from ._orchestrator import Orchestrator
from ._state import RevisionStore

__all__ = [
    "Deployed",
    "DeploymentTarget",
    "DulwichGit",
    "Failed",
    "FakeGit",
    "GitBackend",
    "LockHolder",
    "Orchestrator",
    "RevisionStore",
    "RunLock",
    "RunOutcome",
    "RunResult",
    "Stage",
    "TargetOutcome",
    "TargetResult",
    "UpToDate",
]
