# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""Git operations needed by the orchestrator.

This module defines the GitBackend protocol and DulwichGit, its
implementation on top of dulwich. Working copies are opened per call and
closed again, so no file handles outlive an orchestration run.
"""

import io
from pathlib import Path
from typing import Protocol, final, runtime_checkable

from dulwich import porcelain
from dulwich.errors import GitProtocolError, NotGitRepository
from dulwich.graph import can_fast_forward
from dulwich.repo import Repo

from vigil.exceptions import GitError

# Exceptions raised by dulwich for unreachable remotes, broken repositories
# and missing refs
_GIT_ERRORS = (OSError, ValueError, KeyError, NotGitRepository, GitProtocolError)


def _tracking_ref(remote: str, branch: str) -> bytes:
    return f"refs/remotes/{remote}/{branch}".encode()


@runtime_checkable
class GitBackend(Protocol):
    """Protocol for the git operations of one orchestration run.

    Revisions are hex commit ids. Every failure is reported as GitError.
    """

    def fetch(self, path: Path, remote: str) -> None:
        """Update the remote tracking refs of a working copy.

        Args:
            path: Working copy.
            remote: Name of the remote to fetch.
        """
        ...

    def head(self, path: Path) -> str:
        """Return the revision checked out in a working copy."""
        ...

    def remote_revision(self, path: Path, remote: str, branch: str) -> str:
        """Return the revision of `refs/remotes/<remote>/<branch>`."""
        ...

    def pull(self, path: Path, remote: str, branch: str) -> str:
        """Fast-forward the working copy to the remote tracking revision.

        Returns:
            The new HEAD revision.
        """
        ...


@final
class DulwichGit:
    """GitBackend implemented with dulwich."""

    __slots__ = ()

    def _open(self, path: Path, operation: str) -> Repo:
        try:
            return Repo(str(path))
        except NotGitRepository as e:
            msg = f"{path} is not a git working copy"
            raise GitError(msg, path=path, operation=operation, cause=e) from e

    def fetch(self, path: Path, remote: str) -> None:
        """Fetch the remote into `refs/remotes/<remote>/*`."""
        with self._open(path, "fetch") as repo:
            try:
                _ = porcelain.fetch(
                    repo,
                    remote,
                    outstream=io.BytesIO(),
                    errstream=io.BytesIO(),
                )
            except _GIT_ERRORS as e:
                msg = f"Failed to fetch '{remote}' in {path}: {e}"
                raise GitError(msg, path=path, operation="fetch", cause=e) from e

    def head(self, path: Path) -> str:
        """Return the HEAD revision."""
        with self._open(path, "rev-parse") as repo:
            try:
                return repo.head().decode("ascii")
            except KeyError as e:
                msg = f"{path} has no commits"
                raise GitError(msg, path=path, operation="rev-parse", cause=e) from e

    def remote_revision(self, path: Path, remote: str, branch: str) -> str:
        """Return the revision of the remote tracking ref."""
        ref = _tracking_ref(remote, branch)
        with self._open(path, "rev-parse") as repo:
            try:
                return repo.refs[ref].decode("ascii")
            except KeyError as e:
                msg = f"{path} has no ref {ref.decode()}"
                raise GitError(msg, path=path, operation="rev-parse", cause=e) from e

    def pull(self, path: Path, remote: str, branch: str) -> str:
        """Fast-forward HEAD and the working tree to the tracking ref.

        Raises:
            GitError: If the tracking ref is missing or HEAD has diverged.
        """
        ref = _tracking_ref(remote, branch)
        with self._open(path, "pull") as repo:
            try:
                target = repo.refs[ref]
                current = repo.head()
                if current == target:
                    return target.decode("ascii")
                if not can_fast_forward(repo, current, target):
                    msg = (
                        f"Cannot fast-forward {path} from {current.decode()[:12]} "
                        f"to {ref.decode()} ({target.decode()[:12]})"
                    )
                    raise GitError(msg, path=path, operation="pull")
                # Working tree first, diffed against the old HEAD
                porcelain.reset(repo, "hard", target)
                # HEAD is a symref, so this moves the checked out branch
                repo.refs[b"HEAD"] = target
            except _GIT_ERRORS as e:
                msg = f"Failed to pull {ref.decode()} in {path}: {e}"
                raise GitError(msg, path=path, operation="pull", cause=e) from e
            return target.decode("ascii")
