# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake git backend for testing.

This module provides FakeGit, an in-memory GitBackend that lets tests drive
the orchestrator without real repositories or network access.
"""

from dataclasses import dataclass, field
from pathlib import Path

from vigil.exceptions import GitError


@dataclass(slots=True)
class FakeGit:
    """In-memory GitBackend.

    Each working copy has a local HEAD and, per `(remote, branch)`, the
    revision the remote currently advertises. `fetch` copies advertised
    revisions into the tracking refs, `pull` moves HEAD to the tracking ref.

    Example:
        >>> git = FakeGit()
        >>> git.add_repo(Path("/srv/app"), local="a1", remote="a1")
        >>> git.publish(Path("/srv/app"), "b2")
        >>> git.fetch(Path("/srv/app"), "origin")
        >>> git.remote_revision(Path("/srv/app"), "origin", "main")
        'b2'
    """

    heads: dict[Path, str] = field(default_factory=dict)
    advertised: dict[tuple[Path, str, str], str] = field(default_factory=dict)
    tracking: dict[tuple[Path, str, str], str] = field(default_factory=dict)
    fail_fetch: set[Path] = field(default_factory=set)
    fail_pull: set[Path] = field(default_factory=set)
    calls: list[tuple[str, Path]] = field(default_factory=list)

    # =========================================================================
    # Test Helpers
    # =========================================================================

    def add_repo(
        self,
        path: Path,
        *,
        local: str,
        remote: str | None = None,
        remote_name: str = "origin",
        branch: str = "main",
    ) -> None:
        """Register a working copy whose tracking ref matches the remote.

        Args:
            path: Working copy path.
            local: Revision checked out locally.
            remote: Revision on the remote. Defaults to `local`.
            remote_name: Remote name.
            branch: Branch name.
        """
        advertised = remote if remote is not None else local
        self.heads[path] = local
        self.advertised[path, remote_name, branch] = advertised
        self.tracking[path, remote_name, branch] = advertised

    def publish(
        self,
        path: Path,
        revision: str,
        *,
        remote_name: str = "origin",
        branch: str = "main",
    ) -> None:
        """Simulate a push to the remote (visible after the next fetch)."""
        self.advertised[path, remote_name, branch] = revision

    def count(self, operation: str) -> int:
        """Return how many times an operation was called."""
        return sum(1 for name, _ in self.calls if name == operation)

    # =========================================================================
    # GitBackend
    # =========================================================================

    def fetch(self, path: Path, remote: str) -> None:
        """Copy advertised revisions of `remote` into the tracking refs."""
        self.calls.append(("fetch", path))
        if path in self.fail_fetch or path not in self.heads:
            msg = f"Failed to fetch '{remote}' in {path}"
            raise GitError(msg, path=path, operation="fetch")
        for (repo, name, branch), revision in self.advertised.items():
            if repo == path and name == remote:
                self.tracking[repo, name, branch] = revision

    def head(self, path: Path) -> str:
        """Return the local HEAD revision."""
        self.calls.append(("head", path))
        try:
            return self.heads[path]
        except KeyError as e:
            msg = f"{path} is not a git working copy"
            raise GitError(msg, path=path, operation="rev-parse", cause=e) from e

    def remote_revision(self, path: Path, remote: str, branch: str) -> str:
        """Return the tracking ref revision."""
        self.calls.append(("remote_revision", path))
        try:
            return self.tracking[path, remote, branch]
        except KeyError as e:
            msg = f"{path} has no ref refs/remotes/{remote}/{branch}"
            raise GitError(msg, path=path, operation="rev-parse", cause=e) from e

    def pull(self, path: Path, remote: str, branch: str) -> str:
        """Move HEAD to the tracking ref revision."""
        self.calls.append(("pull", path))
        if path in self.fail_pull:
            msg = f"Cannot fast-forward {path}"
            raise GitError(msg, path=path, operation="pull")
        revision = self.remote_revision(path, remote, branch)
        self.heads[path] = revision
        return revision
