from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import pytest
from dulwich import porcelain
from dulwich.repo import Repo

if TYPE_CHECKING:
    from collections.abc import Callable

AUTHOR = b"Vigil Test <test@example.com>"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


async def wait_until(predicate: Callable[[], bool], timeout: float = 15.0) -> None:
    """Poll until the predicate holds, failing after the timeout."""
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.01)


def init_repo(path: Path, branch: str = "main") -> None:
    """Initialize a repository whose HEAD points at `branch`."""
    path.mkdir(parents=True, exist_ok=True)
    with porcelain.init(str(path)) as repo:
        repo.refs.set_symbolic_ref(b"HEAD", f"refs/heads/{branch}".encode())


def commit_file(path: Path, filename: str, content: str, message: str | None = None) -> str:
    """Write a file, commit it, and return the new revision."""
    target = path / filename
    _ = target.write_text(content, encoding="utf-8")
    with Repo(str(path)) as repo:
        _ = porcelain.add(repo, paths=[str(target)])
        revision = porcelain.commit(
            repo,
            message=(message or f"Update {filename}").encode(),
            author=AUTHOR,
            committer=AUTHOR,
        )
    return revision.decode("ascii")


def head_of(path: Path) -> str:
    with Repo(str(path)) as repo:
        return repo.head().decode("ascii")


@dataclass(frozen=True, slots=True)
class GitPair:
    """An upstream repository and a working copy cloned from it."""

    upstream: Path
    work: Path

    def push_upstream(self, filename: str, content: str) -> str:
        """Commit to the upstream, as if someone pushed."""
        return commit_file(self.upstream, filename, content)


@pytest.fixture
def git_pair(tmp_path: Path) -> GitPair:
    upstream = tmp_path / "upstream"
    work = tmp_path / "work" / "app"
    init_repo(upstream)
    _ = commit_file(upstream, "app.txt", "v1\n", "Initial commit")
    work.parent.mkdir(parents=True)
    porcelain.clone(str(upstream), str(work), checkout=True).close()
    return GitPair(upstream=upstream, work=work)
