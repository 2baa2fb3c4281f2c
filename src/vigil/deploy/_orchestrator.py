"""Pull-based deployment orchestrator.

This module provides the Orchestrator class. One call to `run_once` is one
orchestration run: take the run lock, bring every target up to date with its
remote branch (fetch, pull, build, deploy), run housekeeping commands, and
release the lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from vigil.exceptions import GitError, LockError, TargetSpecError
from vigil.utils import ScriptConfig, create_null_logger, run_script, truncate_output

from ._git import DulwichGit
from ._lock import RunLock
from ._models import (
    Deployed,
    Failed,
    RunOutcome,
    RunResult,
    Stage,
    TargetResult,
    UpToDate,
)
from ._state import RevisionStore

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from vigil.config import DeployConfig
    from vigil.utils import LivenessCheck, ScriptResult

    from ._git import GitBackend
    from ._models import DeploymentTarget, TargetOutcome

# Bytes of command output kept in log entries
_LOG_OUTPUT_BYTES = 4096


@final
class Orchestrator:
    """Runs deployment check-and-apply cycles, one at a time.

    A target is applied when its remote tracking revision, local HEAD and
    last applied revision do not all agree (or when forced). The applied
    revision only advances after build and deploy both succeed, so a failed
    target is retried by the next run. Failures are isolated per target.
    """

    __slots__ = (
        "_cleanup",
        "_command_timeout",
        "_git",
        "_lock",
        "_logger",
        "_runner",
        "_shell",
        "_store",
    )

    def __init__(
        self,
        *,
        lock: RunLock,
        store: RevisionStore,
        git: GitBackend | None = None,
        shell: str | None = "/bin/sh",
        command_timeout: float | None = None,
        cleanup: Sequence[str] = (),
        logger: FilteringBoundLogger | None = None,
        runner: Callable[[ScriptConfig], ScriptResult] = run_script,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            lock: Run lock guarding against concurrent runs.
            store: Applied-revision store.
            git: Git backend. Uses DulwichGit if None.
            shell: Shell used for build, deploy, status and cleanup commands.
            command_timeout: Per-command timeout in seconds, None for no timeout.
            cleanup: Housekeeping commands run at the end of every completed run.
            logger: Structured logger.
            runner: Executes a command. Replaceable for testing.
        """
        self._lock = lock
        self._store = store
        self._git: GitBackend = git or DulwichGit()
        self._shell = shell
        self._command_timeout = command_timeout
        self._cleanup = tuple(cleanup)
        self._logger = logger or create_null_logger()
        self._runner = runner

    @classmethod
    def from_config(
        cls,
        config: DeployConfig,
        *,
        logger: FilteringBoundLogger | None = None,
        git: GitBackend | None = None,
        liveness: LivenessCheck | None = None,
        lock_file: Path | None = None,
    ) -> Orchestrator:
        """Create an orchestrator from the deploy configuration section.

        Args:
            config: Deploy configuration.
            logger: Structured logger.
            git: Git backend. Uses DulwichGit if None.
            liveness: Liveness check for the run lock.
            lock_file: Overrides `config.lock_file`.
        """
        return cls(
            lock=RunLock(lock_file or config.lock_file, liveness=liveness, logger=logger),
            store=RevisionStore(config.state_file, logger=logger),
            git=git,
            shell=config.shell,
            command_timeout=config.command_timeout or None,
            cleanup=config.cleanup,
            logger=logger,
        )

    @property
    def lock(self) -> RunLock:
        """Return the run lock."""
        return self._lock

    @property
    def store(self) -> RevisionStore:
        """Return the applied-revision store."""
        return self._store

    def _run(self, command: str, cwd: Path | None = None) -> ScriptResult:
        timeout_ms = int(self._command_timeout * 1000) if self._command_timeout else None
        return self._runner(
            ScriptConfig(command=command, shell=self._shell, cwd=cwd, timeout_ms=timeout_ms)
        )

    def run_once(self, targets: Sequence[DeploymentTarget], *, force: bool = False) -> RunResult:
        """Perform one orchestration run.

        Args:
            targets: Targets to process, in order.
            force: Apply every target even if it is up to date.

        Returns:
            A skipped result if another run holds the lock, otherwise the
            per-target outcomes of this run.

        Raises:
            TargetSpecError: If two targets share a name or a working copy.
            LockError: If the lock file cannot be opened or written.
        """
        _check_unique(targets)
        if not self._lock.try_acquire():
            holder_pid: int | None = None
            try:
                holder = self._lock.holder()
                holder_pid = holder.pid if holder is not None else None
            except LockError:
                pass
            self._logger.info("deploy_skipped", reason="already_running", holder_pid=holder_pid)
            return RunResult.skipped("already_running", holder_pid=holder_pid)

        with self._lock:
            self._logger.info("deploy_run_started", targets=[t.name for t in targets], force=force)

            results = [TargetResult(target, self._process_target(target, force=force)) for target in targets]
            self._run_cleanup()

            result = RunResult(outcome=RunOutcome.COMPLETED, targets=tuple(results))
            self._logger.info(
                "deploy_run_completed",
                deployed=[r.target.name for r in result.deployed],
                failed=[r.target.name for r in result.failed],
            )
            return result

    def _process_target(self, target: DeploymentTarget, *, force: bool) -> TargetOutcome:
        log = self._logger.bind(target=target.name, path=str(target.path))
        stage = Stage.FETCH
        try:
            self._git.fetch(target.path, target.remote)
            local = self._git.head(target.path)
            remote = self._git.remote_revision(target.path, target.remote, target.branch)

            applied = self._store.get(target.key)
            if applied is None:
                # First sight: the checked out revision is the baseline
                applied = local
                self._store.set(target.key, local)
                log.info("target_baseline_recorded", revision=local)

            if remote == local == applied and not force:
                log.info("target_up_to_date", revision=remote)
                return UpToDate(revision=remote)

            log.info("target_update_available", local=local, remote=remote, applied=applied, force=force)

            stage = Stage.PULL
            revision = self._git.pull(target.path, target.remote, target.branch) if local != remote else local

            for stage, command in ((Stage.BUILD, target.build), (Stage.DEPLOY, target.deploy)):  # noqa: B007
                if command is None:
                    continue
                log.info("target_stage_started", stage=stage.value, revision=revision)
                result = self._run(command, target.path)
                if not result.success:
                    error = result.describe()
                    log.error(
                        "target_failed",
                        stage=stage.value,
                        error=error,
                        exit_code=result.exit_code,
                        stderr=truncate_output(result.stderr, _LOG_OUTPUT_BYTES),
                    )
                    return Failed(stage=stage, error=error)

            self._store.set(target.key, revision)
            log.info("target_deployed", revision=revision)
            self._run_status(target, log)
            return Deployed(revision=revision)

        except GitError as e:
            log.error("target_failed", stage=stage.value, error=str(e))
            return Failed(stage=stage, error=str(e))
        except Exception as e:  # noqa: BLE001
            # One broken target must not stop the others
            log.exception("target_failed", stage=stage.value, error=str(e))
            return Failed(stage=stage, error=str(e))

    def _run_status(self, target: DeploymentTarget, log: FilteringBoundLogger) -> None:
        if target.status is None:
            return
        result = self._run(target.status, target.path)
        if result.success:
            log.info("target_status", output=truncate_output(result.stdout, _LOG_OUTPUT_BYTES))
        else:
            log.warning("target_status_failed", error=result.describe())

    def _run_cleanup(self) -> None:
        for command in self._cleanup:
            try:
                result = self._run(command)
            except Exception as e:  # noqa: BLE001
                self._logger.warning("cleanup_failed", command=command, error=str(e))
                continue
            if result.success:
                self._logger.info("cleanup_completed", command=command)
            else:
                self._logger.warning("cleanup_failed", command=command, error=result.describe())


def _check_unique(targets: Sequence[DeploymentTarget]) -> None:
    names: dict[str, DeploymentTarget] = {}
    paths: dict[str, DeploymentTarget] = {}
    for target in targets:
        if (other := names.get(target.name)) is not None:
            msg = (
                f"Targets {other.path} and {target.path} are both named '{target.name}'; "
                "give them distinct names in the configuration"
            )
            raise TargetSpecError(msg, spec=target.name)
        if (other := paths.get(target.key)) is not None:
            msg = f"Working copy {target.path} is listed twice ('{other.name}' and '{target.name}')"
            raise TargetSpecError(msg, spec=str(target.path))
        names[target.name] = target
        paths[target.key] = target
