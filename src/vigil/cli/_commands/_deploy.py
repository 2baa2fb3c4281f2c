# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Vigil deploy command - runs one deployment check-and-apply cycle."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from vigil.deploy import (
    Deployed,
    DeploymentTarget,
    Failed,
    Orchestrator,
    RunOutcome,
    UpToDate,
)
from vigil.exceptions import DeployError, TargetSpecError

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

app = App(
    name="deploy",
    help="Pull, build and deploy targets whose remote branch has moved.",
    help_on_error=True,
)


def _resolve_targets(specs: tuple[str, ...], configured: list[DeploymentTarget]) -> list[DeploymentTarget]:
    """Turn command-line descriptors into targets.

    A descriptor whose path matches a configured target reuses that target's
    name and commands.
    """
    if not specs:
        return configured

    by_path = {target.path.resolve(): target for target in configured}
    targets: list[DeploymentTarget] = []
    for spec in specs:
        parsed = DeploymentTarget.parse(spec)
        template = by_path.get(parsed.path.resolve())
        targets.append(DeploymentTarget.parse(spec, template=template) if template else parsed)
    return targets


@app.default
def deploy(
    *targets: Annotated[str, Parameter(help="PATH or PATH@REMOTE/BRANCH (default: configured targets).")],
    force: Annotated[
        bool,
        Parameter(help="Rebuild and redeploy even if nothing changed."),
    ] = False,
    lock_file: Annotated[
        Path | None,
        Parameter(help="Run lock file (overrides configuration)."),
    ] = None,
    state_file: Annotated[
        Path | None,
        Parameter(help="Applied-revision store (overrides configuration)."),
    ] = None,
) -> None:
    """Run one orchestration cycle.

    Exits 0 when every target is up to date or deployed, 2 when any target
    failed, and 3 when another run holds the lock.
    """
    ctx = CLIContext.get_current()
    config = ctx.config.deploy
    if state_file is not None:
        config = config.model_copy(update={"state_file": state_file})

    try:
        resolved = _resolve_targets(targets, [DeploymentTarget.from_config(t) for t in config.targets])
    except TargetSpecError as e:
        exit_with_error(str(e), ExitCode.CONFIG_ERROR)
    if not resolved:
        exit_with_error("No deployment targets given or configured", ExitCode.CONFIG_ERROR)

    logger = ctx.create_logger("deploy")
    orchestrator = Orchestrator.from_config(config, logger=logger, lock_file=lock_file)

    try:
        result = orchestrator.run_once(resolved, force=force)
    except TargetSpecError as e:
        exit_with_error(str(e), ExitCode.CONFIG_ERROR)
    except DeployError as e:
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)

    if result.outcome == RunOutcome.SKIPPED:
        holder = f" (pid {result.holder_pid})" if result.holder_pid is not None else ""
        print(f"Skipped: another deployment run is in progress{holder}")
        raise SystemExit(ExitCode.SKIPPED)

    for target_result in result.targets:
        name = target_result.target.name
        match target_result.outcome:
            case UpToDate(revision=revision):
                print(f"{name}: up to date ({(revision or '')[:12]})")
            case Deployed(revision=revision):
                print(f"{name}: deployed {revision[:12]}")
            case Failed(stage=stage, error=error):
                print(f"{name}: failed at {stage.value}: {error}")

    if result.failed:
        raise SystemExit(ExitCode.TARGET_FAILED)
