from pathlib import Path

import pytest

from vigil.config import TargetConfig
from vigil.deploy import (
    Deployed,
    DeploymentTarget,
    Failed,
    RunOutcome,
    RunResult,
    Stage,
    TargetResult,
    UpToDate,
)
from vigil.exceptions import TargetSpecError


class TestParse:
    def test_path_only(self) -> None:
        target = DeploymentTarget.parse("/srv/api")

        assert target == DeploymentTarget(name="api", path=Path("/srv/api"))

    def test_remote_and_branch(self) -> None:
        target = DeploymentTarget.parse("/srv/api@upstream/production")

        assert target.path == Path("/srv/api")
        assert target.remote == "upstream"
        assert target.branch == "production"

    def test_branch_with_slashes(self) -> None:
        target = DeploymentTarget.parse("/srv/api@origin/release/2026.10")

        assert target.remote == "origin"
        assert target.branch == "release/2026.10"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert DeploymentTarget.parse("  /srv/api  ").path == Path("/srv/api")

    @pytest.mark.parametrize("spec", ["", "   "])
    def test_empty_descriptor_is_rejected(self, spec: str) -> None:
        with pytest.raises(TargetSpecError) as exc_info:
            _ = DeploymentTarget.parse(spec)

        assert exc_info.value.spec == spec
        assert isinstance(exc_info.value, ValueError)

    def test_template_supplies_name_and_commands(self) -> None:
        template = DeploymentTarget(
            name="api",
            path=Path("/srv/api"),
            branch="stable",
            build="make",
            deploy="make install",
            status="systemctl status api",
        )

        target = DeploymentTarget.parse("/srv/api", template=template)

        assert target == template

    def test_descriptor_branch_overrides_template(self) -> None:
        template = DeploymentTarget(name="api", path=Path("/srv/api"), build="make")

        target = DeploymentTarget.parse("/srv/api@origin/hotfix", template=template)

        assert target.branch == "hotfix"
        assert target.build == "make"


class TestKey:
    def test_key_is_the_resolved_working_copy(self, tmp_path: Path) -> None:
        (tmp_path / "srv" / "app").mkdir(parents=True)
        target = DeploymentTarget(name="app", path=tmp_path / "srv" / ".." / "srv" / "app")

        assert target.key == str((tmp_path / "srv" / "app").resolve())

    def test_key_ignores_the_name(self) -> None:
        first = DeploymentTarget(name="repo", path=Path("/x/api/repo"))
        second = DeploymentTarget(name="repo", path=Path("/x/web/repo"))

        assert first.key != second.key


class TestFromConfig:
    def test_name_defaults_to_directory(self) -> None:
        target = DeploymentTarget.from_config(TargetConfig(path=Path("/srv/site")))

        assert target.name == "site"
        assert target.remote == "origin"
        assert target.branch == "main"

    def test_home_is_expanded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/deploy")

        target = DeploymentTarget.from_config(TargetConfig(name="x", path=Path("~/app")))

        assert target.path == Path("/home/deploy/app")

    def test_tracking_ref(self) -> None:
        target = DeploymentTarget(name="api", path=Path("/srv/api"), remote="up", branch="prod")

        assert target.tracking_ref == b"refs/remotes/up/prod"


class TestRunResult:
    def test_partitions_targets(self) -> None:
        def result(name: str, outcome: UpToDate | Deployed | Failed) -> TargetResult:
            return TargetResult(DeploymentTarget(name=name, path=Path(f"/srv/{name}")), outcome)

        run = RunResult(
            outcome=RunOutcome.COMPLETED,
            targets=(
                result("a", UpToDate("1")),
                result("b", Deployed("2")),
                result("c", Failed(Stage.BUILD, "exited with code 1")),
            ),
        )

        assert [r.target.name for r in run.deployed] == ["b"]
        assert [r.target.name for r in run.failed] == ["c"]
        assert [r.ok for r in run.targets] == [True, True, False]

    def test_skipped(self) -> None:
        run = RunResult.skipped("already_running", holder_pid=42)

        assert run.outcome is RunOutcome.SKIPPED
        assert run.targets == ()
        assert run.holder_pid == 42
