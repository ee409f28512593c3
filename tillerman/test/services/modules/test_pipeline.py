from __future__ import annotations

from pathlib import Path

from tillerman.core.result import Err, Result
from tillerman.output.console import MockConsole
from tillerman.services.errors import BackendInvocationError
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.hooks import HookRunner
from tillerman.services.modules.model import Module, ModuleHooks
from tillerman.services.modules.pipeline import ModuleOutcome, ModulePipeline, Stage
from tillerman.services.modules.registry import discover_hooks
from tillerman.test.fakes import FakeHelm, FakeRunner, ok, write_module


class BrokenCleanupHelm(FakeHelm):
    def delete_single_failed_revision(
        self, release_name: str
    ) -> Result[bool, BackendInvocationError]:
        return Err(BackendInvocationError("helm history", "tiller unreachable"))


def _pipeline(helm: FakeHelm, tmp_path: Path) -> ModulePipeline:
    console = MockConsole()
    return ModulePipeline(
        helm=helm,
        hook_runner=HookRunner(runner=FakeRunner(), console=console),
        context=RunContext(temp_dir=tmp_path / "tmp"),
        console=console,
    )


def _module(tmp_path: Path, *, chart: bool = True) -> Module:
    path = write_module(tmp_path / "modules", "010-web", chart=chart)
    return Module(name="web", directory_name="010-web", path=path)


def test_done(tmp_path: Path) -> None:
    helm = FakeHelm()

    outcome = _pipeline(helm, tmp_path).run(_module(tmp_path), ModuleHooks())

    assert outcome == ModuleOutcome("web", Stage.DONE)
    assert outcome.ok and not outcome.skipped
    assert helm.events == ["cleanup web", "upgrade web"]


def test_missing_chart(tmp_path: Path) -> None:
    outcome = _pipeline(FakeHelm(), tmp_path).run(_module(tmp_path, chart=False), ModuleHooks())

    assert outcome.stage is Stage.SKIPPED
    assert outcome.ok and outcome.skipped


def test_cleanup_failure_stops_module(tmp_path: Path) -> None:
    helm = BrokenCleanupHelm()

    outcome = _pipeline(helm, tmp_path).run(_module(tmp_path), ModuleHooks())

    assert outcome.stage is Stage.CLEANUP
    assert isinstance(outcome.error, BackendInvocationError)
    assert helm.upgrades == []


def test_upgrade_failure_skips_after_hooks(tmp_path: Path) -> None:
    helm = FakeHelm(
        upgrade_errors={
            "web": BackendInvocationError("helm upgrade", "failed", 1, release_name="web")
        }
    )
    path = write_module(
        tmp_path / "modules",
        "010-web",
        hooks={"before-helm/010-seed": "#!/bin/sh\n", "after-helm/010-notify": "#!/bin/sh\n"},
    )
    module = Module(name="web", directory_name="010-web", path=path)
    console = MockConsole()
    runner = FakeRunner()

    def hook(cmd: list[str], cwd: Path, env: dict[str, str]):
        helm.events.append(Path(cmd[0]).name)
        return ok()

    runner.on("", hook)
    pipeline = ModulePipeline(
        helm=helm,
        hook_runner=HookRunner(runner=runner, console=console),
        context=RunContext(temp_dir=tmp_path / "tmp"),
        console=console,
    )

    outcome = pipeline.run(module, discover_hooks(module, console))

    assert outcome.stage is Stage.UPGRADE
    assert isinstance(outcome.error, BackendInvocationError)
    assert helm.events == ["cleanup web", "010-seed", "upgrade web"]
    assert [Path(c.cmd[0]).name for c in runner.calls] == ["010-seed"]


def test_upgrade_writes_values_file(tmp_path: Path) -> None:
    helm = FakeHelm()
    pipeline = _pipeline(helm, tmp_path)

    pipeline.upgrade(_module(tmp_path))

    assert (tmp_path / "tmp" / "values" / "web.yaml").is_file()


def test_stage_names() -> None:
    assert str(Stage.BEFORE_HOOKS) == "before-hooks"
