"""End-to-end reconcile runs over fake helm and fake hook processes."""

from __future__ import annotations

from pathlib import Path

import pytest

from tillerman.core.result import Err, Ok
from tillerman.output.console import MockConsole
from tillerman.services.errors import BackendInvocationError, HookExecutionError
from tillerman.services.helm.history import ReleaseStatus
from tillerman.services.modules.context import RunContext
from tillerman.services.modules.hooks import DYNAMIC_VALUES_PATH_ENV, MODULE_DYNAMIC_VALUES_PATH_ENV
from tillerman.services.modules.orchestrator import Orchestrator, RunReport, prepare_run
from tillerman.services.modules.pipeline import Stage
from tillerman.services.modules.registry import ModuleRegistry
from tillerman.services.values.store import Layer
from tillerman.test.fakes import FakeHelm, FakeKube, FakeRunner, fail, ok, write_module

HOOK = "#!/bin/sh\n"


@pytest.fixture
def modules_dir(tmp_path: Path) -> Path:
    path = tmp_path / "modules"
    path.mkdir()
    return path


def _prepare(
    modules_dir: Path, kube: FakeKube | None = None
) -> tuple[ModuleRegistry, RunContext]:
    result = prepare_run(
        modules_dir=modules_dir,
        temp_dir=modules_dir.parent / "tmp",
        kube=kube,
        kube_namespace="tillerman",
        config_map="tillerman",
        console=MockConsole(),
    )
    assert isinstance(result, Ok)
    return result.value


def _run(
    modules_dir: Path,
    helm: FakeHelm,
    runner: FakeRunner,
    *,
    only: list[str] | None = None,
    kube: FakeKube | None = None,
) -> RunReport:
    registry, context = _prepare(modules_dir, kube)
    orchestrator = Orchestrator(
        registry=registry,
        context=context,
        helm=helm,
        runner=runner,
        console=MockConsole(),
    )
    return orchestrator.run(only=only)


def _record(events: list[str], label: str, values: str = "", module_values: str = ""):
    def handler(cmd: list[str], cwd: Path, env: dict[str, str]):
        events.append(label)
        if values:
            Path(env[DYNAMIC_VALUES_PATH_ENV]).write_text(values, "utf-8")
        if module_values:
            Path(env[MODULE_DYNAMIC_VALUES_PATH_ENV]).write_text(module_values, "utf-8")
        return ok()

    return handler


class TestSingleModule:
    def test_hooks_wrap_the_upgrade(self, modules_dir: Path) -> None:
        path = write_module(
            modules_dir,
            "002-app",
            values="replicas: 1\n",
            hooks={"before-helm/010-tag": HOOK, "after-helm/010-check": HOOK},
        )
        helm = FakeHelm()
        runner = FakeRunner()
        runner.on(
            str(path / "hooks" / "before-helm"),
            _record(helm.events, "before", module_values="image:\n  tag: v2\n"),
        )
        runner.on(str(path / "hooks" / "after-helm"), _record(helm.events, "after"))

        report = _run(modules_dir, helm, runner)

        assert report.ok
        assert report.deployed == ["app"]
        assert helm.events == ["cleanup app", "before", "upgrade app", "after"]
        assert helm.upgrades[0].values == {"replicas": 1, "image": {"tag": "v2"}}
        assert helm.upgrades[0].chart == str(path)
        assert helm.upgrades[0].namespace == "tillerman"

    def test_failed_first_revision_is_purged_before_upgrade(self, modules_dir: Path) -> None:
        write_module(modules_dir, "001-app")
        helm = FakeHelm(statuses={"app": ReleaseStatus(revision="1", status="FAILED")})

        report = _run(modules_dir, helm, FakeRunner())

        assert report.ok
        assert helm.purged == ["app"]
        assert helm.statuses["app"] == ReleaseStatus(revision="1", status="DEPLOYED")

    def test_without_chart_is_skipped_entirely(self, modules_dir: Path) -> None:
        write_module(modules_dir, "001-base", chart=False, hooks={"before-helm/010-x": HOOK})
        helm = FakeHelm()
        runner = FakeRunner()

        report = _run(modules_dir, helm, runner)

        assert report.ok
        assert report.skipped == ["base"]
        assert report.outcomes[0].stage is Stage.SKIPPED
        assert helm.events == []
        assert runner.calls == []

    def test_failing_before_hook_prevents_upgrade(self, modules_dir: Path) -> None:
        path = write_module(modules_dir, "001-app", hooks={"before-helm/010-x": HOOK})
        helm = FakeHelm()
        runner = FakeRunner()
        runner.on(str(path / "hooks"), lambda cmd, cwd, env: fail(cmd, 2, stderr="boom"))

        report = _run(modules_dir, helm, runner)

        assert not report.ok
        failed = report.failed[0]
        assert failed.stage is Stage.BEFORE_HOOKS
        assert isinstance(failed.error, HookExecutionError)
        assert helm.upgrades == []


class TestAcrossModules:
    def test_order_and_dynamic_values_flow_forward(self, modules_dir: Path) -> None:
        db = write_module(modules_dir, "010-db", hooks={"after-helm/010-export": HOOK})
        write_module(modules_dir, "020-app", values="db:\n  port: 5432\n")
        write_module(modules_dir, "005-cache")
        helm = FakeHelm()
        runner = FakeRunner()
        runner.on(
            str(db / "hooks"),
            _record(helm.events, "export", values="db:\n  host: db.local\n"),
        )

        report = _run(modules_dir, helm, runner)

        assert [o.module_name for o in report.outcomes] == ["cache", "db", "app"]
        assert [u.release_name for u in helm.upgrades] == ["cache", "db", "app"]
        assert helm.upgrades[0].values == {}
        assert helm.upgrades[2].values == {"db": {"host": "db.local", "port": 5432}}

    def test_failure_is_isolated(self, modules_dir: Path) -> None:
        write_module(modules_dir, "001-broken")
        write_module(modules_dir, "002-app")
        helm = FakeHelm(
            upgrade_errors={
                "broken": BackendInvocationError("helm upgrade", "failed", 1, release_name="broken")
            }
        )

        report = _run(modules_dir, helm, FakeRunner())

        assert not report.ok
        assert [(o.module_name, o.stage) for o in report.outcomes] == [
            ("broken", Stage.UPGRADE),
            ("app", Stage.DONE),
        ]
        assert report.deployed == ["app"]

    def test_enablement_failure_skips_only_that_module(self, modules_dir: Path) -> None:
        first = write_module(modules_dir, "001-first")
        (first / "enabled").write_text(HOOK, "utf-8")
        second = write_module(modules_dir, "002-second")
        (second / "enabled").write_text(HOOK, "utf-8")
        write_module(modules_dir, "003-third")

        helm = FakeHelm()
        runner = FakeRunner()
        runner.on(str(first / "enabled"), lambda cmd, cwd, env: fail(cmd, 1))

        report = _run(modules_dir, helm, runner)

        assert [(o.module_name, o.stage) for o in report.outcomes] == [
            ("first", Stage.INIT),
            ("second", Stage.DONE),
            ("third", Stage.DONE),
        ]
        assert report.skipped == []
        assert [o.module_name for o in report.failed] == ["first"]
        enabled_list = modules_dir.parent / "tmp" / "enabled-modules" / "second.json"
        assert enabled_list.read_text("utf-8") == "[]"

    def test_only_selected_modules(self, modules_dir: Path) -> None:
        write_module(modules_dir, "001-a")
        write_module(modules_dir, "002-b")
        helm = FakeHelm()

        report = _run(modules_dir, helm, FakeRunner(), only=["b"])

        assert [o.module_name for o in report.outcomes] == ["b"]
        assert [u.release_name for u in helm.upgrades] == ["b"]


class TestPrepareRun:
    def test_cluster_layers(self, modules_dir: Path) -> None:
        write_module(modules_dir, "001-app", values="replicas: 1\n")
        kube = FakeKube()
        kube.add_config_map(
            "tillerman",
            "tillerman",
            data={"values": "domain: example.org\n", "app-values": "replicas: 3\n"},
        )

        _, context = _prepare(modules_dir, kube)

        assert context.values.get_layer(Layer.CLUSTER_GLOBAL) == {"domain": "example.org"}
        assert context.values.compose("app") == {"domain": "example.org", "replicas": 3}

    def test_invalid_layout(self, modules_dir: Path) -> None:
        (modules_dir / "abc").mkdir()

        result = prepare_run(
            modules_dir=modules_dir,
            temp_dir=modules_dir.parent / "tmp",
            kube=None,
            kube_namespace="tillerman",
            config_map="tillerman",
            console=MockConsole(),
        )

        assert isinstance(result, Err)
