"""Tests for tillerman.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tillerman.core.result import Err, Ok
from tillerman.platform.process import (
    ProcessError,
    ProcessOutput,
    SubprocessRunner,
    command_env,
    run,
)


class TestProcessError:
    """Test ProcessError dataclass."""

    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("helm", "version"),
            returncode=1,
            stdout="",
            stderr="Error: could not find tiller",
        )
        assert str(error) == "helm version failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("helm", "upgrade", "--install", "nginx", "./010-nginx"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "helm upgrade --install ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestCommandEnv:
    def test_extends_current_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TILLERMAN_TEST_VAR", "1")
        env = command_env({"TILLER_NAMESPACE": "infra"})
        assert env["TILLERMAN_TEST_VAR"] == "1"
        assert env["TILLER_NAMESPACE"] == "infra"

    def test_extra_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TILLER_NAMESPACE", "old")
        assert command_env({"TILLER_NAMESPACE": "new"})["TILLER_NAMESPACE"] == "new"


class TestRun:
    """Test run function."""

    def test_success_captures_both_streams(self, tmp_path: Path) -> None:
        code = "import sys; print('out'); print('err', file=sys.stderr)"
        result = run([sys.executable, "-c", code], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value == ProcessOutput(stdout="out\n", stderr="err\n")

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        code = "import sys; print('partial'); sys.exit(3)"
        result = run([sys.executable, "-c", code], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert result.error.stdout == "partial\n"

    def test_env_is_passed(self, tmp_path: Path) -> None:
        code = "import os; print(os.environ['MODULE_NAME'])"
        env = command_env({"MODULE_NAME": "nginx"})
        result = run([sys.executable, "-c", code], cwd=tmp_path, env=env)

        assert isinstance(result, Ok)
        assert result.value.stdout.strip() == "nginx"

    def test_cwd_is_used(self, tmp_path: Path) -> None:
        code = "import os; print(os.getcwd())"
        result = run([sys.executable, "-c", code], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert Path(result.value.stdout.strip()).resolve() == tmp_path.resolve()

    def test_missing_binary(self, tmp_path: Path) -> None:
        result = run(["definitely-not-a-real-binary-xyz"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            cwd=tmp_path,
            timeout=0.2,
        )

        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestSubprocessRunner:
    def test_runs_command(self, tmp_path: Path) -> None:
        runner = SubprocessRunner()
        result = runner.run([sys.executable, "-c", "print(1)"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.stdout.strip() == "1"
