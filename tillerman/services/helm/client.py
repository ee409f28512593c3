"""Release backend client (helm 2 CLI + Tiller release config maps).

Every helm call runs with TILLER_NAMESPACE pinned to the orchestrator's
private Tiller. Release history records are listed and deleted through the
kube client because helm 2 has no command for single revisions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from tillerman.core.result import Err, Ok, Result
from tillerman.output.console import ConsoleProtocol, MockConsole, Style
from tillerman.platform.process import (
    ProcessError,
    ProcessOutput,
    ProcessRunner,
    SubprocessRunner,
    command_env,
)
from tillerman.services.errors import BackendInvocationError, HelmError, NotFoundError
from tillerman.services.helm.history import (
    ReleaseStatus,
    is_release_not_found,
    parse_last_release_status,
)
from tillerman.services.helm.storage import (
    OWNER_LABEL,
    OWNER_VALUE,
    parse_record_name,
    record_name,
    release_names,
)
from tillerman.services.kube import KubeClient, config_map_data, config_map_names
from tillerman.services.values.codec import parse_values
from tillerman.services.values.merge import Values

__all__ = ["CliHelm", "HelmClient", "TILLER_NAMESPACE_ENV"]

TILLER_NAMESPACE_ENV = "TILLER_NAMESPACE"


class HelmClient(Protocol):
    """Release lifecycle operations the module pipeline depends on."""

    @property
    def tiller_namespace(self) -> str:
        ...

    def command_env(self) -> dict[str, str]:
        """Variables every helm or hook process must see."""
        ...

    def last_release_status(self, release_name: str) -> Result[ReleaseStatus, HelmError]:
        ...

    def upgrade_release(
        self,
        release_name: str,
        chart: str,
        values_paths: Sequence[Path],
        set_values: Sequence[str],
        namespace: str,
    ) -> Result[ProcessOutput, BackendInvocationError]:
        ...

    def delete_release(self, release_name: str) -> Result[None, BackendInvocationError]:
        ...

    def delete_single_failed_revision(
        self, release_name: str
    ) -> Result[bool, BackendInvocationError]:
        ...

    def delete_old_failed_revisions(
        self, release_name: str
    ) -> Result[list[str], BackendInvocationError]:
        ...

    def list_releases(
        self, labels: Mapping[str, str] | None = None
    ) -> Result[list[str], BackendInvocationError]:
        ...

    def list_release_names(
        self, labels: Mapping[str, str] | None = None
    ) -> Result[list[str], BackendInvocationError]:
        ...

    def is_release_exists(self, release_name: str) -> Result[bool, BackendInvocationError]:
        ...


def _invocation_error(
    operation: str, error: ProcessError, *, release_name: str | None = None
) -> BackendInvocationError:
    return BackendInvocationError(
        operation=operation,
        message=str(error),
        returncode=error.returncode,
        stdout=error.stdout.strip(),
        stderr=error.stderr.strip(),
        release_name=release_name,
    )


@dataclass
class CliHelm:
    """HelmClient driving the helm binary.

    Attributes:
        tiller_namespace: Namespace of the private Tiller (TILLER_NAMESPACE).
        kube: Client used for release config maps.
        storage_namespace: Namespace holding Tiller's release config maps
            (defaults to the Tiller namespace).
    """

    tiller_namespace: str
    kube: KubeClient
    binary: str = "helm"
    storage_namespace: str = ""
    cwd: Path = field(default_factory=Path.cwd)
    runner: ProcessRunner = field(default_factory=SubprocessRunner)
    console: ConsoleProtocol = field(default_factory=MockConsole)

    def __post_init__(self) -> None:
        if not self.storage_namespace:
            self.storage_namespace = self.tiller_namespace

    def command_env(self) -> dict[str, str]:
        return {TILLER_NAMESPACE_ENV: self.tiller_namespace}

    def cmd(self, *args: str) -> Result[ProcessOutput, ProcessError]:
        """Run helm with `args`; output is whitespace-trimmed."""
        self.console.debug(f"helm {' '.join(args)}")
        result = self.runner.run(
            [self.binary, *args],
            cwd=self.cwd,
            env=command_env(self.command_env()),
        )
        if isinstance(result, Err):
            return result
        out = result.value
        return Ok(ProcessOutput(stdout=out.stdout.strip(), stderr=out.stderr.strip()))

    def version(self) -> Result[str, BackendInvocationError]:
        result = self.cmd("version")
        if isinstance(result, Err):
            return Err(_invocation_error("helm version", result.error))
        return Ok(f"{result.value.stdout} {result.value.stderr}".strip())

    def last_release_status(self, release_name: str) -> Result[ReleaseStatus, HelmError]:
        """Last revision and status from `helm history <name> --max 1`.

        Returns:
            Ok(ReleaseStatus), Err(NotFoundError) when helm does not know the
            release, Err(BackendInvocationError) for anything else.
        """
        result = self.cmd("history", release_name, "--max", "1")
        if isinstance(result, Err):
            e = result.error
            if is_release_not_found(e.stderr):
                return Err(
                    NotFoundError(
                        release_name=release_name,
                        stdout=e.stdout.strip(),
                        stderr=e.stderr.strip(),
                    )
                )
            return Err(_invocation_error("helm history", e, release_name=release_name))

        status = parse_last_release_status(result.value.stdout)
        if status is None:
            return Err(
                BackendInvocationError(
                    operation="helm history",
                    message="cannot parse history output",
                    returncode=0,
                    stdout=result.value.stdout,
                    stderr=result.value.stderr,
                    release_name=release_name,
                )
            )
        return Ok(status)

    def upgrade_release(
        self,
        release_name: str,
        chart: str,
        values_paths: Sequence[Path],
        set_values: Sequence[str],
        namespace: str,
    ) -> Result[ProcessOutput, BackendInvocationError]:
        args = ["upgrade", "--install", release_name, chart]
        if namespace:
            args += ["--namespace", namespace]
        for values_path in values_paths:
            args += ["--values", str(values_path)]
        for set_value in set_values:
            args += ["--set", set_value]

        self.console.info(
            f"helm upgrade release '{release_name}' chart '{chart}' namespace '{namespace}'"
        )
        result = self.cmd(*args)
        if isinstance(result, Err):
            return Err(_invocation_error("helm upgrade", result.error, release_name=release_name))

        self.console.info(f"helm upgrade release '{release_name}' succeeded")
        output = f"{result.value.stdout}\n{result.value.stderr}".strip()
        if output:
            self.console.print(output, Style.DIM)
        return Ok(result.value)

    def get_release_values(self, release_name: str) -> Result[Values, HelmError]:
        """User-supplied values of the deployed release (`helm get values`)."""
        result = self.cmd("get", "values", release_name)
        if isinstance(result, Err):
            if is_release_not_found(result.error.stderr):
                return Err(NotFoundError(release_name=release_name, stderr=result.error.stderr))
            return Err(
                _invocation_error("helm get values", result.error, release_name=release_name)
            )

        values = parse_values(result.value.stdout, source=Path(f"release/{release_name}"))
        if isinstance(values, Err):
            return Err(
                BackendInvocationError(
                    operation="helm get values",
                    message=values.error.reason,
                    returncode=0,
                    stdout=result.value.stdout,
                    release_name=release_name,
                )
            )
        return Ok(values.value)

    def delete_release(self, release_name: str) -> Result[None, BackendInvocationError]:
        """Delete a release and purge all of its history records."""
        self.console.debug(f"helm release '{release_name}': delete --purge")
        result = self.cmd("delete", "--purge", release_name)
        if isinstance(result, Err):
            return Err(
                _invocation_error("helm delete --purge", result.error, release_name=release_name)
            )
        return Ok(None)

    def delete_single_failed_revision(
        self, release_name: str
    ) -> Result[bool, BackendInvocationError]:
        """Purge a release whose only revision failed.

        Returns:
            Ok(True) if the release was deleted, Ok(False) when nothing had
            to be done (no release, or a revision other than a failed "1").
        """
        status = self.last_release_status(release_name)
        if isinstance(status, Err):
            match status.error:
                case NotFoundError():
                    self.console.debug(
                        f"helm release '{release_name}': not found, no cleanup required"
                    )
                    return Ok(False)
                case BackendInvocationError() as error:
                    return Err(error)

        current = status.value
        if current.revision != "1" or not current.is_failed:
            self.console.debug(
                f"helm release '{release_name}': revision {current.revision} "
                f"with status {current.status}, no cleanup required"
            )
            return Ok(False)

        deleted = self.delete_release(release_name)
        if isinstance(deleted, Err):
            return deleted
        self.console.info(f"helm release '{release_name}': cleanup of failed revision succeeded")
        return Ok(True)

    def delete_old_failed_revisions(
        self, release_name: str
    ) -> Result[list[str], BackendInvocationError]:
        """Delete every FAILED history record except the most recent one.

        Returns:
            Ok(names of the deleted records), ascending by revision.
        """
        records = self.list_releases({"STATUS": "FAILED", "NAME": release_name})
        if isinstance(records, Err):
            return records
        self.console.debug(f"helm release '{release_name}': failed records {records.value}")

        revisions = sorted(
            parsed[1]
            for name in records.value
            if (parsed := parse_record_name(name)) is not None and parsed[0] == release_name
        )

        deleted: list[str] = []
        for revision in revisions[:-1]:
            name = record_name(release_name, revision)
            self.console.info(f"helm release '{release_name}': delete old FAILED revision {name}")
            result = self.kube.delete_config_map(self.storage_namespace, name)
            if isinstance(result, Err):
                return result
            deleted.append(name)
        return Ok(deleted)

    def list_releases(
        self, labels: Mapping[str, str] | None = None
    ) -> Result[list[str], BackendInvocationError]:
        """Release record names (`<name>.v<revision>`), sorted.

        The Tiller owner label is always added to `labels`; only config maps
        holding a `release` key count.
        """
        selector = dict(labels or {})
        selector[OWNER_LABEL] = OWNER_VALUE

        items = self.kube.list_config_maps(self.storage_namespace, selector)
        if isinstance(items, Err):
            return items

        with_release = [item for item in items.value if "release" in config_map_data(item)]
        return Ok(sorted(config_map_names(with_release)))

    def list_release_names(
        self, labels: Mapping[str, str] | None = None
    ) -> Result[list[str], BackendInvocationError]:
        """Release names without the `.v<revision>` suffix, deduplicated."""
        records = self.list_releases(labels)
        if isinstance(records, Err):
            return records
        return Ok(release_names(records.value))

    def is_release_exists(self, release_name: str) -> Result[bool, BackendInvocationError]:
        status = self.last_release_status(release_name)
        if isinstance(status, Ok):
            return Ok(True)
        match status.error:
            case NotFoundError():
                return Ok(False)
            case BackendInvocationError() as error:
                return Err(error)
