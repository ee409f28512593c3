"""Parsing of `helm history` output.

    REVISION	UPDATED                 	STATUS    	CHART          	DESCRIPTION
    1       	Fri Jul 14 18:25:00 2017	SUPERSEDED	nginx-0.1.0    	Install complete
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["ReleaseStatus", "is_release_not_found", "parse_last_release_status"]

_COLUMN_GAP_RE = re.compile(r"\t|\s{2,}")


@dataclass(frozen=True, slots=True)
class ReleaseStatus:
    """Last known revision and status of a release (`revision` as printed)."""

    revision: str
    status: str
    chart: str = ""
    description: str = ""

    @property
    def is_failed(self) -> bool:
        return self.status == "FAILED"


def is_release_not_found(stderr: str) -> bool:
    """True when helm reports the release as absent.

    Helm has no dedicated exit code for this: the first stderr line holds
    both `Error:` and `not found`. Any change in helm's wording breaks the
    match and turns "absent" into a hard failure.
    """
    lines = stderr.strip().splitlines()
    first = lines[0] if lines else ""
    return "Error:" in first and "not found" in first


def parse_last_release_status(stdout: str) -> ReleaseStatus | None:
    """Read the last line of `helm history <name> --max 1`."""
    lines = [line for line in stdout.strip().splitlines() if line.strip()]
    if not lines:
        return None

    last = lines[-1]
    fields = last.split("\t", 4)
    if len(fields) < 3:
        fields = _COLUMN_GAP_RE.split(last.strip(), maxsplit=4)
    fields = [f.strip() for f in fields]
    if len(fields) < 3 or not fields[0].isdigit():
        return None

    return ReleaseStatus(
        revision=fields[0],
        status=fields[2],
        chart=fields[3] if len(fields) > 3 else "",
        description=fields[4] if len(fields) > 4 else "",
    )
