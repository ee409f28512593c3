"""Naming of Tiller's release records.

Tiller stores every revision of a release as a config map named
`<release>.v<revision>`, labelled `OWNER=TILLER`, `NAME=<release>` and
`STATUS=<status>`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

__all__ = [
    "OWNER_LABEL",
    "OWNER_VALUE",
    "parse_record_name",
    "record_name",
    "release_names",
]

OWNER_LABEL = "OWNER"
OWNER_VALUE = "TILLER"

_RECORD_NAME_RE = re.compile(r"^(.*)\.v([0-9]+)$")


def record_name(release_name: str, revision: int) -> str:
    return f"{release_name}.v{revision}"


def parse_record_name(name: str) -> tuple[str, int] | None:
    """`nginx.v12` -> `("nginx", 12)`; None for anything else."""
    match = _RECORD_NAME_RE.match(name)
    if match is None:
        return None
    return match.group(1), int(match.group(2))


def release_names(record_names: Iterable[str]) -> list[str]:
    """Distinct release names of `record_names`, sorted."""
    names = {parsed[0] for name in record_names if (parsed := parse_record_name(name))}
    return sorted(names)
