"""YAML/JSON encoding of values trees."""

from __future__ import annotations

import json
from pathlib import Path, PurePath

import yaml

from tillerman.core.result import Err, Ok, Result
from tillerman.core.structured import as_str_dict
from tillerman.platform.files import atomic_write_text
from tillerman.services.errors import ParseError
from tillerman.services.values.merge import Values

__all__ = [
    "dump_json",
    "dump_yaml",
    "parse_values",
    "read_values_file",
    "values_to_string",
    "write_json_file",
    "write_values_file",
]


def parse_values(text: str, *, source: PurePath) -> Result[Values, ParseError]:
    """Parse YAML (or JSON, a YAML subset) into a values tree.

    An empty document is an empty tree; any non-mapping root is an error.
    """
    try:
        data: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(ParseError(path=source, reason=str(e)))

    if data is None:
        return Ok({})

    values = as_str_dict(data)
    if values is None:
        return Err(
            ParseError(
                path=source,
                reason=f"root must be a mapping with string keys, got {type(data).__name__}",
            )
        )
    return Ok(values)


def read_values_file(path: Path) -> Result[Values, ParseError]:
    """Read a values file; a missing file yields an empty tree."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Ok({})
    except (OSError, UnicodeDecodeError) as e:
        return Err(ParseError(path=path, reason=f"cannot read: {e}"))
    return parse_values(text, source=path)


def dump_yaml(values: Values) -> str:
    return yaml.safe_dump(values, default_flow_style=False, sort_keys=True, allow_unicode=True)


def dump_json(data: object) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def values_to_string(values: Values) -> str:
    """Human readable rendering for diagnostics."""
    try:
        return dump_yaml(values)
    except yaml.YAMLError:
        return repr(values)


def write_values_file(path: Path, values: Values) -> Path:
    atomic_write_text(path, dump_yaml(values))
    return path


def write_json_file(path: Path, data: object) -> Path:
    atomic_write_text(path, dump_json(data))
    return path
