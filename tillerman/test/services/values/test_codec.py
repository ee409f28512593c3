from __future__ import annotations

from pathlib import Path, PurePosixPath

from tillerman.core.result import Err, Ok
from tillerman.services.values.codec import (
    dump_yaml,
    parse_values,
    read_values_file,
    write_json_file,
    write_values_file,
)

SOURCE = PurePosixPath("modules/values.yaml")


class TestParseValues:
    def test_mapping(self) -> None:
        assert parse_values("a:\n  b: 1\n", source=SOURCE) == Ok({"a": {"b": 1}})

    def test_json_is_accepted(self) -> None:
        assert parse_values('{"a": [1, 2]}', source=SOURCE) == Ok({"a": [1, 2]})

    def test_empty_document_is_empty_tree(self) -> None:
        assert parse_values("", source=SOURCE) == Ok({})
        assert parse_values("# only a comment\n", source=SOURCE) == Ok({})

    def test_non_mapping_root(self) -> None:
        result = parse_values("- a\n- b\n", source=SOURCE)

        assert isinstance(result, Err)
        assert result.error.path == SOURCE
        assert "mapping" in result.error.reason

    def test_invalid_yaml(self) -> None:
        result = parse_values("a: [1, 2\n", source=SOURCE)

        assert isinstance(result, Err)
        assert str(result.error).startswith("bad values file modules/values.yaml")


class TestFiles:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert read_values_file(tmp_path / "values.yaml") == Ok({})

    def test_write_then_read(self, tmp_path: Path) -> None:
        path = write_values_file(tmp_path / "out" / "app.yaml", {"image": {"tag": "v2"}})

        assert read_values_file(path) == Ok({"image": {"tag": "v2"}})

    def test_dump_is_sorted(self) -> None:
        assert dump_yaml({"b": 1, "a": 2}) == "a: 2\nb: 1\n"

    def test_write_json(self, tmp_path: Path) -> None:
        path = write_json_file(tmp_path / "enabled.json", ["foo", "bar"])
        assert path.read_text(encoding="utf-8") == '[\n  "foo",\n  "bar"\n]'
