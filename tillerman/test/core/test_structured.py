from __future__ import annotations

from tillerman.core.structured import as_obj_list, as_str_dict, get_path, get_str, get_table


def test_as_str_dict_rejects_non_string_keys() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict(["a"]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list("a") is None


def test_get_str_strips_and_drops_empty() -> None:
    table: dict[str, object] = {"a": " x ", "b": "  ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_get_table() -> None:
    assert get_table({"helm": {"binary": "helm"}}, "helm") == {"binary": "helm"}
    assert get_table({"helm": 1}, "helm") is None


def test_get_path() -> None:
    deployment: dict[str, object] = {
        "spec": {"template": {"spec": {"nodeSelector": {"role": "infra"}}}}
    }
    assert get_path(deployment, "spec", "template", "spec", "nodeSelector") == {"role": "infra"}
    assert get_path(deployment, "spec", "missing", "spec") is None
    assert get_path(deployment, "spec", "template", "spec", "nodeSelector", "role", "x") is None
