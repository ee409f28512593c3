from __future__ import annotations

from tillerman.services.helm.storage import parse_record_name, record_name, release_names


def test_record_name() -> None:
    assert record_name("nginx", 12) == "nginx.v12"


def test_parse_record_name() -> None:
    assert parse_record_name("nginx.v12") == ("nginx", 12)
    assert parse_record_name("my.app.v3") == ("my.app", 3)
    assert parse_record_name("nginx") is None
    assert parse_record_name("nginx.vx") is None


def test_release_names_sorted_and_distinct() -> None:
    records = ["web.v2", "db.v1", "web.v1", "not-a-record"]
    assert release_names(records) == ["db", "web"]
