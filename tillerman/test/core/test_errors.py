from __future__ import annotations

from tillerman.core.errors import ErrorCode


def test_exit_codes_are_stable() -> None:
    assert [int(code) for code in ErrorCode] == [0, 1, 2, 3, 4, 5]


def test_str_is_human_readable() -> None:
    assert str(ErrorCode.RELEASE_ERROR) == "release error"


def test_success_flags() -> None:
    assert ErrorCode.OK.is_success
    assert not ErrorCode.OK.is_error
    assert ErrorCode.HOOK_ERROR.is_error
