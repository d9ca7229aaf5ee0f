"""
Tests for busctl value decoding.
"""

import pytest

from systemd_timings.utils.decode import UINT64_MAX, ValueDecodeError, decode_uint64, strip_type


def test_decode_strips_type_token() -> None:
    assert decode_uint64("t 1234567") == 1234567
    assert decode_uint64("t 0") == 0


def test_decode_tolerates_trailing_newline() -> None:
    assert decode_uint64("t 42\n") == 42


def test_decode_accepts_uint64_max() -> None:
    assert decode_uint64(f"t {UINT64_MAX}") == UINT64_MAX


def test_decode_rejects_out_of_range() -> None:
    with pytest.raises(ValueDecodeError):
        decode_uint64(f"t {UINT64_MAX + 1}")


@pytest.mark.parametrize("raw", ["t -1", "t abc", "t 1.5", "s \"252\""])
def test_decode_rejects_non_unsigned(raw: str) -> None:
    with pytest.raises(ValueDecodeError) as excinfo:
        decode_uint64(raw)
    assert isinstance(excinfo.value, ValueError)


def test_decode_requires_two_tokens() -> None:
    with pytest.raises(IndexError):
        decode_uint64("1234")


def test_strip_type() -> None:
    assert strip_type("t 99") == "99"
