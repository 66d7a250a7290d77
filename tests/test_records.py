import pytest

from huffbundle.errors import MalformedRecord
from huffbundle.records import (format_line, is_binary_token, parse_bits,
                                read_fields, to_bits, write_fields)


@pytest.mark.parametrize(
    "text, expected",
    [("0", True), ("0101", True), ("", False), ("012", False), ("01 1", False)],
)
def test_is_binary_token(text: str, expected: bool) -> None:
    assert is_binary_token(text) is expected


def test_to_bits_pads_to_width() -> None:
    assert to_bits(5, 8) == "00000101"
    assert to_bits(0, 5) == "00000"
    with pytest.raises(ValueError):
        to_bits(256, 8)
    with pytest.raises(ValueError):
        to_bits(-1, 8)


def test_parse_bits() -> None:
    assert parse_bits("0101") == 5
    assert parse_bits("00000101", 8) == 5


@pytest.mark.parametrize("text, width", [("", None), ("012", None), ("0101", 8), ("1", 5)])
def test_parse_bits_rejects_bad_fields(text: str, width) -> None:
    with pytest.raises(MalformedRecord):
        parse_bits(text, width)


def test_fixed_width_record_lines() -> None:
    assert format_line(0x41, 8) == b"01000001\r\n"
    assert format_line(3, 16) == b"0000000000000011\r\n"
    assert format_line(2, 5) == b"00010\r\n"


def test_write_then_read_fields() -> None:
    data = write_fields([1, 2, 31], 5)
    assert data == b"00001\r\n00010\r\n11111\r\n"
    assert read_fields(data, 5) == [1, 2, 31]


def test_read_fields_tolerates_lf_and_blank_lines() -> None:
    assert read_fields(b"00001\n\n00010\n", 5) == [1, 2]


def test_read_fields_reports_the_line_number() -> None:
    with pytest.raises(MalformedRecord) as info:
        read_fields(b"01000001\r\n0100001\r\n", 8)
    assert info.value.line_no == 2
