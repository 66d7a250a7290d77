import pytest

from huffbundle.errors import ConfigError, MalformedRecord, SymbolOutOfRange
from huffbundle.frequency import (FrequencyTable, format_frequency_report,
                                  parse_frequency_report)


def test_counts_observed_symbols_only() -> None:
    table = FrequencyTable.from_symbols([0x41, 0x41, 0x41, 0x42, 0x42, 0x43])
    assert table.as_dict() == {0x41: 3, 0x42: 2, 0x43: 1}
    assert table[0x00] == 0
    assert table.total() == 6
    assert table.distinct() == 3


def test_nonzero_is_ascending_by_symbol() -> None:
    table = FrequencyTable.from_symbols([9, 3, 200, 3])
    assert [s for s, _ in table.nonzero()] == [3, 9, 200]


def test_counters_saturate() -> None:
    table = FrequencyTable(counter_bits=2)
    table.record_all([7] * 10)
    assert table[7] == 3
    assert table.limit == 3


def test_default_width_is_24_bits() -> None:
    assert FrequencyTable().limit == (1 << 24) - 1


@pytest.mark.parametrize("symbol", [-1, 256, 1000, "a", 1.0])
def test_out_of_range_symbols_are_rejected(symbol) -> None:
    table = FrequencyTable()
    with pytest.raises(SymbolOutOfRange):
        table.record(symbol)
    assert table.total() == 0


@pytest.mark.parametrize("bits", [0, 33])
def test_counter_width_is_validated(bits: int) -> None:
    with pytest.raises(ConfigError):
        FrequencyTable(counter_bits=bits)


def test_table_is_read_only_once_frozen() -> None:
    table = FrequencyTable.from_symbols([1, 2])
    assert table.frozen
    with pytest.raises(RuntimeError):
        table.record(1)


class TestReport:
    def test_layout(self) -> None:
        table = FrequencyTable.from_symbols([0x41, 0x41, 0x41])
        assert format_frequency_report(table) == (
            b"Symbol        Frequency\r\n"
            + b"-" * 25 + b"\r\n"
            + b"01000001        3\r\n"
        )

    def test_parse_back(self) -> None:
        table = FrequencyTable.from_symbols([0, 5, 5, 255])
        again = parse_frequency_report(format_frequency_report(table))
        assert again.as_dict() == table.as_dict()

    def test_bad_line(self) -> None:
        with pytest.raises(MalformedRecord):
            parse_frequency_report(b"0100000x        3\r\n")
        with pytest.raises(MalformedRecord):
            parse_frequency_report(b"01000001        three\r\n")
