import pytest
from hypothesis import given, strategies as st

from huffbundle.errors import SymbolOutOfRange
from huffbundle.wordsplit import (merge_symbols, parse_rbt, render_rbt,
                                  split_word, symbols_to_words,
                                  words_to_symbols)

HEADER = b"Xilinx ASCII Bitstream\r\nDesign name: demo\r\nBits: 64\r\n"
WORD_A = b"0" * 31 + b"1"
WORD_B = b"1" + b"0" * 31


def test_split_is_msb_first() -> None:
    assert split_word(0x41424344) == (0x41, 0x42, 0x43, 0x44)
    assert merge_symbols([0x41, 0x42, 0x43, 0x44]) == 0x41424344


def test_split_rejects_wide_words() -> None:
    with pytest.raises(ValueError):
        split_word(1 << 32)


def test_merge_checks_its_input() -> None:
    with pytest.raises(ValueError):
        merge_symbols([1, 2, 3])
    with pytest.raises(SymbolOutOfRange):
        merge_symbols([1, 2, 3, 256])


def test_short_final_group_is_zero_padded() -> None:
    assert symbols_to_words([1, 2, 3, 4, 5]) == [0x01020304, 0x05000000]


@given(st.lists(st.integers(min_value=0, max_value=0xFFFFFFFF), max_size=32))
@pytest.mark.property
def test_words_survive_the_symbol_space(words) -> None:
    assert symbols_to_words(list(words_to_symbols(words))) == words


class TestRbt:
    def test_parse(self) -> None:
        data = HEADER + WORD_A + b"\r\n" + WORD_B + b"\r\n"
        header, symbols, nbits = parse_rbt(data)
        assert header == b"Xilinx ASCII Bitstream\nDesign name: demo\nBits: 64\n"
        assert symbols == [0, 0, 0, 1, 0x80, 0, 0, 0]
        assert nbits == 64

    def test_render_reproduces_crlf_files(self) -> None:
        data = HEADER + WORD_A + b"\r\n" + WORD_B + b"\r\n"
        header, symbols, nbits = parse_rbt(data)
        assert render_rbt(header, symbols, nbits) == data
        assert render_rbt(header, symbols) == data

    def test_partial_word(self) -> None:
        data = b"Bits: 1\r\n1\r\n"
        header, symbols, nbits = parse_rbt(data)
        assert symbols == [0x80, 0, 0, 0]
        assert nbits == 1
        assert render_rbt(header, symbols, nbits) == data
        # without the bit count the padding stays
        assert render_rbt(header, symbols) == b"Bits: 1\r\n1" + b"0" * 31 + b"\r\n"

    def test_no_bits_line_means_header_only(self) -> None:
        header, symbols, nbits = parse_rbt(b"just text\r\n0101\r\n")
        assert header == b"just text\n0101\n"
        assert symbols == [] and nbits == 0
