from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest
from hypothesis import given, settings, strategies as st

from huffbundle.codebook import CodeEntry, Codebook
from huffbundle.codebuilder import build_codebook
from huffbundle.config import CodecConfig
from huffbundle.engines import DecodeEngine, DecodeResult, EncodeEngine
from huffbundle.errors import (CodeTooLong, MalformedRecord, SymbolOutOfRange,
                               TransactionTimeout, UnknownCodeword,
                               UnknownSymbol)
from huffbundle.frequency import FrequencyTable

ABC = [0x41, 0x41, 0x41, 0x42, 0x42, 0x43]


def abc_book() -> Codebook:
    return build_codebook(FrequencyTable.from_symbols(ABC))


class TestEncodeEngine:
    def test_lookup(self) -> None:
        enc = EncodeEngine.with_codebook(abc_book())
        assert enc.encode(0x41) == (0b0, 1)
        assert enc.encode(0x43) == (0b10, 2)
        assert enc.requester.transactions == 2

    def test_unloaded_symbol_answers_zero_zero(self) -> None:
        enc = EncodeEngine.with_codebook(abc_book())
        assert enc.encode(0x00) == (0, 0)
        with pytest.raises(UnknownSymbol):
            enc.encode_strict(0x00)

    @pytest.mark.parametrize("symbol", [-1, 256])
    def test_out_of_range(self, symbol: int) -> None:
        with pytest.raises(SymbolOutOfRange):
            EncodeEngine().encode(symbol)

    def test_idempotent_load(self) -> None:
        once = EncodeEngine()
        once.load(0x41, 0b101, 3)
        twice = EncodeEngine()
        twice.load(0x41, 0b101, 3)
        twice.load(0x41, 0b101, 3)
        assert once.loaded() == twice.loaded() == {0x41: CodeEntry(0b101, 3)}
        assert twice.loader.transactions == 2

    def test_loads_are_validated_before_the_transaction(self) -> None:
        enc = EncodeEngine()
        with pytest.raises(CodeTooLong):
            enc.load(1, 0, 17)
        assert enc.loader.transactions == 0

    def test_at_most_256_entries(self) -> None:
        entries = [(s, 0, 0) for s in range(256)] + [(0, 0, 0)]
        enc = EncodeEngine()
        with pytest.raises(MalformedRecord):
            enc.load_entries(entries)
        assert enc.loader.transactions == 256

    def test_slow_device_times_out(self) -> None:
        enc = EncodeEngine(load_retries=1, valid_retries=1, latency=1)
        with pytest.raises(TransactionTimeout):
            enc.load(0x41, 0, 1)

    def test_from_config_uses_the_budgets(self) -> None:
        config = CodecConfig(load_retries=7, valid_retries=9)
        enc = EncodeEngine.from_config(config)
        assert enc.loader.retries == 7
        assert enc.requester.retries == 9

    def test_serialized_access_from_threads(self) -> None:
        enc = EncodeEngine.with_codebook(abc_book())
        symbols = ABC * 50
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(enc.encode, symbols))
        assert results == [enc.encode(s) for s in symbols]


class TestDecodeEngine:
    def test_exact_pair_lookup(self) -> None:
        dec = DecodeEngine.with_codebook(abc_book())
        assert dec.decode(0b10, 2) == DecodeResult(0x43, True)
        assert dec.decode(0b0, 1) == DecodeResult(0x41, True)

    def test_prefix_is_not_a_match(self) -> None:
        dec = DecodeEngine.with_codebook(abc_book())
        # "010" starts with A's code "0" but only exact pairs count
        assert dec.decode(0b010, 3) == DecodeResult(0, False)
        with pytest.raises(UnknownCodeword):
            dec.decode_strict(0b010, 3, position=5)

    def test_symbol_zero_is_distinguishable_from_a_miss(self) -> None:
        dec = DecodeEngine()
        dec.load(0x00, 0b1, 1)
        assert dec.decode(0b1, 1) == DecodeResult(0, True)
        assert dec.decode(0b0, 1) == DecodeResult(0, False)

    def test_reloading_a_symbol_replaces_its_key(self) -> None:
        dec = DecodeEngine()
        dec.load(0x41, 0b0, 1)
        dec.load(0x41, 0b11, 2)
        assert dec.keys() == frozenset({(0b11, 2)})
        assert not dec.decode(0b0, 1).found

    def test_idempotent_load(self) -> None:
        dec = DecodeEngine()
        dec.load(0x42, 0b11, 2)
        dec.load(0x42, 0b11, 2)
        assert dec.keys() == frozenset({(0b11, 2)})
        assert dec.decode(0b11, 2) == DecodeResult(0x42, True)


@given(symbols=st.lists(st.integers(min_value=0, max_value=255), min_size=1, max_size=200))
@settings(deadline=None)
@pytest.mark.property
def test_encode_then_decode_returns_every_symbol(symbols: List[int]) -> None:
    book = build_codebook(FrequencyTable.from_symbols(symbols))
    enc = EncodeEngine.with_codebook(book)
    dec = DecodeEngine.with_codebook(book)
    for s in symbols:
        codeword, length = enc.encode_strict(s)
        assert dec.decode_strict(codeword, length) == s
