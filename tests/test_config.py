import pytest

from huffbundle.config import (ALPHABET_SIZE, COMPRESS_HELPERS, DEFAULT_KEY,
                               DECOMPRESS_HELPERS, MAX_CODE_LENGTH, CodecConfig)
from huffbundle.errors import ConfigError


def test_defaults() -> None:
    config = CodecConfig()
    assert config.key == DEFAULT_KEY == 0x5A
    assert config.counter_bits == 24
    assert config.framing == "framed"
    assert config.stream_format == "text"
    assert config.input_kind == "rbt"
    assert not config.keep_intermediates
    assert ALPHABET_SIZE == 256 and MAX_CODE_LENGTH == 16


def test_helper_names() -> None:
    assert "HMCODES.txt" in COMPRESS_HELPERS
    assert "RGN.txt" in DECOMPRESS_HELPERS


@pytest.mark.parametrize(
    "changes",
    [
        {"key": 256},
        {"key": -1},
        {"counter_bits": 0},
        {"load_retries": 0},
        {"valid_retries": 0},
        {"poll_interval": -0.5},
        {"framing": "chunked"},
        {"stream_format": "base64"},
        {"input_kind": "hex"},
        {"framing": "legacy", "stream_format": "packed"},
    ],
)
def test_invalid_settings(changes) -> None:
    with pytest.raises(ConfigError):
        CodecConfig(**changes)


def test_config_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        CodecConfig(key=300)


def test_with_options_returns_a_new_config() -> None:
    base = CodecConfig()
    raw = base.with_options(input_kind="raw", key=0x11)
    assert raw.input_kind == "raw" and raw.key == 0x11
    assert base.input_kind == "rbt"
    with pytest.raises(ConfigError):
        base.with_options(stream_format="packed", framing="legacy")


def test_describe() -> None:
    assert CodecConfig(key=0x0F).describe()["key"] == "0x0F"
