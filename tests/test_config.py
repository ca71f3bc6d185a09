import pytest

from batchminer.config import DEFAULT_BATCH_SIZE, MinerConfig, config_from_dict, load_config
from batchminer.errors import ConfigError
from batchminer.target import DIFFICULTY_PRESETS, GENESIS_BITS


def _write(tmp_path, text):
    p = tmp_path / "miner.toml"
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_defaults_without_path():
    cfg = load_config(None)
    assert cfg == MinerConfig()
    assert cfg.batch_size == DEFAULT_BATCH_SIZE == 262144
    assert cfg.report_interval == 3.0
    assert cfg.bits == GENESIS_BITS
    assert cfg.backend == "python"
    assert cfg.debug is False


def test_full_file(tmp_path):
    path = _write(
        tmp_path,
        """
[miner]
batch_size = 4096
report_interval = 0.5
debug = true
backend = "numba"
power_watts = 95.5

[session]
bits = "0x207fffff"

[logging]
level = "debug"
""",
    )
    cfg = load_config(path)
    assert cfg.batch_size == 4096
    assert cfg.report_interval == 0.5
    assert cfg.debug is True
    assert cfg.backend == "numba"
    assert cfg.power_watts == 95.5
    assert cfg.bits == 0x207FFFFF
    assert cfg.log_level == "DEBUG"


def test_partial_file_keeps_defaults(tmp_path):
    cfg = load_config(_write(tmp_path, "[session]\nbits = \"hard\"\n"))
    assert cfg.bits == DIFFICULTY_PRESETS["hard"]
    assert cfg.batch_size == DEFAULT_BATCH_SIZE


def test_integer_bits():
    assert config_from_dict({"session": {"bits": 0x1D0FFFFF}}).bits == 0x1D0FFFFF


@pytest.mark.parametrize(
    "data",
    [
        {"miner": {"backend": "fpga"}},
        {"miner": {"batch_size": 0}},
        {"miner": {"batch_size": "lots"}},
        {"miner": {"report_interval": 0}},
        {"miner": {"power_watts": -1}},
        {"session": {"bits": "zz"}},
        {"session": {"bits": "1ffffffff"}},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.toml"))


def test_malformed_toml(tmp_path):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "[miner]\nbatch_size = 1\nbatch_size = 2\n"))


def test_with_overrides_skips_none():
    cfg = MinerConfig(batch_size=100)
    out = cfg.with_overrides(batch_size=None, debug=True, backend=None)
    assert out.batch_size == 100
    assert out.debug is True
    assert cfg.debug is False


def test_with_overrides_validates():
    with pytest.raises(ConfigError):
        MinerConfig().with_overrides(batch_size=-5)
