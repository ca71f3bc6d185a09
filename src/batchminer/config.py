from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import toml

from .device import BACKENDS
from .errors import ConfigError
from .target import GENESIS_BITS, parse_bits

# 256K nonces per device call
DEFAULT_BATCH_SIZE = 1024 * 256


@dataclass(frozen=True)
class MinerConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    report_interval: float = 3.0
    debug: bool = False
    backend: str = "python"
    # assumed device power draw, only used for the efficiency figure
    power_watts: float = 320.0
    bits: int = GENESIS_BITS
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 < self.batch_size <= 0xFFFFFFFF:
            raise ConfigError(f"batch_size must be in 1..2^32-1, got {self.batch_size}")
        if self.report_interval <= 0:
            raise ConfigError("report_interval must be > 0")
        if self.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        if self.power_watts < 0:
            raise ConfigError("power_watts must be >= 0")
        if not 0 <= self.bits <= 0xFFFFFFFF:
            raise ConfigError(f"bits must fit in 32 bits, got {self.bits}")

    def with_overrides(self, **overrides: Any) -> "MinerConfig":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _cfg_get(cfg: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    cur: Any = cfg
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def config_from_dict(cfg: Dict[str, Any]) -> MinerConfig:
    """
    Build a MinerConfig from the parsed TOML layout:

        [miner]    batch_size, report_interval, debug, backend, power_watts
        [session]  bits (int, hex string or preset name)
        [logging]  level
    """
    base = MinerConfig()
    try:
        return MinerConfig(
            batch_size=int(_cfg_get(cfg, "miner", "batch_size", default=base.batch_size)),
            report_interval=float(_cfg_get(cfg, "miner", "report_interval", default=base.report_interval)),
            debug=bool(_cfg_get(cfg, "miner", "debug", default=base.debug)),
            backend=str(_cfg_get(cfg, "miner", "backend", default=base.backend)),
            power_watts=float(_cfg_get(cfg, "miner", "power_watts", default=base.power_watts)),
            bits=parse_bits(_cfg_get(cfg, "session", "bits", default=base.bits)),
            log_level=str(_cfg_get(cfg, "logging", "level", default=base.log_level)).upper(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def load_config(path: Optional[str] = None) -> MinerConfig:
    if not path:
        return MinerConfig()
    try:
        data = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    return config_from_dict(data)
