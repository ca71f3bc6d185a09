"""Formatting helpers for hash rates, durations and abbreviated hashes."""
from __future__ import annotations

from typing import Optional

_MAGNITUDES = ("", "K", "M", "G", "T", "P", "E")


def format_hash_number(value: float, unit: str = "H/s") -> str:
    """Format hash numbers with magnitude units (K, M, G, T, P, E)"""
    if value == 0:
        return f"0 {unit}"

    scaled = float(value)
    prefix = _MAGNITUDES[0]
    for prefix in _MAGNITUDES:
        if abs(scaled) < 1000 or prefix == _MAGNITUDES[-1]:
            break
        scaled /= 1000
    return f"{scaled:.2f} {prefix}{unit}"


def format_elapsed(seconds: float) -> str:
    """1h02m03.4s style, dropping leading zero units."""
    seconds = max(0.0, float(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours >= 1:
        return f"{int(hours)}h{int(minutes):02d}m{secs:04.1f}s"
    if minutes >= 1:
        return f"{int(minutes)}m{secs:04.1f}s"
    return f"{secs:.1f}s"


def format_best_hash(best: Optional[int]) -> str:
    if best is None:
        return "-"
    return f"{best:08x}"
