from __future__ import annotations

from typing import Dict, Union

# Genesis / difficulty-1 compact bits
GENESIS_BITS = 0x1D00FFFF

# Bitcoin difficulty-1 target
DIFF1_TARGET = int(
    "00000000FFFF0000000000000000000000000000000000000000000000000000", 16
)

# Named difficulty levels accepted by --preset and the [session] bits key.
DIFFICULTY_PRESETS: Dict[str, int] = {
    "very-easy": 0x1D00FFFF,
    "easy": 0x1D0FFFFF,
    "medium": 0x1D000FFF,
    "hard": 0x1D0000FF,
    "very-hard": 0x1D00000F,
}


def bits_to_target(bits: int) -> int:
    """
    Expand compact difficulty bits into the full integer target.

    exponent = top byte, mantissa = low 24 bits;
    target = mantissa * 256^(exponent - 3), right-shifting when exponent <= 3.
    The mantissa sign bit is not interpreted, so the result is never negative.
    """
    if not 0 <= bits <= 0xFFFFFFFF:
        raise ValueError(f"bits must fit in 32 bits, got {bits}")

    exponent = bits >> 24
    mantissa = bits & 0x00FFFFFF

    if exponent <= 3:
        return mantissa >> (8 * (3 - exponent))
    return mantissa << (8 * (exponent - 3))


def target_to_bits(target: int) -> int:
    """Compact encoding of a target (inverse of bits_to_target for normalized values)."""
    if target < 0:
        raise ValueError("target must be non-negative")

    size = (target.bit_length() + 7) // 8
    if size <= 3:
        compact = target << (8 * (3 - size))
    else:
        compact = target >> (8 * (size - 3))

    # keep the mantissa's sign bit clear
    if compact & 0x00800000:
        compact >>= 8
        size += 1

    return (size << 24) | compact


def difficulty_from_target(target: int) -> float:
    if target <= 0:
        raise ValueError("target must be > 0")
    return DIFF1_TARGET / target


def meets_target(hash_int: int, target: int) -> bool:
    """
    True when the hash is at or below the target. Equality counts as a solution,
    same as Bitcoin's CheckProofOfWork.
    """
    return hash_int <= target


def parse_bits(value: Union[int, str]) -> int:
    """
    Accepts an int, a hex string ("1d00ffff" or "0x1d00ffff") or a preset name.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid difficulty bits: {value!r}")
    if isinstance(value, int):
        bits = value
    else:
        text = value.strip().lower()
        if text in DIFFICULTY_PRESETS:
            return DIFFICULTY_PRESETS[text]
        if text.startswith("0x"):
            text = text[2:]
        try:
            bits = int(text, 16)
        except ValueError:
            raise ValueError(f"invalid difficulty bits: {value!r}") from None

    if not 0 <= bits <= 0xFFFFFFFF:
        raise ValueError(f"difficulty bits must fit in 32 bits, got {value!r}")
    return bits
