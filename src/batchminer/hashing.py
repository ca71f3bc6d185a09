from __future__ import annotations

import hashlib


def sha256d(data: bytes) -> bytes:
    """
    Bitcoin-style double-SHA256.
    Returns raw 32-byte digest.
    """
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def digest_to_int_le(digest: bytes) -> int:
    """
    Digest interpreted as Bitcoin's little-endian 256-bit integer
    (the value compared against the target).
    """
    if len(digest) != 32:
        raise ValueError("digest must be 32 bytes")
    return int.from_bytes(digest, "little")


def abbreviate_hash(digest: bytes) -> int:
    """
    Most significant 32 bits of the little-endian hash integer.

    Lower means closer to the target; this is the scale used for the
    best-hash statistics.
    """
    if len(digest) != 32:
        raise ValueError("digest must be 32 bytes")
    return int.from_bytes(digest[28:32], "little")
