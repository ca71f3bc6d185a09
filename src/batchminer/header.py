from __future__ import annotations

import hashlib
import struct
import time
from dataclasses import dataclass, replace

from .hashing import digest_to_int_le, sha256d
from .target import GENESIS_BITS

HEADER_SIZE = 80
_U32_MAX = 0xFFFFFFFF

# version(4) || prev_hash(32) || merkle_root(32) || timestamp(4) || bits(4) || nonce(4)
_HEADER_STRUCT = struct.Struct("<I32s32sIII")


def _check_u32(name: str, value: int) -> None:
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{name} must fit in 32 bits, got {value}")


@dataclass
class BlockHeader:
    version: int
    prev_block_hash: bytes
    merkle_root: bytes
    timestamp: int
    bits: int
    nonce: int = 0

    def __post_init__(self) -> None:
        for name in ("version", "timestamp", "bits", "nonce"):
            _check_u32(name, getattr(self, name))
        for name in ("prev_block_hash", "merkle_root"):
            value = getattr(self, name)
            if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
                raise ValueError(f"{name} must be 32 bytes")
            setattr(self, name, bytes(value))

    def serialize(self) -> bytes:
        """
        80-byte wire form, all integers little-endian, hash fields copied as stored.
        """
        return _HEADER_STRUCT.pack(
            self.version,
            self.prev_block_hash,
            self.merkle_root,
            self.timestamp,
            self.bits,
            self.nonce,
        )

    def hash(self) -> bytes:
        return sha256d(self.serialize())

    def hash_int(self) -> int:
        return digest_to_int_le(self.hash())

    def hash_hex(self) -> str:
        # block explorers show the digest byte-reversed
        return self.hash()[::-1].hex()

    def copy(self) -> "BlockHeader":
        return replace(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BlockHeader":
        if len(data) != HEADER_SIZE:
            raise ValueError(f"block header must be {HEADER_SIZE} bytes, got {len(data)}")
        version, prev_hash, merkle_root, timestamp, bits, nonce = _HEADER_STRUCT.unpack(bytes(data))
        return cls(
            version=version,
            prev_block_hash=prev_hash,
            merkle_root=merkle_root,
            timestamp=timestamp,
            bits=bits,
            nonce=nonce,
        )

    def __str__(self) -> str:
        return (
            f"BlockHeader{{Version:{self.version}, Timestamp:{self.timestamp}, "
            f"Bits:{self.bits:08x}, Nonce:{self.nonce}}}"
        )


def _now() -> int:
    return int(time.time()) & _U32_MAX


def create_test_header() -> BlockHeader:
    """Permissive-difficulty header used by the default session and benchmarks."""
    return BlockHeader(
        version=1,
        prev_block_hash=b"\x00" * 32,
        merkle_root=hashlib.sha256(b"rtx4080_gpu_mining_test").digest(),
        timestamp=_now(),
        bits=GENESIS_BITS,
        nonce=0,
    )


def create_custom_header(bits: int) -> BlockHeader:
    return BlockHeader(
        version=1,
        prev_block_hash=b"\x00" * 32,
        merkle_root=hashlib.sha256(b"custom_difficulty_test").digest(),
        timestamp=_now(),
        bits=bits,
        nonce=0,
    )
