from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .target import meets_target

log = logging.getLogger("batchminer.device")

STATUS_OK = 0

BACKENDS = ("python", "numba")


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of one device call.

    - status: 0 when the batch ran, anything else is a device failure code.
    - nonce: solving nonce, or 0 when nothing in the batch met the target.
    - best_hash: abbreviated hash of the closest attempt, if the device tracks it.
    """
    status: int = STATUS_OK
    nonce: int = 0
    best_hash: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def solved(self) -> bool:
        return self.ok and self.nonce != 0


class BatchHashingDevice(Protocol):
    """
    Scans `count` consecutive nonces starting at `nonce_start` (wrapping at 2^32)
    over an 80-byte serialized header. Stateless across calls, never mutates
    the header bytes it is given.
    """

    name: str

    def mine_batch(self, header80: bytes, nonce_start: int, target: int, count: int) -> BatchResult:
        ...


def _check_header80(header80: bytes) -> None:
    if not isinstance(header80, (bytes, bytearray)) or len(header80) != 80:
        raise ValueError("header80 must be 80 bytes")


class PythonScanDevice:
    """hashlib-backed device: midstate of the 76-byte prefix, then one update per nonce."""

    name = "python"

    def mine_batch(self, header80: bytes, nonce_start: int, target: int, count: int) -> BatchResult:
        _check_header80(header80)
        if count <= 0:
            return BatchResult()

        prefix = hashlib.sha256(bytes(header80[:76]))
        best: Optional[int] = None

        n = nonce_start & 0xFFFFFFFF
        for _ in range(count):
            h = prefix.copy()
            h.update(n.to_bytes(4, "little"))
            digest = hashlib.sha256(h.digest()).digest()

            top = int.from_bytes(digest[28:32], "little")
            if best is None or top < best:
                best = top

            # nonce 0 cannot be reported (0 means "no solution"), keep scanning past it.
            # The top-word check rejects most misses before building the full integer.
            if n and top <= (target >> 224) and meets_target(int.from_bytes(digest, "little"), target):
                return BatchResult(nonce=n, best_hash=best)

            n = (n + 1) & 0xFFFFFFFF

        return BatchResult(best_hash=best)


def create_device(backend: str = "python") -> BatchHashingDevice:
    if backend == "python":
        return PythonScanDevice()
    if backend == "numba":
        from .fastscan_numba import NumbaScanDevice

        log.debug("compiling numba scanner (first call may take a while)")
        return NumbaScanDevice()
    raise ValueError(f"Unknown backend: {backend}")
