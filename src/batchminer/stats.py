from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional, Tuple

# How many "closest attempt" values are remembered.
CLOSEST_ATTEMPTS_LIMIT = 10

# Below this many seconds a hash rate is reported as 0.0.
MIN_RATE_ELAPSED = 1e-3


@dataclass(frozen=True)
class StatsSnapshot:
    hashes_tried: int
    blocks_found: int
    elapsed: float
    hash_rate: float
    best_hash: Optional[int]


class MiningStats:
    """
    Counters shared by the mining loop and the reporter.

    Every read and write goes through a single lock, so a snapshot never
    mixes fields from two different updates.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._hashes_tried = 0
        self._blocks_found = 0
        self._start_time = clock()
        self._last_update = self._start_time
        self._best_hash: Optional[int] = None
        self._closest: Deque[int] = deque(maxlen=CLOSEST_ATTEMPTS_LIMIT)

    def reset(self) -> None:
        with self._lock:
            self._hashes_tried = 0
            self._blocks_found = 0
            self._start_time = self._clock()
            self._last_update = self._start_time
            self._best_hash = None
            self._closest.clear()

    def increment_hashes(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be >= 0")
        with self._lock:
            self._hashes_tried += count
            self._last_update = self._clock()

    def get_hashes(self) -> int:
        with self._lock:
            return self._hashes_tried

    def increment_blocks(self) -> None:
        with self._lock:
            self._blocks_found += 1

    def update_best_hash(self, candidate: int) -> bool:
        """
        Record candidate if it beats the current best (or nothing is recorded yet).
        Returns True when the best value changed.
        """
        with self._lock:
            if self._best_hash is not None and candidate >= self._best_hash:
                return False
            self._best_hash = candidate
            self._closest.append(candidate)
            return True

    @property
    def best_hash(self) -> Optional[int]:
        with self._lock:
            return self._best_hash

    @property
    def last_update(self) -> float:
        with self._lock:
            return self._last_update

    def closest_attempts(self) -> Tuple[int, ...]:
        """Oldest first."""
        with self._lock:
            return tuple(self._closest)

    def get_detailed_stats(self) -> StatsSnapshot:
        with self._lock:
            elapsed = max(0.0, self._clock() - self._start_time)
            if elapsed < MIN_RATE_ELAPSED:
                rate = 0.0
            else:
                rate = self._hashes_tried / elapsed
            return StatsSnapshot(
                hashes_tried=self._hashes_tried,
                blocks_found=self._blocks_found,
                elapsed=elapsed,
                hash_rate=rate,
                best_hash=self._best_hash,
            )
