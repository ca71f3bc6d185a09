from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .formatting import format_best_hash, format_elapsed, format_hash_number
from .stats import MiningStats

log = logging.getLogger("batchminer.reporter")

DEFAULT_REPORT_INTERVAL = 3.0


class StatsReporter(threading.Thread):
    """
    Emits a progress line every `interval` seconds until `finished` is set, or
    until the session's `cancel` token is seen set at a tick.

    Snapshots may lag the mining loop by one batch; a line already being
    formatted when the session ends is still emitted.
    """

    def __init__(
        self,
        stats: MiningStats,
        finished: threading.Event,
        interval: float = DEFAULT_REPORT_INTERVAL,
        emit: Callable[[str], None] = print,
        debug: bool = False,
        batch_size: Optional[int] = None,
        power_watts: float = 320.0,
        device_name: str = "device",
        cancel: Optional[threading.Event] = None,
    ):
        super().__init__(name="batchminer-reporter", daemon=True)
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.stats = stats
        self.finished = finished
        self.interval = interval
        self.emit = emit
        self.debug = debug
        self.batch_size = batch_size
        self.power_watts = power_watts
        self.device_name = device_name
        self.cancel = cancel
        self.ticks = 0

    def format_line(self) -> str:
        snap = self.stats.get_detailed_stats()
        line = (
            f"[STATS] {self.device_name}: {format_hash_number(snap.hash_rate)} "
            f"hashes={snap.hashes_tried} time={format_elapsed(snap.elapsed)}"
        )
        if self.debug:
            mhps = snap.hash_rate / 1e6
            eff = mhps / self.power_watts if self.power_watts > 0 else 0.0
            line += (
                f" batch={self.batch_size} blocks={snap.blocks_found}"
                f" best={format_best_hash(snap.best_hash)}"
                f" eff={eff:.2f} MH/W (~{self.power_watts:g}W)"
            )
        return line

    def run(self) -> None:
        log.debug("reporter started (interval=%ss)", self.interval)
        while not self.finished.wait(self.interval):
            if self.cancel is not None and self.cancel.is_set():
                break
            self.ticks += 1
            self.emit(self.format_line())
        log.debug("reporter stopped after %d ticks", self.ticks)

    def stop(self, timeout: Optional[float] = None) -> None:
        self.finished.set()
        if self.is_alive():
            self.join(timeout)
