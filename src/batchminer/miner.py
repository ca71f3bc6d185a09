from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import MinerConfig
from .device import BatchHashingDevice
from .errors import DeviceFailure
from .formatting import format_best_hash, format_elapsed, format_hash_number
from .hashing import abbreviate_hash
from .header import BlockHeader, create_test_header
from .reporter import StatsReporter
from .stats import MiningStats, StatsSnapshot
from .target import bits_to_target, difficulty_from_target, target_to_bits

log = logging.getLogger("batchminer.miner")

_U32_MAX = 0xFFFFFFFF

# how long stop() on the reporter may block at session end
_REPORTER_JOIN_TIMEOUT = 5.0


def _describe_target(target: int) -> str:
    if target <= 0:
        return f"{target:064x}"
    return f"{target:064x} (bits {target_to_bits(target):08x}, difficulty {difficulty_from_target(target):.6g})"


class MinerStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SOLVED = "solved"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class MineResult:
    status: MinerStatus
    header: Optional[BlockHeader]
    stats: StatsSnapshot
    rounds: int

    @property
    def solved(self) -> bool:
        return self.status is MinerStatus.SOLVED


@dataclass(frozen=True)
class BenchmarkSummary:
    requested_duration: float
    duration: float
    hashes_tried: int
    hash_rate: float
    blocks_found: int
    best_hash: Optional[int]
    power_watts: float
    solved_header: Optional[BlockHeader] = None
    error: Optional[str] = None

    @property
    def coins_per_day(self) -> float:
        # naive network-free estimate kept for comparison with older runs
        return self.hash_rate * 86400 / 1e18

    @property
    def efficiency(self) -> float:
        """MH/W at the configured power draw."""
        if self.power_watts <= 0:
            return 0.0
        return self.hash_rate / 1e6 / self.power_watts

    def lines(self) -> List[str]:
        out = [
            "[BENCH] results",
            f"[BENCH] runtime:        {format_elapsed(self.duration)}",
            f"[BENCH] hashes:         {self.hashes_tried}",
            f"[BENCH] avg hash rate:  {format_hash_number(self.hash_rate)}",
            f"[BENCH] blocks found:   {self.blocks_found}",
            f"[BENCH] best hash:      {format_best_hash(self.best_hash)}",
            f"[BENCH] coins/day:      {self.coins_per_day:.12f}",
            f"[BENCH] efficiency:     {self.efficiency:.2f} MH/W",
        ]
        if self.solved_header is not None:
            out.append(f"[BENCH] block found during benchmark: nonce={self.solved_header.nonce}")
        if self.error:
            out.append(f"[BENCH] error: {self.error}")
        return out


class Miner:
    """
    Drives a batch hashing device over the nonce space of one header.

    One session at a time: mine() blocks until the header is solved, the
    cancellation token is set, or the device fails.
    """

    def __init__(
        self,
        device: BatchHashingDevice,
        config: Optional[MinerConfig] = None,
        stats: Optional[MiningStats] = None,
        emit: Callable[[str], None] = print,
        clock: Callable[[], float] = time.time,
    ):
        self.device = device
        self.cfg = config or MinerConfig()
        self.stats = stats or MiningStats()
        self.emit = emit
        self._clock = clock
        self._lock = threading.Lock()
        self._status = MinerStatus.IDLE
        self._cancel: Optional[threading.Event] = None

    @property
    def batch_size(self) -> int:
        return self.cfg.batch_size

    @property
    def status(self) -> MinerStatus:
        with self._lock:
            return self._status

    def _set_status(self, status: MinerStatus) -> None:
        with self._lock:
            self._status = status

    def stop(self) -> None:
        """Request cancellation of the running session; takes effect after the current batch."""
        with self._lock:
            if self._cancel is not None:
                self._cancel.set()

    def mine(
        self,
        header: BlockHeader,
        target: int,
        cancel: Optional[threading.Event] = None,
        nonce_start: int = 0,
    ) -> MineResult:
        """
        Search nonces for `header` until its hash is <= `target`.

        The header is updated in place: `nonce` on success, `timestamp` each time
        the 32-bit nonce space is exhausted. Returns a SOLVED or STOPPED result;
        raises DeviceFailure if the device reports an error.
        """
        if not 0 <= nonce_start <= _U32_MAX:
            raise ValueError("nonce_start must fit in 32 bits")
        cancel = cancel if cancel is not None else threading.Event()

        with self._lock:
            if self._status is MinerStatus.RUNNING:
                raise RuntimeError("a mining session is already running")
            self._status = MinerStatus.RUNNING
            self._cancel = cancel

        self.stats.reset()
        finished = threading.Event()
        reporter = StatsReporter(
            self.stats,
            finished,
            interval=self.cfg.report_interval,
            emit=self.emit,
            debug=self.cfg.debug,
            batch_size=self.batch_size,
            power_watts=self.cfg.power_watts,
            device_name=getattr(self.device, "name", "device"),
            cancel=cancel,
        )
        reporter.start()

        try:
            return self._run(header, target, cancel, nonce_start)
        except DeviceFailure as e:
            self._set_status(MinerStatus.FAILED)
            log.error("mining aborted: %s (hashes so far: %d)", e, self.stats.get_hashes())
            raise
        except BaseException:
            self._set_status(MinerStatus.FAILED)
            raise
        finally:
            reporter.stop(_REPORTER_JOIN_TIMEOUT)
            with self._lock:
                self._cancel = None

    def _run(
        self,
        header: BlockHeader,
        target: int,
        cancel: threading.Event,
        nonce_start: int,
    ) -> MineResult:
        batch = self.batch_size
        nonce = nonce_start
        rounds = 0

        if self.cfg.debug:
            log.debug("header: %s", header)
            log.debug("target: %s", _describe_target(target))
            log.debug("batch size: %d", batch)
        log.info("mining started on %s device", getattr(self.device, "name", "batch"))

        while not cancel.is_set():
            rounds += 1
            if self.cfg.debug:
                log.debug("round %d, nonce start %d", rounds, nonce)

            res = self.device.mine_batch(header.serialize(), nonce, target, batch)
            if res.status != 0:
                raise DeviceFailure(res.status, nonce_start=nonce)

            # the whole batch counts as tried, whichever nonce matched
            self.stats.increment_hashes(batch)
            if res.best_hash is not None:
                self.stats.update_best_hash(res.best_hash)

            if res.nonce != 0:
                header.nonce = res.nonce
                self.stats.increment_blocks()
                self.stats.update_best_hash(abbreviate_hash(header.hash()))
                self._set_status(MinerStatus.SOLVED)
                snap = self.stats.get_detailed_stats()
                self._report_solution(header, target, snap)
                return MineResult(MinerStatus.SOLVED, header, snap, rounds)

            nonce += batch
            if nonce > _U32_MAX:
                header.timestamp = int(self._clock()) & _U32_MAX
                nonce = 0
                if self.cfg.debug:
                    log.debug("nonce overflow, timestamp refreshed to %d", header.timestamp)

        self._set_status(MinerStatus.STOPPED)
        snap = self.stats.get_detailed_stats()
        log.info(
            "mining stopped after %d rounds, %d hashes, %s",
            rounds,
            snap.hashes_tried,
            format_hash_number(snap.hash_rate),
        )
        return MineResult(MinerStatus.STOPPED, None, snap, rounds)

    def _report_solution(self, header: BlockHeader, target: int, snap: StatsSnapshot) -> None:
        self.emit("[BLOCK] block found")
        self.emit(f"[BLOCK] nonce:      {header.nonce}")
        self.emit(f"[BLOCK] hash:       {header.hash_hex()}")
        self.emit(f"[BLOCK] target:     {_describe_target(target)}")
        self.emit(f"[BLOCK] hashes:     {snap.hashes_tried}")
        self.emit(f"[BLOCK] hash rate:  {format_hash_number(snap.hash_rate)}")
        self.emit(f"[BLOCK] time:       {format_elapsed(snap.elapsed)}")
        self.emit(f"[BLOCK] blocks:     {snap.blocks_found}")
        self.emit(f"[BLOCK] best hash:  {format_best_hash(snap.best_hash)}")

    def benchmark(
        self,
        duration: float,
        header: Optional[BlockHeader] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BenchmarkSummary:
        """
        Mine for `duration` seconds, then stop through the same cancellation
        token a signal would use. Passing `cancel` lets the caller end it early.
        """
        if duration < 0:
            raise ValueError("duration must be >= 0")
        header = header if header is not None else create_test_header()
        target = bits_to_target(header.bits)

        self.emit(f"[BENCH] running {getattr(self.device, 'name', 'device')} benchmark for {duration:g}s")
        cancel = cancel if cancel is not None else threading.Event()
        timer = threading.Timer(duration, cancel.set)
        timer.daemon = True

        solved: Optional[BlockHeader] = None
        error: Optional[str] = None
        t0 = time.monotonic()
        timer.start()
        try:
            result = self.mine(header, target, cancel)
            if result.solved:
                solved = result.header
        except DeviceFailure as e:
            error = str(e)
        finally:
            timer.cancel()
        actual = time.monotonic() - t0

        snap = self.stats.get_detailed_stats()
        summary = BenchmarkSummary(
            requested_duration=duration,
            duration=actual,
            hashes_tried=snap.hashes_tried,
            hash_rate=snap.hash_rate,
            blocks_found=snap.blocks_found,
            best_hash=snap.best_hash,
            power_watts=self.cfg.power_watts,
            solved_header=solved,
            error=error,
        )
        for line in summary.lines():
            self.emit(line)
        return summary
