import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from batchminer.stats import CLOSEST_ATTEMPTS_LIMIT, MiningStats


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def test_concurrent_increments_are_not_lost():
    stats = MiningStats()
    workers, calls, k = 8, 2000, 7

    def work():
        for _ in range(calls):
            stats.increment_hashes(k)

    with ThreadPoolExecutor(max_workers=workers) as ex:
        for f in [ex.submit(work) for _ in range(workers)]:
            f.result()

    assert stats.get_hashes() == workers * calls * k


def test_concurrent_best_hash_updates_keep_minimum():
    stats = MiningStats()
    rng = random.Random(5)
    chunks = [[rng.getrandbits(32) for _ in range(500)] for _ in range(6)]

    threads = [threading.Thread(target=lambda c=c: [stats.update_best_hash(v) for v in c]) for c in chunks]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert stats.best_hash == min(min(c) for c in chunks)
    assert len(stats.closest_attempts()) <= CLOSEST_ATTEMPTS_LIMIT


def test_blocks_counter():
    stats = MiningStats()
    stats.increment_blocks()
    stats.increment_blocks()
    assert stats.get_detailed_stats().blocks_found == 2


def test_history_is_bounded_and_fifo():
    stats = MiningStats()
    values = list(range(100, 85, -1))  # 15 strictly improving values
    for v in values:
        assert stats.update_best_hash(v) is True

    history = stats.closest_attempts()
    assert len(history) == CLOSEST_ATTEMPTS_LIMIT == 10
    assert history == tuple(values[-10:])
    assert stats.best_hash == 86


def test_worse_candidate_is_ignored():
    stats = MiningStats()
    stats.update_best_hash(50)
    assert stats.update_best_hash(50) is False
    assert stats.update_best_hash(70) is False
    assert stats.best_hash == 50
    assert stats.closest_attempts() == (50,)


def test_best_hash_is_running_minimum():
    stats = MiningStats()
    rng = random.Random(11)
    lowest = None
    for _ in range(300):
        v = rng.getrandbits(32)
        stats.update_best_hash(v)
        lowest = v if lowest is None else min(lowest, v)
        assert stats.best_hash == lowest


def test_zero_is_a_real_best_hash():
    stats = MiningStats()
    assert stats.best_hash is None
    stats.update_best_hash(0)
    assert stats.best_hash == 0
    # nothing can beat zero
    assert stats.update_best_hash(1) is False
    assert stats.closest_attempts() == (0,)


def test_rate_is_zero_at_start():
    clock = FakeClock()
    stats = MiningStats(clock=clock)
    stats.increment_hashes(1_000_000)
    snap = stats.get_detailed_stats()
    assert snap.elapsed == 0.0
    assert snap.hash_rate == 0.0
    assert snap.hashes_tried == 1_000_000


def test_rate_after_time_passes():
    clock = FakeClock()
    stats = MiningStats(clock=clock)
    stats.increment_hashes(500)
    clock.t += 2.0
    snap = stats.get_detailed_stats()
    assert snap.elapsed == pytest.approx(2.0)
    assert snap.hash_rate == pytest.approx(250.0)
    assert snap.best_hash is None


def test_increment_updates_last_update():
    clock = FakeClock()
    stats = MiningStats(clock=clock)
    clock.t += 5
    stats.increment_hashes(1)
    assert stats.last_update == clock.t


def test_reset_clears_everything():
    clock = FakeClock()
    stats = MiningStats(clock=clock)
    stats.increment_hashes(10)
    stats.increment_blocks()
    stats.update_best_hash(3)
    clock.t += 10
    stats.reset()
    snap = stats.get_detailed_stats()
    assert (snap.hashes_tried, snap.blocks_found, snap.elapsed, snap.best_hash) == (0, 0, 0.0, None)
    assert stats.closest_attempts() == ()


def test_negative_increment_rejected():
    with pytest.raises(ValueError):
        MiningStats().increment_hashes(-1)
