from __future__ import annotations

import pytest

from batchminer.device import PythonScanDevice, create_device
from batchminer.header import create_test_header

BATCH = 4096


def test_bench_python_device_batch(benchmark):
    dev = PythonScanDevice()
    header80 = create_test_header().serialize()
    # target 0: nothing qualifies, the whole batch is scanned
    res = benchmark(dev.mine_batch, header80, 1, 0, BATCH)
    assert res.ok and not res.solved


def test_bench_numba_device_batch(benchmark):
    pytest.importorskip("numba")
    dev = create_device("numba")
    header80 = create_test_header().serialize()
    dev.mine_batch(header80, 1, 0, 16)  # compile outside the timed region
    res = benchmark(dev.mine_batch, header80, 1, 0, BATCH * 16)
    assert res.ok and not res.solved
