from __future__ import annotations

from batchminer.hashing import abbreviate_hash, sha256d
from batchminer.header import create_test_header


def test_bench_sha256d_80bytes(benchmark):
    data = b"\x00" * 80
    benchmark(sha256d, data)


def test_bench_header_nonce_step(benchmark):
    header = create_test_header()

    def work():
        # one nonce step the way the mining loop sees it: bump, serialize, hash
        header.nonce = (header.nonce + 1) & 0xFFFFFFFF
        abbreviate_hash(header.hash())

    benchmark(work)
