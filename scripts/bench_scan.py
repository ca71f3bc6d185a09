import json
import os
import platform
import sys

from batchminer.config import MinerConfig
from batchminer.device import create_device
from batchminer.miner import Miner


def main():
    backend = sys.argv[1] if len(sys.argv) > 1 else "python"
    seconds = float(sys.argv[2]) if len(sys.argv) > 2 else 5.0

    # Small batches so the timer is honoured closely on slow runners
    cfg = MinerConfig(batch_size=20000, backend=backend, report_interval=1.0)
    device = create_device(cfg.backend)

    # Warm up (Numba compile happens here if available, not inside timing)
    device.mine_batch(b"\x01" * 80, 1, 0, 1)

    summary = Miner(device, cfg).benchmark(seconds)

    out = {
        "backend": device.name,
        "trials": summary.hashes_tried,
        "seconds": summary.duration,
        "mhps": summary.hash_rate / 1e6,
        "blocks_found": summary.blocks_found,
        "best_hash": summary.best_hash,
        "error": summary.error,
        "python": sys.version.split()[0],
        "platform": platform.platform(),
    }

    print(json.dumps(out, indent=2))
    os.makedirs("results", exist_ok=True)
    with open("results/bench_scan.json", "w") as f:
        json.dump(out, f, indent=2)

    if summary.error or summary.hash_rate <= 0:
        raise SystemExit("bench invalid: no hash rate")


if __name__ == "__main__":
    main()
