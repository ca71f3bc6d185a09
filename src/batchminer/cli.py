from __future__ import annotations

import argparse
import logging
import os
import platform
import signal
import sys
import threading

from .config import MinerConfig, load_config
from .device import BACKENDS, create_device
from .errors import ConfigError, DeviceFailure
from .header import BlockHeader, create_custom_header, create_test_header
from .logging_config import configure_logging
from .miner import Miner
from .target import DIFFICULTY_PRESETS, GENESIS_BITS, bits_to_target, parse_bits

log = logging.getLogger("batchminer.cli")

EXIT_SOLVED = 0
EXIT_STOPPED = 1
EXIT_FAILED = 2


def _preparse_config(argv: list[str] | None) -> MinerConfig:
    p0 = argparse.ArgumentParser(add_help=False)
    p0.add_argument("--config", default=None, help="Path to TOML config (optional).")
    ns, _ = p0.parse_known_args(argv)
    return load_config(ns.config)


def _print_system_info() -> None:
    print("[INFO] system")
    print(f"[INFO]   os:       {platform.system()} {platform.release()}")
    print(f"[INFO]   arch:     {platform.machine()}")
    print(f"[INFO]   cpus:     {os.cpu_count()}")
    print(f"[INFO]   python:   {sys.version.split()[0]}")
    print(f"[INFO]   backends: {', '.join(BACKENDS)}")


def _install_sigint(cancel: threading.Event) -> None:
    def _handle_sigint(signum, frame):
        print("\nShutdown signal received, finishing current batch...")
        cancel.set()
        # a second Ctrl+C interrupts for real
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _handle_sigint)


def _bits_arg(value: str) -> int:
    try:
        return parse_bits(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def main(argv: list[str] | None = None) -> int:
    try:
        cfg = _preparse_config(argv)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return EXIT_FAILED

    p = argparse.ArgumentParser(prog="batchminer")
    p.add_argument("--config", default=None, help="Path to TOML config (optional).")

    p.add_argument("--selftest", action="store_true", help="Hash the genesis header and exit.")
    p.add_argument("--info", action="store_true", help="Print system information and exit.")
    p.add_argument("--benchmark", type=float, default=None, metavar="SECONDS",
                   help="Mine the test header for SECONDS, then print a summary.")

    diff = p.add_mutually_exclusive_group()
    diff.add_argument("--bits", type=_bits_arg, default=None,
                      help="Compact difficulty bits, hex (e.g. 1d00ffff).")
    diff.add_argument("--preset", choices=sorted(DIFFICULTY_PRESETS), default=None,
                      help="Named difficulty level.")

    p.add_argument("--backend", choices=BACKENDS, default=None, help=f"Hashing device (default: {cfg.backend}).")
    p.add_argument("--batch-size", type=int, default=None, help=f"Nonces per device call (default: {cfg.batch_size}).")
    p.add_argument("--report-interval", type=float, default=None, help="Seconds between progress lines.")
    p.add_argument("--debug", action="store_true", default=None, help="Verbose mining output.")

    args = p.parse_args(argv)

    if args.selftest:
        genesis = BlockHeader(
            version=1,
            prev_block_hash=b"\x00" * 32,
            merkle_root=bytes.fromhex("4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b")[::-1],
            timestamp=1231006505,
            bits=GENESIS_BITS,
            nonce=2083236893,
        )
        print(genesis.hash_hex())
        return 0

    if args.info:
        _print_system_info()
        return 0

    bits = args.bits
    if args.preset is not None:
        bits = DIFFICULTY_PRESETS[args.preset]

    try:
        cfg = cfg.with_overrides(
            backend=args.backend,
            batch_size=args.batch_size,
            report_interval=args.report_interval,
            debug=args.debug,
            bits=bits,
        )
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return EXIT_FAILED

    configure_logging(level=cfg.log_level, verbose=cfg.debug)

    device = create_device(cfg.backend)
    miner = Miner(device, cfg)
    # must exist before the SIGINT handler is installed
    cancel = threading.Event()
    _install_sigint(cancel)
    log.debug("device=%s batch_size=%d bits=%08x", device.name, cfg.batch_size, cfg.bits)

    if cfg.bits == GENESIS_BITS:
        header = create_test_header()
    else:
        header = create_custom_header(cfg.bits)

    try:
        if args.benchmark is not None:
            summary = miner.benchmark(args.benchmark, header, cancel=cancel)
            return EXIT_FAILED if summary.error else EXIT_SOLVED

        print("Press Ctrl+C to stop.")
        result = miner.mine(header, bits_to_target(header.bits), cancel=cancel)
    except DeviceFailure as e:
        print(f"mining failed: {e}", file=sys.stderr)
        return EXIT_FAILED

    if result.solved:
        return EXIT_SOLVED
    print(f"Stopped without a solution after {result.stats.hashes_tried} hashes.")
    return EXIT_STOPPED


if __name__ == "__main__":
    raise SystemExit(main())
