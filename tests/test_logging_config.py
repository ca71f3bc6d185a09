import logging

import pytest

from batchminer.logging_config import LOG_FORMAT, configure_logging


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    pkg = logging.getLogger("batchminer")
    saved_pkg = pkg.level
    root.handlers = []
    yield root
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    pkg.setLevel(saved_pkg)


def _streams(root):
    return [h for h in root.handlers if type(h) is logging.StreamHandler]


def test_single_stream_handler(clean_root):
    configure_logging("warning")
    configure_logging("info")
    handlers = _streams(clean_root)
    assert len(handlers) == 1
    assert handlers[0].formatter._fmt == LOG_FORMAT
    assert clean_root.level == logging.INFO


def test_env_level(clean_root, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    configure_logging()
    assert clean_root.level == logging.ERROR


def test_verbose_lowers_package_logger(clean_root):
    configure_logging("WARNING", verbose=True)
    assert logging.getLogger("batchminer").level == logging.DEBUG
    assert logging.getLogger("batchminer.miner").isEnabledFor(logging.DEBUG)

    configure_logging("WARNING", verbose=False)
    assert logging.getLogger("batchminer").level == logging.NOTSET
