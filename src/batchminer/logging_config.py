import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: Optional[str] = None, verbose: bool = False) -> None:
    """Configure root logging for the application.

    - `level`: string like 'INFO' or 'DEBUG'. If None, uses env LOG_LEVEL or 'INFO'.
    - `verbose`: if True, the `batchminer` loggers drop to DEBUG regardless of `level`.
    """
    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    level_const = getattr(logging, level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level_const)

    # Ensure a single StreamHandler exists
    has_stream = any(type(h) is logging.StreamHandler for h in root.handlers)
    if not has_stream:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(sh)

    pkg = logging.getLogger("batchminer")
    if verbose:
        pkg.setLevel(logging.DEBUG)
    else:
        pkg.setLevel(logging.NOTSET)
