from __future__ import annotations


class MinerError(Exception):
    """Base class for batchminer errors."""


class DeviceFailure(MinerError):
    """The batch hashing device returned a non-zero status; the session is over."""

    def __init__(self, code: int, nonce_start: int | None = None):
        self.code = code
        self.nonce_start = nonce_start
        msg = f"batch hashing device failed with status {code}"
        if nonce_start is not None:
            msg += f" (nonce_start={nonce_start})"
        super().__init__(msg)


class ConfigError(MinerError):
    pass
