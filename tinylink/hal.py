"""Basic platform services: error codes, clocks, sleeping and logging."""

from __future__ import annotations

import sys
import time
from enum import IntEnum, IntFlag

__all__ = [
    "ErrorCode",
    "TinyError",
    "LogLevel",
    "Flag",
    "EVENT_BITS_ALL",
    "EVENT_BITS_CLEAR",
    "EVENT_BITS_LEAVE",
    "WAIT_FOREVER_MS",
    "millis",
    "micros",
    "sleep",
    "sleep_us",
    "set_log_level",
    "get_log_level",
    "log",
]

_UINT32_MASK = 0xFFFFFFFF

EVENT_BITS_ALL = 0xFF
EVENT_BITS_CLEAR = 1
EVENT_BITS_LEAVE = 0

# Timeout value that means "wait without limit".
WAIT_FOREVER_MS = 0xFFFFFFFF


class ErrorCode(IntEnum):
    """Result codes used across the protocol stack."""

    SUCCESS = 0
    FAILED = -1
    TIMEOUT = -2
    DATA_TOO_LARGE = -3
    INVALID_DATA = -4
    BUSY = -5
    OUT_OF_SYNC = -6
    AGAIN = -7
    WRONG_CRC = -8
    OUT_OF_MEMORY = -9
    UNKNOWN_PEER = -10
    IO = -11


class TinyError(Exception):
    """An operation failed with one of the ErrorCode values."""

    def __init__(self, code: ErrorCode | int, message: str | None = None) -> None:
        self.code = ErrorCode(code)
        if self.code is ErrorCode.SUCCESS:
            raise ValueError("SUCCESS is not an error code")
        self.message = message or self.code.name.lower().replace("_", " ")
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} ({self.code.name}, {int(self.code)})"


class LogLevel(IntEnum):
    """Severity of a log message; lower is more severe."""

    CRIT = 0
    ERR = 1
    WRN = 2
    INFO = 3
    DEB = 4


class Flag(IntFlag):
    """Flags accepted by blocking API calls."""

    NO_WAIT = 0
    READ_ALL = 1
    LOCK_SEND = 2
    WAIT_FOREVER = 0x80


_log_level = 0


def millis() -> int:
    """Return a monotonic timestamp in milliseconds, wrapped to 32 bits."""
    return (time.monotonic_ns() // 1_000_000) & _UINT32_MASK


def micros() -> int:
    """Return a monotonic timestamp in microseconds, wrapped to 32 bits."""
    return (time.monotonic_ns() // 1_000) & _UINT32_MASK


def _check_uint32(value: int, name: str) -> int:
    if not 0 <= value <= _UINT32_MASK:
        raise ValueError(f"{name} must be in range 0..{_UINT32_MASK}, got {value}")
    return value


def sleep(ms: int) -> None:
    """Sleep for the given number of milliseconds."""
    time.sleep(_check_uint32(ms, "ms") / 1000.0)


def sleep_us(us: int) -> None:
    """Sleep for the given number of microseconds."""
    time.sleep(_check_uint32(us, "us") / 1_000_000.0)


def set_log_level(level: int) -> None:
    """Set the logging threshold; 0 disables all logs.

    A message is written when its level is below this threshold.
    """
    global _log_level
    if not 0 <= level <= 0xFF:
        raise ValueError(f"log level must be in range 0..255, got {level}")
    _log_level = int(level)


def get_log_level() -> int:
    """Return the current logging threshold."""
    return _log_level


def log(level: int, message: str) -> None:
    """Write a timestamped message to stderr if its level is enabled."""
    if level < _log_level:
        sys.stderr.write(f"{millis():08d} ms: {message}")