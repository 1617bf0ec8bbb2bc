"""Serial port access with per-call timeouts, built on pyserial."""

from __future__ import annotations

import serial

from tinylink.hal import WAIT_FOREVER_MS, ErrorCode, TinyError

__all__ = ["bits_to_baud", "Serial", "DEFAULT_TIMEOUT_MS"]

# Timeout used by plain read/send calls when none is configured.
DEFAULT_TIMEOUT_MS = 100

_SUPPORTED_BAUDS = (115200, 57600, 38400)
_FALLBACK_BAUD = 9600


def bits_to_baud(bits: int) -> int:
    """Map a requested speed to a supported baud rate.

    115200, 57600 and 38400 are used as given; anything else becomes 9600.
    """
    return bits if bits in _SUPPORTED_BAUDS else _FALLBACK_BAUD


def _seconds(timeout_ms: int) -> float | None:
    if not 0 <= timeout_ms <= WAIT_FOREVER_MS:
        raise ValueError(f"timeout must be in range 0..{WAIT_FOREVER_MS}, got {timeout_ms}")
    if timeout_ms == WAIT_FOREVER_MS:
        return None
    return timeout_ms / 1000.0


class Serial:
    """A serial device opened by path or pyserial URL.

    ``timeout_ms`` bounds every read and write; WAIT_FOREVER_MS means no limit.
    The port is raw 8N1 without flow control.
    """

    def __init__(self, dev: str, timeout_ms: int = 0) -> None:
        self.dev = dev
        self.timeout_ms = timeout_ms
        self._port: serial.SerialBase | None = None

    @property
    def is_open(self) -> bool:
        """Whether the port is currently open."""
        return self._port is not None

    def begin(self, speed: int) -> None:
        """Open the port at ``speed`` bits per second.

        Raises TinyError with ErrorCode.IO if the device cannot be opened.
        """
        if self._port is not None:
            self.end()
        timeout = _seconds(self.timeout_ms)
        try:
            port = serial.serial_for_url(
                self.dev,
                baudrate=bits_to_baud(speed),
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=timeout,
                write_timeout=timeout,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise TinyError(ErrorCode.IO, f"failed to open serial device {self.dev!r}: {exc}") from exc
        try:
            port.reset_input_buffer()
            port.reset_output_buffer()
        except (serial.SerialException, OSError) as exc:
            port.close()
            raise TinyError(ErrorCode.IO, f"failed to flush serial device {self.dev!r}: {exc}") from exc
        self._port = port

    def end(self) -> None:
        """Close the port; does nothing if it is not open."""
        port, self._port = self._port, None
        if port is not None:
            port.close()

    def _require_port(self) -> serial.SerialBase:
        if self._port is None:
            raise TinyError(ErrorCode.IO, "serial port is not open")
        return self._port

    def read_bytes(self, size: int) -> bytes:
        """Read up to ``size`` bytes, waiting at most ``timeout_ms`` for the first.

        Returns an empty bytes object if nothing arrived in time.
        """
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        port = self._require_port()
        if size == 0:
            return b""
        try:
            port.timeout = _seconds(self.timeout_ms)
            first = port.read(1)
            if not first:
                return b""
            rest = min(size - 1, port.in_waiting)
            if rest <= 0:
                return bytes(first)
            port.timeout = 0
            return bytes(first) + bytes(port.read(rest))
        except (serial.SerialException, OSError) as exc:
            raise TinyError(ErrorCode.IO, f"serial read failed: {exc}") from exc

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes sent.

        Returns 0 if the port did not accept data within ``timeout_ms``.
        """
        port = self._require_port()
        if not data:
            return 0
        try:
            port.write_timeout = _seconds(self.timeout_ms)
            sent = port.write(bytes(data))
        except serial.SerialTimeoutException:
            return 0
        except (serial.SerialException, OSError) as exc:
            raise TinyError(ErrorCode.IO, f"serial write failed: {exc}") from exc
        return len(data) if sent is None else sent

    def __enter__(self) -> Serial:
        return self

    def __exit__(self, *args: object) -> None:
        self.end()