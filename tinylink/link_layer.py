"""Link layers: the common interface and a serial-port transport."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from tinylink.hal import ErrorCode, TinyError
from tinylink.serial_port import Serial
from tinylink.sync import EventGroup, Mutex

__all__ = [
    "LinkLayer",
    "SerialLinkLayer",
    "OnFrameRead",
    "OnFrameSend",
    "DEFAULT_MTU",
    "DEFAULT_BLOCK_SIZE",
    "DEFAULT_SPEED",
]

# Called with the peer address and the received frame.
OnFrameRead = Callable[[int, bytes], None]
# Called with the peer address and the frame that was sent.
OnFrameSend = Callable[[int, bytes], None]

DEFAULT_MTU = 16384
DEFAULT_BLOCK_SIZE = 32
DEFAULT_SPEED = 115200

_TX_QUEUE_FREE = 1
_TX_MESSAGE_SENDING = 4


class LinkLayer(ABC):
    """Common interface of every link layer.

    ``mtu`` is the largest payload in bytes and may only be changed before
    begin(). ``timeout`` is the time in milliseconds that the Rx/Tx steps may
    block; it is not the timeout given to put().
    """

    def __init__(self) -> None:
        self.mtu = DEFAULT_MTU
        self.timeout = 0

    @abstractmethod
    def begin(self, on_read: OnFrameRead | None, on_send: OnFrameSend | None) -> None:
        """Start the protocol and attach callbacks for received and sent frames.

        Raises TinyError if the layer cannot be started.
        """

    @abstractmethod
    def end(self) -> None:
        """Stop the protocol."""

    @abstractmethod
    def run_rx(self) -> None:
        """Run one step of the receiving side."""

    @abstractmethod
    def run_tx(self) -> None:
        """Run one step of the sending side."""

    @abstractmethod
    def put(self, data: bytes, timeout: int) -> bool:
        """Queue ``data`` for sending; return False if it could not be queued in time."""

    @abstractmethod
    def flush_tx(self) -> None:
        """Drop the frame being sent, if possible."""


class SerialLinkLayer(LinkLayer):
    """A link layer that carries frames over a serial port.

    Received bytes are read in blocks of at most ``block_size`` and passed to
    parse_data(); outgoing bytes come from get_data() and are written to the
    port. As given here every received block is delivered as one frame and
    every queued frame is sent as is; framing protocols override
    parse_data(), get_data() and put().
    """

    def __init__(self, dev: str, block_size: int = DEFAULT_BLOCK_SIZE, speed: int = DEFAULT_SPEED) -> None:
        super().__init__()
        if block_size <= 0:
            raise ValueError(f"block size must be positive, got {block_size}")
        self.block_size = block_size
        self.speed = speed
        self._serial = Serial(dev)
        self._events = EventGroup()
        self._mutex = Mutex()
        self._frame = b""
        self._pending = b""
        self._flush = False
        self._on_read: OnFrameRead | None = None
        self._on_send: OnFrameSend | None = None

    @property
    def is_open(self) -> bool:
        """Whether the serial port is open."""
        return self._serial.is_open

    def begin(self, on_read: OnFrameRead | None, on_send: OnFrameSend | None) -> None:
        """Start the link and open the serial port at ``speed``.

        Raises TinyError with ErrorCode.IO if the port cannot be opened.
        """
        self._on_read = on_read
        self._on_send = on_send
        with self._mutex:
            self._frame = b""
            self._pending = b""
            self._flush = False
        self._events.clear(_TX_MESSAGE_SENDING)
        self._events.set(_TX_QUEUE_FREE)
        self._serial.timeout_ms = self.timeout
        self._serial.begin(self.speed)

    def end(self) -> None:
        """Close the serial port and drop any frame waiting to be sent."""
        self._serial.end()
        self._events.clear(_TX_MESSAGE_SENDING | _TX_QUEUE_FREE)
        with self._mutex:
            self._frame = b""
            self._pending = b""
            self._flush = False

    def run_rx(self) -> None:
        """Read one block from the port and feed it to parse_data()."""
        view = memoryview(self._serial.read_bytes(self.block_size))
        while view:
            consumed = self.parse_data(bytes(view))
            if consumed <= 0:
                break
            view = view[consumed:]

    def run_tx(self) -> None:
        """Take one block from get_data() and write it to the port.

        Writing stops early if the port accepts nothing in time.
        """
        view = memoryview(self.get_data(self.block_size))
        while view:
            sent = self._serial.write(bytes(view))
            if sent <= 0:
                break
            view = view[sent:]

    def put(self, data: bytes, timeout: int) -> bool:
        """Queue one frame, waiting up to ``timeout`` ms for the previous one to leave.

        Raises TinyError with ErrorCode.DATA_TOO_LARGE if ``data`` exceeds the mtu.
        """
        frame = bytes(data)
        if len(frame) > self.mtu:
            raise TinyError(
                ErrorCode.DATA_TOO_LARGE,
                f"frame of {len(frame)} bytes exceeds mtu of {self.mtu}",
            )
        if not self._events.wait(_TX_QUEUE_FREE, True, timeout):
            return False
        with self._mutex:
            self._flush = False
            self._frame = frame
            self._pending = frame
        self._events.set(_TX_MESSAGE_SENDING)
        return True

    def flush_tx(self) -> None:
        """Ask the sending side to drop the frame in progress."""
        with self._mutex:
            self._flush = True

    def parse_data(self, data: bytes) -> int:
        """Handle received bytes and return how many were consumed."""
        received = bytes(data)
        if received and self._on_read is not None:
            self._on_read(0, received)
        return len(received)

    def get_data(self, size: int) -> bytes:
        """Return up to ``size`` bytes of the frame being sent.

        Waits up to ``timeout`` ms for a frame. When the last part of a frame
        is handed out, the on_send callback is called and the queue is freed.
        """
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        if not self._events.wait(_TX_MESSAGE_SENDING, False, self.timeout):
            return b""
        with self._mutex:
            if self._flush:
                self._flush = False
                self._frame = b""
                self._pending = b""
                self._events.clear(_TX_MESSAGE_SENDING)
                self._events.set(_TX_QUEUE_FREE)
                return b""
            chunk = self._pending[:size]
            self._pending = self._pending[size:]
            done = not self._pending
            frame = self._frame
            if done:
                self._frame = b""
                self._events.clear(_TX_MESSAGE_SENDING)
                self._events.set(_TX_QUEUE_FREE)
        if done and self._on_send is not None:
            self._on_send(0, frame)
        return chunk