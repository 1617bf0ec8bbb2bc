# tinylink

Building blocks for byte-oriented communication over serial lines.

The package provides:

- `tinylink.hal`: monotonic `millis()` and `micros()` clocks (wrapped to 32
  bits), `sleep()` and `sleep_us()`, the `ErrorCode` values and the
  `TinyError` exception raised by the other modules, the `Flag` values, and a
  small level-filtered logger (`LogLevel`, `set_log_level()`,
  `get_log_level()`, `log()`). A message passed to `log()` is written to
  stderr, prefixed with a millisecond timestamp, when its level is below the
  threshold set with `set_log_level()`; the default threshold of 0 disables
  logging.
- `tinylink.sync`: a `Mutex` usable as a context manager and an `EventGroup`,
  a set of eight event bits that threads can `set()`, `clear()`, `wait()` on
  and `check()` without blocking.
- `tinylink.serial_port`: a `Serial` port wrapper with a per-operation timeout
  in milliseconds, built on pyserial, and `bits_to_baud()`, which keeps 115200,
  57600 and 38400 as given and maps any other speed to 9600.
- `tinylink.link_layer`: the abstract `LinkLayer` base class and
  `SerialLinkLayer`, which moves bytes between a `Serial` port and a protocol
  in blocks of at most `block_size` bytes (32 by default).

## Installation

```
pip install tinylink
```

## Waiting for events

```python
import threading
from tinylink.sync import EventGroup

TX_READY = 0x01

events = EventGroup()
threading.Timer(0.05, events.set, args=(TX_READY,)).start()

bits = events.wait(TX_READY, clear=True, timeout=1000)  # timeout in ms
if bits & TX_READY:
    print("ready")
```

`wait()` returns the state of all bits when one of the requested bits was
seen set, or 0 on timeout. A timeout of `tinylink.hal.WAIT_FOREVER_MS` waits
without limit.

## Using a serial port

`Serial` accepts a device path or any pyserial URL. The port is opened by
`begin()` and closed by `end()` or on leaving a `with` block.

```python
from tinylink.serial_port import Serial

with Serial("loop://", timeout_ms=100) as port:
    port.begin(115200)
    port.write(b"\x7e\x01\x02\x7e")
    reply = port.read_bytes(32)
```

`read_bytes()` returns an empty bytes object when nothing arrives in time, and
`write()` returns 0 when the port accepts nothing in time. A device that
cannot be opened raises `TinyError` with `ErrorCode.IO`.

## Link layers

`SerialLinkLayer(dev, block_size=32, speed=115200)` opens its port in
`begin(on_read, on_send)`. Both callbacks are called with a peer address
(always 0) and the frame bytes. Call `run_rx()` and `run_tx()` from your
receive and transmit loops:

- `run_rx()` reads one block from the port and passes it to `parse_data()`,
  which by default delivers the block to `on_read` as one frame.
- `put(data, timeout)` queues one frame, waiting up to `timeout` ms for the
  previous frame to leave; it returns False if it could not. A frame longer
  than `mtu` (16384 by default) raises `TinyError` with
  `ErrorCode.DATA_TOO_LARGE`.
- `run_tx()` takes up to one block of the queued frame from `get_data()` and
  writes it; once the whole frame has been handed out, `on_send` is called.
- `flush_tx()` makes the next `get_data()` drop the frame in progress.

To carry a framing protocol, subclass `SerialLinkLayer` and override
`parse_data()`, `get_data()` and `put()`.

## What the package does not do

The package contains no framing protocol of its own: there is no byte
stuffing, checksum, acknowledgement or retransmission. `SerialLinkLayer`
sends frames as raw bytes and treats whatever arrives in one read as a frame.
There is no command-line tool.

## Running the tests

```
pip install tinylink[test]
pytest
```