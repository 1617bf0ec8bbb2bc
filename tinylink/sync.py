"""Thread synchronisation primitives: a mutex and an 8-bit event group."""

from __future__ import annotations

import threading
import time

from tinylink.hal import WAIT_FOREVER_MS

__all__ = ["Mutex", "EventGroup"]

_BITS_MASK = 0xFF


def _check_bits(bits: int) -> int:
    if not 0 <= bits <= _BITS_MASK:
        raise ValueError(f"event bits must be in range 0..{_BITS_MASK}, got {bits}")
    return bits


class Mutex:
    """A non-recursive mutual exclusion lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def lock(self) -> None:
        """Block until the mutex is acquired."""
        self._lock.acquire()

    def try_lock(self) -> bool:
        """Acquire the mutex if it is free; return whether it was acquired."""
        return self._lock.acquire(blocking=False)

    def unlock(self) -> None:
        """Release the mutex.

        Raises RuntimeError if the mutex is not locked.
        """
        self._lock.release()

    @property
    def locked(self) -> bool:
        """Whether the mutex is currently held."""
        return self._lock.locked()

    def __enter__(self) -> Mutex:
        self.lock()
        return self

    def __exit__(self, *args: object) -> None:
        self.unlock()


class EventGroup:
    """A group of eight event bits that threads can set, clear and wait on."""

    def __init__(self) -> None:
        self._bits = 0
        self._waiters = 0
        self._cond = threading.Condition(threading.Lock())

    @property
    def bits(self) -> int:
        """The current state of all bits."""
        with self._cond:
            return self._bits

    @property
    def waiters(self) -> int:
        """Number of threads currently blocked in wait()."""
        with self._cond:
            return self._waiters

    def wait(self, bits: int, clear: bool, timeout: int) -> int:
        """Wait until any of ``bits`` is set, or ``timeout`` milliseconds pass.

        Returns the full state of the group as it was when one of the
        requested bits was seen set, or 0 on timeout. If ``clear`` is true,
        the requested bits are cleared before returning. A timeout of
        WAIT_FOREVER_MS waits without limit.
        """
        _check_bits(bits)
        if not 0 <= timeout <= WAIT_FOREVER_MS:
            raise ValueError(f"timeout must be in range 0..{WAIT_FOREVER_MS}, got {timeout}")
        forever = timeout == WAIT_FOREVER_MS
        deadline = time.monotonic() + timeout / 1000.0
        with self._cond:
            self._waiters += 1
            try:
                while not self._bits & bits:
                    if forever:
                        self._cond.wait()
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return 0
                    self._cond.wait(remaining)
                state = self._bits
                if clear:
                    self._bits &= ~bits & _BITS_MASK
                return state
            finally:
                self._waiters -= 1

    def check(self, bits: int, clear: bool) -> int:
        """Like wait() with a zero timeout: never blocks."""
        return self.wait(bits, clear, 0)

    def set(self, bits: int) -> None:
        """Set ``bits`` and wake every waiting thread."""
        _check_bits(bits)
        with self._cond:
            self._bits |= bits
            self._cond.notify_all()

    def clear(self, bits: int) -> None:
        """Clear ``bits``."""
        _check_bits(bits)
        with self._cond:
            self._bits &= ~bits & _BITS_MASK