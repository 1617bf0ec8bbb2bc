import pytest

from tinylink.hal import ErrorCode, TinyError
from tinylink.link_layer import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_MTU,
    DEFAULT_SPEED,
    LinkLayer,
    SerialLinkLayer,
)


class Recorder:
    def __init__(self):
        self.read = []
        self.sent = []

    def on_read(self, address, data):
        self.read.append((address, data))

    def on_send(self, address, data):
        self.sent.append((address, data))


@pytest.fixture
def rec():
    return Recorder()


@pytest.fixture
def link(rec):
    layer = SerialLinkLayer("loop://")
    layer.begin(rec.on_read, rec.on_send)
    yield layer
    layer.end()


def test_defaults_follow_source():
    layer = SerialLinkLayer("loop://")
    assert layer.mtu == DEFAULT_MTU == 16384
    assert layer.timeout == 0
    assert layer.speed == DEFAULT_SPEED == 115200
    assert layer.block_size == DEFAULT_BLOCK_SIZE == 32


def test_link_layer_is_abstract():
    with pytest.raises(TypeError):
        LinkLayer()


def test_invalid_block_size():
    with pytest.raises(ValueError):
        SerialLinkLayer("loop://", block_size=0)


def test_begin_opens_port(link):
    assert link.is_open is True


def test_end_closes_port(link):
    link.end()
    assert link.is_open is False


def test_begin_failure_raises_io():
    layer = SerialLinkLayer("/nonexistent/device/for/test")
    with pytest.raises(TinyError) as info:
        layer.begin(None, None)
    assert info.value.code is ErrorCode.IO


def test_round_trip_single_block(link, rec):
    assert link.put(b"hello", 0) is True
    link.run_tx()
    assert rec.sent == [(0, b"hello")]
    link.run_rx()
    assert rec.read == [(0, b"hello")]


def test_round_trip_split_into_blocks(link, rec):
    frame = bytes(range(40))
    assert link.put(frame, 0) is True
    link.run_tx()
    assert rec.sent == []
    link.run_tx()
    assert rec.sent == [(0, frame)]
    link.run_rx()
    link.run_rx()
    assert all(len(data) <= link.block_size for _, data in rec.read)
    assert b"".join(data for _, data in rec.read) == frame


def test_put_blocks_while_frame_pending(link):
    assert link.put(b"first", 0) is True
    assert link.put(b"second", 0) is False
    link.run_tx()
    assert link.put(b"second", 0) is True


def test_put_before_begin_fails():
    layer = SerialLinkLayer("loop://")
    assert layer.put(b"data", 0) is False


def test_put_larger_than_mtu(link):
    link.mtu = 4
    with pytest.raises(TinyError) as info:
        link.put(b"too long", 0)
    assert info.value.code is ErrorCode.DATA_TOO_LARGE


def test_flush_drops_pending_frame(link, rec):
    assert link.put(b"dropped", 0) is True
    link.flush_tx()
    link.run_tx()
    assert rec.sent == []
    link.run_rx()
    assert rec.read == []
    assert link.put(b"next", 0) is True


def test_run_rx_without_data_calls_nothing(link, rec):
    link.run_rx()
    assert rec.read == []
    assert link.is_open is True
    assert link.put(b"x", 0) is True
    link.run_tx()
    link.run_rx()
    assert rec.read == [(0, b"x")]


def test_run_tx_without_frame_sends_nothing(link, rec):
    assert link.get_data(8) == b""
    link.run_tx()
    assert rec.sent == []


def test_get_data_chunks_frame(link, rec):
    assert link.put(b"abcdef", 0) is True
    parts = [link.get_data(4), link.get_data(4)]
    assert b"".join(parts) == b"abcdef"
    assert len(parts[0]) == 4
    assert rec.sent == [(0, b"abcdef")]
    assert link.get_data(4) == b""


def test_get_data_rejects_bad_size(link):
    with pytest.raises(ValueError):
        link.get_data(0)


def test_parse_data_reports_consumed(link, rec):
    payload = b"\x7e\x01\x02"
    assert link.parse_data(payload) == len(payload)
    assert rec.read == [(0, payload)]


def test_parse_data_without_callback():
    layer = SerialLinkLayer("loop://")
    layer.begin(None, None)
    try:
        assert layer.parse_data(b"xyz") == 3
    finally:
        layer.end()


def test_run_rx_after_end_raises(link):
    link.end()
    with pytest.raises(TinyError) as info:
        link.run_rx()
    assert info.value.code is ErrorCode.IO


def test_restart_clears_state(link, rec):
    assert link.put(b"stale", 0) is True
    link.end()
    link.begin(rec.on_read, rec.on_send)
    link.run_tx()
    assert rec.sent == []
    assert link.put(b"fresh", 0) is True
    link.run_tx()
    link.run_rx()
    assert rec.read == [(0, b"fresh")]