import queue
import threading

import pytest
import serial

from stringscript.transport import PortCounters, SerialStringPort, SerialStringThread


def make_loop_port(terminator="\r\n"):
    return SerialStringPort("loop://", baudrate=115200, rx_timeout=0.05, terminator=terminator)


def test_round_trip_through_loopback():
    with make_loop_port() as port:
        port.send("red")
        assert port.receive() == "red"


def test_multiple_strings_keep_order():
    with make_loop_port() as port:
        for word in ("red", "green", "blue"):
            port.send(word)
        received = [port.receive() for _ in range(3)]
    assert received == ["red", "green", "blue"]


def test_receive_times_out_with_none():
    with make_loop_port() as port:
        assert port.receive() is None


def test_counters_match_on_both_sides():
    with make_loop_port() as port:
        port.send("green")
        port.send("blue")
        port.receive()
        port.receive()
        counters = port.counters
    assert counters.tx_string_count == counters.rx_string_count == 2
    assert counters.tx_byte_count == counters.rx_byte_count
    assert counters.tx_byte_count == len(b"green\r\nblue\r\n")


def test_counters_start_at_zero():
    port = make_loop_port()
    assert port.counters == PortCounters()


def test_custom_terminator():
    with make_loop_port(terminator="\n") as port:
        port.send("test")
        assert port.receive() == "test"
        assert port.counters.rx_byte_count == len(b"test\n")


def test_empty_terminator_rejected():
    with pytest.raises(ValueError):
        SerialStringPort("loop://", terminator="")


def test_send_on_closed_port_raises():
    port = make_loop_port()
    with pytest.raises(serial.SerialException):
        port.send("red")


def test_receive_on_closed_port_raises():
    port = make_loop_port()
    with pytest.raises(serial.SerialException):
        port.receive()


def test_close_marks_port_closed():
    port = make_loop_port()
    port.open()
    assert port.is_open is True
    port.close()
    assert port.is_open is False


def test_open_missing_device_raises():
    port = SerialStringPort("/nonexistent/ttyFAKE0", rx_timeout=0.05)
    with pytest.raises(serial.SerialException):
        port.open()


def test_thread_delivers_strings_and_sessions():
    sessions = []
    connected = threading.Event()
    received = queue.Queue()

    def on_session(flag):
        sessions.append(flag)
        if flag:
            connected.set()

    port = make_loop_port()
    worker = SerialStringThread(port, on_session, received.put)
    worker.start()
    try:
        assert connected.wait(2.0)
        worker.send("hello")
        assert received.get(timeout=2.0) == "hello"
    finally:
        worker.shutdown()
    assert sessions == [True, False]
    assert worker.connected is False
    assert port.is_open is False


def test_thread_cannot_start_twice():
    worker = SerialStringThread(make_loop_port())
    worker.start()
    try:
        with pytest.raises(RuntimeError):
            worker.start()
    finally:
        worker.shutdown()


def test_thread_without_device_never_connects():
    sessions = []
    port = SerialStringPort("/nonexistent/ttyFAKE0", rx_timeout=0.05)
    worker = SerialStringThread(port, sessions.append, None)
    worker.start()
    threading.Event().wait(0.1)
    worker.shutdown()
    assert sessions == []
    assert worker.connected is False