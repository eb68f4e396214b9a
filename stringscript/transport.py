"""Terminated-string transport over a serial port, with a receiving thread."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import serial

log = logging.getLogger(__name__)

SessionCallback = Callable[[bool], None]
RxStringCallback = Callable[[str], None]


@dataclass
class PortCounters:
    """Running totals of strings and bytes moved through a port."""

    tx_string_count: int = 0
    tx_byte_count: int = 0
    rx_string_count: int = 0
    rx_byte_count: int = 0


class SerialStringPort:
    """A serial port that sends and receives terminator-delimited strings.

    ``device`` is anything pyserial's ``serial_for_url`` accepts: a device
    path such as ``/dev/ttyUSB0`` or ``COM3``, or a URL such as ``loop://``.
    ``rx_timeout`` is in seconds.
    """

    def __init__(self, device, baudrate=115200, rx_timeout=1.0, terminator="\r\n"):
        if not terminator:
            raise ValueError("terminator must not be empty")
        self.device = device
        self.baudrate = baudrate
        self.rx_timeout = rx_timeout
        self.terminator = terminator
        self.counters = PortCounters()
        self._term = terminator.encode("utf-8")
        self._serial: Optional[serial.SerialBase] = None
        self._buffer = bytearray()
        self._tx_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open the port; does nothing if it is already open."""
        if self.is_open:
            return
        self._serial = serial.serial_for_url(
            self.device, baudrate=self.baudrate, timeout=self.rx_timeout
        )
        self._buffer.clear()

    def close(self) -> None:
        """Close the port if it is open."""
        if self._serial is not None:
            try:
                self._serial.close()
            finally:
                self._serial = None
                self._buffer.clear()

    def __enter__(self) -> "SerialStringPort":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _require_open(self) -> serial.SerialBase:
        if not self.is_open:
            raise serial.SerialException(f"port {self.device!r} is not open")
        assert self._serial is not None
        return self._serial

    def send(self, text: str) -> None:
        """Write ``text`` followed by the terminator."""
        port = self._require_open()
        data = text.encode("utf-8") + self._term
        with self._tx_lock:
            port.write(data)
            port.flush()
            self.counters.tx_string_count += 1
            self.counters.tx_byte_count += len(data)

    def _take_string(self) -> Optional[str]:
        index = self._buffer.find(self._term)
        if index < 0:
            return None
        end = index + len(self._term)
        raw = bytes(self._buffer[:index])
        del self._buffer[:end]
        self.counters.rx_string_count += 1
        self.counters.rx_byte_count += end
        return raw.decode("utf-8", errors="replace")

    def receive(self) -> Optional[str]:
        """Return the next complete string, or None if the read timed out."""
        port = self._require_open()
        text = self._take_string()
        if text is not None:
            return text
        self._buffer += port.read_until(self._term)
        return self._take_string()


class SerialStringThread:
    """Keeps a port open on a background thread and delivers received strings.

    ``on_session(True)`` is called when the port opens and
    ``on_session(False)`` when it closes, through error or shutdown.
    ``on_rx_string(text)`` is called for every string received.
    """

    reconnect_delay = 1.0

    def __init__(self, port, on_session=None, on_rx_string=None):
        self.port: SerialStringPort = port
        self._on_session: Optional[SessionCallback] = on_session
        self._on_rx_string: Optional[RxStringCallback] = on_rx_string
        self.connected = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Launch the receiving thread."""
        if self._thread is not None:
            raise RuntimeError("serial string thread already started")
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="SerialString", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        """Stop the receiving thread and wait for it to finish."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()

    def send(self, text: str) -> None:
        """Send a string through the port."""
        self.port.send(text)

    def _set_session(self, connected: bool) -> None:
        self.connected = connected
        log.info("serial session %s", "connected" if connected else "disconnected")
        if self._on_session is not None:
            try:
                self._on_session(connected)
            except Exception:
                log.exception("session callback failed")

    def _deliver(self, text: str) -> None:
        if self._on_rx_string is not None:
            try:
                self._on_rx_string(text)
            except Exception:
                log.exception("receive callback failed")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.port.open()
            except serial.SerialException as exc:
                log.warning("cannot open %s: %s", self.port.device, exc)
                self._stop.wait(self.reconnect_delay)
                continue

            self._set_session(True)
            try:
                while not self._stop.is_set():
                    text = self.port.receive()
                    if text is not None:
                        self._deliver(text)
            except (serial.SerialException, OSError) as exc:
                log.warning("serial error on %s: %s", self.port.device, exc)
            finally:
                self.port.close()
                self._set_session(False)