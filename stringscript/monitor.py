"""Periodic display of serial port traffic counters."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from .transport import PortCounters


@dataclass
class MonitorValue:
    """A monitored count: its latest value and the change since the last update."""

    value: int = 0
    delta: int = 0
    _previous: int = field(default=0, repr=False)

    def update(self, current: int) -> None:
        self.value = current
        self.delta = current - self._previous
        self._previous = current


class Monitor:
    """Samples port counters and, when ``show_code`` is 1, prints them.

    ``period`` is the sampling interval in seconds.
    """

    def __init__(self, counters: PortCounters, period=1.0, show_code=0, out=None):
        self.counters = counters
        self.period = period
        self.show_code = show_code
        self.out: Optional[TextIO] = out
        self.tx_string_count = MonitorValue()
        self.tx_byte_count = MonitorValue()
        self.rx_string_count = MonitorValue()
        self.rx_byte_count = MonitorValue()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def update(self) -> None:
        """Sample the counters."""
        self.tx_string_count.update(self.counters.tx_string_count)
        self.rx_string_count.update(self.counters.rx_string_count)
        self.tx_byte_count.update(self.counters.tx_byte_count)
        self.rx_byte_count.update(self.counters.rx_byte_count)

    def report(self) -> List[str]:
        """Return the status lines for the latest sample."""
        rows = [
            ("TxStringCount", self.tx_string_count),
            ("TxByteCount", self.tx_byte_count),
            ("RxStringCount", self.rx_string_count),
            ("RxByteCount", self.rx_byte_count),
        ]
        lines = [f"{label:<28}{mon.value:<10d}  {mon.delta}" for label, mon in rows]
        lines.append("")
        return lines

    def tick(self) -> None:
        """Sample the counters and show them if the show code asks for it."""
        self.update()
        if self.show_code == 1:
            out = self.out if self.out is not None else sys.stdout
            for line in self.report():
                out.write(line + "\n")
            out.flush()

    def start(self) -> None:
        """Launch the periodic sampling thread."""
        if self._thread is not None:
            raise RuntimeError("monitor already started")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="Monitor", daemon=True)
        self._thread.start()

    def shutdown(self) -> None:
        """Stop the sampling thread and wait for it."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()

    def _run(self) -> None:
        while not self._stop.wait(self.period):
            self.tick()