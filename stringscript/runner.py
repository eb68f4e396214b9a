"""Request/response bookkeeping for running string scripts."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, Optional

log = logging.getLogger(__name__)


class ScriptAborted(Exception):
    """Raised inside a running script when an abort has been requested."""


class ResponseMissing(Exception):
    """Raised when a response was signalled but none was queued."""


class ScriptRunner:
    """Sends request strings and hands received response strings to a script.

    Received strings go into a bounded queue. Every received string raises a
    notification, even when the queue is full and the string is dropped, so
    a waiter can find a notification without a string behind it.
    """

    def __init__(self, sender, queue_size=10):
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self._sender: Callable[[str], None] = sender
        self.queue_size = queue_size
        self.connected = False
        self._rx: Deque[str] = deque()
        self._pending = 0
        self._aborted = False
        self._cond = threading.Condition()

    @property
    def aborted(self) -> bool:
        with self._cond:
            return self._aborted

    def handle_session(self, connected: bool) -> None:
        """Record that the serial session was established or lost."""
        log.info("ScriptRunner %s", "CONNECTED" if connected else "DISCONNECTED")
        self.connected = connected

    def handle_rx_string(self, text: str) -> None:
        """Queue a received string and notify any waiter."""
        with self._cond:
            if len(self._rx) >= self.queue_size:
                log.error("RxStringQueue ERROR queue full")
            else:
                self._rx.append(text)
            log.debug("rx string %s", text)
            self._pending += 1
            self._cond.notify_all()

    def abort(self) -> None:
        """Request that any running script stop at its next wait."""
        with self._cond:
            self._aborted = True
            self._cond.notify_all()

    def clear_abort(self) -> None:
        """Forget an earlier abort request."""
        with self._cond:
            self._aborted = False

    def send_string(self, text: str) -> None:
        """Send a request string to the responder."""
        self._sender(text)

    def flush_rx_queue(self) -> int:
        """Drop queued strings and notifications; return how many strings went."""
        with self._cond:
            count = len(self._rx)
            self._rx.clear()
            self._pending = 0
        if count:
            log.warning("rx string queue flushed, not empty %d", count)
        return count

    def wait_for_response(self, timeout: Optional[float] = None) -> str:
        """Wait for the next response string and return it.

        ``timeout`` is in seconds; None waits indefinitely.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._aborted or self._pending > 0, timeout
            )
            if self._aborted:
                raise ScriptAborted("script aborted")
            if not ready:
                raise TimeoutError("no response received")
            self._pending -= 1
            if not self._rx:
                raise ResponseMissing("notified but no response queued")
            return self._rx.popleft()

    def check_abort(self) -> None:
        """Raise ScriptAborted if an abort has been requested."""
        with self._cond:
            if self._aborted:
                raise ScriptAborted("script aborted")

    def throttle(self, seconds: float) -> None:
        """Sleep for ``seconds``, waking early to raise ScriptAborted on abort."""
        with self._cond:
            self._cond.wait_for(lambda: self._aborted, seconds)
            if self._aborted:
                raise ScriptAborted("script aborted")