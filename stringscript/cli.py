"""Console command executive and program entry point."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Mapping, Optional, TextIO

from .monitor import Monitor
from .runner import ScriptRunner
from .script import DEFAULT_SCRIPT_PATH, LoopExit, run_script, run_test
from .transport import SerialStringPort, SerialStringThread

log = logging.getLogger(__name__)

BANNER = "StringScriptRunner Program**********************************************"


class CommandExecutive:
    """Executes console commands against a script runner.

    TEST and RUN are queued to a single worker thread, so a long script does
    not block the console; ``execute`` returns their Future. A line holding
    only an integer is a special command that sets the monitor show code.
    """

    def __init__(
        self,
        runner: ScriptRunner,
        monitor: Optional[Monitor] = None,
        settings: Optional[Mapping[str, object]] = None,
        script_path=DEFAULT_SCRIPT_PATH,
        out: Optional[TextIO] = None,
    ):
        self.runner = runner
        self.monitor = monitor
        self.settings: Mapping[str, object] = dict(settings or {})
        self.script_path = script_path
        self.out = out
        self._out_lock = threading.Lock()
        self._worker = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="ScriptLong"
        )
        self._commands: Dict[str, Callable[[], Optional[Future]]] = {
            "SEND": self._ignore,
            "TEST": self._submit_test,
            "RUN": self._submit_run,
            "A": self._abort,
            "GO1": self._ignore,
            "GO2": self._ignore,
            "GO3": self._ignore,
            "GO4": self._ignore,
            "PARMS": self._show_parms,
        }

    def __enter__(self) -> "CommandExecutive":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self, wait: bool = True) -> None:
        """Stop the worker thread, waiting for queued work if ``wait``."""
        self._worker.shutdown(wait=wait)

    def _write(self, text: str) -> None:
        out = self.out if self.out is not None else sys.stdout
        with self._out_lock:
            out.write(text + "\n")
            out.flush()

    def execute(self, line: str) -> Optional[Future]:
        """Execute one command line; return a Future for queued work."""
        words = line.split()
        if not words:
            return None
        head = words[0]
        if head.lstrip("+-").isdigit():
            self.special(int(head))
            return None
        handler = self._commands.get(head.upper())
        if handler is None:
            return None
        return handler()

    def special(self, code: int) -> None:
        """Set the monitor show code."""
        if self.monitor is not None:
            self.monitor.show_code = code

    def run_console(self, lines: Iterable[str]) -> int:
        """Execute lines until EXIT or the end; return how many were executed."""
        count = 0
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.upper() == "EXIT":
                break
            self.execute(stripped)
            count += 1
        return count

    @staticmethod
    def _ignore() -> None:
        return None

    def _abort(self) -> None:
        self.runner.abort()
        return None

    def _show_parms(self) -> None:
        for name, value in self.settings.items():
            self._write(f"{name:<20}{value}")
        return None

    def _submit_test(self) -> Future:
        return self._worker.submit(self._run_test)

    def _submit_run(self) -> Future:
        return self._worker.submit(self._run_script)

    def _run_test(self) -> Optional[str]:
        response = run_test(self.runner)
        if response is None:
            self._write("test failed")
        else:
            self._write(f"test {response}")
        return response

    def _run_script(self) -> LoopExit:
        self._write("running script")
        try:
            code = run_script(self.runner, self.script_path)
        except OSError as exc:
            self._write(f"cannot open script {self.script_path}: {exc}")
            raise
        self._write(f"script {code.name.lower()}")
        return code


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        prog="stringscript",
        description="Run request/response string scripts over a serial port.",
    )
    parser.add_argument("--device", default="/dev/ttyUSB0",
                        help="serial device path or pyserial URL")
    parser.add_argument("--baudrate", type=int, default=115200)
    parser.add_argument("--rx-timeout", type=float, default=1.0,
                        help="receive timeout in seconds")
    parser.add_argument("--script", default=DEFAULT_SCRIPT_PATH,
                        help="script file run by the RUN command")
    parser.add_argument("--show", type=int, default=0,
                        help="initial monitor show code")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Start the serial thread and monitor, then run the console until EXIT."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    out = sys.stdout
    out.write(BANNER + "BEGIN\n")

    port = SerialStringPort(args.device, args.baudrate, args.rx_timeout)
    runner = ScriptRunner(port.send)
    serial_thread = SerialStringThread(
        port, runner.handle_session, runner.handle_rx_string
    )
    monitor = Monitor(port.counters, period=1.0, show_code=args.show, out=out)
    settings = {
        "device": args.device,
        "baudrate": args.baudrate,
        "rx_timeout": args.rx_timeout,
        "script": args.script,
    }

    serial_thread.start()
    monitor.start()
    executive = CommandExecutive(runner, monitor, settings, args.script, out)
    try:
        executive.run_console(sys.stdin)
    finally:
        monitor.shutdown()
        runner.abort()
        executive.close()
        serial_thread.shutdown()

    out.write(BANNER + "END\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())