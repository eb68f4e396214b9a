"""Reading and running request/response scripts."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from .runner import ResponseMissing, ScriptAborted, ScriptRunner

log = logging.getLogger(__name__)

DEFAULT_SCRIPT_PATH = "files/script_rgb.txt"
DEFAULT_THROTTLE = 0.1

# Request string sent for each script command, and how many responses follow.
RESPONSES = {
    "RED": ("red", 1),
    "GREEN": ("green", 2),
    "BLUE": ("blue", 3),
}

TEST_REQUEST = "test"


class LoopExit(enum.IntEnum):
    """How a script run ended."""

    NORMAL = 0
    SUSPENDED = 1
    ABORTED = 2


@dataclass(frozen=True)
class ScriptCommand:
    """One command read from a script: an upper-case name and its arguments."""

    name: str
    args: Tuple[str, ...] = ()

    def is_cmd(self, name: str) -> bool:
        return self.name == name.upper()


def parse_commands(lines: Iterable[str]) -> Iterator[ScriptCommand]:
    """Yield the commands in ``lines``, stopping at EXIT or at the end.

    Blank lines and lines starting with ``#`` or ``//`` are skipped.
    """
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "//")):
            continue
        name, *args = stripped.split()
        command = ScriptCommand(name.upper(), tuple(args))
        if command.is_cmd("EXIT"):
            return
        yield command


def execute_command(runner: ScriptRunner, command: ScriptCommand) -> List[str]:
    """Send the request for ``command`` and return the responses it gets.

    Unknown commands send nothing and return an empty list.
    """
    entry = RESPONSES.get(command.name)
    if entry is None:
        return []
    request, count = entry
    log.debug("execute %s", command.name)

    runner.flush_rx_queue()
    runner.send_string(request)

    responses = []
    for _ in range(count):
        text = runner.wait_for_response(None)
        log.debug("execute %s RX %s", command.name, text)
        responses.append(text)
    log.debug("execute %s done", command.name)
    return responses


def run_script(
    runner: ScriptRunner,
    path=DEFAULT_SCRIPT_PATH,
    throttle: float = DEFAULT_THROTTLE,
) -> LoopExit:
    """Run the script file at ``path`` and return how the run ended.

    Raises OSError if the file cannot be opened.
    """
    log.info("running script %s", path)
    runner.clear_abort()
    read_count = 0
    exit_code = LoopExit.NORMAL

    with open(path, encoding="utf-8") as script:
        try:
            for command in parse_commands(script):
                read_count += 1
                runner.check_abort()
                runner.throttle(throttle)
                execute_command(runner, command)
        except (ScriptAborted, ResponseMissing) as exc:
            exit_code = LoopExit.ABORTED
            log.error("exception in script after %d commands: %s", read_count, exc)

    if exit_code is LoopExit.NORMAL:
        log.info("script done")
    else:
        log.info("script aborted")
    return exit_code


def run_test(runner: ScriptRunner) -> Optional[str]:
    """Send the test request and return its response, or None on failure."""
    try:
        runner.flush_rx_queue()
        runner.send_string(TEST_REQUEST)
        text = runner.wait_for_response(None)
    except (ScriptAborted, ResponseMissing) as exc:
        log.error("exception in test: %s", exc)
        return None
    log.info("test response %s", text)
    return text