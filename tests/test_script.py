import pytest

from stringscript.runner import ScriptAborted, ScriptRunner
from stringscript.script import (
    LoopExit,
    ScriptCommand,
    execute_command,
    parse_commands,
    run_script,
    run_test,
)


class Responder:
    """Answers each request with a fixed list of responses."""

    def __init__(self, replies, abort_on=None):
        self.replies = replies
        self.sent = []
        self.abort_on = abort_on
        self.runner = None

    def __call__(self, text):
        self.sent.append(text)
        if text == self.abort_on:
            self.runner.abort()
            return
        for reply in self.replies.get(text, []):
            self.runner.handle_rx_string(reply)


def make_runner(replies, abort_on=None):
    responder = Responder(replies, abort_on)
    runner = ScriptRunner(responder, queue_size=10)
    responder.runner = runner
    return runner, responder


RGB_REPLIES = {
    "red": ["r1"],
    "green": ["g1", "g2"],
    "blue": ["b1", "b2", "b3"],
    "test": ["test ack"],
}


def test_parse_commands_skips_blanks_and_stops_at_exit():
    lines = ["red\n", "\n", "# note\n", "Green 1 2\n", "EXIT\n", "blue\n"]
    assert list(parse_commands(lines)) == [
        ScriptCommand("RED"),
        ScriptCommand("GREEN", ("1", "2")),
    ]


def test_parse_commands_reads_to_end_without_exit():
    assert [c.name for c in parse_commands(["red", "blue"])] == ["RED", "BLUE"]


def test_execute_red_gets_one_response():
    runner, responder = make_runner(RGB_REPLIES)
    assert execute_command(runner, ScriptCommand("RED")) == ["r1"]
    assert responder.sent == ["red"]


def test_execute_green_gets_two_responses():
    runner, _ = make_runner(RGB_REPLIES)
    assert execute_command(runner, ScriptCommand("GREEN")) == ["g1", "g2"]


def test_execute_blue_gets_three_responses():
    runner, _ = make_runner(RGB_REPLIES)
    assert execute_command(runner, ScriptCommand("BLUE")) == ["b1", "b2", "b3"]


def test_execute_unknown_command_sends_nothing():
    runner, responder = make_runner(RGB_REPLIES)
    assert execute_command(runner, ScriptCommand("PURPLE")) == []
    assert responder.sent == []


def test_execute_flushes_stale_responses_first():
    runner, _ = make_runner(RGB_REPLIES)
    runner.handle_rx_string("stale")
    assert execute_command(runner, ScriptCommand("RED")) == ["r1"]


def test_execute_raises_when_aborted():
    runner, _ = make_runner({})
    runner.abort()
    with pytest.raises(ScriptAborted):
        execute_command(runner, ScriptCommand("RED"))


def test_run_script_normal(tmp_path):
    path = tmp_path / "script.txt"
    path.write_text("red\ngreen\nblue\nexit\nred\n", encoding="utf-8")
    runner, responder = make_runner(RGB_REPLIES)
    assert run_script(runner, path, 0) is LoopExit.NORMAL
    assert responder.sent == ["red", "green", "blue"]


def test_run_script_aborted_midway(tmp_path):
    path = tmp_path / "script.txt"
    path.write_text("red\ngreen\nblue\n", encoding="utf-8")
    runner, responder = make_runner(RGB_REPLIES, abort_on="green")
    assert run_script(runner, path, 0) is LoopExit.ABORTED
    assert responder.sent == ["red", "green"]


def test_run_script_clears_earlier_abort(tmp_path):
    path = tmp_path / "script.txt"
    path.write_text("red\n", encoding="utf-8")
    runner, responder = make_runner(RGB_REPLIES)
    runner.abort()
    assert run_script(runner, path, 0) is LoopExit.NORMAL
    assert responder.sent == ["red"]


def test_run_script_missing_file(tmp_path):
    runner, _ = make_runner(RGB_REPLIES)
    with pytest.raises(FileNotFoundError):
        run_script(runner, tmp_path / "absent.txt", 0)


def test_run_test_sends_test_and_returns_response():
    runner, responder = make_runner(RGB_REPLIES)
    assert run_test(runner) == "test ack"
    assert responder.sent == ["test"]


def test_run_test_returns_none_when_aborted():
    runner, responder = make_runner(RGB_REPLIES)
    runner.abort()
    assert run_test(runner) is None
    assert responder.sent == ["test"]