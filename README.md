# stringscript

Runs a script of request commands against a responder program on a serial
line. Each script command sends a request string and waits for the response
strings that belong to it. A periodic monitor can show transmit and receive
counts.

## Installing

    pip install .

## Running

    stringscript

This opens the serial port on a background thread (retrying every second
while it cannot be opened), starts the monitor and reads console commands
from standard input, one per line, until `EXIT` or the end of input.

Options:

| Option           | Default                | Meaning                                   |
|------------------|------------------------|-------------------------------------------|
| `--device`       | `/dev/ttyUSB0`         | serial device path or pyserial URL        |
| `--baudrate`     | `115200`               | line speed                                |
| `--rx-timeout`   | `1.0`                  | receive timeout in seconds                |
| `--script`       | `files/script_rgb.txt` | script file run by the `RUN` command      |
| `--show`         | `0`                    | initial monitor show code                 |
| `--verbose`      | off                    | log at debug level                        |

Strings on the line are UTF-8 and end with `\r\n`.

## Console commands

| Command | Effect                                                  |
|---------|---------------------------------------------------------|
| `RUN`   | run the script file in the background                   |
| `TEST`  | send `test` and print the single response               |
| `A`     | abort a running script or test                          |
| `PARMS` | print the serial settings                               |
| `EXIT`  | leave the console and shut down                         |

Commands are matched without regard to case. `RUN` and `TEST` are queued to
one worker thread and run one after another. A line that is just a number
sets the monitor show code: `1` prints the transmit and receive string and
byte counts, with their change, once a second; any other value stops the
printing. `SEND` and `GO1` to `GO4` are accepted and do nothing; other
commands are ignored.

## Script files

A script is a plain text file with one command per line:

    RED
    GREEN
    BLUE
    EXIT

`RED` sends `red` and waits for one response, `GREEN` sends `green` and
waits for two, `BLUE` sends `blue` and waits for three. Command names are
not case sensitive; other command names are read but send nothing. Blank
lines and lines starting with `#` or `//` are skipped. Reading stops at
`EXIT` or at the end of the file.

Before each command the run pauses for 0.1 seconds, and the receive queue
is flushed before each request. An abort (`A`) ends the run as aborted, as
does a response notification with no string queued behind it (which happens
when more than ten strings arrive unread and some are dropped).

## Library use

- `stringscript.transport.SerialStringPort` sends and receives terminated
  strings and keeps running totals in a `PortCounters`.
  `SerialStringThread` keeps the port open and calls back on connect,
  disconnect and each received string.
- `stringscript.runner.ScriptRunner` holds the bounded queue of received
  strings and the abort flag; `wait_for_response`, `throttle` and
  `check_abort` raise `ScriptAborted` after an abort.
- `stringscript.script` has `parse_commands`, `execute_command`,
  `run_script` (returning a `LoopExit`) and `run_test`.
- `stringscript.monitor.Monitor` samples `PortCounters` into `MonitorValue`s
  and prints them when its show code is 1.
- `stringscript.cli.CommandExecutive` executes console lines; `main` is the
  `stringscript` command.

## What it does not do

Script runs wait for each response without a time limit: if the responder
never answers, the run stays waiting until it is aborted with `A`. The
serial settings come only from the command-line options; there is no
settings file.