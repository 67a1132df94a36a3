import time

import pytest

from tagit.errors import CommandTimeout, ExecutionFailed, InvalidCommand
from tagit.executor import DEFAULT_SCRIPT_TIMEOUT_S, CmdExecutor


def test_returns_stdout_verbatim():
    assert CmdExecutor().execute("echo primary replica") == b"primary replica\n"


def test_shell_quoting_is_honoured_without_a_shell():
    out = CmdExecutor().execute("echo 'a   b' \"c d\" $HOME")
    assert out == b"a   b c d $HOME\n"


def test_stderr_is_not_returned():
    out = CmdExecutor().execute("sh -c 'echo out; echo err >&2'")
    assert out == b"out\n"


@pytest.mark.parametrize("command", ["", "   "])
def test_empty_command_is_invalid(command):
    with pytest.raises(InvalidCommand):
        CmdExecutor().execute(command)


def test_unbalanced_quotes_are_invalid():
    with pytest.raises(InvalidCommand):
        CmdExecutor().execute("echo 'unterminated")


def test_non_zero_exit_fails():
    with pytest.raises(ExecutionFailed) as exc:
        CmdExecutor().execute("sh -c 'echo partial; echo bad >&2; exit 3'")
    assert exc.value.returncode == 3
    assert exc.value.stderr == b"bad\n"


def test_missing_program_fails():
    with pytest.raises(ExecutionFailed) as exc:
        CmdExecutor().execute("/nonexistent/tagit-probe --flag")
    assert isinstance(exc.value.__cause__, OSError)


def test_timeout_kills_the_probe():
    start = time.monotonic()
    with pytest.raises(CommandTimeout):
        CmdExecutor(timeout_s=0.2).execute("sh -c 'echo early; sleep 5'")
    assert time.monotonic() - start < 4


def test_default_timeout():
    assert CmdExecutor().timeout_s == DEFAULT_SCRIPT_TIMEOUT_S == 30.0
    assert CmdExecutor(timeout_s=2).timeout_s == 2.0
