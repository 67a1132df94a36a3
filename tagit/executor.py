from __future__ import annotations

import os
import shlex
import signal
import subprocess

from .errors import CommandTimeout, ExecutionFailed, InvalidCommand

DEFAULT_SCRIPT_TIMEOUT_S = 30.0


def _kill(proc: subprocess.Popen) -> None:
    # The probe runs in its own session, so this also takes out anything it forked.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (AttributeError, ProcessLookupError, PermissionError):
        proc.kill()


class CmdExecutor:
    """Runs a probe command without a shell and returns its stdout."""

    def __init__(self, timeout_s: float | None = None):
        self.timeout_s = float(timeout_s) if timeout_s else DEFAULT_SCRIPT_TIMEOUT_S

    def execute(self, command: str) -> bytes:
        if not command or not command.strip():
            raise InvalidCommand("failed to execute: empty command")
        try:
            args = shlex.split(command)
        except ValueError as e:
            raise InvalidCommand(f"failed to split command: {e}") from e
        if not args:
            raise InvalidCommand("failed to execute: no command after splitting")

        try:
            proc = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise ExecutionFailed(f"failed to start {args[0]}: {e}") from e

        with proc:
            try:
                out, err = proc.communicate(timeout=self.timeout_s)
            except subprocess.TimeoutExpired as e:
                _kill(proc)
                proc.wait()
                raise CommandTimeout(f"script execution timed out after {self.timeout_s:g}s") from e

        if proc.returncode != 0:
            raise ExecutionFailed(
                f"{args[0]} exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr=err or b"",
            ) from subprocess.CalledProcessError(proc.returncode, args, out, err)
        return out
