"""External process invocation with captured output and cooperative cancellation."""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from natives_tooling.errors import BuildCancelled

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessResult:
    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessResult:
        """Run command to completion and return its exit status and output."""


class SubprocessRunner:
    """ProcessRunner backed by subprocess.

    Without a cancel event this is a plain ``subprocess.run``. With one, the
    process is polled every ``poll_interval`` seconds and killed once the event
    is set, raising BuildCancelled. Missing binaries raise FileNotFoundError.
    """

    def __init__(self, poll_interval: float = 0.2) -> None:
        self.poll_interval = poll_interval

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessResult:
        cmd = [str(c) for c in command]
        log.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
        if cancel is None:
            r = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
            )
            return ProcessResult(tuple(cmd), r.returncode, r.stdout or "", r.stderr or "")

        if cancel.is_set():
            raise BuildCancelled(command=cmd)
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        while True:
            try:
                out, err = proc.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel.is_set():
                    log.debug("Cancelling %s (pid %s)", cmd[0], proc.pid)
                    proc.kill()
                    proc.communicate()
                    raise BuildCancelled(command=cmd, exit_code=proc.returncode) from None
        return ProcessResult(tuple(cmd), proc.returncode, out or "", err or "")


__all__ = ["ProcessResult", "ProcessRunner", "SubprocessRunner"]
