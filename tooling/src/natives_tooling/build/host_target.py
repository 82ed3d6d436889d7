"""Host default target detection via `rustc --version --verbose` (memoized per run)."""

from __future__ import annotations

import logging
import threading

from natives_tooling.errors import ToolchainProbeFailed
from natives_tooling.process import ProcessRunner, SubprocessRunner

log = logging.getLogger(__name__)

HOST_PREFIX = "host: "
PROBE_ARGS = ("--version", "--verbose")


def parse_host_target(output: str) -> str | None:
    """Return the triple from the first line starting with 'host: ', or None."""
    for line in output.splitlines():
        if line.startswith(HOST_PREFIX):
            return line[len(HOST_PREFIX) :].strip()
    return None


class HostTargetResolver:
    """Probes the compiler once per rustc path; later calls return the memoized triple or re-raise the memoized failure."""

    def __init__(self, runner: ProcessRunner | None = None) -> None:
        self._runner = runner or SubprocessRunner()
        self._lock = threading.Lock()
        self._cache: dict[str, str] = {}
        self._failures: dict[str, ToolchainProbeFailed] = {}

    def resolve(self, rustc: str = "rustc") -> str:
        with self._lock:
            if rustc in self._failures:
                raise self._failures[rustc]
            if rustc not in self._cache:
                try:
                    self._cache[rustc] = self._probe(rustc)
                except ToolchainProbeFailed as e:
                    self._failures[rustc] = e
                    raise
            return self._cache[rustc]

    def _probe(self, rustc: str) -> str:
        command = [rustc, *PROBE_ARGS]
        try:
            r = self._runner.run(command)
        except OSError as e:
            msg = f"Could not run {rustc}: {e}"
            raise ToolchainProbeFailed(
                msg,
                hint="Install Rust (rustup) or point 'rustc' at the compiler binary.",
                context={"command": " ".join(command)},
            ) from e
        if r.returncode != 0:
            raise ToolchainProbeFailed(
                f"{rustc} exited with code {r.returncode}",
                context={"command": " ".join(command), "stderr": r.stderr.strip()},
            )
        triple = parse_host_target(r.stdout)
        if not triple:
            raise ToolchainProbeFailed(
                f"No '{HOST_PREFIX.strip()}' line in {rustc} output",
                context={"command": " ".join(command), "stdout": r.stdout.strip()},
            )
        log.debug("Host default target for %s: %s", rustc, triple)
        return triple


__all__ = ["HOST_PREFIX", "HostTargetResolver", "parse_host_target"]
