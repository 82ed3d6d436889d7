"""Pytest fixtures for natives tooling tests."""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from pathlib import Path

import pytest

from natives_tooling.build.task import BuildRequest
from natives_tooling.process import ProcessResult

LINUX_HOST = "x86_64-unknown-linux-gnu"
DARWIN_ARM_HOST = "aarch64-apple-darwin"


def rustc_version_output(host: str | None) -> str:
    """`rustc -vV` output; host=None leaves out the host line."""
    return (
        "rustc 1.80.0 (051478957 2024-07-21)\n"
        "binary: rustc\n"
        "commit-hash: 051478957371ee0084a7c0913941d2a8c4757bb9\n"
        + (f"host: {host}\n" if host is not None else "")
        + "release: 1.80.0\n"
        "LLVM version: 18.1.7\n"
    )


class FakeRunner:
    """ProcessRunner double: answers the rustc probe, records cargo runs, writes artifacts.

    artifacts maps a target triple to the file names cargo "produces" for it.
    fail maps a target triple to the exit code cargo returns for it.
    probe_delay slows down the rustc probe so concurrent tasks queue behind it.
    """

    def __init__(
        self,
        host: str | None = LINUX_HOST,
        *,
        artifacts: dict[str, Sequence[str]] | None = None,
        fail: dict[str, int] | None = None,
        delay: float = 0.0,
        probe_delay: float = 0.0,
    ) -> None:
        self.host = host
        self.artifacts = artifacts or {}
        self.fail = fail or {}
        self.delay = delay
        self.probe_delay = probe_delay
        self.probe_calls = 0
        self.commands: list[list[str]] = []
        self.cwds: list[Path | None] = []
        self.intervals: list[tuple[float, float]] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        cancel: threading.Event | None = None,
    ) -> ProcessResult:
        cmd = [str(c) for c in command]
        if cmd[1:] == ["--version", "--verbose"]:
            with self._lock:
                self.probe_calls += 1
            if self.probe_delay:
                time.sleep(self.probe_delay)
            return ProcessResult(tuple(cmd), 0, rustc_version_output(self.host), "")

        start = time.monotonic()
        with self._lock:
            self.commands.append(cmd)
            self.cwds.append(cwd)
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            if self.delay:
                time.sleep(self.delay)
            triple = self.host
            for a in cmd:
                if a.startswith("--target="):
                    triple = a.split("=", 1)[1]
            if triple in self.fail:
                return ProcessResult(
                    tuple(cmd), self.fail[triple], "", f"error: could not compile for {triple}\n"
                )
            profile = "debug"
            for a in cmd[2:]:
                if a.startswith("--") and not a.startswith("--target=") and a != "--verbose":
                    profile = a[2:]
            if cwd is not None and triple in self.artifacts:
                out = cwd / "target" / profile if triple == self.host else cwd / "target" / triple / profile
                out.mkdir(parents=True, exist_ok=True)
                for name in self.artifacts[triple]:
                    (out / name).write_bytes(f"{name} for {triple}".encode())
            return ProcessResult(tuple(cmd), 0, "", "")
        finally:
            end = time.monotonic()
            with self._lock:
                self._active -= 1
                self.intervals.append((start, end))


@pytest.fixture
def crate_dir(tmp_path: Path) -> Path:
    """Minimal cargo crate: Cargo.toml + src/lib.rs."""
    crate = tmp_path / "native"
    (crate / "src").mkdir(parents=True)
    (crate / "Cargo.toml").write_text('[package]\nname = "storage"\nversion = "0.1.0"\n')
    (crate / "src" / "lib.rs").write_text("pub fn answer() -> u32 { 42 }\n")
    return crate


@pytest.fixture
def request_defaults(tmp_path: Path, crate_dir: Path) -> BuildRequest:
    return BuildRequest(
        library_name="storage",
        manifest_file=crate_dir / "Cargo.toml",
        destination_root=tmp_path / "out",
        profile="release",
    )


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    return FakeRunner
