"""One native build: (toolchain -> artifact staged under destination_root/output_folder).

States: PENDING -> RESOLVING_HOST_TARGET -> BUILDING -> STAGING -> DONE, with
FAILED reachable from any non-terminal state. SKIPPED is set by the
coordinator for tasks it never started, and by the task itself when the run
was aborted before it reached cargo (a replayed probe failure, or another
task's failure seen once the gate is acquired).

The `--target=` flag is only passed when the toolchain's triple differs from
the compiler's host default, so same-machine builds share `target/<profile>`
with plain `cargo build` runs.
"""

from __future__ import annotations

import enum
import logging
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from natives_tooling.build.cache import fingerprint_inputs, is_up_to_date, write_stamp
from natives_tooling.build.gate import BuildSerializationGate, RunAbort
from natives_tooling.build.host_target import HostTargetResolver
from natives_tooling.errors import BuildCancelled, NativeBuildFailed, ToolchainProbeFailed
from natives_tooling.helpers import normalize_channel
from natives_tooling.process import ProcessRunner
from natives_tooling.toolchains import Toolchain

log = logging.getLogger(__name__)

DEBUG_PROFILE = "debug"
ARTIFACT_PATTERNS = ("lib{name}.so", "lib{name}.dylib", "{name}.dll")
AMBIENT_LOGGER = "natives_tooling"


class TaskState(enum.Enum):
    PENDING = "pending"
    RESOLVING_HOST_TARGET = "resolving-host-target"
    BUILDING = "building"
    STAGING = "staging"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self in (TaskState.DONE, TaskState.FAILED, TaskState.SKIPPED)


@dataclass(frozen=True, slots=True)
class BuildRequest:
    library_name: str
    manifest_file: Path
    destination_root: Path
    sources_directory: Path | None = None
    profile: str = "release"
    verbose: bool = False
    toolchain_channel: str | None = None
    cargo_command: str = "cargo"
    rustc_command: str = "rustc"

    @property
    def manifest_dir(self) -> Path:
        return self.manifest_file.parent

    @property
    def sources_dir(self) -> Path:
        return self.sources_directory if self.sources_directory is not None else self.manifest_dir


def artifact_names(library_name: str) -> list[str]:
    """lib<name>.so, lib<name>.dylib, <name>.dll."""
    return [p.format(name=library_name) for p in ARTIFACT_PATTERNS]


def ambient_verbose() -> bool:
    """True when the natives_tooling logger is enabled at INFO or more detailed."""
    return logging.getLogger(AMBIENT_LOGGER).isEnabledFor(logging.INFO)


def build_command(
    request: BuildRequest,
    toolchain: Toolchain,
    host_target: str,
    *,
    verbose: bool | None = None,
) -> list[str]:
    """cargo [+channel] build [--verbose] [--<profile>] [--target=<triple>]."""
    if verbose is None:
        verbose = request.verbose or ambient_verbose()
    cmd = [request.cargo_command]
    channel = normalize_channel(request.toolchain_channel)
    if channel:
        cmd.append(channel)
    cmd.append("build")
    if verbose:
        cmd.append("--verbose")
    if request.profile != DEBUG_PROFILE:
        cmd.append(f"--{request.profile}")
    if toolchain.target != host_target:
        cmd.append(f"--target={toolchain.target}")
    return cmd


def artifact_source_dir(request: BuildRequest, toolchain: Toolchain, host_target: str) -> Path:
    """target/<profile> for host builds, target/<triple>/<profile> otherwise."""
    target_dir = request.manifest_dir / "target"
    if toolchain.target == host_target:
        return target_dir / request.profile
    return target_dir / toolchain.target / request.profile


def stage_artifacts(source_dir: Path, dest_dir: Path, library_name: str) -> list[Path]:
    """Copy whichever recognized artifacts exist in source_dir into dest_dir. Missing ones are skipped."""
    staged: list[Path] = []
    for name in artifact_names(library_name):
        src = source_dir / name
        if not src.is_file():
            continue
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / name
        shutil.copy2(src, dest)
        staged.append(dest)
    if not staged:
        log.debug("No %s artifacts found in %s", library_name, source_dir)
    return staged


class NativeBuildTask:
    def __init__(
        self,
        request: BuildRequest,
        toolchain: Toolchain,
        *,
        resolver: HostTargetResolver,
        gate: BuildSerializationGate,
        runner: ProcessRunner,
        use_cache: bool = True,
        cancel: threading.Event | None = None,
        abort: RunAbort | None = None,
    ) -> None:
        self.request = request
        self.toolchain = toolchain
        self._resolver = resolver
        self._gate = gate
        self._runner = runner
        self._use_cache = use_cache
        self._cancel = cancel
        self._abort = abort
        self.state = TaskState.PENDING
        self.history: list[TaskState] = [TaskState.PENDING]
        self.command: list[str] = []
        self.staged: list[Path] = []
        self.cached = False
        self.error: BaseException | None = None
        self.duration: float | None = None

    @property
    def platform(self) -> str:
        return self.toolchain.platform

    @property
    def destination_dir(self) -> Path:
        return self.request.destination_root / self.toolchain.output_folder

    def _set(self, state: TaskState) -> None:
        self.state = state
        self.history.append(state)
        log.debug("%s: %s", self.platform, state.value)

    def skip(self) -> None:
        if self.state is TaskState.PENDING:
            self._set(TaskState.SKIPPED)

    def _run_aborted(self) -> bool:
        if self._cancel is not None and self._cancel.is_set():
            return True
        return self._abort is not None and self._abort.is_set()

    def _skip_aborted(self) -> None:
        log.info("%s: skipped, run aborted", self.platform)
        self._set(TaskState.SKIPPED)

    def execute(self) -> list[Path]:
        """Resolve host target, build (gated), stage. Returns staged paths.

        A failure marks the run aborted. Returns with the task SKIPPED when the run
        was aborted before this task reached cargo.
        """
        if self.state is not TaskState.PENDING:
            msg = f"Task for {self.platform} already ran (state: {self.state.value})"
            raise RuntimeError(msg)
        start = time.monotonic()
        try:
            self._execute()
        except BaseException as e:
            if self._abort is not None:
                self._abort.claim()
            self.error = e
            self._set(TaskState.FAILED)
            raise
        finally:
            self.duration = time.monotonic() - start
        return self.staged

    def _execute(self) -> None:
        req = self.request
        self._set(TaskState.RESOLVING_HOST_TARGET)
        try:
            host_target = self._resolver.resolve(req.rustc_command)
        except ToolchainProbeFailed:
            # One probe failure per run: whoever claims the abort reports it.
            if self._abort is not None and not self._abort.claim():
                self._skip_aborted()
                return
            raise
        verbose = req.verbose or ambient_verbose()
        self.command = build_command(req, self.toolchain, host_target, verbose=verbose)

        key: str | None = None
        if self._use_cache:
            key = fingerprint_inputs(
                manifest_file=req.manifest_file,
                sources_directory=req.sources_dir,
                platform=self.toolchain.platform,
                target=self.toolchain.target,
                cargo=req.cargo_command,
                rustc=req.rustc_command,
                channel=normalize_channel(req.toolchain_channel),
                library_name=req.library_name,
                profile=req.profile,
                verbose=verbose,
            ).key()
            hit = is_up_to_date(self.destination_dir, key)
            if hit is not None:
                log.info("%s: up to date, skipping cargo", self.platform)
                self.cached = True
                self.staged = hit
                self._set(TaskState.DONE)
                return

        with self._gate.exclusive():
            if self._run_aborted():
                self._skip_aborted()
                return
            self._set(TaskState.BUILDING)
            try:
                self._run_build()
            except BaseException:
                # Still holding the gate, so no waiting task can start cargo first.
                if self._abort is not None:
                    self._abort.claim()
                raise

        self._set(TaskState.STAGING)
        source_dir = artifact_source_dir(req, self.toolchain, host_target)
        self.staged = stage_artifacts(source_dir, self.destination_dir, req.library_name)
        if key is not None and self.staged:
            write_stamp(self.destination_dir, key, self.staged)
        self._set(TaskState.DONE)

    def _run_build(self) -> None:
        log.info("%s: %s", self.platform, " ".join(self.command))
        try:
            r = self._runner.run(self.command, cwd=self.request.manifest_dir, cancel=self._cancel)
        except BuildCancelled as e:
            raise BuildCancelled(
                command=self.command, platform=self.platform, exit_code=e.exit_code
            ) from e
        except OSError as e:
            raise NativeBuildFailed(
                exit_code=127,
                stderr=str(e),
                command=self.command,
                platform=self.platform,
            ) from e
        if r.returncode != 0:
            raise NativeBuildFailed(
                exit_code=r.returncode,
                stderr=r.stderr,
                command=self.command,
                platform=self.platform,
            )


__all__ = [
    "ARTIFACT_PATTERNS",
    "BuildRequest",
    "NativeBuildTask",
    "TaskState",
    "ambient_verbose",
    "artifact_names",
    "artifact_source_dir",
    "build_command",
    "stage_artifacts",
]
