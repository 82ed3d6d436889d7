"""Builds one native library for every requested platform.

A coordinator instance is one orchestration run: it owns the serialization
gate, the memoized host-target resolver, the abort flag and the cancel event,
and hands them to every task it registers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from natives_tooling.build.gate import BuildSerializationGate, RunAbort
from natives_tooling.build.host_target import HostTargetResolver
from natives_tooling.build.report import RunReport, TaskOutcome
from natives_tooling.build.task import BuildRequest, NativeBuildTask, TaskState
from natives_tooling.process import ProcessRunner, SubprocessRunner
from natives_tooling.toolchains import DEFAULT_REGISTRY, Toolchain, ToolchainRegistry

log = logging.getLogger(__name__)


class NativeBuildCoordinator:
    def __init__(
        self,
        defaults: BuildRequest,
        *,
        registry: ToolchainRegistry = DEFAULT_REGISTRY,
        runner: ProcessRunner | None = None,
        use_cache: bool = True,
    ) -> None:
        self.defaults = defaults
        self.registry = registry
        self.runner = runner or SubprocessRunner()
        self.use_cache = use_cache
        self.gate = BuildSerializationGate()
        self.resolver = HostTargetResolver(self.runner)
        self._cancel = threading.Event()
        self._abort = RunAbort()
        self.tasks: list[NativeBuildTask] = []
        self.report: RunReport | None = None

    def configure(self, platforms: Iterable[str]) -> list[NativeBuildTask]:
        """Register one task per platform. Any unknown platform raises UnknownPlatform and registers nothing."""
        toolchains: list[Toolchain] = []
        seen: set[str] = set()
        for p in platforms:
            tc = self.registry.resolve(p)
            if tc.platform in seen:
                continue
            seen.add(tc.platform)
            toolchains.append(tc)

        self.tasks = [
            NativeBuildTask(
                replace(self.defaults),
                tc,
                resolver=self.resolver,
                gate=self.gate,
                runner=self.runner,
                use_cache=self.use_cache,
                cancel=self._cancel,
                abort=self._abort,
            )
            for tc in toolchains
        ]
        log.debug("Configured native builds: %s", ", ".join(t.platform for t in self.tasks))
        return self.tasks

    def cancel(self) -> None:
        """Abort the in-flight cargo process (if any) and skip tasks not yet started."""
        self._cancel.set()

    def build_all(self, *, max_workers: int | None = None, raise_on_failure: bool = True) -> RunReport:
        """Run every configured task. First failure aborts tasks that have not reached cargo; a running build finishes.

        Returns the RunReport; if raise_on_failure, re-raises the first fatal error after all
        workers have stopped.
        """
        if not self.tasks:
            self.report = RunReport()
            return self.report
        workers = max_workers or len(self.tasks)
        lock = threading.Lock()
        first_error: list[BaseException] = []

        def run_one(task: NativeBuildTask) -> None:
            if self._abort.is_set() or self._cancel.is_set():
                task.skip()
                log.info("%s: skipped, run aborted", task.platform)
                return
            try:
                task.execute()
            except Exception as e:
                with lock:
                    if not first_error:
                        first_error.append(e)
                log.debug("%s failed: %s", task.platform, e)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="natives") as pool:
            futures = [pool.submit(run_one, t) for t in self.tasks]
            try:
                for f in futures:
                    f.result()
            except BaseException:
                # Ctrl-C in the waiting thread: kill cargo before the pool joins its workers.
                self.cancel()
                raise

        for t in self.tasks:
            if t.state is TaskState.PENDING:
                t.skip()
        self.report = RunReport([TaskOutcome.from_task(t) for t in self.tasks])
        if first_error and raise_on_failure:
            raise first_error[0]
        return self.report


__all__ = ["NativeBuildCoordinator"]
