"""Per-run summary of native builds, rendered as a Markdown table or JSON payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from natives_tooling.build.task import NativeBuildTask, TaskState
from natives_tooling.errors import NativeBuildFailed
from natives_tooling.helpers import markdown_table

_STATUS_ICON = {
    TaskState.DONE: "✅",
    TaskState.FAILED: "❌",
    TaskState.SKIPPED: "⏭️",
}


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    platform: str
    target: str
    state: TaskState
    command: tuple[str, ...] = ()
    staged: tuple[Path, ...] = ()
    cached: bool = False
    duration: float | None = None
    error: BaseException | None = None

    @classmethod
    def from_task(cls, task: NativeBuildTask) -> TaskOutcome:
        return cls(
            platform=task.platform,
            target=task.toolchain.target,
            state=task.state,
            command=tuple(task.command),
            staged=tuple(task.staged),
            cached=task.cached,
            duration=task.duration,
            error=task.error,
        )

    @property
    def status(self) -> str:
        if self.state is TaskState.DONE and self.cached:
            return "cached"
        if self.state is TaskState.SKIPPED:
            return "skipped (aborted)"
        return self.state.value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "platform": self.platform,
            "target": self.target,
            "status": self.status,
            "command": list(self.command),
            "staged": [str(p) for p in self.staged],
            "cached": self.cached,
            "duration": round(self.duration, 3) if self.duration is not None else None,
        }
        if self.error is not None:
            out["error"] = str(self.error)
            if isinstance(self.error, NativeBuildFailed):
                out["exit_code"] = self.error.exit_code
        return out


@dataclass(slots=True)
class RunReport:
    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.state is TaskState.DONE for o in self.outcomes)

    @property
    def failed(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.state is TaskState.FAILED]

    @property
    def skipped(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.state is TaskState.SKIPPED]

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "tasks": [o.to_dict() for o in self.outcomes]}

    def to_markdown(self, root: Path | None = None) -> str:
        """Markdown table: one row per platform (status, target, command, staged files)."""

        def rel(p: Path) -> str:
            if root is not None:
                try:
                    return p.relative_to(root).as_posix()
                except ValueError:
                    pass
            return p.as_posix()

        rows = []
        for o in self.outcomes:
            icon = _STATUS_ICON.get(o.state, "")
            duration = f"{o.duration:.1f}s" if o.duration is not None else ""
            rows.append(
                (
                    o.platform,
                    o.target,
                    f"{icon} {o.status}".strip(),
                    f"`{' '.join(o.command)}`" if o.command else "",
                    ", ".join(rel(p) for p in o.staged),
                    duration,
                )
            )
        table = markdown_table(
            ("Platform", "Target", "Status", "Command", "Staged", "Duration"), rows
        )
        return "## Native builds\n\n" + table


__all__ = ["RunReport", "TaskOutcome"]
