"""Native (cargo) builds per target platform: host-target probe, gated cargo runs, artifact staging."""

from .coordinator import NativeBuildCoordinator
from .gate import BuildSerializationGate
from .host_target import HostTargetResolver, parse_host_target
from .natives_build import build_natives_with_options, write_report
from .report import RunReport, TaskOutcome
from .task import (
    BuildRequest,
    NativeBuildTask,
    TaskState,
    artifact_names,
    artifact_source_dir,
    build_command,
    stage_artifacts,
)

__all__ = [
    "BuildRequest",
    "BuildSerializationGate",
    "HostTargetResolver",
    "NativeBuildCoordinator",
    "NativeBuildTask",
    "RunReport",
    "TaskOutcome",
    "TaskState",
    "artifact_names",
    "artifact_source_dir",
    "build_command",
    "build_natives_with_options",
    "parse_host_target",
    "stage_artifacts",
    "write_report",
]
