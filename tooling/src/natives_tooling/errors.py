"""Error types for native builds: unknown platforms, probe failures, build failures."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class NativesError(Exception):
    """Base error carrying an optional hint and string context."""

    hint: str | None
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "error": type(self).__name__,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigError(NativesError, ValueError):
    """Malformed natives configuration (file or values)."""


class UnknownPlatform(NativesError, ValueError):
    """Requested platform identifier is not in the toolchain registry."""

    def __init__(self, platform: str, known: Sequence[str]) -> None:
        self.platform = platform
        self.known = sorted(known)
        super().__init__(
            f"Unknown platform '{platform}'. Known platforms: {', '.join(self.known)}",
            hint="Use one of the known platform identifiers (see `natives toolchains`).",
        )


class ToolchainProbeFailed(NativesError, RuntimeError):
    """The compiler's host target could not be determined. Fatal for the run."""


class NativeBuildFailed(NativesError, RuntimeError):
    """cargo exited non-zero for one target."""

    def __init__(
        self,
        *,
        exit_code: int,
        stderr: str,
        command: Sequence[str],
        platform: str = "",
    ) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        self.command = tuple(command)
        self.platform = platform
        super().__init__(
            f"Native build failed with exit code {exit_code}",
            context={
                "platform": platform,
                "command": " ".join(self.command),
                "stderr": stderr.strip(),
            },
        )


class BuildCancelled(NativeBuildFailed):
    """The in-flight build process was aborted because the run was cancelled."""

    def __init__(self, *, command: Sequence[str], platform: str = "", exit_code: int = -1) -> None:
        super().__init__(
            exit_code=exit_code,
            stderr="build cancelled",
            command=command,
            platform=platform,
        )


__all__ = [
    "BuildCancelled",
    "ConfigError",
    "NativeBuildFailed",
    "NativesError",
    "ToolchainProbeFailed",
    "UnknownPlatform",
]
