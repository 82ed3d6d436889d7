"""Toolchain registry: platform identifier -> (target triple, staging folder)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from natives_tooling.errors import UnknownPlatform


@dataclass(frozen=True, slots=True)
class Toolchain:
    platform: str
    target: str
    output_folder: str


BUILTIN_TOOLCHAINS: tuple[Toolchain, ...] = (
    Toolchain("darwin-x86-64", "x86_64-apple-darwin", "software/darwin/amd64"),
    Toolchain("darwin-aarch64", "aarch64-apple-darwin", "software/darwin/arm64"),
    Toolchain("linux-x86-64", "x86_64-unknown-linux-gnu", "software/linux/amd64"),
    Toolchain("linux-aarch64", "aarch64-unknown-linux-gnu", "software/linux/arm64"),
    Toolchain("win32-x86-64", "x86_64-pc-windows-gnu", "software/windows/amd64"),
)


class ToolchainRegistry:
    """Read-only lookup table keyed by platform identifier."""

    def __init__(self, toolchains: Iterable[Toolchain]) -> None:
        table: dict[str, Toolchain] = {}
        for tc in toolchains:
            if tc.platform in table:
                msg = f"Duplicate platform in toolchain registry: {tc.platform}"
                raise ValueError(msg)
            table[tc.platform] = tc
        self._table: Mapping[str, Toolchain] = MappingProxyType(table)

    def resolve(self, platform: str) -> Toolchain:
        """Return the toolchain for platform; UnknownPlatform lists all known ids (sorted)."""
        tc = self._table.get(platform)
        if tc is None:
            raise UnknownPlatform(platform, self.platforms())
        return tc

    def platforms(self) -> list[str]:
        return sorted(self._table)

    def __iter__(self):
        return (self._table[p] for p in self.platforms())

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, platform: object) -> bool:
        return platform in self._table


DEFAULT_REGISTRY = ToolchainRegistry(BUILTIN_TOOLCHAINS)


def resolve(platform: str) -> Toolchain:
    """Resolve against the built-in registry."""
    return DEFAULT_REGISTRY.resolve(platform)


__all__ = ["BUILTIN_TOOLCHAINS", "DEFAULT_REGISTRY", "Toolchain", "ToolchainRegistry", "resolve"]
