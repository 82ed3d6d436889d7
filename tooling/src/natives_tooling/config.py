"""natives.yaml loading: build defaults and requested platforms.

Config YAML format:
- libname: logical library name (required; lib<name>.so / lib<name>.dylib / <name>.dll)
- platforms: list of platform identifiers (see `natives toolchains`)
- profile: cargo profile; "debug" passes no flag, anything else passes --<profile>
- verbose: always pass --verbose to cargo
- toolchain_channel: optional rustup channel (e.g. nightly or +1.79.0)
- cargo, rustc: command paths
- manifest: Cargo.toml path; sources_dir: sources tree (default: manifest dir)
- destination: staging root; artifacts land in <destination>/<output_folder>/

Paths are relative to the project root.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from natives_tooling.build.task import BuildRequest
from natives_tooling.errors import ConfigError

CONFIG_FILE_NAME = "natives.yaml"

DEFAULT_NATIVES_CONFIG: dict[str, Any] = {
    "libname": None,
    "platforms": [],
    "profile": "release",
    "verbose": False,
    "toolchain_channel": None,
    "cargo": "cargo",
    "rustc": "rustc",
    "manifest": "Cargo.toml",
    "sources_dir": None,
    "destination": "build/natives",
}


def find_config(project_root: Path) -> Path | None:
    p = project_root / CONFIG_FILE_NAME
    return p if p.is_file() else None


def load_config(path: Path) -> dict[str, Any]:
    """Load raw config mapping from YAML. Empty file -> {}."""
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


def _as_platforms(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, (list, tuple)):
        out = []
        for item in value:
            if not isinstance(item, str):
                msg = f"platforms entries must be strings, got {item!r}"
                raise ConfigError(msg)
            if item.strip():
                out.append(item.strip())
        return out
    msg = f"platforms must be a list of strings, got {type(value).__name__}"
    raise ConfigError(msg)


def resolve_config(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return config with defaults filled. Unknown keys or bad types raise ConfigError."""
    out = dict(DEFAULT_NATIVES_CONFIG)
    if not data:
        return out
    unknown = sorted(str(k) for k in data if k not in DEFAULT_NATIVES_CONFIG)
    if unknown:
        raise ConfigError(
            f"Unknown config keys: {', '.join(unknown)}",
            hint=f"Known keys: {', '.join(sorted(DEFAULT_NATIVES_CONFIG))}",
        )
    out.update({k: v for k, v in data.items() if v is not None})
    out["platforms"] = _as_platforms(out["platforms"])
    if not isinstance(out["verbose"], bool):
        msg = f"verbose must be true or false, got {out['verbose']!r}"
        raise ConfigError(msg)
    for key in ("profile", "cargo", "rustc", "manifest", "destination"):
        if not isinstance(out[key], str) or not out[key].strip():
            msg = f"{key} must be a non-empty string"
            raise ConfigError(msg)
    for key in ("libname", "toolchain_channel", "sources_dir"):
        if out[key] is not None and not isinstance(out[key], str):
            msg = f"{key} must be a string"
            raise ConfigError(msg)
    return out


def to_build_request(cfg: Mapping[str, Any], project_root: Path) -> BuildRequest:
    """Shared BuildRequest defaults from a resolved config. libname is required."""
    if not cfg.get("libname"):
        raise ConfigError(
            "libname is required",
            hint=f"Set libname in {CONFIG_FILE_NAME} or pass --libname.",
        )
    root = project_root.resolve()
    manifest = root / cfg["manifest"]
    sources = root / cfg["sources_dir"] if cfg.get("sources_dir") else None
    return BuildRequest(
        library_name=cfg["libname"],
        manifest_file=manifest,
        destination_root=root / cfg["destination"],
        sources_directory=sources,
        profile=cfg["profile"],
        verbose=cfg["verbose"],
        toolchain_channel=cfg.get("toolchain_channel"),
        cargo_command=cfg["cargo"],
        rustc_command=cfg["rustc"],
    )


__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_NATIVES_CONFIG",
    "find_config",
    "load_config",
    "resolve_config",
    "to_build_request",
]
