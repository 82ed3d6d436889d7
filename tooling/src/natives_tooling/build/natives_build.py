"""Build the configured native library for every requested platform and stage it.

Reads natives.yaml (or an explicit config path) from the project root, applies
command-line overrides, runs the coordinator and prints a per-platform summary.
An optional report file receives the run summary as Markdown (or JSON when the
path ends in .json); when GITHUB_STEP_SUMMARY is set the Markdown table is
appended there too.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from natives_tooling.build.coordinator import NativeBuildCoordinator
from natives_tooling.build.report import RunReport
from natives_tooling.config import find_config, load_config, resolve_config, to_build_request
from natives_tooling.errors import ConfigError, NativesError, UnknownPlatform
from natives_tooling.process import ProcessRunner


def _load_options(
    project_root: Path,
    config_path: Path | None,
    overrides: dict[str, Any],
) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    path = find_config(project_root)
    if config_path is not None:
        path = config_path if config_path.is_absolute() else project_root / config_path
        if not path.is_file():
            msg = f"Config not found: {path}"
            raise ConfigError(msg)
    if path is not None:
        raw = load_config(path)
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return resolve_config(raw)


def write_report(report: RunReport, path: Path | None, project_root: Path) -> None:
    """Write the run summary to path (JSON if .json, else Markdown) and to GITHUB_STEP_SUMMARY if set."""
    markdown = report.to_markdown(project_root)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".json":
            path.write_text(json.dumps(report.to_dict(), indent=2) + "\n")
        else:
            path.write_text(markdown)
    summary = os.environ.get("GITHUB_STEP_SUMMARY")
    if summary:
        with open(summary, "a") as f:
            f.write(markdown)


def build_natives_with_options(
    project_root: Path,
    *,
    config_path: Path | None = None,
    platforms: Sequence[str] | None = None,
    libname: str | None = None,
    profile: str | None = None,
    channel: str | None = None,
    verbose: bool | None = None,
    use_cache: bool = True,
    jobs: int | None = None,
    report_path: Path | None = None,
    runner: ProcessRunner | None = None,
) -> int:
    """Build libname for each platform (CLI values override natives.yaml). Returns 0/1."""
    overrides = {
        "platforms": list(platforms) if platforms else None,
        "libname": libname,
        "profile": profile,
        "toolchain_channel": channel,
        "verbose": verbose or None,
    }
    try:
        cfg = _load_options(project_root, config_path, overrides)
        defaults = to_build_request(cfg, project_root)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if not defaults.manifest_file.exists():
        print(f"❌ {defaults.manifest_file} not found", file=sys.stderr)
        return 1
    if not cfg["platforms"]:
        print("❌ No platforms requested (set platforms or pass --platform)", file=sys.stderr)
        return 1

    coordinator = NativeBuildCoordinator(defaults, runner=runner, use_cache=use_cache)
    try:
        tasks = coordinator.configure(cfg["platforms"])
    except UnknownPlatform as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(f"🔨 Building {defaults.library_name} ({defaults.profile}) for {', '.join(t.platform for t in tasks)}...")
    try:
        report = coordinator.build_all(max_workers=jobs)
    except (NativesError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        report = coordinator.report or RunReport()
        for o in report.skipped:
            print(f"   ⏭️  {o.platform}: skipped (run aborted)", file=sys.stderr)
        write_report(report, report_path, project_root)
        return 1

    for o in report.outcomes:
        if not o.staged:
            print(f"⚠️  {o.platform}: build finished but no {defaults.library_name} artifact was found")
            continue
        names = ", ".join(p.name for p in o.staged)
        suffix = " (cached)" if o.cached else ""
        dest = o.staged[0].parent
        try:
            dest = dest.relative_to(project_root.resolve())
        except ValueError:
            pass
        print(f"✅ {o.platform}: {names} -> {dest}{suffix}")
    write_report(report, report_path, project_root)
    print("🎉 All requested native libraries built!")
    return 0


__all__ = ["build_natives_with_options", "write_report"]
