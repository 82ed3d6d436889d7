"""Incremental build cache: skip a target when its inputs and staged outputs are unchanged.

The key covers the manifest, the sources tree, the toolchain identity, the
profile, the effective verbose flag and the channel. After staging, a stamp
file in the destination folder records the key and the hashes of the staged
files; a later run with the same key and intact files is a hit.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from natives_tooling.helpers import sha256_file, sha256_tree

log = logging.getLogger(__name__)

STAMP_NAME = ".natives-build.json"


@dataclass(frozen=True, slots=True)
class BuildFingerprint:
    manifest_hash: str
    sources_hash: str
    platform: str
    target: str
    cargo: str
    rustc: str
    channel: str | None
    library_name: str
    profile: str
    verbose: bool

    def key(self) -> str:
        canonical = json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def fingerprint_inputs(
    *,
    manifest_file: Path,
    sources_directory: Path,
    platform: str,
    target: str,
    cargo: str,
    rustc: str,
    channel: str | None,
    library_name: str,
    profile: str,
    verbose: bool,
) -> BuildFingerprint:
    manifest_hash = sha256_file(manifest_file) if manifest_file.is_file() else ""
    return BuildFingerprint(
        manifest_hash=manifest_hash,
        sources_hash=sha256_tree(sources_directory),
        platform=platform,
        target=target,
        cargo=cargo,
        rustc=rustc,
        channel=channel,
        library_name=library_name,
        profile=profile,
        verbose=verbose,
    )


def _read_stamp(dest_dir: Path) -> dict[str, Any] | None:
    path = dest_dir / STAMP_NAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        log.debug("Ignoring unreadable build stamp %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def is_up_to_date(dest_dir: Path, key: str) -> list[Path] | None:
    """Staged files if dest_dir holds a stamp for key whose files are intact, else None."""
    stamp = _read_stamp(dest_dir)
    if stamp is None or stamp.get("key") != key:
        return None
    files = stamp.get("files")
    if not isinstance(files, dict) or not files:
        return None
    staged: list[Path] = []
    for name, digest in sorted(files.items()):
        p = dest_dir / name
        if not p.is_file() or sha256_file(p) != digest:
            log.debug("Stamp in %s is stale: %s changed or missing", dest_dir, name)
            return None
        staged.append(p)
    return staged


def write_stamp(dest_dir: Path, key: str, staged: list[Path]) -> Path:
    dest_dir.mkdir(parents=True, exist_ok=True)
    payload = {
        "key": key,
        "files": {p.name: sha256_file(p) for p in staged},
    }
    path = dest_dir / STAMP_NAME
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")
    return path


__all__ = [
    "STAMP_NAME",
    "BuildFingerprint",
    "fingerprint_inputs",
    "is_up_to_date",
    "write_stamp",
]
