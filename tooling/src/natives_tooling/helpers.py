"""Shared helpers for natives_tooling (text, hashing, path walking).

Used by build, config, and cli modules.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from pathlib import Path

DEFAULT_EXCLUDE = frozenset({"target", ".git", "node_modules"})

# --- Text ---


def normalize_channel(channel: str | None) -> str | None:
    """rustup channel selector with a leading '+' (e.g. 'nightly' -> '+nightly'). Blank -> None."""
    if channel is None:
        return None
    channel = channel.strip()
    if not channel:
        return None
    return channel if channel.startswith("+") else f"+{channel}"


def markdown_table(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render a GitHub-flavoured Markdown table. Pipes in cells are escaped."""

    def cell(v: object) -> str:
        return str(v).replace("|", "\\|").replace("\n", " ")

    lines = [
        "| " + " | ".join(cell(h) for h in headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(cell(v) for v in row) + " |")
    return "\n".join(lines) + "\n"


# --- Hash / path ---


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def iter_source_files(root: Path, *, exclude: Iterable[str] = DEFAULT_EXCLUDE) -> list[Path]:
    """All files under root, sorted, skipping any path with a segment in exclude (default: target, .git, node_modules)."""
    skip = set(exclude)
    out: list[Path] = []
    if not root.is_dir():
        return out
    for p in root.rglob("*"):
        if not p.is_file():
            continue
        rel = p.relative_to(root)
        if any(part in skip for part in rel.parts):
            continue
        out.append(p)
    return sorted(out)


def sha256_tree(root: Path, *, exclude: Iterable[str] = DEFAULT_EXCLUDE) -> str:
    """Digest over relative paths and contents of every file under root."""
    h = hashlib.sha256()
    for p in iter_source_files(root, exclude=exclude):
        h.update(p.relative_to(root).as_posix().encode("utf-8"))
        h.update(b"\0")
        h.update(sha256_file(p).encode("ascii"))
        h.update(b"\n")
    return h.hexdigest()
