"""`natives toolchains` and `natives host-target`."""

from __future__ import annotations

import argparse
import json
import sys

from natives_tooling.build.host_target import HostTargetResolver
from natives_tooling.errors import ToolchainProbeFailed
from natives_tooling.helpers import markdown_table
from natives_tooling.toolchains import DEFAULT_REGISTRY


def run_toolchains_argv(argv: list[str] | None = None) -> None:
    """List registered platforms: identifier, target triple, staging folder."""
    if argv is None:
        argv = sys.argv[2:]
    for a in argv:
        if a != "--json":
            print(f"Error: Unknown argument: {a}", file=sys.stderr)
            print("Usage: natives toolchains [--json]", file=sys.stderr)
            sys.exit(1)
    if "--json" in argv:
        payload = [
            {"platform": tc.platform, "target": tc.target, "output_folder": tc.output_folder}
            for tc in DEFAULT_REGISTRY
        ]
        print(json.dumps(payload, indent=2))
        sys.exit(0)
    rows = [(tc.platform, tc.target, tc.output_folder) for tc in DEFAULT_REGISTRY]
    print(markdown_table(("Platform", "Target", "Output folder"), rows), end="")
    sys.exit(0)


def run_host_target_argv(argv: list[str] | None = None) -> None:
    """Print the compiler's host default target triple."""
    if argv is None:
        argv = sys.argv[2:]
    ap = argparse.ArgumentParser(
        prog="natives host-target", description="Print rustc's host default target"
    )
    ap.add_argument("--rustc", default="rustc", help="rustc binary (default: rustc)")
    args = ap.parse_args(argv)
    try:
        triple = HostTargetResolver().resolve(args.rustc)
    except ToolchainProbeFailed as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    print(triple)
    sys.exit(0)
