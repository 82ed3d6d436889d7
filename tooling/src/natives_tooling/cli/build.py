"""`natives build`: cargo build per platform, staged into the packaging layout."""

import logging
import sys
from pathlib import Path

from natives_tooling.build.natives_build import build_natives_with_options


def run_build_argv(argv: list[str] | None = None) -> None:
    """Parse argv and build the native library for the requested platforms."""
    import argparse

    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []  # skip 'natives build'
    ap = argparse.ArgumentParser(
        prog="natives build", description="Build native libraries per target platform"
    )
    ap.add_argument(
        "--platform",
        "-p",
        dest="platforms",
        action="append",
        default=None,
        help="Platform identifier (repeatable; default: platforms from natives.yaml)",
    )
    ap.add_argument("--config", type=Path, default=None, help="Config file (default: natives.yaml)")
    ap.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root (default: cwd)",
    )
    ap.add_argument("--libname", default=None, help="Library name (lib<name>.so etc.)")
    ap.add_argument("--profile", default=None, help="Cargo profile (debug passes no flag)")
    ap.add_argument("--channel", default=None, help="rustup toolchain channel, e.g. nightly")
    ap.add_argument("--verbose", "-v", action="store_true", help="Verbose logging and cargo --verbose")
    ap.add_argument("--no-cache", action="store_true", help="Always run cargo")
    ap.add_argument("--jobs", "-j", type=int, default=None, help="Worker threads (cargo runs stay serialized)")
    ap.add_argument("--report", type=Path, default=None, help="Write run summary (.md or .json)")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    rc = build_natives_with_options(
        args.project_root.resolve(),
        config_path=args.config,
        platforms=args.platforms,
        libname=args.libname,
        profile=args.profile,
        channel=args.channel,
        verbose=args.verbose,
        use_cache=not args.no_cache,
        jobs=args.jobs,
        report_path=args.report,
    )
    sys.exit(rc)
