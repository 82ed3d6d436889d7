"""Main CLI entry point for natives tooling."""

import sys

from natives_tooling.cli import build as build_cli
from natives_tooling.cli import toolchains_cmd


def _usage() -> None:
    print("Usage: natives <command> [args...]", file=sys.stderr)
    print("Commands:", file=sys.stderr)
    print(
        "  build [--platform P ...]  - cargo build per platform and stage lib<name>.{so,dylib}/<name>.dll",
        file=sys.stderr,
    )
    print("  toolchains [--json]       - List platform -> target triple -> output folder", file=sys.stderr)
    print("  host-target [--rustc R]   - Print rustc's host default target", file=sys.stderr)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "build":
        build_cli.run_build_argv()
    elif command == "toolchains":
        toolchains_cmd.run_toolchains_argv()
    elif command == "host-target":
        toolchains_cmd.run_host_target_argv()
    elif command in ("-h", "--help", "help"):
        _usage()
        sys.exit(0)
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
