"""Command-line entry point.

Usage::

    crate-runner run corex/src/bin/proxy.rs:10 --dry-run
    crate-runner members
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .command import Delegate, execute
from .config import load_config
from .errors import ResolverError
from .runner import parse_location, plan
from .workspace import build_workspace_model, find_repository_root


def _location(value: str):
    try:
        return parse_location(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crate-runner",
        description="Build, run or test the Bazel target that owns a Rust source location.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Repository root (default: the outermost Cargo workspace above the cwd)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print resolution progress to stderr",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Resolve path[:line] and run its command")
    run.add_argument("location", type=_location, help="path, path:line or path:line:col")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the command instead of executing it",
    )

    sub.add_parser("members", help="List workspace members and their labels")
    return parser


def _print_members(workspace) -> None:
    for member in workspace.members:
        marker = " [workspace]" if member.is_workspace_root else ""
        print(f"{member.label}\t{member.name}{marker}")
        for name in sorted(member.binaries):
            print(f"  bin {member.label}:{name}")


def main(argv: list[str] | None = None, *, delegate: Delegate | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        root = args.root.resolve() if args.root else find_repository_root(Path.cwd())
        config = load_config(root)
        workspace = build_workspace_model(
            root, skip_dirs=config.skip_dirs, verbose=args.verbose,
        )
        if args.command == "members":
            _print_members(workspace)
            return 0
        invocation = plan(
            args.location, workspace, config,
            dry_run=args.dry_run, verbose=args.verbose,
        )
        return execute(invocation, delegate, verbose=args.verbose)
    except ResolverError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
