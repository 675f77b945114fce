"""Synthesize and execute the build-tool command for a resolved target."""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .classify import FileKind
from .config import Override
from .errors import BuildToolNotFoundError
from .locator import SymbolMatch
from .resolver import ResolvedTarget

STREAMED_OUTPUT_FLAG = "--test_output=streamed"
EXACT_MATCH_ARG = "--exact"

_RUNNABLE_KINDS = frozenset({
    FileKind.PRIMARY_BINARY, FileKind.AUXILIARY_BINARY, FileKind.EXAMPLE,
})


@dataclass
class Invocation:
    """A literal build-tool command line."""
    program: str
    verb: str                  # "build" | "run" | "test"
    labels: list[str]
    flags: list[str] = field(default_factory=list)
    test_args: list[str] = field(default_factory=list)   # passed as --test_arg=
    run_args: list[str] = field(default_factory=list)    # passed after --
    env: dict[str, str] = field(default_factory=dict)
    cwd: Path | None = None
    dry_run: bool = False

    @property
    def label(self) -> str:
        return self.labels[0]

    @property
    def argv(self) -> list[str]:
        argv = [self.program, self.verb, *self.labels, *self.flags]
        argv.extend(f"--test_arg={arg}" for arg in self.test_args)
        if self.run_args:
            argv.extend(["--", *self.run_args])
        return argv

    @property
    def command_line(self) -> str:
        env = [f"{name}={shlex.quote(value)}" for name, value in self.env.items()]
        return " ".join([*env, shlex.join(self.argv)])

    def __str__(self) -> str:
        return self.command_line


def synthesize(
    target: ResolvedTarget,
    symbol: SymbolMatch | None,
    dry_run: bool = False,
    *,
    program: str = "bazel",
    overrides: Iterable[Override] = (),
    cwd: Path | None = None,
) -> Invocation:
    """Build the Invocation for target, narrowed to symbol when one was located.

    Libraries run their unit and documentation test targets. Binaries and
    examples run, unless a symbol was located: then their embedded unit
    tests run instead, with streamed output. Benchmarks run as a whole
    without a symbol and go through the test runner with one.
    """
    kind = target.file_kind
    flags: list[str] = []

    if kind in (FileKind.LIBRARY, FileKind.LIBRARY_MODULE):
        verb = "test"
        labels = [target.test_label]
        if symbol is None:
            labels.append(target.doc_test_label)
    elif kind in _RUNNABLE_KINDS:
        if symbol is None:
            verb, labels = "run", [target.label]
        else:
            verb, labels = "test", [target.test_label]
            flags.append(STREAMED_OUTPUT_FLAG)
    elif kind == FileKind.INTEGRATION_TEST:
        verb, labels = "test", [target.label]
    elif kind == FileKind.BENCHMARK:
        verb, labels = ("run" if symbol is None else "test"), [target.label]
    else:
        verb, labels = "build", [target.label]

    invocation = Invocation(
        program=program, verb=verb, labels=labels, flags=flags,
        cwd=cwd, dry_run=dry_run,
    )
    if symbol is not None and verb == "test":
        invocation.test_args.extend([EXACT_MATCH_ARG, symbol.path])

    for override in overrides:
        invocation.flags.extend(override.flags)
        if verb == "test":
            invocation.test_args.extend(override.test_args)
        elif verb == "run":
            invocation.run_args.extend(override.run_args)
        invocation.env.update(override.env)

    return invocation


# ── Execution ─────────────────────────────────────────────────────────

Delegate = Callable[[Invocation], int]


def run_subprocess(invocation: Invocation) -> int:
    """Run the command with inherited stdio and return its exit code.

    A child killed by signal N reports 128 + N, as a shell would. Ctrl-C
    reaches the whole process group, so the child decides how to stop and
    its exit code is still relayed.
    """
    env = {**os.environ, **invocation.env}
    try:
        process = subprocess.Popen(invocation.argv, cwd=invocation.cwd, env=env)
    except FileNotFoundError:
        raise BuildToolNotFoundError(
            f"build tool '{invocation.program}' was not found on PATH"
        ) from None
    while True:
        try:
            returncode = process.wait()
            break
        except KeyboardInterrupt:
            continue
    if returncode < 0:
        return 128 - returncode
    return returncode


def execute(invocation: Invocation, delegate: Delegate | None = None, *,
            verbose: bool = False) -> int:
    """Print (dry run) or run the invocation; return the exit code."""
    if invocation.dry_run:
        print(invocation.command_line)
        return 0
    if verbose:
        print(f"  Running: {invocation.command_line}", file=sys.stderr)
    return (delegate or run_subprocess)(invocation)
