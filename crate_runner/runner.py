"""End-to-end pipeline: file location -> Invocation."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from .classify import classify, module_path
from .command import Invocation, synthesize
from .config import RunnerConfig
from .errors import MalformedSourceError, UnknownFileError
from .locator import locate_symbol
from .resolver import resolve
from .workspace import Workspace

_LOCATION_RE = re.compile(r"(?P<path>.+?)(?::(?P<line>\d+)(?::\d+)?)?")


@dataclass(frozen=True)
class Location:
    path: Path                 # absolute
    line: int | None = None    # 1-based


def parse_location(text: str, cwd: Path | None = None) -> Location:
    """Parse 'path', 'path:line' or 'path:line:col' (the column is ignored).

    Relative paths are taken relative to cwd (default: the process cwd).

    Raises:
        ValueError: If the text is empty or the line is not positive.
    """
    m = _LOCATION_RE.fullmatch(text.strip())
    if not m:
        raise ValueError(f"invalid file location: {text!r}")
    path = Path(m.group("path")).expanduser()
    if not path.is_absolute():
        path = (cwd or Path.cwd()) / path
    line = m.group("line")
    if line is not None and int(line) < 1:
        raise ValueError(f"line numbers start at 1: {text!r}")
    return Location(path=path.resolve(), line=int(line) if line is not None else None)


def plan(
    location: Location,
    workspace: Workspace,
    config: RunnerConfig | None = None,
    *,
    dry_run: bool = False,
    verbose: bool = False,
) -> Invocation:
    """Classify, resolve and locate, then synthesize the Invocation.

    Raises:
        UnknownFileError: If the file does not exist or no member owns it.
        UnclassifiableFileError: If the file matches no convention.
        MalformedSourceError: If a line was given and the file is unbalanced.
    """
    config = config or RunnerConfig()
    if not location.path.is_file():
        raise UnknownFileError("no such file", path=location.path)

    descriptor = classify(location.path, workspace)
    target = resolve(descriptor)
    if verbose:
        name = f" '{descriptor.name}'" if descriptor.name else ""
        print(f"  Classified {descriptor.relative_path} in {descriptor.member.label} "
              f"as {descriptor.kind.value}{name}", file=sys.stderr)
        print(f"  Target: {target.label} ({target.kind.value})", file=sys.stderr)

    symbol = None
    if location.line is not None:
        text = location.path.read_text(encoding="utf-8", errors="replace")
        try:
            symbol = locate_symbol(text, location.line, backend=config.locator)
        except MalformedSourceError as e:
            raise MalformedSourceError(e.reason, path=location.path, line=e.line) from None
        prefix = module_path(descriptor)
        if symbol is not None and prefix:
            # libtest names cases by their full path from the crate root
            symbol = replace(symbol, path="::".join([*prefix, symbol.path]))
        if verbose:
            if symbol is None:
                print(f"  No test at line {location.line}; using the whole target",
                      file=sys.stderr)
            else:
                print(f"  Symbol: {symbol.path} (lines {symbol.start_line}-"
                      f"{symbol.end_line})", file=sys.stderr)

    relative_path = location.path.relative_to(workspace.root).as_posix()
    return synthesize(
        target, symbol, dry_run,
        program=config.program,
        overrides=config.overrides_for(relative_path),
        cwd=workspace.root,
    )
