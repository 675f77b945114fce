"""Optional crate-runner.toml settings at the repository root."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError
from .locator import BACKENDS
from .workspace import load_toml

CONFIG_FILENAME = "crate-runner.toml"


@dataclass(frozen=True)
class Override:
    """Extra arguments and environment for files matching a glob."""
    pattern: str               # fnmatch against the root-relative POSIX path
    flags: tuple[str, ...] = ()
    test_args: tuple[str, ...] = ()
    run_args: tuple[str, ...] = ()
    env: tuple[tuple[str, str], ...] = ()

    def matches(self, relative_path: str) -> bool:
        return fnmatch.fnmatchcase(relative_path, self.pattern)


@dataclass
class RunnerConfig:
    program: str = "bazel"
    locator: str = "scan"
    skip_dirs: tuple[str, ...] = ()
    overrides: list[Override] = field(default_factory=list)
    path: Path | None = None   # config file it was read from

    def overrides_for(self, relative_path: str) -> list[Override]:
        return [o for o in self.overrides if o.matches(relative_path)]


def _string_list(value, key: str, path: Path) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' must be a list of strings", path=path)
    return tuple(value)


def _parse_override(raw, path: Path) -> Override:
    if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
        raise ConfigurationError("every [[overrides]] entry needs a 'path' glob", path=path)
    env = raw.get("env", {})
    if not isinstance(env, dict) or not all(isinstance(v, str) for v in env.values()):
        raise ConfigurationError("override 'env' must map names to strings", path=path)
    return Override(
        pattern=raw["path"],
        flags=_string_list(raw.get("flags", []), "flags", path),
        test_args=_string_list(raw.get("test_args", []), "test_args", path),
        run_args=_string_list(raw.get("run_args", []), "run_args", path),
        env=tuple(env.items()),
    )


def load_config(root: str | Path) -> RunnerConfig:
    """Read crate-runner.toml from root, or return defaults if absent.

    Raises:
        ConfigurationError: If the file is not valid TOML or has bad values.
    """
    path = Path(root) / CONFIG_FILENAME
    if not path.is_file():
        return RunnerConfig()

    data = load_toml(path)
    runner = data.get("runner", {})
    config = RunnerConfig(path=path)

    program = runner.get("program", config.program)
    if not isinstance(program, str) or not program:
        raise ConfigurationError("'program' must be a non-empty string", path=path)
    config.program = program

    locator = runner.get("locator", config.locator)
    if locator not in BACKENDS:
        raise ConfigurationError(
            f"unknown locator '{locator}' (expected one of: {', '.join(BACKENDS)})",
            path=path,
        )
    config.locator = locator

    config.skip_dirs = _string_list(runner.get("skip_dirs", []), "skip_dirs", path)

    overrides = data.get("overrides", [])
    if not isinstance(overrides, list):
        raise ConfigurationError("[[overrides]] must be an array of tables", path=path)
    config.overrides = [_parse_override(raw, path) for raw in overrides]
    return config
