"""Cargo.toml reader for crates and workspaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ConfigurationError

MANIFEST_FILENAME = "Cargo.toml"

# ── TOML loading (stdlib 3.11+, tomli fallback for 3.10) ─────────────

_tomllib = None


def load_toml(path: Path) -> dict:
    """Load a TOML file, using stdlib tomllib or tomli fallback."""
    global _tomllib
    if _tomllib is None:
        try:
            import tomllib as _tl
        except ModuleNotFoundError:
            try:
                import tomli as _tl  # type: ignore[no-redef]
            except ImportError:
                raise ImportError(
                    "TOML parsing requires Python 3.11+ or the 'tomli' package. "
                    "Install with: pip install tomli"
                ) from None
        _tomllib = _tl
    try:
        with open(path, "rb") as f:
            return _tomllib.load(f)
    except _tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid TOML: {e}", path=path) from None
    except OSError as e:
        raise ConfigurationError(f"cannot read file: {e.strerror}", path=path) from None


# ── Models ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DeclaredTarget:
    """A target the manifest declares with an explicit source path."""
    section: str               # "lib" | "bin" | "test" | "example" | "bench" | "build"
    name: str | None
    path: str                  # POSIX, relative to the crate root


@dataclass
class ManifestInfo:
    """The parts of a Cargo.toml the workspace model needs."""
    package_name: str | None = None
    is_workspace: bool = False
    workspace_members: list[str] = field(default_factory=list)
    workspace_exclude: list[str] = field(default_factory=list)
    declared_targets: list[DeclaredTarget] = field(default_factory=list)
    binary_names: list[str] = field(default_factory=list)


# ── Reader ────────────────────────────────────────────────────────────

_TARGET_ARRAYS = {
    "bin": "src/bin/{}.rs",
    "test": "tests/{}.rs",
    "example": "examples/{}.rs",
    "bench": "benches/{}.rs",
}


class CargoTomlReader:
    """Reads Cargo.toml for Rust crates and workspaces."""

    def read(self, manifest_path: Path) -> ManifestInfo:
        data = load_toml(manifest_path)
        package = data.get("package", {})
        workspace = data.get("workspace")

        info = ManifestInfo(package_name=package.get("name"))

        if workspace is not None:
            info.is_workspace = True
            members = workspace.get("members", [])
            if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
                raise ConfigurationError(
                    "[workspace] members must be a list of strings",
                    path=manifest_path,
                )
            info.workspace_members = list(members)
            exclude = workspace.get("exclude", [])
            if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
                raise ConfigurationError(
                    "[workspace] exclude must be a list of strings",
                    path=manifest_path,
                )
            info.workspace_exclude = [_posix(e).rstrip("/") for e in exclude]

        lib = data.get("lib", {})
        if isinstance(lib, dict) and lib.get("path"):
            info.declared_targets.append(DeclaredTarget(
                section="lib", name=lib.get("name"), path=_posix(lib["path"]),
            ))

        # package.build may be a path or `false`
        build = package.get("build")
        if isinstance(build, str):
            info.declared_targets.append(DeclaredTarget(
                section="build", name=None, path=_posix(build),
            ))

        for section, default_path in _TARGET_ARRAYS.items():
            entries = data.get(section, [])
            if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
                raise ConfigurationError(
                    f"[[{section}]] must be an array of tables", path=manifest_path,
                )
            for entry in entries:
                name = entry.get("name")
                path = entry.get("path")
                if section == "bin" and name:
                    # A [[bin]] named after the package built from src/main.rs
                    # is the primary binary, not an auxiliary one
                    if (name == info.package_name
                            and (path is None or _posix(path) == "src/main.rs")):
                        continue
                    info.binary_names.append(name)
                if path is None or name is None:
                    continue
                path = _posix(path)
                if path != default_path.format(name):
                    info.declared_targets.append(DeclaredTarget(
                        section=section, name=name, path=path,
                    ))

        return info


def read_manifest(crate_root: Path) -> ManifestInfo:
    """Read the Cargo.toml in crate_root."""
    return CargoTomlReader().read(crate_root / MANIFEST_FILENAME)


def _posix(path: str) -> str:
    """Normalize a manifest path to a POSIX path without a leading './'."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path
