"""Walk a repository and build its Workspace model."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path

from ..errors import ConfigurationError
from .manifest import MANIFEST_FILENAME, load_toml, read_manifest
from .models import Workspace, WorkspaceMember

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset({
    ".git", ".hg", ".idea", ".vscode", "node_modules", "target",
})


# ── Root discovery ────────────────────────────────────────────────────


def find_repository_root(start: str | Path) -> Path:
    """Walk upward from start to the top-level aggregating manifest.

    Returns the outermost directory whose Cargo.toml has a [workspace]
    table. Without one, falls back to the nearest directory holding a
    Cargo.toml.

    Raises:
        ConfigurationError: If no Cargo.toml exists at or above start.
    """
    start = Path(start).resolve()
    nearest = None
    outermost_workspace = None
    for directory in (start, *start.parents):
        manifest = directory / MANIFEST_FILENAME
        if not manifest.is_file():
            continue
        if nearest is None:
            nearest = directory
        if "workspace" in load_toml(manifest):
            outermost_workspace = directory
    root = outermost_workspace or nearest
    if root is None:
        raise ConfigurationError(
            f"no {MANIFEST_FILENAME} found in this directory or any parent",
            path=start,
        )
    return root


# ── Walk ──────────────────────────────────────────────────────────────


def _walk_manifest_dirs(root: Path, skip_dirs: frozenset[str]) -> Iterator[Path]:
    """Yield directories holding a manifest, depth-first pre-order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in skip_dirs and not d.startswith("bazel-")
        )
        if MANIFEST_FILENAME in filenames:
            yield Path(dirpath)


def _binary_names(crate_root: Path) -> set[str]:
    """Auxiliary binaries present under src/bin/."""
    bin_dir = crate_root / "src" / "bin"
    names: set[str] = set()
    if not bin_dir.is_dir():
        return names
    for entry in bin_dir.iterdir():
        if entry.is_file() and entry.suffix == ".rs":
            names.add(entry.stem)
        elif entry.is_dir() and (entry / "main.rs").is_file():
            names.add(entry.name)
    return names


def _package_label(root: Path, crate_root: Path) -> str:
    try:
        rel = crate_root.relative_to(root).as_posix()
    except ValueError:
        raise ConfigurationError(
            "workspace member lies outside the repository root", path=crate_root,
        ) from None
    return "//" if rel == "." else f"//{rel}"


def _is_excluded(member_dir: Path, excluded: list[Path]) -> bool:
    return any(member_dir == e or e in member_dir.parents for e in excluded)


def _load_member(root: Path, crate_root: Path) -> WorkspaceMember:
    manifest = read_manifest(crate_root)

    excluded = [(crate_root / e).resolve() for e in manifest.workspace_exclude]

    workspace_members: list[Path] = []
    for pattern in manifest.workspace_members:
        matches = sorted(p for p in crate_root.glob(pattern) if p.is_dir())
        if not matches:
            raise ConfigurationError(
                f"workspace member '{pattern}' does not exist",
                path=crate_root / MANIFEST_FILENAME,
            )
        for member_dir in matches:
            if _is_excluded(member_dir.resolve(), excluded):
                continue
            if not (member_dir / MANIFEST_FILENAME).is_file():
                raise ConfigurationError(
                    f"workspace member '{pattern}' has no {MANIFEST_FILENAME}",
                    path=member_dir,
                )
            workspace_members.append(member_dir.resolve())

    return WorkspaceMember(
        path=crate_root,
        name=manifest.package_name or crate_root.name,
        label=_package_label(root, crate_root),
        is_workspace_root=manifest.is_workspace,
        binaries=frozenset(_binary_names(crate_root) | set(manifest.binary_names)),
        declared_targets=tuple(manifest.declared_targets),
        workspace_members=tuple(workspace_members),
    )


def build_workspace_model(
    root: str | Path,
    *,
    skip_dirs: Iterable[str] = (),
    verbose: bool = False,
) -> Workspace:
    """Walk root once and register every crate as a WorkspaceMember.

    Directories are visited depth-first; every directory with a Cargo.toml
    becomes a member. Members listed by a [workspace] table are registered
    too, even when the walk skipped them, so nested workspaces resolve.

    Args:
        root: Repository root; must hold a Cargo.toml.
        skip_dirs: Extra directory names the walk does not descend into.
        verbose: If True, print discovered members to stderr.

    Raises:
        ConfigurationError: If root has no manifest, a manifest is invalid,
            or a workspace lists a member without a manifest.
    """
    root = Path(root).resolve()
    if not (root / MANIFEST_FILENAME).is_file():
        raise ConfigurationError(f"no {MANIFEST_FILENAME} at workspace root", path=root)

    skip = DEFAULT_SKIP_DIRS | frozenset(skip_dirs)
    registry: dict[Path, WorkspaceMember] = {}
    order: list[WorkspaceMember] = []

    def register(crate_root: Path) -> None:
        if crate_root in registry:
            return
        member = _load_member(root, crate_root)
        registry[crate_root] = member
        order.append(member)

    for crate_root in _walk_manifest_dirs(root, skip):
        register(crate_root)

    # Listed members the walk did not reach (skipped dirs, nested roots)
    i = 0
    while i < len(order):
        for member_dir in order[i].workspace_members:
            register(member_dir)
        i += 1

    workspace = Workspace(root=root, members=order, root_member=registry[root])

    if verbose:
        print(f"  Found {len(order)} workspace members under {root}", file=sys.stderr)
        for member in order:
            marker = " (workspace)" if member.is_workspace_root else ""
            print(f"    {member.label} {member.name}{marker}", file=sys.stderr)

    return workspace
