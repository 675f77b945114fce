"""In-memory model of a multi-crate repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .manifest import DeclaredTarget


@dataclass(frozen=True)
class WorkspaceMember:
    """One crate root (or virtual workspace root) found by the walk."""
    path: Path                           # absolute crate directory
    name: str                            # [package] name, or the directory name
    label: str                           # Bazel package label, e.g. "//corex"
    is_workspace_root: bool = False
    binaries: frozenset[str] = frozenset()
    declared_targets: tuple[DeclaredTarget, ...] = ()
    workspace_members: tuple[Path, ...] = ()

    @property
    def crate_name(self) -> str:
        """Package name as the build graph spells it (dashes become underscores)."""
        return self.name.replace("-", "_")

    def contains(self, path: Path) -> bool:
        return path == self.path or self.path in path.parents


@dataclass
class Workspace:
    """All members of one repository, in depth-first discovery order."""
    root: Path
    members: list[WorkspaceMember] = field(default_factory=list)
    root_member: WorkspaceMember | None = None

    def member_for(self, path: Path) -> WorkspaceMember | None:
        """Return the member whose directory is the longest prefix of path."""
        best = None
        for member in self.members:
            if member.contains(path):
                if best is None or len(member.path.parts) > len(best.path.parts):
                    best = member
        return best

    def get(self, label: str) -> WorkspaceMember | None:
        for member in self.members:
            if member.label == label:
                return member
        return None
