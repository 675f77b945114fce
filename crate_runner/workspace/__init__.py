"""Workspace model: crates, workspace membership and package labels."""

from .models import Workspace, WorkspaceMember
from .manifest import DeclaredTarget, ManifestInfo, CargoTomlReader, read_manifest, load_toml
from .discovery import build_workspace_model, find_repository_root

__all__ = [
    "Workspace", "WorkspaceMember",
    "DeclaredTarget", "ManifestInfo", "CargoTomlReader", "read_manifest", "load_toml",
    "build_workspace_model", "find_repository_root",
]
