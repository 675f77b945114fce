"""Classify a source path by the Cargo file-layout conventions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from .errors import UnclassifiableFileError, UnknownFileError
from .workspace import Workspace, WorkspaceMember


class FileKind(Enum):
    LIBRARY = "library"
    PRIMARY_BINARY = "primary-binary"
    AUXILIARY_BINARY = "auxiliary-binary"
    INTEGRATION_TEST = "integration-test"
    EXAMPLE = "example"
    BENCHMARK = "benchmark"
    BUILD_SCRIPT = "build-script"
    LIBRARY_MODULE = "library-module"


@dataclass(frozen=True)
class FileDescriptor:
    path: Path                 # absolute
    member: WorkspaceMember
    kind: FileKind
    name: str | None           # target name fragment for named kinds
    relative_path: str         # POSIX, relative to member.path


# Ordered (pattern, kind) table, first full match wins. A `name` group
# carries the target name for kinds that derive it from the path.
_RULES: list[tuple[re.Pattern[str], FileKind]] = [
    (re.compile(r"src/lib\.rs"), FileKind.LIBRARY),
    (re.compile(r"src/main\.rs"), FileKind.PRIMARY_BINARY),
    (re.compile(r"src/bin/(?P<name>[^/]+)\.rs"), FileKind.AUXILIARY_BINARY),
    (re.compile(r"src/bin/(?P<name>[^/]+)/.+\.rs"), FileKind.AUXILIARY_BINARY),
    (re.compile(r"tests/(?P<name>[^/]+)\.rs"), FileKind.INTEGRATION_TEST),
    (re.compile(r"tests/(?P<name>[^/]+)/main\.rs"), FileKind.INTEGRATION_TEST),
    (re.compile(r"examples/(?P<name>[^/]+)\.rs"), FileKind.EXAMPLE),
    (re.compile(r"examples/(?P<name>[^/]+)/main\.rs"), FileKind.EXAMPLE),
    (re.compile(r"benches/(?P<name>[^/]+)\.rs"), FileKind.BENCHMARK),
    (re.compile(r"benches/(?P<name>[^/]+)/main\.rs"), FileKind.BENCHMARK),
    (re.compile(r"build\.rs"), FileKind.BUILD_SCRIPT),
    (re.compile(r"src/.+"), FileKind.LIBRARY_MODULE),
]

_DECLARED_KINDS = {
    "lib": FileKind.LIBRARY,
    "bin": FileKind.AUXILIARY_BINARY,
    "test": FileKind.INTEGRATION_TEST,
    "example": FileKind.EXAMPLE,
    "bench": FileKind.BENCHMARK,
    "build": FileKind.BUILD_SCRIPT,
}

# Kinds whose target is named after the file (or its declared name)
_NAMED_KINDS = frozenset({
    FileKind.AUXILIARY_BINARY, FileKind.INTEGRATION_TEST,
    FileKind.EXAMPLE, FileKind.BENCHMARK,
})


def match_relative_path(relative_path: str) -> tuple[FileKind, str | None] | None:
    """Apply the convention table to a member-relative POSIX path."""
    for pattern, kind in _RULES:
        m = pattern.fullmatch(relative_path)
        if m:
            return kind, m.groupdict().get("name")
    return None


def classify(path: str | Path, workspace: Workspace) -> FileDescriptor:
    """Classify path into a FileDescriptor.

    Paths declared explicitly in the owning manifest ([lib] path,
    [[bin]] path, ...) take precedence over the directory conventions.

    Raises:
        UnknownFileError: If no workspace member contains path.
        UnclassifiableFileError: If path matches no convention.
    """
    path = Path(path)
    if not path.is_absolute():
        path = workspace.root / path
    path = path.resolve()

    member = workspace.member_for(path)
    if member is None:
        raise UnknownFileError("file is not inside any workspace member", path=path)

    relative_path = path.relative_to(member.path).as_posix()

    for declared in member.declared_targets:
        if declared.path == relative_path:
            kind = _DECLARED_KINDS[declared.section]
            name = declared.name if kind in _NAMED_KINDS else None
            return FileDescriptor(path, member, kind, name, relative_path)

    matched = match_relative_path(relative_path)
    if matched is None:
        raise UnclassifiableFileError(
            f"file matches no target convention in crate '{member.name}'",
            path=path,
        )
    kind, name = matched
    return FileDescriptor(path, member, kind, name, relative_path)


# ── Module paths ──────────────────────────────────────────────────────

# Files that are the root of their crate (or of a src/bin/<name>/ binary)
_ROOT_FILES = frozenset({"lib", "main"})


def _library_root_dir(member: WorkspaceMember) -> str:
    for declared in member.declared_targets:
        if declared.section == "lib":
            return PurePosixPath(declared.path).parent.as_posix()
    return "src"


def module_path(descriptor: FileDescriptor) -> list[str]:
    """Module path of the file inside its crate.

    src/net/http.rs gives ["net", "http"], src/net/mod.rs gives ["net"] and
    src/bin/admin/cli.rs gives ["cli"]. Crate root files give [].
    """
    rel = PurePosixPath(descriptor.relative_path)
    if descriptor.kind == FileKind.LIBRARY_MODULE:
        root_dir = _library_root_dir(descriptor.member)
    elif (descriptor.kind == FileKind.AUXILIARY_BINARY and descriptor.name
            and descriptor.relative_path.startswith(f"src/bin/{descriptor.name}/")):
        root_dir = f"src/bin/{descriptor.name}"
    else:
        return []

    try:
        parts = list(rel.relative_to(root_dir).with_suffix("").parts)
    except ValueError:
        parts = list(rel.with_suffix("").parts)
    if parts and parts[-1] == "mod":
        parts = parts[:-1]
    if len(parts) == 1 and parts[0] in _ROOT_FILES:
        return []
    return parts
