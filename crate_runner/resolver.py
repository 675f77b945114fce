"""Map a classified file to the build-graph target that owns it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .classify import FileDescriptor, FileKind
from .workspace import WorkspaceMember

BUILD_SCRIPT_TARGET = "build_script"


class TargetKind(Enum):
    LIBRARY = "library"
    BINARY = "binary"
    TEST = "test"
    EXAMPLE = "example"
    BENCHMARK = "benchmark"
    BUILD_RULE = "build-rule"


_TARGET_KINDS = {
    FileKind.LIBRARY: TargetKind.LIBRARY,
    FileKind.LIBRARY_MODULE: TargetKind.LIBRARY,
    FileKind.PRIMARY_BINARY: TargetKind.BINARY,
    FileKind.AUXILIARY_BINARY: TargetKind.BINARY,
    FileKind.INTEGRATION_TEST: TargetKind.TEST,
    FileKind.EXAMPLE: TargetKind.EXAMPLE,
    FileKind.BENCHMARK: TargetKind.BENCHMARK,
    FileKind.BUILD_SCRIPT: TargetKind.BUILD_RULE,
}


@dataclass(frozen=True)
class ResolvedTarget:
    member: WorkspaceMember
    name: str
    kind: TargetKind
    file_kind: FileKind

    @property
    def label(self) -> str:
        """Fully qualified label, e.g. '//corex:proxy'."""
        return f"{self.member.label}:{self.name}"

    @property
    def test_label(self) -> str:
        """Companion target running the unit tests embedded in this target."""
        return f"{self.member.label}:{self.name}_test"

    @property
    def doc_test_label(self) -> str:
        return f"{self.member.label}:{self.name}_doc_test"


def target_name(descriptor: FileDescriptor) -> str:
    """Derive the build-graph target name for a classified file."""
    crate = descriptor.member.crate_name
    kind = descriptor.kind
    name = (descriptor.name or "").replace("-", "_")
    if kind in (FileKind.LIBRARY, FileKind.LIBRARY_MODULE):
        return crate
    if kind == FileKind.PRIMARY_BINARY:
        return f"{crate}_bin"
    if kind == FileKind.AUXILIARY_BINARY:
        return name
    if kind == FileKind.INTEGRATION_TEST:
        return f"test_{name}"
    if kind == FileKind.EXAMPLE:
        return f"example_{name}"
    if kind == FileKind.BENCHMARK:
        return f"bench_{name}"
    return BUILD_SCRIPT_TARGET


def resolve(descriptor: FileDescriptor) -> ResolvedTarget:
    """Resolve a FileDescriptor to its ResolvedTarget. Pure; no I/O."""
    return ResolvedTarget(
        member=descriptor.member,
        name=target_name(descriptor),
        kind=_TARGET_KINDS[descriptor.kind],
        file_kind=descriptor.kind,
    )
