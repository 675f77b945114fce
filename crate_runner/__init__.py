"""crate-runner - resolve a Rust source location to the Bazel command that builds, runs or tests it."""

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    ResolverError, ConfigurationError, UnknownFileError,
    UnclassifiableFileError, MalformedSourceError, BuildToolNotFoundError,
)
from .workspace import Workspace, WorkspaceMember, build_workspace_model, find_repository_root  # noqa: E402
from .classify import FileKind, FileDescriptor, classify  # noqa: E402
from .locator import SymbolMatch, locate_symbol  # noqa: E402
from .resolver import TargetKind, ResolvedTarget, resolve  # noqa: E402
from .command import Invocation, synthesize, execute  # noqa: E402
from .config import RunnerConfig, load_config  # noqa: E402
from .runner import Location, parse_location, plan  # noqa: E402

__all__ = [
    "__version__",
    "ResolverError", "ConfigurationError", "UnknownFileError",
    "UnclassifiableFileError", "MalformedSourceError", "BuildToolNotFoundError",
    "Workspace", "WorkspaceMember", "build_workspace_model", "find_repository_root",
    "FileKind", "FileDescriptor", "classify",
    "SymbolMatch", "locate_symbol",
    "TargetKind", "ResolvedTarget", "resolve",
    "Invocation", "synthesize", "execute",
    "RunnerConfig", "load_config",
    "Location", "parse_location", "plan",
]
