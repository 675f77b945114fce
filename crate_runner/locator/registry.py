"""Locator backend registry."""

from ..errors import ConfigurationError
from .base import SymbolLocator

BACKENDS: tuple[str, ...] = ("scan", "tree-sitter")


def get_locator(backend: str = "scan") -> SymbolLocator:
    """Get a locator instance for the given backend name."""
    if backend == "scan":
        from .scanner import ScanLocator
        return ScanLocator()
    elif backend == "tree-sitter":
        try:
            from .treesitter import TreeSitterLocator
        except ImportError:
            raise ConfigurationError(
                "The tree-sitter locator requires tree-sitter and tree-sitter-rust. "
                "Install with: pip install crate-runner[tree-sitter]"
            ) from None
        return TreeSitterLocator()
    else:
        raise ValueError(f"Unsupported locator backend: {backend}")


def locate_symbol(text: str, line: int | None, *, backend: str = "scan"):
    """Find the innermost test/bench function containing line.

    Returns None when no line is given or no marked function encloses it.
    """
    if line is None:
        return None
    return get_locator(backend).locate(text, line)
