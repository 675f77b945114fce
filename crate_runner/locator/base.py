"""Abstract base class for symbol locators and shared helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SymbolMatch:
    """The innermost test or benchmark function around a line."""
    name: str
    path: str                  # module-qualified, e.g. "tests::it_works"
    start_line: int            # 1-based, first attribute line
    end_line: int              # 1-based, closing brace line
    is_benchmark: bool = False

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


# Attribute paths that mark a function as a test case
TEST_ATTRIBUTES: frozenset[str] = frozenset({
    "test",
    "tokio::test",
    "async_std::test",
    "rstest",
    "test_case",
    "sqlx::test",
    "test_log::test",
    "wasm_bindgen_test",
})

BENCH_ATTRIBUTES: frozenset[str] = frozenset({"bench"})


def marker_kind(attribute_path: str) -> str | None:
    """Return "test", "bench" or None for an attribute path like 'tokio::test'."""
    attribute_path = attribute_path.replace(" ", "")
    if attribute_path in TEST_ATTRIBUTES:
        return "test"
    if attribute_path in BENCH_ATTRIBUTES:
        return "bench"
    return None


def innermost(candidates: list[tuple[int, SymbolMatch]], line: int) -> SymbolMatch | None:
    """Pick the deepest (depth, match) candidate whose span contains line."""
    best: tuple[int, SymbolMatch] | None = None
    for depth, match in candidates:
        if match.contains(line) and (best is None or depth > best[0]):
            best = (depth, match)
    return best[1] if best else None


class SymbolLocator(ABC):
    """Base class that all locator backends must extend."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g. 'scan')."""
        ...

    @abstractmethod
    def locate(self, text: str, line: int) -> SymbolMatch | None:
        """Return the innermost marked function containing line, if any.

        Raises:
            MalformedSourceError: If text is structurally unbalanced.
        """
        ...
