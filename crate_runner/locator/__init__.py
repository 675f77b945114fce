"""Line-to-symbol location for Rust sources."""

from .base import SymbolMatch, SymbolLocator, TEST_ATTRIBUTES, BENCH_ATTRIBUTES, marker_kind
from .registry import BACKENDS, get_locator, locate_symbol

__all__ = [
    "SymbolMatch", "SymbolLocator", "TEST_ATTRIBUTES", "BENCH_ATTRIBUTES", "marker_kind",
    "BACKENDS", "get_locator", "locate_symbol",
]
