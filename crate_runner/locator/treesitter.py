"""Symbol locator backed by a tree-sitter-rust syntax tree."""

from __future__ import annotations

from tree_sitter import Language, Parser
import tree_sitter_rust as ts_rust

from ..errors import MalformedSourceError
from .base import SymbolLocator, SymbolMatch, innermost, marker_kind

RUST_LANGUAGE = Language(ts_rust.language())


def node_text(node, source: bytes) -> str:
    """Extract the text of a tree-sitter node."""
    return source[node.start_byte:node.end_byte].decode("utf8")


def _attribute_path(attribute_text: str) -> str:
    """'#[tokio::test(flavor = "x")]' -> 'tokio::test'."""
    inner = attribute_text.strip()
    if inner.startswith("#["):
        inner = inner[2:]
    inner = inner.rstrip("]")
    for stop in ("(", "="):
        inner = inner.split(stop, 1)[0]
    return inner.strip()


def _first_error_line(node) -> int | None:
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error:
            line = _first_error_line(child)
            if line is not None:
                return line
    return None


class TreeSitterLocator(SymbolLocator):

    def __init__(self):
        self._parser = Parser(RUST_LANGUAGE)

    @property
    def backend_name(self) -> str:
        return "tree-sitter"

    def _get_attributes(self, node) -> list:
        """Walk backward through siblings to collect #[...] attribute nodes."""
        attrs = []
        sibling = node.prev_named_sibling
        while sibling is not None:
            if sibling.type == "attribute_item":
                attrs.insert(0, sibling)
                sibling = sibling.prev_named_sibling
                continue
            elif sibling.type in ("line_comment", "block_comment"):
                sibling = sibling.prev_named_sibling
                continue
            break
        return attrs

    def _get_name(self, node, source: bytes) -> str | None:
        for child in node.children:
            if child.type == "identifier":
                return node_text(child, source)
        return None

    def _collect(self, node, source: bytes, mods: list[str], depth: int,
                 found: list[tuple[int, SymbolMatch]]) -> None:
        for child in node.children:
            if child.type == "function_item":
                name = self._get_name(child, source)
                attrs = self._get_attributes(child)
                marker = None
                for attr in attrs:
                    marker = marker_kind(_attribute_path(node_text(attr, source)))
                    if marker:
                        break
                if name and marker:
                    start = attrs[0] if attrs else child
                    found.append((depth, SymbolMatch(
                        name=name,
                        path="::".join([*mods, name]),
                        start_line=start.start_point[0] + 1,
                        end_line=child.end_point[0] + 1,
                        is_benchmark=marker == "bench",
                    )))
                self._collect(child, source, mods, depth + 1, found)
            elif child.type == "mod_item":
                name = self._get_name(child, source)
                inner = [*mods, name] if name else mods
                self._collect(child, source, inner, depth + 1, found)
            else:
                self._collect(child, source, mods, depth + 1, found)

    def locate(self, text: str, line: int) -> SymbolMatch | None:
        source = text.encode("utf8")
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            raise MalformedSourceError(
                "source does not parse", line=_first_error_line(root),
            )
        found: list[tuple[int, SymbolMatch]] = []
        self._collect(root, source, [], 0, found)
        return innermost(found, line)
