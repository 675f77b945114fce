"""Structural brace scanner that finds test functions without a full parse.

The scanner lexes just enough Rust to stay out of comments and literals,
then tracks delimiter nesting, `fn` and inline `mod` items and the outer
attributes in front of them. Anything it does not understand is ignored
as long as delimiters stay balanced.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ..errors import MalformedSourceError
from .base import SymbolLocator, SymbolMatch, innermost, marker_kind

_PUNCT = frozenset("{}()[];#!:")
_OPENERS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = frozenset("})]")

Token = tuple[str, str, int]   # (kind, value, line), kind is "ident" | "punct"


# ── Lexer ─────────────────────────────────────────────────────────────


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def _skip_block_comment(text: str, i: int, line: int) -> tuple[int, int]:
    """Skip a (possibly nested) /* */ comment starting at i."""
    start_line = line
    depth = 0
    n = len(text)
    while i < n:
        if text.startswith("/*", i):
            depth += 1
            i += 2
        elif text.startswith("*/", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i, line
        else:
            if text[i] == "\n":
                line += 1
            i += 1
    raise MalformedSourceError("unterminated block comment", line=start_line)


def _skip_string(text: str, i: int, line: int) -> tuple[int, int]:
    """Skip a quoted string body; i points just past the opening quote."""
    start_line = line
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            if i + 1 < n and text[i + 1] == "\n":
                line += 1
            i += 2
            continue
        if ch == '"':
            return i + 1, line
        if ch == "\n":
            line += 1
        i += 1
    raise MalformedSourceError("unterminated string literal", line=start_line)


def _skip_raw_string(text: str, i: int, hashes: int, line: int) -> tuple[int, int]:
    """Skip a raw string body; i points just past the opening quote."""
    terminator = '"' + "#" * hashes
    end = text.find(terminator, i)
    if end == -1:
        raise MalformedSourceError("unterminated raw string literal", line=line)
    line += text.count("\n", i, end)
    return end + len(terminator), line


def _skip_quote(text: str, i: int, line: int) -> int:
    """Skip a char literal or a lifetime/label starting at the quote at i."""
    n = len(text)
    if i + 1 < n and text[i + 1] == "\\":
        end = text.find("'", i + 3)
        if end == -1 or "\n" in text[i:end]:
            raise MalformedSourceError("unterminated character literal", line=line)
        return end + 1
    if i + 2 < n and text[i + 2] == "'" and text[i + 1] != "\n":
        return i + 3
    # Lifetime or loop label: 'a, 'static, 'outer
    j = i + 1
    while j < n and _is_ident_char(text[j]):
        j += 1
    return j


def tokenize(text: str) -> Iterator[Token]:
    """Yield identifiers and structural punctuation with their line numbers."""
    i = 0
    n = len(text)
    line = 1
    while i < n:
        ch = text[i]
        if ch == "\n":
            line += 1
            i += 1
        elif ch.isspace():
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            i, line = _skip_block_comment(text, i, line)
        elif ch == '"':
            i, line = _skip_string(text, i + 1, line)
        elif ch == "'":
            i = _skip_quote(text, i, line)
        elif ch == "_" or ch.isalpha():
            j = i + 1
            while j < n and _is_ident_char(text[j]):
                j += 1
            word = text[i:j]
            if word in ("r", "br", "cr") and j < n and text[j] in '"#':
                k = j
                while k < n and text[k] == "#":
                    k += 1
                if k < n and text[k] == '"':
                    i, line = _skip_raw_string(text, k + 1, k - j, line)
                    continue
                if word == "r" and k - j == 1:
                    # Raw identifier such as r#type
                    m = k
                    while m < n and _is_ident_char(text[m]):
                        m += 1
                    yield ("ident", text[i:m], line)
                    i = m
                    continue
            if word in ("b", "c") and j < n and text[j] == '"':
                i, line = _skip_string(text, j + 1, line)
                continue
            if word == "b" and j < n and text[j] == "'":
                i = _skip_quote(text, j, line)
                continue
            yield ("ident", word, line)
            i = j
        elif ch.isdigit():
            i += 1
            while i < n and _is_ident_char(text[i]):
                i += 1
        else:
            if ch in _PUNCT:
                yield ("punct", ch, line)
            i += 1


# ── Structural scan ───────────────────────────────────────────────────


@dataclass
class _Item:
    keyword: str               # "fn" | "mod"
    name: str
    start_line: int
    marker: str | None         # "test" | "bench" | None
    depth: int                 # nesting depth the body brace must open at


@dataclass
class _Frame:
    closer: str
    line: int
    item: _Item | None = None


def _attribute_path(tokens: list[Token], start: int) -> str:
    """Read 'tokio::test' out of the tokens following '#['."""
    parts = []
    for kind, value, _ in tokens[start:]:
        if kind == "ident" or value == ":":
            parts.append(value)
        else:
            break
    return "".join(parts)


def scan_marked_functions(text: str) -> list[tuple[int, SymbolMatch]]:
    """Return (depth, match) for every test/bench-marked function in text.

    Raises:
        MalformedSourceError: On unbalanced or mismatched delimiters.
    """
    tokens = list(tokenize(text))
    stack: list[_Frame] = []
    attrs: list[tuple[str | None, int]] = []
    pending: _Item | None = None
    found: list[tuple[int, SymbolMatch]] = []

    for k, (kind, value, line) in enumerate(tokens):
        if kind == "ident":
            if (value in ("fn", "mod") and k + 1 < len(tokens)
                    and tokens[k + 1][0] == "ident"):
                marker = next((m for m, _ in attrs if m), None)
                start = attrs[0][1] if attrs else line
                pending = _Item(value, tokens[k + 1][1], start, marker, len(stack))
                attrs = []
            continue

        if value == "#":
            if k + 1 < len(tokens) and tokens[k + 1][1] == "[":
                attrs.append((marker_kind(_attribute_path(tokens, k + 2)), line))
        elif value in _OPENERS:
            frame = _Frame(closer=_OPENERS[value], line=line)
            if value == "{":
                if pending is not None and pending.depth == len(stack):
                    frame.item = pending
                    pending = None
                attrs = []
            stack.append(frame)
        elif value in _CLOSERS:
            if not stack:
                raise MalformedSourceError(f"unmatched '{value}'", line=line)
            frame = stack.pop()
            if frame.closer != value:
                raise MalformedSourceError(
                    f"expected '{frame.closer}' to close delimiter from line "
                    f"{frame.line}, found '{value}'",
                    line=line,
                )
            if value == "}":
                attrs = []
                item = frame.item
                if item is not None and item.keyword == "fn" and item.marker:
                    mods = [f.item.name for f in stack
                            if f.item is not None and f.item.keyword == "mod"]
                    found.append((len(stack), SymbolMatch(
                        name=item.name,
                        path="::".join([*mods, item.name]),
                        start_line=item.start_line,
                        end_line=line,
                        is_benchmark=item.marker == "bench",
                    )))
        elif value == ";":
            if pending is not None and pending.depth == len(stack):
                pending = None
            attrs = []

    if stack:
        frame = stack[-1]
        raise MalformedSourceError(
            f"unclosed delimiter, expected '{frame.closer}'", line=frame.line,
        )
    return found


class ScanLocator(SymbolLocator):

    @property
    def backend_name(self) -> str:
        return "scan"

    def locate(self, text: str, line: int) -> SymbolMatch | None:
        return innermost(scan_marked_functions(text), line)
