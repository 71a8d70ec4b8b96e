"""Source positions and lexical tokens."""

from __future__ import annotations

import dataclasses
import enum


@dataclasses.dataclass(frozen=True, order=True)
class Position:
    """A zero-based (line, character) location in a document."""

    line: int
    character: int


@dataclasses.dataclass(frozen=True)
class Range:
    """Half-open span ``[start, end)`` between two positions."""

    start: Position
    end: Position

    def contains(self, other: Range) -> bool:
        """Return True if *other* lies entirely within this range."""
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: Range) -> bool:
        """Return True if the two ranges share at least one position."""
        return self.start < other.end and other.start < self.end

    @property
    def is_multiline(self) -> bool:
        return self.end.line > self.start.line


def span(first: Range, last: Range) -> Range:
    """Return the range running from the start of *first* to the end of *last*."""
    return Range(start=first.start, end=last.end)


class TokenKind(enum.Enum):
    """Token categories produced by the lexer."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    STRING = "string"
    COLOR = "color"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    NEWLINE = "newline"
    COMMENT = "comment"
    UNKNOWN = "unknown"
    # Never produced by the lexer; the parser synthesises it at end of input.
    EOF = "eof"


KEYWORDS: frozenset[str] = frozenset(
    {
        "if",
        "else",
        "for",
        "to",
        "by",
        "in",
        "while",
        "var",
        "varip",
        "and",
        "or",
        "not",
        "true",
        "false",
        "return",
        "break",
        "continue",
    }
)


@dataclasses.dataclass(frozen=True)
class Token:
    """A single lexeme with its location.

    Attributes:
        kind: The token category.
        text: The exact source text of the token.
        range: Where the token sits in the document.
        indent: Raw count of leading whitespace characters on the token's line.
            Only set for the first token of a physical line, ``None`` otherwise.
    """

    kind: TokenKind
    text: str
    range: Range
    indent: int | None = None

    @property
    def is_line_leading(self) -> bool:
        return self.indent is not None

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text in words

    def is_operator(self, *ops: str) -> bool:
        return self.kind is TokenKind.OPERATOR and self.text in ops

    def is_punctuation(self, *marks: str) -> bool:
        return self.kind is TokenKind.PUNCTUATION and self.text in marks
