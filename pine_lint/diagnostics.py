"""Diagnostic value objects shared by the parser, the rules and the publishers."""

import dataclasses
import enum

from pine_lint import tokens

SOURCE = "pine-lint"


class Severity(enum.IntEnum):
    """Diagnostic severity. The numeric values are part of the publish contract."""

    WARNING = 1
    ERROR = 2


class Code(enum.StrEnum):
    """Codes emitted by the built-in parser and rules."""

    SYNTAX_ERROR = "SYNTAX_ERROR"
    RULE_INTERNAL_ERROR = "RULE_INTERNAL_ERROR"
    INDENTATION_CONTINUATION = "INDENTATION_CONTINUATION"
    VARIABLE_SHADOWING = "VARIABLE_SHADOWING"
    LITERAL_BOOLEAN_MISUSE = "LITERAL_BOOLEAN_MISUSE"
    UNREACHABLE_CODE = "UNREACHABLE_CODE"
    NESTING_DEPTH = "NESTING_DEPTH"


@dataclasses.dataclass(frozen=True)
class Diagnostic:
    """A single issue reported against a document."""

    code: str
    message: str
    severity: Severity
    range: tokens.Range
    source: str = SOURCE

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.range.start.line, self.range.start.character)
