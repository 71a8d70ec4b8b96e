"""Layout rules: INDENTATION_CONTINUATION."""

from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens
from pine_lint.rules import base

_DEFAULT_MIN_INDENT: int = 1

_LAYOUT_KINDS: tuple[tokens.TokenKind, ...] = (
    tokens.TokenKind.NEWLINE,
    tokens.TokenKind.COMMENT,
)


def _tokens_by_line(token_stream: Sequence[tokens.Token]) -> dict[int, list[tokens.Token]]:
    by_line: dict[int, list[tokens.Token]] = {}
    for token in token_stream:
        by_line.setdefault(token.range.start.line, []).append(token)
    return by_line


class IndentationContinuation(base.Rule):
    """Flag continuation lines that are not indented past their statement.

    When a statement spans several physical lines, every continuation line
    must be indented at least ``min_indent`` characters beyond the line that
    starts the statement. Otherwise the continuation reads like a new
    statement. For compound statements only the header (condition or loop
    bounds) is checked; body lines are statements of their own. Blank lines
    and comment-only lines inside a continuation are ignored.

    Default ``min_indent``: 1.

    Allowed:
        a = foo(1,
             2)

    Flagged:
        a = foo(1,
        2)
    """

    rule_id = diagnostics.Code.INDENTATION_CONTINUATION

    def __init__(self, min_indent: int = _DEFAULT_MIN_INDENT) -> None:
        """Initialise with the minimum extra indentation of a continuation line.

        Args:
            min_indent: Characters a continuation line must be indented beyond
                the first line of its statement.
        """
        self._min_indent = min_indent

    def configure(self, options: base.RuleOptions) -> base.Rule:
        """Return a new rule with ``min_indent`` (int) applied, if present."""
        min_indent = options.get("min_indent", self._min_indent)
        if isinstance(min_indent, int) and not isinstance(min_indent, bool):
            return IndentationContinuation(min_indent=min_indent)
        return self

    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Return a diagnostic for every under-indented continuation line."""
        by_line = _tokens_by_line(token_stream)
        results: list[diagnostics.Diagnostic] = []
        for stmt in nodes.statements(program):
            if isinstance(stmt, (nodes.Comment, nodes.ErrorNode)):
                continue
            extent = nodes.header_range(stmt)
            if not extent.is_multiline:
                continue
            first_line = by_line.get(extent.start.line)
            if not first_line or first_line[0].indent is None:
                continue
            required = first_line[0].indent + self._min_indent
            for line_no in range(extent.start.line + 1, extent.end.line + 1):
                line_tokens = by_line.get(line_no, [])
                code = [token for token in line_tokens if token.kind not in _LAYOUT_KINDS]
                if not code or line_tokens[0].kind in _LAYOUT_KINDS:
                    continue
                indent = line_tokens[0].indent or 0
                if indent >= required:
                    continue
                results.append(
                    diagnostics.Diagnostic(
                        code=self.rule_id,
                        message=(
                            f"Continuation line is indented {indent} characters;"
                            f" expected at least {required}"
                        ),
                        severity=diagnostics.Severity.ERROR,
                        range=tokens.span(code[0].range, code[-1].range),
                    )
                )
        return results
