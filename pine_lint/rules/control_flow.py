"""Control-flow rules: UNREACHABLE_CODE."""

import bisect
from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens
from pine_lint.rules import base

_DEFAULT_TERMINATORS: tuple[str, ...] = ("return", "break", "continue")

_LAYOUT_KINDS: tuple[tokens.TokenKind, ...] = (
    tokens.TokenKind.NEWLINE,
    tokens.TokenKind.COMMENT,
)


def _first_code_after(
    token_stream: Sequence[tokens.Token],
    starts: list[tokens.Position],
    position: tokens.Position,
) -> tokens.Token | None:
    """Return the first non-layout token starting at or after *position*."""
    for token in token_stream[bisect.bisect_left(starts, position) :]:
        if token.kind not in _LAYOUT_KINDS:
            return token
    return None


class UnreachableCode(base.Rule):
    """Flag statements that follow an unconditional jump in the same block.

    Once a block executes a terminating statement (by default ``return``,
    ``break`` or ``continue``) directly in its body, nothing after it in that
    block can run. One diagnostic covers every following statement, anchored
    at the first code token after the jump so that blank lines and comments in
    between are not highlighted. Jumps nested inside an ``if`` do not count.

    Allowed:
        for i = 0 to 10
            if i > 5
                break
            total += i

    Flagged:
        for i = 0 to 10
            break
            total += i
    """

    rule_id = diagnostics.Code.UNREACHABLE_CODE

    def __init__(self, terminators: Sequence[str] = _DEFAULT_TERMINATORS) -> None:
        """Initialise with the keywords that end a block's control flow.

        Args:
            terminators: Jump keywords treated as unconditional exits.
        """
        self._terminators = frozenset(terminators)

    def configure(self, options: base.RuleOptions) -> base.Rule:
        """Return a new rule with ``terminators`` (list of str) applied, if present."""
        terminators = options.get("terminators")
        if isinstance(terminators, list) and all(
            isinstance(keyword, str) for keyword in terminators
        ):
            return UnreachableCode(terminators=terminators)
        return self

    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Return one diagnostic per block containing unreachable statements."""
        starts = [token.range.start for token in token_stream]
        results: list[diagnostics.Diagnostic] = []
        for node in nodes.walk(program):
            if not isinstance(node, (nodes.Program, nodes.Block)):
                continue
            body = [stmt for stmt in node.children if not isinstance(stmt, nodes.Comment)]
            for index, stmt in enumerate(body):
                if not (
                    isinstance(stmt, nodes.JumpStatement)
                    and stmt.keyword in self._terminators
                ):
                    continue
                unreachable = body[index + 1 :]
                if unreachable:
                    anchor = _first_code_after(token_stream, starts, stmt.range.end)
                    start = (
                        anchor.range.start
                        if anchor is not None
                        else unreachable[0].range.start
                    )
                    results.append(
                        diagnostics.Diagnostic(
                            code=self.rule_id,
                            message=f"Code after `{stmt.keyword}` is unreachable",
                            severity=diagnostics.Severity.WARNING,
                            range=tokens.Range(start, unreachable[-1].range.end),
                        )
                    )
                break
        return results
