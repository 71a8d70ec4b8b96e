"""Condition rules: LITERAL_BOOLEAN_MISUSE."""

from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens
from pine_lint.rules import base

_CONDITIONAL: tuple[type[nodes.Node], ...] = (
    nodes.IfStatement,
    nodes.WhileStatement,
    nodes.TernaryExpression,
)


class LiteralBooleanMisuse(base.Rule):
    """Flag conditions that are a bare ``true`` or ``false`` literal.

    Such a condition is constant: the branch always (or never) runs, which is
    almost always a leftover from debugging. Only the root of the condition is
    inspected, so ``not true`` or ``x and true`` are not reported here.

    Allowed:
        if close > open
            plot(close)

    Flagged:
        if true
            plot(close)
        color = false ? color.red : color.green
    """

    rule_id = diagnostics.Code.LITERAL_BOOLEAN_MISUSE

    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Return a diagnostic for every constant boolean condition."""
        results: list[diagnostics.Diagnostic] = []
        for node in nodes.walk(program):
            if not isinstance(node, _CONDITIONAL):
                continue
            condition = node.condition
            if not (
                isinstance(condition, nodes.Literal)
                and condition.kind is nodes.LiteralKind.BOOL
            ):
                continue
            results.append(
                diagnostics.Diagnostic(
                    code=self.rule_id,
                    message=(
                        f"Condition is always `{condition.value}`;"
                        f" remove the check or use a real expression"
                    ),
                    severity=diagnostics.Severity.WARNING,
                    range=condition.range,
                )
            )
        return results
