"""Structure rules: NESTING_DEPTH."""

from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens
from pine_lint.rules import base

_DEFAULT_MAX_DEPTH: int = 4


def _make_diagnostic(node: nodes.Node, depth: int, max_depth: int) -> diagnostics.Diagnostic:
    return diagnostics.Diagnostic(
        code=diagnostics.Code.NESTING_DEPTH,
        message=(
            f"Nesting depth {depth} exceeds the maximum of {max_depth};"
            f" extract logic into a function to reduce nesting"
        ),
        severity=diagnostics.Severity.WARNING,
        range=nodes.header_range(node),
    )


def _dispatch(
    node: nodes.Node,
    depth: int,
    max_depth: int,
    results: list[diagnostics.Diagnostic],
) -> None:
    """Dispatch a single statement, tracking control-flow nesting depth.

    Expressions never contain statements, so only blocks and compound
    statements are descended into.
    """
    if isinstance(node, (nodes.Program, nodes.Block)):
        for child in node.children:
            _dispatch(child, depth, max_depth, results)
    elif isinstance(node, nodes.FunctionDefinition):
        # Function bodies reset the depth counter.
        _dispatch(node.body, 0, max_depth, results)
    elif isinstance(node, nodes.IfStatement):
        _enter_if(node, depth, max_depth, results, is_elif=False)
    elif isinstance(node, (nodes.ForStatement, nodes.WhileStatement)):
        new_depth = depth + 1
        if new_depth > max_depth and depth == max_depth:
            results.append(_make_diagnostic(node, new_depth, max_depth))
        _dispatch(node.body, new_depth, max_depth, results)


def _enter_if(
    node: nodes.IfStatement,
    depth: int,
    max_depth: int,
    results: list[diagnostics.Diagnostic],
    *,
    is_elif: bool,
) -> None:
    """Enter an if statement, treating ``else if`` branches as the same depth.

    Only the leading ``if`` emits a diagnostic when over the limit.
    """
    new_depth = depth + 1
    if not is_elif and new_depth > max_depth and depth == max_depth:
        results.append(_make_diagnostic(node, new_depth, max_depth))

    _dispatch(node.body, new_depth, max_depth, results)

    if isinstance(node.orelse, nodes.IfStatement):
        _enter_if(node.orelse, depth, max_depth, results, is_elif=True)
    elif node.orelse is not None:
        _dispatch(node.orelse, new_depth, max_depth, results)


class NestingDepth(base.Rule):
    """Flag control-flow blocks nested deeper than the maximum allowed depth.

    The nesting constructs counted are ``if``/``else if``/``else``, ``for``
    and ``while``. ``else if`` branches are treated as the same depth as their
    parent ``if``, so a chain only adds one level regardless of its length.
    Function definitions reset the counter, so their bodies are evaluated
    independently. Only the first level past the limit is reported.

    Default maximum depth: 4.

    Allowed:
        for i = 0 to 10             // depth 1
            for j = 0 to 10         // depth 2
                if a                // depth 3
                    while b         // depth 4, OK

    Flagged:
        for i = 0 to 10             // depth 1
            for j = 0 to 10         // depth 2
                if a                // depth 3
                    while b         // depth 4
                        if c        // depth 5, flagged
    """

    rule_id = diagnostics.Code.NESTING_DEPTH

    def __init__(self, max_depth: int = _DEFAULT_MAX_DEPTH) -> None:
        """Initialise with the deepest nesting level allowed.

        Args:
            max_depth: Maximum number of nested control-flow blocks.
        """
        self._max_depth = max_depth

    def configure(self, options: base.RuleOptions) -> base.Rule:
        """Return a new rule with ``max_depth`` (int) applied, if present."""
        max_depth = options.get("max_depth", self._max_depth)
        if isinstance(max_depth, int) and not isinstance(max_depth, bool):
            return NestingDepth(max_depth=max_depth)
        return self

    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Return a diagnostic for each block that exceeds the maximum depth."""
        results: list[diagnostics.Diagnostic] = []
        for child in program.children:
            _dispatch(child, 0, self._max_depth, results)
        return results
