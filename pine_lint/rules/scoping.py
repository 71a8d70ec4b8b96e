"""Scoping rules: VARIABLE_SHADOWING."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens
from pine_lint.rules import base

_SCOPE_OWNERS: tuple[type[nodes.Node], ...] = (nodes.Program, nodes.Block)


@dataclasses.dataclass
class Scope:
    """Names bound in one block, chained to the enclosing block's scope."""

    bindings: dict[str, nodes.Node]
    parent: Scope | None = None

    def lookup(self, name: str) -> nodes.Node | None:
        """Return the nearest declaration of *name* in this scope or above."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None


def _enclosing_owner(node: nodes.Node, parents: dict[int, nodes.Node]) -> nodes.Node:
    """Return the nearest Program or Block strictly above *node*."""
    current = parents[id(node)]
    while not isinstance(current, _SCOPE_OWNERS):
        current = parents[id(current)]
    return current


def _implicit_bindings(
    owner: nodes.Node,
    parents: dict[int, nodes.Node],
) -> dict[str, nodes.Node]:
    """Names a block binds before its first statement runs.

    Function parameters live in the function's body block, and a loop
    variable lives in the loop's body block.
    """
    if isinstance(owner, nodes.Program):
        return {}
    holder = parents.get(id(owner))
    if isinstance(holder, nodes.FunctionDefinition) and holder.body is owner:
        return {param.name.name: param for param in holder.parameters}
    if isinstance(holder, nodes.ForStatement) and holder.body is owner:
        return {holder.variable.name: holder.variable}
    return {}


class _ScopeBuilder:
    """Creates scopes on demand for one pass over one tree."""

    def __init__(self, parents: dict[int, nodes.Node]) -> None:
        self._parents = parents
        self._scopes: dict[int, Scope] = {}

    def scope_of(self, owner: nodes.Node) -> Scope:
        scope = self._scopes.get(id(owner))
        if scope is None:
            parent = (
                None
                if isinstance(owner, nodes.Program)
                else self.scope_of(_enclosing_owner(owner, self._parents))
            )
            scope = Scope(bindings=_implicit_bindings(owner, self._parents), parent=parent)
            self._scopes[id(owner)] = scope
        return scope


class VariableShadowing(base.Rule):
    """Flag declarations that hide a variable from an enclosing block.

    Every block (``if``/``for``/``while`` bodies and function bodies) opens a
    new scope below the script's global scope. A ``name = value`` declaration
    inside a block that reuses a name already declared in an outer scope
    creates a second, independent variable, so later writes never reach the
    outer one. Only declarations that appear earlier in the source count as
    outer bindings. Redeclaring a name in the same scope is not reported.

    Allowed:
        x = 1
        if cond
            x := 2      // reassigns the outer x

    Flagged:
        x = 1
        if cond
            x = 2       // new x, shadows the outer one
    """

    rule_id = diagnostics.Code.VARIABLE_SHADOWING

    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Return a diagnostic for every declaration shadowing an outer one."""
        parents = nodes.build_parent_index(program)
        builder = _ScopeBuilder(parents)
        results: list[diagnostics.Diagnostic] = []
        for node in nodes.walk(program):
            if not isinstance(node, nodes.VariableDeclaration):
                continue
            scope = builder.scope_of(_enclosing_owner(node, parents))
            name = node.name.name
            outer = scope.parent.lookup(name) if scope.parent is not None else None
            if outer is not None and name not in scope.bindings:
                results.append(
                    diagnostics.Diagnostic(
                        code=self.rule_id,
                        message=(
                            f"Declaration of `{name}` shadows the variable declared"
                            f" on line {outer.range.start.line + 1}"
                        ),
                        severity=diagnostics.Severity.WARNING,
                        range=node.range,
                    )
                )
            scope.bindings.setdefault(name, node)
        return results
