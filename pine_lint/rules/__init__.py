"""All built-in pine-lint rules."""

from pine_lint.rules import base, conditions, control_flow, layout, scoping, structure

ALL_RULES: list[base.Rule] = [
    layout.IndentationContinuation(),
    scoping.VariableShadowing(),
    conditions.LiteralBooleanMisuse(),
    control_flow.UnreachableCode(),
    structure.NestingDepth(),
]

__all__ = ["ALL_RULES"]
