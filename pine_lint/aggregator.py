"""Merge parser and rule diagnostics into one ordered list."""

from collections.abc import Iterable

from pine_lint import diagnostics


def aggregate(
    parse_diagnostics: Iterable[diagnostics.Diagnostic],
    rule_diagnostics: Iterable[diagnostics.Diagnostic],
) -> list[diagnostics.Diagnostic]:
    """Concatenate, deduplicate and order diagnostics for presentation.

    Two diagnostics are duplicates when they share code, range and message;
    the first occurrence is kept. The result is stably sorted by start line,
    then start character, so that ties keep parser diagnostics ahead of rule
    diagnostics and rules in registry order.

    Args:
        parse_diagnostics: Syntax diagnostics from the parser.
        rule_diagnostics: Diagnostics produced by the rule engine.

    Returns:
        A new list, top-to-bottom.
    """
    seen: set[tuple[str, object, str]] = set()
    unique: list[diagnostics.Diagnostic] = []
    for diag in (*parse_diagnostics, *rule_diagnostics):
        key = (diag.code, diag.range, diag.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(diag)
    return sorted(unique, key=lambda diag: diag.sort_key)
