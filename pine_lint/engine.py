"""Rule registry and the loop that runs every rule over one document."""

from __future__ import annotations

import logging
import typing
from collections.abc import Callable, Iterable, Sequence

from pine_lint import cancellation, diagnostics, nodes, tokens

if typing.TYPE_CHECKING:
    from pine_lint.rules import base

logger = logging.getLogger(__name__)

RuleFunction = Callable[
    [nodes.Program, Sequence[tokens.Token]],
    Sequence[diagnostics.Diagnostic],
]
Registry = tuple[tuple[str, RuleFunction], ...]

_DOCUMENT_START = tokens.Range(tokens.Position(0, 0), tokens.Position(0, 0))


def build_registry(rules: Iterable[base.Rule]) -> Registry:
    """Return a registry holding *rules* keyed by their ``rule_id``.

    Raises:
        ValueError: If two rules share an identifier.
    """
    registry: Registry = ()
    for rule in rules:
        registry = register(registry, rule.rule_id, rule)
    return registry


def register(registry: Registry, rule_id: str, func: RuleFunction) -> Registry:
    """Return a new registry with *func* appended under *rule_id*.

    The input registry is left untouched, so registering a rule never changes
    what an existing analyzer runs.

    Raises:
        ValueError: If *rule_id* is already registered.
    """
    if any(existing == rule_id for existing, _ in registry):
        msg = f"Rule `{rule_id}` is already registered"
        raise ValueError(msg)
    return (*registry, (rule_id, func))


def _internal_error(rule_id: str, exc: Exception) -> diagnostics.Diagnostic:
    return diagnostics.Diagnostic(
        code=diagnostics.Code.RULE_INTERNAL_ERROR,
        message=f"Rule `{rule_id}` failed: {type(exc).__name__}: {exc}",
        severity=diagnostics.Severity.ERROR,
        range=_DOCUMENT_START,
    )


def run_all_lint_rules(
    program: nodes.Program,
    token_stream: Sequence[tokens.Token],
    registry: Registry,
    cancel: cancellation.CancellationToken | None = None,
) -> list[diagnostics.Diagnostic]:
    """Run every registered rule and concatenate their diagnostics.

    A rule that raises, or returns anything other than diagnostics, is
    replaced by a single ``RULE_INTERNAL_ERROR`` diagnostic naming it; the
    remaining rules still run.

    Args:
        program: Root of the parsed document.
        token_stream: The document's tokens, including layout tokens.
        registry: Rules to run, in order.
        cancel: Token checked before each rule.

    Returns:
        Diagnostics in registry order.

    Raises:
        AnalysisCancelled: If *cancel* is cancelled before a rule starts.
    """
    results: list[diagnostics.Diagnostic] = []
    for rule_id, func in registry:
        cancellation.checkpoint(cancel, f"before {rule_id}")
        try:
            produced = list(func(program, token_stream))
            for item in produced:
                if not isinstance(item, diagnostics.Diagnostic):
                    msg = f"returned {type(item).__name__}, expected Diagnostic"
                    raise TypeError(msg)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Rule %s raised while analysing a document", rule_id)
            results.append(_internal_error(rule_id, exc))
            continue
        results.extend(produced)
    return results
