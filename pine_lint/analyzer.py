"""Orchestrates one analysis pass: lex, parse, run rules, aggregate."""

from __future__ import annotations

import logging
import re
import typing
from collections.abc import Iterable, Sequence

from pine_lint import aggregator, cancellation, engine, lexer, parser, tokens
from pine_lint import config as pine_config
from pine_lint import rules as pine_rules

if typing.TYPE_CHECKING:
    from pine_lint import diagnostics
    from pine_lint.rules import base

logger = logging.getLogger(__name__)

# Matches:  // pine-lint: noqa                      (suppress all codes on this line)
#           // pine-lint: noqa: UNREACHABLE_CODE    (suppress specific codes on this line)
_LINE_NOQA_PAT = re.compile(
    r"//\s*pine-lint:\s*noqa(?::\s*([A-Z0-9_][A-Z0-9_,\s]*))?",
    re.IGNORECASE,
)

# Matches:  // pine-lint: disable-file                    (suppress all codes in this file)
#           // pine-lint: disable-file: NESTING_DEPTH     (suppress specific codes in this file)
_FILE_DISABLE_PAT = re.compile(
    r"//\s*pine-lint:\s*disable-file(?::\s*([A-Z0-9_][A-Z0-9_,\s]*))?",
    re.IGNORECASE,
)


def _codes(raw: str | None) -> frozenset[str] | None:
    """Parse codes from a suppression comment capture group.

    Returns None to indicate all codes are suppressed, or a frozenset of
    specific uppercased codes.
    """
    if not raw or not raw.strip():
        return None
    codes = frozenset(part.strip().upper() for part in raw.split(",") if part.strip())
    return codes or None


def _covers(suppressed: frozenset[str] | None, code: str) -> bool:
    """Return True if code falls within the suppression set.

    None means all codes are suppressed.
    """
    return suppressed is None or code.upper() in suppressed


def _apply_suppressions(
    diags: list[diagnostics.Diagnostic],
    token_stream: Sequence[tokens.Token],
) -> list[diagnostics.Diagnostic]:
    """Remove diagnostics covered by inline pine-lint suppression comments."""
    file_sup_active = False
    file_sup_codes: frozenset[str] | None = None
    line_sups: dict[int, frozenset[str] | None] = {}

    for token in token_stream:
        if token.kind is not tokens.TokenKind.COMMENT:
            continue
        file_match = _FILE_DISABLE_PAT.search(token.text)
        if file_match:
            file_sup_active = True
            file_sup_codes = _codes(file_match.group(1))

        line_match = _LINE_NOQA_PAT.search(token.text)
        if line_match:
            line_sups[token.range.start.line] = _codes(line_match.group(1))

    return [
        diag
        for diag in diags
        if not (
            (file_sup_active and _covers(file_sup_codes, diag.code))
            or (
                diag.range.start.line in line_sups
                and _covers(line_sups[diag.range.start.line], diag.code)
            )
        )
    ]


class Analyzer:
    """Runs the full pipeline and every registered rule against a document."""

    def __init__(
        self,
        rules: Iterable[base.Rule] = (),
        *,
        extra_rules: Iterable[tuple[str, engine.RuleFunction]] = (),
    ) -> None:
        """Initialize with the rules to run on every analysis request.

        Args:
            rules: Built-in style rule instances, registered under their
                ``rule_id``.
            extra_rules: Additional ``(rule_id, function)`` pairs for rules
                written as plain functions.

        Raises:
            ValueError: If two rules share an identifier.
        """
        registry = engine.build_registry(rules)
        for rule_id, func in extra_rules:
            registry = engine.register(registry, rule_id, func)
        self.registry = registry

    def analyze(
        self,
        source: str,
        cancel: cancellation.CancellationToken | None = None,
    ) -> list[diagnostics.Diagnostic]:
        """Lex, parse, run all rules, aggregate and apply inline suppressions.

        Args:
            source: Raw script source to analyze.
            cancel: Optional token; the pass stops at the next checkpoint
                once it is cancelled.

        Returns:
            Diagnostics ordered by (line, character), duplicates and
            suppressed entries removed.

        Raises:
            AnalysisCancelled: If *cancel* was cancelled during the pass.
        """
        token_stream = lexer.tokenize(source)
        cancellation.checkpoint(cancel, "lexing")
        program, parse_diagnostics = parser.parse(token_stream)
        cancellation.checkpoint(cancel, "parsing")
        rule_diagnostics = engine.run_all_lint_rules(
            program, token_stream, self.registry, cancel=cancel
        )
        merged = aggregator.aggregate(parse_diagnostics, rule_diagnostics)
        logger.debug(
            "Analysed %d tokens: %d syntax and %d rule diagnostics",
            len(token_stream),
            len(parse_diagnostics),
            len(rule_diagnostics),
        )
        return _apply_suppressions(merged, token_stream)


def from_config(cfg: pine_config.Config) -> Analyzer:
    """Build an Analyzer running the built-in rules selected and configured by *cfg*."""
    active_rules = pine_config.filter_rules(pine_rules.ALL_RULES, cfg)
    active_rules = pine_config.configure_rules(active_rules, cfg)
    return Analyzer(rules=active_rules)
