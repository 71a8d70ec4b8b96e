"""Base abstractions for pine-lint rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pine_lint import diagnostics, nodes, tokens

RuleOptions = dict[str, int | str | bool | list[str]]


class Rule(ABC):
    """Abstract base class for all built-in rules.

    Rules are pure: ``check`` must not mutate the tree or the tokens, must not
    touch process-wide state, and must return the same diagnostics every time
    it sees the same input. Configuration happens by building a new instance
    through ``configure``, never by changing an existing one.
    """

    rule_id: str

    @abstractmethod
    def check(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        """Analyze the tree and return any diagnostics.

        Args:
            program: The parsed document.
            token_stream: All tokens of the document, including comments and
                newlines (needed for layout rules).

        Returns:
            A list of Diagnostic instances, empty if no issues are found.
        """

    def configure(self, options: RuleOptions) -> Rule:
        """Return a rule with *options* applied. Rules without options ignore them."""
        return self

    def __call__(
        self,
        program: nodes.Program,
        token_stream: Sequence[tokens.Token],
    ) -> list[diagnostics.Diagnostic]:
        return self.check(program, token_stream)
