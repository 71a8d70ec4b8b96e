"""Tests for the VARIABLE_SHADOWING scoping rule."""

import textwrap

from pine_lint import diagnostics, lexer, parser
from pine_lint.rules import scoping


def _diagnostics(source: str) -> list[diagnostics.Diagnostic]:
    token_stream = lexer.tokenize(textwrap.dedent(source))
    program, _ = parser.parse(token_stream)
    return scoping.VariableShadowing().check(program, token_stream)


def _check_shadowing(source: str) -> list[str]:
    return [diag.code for diag in _diagnostics(source)]


# ---------------------------------------------------------------------------
# VARIABLE_SHADOWING: declarations hiding an outer variable
# ---------------------------------------------------------------------------


class TestVariableShadowing:
    def test_declaration_in_block_shadows_global(self) -> None:
        source = """\
            x = 1
            if true
                x = 2
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]

    def test_diagnostic_covers_inner_declaration(self) -> None:
        source = """\
            x = 1
            if true
                x = 2
        """
        (diag,) = _diagnostics(source)
        assert diag.severity is diagnostics.Severity.WARNING
        assert (diag.range.start.line, diag.range.start.character) == (2, 4)
        assert (diag.range.end.line, diag.range.end.character) == (2, 9)
        assert diag.message == "Declaration of `x` shadows the variable declared on line 1"

    def test_reassignment_not_flagged(self) -> None:
        source = """\
            x = 1
            if cond
                x := 2
                x += 1
        """
        assert _check_shadowing(source) == []

    def test_redeclaration_in_same_scope_not_flagged(self) -> None:
        source = """\
            x = 1
            x = 2
        """
        assert _check_shadowing(source) == []

    def test_outer_declaration_after_block_not_flagged(self) -> None:
        source = """\
            if cond
                x = 2
            x = 1
        """
        assert _check_shadowing(source) == []

    def test_sibling_blocks_do_not_share_scope(self) -> None:
        source = """\
            if a
                y = 1
            if b
                y = 2
        """
        assert _check_shadowing(source) == []

    def test_deeply_nested_declaration_flagged_once(self) -> None:
        source = """\
            x = 1
            if a
                if b
                    x = 3
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]

    def test_intermediate_scope_binding_found(self) -> None:
        source = """\
            for i = 0 to 3
                acc = 0
                while busy
                    acc = 1
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]

    def test_function_body_shadows_global(self) -> None:
        source = """\
            length = 14
            f(x) =>
                length = 2
                x + length
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]

    def test_declaration_over_parameter_not_flagged(self) -> None:
        source = """\
            f(x) =>
                x = 2
                x
        """
        assert _check_shadowing(source) == []

    def test_typed_and_var_declarations_flagged(self) -> None:
        source = """\
            float level = 0.0
            if ready
                var float level = 1.0
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]

    def test_else_branch_is_its_own_scope(self) -> None:
        source = """\
            state = 0
            if a
                other = 1
            else
                state = 2
        """
        assert _check_shadowing(source) == ["VARIABLE_SHADOWING"]
