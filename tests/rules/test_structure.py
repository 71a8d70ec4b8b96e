"""Tests for the NESTING_DEPTH structure rule."""

import textwrap

from pine_lint import lexer, parser
from pine_lint.rules import structure


def _check_nesting(source: str, **kwargs: int) -> list[str]:
    token_stream = lexer.tokenize(textwrap.dedent(source))
    program, _ = parser.parse(token_stream)
    rule = structure.NestingDepth(**kwargs)
    return [diag.code for diag in rule.check(program, token_stream)]


# ---------------------------------------------------------------------------
# NESTING_DEPTH: maximum nesting depth
# ---------------------------------------------------------------------------


class TestNestingDepth:
    # ------------------------------------------------------------------
    # Within-limit cases (no diagnostic expected)
    # ------------------------------------------------------------------

    def test_depth_zero_ok(self) -> None:
        assert _check_nesting("x = 1") == []

    def test_depth_one_ok(self) -> None:
        source = """\
            for item in items
                total += item
        """
        assert _check_nesting(source) == []

    def test_depth_four_ok(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    if c
                        while d
                            foo()
        """
        assert _check_nesting(source) == []

    def test_else_if_does_not_add_depth(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    for c in zs
                        if case1
                            foo()
                        else if case2
                            bar()
                        else if case3
                            baz()
                        else
                            qux()
        """
        assert _check_nesting(source) == []

    def test_function_definition_resets_depth(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    for c in zs
                        for d in ws
                            inner() =>
                                if flag
                                    foo()
        """
        assert _check_nesting(source) == []

    def test_single_line_function_ok(self) -> None:
        assert _check_nesting("double(x) => x * 2") == []

    def test_long_expression_chain_ok(self) -> None:
        source = "total = " + " + ".join(f"v{i}" for i in range(2000))
        assert _check_nesting(source) == []

    # ------------------------------------------------------------------
    # Over-limit cases
    # ------------------------------------------------------------------

    def test_depth_five_flagged(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    if c
                        while d
                            if e
                                foo()
        """
        assert _check_nesting(source) == ["NESTING_DEPTH"]

    def test_only_first_excess_level_reported(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    for c in zs
                        for d in ws
                            for e in vs
                                for f in us
                                    foo()
        """
        assert _check_nesting(source) == ["NESTING_DEPTH"]

    def test_excess_in_else_branch_flagged(self) -> None:
        source = """\
            for a in xs
                for b in ys
                    for c in zs
                        if cond
                            foo()
                        else
                            while busy
                                bar()
        """
        assert _check_nesting(source) == ["NESTING_DEPTH"]

    def test_sibling_excesses_each_reported(self) -> None:
        source = """\
            if a
                if b
                    foo()
                if c
                    bar()
        """
        assert _check_nesting(source, max_depth=1) == ["NESTING_DEPTH", "NESTING_DEPTH"]

    def test_function_body_counted_from_zero(self) -> None:
        source = """\
            f() =>
                if a
                    if b
                        foo()
        """
        assert _check_nesting(source, max_depth=1) == ["NESTING_DEPTH"]

    def test_diagnostic_covers_header_only(self) -> None:
        source = textwrap.dedent("""\
            if a
                while b
                    foo()
        """)
        token_stream = lexer.tokenize(source)
        program, _ = parser.parse(token_stream)
        (diag,) = structure.NestingDepth(max_depth=1).check(program, token_stream)
        assert (diag.range.start.line, diag.range.start.character) == (1, 4)
        assert (diag.range.end.line, diag.range.end.character) == (1, 11)
        assert "Nesting depth 2 exceeds the maximum of 1" in diag.message


class TestNestingDepthConfigure:
    def test_configure_returns_new_rule(self) -> None:
        rule = structure.NestingDepth()
        configured = rule.configure({"max_depth": 1})
        assert configured is not rule
        assert isinstance(configured, structure.NestingDepth)

    def test_configure_ignores_wrong_type(self) -> None:
        rule = structure.NestingDepth()
        assert rule.configure({"max_depth": "deep"}) is rule
        assert rule.configure({"max_depth": True}) is rule
