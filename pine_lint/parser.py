"""Recursive-descent parser producing a syntax tree from lexer tokens.

Blocks are delimited by indentation: the body of ``if``, ``for``, ``while`` and
multi-line function definitions is every following line indented deeper than
the header, with all body statements sharing the same indentation.

A logical line continues onto the next physical line while brackets are open,
or after a binary operator, ``?``, ``:`` or an assignment operator. A simple
statement also continues onto a line indented deeper than its own when that
line opens with a binary operator, ``?`` or ``:``.

Errors never abort the parse. Each statement attempt yields either ``Parsed``
or ``Failed``; a failed attempt produces an ``ErrorNode`` and a
``SYNTAX_ERROR`` diagnostic, then parsing resumes at the next line indented no
deeper than the statement that failed.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from pine_lint import diagnostics, nodes, tokens

# Combined limit on expression and block nesting, keeping recursion well
# inside the interpreter's stack.
_MAX_NESTING: int = 48

_ASSIGNMENT_OPERATORS: tuple[str, ...] = (":=", "+=", "-=", "*=", "/=", "%=")
_DECLARATION_MODIFIERS: tuple[str, ...] = ("var", "varip")
_JUMP_KEYWORDS: tuple[str, ...] = ("return", "break", "continue")

# Binary operator precedence levels, loosest binding first.
_BINARY_LEVELS: tuple[tuple[str, ...], ...] = (
    ("or",),
    ("and",),
    ("==", "!="),
    ("<", ">", "<=", ">="),
    ("+", "-"),
    ("*", "/", "%"),
)

_LITERAL_KINDS: dict[tokens.TokenKind, nodes.LiteralKind] = {
    tokens.TokenKind.NUMBER: nodes.LiteralKind.NUMBER,
    tokens.TokenKind.STRING: nodes.LiteralKind.STRING,
    tokens.TokenKind.COLOR: nodes.LiteralKind.COLOR,
}

_LAYOUT: tuple[tokens.TokenKind, ...] = (tokens.TokenKind.NEWLINE, tokens.TokenKind.COMMENT)


@dataclasses.dataclass(frozen=True)
class Parsed:
    """A statement attempt that produced a valid node."""

    node: nodes.Node


@dataclasses.dataclass(frozen=True)
class Failed:
    """A statement attempt that was replaced by an error node."""

    node: nodes.ErrorNode
    diagnostic: diagnostics.Diagnostic


StatementResult = Parsed | Failed


@dataclasses.dataclass(frozen=True)
class _Failure:
    message: str
    token: tokens.Token


def _describe(token: tokens.Token, expected: str) -> str:
    """Build the message for an unexpected *token*."""
    if token.kind is tokens.TokenKind.UNKNOWN:
        if token.text[:1] in ("'", '"'):
            return "Unterminated string literal"
        return f"Unexpected character `{token.text}`"
    if token.kind is tokens.TokenKind.EOF:
        return f"Unexpected end of input; expected {expected}"
    if token.kind is tokens.TokenKind.NEWLINE:
        return f"Unexpected end of line; expected {expected}"
    return f"Unexpected `{token.text}`; expected {expected}"


class Parser:
    """Single-use parser over one token sequence."""

    def __init__(self, token_stream: Sequence[tokens.Token]) -> None:
        self._tokens = list(token_stream)
        self._pos = 0
        self._nesting = 0
        self._depth = 0
        self._continuation_indent: int | None = None
        self._failure: _Failure | None = None
        self._diagnostics: list[diagnostics.Diagnostic] = []
        end = self._tokens[-1].range.end if self._tokens else tokens.Position(0, 0)
        self._eof = tokens.Token(
            kind=tokens.TokenKind.EOF, text="", range=tokens.Range(end, end)
        )

    def parse_program(self) -> tuple[nodes.Program, list[diagnostics.Diagnostic]]:
        """Parse every token into a Program and collect syntax diagnostics."""
        body = self._parse_suite(0, top_level=True)
        program = nodes.Program(
            range=tokens.Range(tokens.Position(0, 0), self._eof.range.end),
            body=tuple(body),
        )
        return program, self._diagnostics

    # ------------------------------------------------------------------
    # Token navigation
    # ------------------------------------------------------------------

    def _raw(self, index: int) -> tokens.Token:
        if index < len(self._tokens):
            return self._tokens[index]
        return self._eof

    def _is_skipped(self, token: tokens.Token) -> bool:
        """Comments are never significant; newlines only outside brackets."""
        if token.kind is tokens.TokenKind.COMMENT:
            return True
        return token.kind is tokens.TokenKind.NEWLINE and self._nesting > 0

    def _index_of(self, offset: int = 0) -> int:
        index = self._pos
        while index < len(self._tokens):
            if self._is_skipped(self._tokens[index]):
                index += 1
                continue
            if offset == 0:
                return index
            offset -= 1
            index += 1
        return len(self._tokens)

    def _peek(self, offset: int = 0) -> tokens.Token:
        return self._raw(self._index_of(offset))

    def _advance(self) -> tokens.Token:
        index = self._index_of()
        self._pos = min(index + 1, len(self._tokens))
        return self._raw(index)

    def _at_line_end(self) -> bool:
        return self._peek().kind in (tokens.TokenKind.NEWLINE, tokens.TokenKind.EOF)

    def _continue_line(self) -> None:
        """Allow the expression to carry on past line breaks and comments."""
        while self._pos < len(self._tokens) and self._tokens[self._pos].kind in _LAYOUT:
            self._pos += 1

    def _join_continuation(self, *operators: str) -> None:
        """Step onto the next line if it continues the current simple statement.

        That line must be indented deeper than the statement and open with one
        of *operators*.
        """
        if self._continuation_indent is None or self._nesting > 0:
            return
        if self._peek().kind is not tokens.TokenKind.NEWLINE:
            return
        upcoming = self._upcoming_index()
        if upcoming is None:
            return
        token = self._tokens[upcoming]
        if (
            token.indent is not None
            and token.indent > self._continuation_indent
            and token.kind in (tokens.TokenKind.OPERATOR, tokens.TokenKind.KEYWORD)
            and token.text in operators
        ):
            self._pos = upcoming

    def _skip_line(self) -> None:
        while (
            self._pos < len(self._tokens)
            and self._tokens[self._pos].kind is not tokens.TokenKind.NEWLINE
        ):
            self._pos += 1

    def _upcoming_index(self) -> int | None:
        """Index of the first token of the next line holding code, if any."""
        for index in range(self._pos, len(self._tokens)):
            if self._tokens[index].kind not in _LAYOUT:
                return index
        return None

    def _indent_at(self, index: int, fallback: int) -> int:
        indent = self._tokens[index].indent
        return fallback if indent is None else indent

    def _fail(self, message: str, token: tokens.Token | None = None) -> None:
        """Record the first failure of the current statement attempt."""
        if self._failure is None:
            self._failure = _Failure(message, token if token is not None else self._peek())

    def _expected(self, description: str) -> None:
        self._fail(_describe(self._peek(), description))

    # ------------------------------------------------------------------
    # Statement sequences and recovery
    # ------------------------------------------------------------------

    def _consume_layout(self) -> list[nodes.Node]:
        """Skip blank lines and comments, keeping line-leading comments as nodes."""
        comments: list[nodes.Node] = []
        while self._pos < len(self._tokens) and self._tokens[self._pos].kind in _LAYOUT:
            token = self._tokens[self._pos]
            if token.kind is tokens.TokenKind.COMMENT and token.is_line_leading:
                comments.append(nodes.Comment(range=token.range, text=token.text))
            self._pos += 1
        return comments

    def _parse_suite(self, indent: int, *, top_level: bool = False) -> list[nodes.Node]:
        """Parse consecutive statements sharing *indent*."""
        body: list[nodes.Node] = []
        while True:
            upcoming = self._upcoming_index()
            if upcoming is None:
                if top_level:
                    body.extend(self._consume_layout())
                return body
            line_indent = self._indent_at(upcoming, indent)
            if line_indent < indent:
                return body

            body.extend(self._consume_layout())
            start = self._pos
            if line_indent > indent:
                self._failure = _Failure("Unexpected indentation", self._raw(start))
                result = self._recover(start, indent)
            else:
                result = self._attempt_statement(indent)

            if isinstance(result, Failed):
                self._diagnostics.append(result.diagnostic)
            body.append(result.node)
            if self._pos == start:
                self._pos += 1

    def _attempt_statement(self, indent: int) -> StatementResult:
        start = self._pos
        reported = len(self._diagnostics)
        self._failure = None
        self._nesting = 0
        node = self._parse_statement(indent)
        if node is not None:
            return Parsed(node)
        # Errors inside nested blocks are folded into this statement's error.
        del self._diagnostics[reported:]
        return self._recover(start, indent)

    def _recover(self, start: int, indent: int) -> Failed:
        """Skip to the next line indented no deeper than *indent*."""
        failure = self._failure or _Failure("Invalid syntax", self._raw(start))
        self._failure = None
        self._nesting = 0

        self._skip_line()
        while True:
            upcoming = self._upcoming_index()
            if upcoming is None or self._indent_at(upcoming, indent) <= indent:
                break
            self._pos = upcoming
            self._skip_line()

        first = self._raw(start)
        last = first
        for token in self._tokens[start : self._pos]:
            if token.kind not in _LAYOUT:
                last = token
        error_range = tokens.span(first.range, last.range)
        return Failed(
            node=nodes.ErrorNode(range=error_range, message=failure.message),
            diagnostic=diagnostics.Diagnostic(
                code=diagnostics.Code.SYNTAX_ERROR,
                message=failure.message,
                severity=diagnostics.Severity.ERROR,
                range=failure.token.range,
            ),
        )

    def _parse_block(self, header_indent: int) -> nodes.Block | None:
        if not self._at_line_end():
            return self._expected("end of line")
        upcoming = self._upcoming_index()
        if upcoming is None or self._indent_at(upcoming, header_indent) <= header_indent:
            return self._fail("Expected an indented block", self._peek())
        if self._depth >= _MAX_NESTING:
            return self._fail("Blocks are nested too deeply", self._raw(upcoming))

        self._depth += 1
        body = self._parse_suite(self._indent_at(upcoming, header_indent))
        self._depth -= 1
        return nodes.Block(
            range=tokens.span(body[0].range, body[-1].range),
            statements=tuple(body),
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statement(self, indent: int) -> nodes.Node | None:
        token = self._peek()
        if token.is_keyword("if"):
            return self._parse_if(indent)
        if token.is_keyword("for"):
            return self._parse_for(indent)
        if token.is_keyword("while"):
            return self._parse_while(indent)
        if token.is_keyword("else"):
            return self._fail("`else` without a matching `if`", token)
        if self._starts_function_definition():
            return self._parse_function_definition(indent)

        self._continuation_indent = indent
        if token.is_keyword(*_JUMP_KEYWORDS):
            node = self._parse_jump()
        elif token.is_keyword(*_DECLARATION_MODIFIERS) or self._starts_declaration():
            node = self._parse_declaration()
        elif token.kind is tokens.TokenKind.IDENTIFIER and self._peek(1).is_operator(
            *_ASSIGNMENT_OPERATORS
        ):
            node = self._parse_assignment()
        else:
            node = self._parse_expression()
        self._continuation_indent = None

        if node is None:
            return None
        if not self._at_line_end():
            return self._expected("end of line")
        return node

    def _starts_declaration(self) -> bool:
        if self._peek().kind is not tokens.TokenKind.IDENTIFIER:
            return False
        if self._peek(1).is_operator("="):
            return True
        return (
            self._peek(1).kind is tokens.TokenKind.IDENTIFIER
            and self._peek(2).is_operator("=")
        )

    def _starts_function_definition(self) -> bool:
        """Return True for ``name(...) =>`` with the arrow right after the paren."""
        if self._peek().kind is not tokens.TokenKind.IDENTIFIER:
            return False
        open_index = self._index_of(1)
        if not self._raw(open_index).is_punctuation("("):
            return False
        depth = 0
        for index in range(open_index, len(self._tokens)):
            token = self._tokens[index]
            if token.is_punctuation("(", "["):
                depth += 1
            elif token.is_punctuation(")", "]"):
                depth -= 1
                if depth == 0:
                    return self._raw(index + 1).is_operator("=>")
        return False

    def _parse_if(self, indent: int) -> nodes.IfStatement | None:
        branches: list[tuple[tokens.Token, nodes.Node, nodes.Block]] = []
        orelse: nodes.Block | None = None
        keyword = self._advance()
        while True:
            condition = self._parse_expression()
            if condition is None:
                return None
            body = self._parse_block(indent)
            if body is None:
                return None
            branches.append((keyword, condition, body))
            if not self._skip_to_else(indent):
                break
            self._advance()
            if self._peek().is_keyword("if"):
                keyword = self._advance()
                continue
            orelse = self._parse_block(indent)
            if orelse is None:
                return None
            break

        # Fold ``else if`` chains into nested IfStatements, innermost first.
        node: nodes.Block | nodes.IfStatement | None = orelse
        for keyword, condition, body in reversed(branches):
            end = node.range.end if node is not None else body.range.end
            node = nodes.IfStatement(
                range=tokens.Range(keyword.range.start, end),
                condition=condition,
                body=body,
                orelse=node,
            )
        return node  # type: ignore[return-value]

    def _skip_to_else(self, indent: int) -> bool:
        """Move to an ``else`` continuing the current ``if`` at *indent*, if any.

        Only blank lines and the trailing comment of the previous line may sit
        between the end of the block and the ``else``.
        """
        for index in range(self._pos, len(self._tokens)):
            token = self._tokens[index]
            if token.kind is tokens.TokenKind.NEWLINE:
                continue
            if token.kind is tokens.TokenKind.COMMENT and not token.is_line_leading:
                continue
            if token.is_keyword("else") and token.indent == indent:
                self._pos = index
                return True
            return False
        return False

    def _parse_for(self, indent: int) -> nodes.ForStatement | None:
        keyword = self._advance()
        name = self._peek()
        if name.kind is not tokens.TokenKind.IDENTIFIER:
            return self._expected("a loop variable")
        self._advance()
        variable = nodes.Identifier(range=name.range, name=name.text)

        end: nodes.Node | None = None
        step: nodes.Node | None = None
        separator = self._peek()
        if separator.is_operator("="):
            self._advance()
            start = self._parse_expression()
            if start is None:
                return None
            if not self._peek().is_keyword("to"):
                return self._expected("`to`")
            self._advance()
            end = self._parse_expression()
            if end is None:
                return None
            if self._peek().is_keyword("by"):
                self._advance()
                step = self._parse_expression()
                if step is None:
                    return None
        elif separator.is_keyword("in"):
            self._advance()
            start = self._parse_expression()
            if start is None:
                return None
        else:
            return self._expected("`=` or `in`")

        body = self._parse_block(indent)
        if body is None:
            return None
        return nodes.ForStatement(
            range=tokens.Range(keyword.range.start, body.range.end),
            variable=variable,
            start=start,
            end=end,
            step=step,
            body=body,
        )

    def _parse_while(self, indent: int) -> nodes.WhileStatement | None:
        keyword = self._advance()
        condition = self._parse_expression()
        if condition is None:
            return None
        body = self._parse_block(indent)
        if body is None:
            return None
        return nodes.WhileStatement(
            range=tokens.Range(keyword.range.start, body.range.end),
            condition=condition,
            body=body,
        )

    def _parse_jump(self) -> nodes.JumpStatement | None:
        keyword = self._advance()
        if keyword.text != "return" or self._at_line_end():
            return nodes.JumpStatement(range=keyword.range, keyword=keyword.text)
        value = self._parse_expression()
        if value is None:
            return None
        return nodes.JumpStatement(
            range=tokens.Range(keyword.range.start, value.range.end),
            keyword=keyword.text,
            value=value,
        )

    def _parse_declaration(self) -> nodes.VariableDeclaration | None:
        first = self._peek()
        modifier: str | None = None
        if first.is_keyword(*_DECLARATION_MODIFIERS):
            modifier = self._advance().text
        type_name: str | None = None
        if (
            self._peek().kind is tokens.TokenKind.IDENTIFIER
            and self._peek(1).kind is tokens.TokenKind.IDENTIFIER
        ):
            type_name = self._advance().text

        name = self._peek()
        if name.kind is not tokens.TokenKind.IDENTIFIER:
            return self._expected("a variable name")
        self._advance()
        if not self._peek().is_operator("="):
            return self._expected("`=`")
        self._advance()
        self._continue_line()
        value = self._parse_expression()
        if value is None:
            return None
        return nodes.VariableDeclaration(
            range=tokens.Range(first.range.start, value.range.end),
            name=nodes.Identifier(range=name.range, name=name.text),
            value=value,
            modifier=modifier,
            type_name=type_name,
        )

    def _parse_assignment(self) -> nodes.Assignment | None:
        name = self._advance()
        operator = self._advance()
        self._continue_line()
        value = self._parse_expression()
        if value is None:
            return None
        return nodes.Assignment(
            range=tokens.Range(name.range.start, value.range.end),
            target=nodes.Identifier(range=name.range, name=name.text),
            operator=operator.text,
            value=value,
        )

    def _parse_function_definition(self, indent: int) -> nodes.FunctionDefinition | None:
        name = self._advance()
        self._advance()
        self._nesting += 1
        parameters: list[nodes.Parameter] = []
        while not self._peek().is_punctuation(")"):
            parameter = self._parse_parameter()
            if parameter is None:
                return None
            parameters.append(parameter)
            if self._peek().is_punctuation(","):
                self._advance()
            elif not self._peek().is_punctuation(")"):
                return self._expected("`,` or `)`")
        self._advance()
        self._nesting -= 1
        if not self._peek().is_operator("=>"):
            return self._expected("`=>`")
        self._advance()

        body: nodes.Node | None
        if self._at_line_end():
            body = self._parse_block(indent)
        else:
            body = self._parse_expression()
            if body is not None and not self._at_line_end():
                return self._expected("end of line")
        if body is None:
            return None
        return nodes.FunctionDefinition(
            range=tokens.Range(name.range.start, body.range.end),
            name=nodes.Identifier(range=name.range, name=name.text),
            parameters=tuple(parameters),
            body=body,
        )

    def _parse_parameter(self) -> nodes.Parameter | None:
        words: list[tokens.Token] = []
        while self._peek().kind is tokens.TokenKind.IDENTIFIER:
            words.append(self._advance())
        if not words:
            return self._expected("a parameter name")
        name = words[-1]
        default: nodes.Node | None = None
        if self._peek().is_operator("="):
            self._advance()
            default = self._parse_expression()
            if default is None:
                return None
        end = default.range.end if default is not None else name.range.end
        return nodes.Parameter(
            range=tokens.Range(words[0].range.start, end),
            name=nodes.Identifier(range=name.range, name=name.text),
            default=default,
            type_name=" ".join(word.text for word in words[:-1]) or None,
        )

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> nodes.Node | None:
        if self._depth >= _MAX_NESTING:
            return self._fail("Expression is nested too deeply")
        self._depth += 1
        node = self._parse_ternary()
        self._depth -= 1
        return node

    def _parse_ternary(self) -> nodes.Node | None:
        condition = self._parse_binary(0)
        if condition is not None:
            self._join_continuation("?")
        if condition is None or not self._peek().is_operator("?"):
            return condition
        self._advance()
        self._continue_line()
        when_true = self._parse_expression()
        if when_true is None:
            return None
        self._join_continuation(":")
        if not self._peek().is_operator(":"):
            return self._expected("`:`")
        self._advance()
        self._continue_line()
        when_false = self._parse_expression()
        if when_false is None:
            return None
        return nodes.TernaryExpression(
            range=tokens.span(condition.range, when_false.range),
            condition=condition,
            when_true=when_true,
            when_false=when_false,
        )

    def _parse_binary(self, level: int) -> nodes.Node | None:
        if level == len(_BINARY_LEVELS):
            return self._parse_unary()
        left = self._parse_binary(level + 1)
        if left is None:
            return None
        operators = _BINARY_LEVELS[level]
        while True:
            self._join_continuation(*operators)
            token = self._peek()
            if not (
                token.kind in (tokens.TokenKind.OPERATOR, tokens.TokenKind.KEYWORD)
                and token.text in operators
            ):
                return left
            self._advance()
            self._continue_line()
            right = self._parse_binary(level + 1)
            if right is None:
                return None
            left = nodes.BinaryExpression(
                range=tokens.span(left.range, right.range),
                operator=token.text,
                left=left,
                right=right,
            )

    def _parse_unary(self) -> nodes.Node | None:
        operators: list[tokens.Token] = []
        while self._peek().is_keyword("not") or self._peek().is_operator("-", "+"):
            operators.append(self._advance())
        node = self._parse_postfix()
        if node is None:
            return None
        for operator in reversed(operators):
            node = nodes.UnaryExpression(
                range=tokens.Range(operator.range.start, node.range.end),
                operator=operator.text,
                operand=node,
            )
        return node

    def _parse_postfix(self) -> nodes.Node | None:
        node = self._parse_primary()
        while node is not None:
            token = self._peek()
            if token.is_punctuation("("):
                node = self._parse_call(node)
            elif token.is_punctuation("["):
                node = self._parse_index(node)
            else:
                break
        return node

    def _parse_call(self, callee: nodes.Node) -> nodes.FunctionCall | None:
        self._advance()
        self._nesting += 1
        arguments: list[nodes.Node] = []
        while not self._peek().is_punctuation(")"):
            argument = self._parse_argument()
            if argument is None:
                return None
            arguments.append(argument)
            if self._peek().is_punctuation(","):
                self._advance()
            elif not self._peek().is_punctuation(")"):
                return self._expected("`,` or `)`")
        close = self._advance()
        self._nesting -= 1
        return nodes.FunctionCall(
            range=tokens.Range(callee.range.start, close.range.end),
            callee=callee,
            arguments=tuple(arguments),
        )

    def _parse_argument(self) -> nodes.Node | None:
        token = self._peek()
        if token.kind is tokens.TokenKind.IDENTIFIER and self._peek(1).is_operator("="):
            self._advance()
            self._advance()
            value = self._parse_expression()
            if value is None:
                return None
            return nodes.KeywordArgument(
                range=tokens.Range(token.range.start, value.range.end),
                name=nodes.Identifier(range=token.range, name=token.text),
                value=value,
            )
        return self._parse_expression()

    def _parse_index(self, target: nodes.Node) -> nodes.IndexExpression | None:
        self._advance()
        self._nesting += 1
        index = self._parse_expression()
        if index is None:
            return None
        if not self._peek().is_punctuation("]"):
            return self._expected("`]`")
        close = self._advance()
        self._nesting -= 1
        return nodes.IndexExpression(
            range=tokens.Range(target.range.start, close.range.end),
            target=target,
            index=index,
        )

    def _parse_primary(self) -> nodes.Node | None:
        token = self._peek()
        if token.kind in _LITERAL_KINDS:
            self._advance()
            return nodes.Literal(
                range=token.range, kind=_LITERAL_KINDS[token.kind], value=token.text
            )
        if token.is_keyword("true", "false"):
            self._advance()
            return nodes.Literal(
                range=token.range, kind=nodes.LiteralKind.BOOL, value=token.text
            )
        if token.kind is tokens.TokenKind.IDENTIFIER:
            self._advance()
            return nodes.Identifier(range=token.range, name=token.text)
        if token.is_punctuation("("):
            self._advance()
            self._nesting += 1
            inner = self._parse_expression()
            if inner is None:
                return None
            if not self._peek().is_punctuation(")"):
                return self._expected("`)`")
            self._advance()
            self._nesting -= 1
            return inner
        return self._expected("an expression")


def parse(
    token_stream: Sequence[tokens.Token],
) -> tuple[nodes.Program, list[diagnostics.Diagnostic]]:
    """Parse *token_stream* into a Program plus any syntax diagnostics.

    Never raises: malformed statements become ErrorNodes with a matching
    ``SYNTAX_ERROR`` diagnostic, and parsing resumes at the next statement.

    Args:
        token_stream: Tokens produced by ``lexer.tokenize``.

    Returns:
        The Program root and the syntax diagnostics in source order.
    """
    return Parser(token_stream).parse_program()
