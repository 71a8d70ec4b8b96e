"""Convert script source text into positioned tokens.

The lexer is total: it never raises. Character sequences it cannot classify
become ``UNKNOWN`` tokens and are reported later by the parser. Comments and
blank lines are kept as tokens so that layout-sensitive rules can see them.
"""

import re

from pine_lint import tokens

_TOKEN_RE = re.compile(
    r"""
      (?P<whitespace>[ \t\f]+)
    | (?P<comment>//.*)
    | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<unterminated>["'].*)
    | (?P<color>\#(?:[0-9A-Fa-f]{8}|[0-9A-Fa-f]{6})(?![0-9A-Za-z_]))
    | (?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)
    | (?P<operator>:=|==|!=|<=|>=|=>|\+=|-=|\*=|/=|%=|[-+*/%<>=?:])
    | (?P<punctuation>[()\[\],])
    | (?P<unknown>.)
    """,
    re.VERBOSE,
)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

_GROUP_KINDS: dict[str, tokens.TokenKind] = {
    "comment": tokens.TokenKind.COMMENT,
    "string": tokens.TokenKind.STRING,
    "unterminated": tokens.TokenKind.UNKNOWN,
    "color": tokens.TokenKind.COLOR,
    "number": tokens.TokenKind.NUMBER,
    "operator": tokens.TokenKind.OPERATOR,
    "punctuation": tokens.TokenKind.PUNCTUATION,
    "unknown": tokens.TokenKind.UNKNOWN,
}


def _leading_whitespace(line: str) -> int:
    return len(line) - len(line.lstrip(" \t\f"))


def _classify(group: str, text: str) -> tokens.TokenKind:
    if group == "name":
        if text in tokens.KEYWORDS:
            return tokens.TokenKind.KEYWORD
        return tokens.TokenKind.IDENTIFIER
    return _GROUP_KINDS[group]


def tokenize(text: str) -> list[tokens.Token]:
    """Split *text* into tokens.

    Each physical line is scanned independently. The first token on a line
    carries the line's raw indentation (number of leading whitespace
    characters). Every line break (``\\n``, ``\\r\\n`` or a lone ``\\r``)
    produces a ``NEWLINE`` token, so a blank line is represented by a single
    line-leading ``NEWLINE``.

    Args:
        text: Full document source.

    Returns:
        Tokens in strictly increasing source order.
    """
    result: list[tokens.Token] = []
    lines = _LINE_BREAK_RE.split(text)
    last_index = len(lines) - 1

    for line_no, line in enumerate(lines):
        indent = _leading_whitespace(line)
        is_leading = True

        for match in _TOKEN_RE.finditer(line, indent):
            group = match.lastgroup
            if group is None or group == "whitespace":
                continue
            lexeme = match.group()
            result.append(
                tokens.Token(
                    kind=_classify(group, lexeme),
                    text=lexeme,
                    range=tokens.Range(
                        start=tokens.Position(line_no, match.start()),
                        end=tokens.Position(line_no, match.end()),
                    ),
                    indent=indent if is_leading else None,
                )
            )
            is_leading = False

        if line_no < last_index:
            result.append(
                tokens.Token(
                    kind=tokens.TokenKind.NEWLINE,
                    text="\n",
                    range=tokens.Range(
                        start=tokens.Position(line_no, len(line)),
                        end=tokens.Position(line_no, len(line) + 1),
                    ),
                    indent=indent if is_leading else None,
                )
            )

    return result
