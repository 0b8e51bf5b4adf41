"""
Tokenizer for access log lines.

Splits a line into three kinds of tokens:

- BARE: a run of non-whitespace characters (``127.0.0.1``, ``200``)
- BRACKETED: text between ``[`` and ``]`` (``[10/Oct/2023:13:55:36 -0700]``)
- QUOTED: text between double quotes, where ``\\"`` and ``\\\\`` are
  escapes (``"GET /a b HTTP/1.1"``)

Fields may contain spaces, so the line is scanned character by character
instead of being split on a delimiter.
"""

from dataclasses import dataclass
from enum import Enum

from ..exceptions import ParseError, ParseErrorKind


class TokenKind(Enum):
    """Lexical category of a token."""

    BARE = "bare"
    BRACKETED = "bracketed"
    QUOTED = "quoted"


@dataclass(frozen=True)
class Token:
    """A token and its starting column in the line."""

    kind: TokenKind
    value: str
    position: int


class _State(Enum):
    BETWEEN = "between"
    BARE = "bare"
    BRACKETED = "bracketed"
    QUOTED = "quoted"
    QUOTED_ESCAPE = "quoted_escape"


# Characters that may follow a backslash inside a quoted token
_ESCAPABLE = frozenset('"\\')


def tokenize(line: str) -> list[Token]:
    """
    Split a log line into tokens.

    Args:
        line: One log line (trailing newline optional)

    Returns:
        Tokens in line order

    Raises:
        ParseError: MALFORMED_LINE on an unterminated bracket or quote
    """
    tokens: list[Token] = []
    state = _State.BETWEEN
    buffer: list[str] = []
    start = 0

    def emit(kind: TokenKind) -> None:
        tokens.append(Token(kind=kind, value="".join(buffer), position=start))
        buffer.clear()

    for index, char in enumerate(line):
        if state is _State.BETWEEN:
            if char.isspace():
                continue
            start = index
            if char == "[":
                state = _State.BRACKETED
            elif char == '"':
                state = _State.QUOTED
            else:
                buffer.append(char)
                state = _State.BARE

        elif state is _State.BARE:
            if char.isspace():
                emit(TokenKind.BARE)
                state = _State.BETWEEN
            else:
                buffer.append(char)

        elif state is _State.BRACKETED:
            if char == "]":
                emit(TokenKind.BRACKETED)
                state = _State.BETWEEN
            else:
                buffer.append(char)

        elif state is _State.QUOTED:
            if char == "\\":
                state = _State.QUOTED_ESCAPE
            elif char == '"':
                emit(TokenKind.QUOTED)
                state = _State.BETWEEN
            else:
                buffer.append(char)

        elif state is _State.QUOTED_ESCAPE:
            # Only \" and \\ are unescaped; other sequences (\x22, \n) are
            # kept verbatim as the server wrote them
            if char not in _ESCAPABLE:
                buffer.append("\\")
            buffer.append(char)
            state = _State.QUOTED

    if state is _State.BARE:
        emit(TokenKind.BARE)
    elif state is _State.BRACKETED:
        raise ParseError(
            f"Unterminated '[' starting at column {start}",
            kind=ParseErrorKind.MALFORMED_LINE,
        )
    elif state in (_State.QUOTED, _State.QUOTED_ESCAPE):
        raise ParseError(
            f"Unterminated '\"' starting at column {start}",
            kind=ParseErrorKind.MALFORMED_LINE,
        )

    return tokens
