import bisect
import logging
import re
import typing

from .tokens import (
    FIXED_KINDS,
    BinOp,
    FormatError,
    Token,
    TokenAndSpan,
    TokenKind,
    to_str,
)


lex_log = logging.getLogger("rfmt.lexer")


class LexError(FormatError):
    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{line}:{column}: {message}")
        self.line = line
        self.column = column


def _punctuation() -> dict[str, Token]:
    table = {kind.value: Token(kind) for kind in FIXED_KINDS}
    for op in BinOp:
        table[op.value] = Token.binop(op)
        table[op.value + "="] = Token.binopeq(op)
    return table


PUNCTUATION = _punctuation()

# Ordered: the first alternative that matches wins, so longer spellings of
# punctuation come before their prefixes.
_PATTERNS: list[typing.Tuple[str, str]] = [
    ("BLANKS", r"\s+"),
    ("LINE_COMMENT", r"//[^\n]*"),
    ("BLOCK_COMMENT", r"/\*"),
    ("RAW_STRING", r'b?r#*"'),
    ("STRING", r'b?"(?:[^"\\]|\\.)*"'),
    ("CHAR", r"b?'(?:[^'\\\n]|\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.))'"),
    ("LIFETIME", r"'[^\W\d]\w*"),
    (
        "NUMBER",
        r"0x[0-9a-fA-F_]+\w*"
        r"|0o[0-7_]+\w*"
        r"|0b[01_]+\w*"
        r"|[0-9][0-9_]*(?:\.[0-9][0-9_]*)?(?:[eE][+-]?[0-9_]+)?(?:[^\W\d]\w*)?",
    ),
    ("IDENT", r"[^\W\d]\w*"),
    (
        "PUNCT",
        "|".join(re.escape(p) for p in sorted(PUNCTUATION, key=len, reverse=True)),
    ),
]

_TOKEN_RE = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _PATTERNS), re.DOTALL
)


def tokenize(src: str) -> typing.Iterable[TokenAndSpan]:
    """Break the source into tokens, dropping whitespace and comments.

    Raises LexError on the first character that can't start a token.
    """
    lines = line_offsets(src)
    pos = 0
    while pos < len(src):
        m = _TOKEN_RE.match(src, pos)
        if m is None:
            line, column = position(lines, pos)
            raise LexError(f"Unexpected character {src[pos]!r}", line, column)

        kind = m.lastgroup
        start = pos
        end = m.end()
        match kind:
            case "BLANKS" | "LINE_COMMENT":
                pass

            case "BLOCK_COMMENT":
                end = _skip_block_comment(src, start, lines)

            case "RAW_STRING":
                end = _skip_raw_string(src, start, end, lines)
                yield TokenAndSpan(Token.literal(src[start:end]), start, end)

            case "STRING" | "CHAR" | "NUMBER":
                yield TokenAndSpan(Token.literal(src[start:end]), start, end)

            case "LIFETIME":
                yield TokenAndSpan(Token(TokenKind.LIFETIME, src[start:end]), start, end)

            case "IDENT":
                yield TokenAndSpan(Token.ident(src[start:end]), start, end)

            case "PUNCT":
                yield TokenAndSpan(PUNCTUATION[src[start:end]], start, end)

            case _:
                raise AssertionError(f"Unhandled token pattern {kind}")

        pos = end


def _skip_block_comment(src: str, start: int, lines: list[int]) -> int:
    # Block comments nest.
    depth = 0
    pos = start
    while pos < len(src):
        if src.startswith("/*", pos):
            depth += 1
            pos += 2
        elif src.startswith("*/", pos):
            depth -= 1
            pos += 2
            if depth == 0:
                return pos
        else:
            pos += 1

    line, column = position(lines, start)
    raise LexError("Unterminated block comment", line, column)


def _skip_raw_string(src: str, start: int, prefix_end: int, lines: list[int]) -> int:
    hashes = src.count("#", start, prefix_end)
    terminator = '"' + "#" * hashes
    close = src.find(terminator, prefix_end)
    if close < 0:
        line, column = position(lines, start)
        raise LexError("Unterminated raw string", line, column)
    return close + len(terminator)


def line_offsets(src: str) -> list[int]:
    """The offsets of the line breaks in the source."""
    return [m.start() for m in re.finditer("\n", src)]


def position(lines: list[int], offset: int) -> typing.Tuple[int, int]:
    """Map a character offset to a 1-based line and 0-based column."""
    line_index = bisect.bisect_left(lines, offset)
    if line_index == 0:
        col_start = 0
    else:
        col_start = lines[line_index - 1] + 1
    return (line_index + 1, offset - col_start)


class TokenReader:
    """A token source over a string: peek, consume, and check for the end.

    The whole string is tokenized up front, so lexical errors surface when the
    reader is constructed rather than halfway through formatting.
    """

    src: str
    _tokens: list[TokenAndSpan]
    _lines: list[int]
    _index: int

    def __init__(self, src: str):
        self.src = src
        self._lines = line_offsets(src)
        self._tokens = list(tokenize(src))
        self._index = 0

        if lex_log.isEnabledFor(logging.DEBUG):
            lex_log.debug(f"{len(self._tokens)} tokens on {len(self._lines) + 1} lines")

    def is_eof(self) -> bool:
        return self._index >= len(self._tokens)

    def peek(self) -> TokenAndSpan:
        if self.is_eof():
            raise IndexError("peek past the end of the token stream")
        return self._tokens[self._index]

    def next_token(self) -> TokenAndSpan:
        token = self.peek()
        self._index += 1
        return token

    def tokens(self) -> list[TokenAndSpan]:
        return self._tokens

    def position(self, offset: int) -> typing.Tuple[int, int]:
        return position(self._lines, offset)

    def dump(self, *, start=None, end=None) -> list[str]:
        if start is None:
            start = 0
        if end is None:
            end = len(self._tokens)

        max_kind_name = max((len(kind.name) for kind in TokenKind), default=0)
        max_offset_len = len(str(len(self.src)))

        prev_line = None
        lines = []
        for token in self._tokens[start:end]:
            line_number, column_index = self.position(token.start)
            if line_number != prev_line:
                line_part = f"{line_number:4}"
                prev_line = line_number
            else:
                line_part = "   |"

            kind = token.tok.kind.name
            value = to_str(token.tok)
            line = f"{token.start:{max_offset_len}} {line_part} {column_index:3} {kind:{max_kind_name}} {repr(value)}"
            lines.append(line)
        return lines
