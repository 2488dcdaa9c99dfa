"""The formatter: turns a token stream into indented, spaced lines.

Tokens are pulled one at a time and appended to the current logical line;
certain tokens end the line (`{`, `;`, `}`, and `,` when commas are breaking)
and `}` always starts a fresh one. On top of that sits a small recursive
descent over the three constructs that change how commas behave:

    match <scrutinee> { <arm>, <arm>, ... }     commas break lines (not in the scrutinee)
    { <item>, <item>, ... }                     commas break lines
    ( <arg>, <arg>, ... )                       commas do not

Nothing else in the language is parsed; every other token is just laid out.
"""
import contextlib
import enum
import io
import logging
import typing

from .config import FormatOptions
from .layout import LineToken, LogicalLine
from .lexer import TokenReader
from .tokens import FormatError, Token, TokenAndSpan, TokenKind, is_keyword, to_str


production_log = logging.getLogger("rfmt.production")
flush_log = logging.getLogger("rfmt.flush")


class NestingError(FormatError):
    pass


class TokenSource(typing.Protocol):
    def is_eof(self) -> bool: ...

    def peek(self) -> TokenAndSpan:
        """The next token, without consuming it."""
        ...

    def next_token(self) -> TokenAndSpan:
        """Consume the next token."""
        ...

    def position(self, offset: int) -> typing.Tuple[int, int]:
        """The (line, column) of a character offset."""
        ...


class Production(enum.Enum):
    MATCH = "match"
    BRACES = "braces"
    PARENTHESES = "parentheses"


class Formatter:
    lexer: TokenSource
    out: typing.TextIO
    options: FormatOptions

    indent: int
    logical_line: LogicalLine
    last_token: TokenAndSpan
    newline_after_comma: bool
    depth: int
    errors: list[str]

    def __init__(
        self,
        lexer: TokenSource,
        out: typing.TextIO,
        options: FormatOptions | None = None,
    ):
        self.lexer = lexer
        self.out = out
        self.options = options or FormatOptions()

        self.indent = 0
        self.logical_line = LogicalLine()
        self.last_token = TokenAndSpan(Token(TokenKind.SEMI), 0, 0)
        self.newline_after_comma = False
        self.depth = 0
        self.errors = []

    def format(self) -> list[str]:
        """Format the whole token stream, returning any diagnostics.

        Running out of input in the middle of a construct is not an
        exception: the lines flushed so far have been written, the half-built
        line is dropped, and a diagnostic describes what was left open. If
        every construct was closed, a trailing line with no terminator (e.g.
        a bare expression) is still written.
        """
        complete = True
        while self.next_token():
            complete = self.parse_production()

        if complete:
            self.flush_line()
        elif len(self.logical_line) > 0 and flush_log.isEnabledFor(logging.DEBUG):
            flush_log.debug(f"Discarding unfinished line {self.logical_line!r}")

        return self.errors

    ########################################################################
    # Productions
    ########################################################################

    def parse_production(self) -> bool:
        """If the token just consumed opens a production, parse through to the
        end of it. Returns False if the input ran out first."""
        opener = self.last_token
        if is_keyword("match", opener.tok):
            production = Production.MATCH
        elif opener.tok.kind == TokenKind.LBRACE:
            production = Production.BRACES
        elif opener.tok.kind == TokenKind.LPAREN:
            production = Production.PARENTHESES
        else:
            return True

        with self._nested(production, opener):
            match production:
                case Production.MATCH:
                    return self.parse_match(opener)
                case Production.BRACES:
                    return self.parse_braces(opener)
                case Production.PARENTHESES:
                    return self.parse_parentheses(opener)
                case _:
                    typing.assert_never(production)

    def parse_match(self, opener: TokenAndSpan) -> bool:
        # We've already parsed the keyword. Parse until we find a `{`; the
        # scrutinee is one expression and is not searched for nested
        # productions, so its commas never break.
        with self._newline_after_comma(False):
            if not self.parse_tokens_up_to(TokenKind.LBRACE):
                self._incomplete(opener, "'match' is missing its '{'")
                return False

        with self._newline_after_comma(True):
            if not self.parse_productions_up_to(TokenKind.RBRACE):
                self._incomplete(opener, "'match' block is never closed")
                return False
        return True

    def parse_braces(self, opener: TokenAndSpan) -> bool:
        # We've already parsed the '{'. Parse until we find a '}'.
        with self._newline_after_comma(True):
            if not self.parse_productions_up_to(TokenKind.RBRACE):
                self._incomplete(opener, "'{' is never closed")
                return False
        return True

    def parse_parentheses(self, opener: TokenAndSpan) -> bool:
        # We've already parsed the '('. Parse until we find a ')'.
        with self._newline_after_comma(False):
            if not self.parse_productions_up_to(TokenKind.RPAREN):
                self._incomplete(opener, "'(' is never closed")
                return False
        return True

    def parse_tokens_up_to(self, kind: TokenKind) -> bool:
        while self.next_token():
            if self.last_token.tok.kind == kind:
                return True
        return False

    def parse_productions_up_to(self, kind: TokenKind) -> bool:
        while self.next_token():
            if self.last_token.tok.kind == kind:
                return True
            if not self.parse_production():
                return False
        return False

    @contextlib.contextmanager
    def _newline_after_comma(self, value: bool):
        old_newline_after_comma_setting = self.newline_after_comma
        self.newline_after_comma = value
        try:
            yield
        finally:
            self.newline_after_comma = old_newline_after_comma_setting

    @contextlib.contextmanager
    def _nested(self, production: Production, opener: TokenAndSpan):
        self.depth += 1
        try:
            if self.depth > self.options.max_nesting:
                line, column = self.lexer.position(opener.start)
                raise NestingError(
                    f"{line}:{column}: Maximum nesting depth of "
                    f"{self.options.max_nesting} exceeded"
                )

            if production_log.isEnabledFor(logging.DEBUG):
                production_log.debug(f"{'  ' * self.depth}> {production.value}")
            yield
            if production_log.isEnabledFor(logging.DEBUG):
                production_log.debug(f"{'  ' * self.depth}< {production.value}")
        finally:
            self.depth -= 1

    def _incomplete(self, opener: TokenAndSpan, message: str):
        line, column = self.lexer.position(opener.start)
        self.errors.append(f"{line}:{column}: Incomplete input: {message}")

    ########################################################################
    # Tokens and lines
    ########################################################################

    def token_ends_logical_line(self, line_token: LineToken) -> bool:
        match line_token.tok.kind:
            case TokenKind.LBRACE | TokenKind.SEMI | TokenKind.RBRACE:
                return True
            case TokenKind.COMMA:
                return self.newline_after_comma
            case _:
                return False

    def next_token(self) -> bool:
        """Consume one token onto the current logical line, flushing lines as
        needed. Returns False at the end of the input."""
        while True:
            if self.lexer.is_eof():
                return False

            last_token = self.lexer.peek()
            self.last_token = last_token
            line_token = LineToken(last_token)
            if line_token.starts_logical_line() and len(self.logical_line) > 0:
                # Flush and look at the same token again.
                self.flush_line()
                continue

            if len(self.logical_line) == 0:
                self.indent += line_token.preindentation()

            self.lexer.next_token()
            token_ends_logical_line = self.token_ends_logical_line(line_token)
            self.logical_line.append(line_token)
            if token_ends_logical_line:
                self.flush_line()

            return True

    def flush_line(self):
        line, self.logical_line = self.logical_line, LogicalLine()
        if len(line) == 0:
            return

        text = line.render(self.indent * self.options.indent_width)
        if flush_log.isEnabledFor(logging.DEBUG):
            flush_log.debug(f"[{self.indent:3}] {text}")

        self.out.write(text)
        self.out.write("\n")
        self.indent += line.postindentation()


def format_source(
    text: str, options: FormatOptions | None = None
) -> typing.Tuple[str, list[str]]:
    """Format the provided text, returning the output and any diagnostics.

    Raises LexError if the text can't be tokenized and NestingError if it
    nests deeper than the options allow.
    """
    out = io.StringIO()
    errors = Formatter(TokenReader(text), out, options).format()
    return (out.getvalue(), errors)


def format_tokens(
    tokens: typing.Iterable[Token], options: FormatOptions | None = None
) -> typing.Tuple[str, list[str]]:
    """Format a sequence of bare tokens, as if they had been lexed from their
    canonical spellings separated by single spaces."""
    out = io.StringIO()
    errors = Formatter(ListTokenSource(tokens), out, options).format()
    return (out.getvalue(), errors)


class ListTokenSource:
    """A token source over already-lexed tokens.

    Spans are made up: each token is placed after the previous one with a
    single space between them, all on line 1.
    """

    _tokens: list[TokenAndSpan]
    _index: int

    def __init__(self, tokens: typing.Iterable[Token]):
        self._tokens = []
        pos = 0
        for token in tokens:
            end = pos + len(to_str(token))
            self._tokens.append(TokenAndSpan(token, pos, end))
            pos = end + 1
        self._index = 0

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

    def position(self, offset: int) -> typing.Tuple[int, int]:
        return (1, offset)
