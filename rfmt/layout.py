"""Horizontal layout of a single logical line.

A logical line is a run of tokens that always ends up on one output line. The
only decision made here is whether two neighbouring tokens get a space
between them; where the line breaks, and how far it is indented, is the
formatter's business.
"""
import typing

from .tokens import BinOp, Token, TokenAndSpan, TokenKind, to_str


############################################################################
# Spacing rules
############################################################################

SpacingPredicate = typing.Callable[[Token, Token], bool]

# Tokens that would fuse into one token if printed with nothing between them.
WORD_KINDS = frozenset([TokenKind.IDENT, TokenKind.LIFETIME, TokenKind.LITERAL])

COMPARISON_KINDS = frozenset(
    [
        TokenKind.EQ,
        TokenKind.LT,
        TokenKind.LE,
        TokenKind.EQEQ,
        TokenKind.NE,
        TokenKind.GE,
        TokenKind.GT,
        TokenKind.ANDAND,
        TokenKind.OROR,
        TokenKind.TILDE,
    ]
)

OPERATOR_KINDS = frozenset([TokenKind.BINOP, TokenKind.BINOPEQ])
ARROW_KINDS = frozenset([TokenKind.RARROW, TokenKind.FAT_ARROW])
BRACE_KINDS = frozenset([TokenKind.LBRACE, TokenKind.RBRACE])


def _left(*kinds: TokenKind) -> SpacingPredicate:
    return lambda left, right: left.kind in kinds


def _right(*kinds: TokenKind) -> SpacingPredicate:
    return lambda left, right: right.kind in kinds


def _either(kinds: typing.Iterable[TokenKind]) -> SpacingPredicate:
    kinds = frozenset(kinds)
    return lambda left, right: left.kind in kinds or right.kind in kinds


def _words(left: Token, right: Token) -> bool:
    return left.kind in WORD_KINDS and right.kind in WORD_KINDS


def _macro_bang(left: Token, right: Token) -> bool:
    return left.kind == TokenKind.IDENT and right.kind == TokenKind.NOT


def _address_of(left: Token, right: Token) -> bool:
    return left.kind == TokenKind.BINOP and left.value == BinOp.AND


class SpacingRule(typing.NamedTuple):
    name: str
    applies: SpacingPredicate
    space: bool


# First match wins. Order matters: e.g. `&` is an operator, but as a leading
# sigil it must not pick up the operator spacing below it.
SPACING_RULES: list[SpacingRule] = [
    SpacingRule("words", _words, True),
    SpacingRule("macro", _macro_bang, False),
    SpacingRule("separator", _left(TokenKind.COLON, TokenKind.COMMA), True),
    SpacingRule("comparison", _either(COMPARISON_KINDS), True),
    SpacingRule("open paren", _left(TokenKind.LPAREN), False),
    SpacingRule("close paren", _right(TokenKind.RPAREN), False),
    SpacingRule("address of", _address_of, False),
    SpacingRule("operator", _either(OPERATOR_KINDS), True),
    SpacingRule("path", _either([TokenKind.MOD_SEP]), False),
    SpacingRule("arrow", _either(ARROW_KINDS), True),
    SpacingRule("brace", _either(BRACE_KINDS), True),
]


def matching_rule(left: Token, right: Token) -> SpacingRule | None:
    for rule in SPACING_RULES:
        if rule.applies(left, right):
            return rule
    return None


def whitespace_needed(left: Token, right: Token) -> bool:
    rule = matching_rule(left, right)
    if rule is None:
        return False
    return rule.space


############################################################################
# Line tokens and logical lines
############################################################################


class LineToken:
    token_and_span: TokenAndSpan
    x_pos: int

    def __init__(self, token_and_span: TokenAndSpan):
        self.token_and_span = token_and_span
        self.x_pos = 0

    @property
    def tok(self) -> Token:
        return self.token_and_span.tok

    def whitespace_needed_after(self, next: "LineToken") -> bool:
        return whitespace_needed(self.tok, next.tok)

    def text(self) -> str:
        return to_str(self.tok)

    def length(self) -> int:
        return len(self.text())

    def starts_logical_line(self) -> bool:
        return self.tok.kind == TokenKind.RBRACE

    def preindentation(self) -> int:
        """The change in indent steps to apply before a line starting with
        this token is laid out."""
        if self.tok.kind == TokenKind.RBRACE:
            return -1
        return 0

    def __repr__(self) -> str:
        return f"<LineToken {self.tok!r} @{self.x_pos}>"


class LogicalLine:
    tokens: list[LineToken]

    def __init__(self):
        self.tokens = []

    def __len__(self) -> int:
        return len(self.tokens)

    def append(self, token: LineToken):
        self.tokens.append(token)

    def layout(self, x_pos: int):
        """Assign every token its column, starting at x_pos."""
        if len(self.tokens) == 0:
            return

        for i, token in enumerate(self.tokens):
            token.x_pos = x_pos
            x_pos += token.length()

            if i < len(self.tokens) - 1 and token.whitespace_needed_after(self.tokens[i + 1]):
                x_pos += 1

    def whitespace_after(self, index: int) -> int:
        """The number of columns between the end of the token at index and the
        start of the next one. Only meaningful after layout()."""
        if len(self.tokens) <= 1 or index >= len(self.tokens) - 1:
            return 0

        token = self.tokens[index]
        return self.tokens[index + 1].x_pos - (token.x_pos + token.length())

    def postindentation(self) -> int:
        """The change in indent steps to apply to the lines after this one."""
        if len(self.tokens) == 0:
            return 0
        if self.tokens[-1].tok.kind == TokenKind.LBRACE:
            return 1
        return 0

    def render(self, x_pos: int) -> str:
        """Lay the line out at x_pos and return its text, without the line
        terminator."""
        self.layout(x_pos)

        parts = [" " * max(x_pos, 0)]
        for i, token in enumerate(self.tokens):
            parts.append(token.text())
            parts.append(" " * self.whitespace_after(i))
        return "".join(parts)

    def __repr__(self) -> str:
        return f"<LogicalLine {' '.join(token.text() for token in self.tokens)!r}>"
