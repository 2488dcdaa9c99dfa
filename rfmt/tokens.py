"""Token kinds and their canonical spelling.

Tokens are deliberately dumb: a kind plus, for the kinds that need one, a
value. Identifiers (and keywords, which are just identifiers with a reserved
name) carry their name, literals carry their source text, and the binary and
compound-assignment operators carry the operator itself.
"""
import dataclasses
import enum


class TokenKind(enum.Enum):
    IDENT = "ident"
    LIFETIME = "lifetime"
    LITERAL = "literal"

    EQ = "="
    LT = "<"
    LE = "<="
    EQEQ = "=="
    NE = "!="
    GE = ">="
    GT = ">"
    ANDAND = "&&"
    OROR = "||"
    NOT = "!"
    TILDE = "~"
    BINOP = "binop"
    BINOPEQ = "binopeq"

    AT = "@"
    DOT = "."
    DOTDOT = ".."
    DOTDOTDOT = "..."
    COMMA = ","
    SEMI = ";"
    COLON = ":"
    MOD_SEP = "::"
    RARROW = "->"
    FAT_ARROW = "=>"
    POUND = "#"
    DOLLAR = "$"
    QUESTION = "?"

    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"


class BinOp(enum.Enum):
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    CARET = "^"
    AND = "&"
    OR = "|"
    SHL = "<<"
    SHR = ">>"


# Kinds that render the same way every time.
FIXED_KINDS = frozenset(
    kind
    for kind in TokenKind
    if kind not in (TokenKind.IDENT, TokenKind.LIFETIME, TokenKind.LITERAL)
    and kind not in (TokenKind.BINOP, TokenKind.BINOPEQ)
)


@dataclasses.dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: "str | BinOp | None" = None

    def __post_init__(self):
        match self.kind:
            case TokenKind.IDENT | TokenKind.LIFETIME | TokenKind.LITERAL:
                if not isinstance(self.value, str):
                    raise ValueError(f"{self.kind.name} tokens need a string value")
            case TokenKind.BINOP | TokenKind.BINOPEQ:
                if not isinstance(self.value, BinOp):
                    raise ValueError(f"{self.kind.name} tokens need a BinOp value")
            case _:
                if self.value is not None:
                    raise ValueError(f"{self.kind.name} tokens do not carry a value")

    @classmethod
    def ident(cls, name: str) -> "Token":
        return cls(TokenKind.IDENT, name)

    @classmethod
    def literal(cls, text: str) -> "Token":
        return cls(TokenKind.LITERAL, text)

    @classmethod
    def binop(cls, op: BinOp) -> "Token":
        return cls(TokenKind.BINOP, op)

    @classmethod
    def binopeq(cls, op: BinOp) -> "Token":
        return cls(TokenKind.BINOPEQ, op)

    def __repr__(self) -> str:
        if self.value is None:
            return self.kind.name
        return f"{self.kind.name}({to_str(self)!r})"


@dataclasses.dataclass(frozen=True, slots=True)
class TokenAndSpan:
    tok: Token
    start: int  # inclusive
    end: int  # exclusive


def to_str(token: Token) -> str:
    """The canonical surface spelling of a token."""
    match token.kind:
        case TokenKind.IDENT | TokenKind.LIFETIME | TokenKind.LITERAL:
            assert isinstance(token.value, str)
            return token.value
        case TokenKind.BINOP:
            assert isinstance(token.value, BinOp)
            return token.value.value
        case TokenKind.BINOPEQ:
            assert isinstance(token.value, BinOp)
            return token.value.value + "="
        case _:
            return token.kind.value


def is_keyword(keyword: str, token: Token) -> bool:
    """True if the token is the identifier spelling the given reserved word."""
    return token.kind == TokenKind.IDENT and token.value == keyword


class FormatError(Exception):
    """Base class for everything that stops a formatting run outright."""

    pass
