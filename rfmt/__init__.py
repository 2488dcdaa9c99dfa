"""A token-level pretty printer for curly-brace languages.

Feed it source text and it regroups the tokens into lines, decides the
spacing between neighbouring tokens, and indents blocks:

    text, errors = rfmt.format_source("fn main(){match x{a=>b,c=>d}}")

`errors` lists any constructs left open when the input ran out. The output
still contains every line that was finished before that point.
"""
from .config import FormatOptions
from .formatter import (
    Formatter,
    ListTokenSource,
    NestingError,
    Production,
    TokenSource,
    format_source,
    format_tokens,
)
from .layout import SPACING_RULES, LineToken, LogicalLine, SpacingRule, whitespace_needed
from .lexer import LexError, TokenReader, tokenize
from .tokens import BinOp, FormatError, Token, TokenAndSpan, TokenKind, is_keyword, to_str
