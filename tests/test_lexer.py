import pytest

from rfmt.lexer import LexError, TokenReader, position, line_offsets, tokenize
from rfmt.tokens import BinOp, Token, TokenKind, is_keyword, to_str


def kinds(src: str) -> list[TokenKind]:
    return [token.tok.kind for token in tokenize(src)]


def texts(src: str) -> list[str]:
    return [to_str(token.tok) for token in tokenize(src)]


def test_identifiers_and_keywords():
    tokens = [token.tok for token in tokenize("match foo _bar")]
    assert tokens == [Token.ident("match"), Token.ident("foo"), Token.ident("_bar")]
    assert is_keyword("match", tokens[0])
    assert not is_keyword("match", tokens[1])


def test_punctuation_longest_match():
    assert kinds(":: : -> => == = != ! <= < >= > && || ... .. .") == [
        TokenKind.MOD_SEP,
        TokenKind.COLON,
        TokenKind.RARROW,
        TokenKind.FAT_ARROW,
        TokenKind.EQEQ,
        TokenKind.EQ,
        TokenKind.NE,
        TokenKind.NOT,
        TokenKind.LE,
        TokenKind.LT,
        TokenKind.GE,
        TokenKind.GT,
        TokenKind.ANDAND,
        TokenKind.OROR,
        TokenKind.DOTDOTDOT,
        TokenKind.DOTDOT,
        TokenKind.DOT,
    ]


def test_operators():
    tokens = [token.tok for token in tokenize("+ -= & &= << >>= |")]
    assert tokens == [
        Token.binop(BinOp.PLUS),
        Token.binopeq(BinOp.MINUS),
        Token.binop(BinOp.AND),
        Token.binopeq(BinOp.AND),
        Token.binop(BinOp.SHL),
        Token.binopeq(BinOp.SHR),
        Token.binop(BinOp.OR),
    ]
    assert texts("<<= ^") == ["<<=", "^"]


def test_no_whitespace_needed():
    assert texts("f(x,y);") == ["f", "(", "x", ",", "y", ")", ";"]
    assert texts("a::b{c}") == ["a", "::", "b", "{", "c", "}"]


def test_literals():
    src = r"""1 0x1F 1.5e3 10u8 "a \" b" b"bytes" 'c' '\n' b'x' r#"raw "quoted""# r"x" """
    tokens = list(tokenize(src))
    assert all(token.tok.kind == TokenKind.LITERAL for token in tokens)
    assert [to_str(token.tok) for token in tokens] == [
        "1",
        "0x1F",
        "1.5e3",
        "10u8",
        r'"a \" b"',
        'b"bytes"',
        "'c'",
        r"'\n'",
        "b'x'",
        'r#"raw "quoted""#',
        'r"x"',
    ]


def test_range_is_not_a_float():
    assert texts("1..2") == ["1", "..", "2"]
    assert texts("x.0") == ["x", ".", "0"]


def test_lifetimes():
    tokens = [token.tok for token in tokenize("&'a str 'b'")]
    assert tokens == [
        Token.binop(BinOp.AND),
        Token(TokenKind.LIFETIME, "'a"),
        Token.ident("str"),
        Token.literal("'b'"),
    ]


def test_comments_are_dropped():
    src = """
    // line comment
    a /* block /* nested */ still comment */ b
    """
    assert texts(src) == ["a", "b"]


def test_multiline_string():
    assert texts('"one\ntwo"') == ['"one\ntwo"']


def test_spans():
    tokens = list(tokenize("ab  ::\ncd"))
    assert [(token.start, token.end) for token in tokens] == [(0, 2), (4, 6), (7, 9)]


def test_unexpected_character():
    with pytest.raises(LexError) as info:
        list(tokenize("a\n  `b`"))
    assert info.value.line == 2
    assert info.value.column == 2
    assert str(info.value) == "2:2: Unexpected character '`'"


def test_unterminated_block_comment():
    with pytest.raises(LexError, match="1:2: Unterminated block comment"):
        list(tokenize("a /* b /* c */"))


def test_unterminated_raw_string():
    with pytest.raises(LexError, match="Unterminated raw string"):
        list(tokenize('r#"abc"'))


def test_position():
    lines = line_offsets("ab\ncd\n\nef")
    assert position(lines, 0) == (1, 0)
    assert position(lines, 1) == (1, 1)
    assert position(lines, 2) == (1, 2)
    assert position(lines, 3) == (2, 0)
    assert position(lines, 7) == (4, 0)
    assert position(lines, 8) == (4, 1)


def test_reader_peek_and_consume():
    reader = TokenReader("a ;")
    assert not reader.is_eof()
    assert reader.peek().tok == Token.ident("a")
    assert reader.peek().tok == Token.ident("a")
    assert reader.next_token().tok == Token.ident("a")
    assert reader.next_token().tok == Token(TokenKind.SEMI)
    assert reader.is_eof()
    with pytest.raises(IndexError):
        reader.peek()
    with pytest.raises(IndexError):
        reader.next_token()


def test_reader_empty():
    reader = TokenReader("  // nothing here\n")
    assert reader.is_eof()
    assert reader.tokens() == []
    assert reader.dump() == []


def test_reader_raises_on_construction():
    with pytest.raises(LexError):
        TokenReader("fn main() { ` }")


def test_dump():
    reader = TokenReader("fn main\n{")
    lines = reader.dump()
    assert len(lines) == 3
    assert "IDENT" in lines[0] and "'fn'" in lines[0]
    assert lines[1].split()[1] == "|"
    assert "LBRACE" in lines[2]
    assert reader.dump(start=1, end=2) == [lines[1].replace("   |", "   1")]


def test_token_value_validation():
    with pytest.raises(ValueError):
        Token(TokenKind.IDENT)
    with pytest.raises(ValueError):
        Token(TokenKind.BINOP, "+")
    with pytest.raises(ValueError):
        Token(TokenKind.SEMI, ";")
