import argparse
import logging
import sys

from .config import FormatOptions
from .formatter import Formatter
from .lexer import TokenReader
from .tokens import FormatError


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="rfmt", description="Reformat curly-brace source code read from a file or stdin"
    )
    parser.add_argument(
        "source_path",
        nargs="?",
        default=None,
        help="Path to the file to format. The default is to read standard input.",
    )
    parser.add_argument(
        "--indent-width",
        type=int,
        default=FormatOptions.indent_width,
        help="The number of spaces per indentation step.",
    )
    parser.add_argument(
        "--max-nesting",
        type=int,
        default=FormatOptions.max_nesting,
        help="The deepest nesting of blocks and parentheses to accept before giving up.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with a non-zero status if the input ends in the middle of a block. "
        "Normally the partial output is written and the run still succeeds.",
    )
    parser.add_argument(
        "--dump-tokens",
        action="store_true",
        help="Print the token stream instead of formatting it.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every flushed line and production to stderr.",
    )

    parsed = parser.parse_args(args[1:])

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        options = FormatOptions(
            indent_width=parsed.indent_width,
            max_nesting=parsed.max_nesting,
        )
    except ValueError as e:
        parser.error(str(e))

    if parsed.source_path is None:
        source = sys.stdin.read()
        name = "<stdin>"
    else:
        with open(parsed.source_path, "r", encoding="utf-8") as f:
            source = f.read()
        name = parsed.source_path

    try:
        lexer = TokenReader(source)
        if parsed.dump_tokens:
            for line in lexer.dump():
                print(line)
            return 0

        errors = Formatter(lexer, sys.stdout, options).format()
    except FormatError as e:
        print(f"{name}:{e}", file=sys.stderr)
        return 1

    for error in errors:
        print(f"{name}:{error}", file=sys.stderr)

    if errors and parsed.strict:
        return 1
    return 0


def run():
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()
