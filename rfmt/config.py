import dataclasses


@dataclasses.dataclass(frozen=True)
class FormatOptions:
    # Spaces emitted per indentation step.
    indent_width: int = 4

    # How many productions (match blocks, brace blocks, parenthesized groups)
    # may be open at once before the formatter gives up.
    max_nesting: int = 128

    def __post_init__(self):
        if self.indent_width < 0:
            raise ValueError(f"indent_width must not be negative, got {self.indent_width}")
        if self.max_nesting < 1:
            raise ValueError(f"max_nesting must be at least 1, got {self.max_nesting}")
