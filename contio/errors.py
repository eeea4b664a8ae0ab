"""
Parse error taxonomy.

All parse errors derive from ParseError, itself a ValueError, and carry the
offending position in the input text (None when unknown).
"""


class ParseError(ValueError):
    """Base class for errors raised while parsing formatted container text."""

    def __init__(self, message: str, position: int | None = None):
        self.message = message
        self.position = position
        super().__init__(message if position is None else f"{message} at position {position}")


class MalformedEscape(ParseError):
    """Backslash followed by anything but a backslash or the string delimiter, or a dangling backslash."""


class UnterminatedString(ParseError):
    """String scalar missing its closing string delimiter."""


class UnterminatedContainer(ParseError):
    """Container missing its closing delimiter, or closed by the wrong one."""


class UnexpectedToken(ParseError):
    """Input that fits nowhere in the grammar at the current position."""


class TrailingSeparator(UnexpectedToken):
    """Value separator directly followed by a closing delimiter."""


class TypeMismatch(ParseError):
    """Parsed value does not have the container kind the caller expected."""


class NestingTooDeep(ParseError):
    """Containers nested deeper than the parser's max_depth."""
