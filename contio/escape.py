"""
String escaping for delimited string scalars.

Only two characters are escaped: the backslash and the configured string
delimiter. Control characters such as newlines or NUL pass through verbatim,
the output is meant as a human-readable dump, not a strict serialization.
"""

# Local ----------------------------------------------------------------------------------------------------------------
from .errors import MalformedEscape
from .utils import fmt_type

ESCAPE_CHAR = "\\"


# Methods --------------------------------------------------------------------------------------------------------------

def escape(text: str, delimiter: str = "'") -> str:
    """
    Make text safe to embed between two copies of the string delimiter.

    Backslashes are escaped first, then the delimiter. The reverse order would
    double the backslashes introduced for the delimiter.

    Args:
        text: Any text.
        delimiter: The single-character string delimiter.

    Returns:
        Escaped text.

    Raises:
        TypeError: If text or delimiter is not a str.
        ValueError: If delimiter is not a single character or is the backslash.

    Examples:
        >>> escape("it's")
        "it\\\\'s"
        >>> escape("C:\\\\temp")
        'C:\\\\\\\\temp'
    """
    _check_delimiter(delimiter)
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {fmt_type(text)}")

    text = text.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
    return text.replace(delimiter, ESCAPE_CHAR + delimiter)


def unescape(text: str, delimiter: str = "'") -> str:
    """
    Invert escape(), scanning left to right.

    `\\\\` becomes `\\` and `\\<delimiter>` becomes `<delimiter>`.

    Raises:
        MalformedEscape: If a backslash is followed by any other character or ends the text.
        TypeError: If text or delimiter is not a str.
        ValueError: If delimiter is not a single character or is the backslash.

    Examples:
        >>> unescape("it\\\\'s")
        "it's"
    """
    _check_delimiter(delimiter)
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {fmt_type(text)}")

    if ESCAPE_CHAR not in text:
        return text

    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != ESCAPE_CHAR:
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            raise MalformedEscape("dangling escape character", position=i)
        nxt = text[i + 1]
        if nxt not in (ESCAPE_CHAR, delimiter):
            raise MalformedEscape(f"invalid escape sequence {ESCAPE_CHAR + nxt!r}", position=i)
        out.append(nxt)
        i += 2
    return "".join(out)


# Private Methods ------------------------------------------------------------------------------------------------------

def _check_delimiter(delimiter: str) -> None:
    if not isinstance(delimiter, str):
        raise TypeError(f"delimiter must be str, got {fmt_type(delimiter)}")
    if len(delimiter) != 1 or delimiter == ESCAPE_CHAR:
        raise ValueError(f"delimiter must be a single character other than backslash, got {delimiter!r}")
