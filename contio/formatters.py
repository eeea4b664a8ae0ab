"""
Container formatting in a Python-like, parseable text form.

    - ordered homogeneous like list               [1, 2]
    - unordered homogeneous like set              {1, 2}
    - associative like dict                       {1: 'foo', 2: 'bar'}
    - heterogeneous like tuple                    (1, 'foo', true)

fmt_value() renders a Value tree, fmt_any() adapts an arbitrary object first.
Both are pure functions of their input and the DelimiterConfig; formatting a
Value cannot fail.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import io
from typing import Any, Callable, Protocol

# Local ----------------------------------------------------------------------------------------------------------------
from .adapters import Adapters, adapt
from .delimiters import DelimiterConfig, ifconfig
from .escape import escape
from .utils import fmt_type
from .values import MappingValue, ScalarValue, Value, is_value


# Classes --------------------------------------------------------------------------------------------------------------

class SupportsWrite(Protocol):
    """Text sink accepted by the write_* functions."""

    def write(self, s: str, /) -> Any: ...


# Methods --------------------------------------------------------------------------------------------------------------

def fmt_any(obj: Any, config: DelimiterConfig | None = None, *, adapters: Adapters | None = None) -> str:
    """
    Format any object as delimited container text.

    Adapts obj to the Value Model and renders it with the given delimiters.

    Args:
        obj: Any Python object: containers of any nesting, dataclasses, scalars.
        config: Delimiters and separators. Defaults to DEFAULT_DELIMITERS.
        adapters: Custom adapter registry. Defaults to the module registry.

    Returns:
        Formatted text.

    Examples:
        >>> fmt_any([1, 2, 3])
        '[1, 2, 3]'

        >>> fmt_any({"a": 1, "b": 2})
        "{'a': 1, 'b': 2}"

        >>> fmt_any((1, "foo", True))
        "(1, 'foo', true)"

        >>> fmt_any(["it's"])
        "['it\\\\'s']"

    Notes:
        - Set output follows the set's own iteration order, no sorting is applied
        - Non-string scalars are written verbatim; str(obj) must not contain separators
          or closing delimiters if the output is meant to be parsed back

    See Also:
        fmt_value: Format an already adapted Value tree.
        contio.parsers.parse: The inverse operation.
    """
    return fmt_value(adapt(obj, adapters=adapters), config)


def fmt_value(value: Value, config: DelimiterConfig | None = None) -> str:
    """
    Render a Value tree into text.

    Raises:
        TypeError: If value is not a Value or config is not a DelimiterConfig.

    Examples:
        >>> from contio.values import SequenceValue, ScalarValue
        >>> fmt_value(SequenceValue([ScalarValue("1"), ScalarValue.string("x")]))
        "[1, 'x']"
    """
    buf = io.StringIO()
    write_value(value, buf, config)
    return buf.getvalue()


def write_any(obj: Any,
              stream: SupportsWrite,
              config: DelimiterConfig | None = None,
              *,
              adapters: Adapters | None = None,
              ) -> None:
    """Adapt obj and write its formatted text into stream."""
    write_value(adapt(obj, adapters=adapters), stream, config)


def write_value(value: Value, stream: SupportsWrite, config: DelimiterConfig | None = None) -> None:
    """
    Write a Value tree into a text stream, piece by piece.

    Raises:
        TypeError: If value is not a Value, stream has no write() method,
            or config is not a DelimiterConfig.
    """
    config = ifconfig(config)
    if not is_value(value):
        raise TypeError(f"value must be a Value, got {fmt_type(value)}")
    write = getattr(stream, "write", None)
    if not callable(write):
        raise TypeError(f"stream must have a write() method, got {fmt_type(stream)}")

    _write(value, write, config)


# Private Methods ------------------------------------------------------------------------------------------------------

def _write(value: Value, write: Callable[[str], Any], config: DelimiterConfig) -> None:
    if isinstance(value, ScalarValue):
        _write_scalar(value, write, config)
        return

    open_, close = config.delimiters(value.kind)
    write(open_)

    emitted = False
    if isinstance(value, MappingValue):
        for key, item in value.pairs:
            if emitted:
                write(config.value_separator)
            emitted = True
            _write(key, write, config)
            write(config.key_value_separator)
            _write(item, write, config)
    else:
        for item in value.items:
            if emitted:
                write(config.value_separator)
            emitted = True
            _write(item, write, config)

    write(close)


def _write_scalar(value: ScalarValue, write: Callable[[str], Any], config: DelimiterConfig) -> None:
    if not value.is_string:
        write(value.text)
        return
    delim = config.string_delimiter
    write(delim)
    write(escape(value.text, delim))
    write(delim)
