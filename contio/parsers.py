"""
Parse formatted container text back into the Value Model.

The parser inverts `contio.formatters`: it recognizes the configured bracket
pairs and separators literally and unescapes string scalars exactly.

Leniency rules:
    - Whitespace around tokens is ignored; separators match by their non-whitespace
      core, so "[1,2]" and "[1 , 2]" parse like "[1, 2]".
    - Bare (unquoted) scalars run up to the next value separator, exact key-value
      separator or closing delimiter, and keep their text verbatim.
    - A separator directly followed by a closing delimiter raises TrailingSeparator
      unless allow_trailing_separator=True.
    - When two kinds share an opening delimiter, a mapping wins for "{}" and for a
      body whose first element is followed by the key-value separator; otherwise the
      first of sequence, tuple, set sharing that opener is used.

All parse errors derive from ParseError (a ValueError); try_parse() returns them
as values instead of raising.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import re
from dataclasses import dataclass
from typing import Any

# Third-party ----------------------------------------------------------------------------------------------------------
from frozendict import frozendict

# Local ----------------------------------------------------------------------------------------------------------------
from .delimiters import DelimiterConfig, ifconfig
from .errors import (
    MalformedEscape,
    NestingTooDeep,
    ParseError,
    TrailingSeparator,
    TypeMismatch,
    UnexpectedToken,
    UnterminatedContainer,
    UnterminatedString,
)
from .escape import ESCAPE_CHAR, unescape
from .utils import fmt_type
from .values import (
    CONTAINER_KINDS,
    Kind,
    MappingValue,
    ScalarValue,
    SetValue,
    Value,
    is_value,
    make_value,
)

__all__ = [
    "ParseError",
    "MalformedEscape",
    "UnterminatedString",
    "UnterminatedContainer",
    "UnexpectedToken",
    "TrailingSeparator",
    "TypeMismatch",
    "NestingTooDeep",
    "MAX_DEPTH",
    "ParseResult",
    "parse",
    "try_parse",
    "loads",
    "to_python",
]

# Deepest container nesting accepted by parse(), well inside the interpreter recursion limit
MAX_DEPTH = 200

# Non-mapping kinds sharing an opener are resolved in this order
_KIND_PRIORITY = (Kind.SEQUENCE, Kind.TUPLE, Kind.SET)

_TRUE_WORDS = ("true", "True")
_FALSE_WORDS = ("false", "False")
_NONE_WORDS = ("None", "null")

# Plain decimal literals only: no underscores, no inf/nan words
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?", re.ASCII)


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of try_parse(): exactly one of value and error is set.

    Examples:
        >>> try_parse("[1, 2]").ok
        True
        >>> result = try_parse("[1, 2")
        >>> type(result.error).__name__, result.error.position
        ('UnterminatedContainer', 5)
    """
    value: Value | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Value:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


# Methods --------------------------------------------------------------------------------------------------------------

def parse(text: str,
          config: DelimiterConfig | None = None,
          *,
          expect: Kind | str | None = None,
          allow_trailing_separator: bool = False,
          max_depth: int = MAX_DEPTH,
          ) -> Value:
    """
    Parse formatted text into a Value tree.

    Args:
        text: Text produced by fmt_any()/fmt_value() or written by hand in the same layout.
        config: Delimiters and separators. Defaults to DEFAULT_DELIMITERS.
        expect: Container kind the caller expects at the top level. If the parsed kind
            differs but both kinds share the same delimiters, the value is reinterpreted
            as the expected kind; otherwise TypeMismatch is raised.
        allow_trailing_separator: Accept "[1, 2, ]" instead of raising TrailingSeparator.
        max_depth: Deepest container nesting accepted.

    Returns:
        The parsed Value.

    Raises:
        MalformedEscape: Invalid backslash sequence inside a string.
        UnterminatedString: String missing its closing delimiter.
        UnterminatedContainer: Container missing its closer, or closed by a different one.
        UnexpectedToken: Anything else out of place, including trailing input.
        TrailingSeparator: Separator followed by a closer, in strict mode.
        TypeMismatch: Top-level kind does not match expect.
        NestingTooDeep: Containers nested deeper than max_depth, or than the interpreter
            recursion limit allows.
        TypeError: If text is not a str or config is not a DelimiterConfig.
        ValueError: If config separators consist of whitespace only, or max_depth is negative.

    Notes:
        parse(fmt_value(v)) == v holds for values whose bare scalars contain no separators
        or closing delimiters. Kinds sharing delimiters read back as the first candidate
        unless expect names the top-level kind. In particular, when set and mapping share their
        delimiters, as in the default layout, an empty set is written as "{}" and reads back
        as an empty mapping. At the top level expect=Kind.SET recovers it; nested empty sets
        need set brackets used by no other kind, e.g. merge(set_brackets=("<", ">")).

    Examples:
        >>> parse("[1, 'a']")
        SequenceValue(items=(ScalarValue(text='1', is_string=False), ScalarValue(text='a', is_string=True)))

        >>> parse("{}", expect=Kind.SET)
        SetValue(items=())
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {fmt_type(text)}")
    config = ifconfig(config)
    expect = None if expect is None else Kind(expect)
    if not isinstance(max_depth, int) or isinstance(max_depth, bool):
        raise TypeError(f"max_depth must be int, got {fmt_type(max_depth)}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    parser = _Parser(text, config, allow_trailing_separator=allow_trailing_separator, max_depth=max_depth)
    try:
        value = parser.parse()
    except RecursionError:
        raise NestingTooDeep("nesting exceeds the interpreter recursion limit", position=parser.pos) from None

    if expect is not None and value.kind is not expect:
        value = _reinterpret(value, expect, config)
    return value


def try_parse(text: str,
              config: DelimiterConfig | None = None,
              *,
              expect: Kind | str | None = None,
              allow_trailing_separator: bool = False,
              max_depth: int = MAX_DEPTH,
              ) -> ParseResult:
    """
    Parse like parse(), returning parse errors as values.

    Argument errors (TypeError, ValueError for a bad config) still raise, they are
    caller bugs rather than data conditions.
    """
    try:
        value = parse(text, config, expect=expect, allow_trailing_separator=allow_trailing_separator,
                  max_depth=max_depth)
    except ParseError as e:
        return ParseResult(error=e)
    return ParseResult(value=value)


def loads(text: str,
          config: DelimiterConfig | None = None,
          *,
          expect: Kind | str | None = None,
          allow_trailing_separator: bool = False,
          max_depth: int = MAX_DEPTH,
          ) -> Any:
    """
    Parse text and convert the result to native Python objects.

    Examples:
        >>> loads("{'a': [1, 2.5, true, None]}")
        {'a': [1, 2.5, True, None]}
    """
    value = parse(text, config, expect=expect, allow_trailing_separator=allow_trailing_separator,
                  max_depth=max_depth)
    return to_python(value)


def to_python(value: Value) -> Any:
    """
    Convert a Value tree to native Python objects.

    Containers map to list, set, dict and tuple. Where a hashable object is required
    (set members, mapping keys) lists become tuples, sets become frozensets and
    mappings become frozendicts.

    String scalars become str. Bare scalars become bool ('true'/'True', 'false'/'False'),
    None ('None', 'null'), int, float, or stay as their raw text. Only plain decimal
    literals convert to numbers: '1_000', 'nan' and 'Infinity' stay text.

    Raises:
        TypeError: If value is not a Value.
    """
    if not is_value(value):
        raise TypeError(f"value must be a Value, got {fmt_type(value)}")
    return _to_python(value, hashable=False)


# Private Classes ------------------------------------------------------------------------------------------------------

class _Parser:
    """Recursive descent over a single input text."""

    def __init__(self, text: str, config: DelimiterConfig, allow_trailing_separator: bool, max_depth: int):
        self.text = text
        self.pos = 0
        self.depth = 0
        self.max_depth = max_depth
        self.n = len(text)
        self.delim = config.string_delimiter
        self.allow_trailing_separator = allow_trailing_separator
        self.config = config

        self.value_sep = _sep_core(config.value_separator, "value_separator")
        self.kv_sep = _sep_core(config.key_value_separator, "key_value_separator")
        self.kv_sep_exact = config.key_value_separator
        if self.value_sep == self.kv_sep:
            raise ValueError("value_separator and key_value_separator must differ to be parsed")

        # opener -> kinds sharing it, longest openers matched first
        openers: dict[str, list[Kind]] = {}
        for kind in CONTAINER_KINDS:
            openers.setdefault(config.delimiters(kind)[0], []).append(kind)
        self.openers = sorted(openers.items(), key=lambda item: -len(item[0]))
        self.closers = sorted({config.delimiters(kind)[1] for kind in CONTAINER_KINDS}, key=len, reverse=True)

    # Entry ----------------------------------------

    def parse(self) -> Value:
        value = self.parse_value()
        self.skip_ws()
        if self.pos < self.n:
            raise UnexpectedToken(f"unexpected trailing input {self.text[self.pos:self.pos + 10]!r}",
                                  position=self.pos)
        return value

    # Helpers --------------------------------------

    def skip_ws(self) -> None:
        while self.pos < self.n and self.text[self.pos].isspace():
            self.pos += 1

    def at(self, token: str) -> bool:
        return self.text.startswith(token, self.pos)

    def match(self, token: str) -> bool:
        """Consume token after optional whitespace."""
        self.skip_ws()
        if self.at(token):
            self.pos += len(token)
            return True
        return False

    def closer_here(self) -> str | None:
        for closer in self.closers:
            if self.at(closer):
                return closer
        return None

    # Grammar --------------------------------------

    def parse_value(self) -> Value:
        self.skip_ws()
        if self.pos >= self.n:
            raise UnexpectedToken("expected a value, got end of input", position=self.pos)

        if self.at(self.delim):
            return self.parse_string()

        for opener, kinds in self.openers:
            if self.at(opener):
                if self.depth >= self.max_depth:
                    raise NestingTooDeep(f"containers nested deeper than {self.max_depth} levels", position=self.pos)
                self.depth += 1
                try:
                    return self.parse_container(opener, kinds)
                finally:
                    self.depth -= 1

        return self.parse_bare()

    def parse_string(self) -> ScalarValue:
        start = self.pos
        i = start + 1
        while i < self.n:
            ch = self.text[i]
            if ch == ESCAPE_CHAR:
                if i + 1 >= self.n:
                    break
                if self.text[i + 1] not in (ESCAPE_CHAR, self.delim):
                    raise MalformedEscape(f"invalid escape sequence {self.text[i:i + 2]!r}", position=i)
                i += 2
                continue
            if ch == self.delim:
                self.pos = i + 1
                return ScalarValue(unescape(self.text[start + 1:i], self.delim), is_string=True)
            i += 1
        raise UnterminatedString(f"missing closing {self.delim!r} for string", position=start)

    def parse_bare(self) -> ScalarValue:
        start = self.pos
        while self.pos < self.n:
            if self.at(self.value_sep) or self.at(self.kv_sep_exact) or self.closer_here() is not None:
                break
            self.pos += 1

        text = self.text[start:self.pos].rstrip()
        if not text:
            raise UnexpectedToken(f"expected a value, found {self.text[start:start + 10]!r}", position=start)
        return ScalarValue(text)

    def parse_container(self, opener: str, kinds: list[Kind]) -> Value:
        start = self.pos
        self.pos += len(opener)

        allows_mapping = Kind.MAPPING in kinds
        sequence_kinds = [k for k in _KIND_PRIORITY if k in kinds]
        mapping_mode: bool | None = None if allows_mapping and sequence_kinds else allows_mapping

        items: list = []

        self.skip_ws()
        if self.closer_here() is not None:
            return self.close_container(opener, start, kinds, mapping_mode, items)

        while True:
            first = self.parse_item(opener, start)

            if mapping_mode is None:
                mapping_mode = self.match(self.kv_sep)
                if mapping_mode:
                    items.append((first, self.parse_item(opener, start)))
                else:
                    items.append(first)
            elif mapping_mode:
                if not self.match(self.kv_sep):
                    self.fail_unexpected(f"expected {self.config.key_value_separator!r} after mapping key")
                items.append((first, self.parse_item(opener, start)))
            else:
                self.skip_ws()
                if self.at(self.kv_sep):
                    self.fail_unexpected(f"unexpected {self.config.key_value_separator!r} outside a mapping")
                items.append(first)

            self.skip_ws()
            if self.pos >= self.n:
                self.fail_unterminated(opener, start)

            if self.match(self.value_sep):
                self.skip_ws()
                if self.closer_here() is not None:
                    if not self.allow_trailing_separator:
                        raise TrailingSeparator(f"separator before closing delimiter of {opener!r}",
                                                position=self.pos)
                    return self.close_container(opener, start, kinds, mapping_mode, items)
                continue

            if self.closer_here() is not None:
                return self.close_container(opener, start, kinds, mapping_mode, items)

            self.fail_unexpected(f"expected {self.config.value_separator!r} or closing delimiter")

    def close_container(self,
                        opener: str,
                        start: int,
                        kinds: list[Kind],
                        mapping_mode: bool | None,
                        items: list,
                        ) -> Value:
        found = self.closer_here()

        if mapping_mode is None:
            # Undecided: only possible for an empty body, a mapping wins
            candidates = [Kind.MAPPING] + [k for k in _KIND_PRIORITY if k in kinds]
        elif mapping_mode:
            candidates = [Kind.MAPPING]
        else:
            candidates = [k for k in _KIND_PRIORITY if k in kinds]

        for kind in candidates:
            closer = self.config.delimiters(kind)[1]
            if found == closer:
                self.pos += len(closer)
                return make_value(kind, items)

        expected = self.config.delimiters(candidates[0])[1]
        raise UnterminatedContainer(
            f"expected {expected!r} to close {opener!r} opened at position {start}, found {found!r}",
            position=self.pos)

    def parse_item(self, opener: str, start: int) -> Value:
        """Parse a container element; end of input here means the container was never closed."""
        self.skip_ws()
        if self.pos >= self.n:
            self.fail_unterminated(opener, start)
        return self.parse_value()

    def fail_unterminated(self, opener: str, start: int):
        raise UnterminatedContainer(f"missing closing delimiter for {opener!r} opened at position {start}",
                                    position=self.pos)

    def fail_unexpected(self, message: str):
        found = self.text[self.pos:self.pos + 10]
        raise UnexpectedToken(f"{message}, found {found!r}", position=self.pos)


# Private Methods ------------------------------------------------------------------------------------------------------

def _sep_core(sep: str, name: str) -> str:
    core = sep.strip()
    if not core:
        raise ValueError(f"{name} {sep!r} consists of whitespace only and cannot be parsed")
    return core


def _reinterpret(value: Value, expect: Kind, config: DelimiterConfig) -> Value:
    """Re-tag value as the expected kind when both kinds print identically."""
    if value.kind is not Kind.SCALAR and expect is not Kind.SCALAR:
        if config.delimiters(value.kind) == config.delimiters(expect):
            if len(value) == 0:
                return make_value(expect)
            if not isinstance(value, MappingValue) and expect is not Kind.MAPPING:
                return make_value(expect, value.items)
    raise TypeMismatch(f"expected {expect.value}, got {value.kind.value}")


def _to_python(value: Value, hashable: bool) -> Any:
    if isinstance(value, ScalarValue):
        return value.text if value.is_string else _scalar_to_python(value.text)

    if isinstance(value, MappingValue):
        pairs = [(_to_python(k, hashable=True), _to_python(v, hashable=hashable)) for k, v in value.pairs]
        return frozendict(pairs) if hashable else dict(pairs)

    if isinstance(value, SetValue):
        members = [_to_python(item, hashable=True) for item in value.items]
        return frozenset(members) if hashable else set(members)

    items = [_to_python(item, hashable=hashable) for item in value.items]
    if value.kind is Kind.TUPLE or hashable:
        return tuple(items)
    return items


def _scalar_to_python(text: str) -> Any:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    if text in _NONE_WORDS:
        return None
    if _INT_RE.fullmatch(text):
        return int(text)
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    return text
