"""
Delimiter configuration for container formatting and parsing.

A DelimiterConfig bundles the container open/close strings, the value and
key-value separators, and the string delimiter character. It is an immutable
value object supplied per call: there is no process-wide configuration state,
and DEFAULT_DELIMITERS is never mutated.

Default layout (Python-like):
    sequence  [1, 2]
    set       {1, 2}
    mapping   {'a': 1, 'b': 2}
    tuple     (1, 'foo', true)
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, fields
from typing import Final

# Local ----------------------------------------------------------------------------------------------------------------
from .sentinels import UNSET, UnsetType, ifnotunset
from .utils import fmt_type
from .values import Kind

Brackets = tuple[str, str]

_BRACKET_FIELDS = ("sequence_brackets", "set_brackets", "mapping_brackets", "tuple_brackets")


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class DelimiterConfig:
    """
    Delimiters and separators controlling container rendering.

    Delimiters are uniform across the whole value tree; nested containers
    use the same configuration as the top level.

    Attributes:
        sequence_brackets: Open/close pair for ordered containers (list, deque, ...).
        set_brackets: Open/close pair for unordered containers (set, frozenset, ...).
        mapping_brackets: Open/close pair for associative containers (dict, ...).
        tuple_brackets: Open/close pair for fixed heterogeneous aggregates (tuple, dataclasses).
        string_delimiter: Single character wrapped around string scalars. Occurrences
            inside a string are escaped with a backslash.
        value_separator: Emitted between elements of a container.
        key_value_separator: Emitted between a mapping key and its value.

    Examples:
        >>> DelimiterConfig().merge(string_delimiter='"').string_delimiter
        '"'
        >>> DelimiterConfig.json().delimiters(Kind.TUPLE)
        ('[', ']')
    """
    sequence_brackets: Brackets = ("[", "]")
    set_brackets: Brackets = ("{", "}")
    mapping_brackets: Brackets = ("{", "}")
    tuple_brackets: Brackets = ("(", ")")
    string_delimiter: str = "'"
    value_separator: str = ", "
    key_value_separator: str = ": "

    def __post_init__(self):
        for name in _BRACKET_FIELDS:
            pair = getattr(self, name)
            if not isinstance(pair, (tuple, list)) or len(pair) != 2:
                raise TypeError(f"{name} must be an (open, close) pair of str, got {fmt_type(pair)}")
            if not all(isinstance(s, str) for s in pair):
                raise TypeError(f"{name} must hold str, got {fmt_type(pair[0])} and {fmt_type(pair[1])}")
            if not all(pair):
                raise ValueError(f"{name} must be non-empty, got {tuple(pair)!r}")
            object.__setattr__(self, name, (pair[0], pair[1]))

        if not isinstance(self.string_delimiter, str):
            raise TypeError(f"string_delimiter must be str, got {fmt_type(self.string_delimiter)}")
        if len(self.string_delimiter) != 1:
            raise ValueError(f"string_delimiter must be a single character, got {self.string_delimiter!r}")
        if self.string_delimiter == "\\":
            raise ValueError("string_delimiter cannot be the escape character '\\'")

        for name in ("value_separator", "key_value_separator"):
            sep = getattr(self, name)
            if not isinstance(sep, str):
                raise TypeError(f"{name} must be str, got {fmt_type(sep)}")
            if not sep:
                raise ValueError(f"{name} must be non-empty")

        # String scalars are located by the delimiter alone
        for name in (*_BRACKET_FIELDS, "value_separator", "key_value_separator"):
            if self.string_delimiter in "".join(getattr(self, name)):
                raise ValueError(f"string_delimiter {self.string_delimiter!r} must not appear in {name}, "
                                 f"got {getattr(self, name)!r}")

    # Class Methods ------------------------------------

    @classmethod
    def python(cls) -> "DelimiterConfig":
        """Python-like layout, the default."""
        return cls()

    @classmethod
    def json(cls) -> "DelimiterConfig":
        """
        JSON-like layout: double-quoted strings, sets and tuples rendered as arrays.

        Output is valid JSON only for values whose scalars are JSON literals and whose
        strings need no escaping beyond the quote and backslash.
        """
        return cls(
            set_brackets=("[", "]"),
            tuple_brackets=("[", "]"),
            string_delimiter='"',
        )

    @classmethod
    def brackets(cls) -> "DelimiterConfig":
        """Every homogeneous container, sets included, rendered in square brackets."""
        return cls(set_brackets=("[", "]"))

    # Methods and Properties ---------------------

    def delimiters(self, kind: Kind | str) -> Brackets:
        """
        Return the (open, close) pair for a container kind.

        Raises:
            ValueError: If kind is a scalar or not a Kind at all.
        """
        kind = Kind(kind)
        if kind is Kind.SCALAR:
            raise ValueError("scalars have no container delimiters")
        return getattr(self, f"{kind.value}_brackets")

    def merge(self,
              sequence_brackets: Brackets | UnsetType = UNSET,
              set_brackets: Brackets | UnsetType = UNSET,
              mapping_brackets: Brackets | UnsetType = UNSET,
              tuple_brackets: Brackets | UnsetType = UNSET,
              string_delimiter: str | UnsetType = UNSET,
              value_separator: str | UnsetType = UNSET,
              key_value_separator: str | UnsetType = UNSET,
              ) -> "DelimiterConfig":
        """
        Create a new DelimiterConfig with merged configuration options.

        Parameters not provided (UNSET) are inherited from the current instance.

        Returns:
            New DelimiterConfig instance, validated like a freshly constructed one.
        """
        overrides = dict(
            sequence_brackets=sequence_brackets,
            set_brackets=set_brackets,
            mapping_brackets=mapping_brackets,
            tuple_brackets=tuple_brackets,
            string_delimiter=string_delimiter,
            value_separator=value_separator,
            key_value_separator=key_value_separator,
        )
        kwargs = {f.name: ifnotunset(overrides[f.name], default=getattr(self, f.name)) for f in fields(self)}
        return DelimiterConfig(**kwargs)


DEFAULT_DELIMITERS: Final[DelimiterConfig] = DelimiterConfig()


# Methods --------------------------------------------------------------------------------------------------------------

def ifconfig(config: DelimiterConfig | None) -> DelimiterConfig:
    """
    Return config, or DEFAULT_DELIMITERS when config is None.

    Raises:
        TypeError: If config is neither None nor a DelimiterConfig.
    """
    if config is None:
        return DEFAULT_DELIMITERS
    if not isinstance(config, DelimiterConfig):
        raise TypeError(f"config must be a DelimiterConfig, got {fmt_type(config)}")
    return config
