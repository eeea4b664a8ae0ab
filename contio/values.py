"""
Contio Value Model

A small tagged union describing "a thing that can be printed": scalar leaves
and four container kinds. Values are immutable and hashable, built transiently
from a caller-owned container by `contio.adapters.adapt()` and discarded after
formatting, or produced by `contio.parsers.parse()`.

Kinds:
    - scalar   : leaf with a direct text representation, optionally flagged as string
    - sequence : ordered homogeneous container, like list          [1, 2]
    - set      : unordered homogeneous container, like set         {1, 2}
    - mapping  : associative container, like dict                  {1: 'foo', 2: 'bar'}
    - tuple    : fixed heterogeneous aggregate, like tuple         (1, 'foo', true)
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
from collections import Counter
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, ClassVar, Iterable, Iterator, TypeAlias

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class Kind(str, Enum):
    """Structural kind of a Value."""
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    SET = "set"
    MAPPING = "mapping"
    TUPLE = "tuple"


@dataclass(frozen=True)
class ScalarValue:
    """
    Leaf value with a direct text representation.

    Attributes:
        text: Raw text of the scalar, unescaped.
        is_string: Whether the scalar is text-like. String scalars are escaped and
            wrapped in the string delimiter on output, all others are written verbatim.
    """
    kind: ClassVar[Kind] = Kind.SCALAR

    text: str
    is_string: bool = False

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise TypeError(f"scalar text must be str, got {fmt_type(self.text)}")
        object.__setattr__(self, "is_string", bool(self.is_string))

    @classmethod
    def string(cls, text: str) -> "ScalarValue":
        """Create a string-like scalar."""
        return cls(text, is_string=True)


class _ItemsMixin:
    """Shared behaviour of the item-based container values."""

    items: tuple

    def __post_init__(self):
        items = tuple(self.items)
        for item in items:
            if not is_value(item):
                raise TypeError(f"{type(self).__name__} items must be Values, got {fmt_type(item)}")
        object.__setattr__(self, "items", items)

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class SequenceValue(_ItemsMixin):
    """Ordered container; items keep the source order."""
    kind: ClassVar[Kind] = Kind.SEQUENCE

    items: tuple["Value", ...] = ()


@dataclass(frozen=True, eq=False)
class SetValue(_ItemsMixin):
    """
    Unordered container.

    Items are kept in the adapter's iteration order for output, but equality
    and hashing ignore that order since it carries no meaning for a set.
    """
    kind: ClassVar[Kind] = Kind.SET

    items: tuple["Value", ...] = ()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SetValue):
            return NotImplemented
        return Counter(self.items) == Counter(other.items)

    def __hash__(self) -> int:
        return hash(frozenset(Counter(self.items).items()))


@dataclass(frozen=True)
class TupleValue(_ItemsMixin):
    """Fixed-arity heterogeneous aggregate."""
    kind: ClassVar[Kind] = Kind.TUPLE

    items: tuple["Value", ...] = ()


@dataclass(frozen=True)
class MappingValue:
    """Associative container; pairs keep the source iteration order."""
    kind: ClassVar[Kind] = Kind.MAPPING

    pairs: tuple[tuple["Value", "Value"], ...] = ()

    def __post_init__(self):
        pairs = []
        for pair in self.pairs:
            if not isinstance(pair, abc.Sequence) or len(pair) != 2:
                raise TypeError(f"MappingValue pairs must be (key, value) 2-tuples, got {fmt_type(pair)}")
            key, value = pair
            if not is_value(key) or not is_value(value):
                raise TypeError(f"MappingValue keys and values must be Values, "
                                f"got {fmt_type(key)} and {fmt_type(value)}")
            pairs.append((key, value))
        object.__setattr__(self, "pairs", tuple(pairs))

    def __iter__(self) -> Iterator[tuple["Value", "Value"]]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def keys(self) -> tuple["Value", ...]:
        return tuple(k for k, _ in self.pairs)

    def values(self) -> tuple["Value", ...]:
        return tuple(v for _, v in self.pairs)


Value: TypeAlias = ScalarValue | SequenceValue | SetValue | MappingValue | TupleValue

VALUE_TYPES = (ScalarValue, SequenceValue, SetValue, MappingValue, TupleValue)

CONTAINER_KINDS = (Kind.SEQUENCE, Kind.SET, Kind.MAPPING, Kind.TUPLE)


# Methods --------------------------------------------------------------------------------------------------------------

def is_value(obj: Any) -> bool:
    """Return True if obj is a node of the Value Model."""
    return isinstance(obj, VALUE_TYPES)


def make_value(kind: Kind | str, items: Iterable[Any] = ()) -> Value:
    """
    Build a container Value of the given kind.

    For Kind.MAPPING the items are (key, value) pairs, for the other container
    kinds they are the child values.

    Raises:
        ValueError: If kind is not a container kind.

    Examples:
        >>> make_value(Kind.SEQUENCE, [ScalarValue("1")])
        SequenceValue(items=(ScalarValue(text='1', is_string=False),))
    """
    kind = Kind(kind)
    if kind is Kind.SEQUENCE:
        return SequenceValue(items)
    if kind is Kind.SET:
        return SetValue(items)
    if kind is Kind.TUPLE:
        return TupleValue(items)
    if kind is Kind.MAPPING:
        return MappingValue(items)
    raise ValueError(f"container kind expected, got {kind.value!r}")
