"""
Sentinel object for distinguishing an omitted argument from an explicit None.

Used by the `merge()` style override methods, where None can be a legitimate
override value and therefore cannot mean "keep the current one".

Example:
    >>> def merge(self, value_separator: str | UnsetType = UNSET):
    ...     value_separator = self.value_separator if value_separator is UNSET else value_separator
"""

from typing import Any, Final

__all__ = [
    'UNSET',
    'UnsetType',
    'ifnotunset',
]


# Sentinel Types -------------------------------------------------------------------------------------------------------

class UnsetType:
    """
    Sentinel type for UNSET.

    Singleton, falsy, compared by identity. Pickling returns the same instance.
    """
    __slots__ = ()

    _instance: 'UnsetType | None' = None

    def __new__(cls) -> 'UnsetType':
        """Ensures singleton behavior."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return '<UNSET>'

    def __eq__(self, other: Any) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> tuple:
        """Ensure pickling returns the singleton instance."""
        return (self.__class__, ())


UNSET: Final[UnsetType] = UnsetType()


# Methods --------------------------------------------------------------------------------------------------------------

def ifnotunset(value: Any, *, default: Any = None) -> Any:
    """
    Return value if it is not UNSET, otherwise return default.

    Examples:
        >>> ifnotunset(UNSET, default=", ")
        ', '
        >>> ifnotunset(None, default=", ")
    """
    return default if value is UNSET else value
