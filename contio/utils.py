"""
Contio utilities shared across the package.

Contains helpers used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any


# Methods --------------------------------------------------------------------------------------------------------------


def class_name(obj: Any, fully_qualified: bool = False) -> str:
    """
    Get the class name of an object or a class.

    Returns class name whether given an instance or the class itself.
    Builtin types are never module-qualified.

    Parameters:
        obj (Any): An object or a class.
        fully_qualified (bool): If true, returns the fully qualified name for user objects or classes.

    Returns:
        str: The class name.

    Examples:
        >>> class_name(10)
        'int'
        >>> class_name(int)
        'int'
        >>> from collections import OrderedDict
        >>> class_name(OrderedDict(), fully_qualified=True)
        'collections.OrderedDict'
    """
    cls = obj if isinstance(obj, type) else type(obj)

    module = getattr(cls, "__module__", None)
    name = getattr(cls, "__name__", "?")

    if not fully_qualified or module in (None, "builtins"):
        return name
    return f"{module}.{name}"


def fmt_type(obj: Any, fully_qualified: bool = False) -> str:
    """
    Format type information of an object or a class for exception messages.

    Examples:
        >>> fmt_type(42)
        '<int>'
        >>> fmt_type(str)
        '<str>'
    """
    return f"<{class_name(obj, fully_qualified=fully_qualified)}>"
