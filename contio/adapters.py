"""
Contio Value Adapters

Map native Python objects onto the Value Model (`contio.values`).

Resolution order for each object:
    1. Already a Value            → returned unchanged
    2. Registered adapter         → exact type, else nearest ancestor in the MRO
    3. obj.to_value() hook        → a Value, or a native object adapted in turn
    4. str                        → string scalar
    5. bytes, bytearray, memview  → string scalar, UTF-8 decoded with backslashreplace
    6. bool                       → scalar 'true' / 'false'
    7. Mapping, ItemsView         → mapping, iteration order preserved
    8. tuple, dataclass instance  → tuple
    9. Set                        → set
   10. any other Iterable         → sequence
   11. everything else            → scalar from str(obj)

A repeated reference to a container that is still being adapted (a cycle)
becomes the scalar '...', as in Python's own repr of recursive lists.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import logging
import warnings
from dataclasses import fields, is_dataclass
from typing import Any, Callable, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import class_name, fmt_type
from .values import (
    MappingValue,
    ScalarValue,
    SequenceValue,
    SetValue,
    TupleValue,
    Value,
    is_value,
)

logger = logging.getLogger(__name__)

AdaptItem = Callable[[Any], Value]
Handler = Callable[[Any, AdaptItem], Value]

CYCLE_MARKER = "..."


# Ready-made Handlers --------------------------------------------------------------------------------------------------

def as_sequence(obj: abc.Iterable, adapt: AdaptItem) -> SequenceValue:
    """Adapt an iterable as an ordered container."""
    return SequenceValue(adapt(x) for x in obj)


def as_set(obj: abc.Iterable, adapt: AdaptItem) -> SetValue:
    """Adapt an iterable as an unordered container."""
    return SetValue(adapt(x) for x in obj)


def as_tuple(obj: abc.Iterable, adapt: AdaptItem) -> TupleValue:
    """Adapt an iterable as a fixed heterogeneous aggregate."""
    return TupleValue(adapt(x) for x in obj)


def as_mapping(obj: Any, adapt: AdaptItem) -> MappingValue:
    """Adapt an object with items(), or an iterable of (key, value) pairs, as a mapping."""
    items = obj.items() if callable(getattr(obj, "items", None)) else obj
    return MappingValue((adapt(k), adapt(v)) for k, v in items)


def as_scalar(obj: Any, adapt: AdaptItem) -> ScalarValue:
    """Adapt an object as a verbatim scalar using str(obj)."""
    return ScalarValue(str(obj))


def as_string(obj: Any, adapt: AdaptItem) -> ScalarValue:
    """Adapt an object as a string scalar using str(obj)."""
    return ScalarValue(str(obj), is_string=True)


# Classes --------------------------------------------------------------------------------------------------------------

class Adapters:
    """
    Registry of per-type adapter handlers.

    A handler receives the object and a callable adapting child objects,
    and returns a Value. Handlers registered for a base class also apply to
    its subclasses; the nearest ancestor in the MRO wins.

    Examples:
        >>> class Bag:
        ...     def __init__(self, *xs): self.xs = xs
        ...     def __iter__(self): return iter(self.xs)
        >>> adapters = Adapters().add(Bag, as_set)
        >>> adapters.adapt(Bag(1))
        SetValue(items=(ScalarValue(text='1', is_string=False),))

        >>> # Custom handler adapting children through the supplied callable
        >>> adapters.add(Bag, lambda bag, adapt: TupleValue(adapt(x) for x in bag))  # doctest: +SKIP
    """

    def __init__(self, handlers: abc.Mapping[type, Handler] | None = None):
        self._handlers: dict[type, Handler] = {}
        if handlers is not None:
            if not isinstance(handlers, abc.Mapping):
                raise TypeError(f"handlers must be a mapping or None, got {fmt_type(handlers)}")
            for typ, handler in handlers.items():
                self._validate(typ, handler)
                self._handlers[typ] = handler

    def __contains__(self, typ: Any) -> bool:
        return typ in self._handlers

    def __iter__(self) -> Iterator[type]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        names = ", ".join(class_name(t) for t in self._handlers)
        return f"Adapters({names})"

    def add(self, typ: type, handler: Handler) -> "Adapters":
        """
        Register or override a handler for a specific type.

        Returns:
            Self, to allow chaining.

        Raises:
            TypeError: If typ is not a type or handler is not callable.
        """
        self._validate(typ, handler)
        if typ in self._handlers and self._handlers[typ] is not handler:
            warnings.warn(
                f"Replacing adapter already registered for {class_name(typ, fully_qualified=True)}",
                UserWarning,
                stacklevel=2,
            )
        self._handlers[typ] = handler
        logger.debug("adapter registered for %s", class_name(typ, fully_qualified=True))
        return self

    def get(self, obj: Any) -> Handler | None:
        """
        Get the handler for the object's type, exact match first, then nearest ancestor.

        Returns:
            The handler if found; otherwise None.
        """
        handlers = self._handlers
        if not handlers:
            return None

        obj_type = type(obj)
        if obj_type in handlers:
            return handlers[obj_type]

        for base in obj_type.__mro__[1:]:
            if base in handlers:
                return handlers[base]

        # Virtual subclasses (ABC registration) are not in the MRO
        for typ, handler in handlers.items():
            if isinstance(obj, typ):
                return handler
        return None

    def remove(self, typ: type) -> "Adapters":
        """
        Remove the handler for a specific type, if any.

        Returns:
            Self, to allow chaining.
        """
        if not isinstance(typ, type):
            raise TypeError(f"typ must be a type, got {fmt_type(typ)}")
        if self._handlers.pop(typ, None) is not None:
            logger.debug("adapter removed for %s", class_name(typ, fully_qualified=True))
        return self

    def copy(self) -> "Adapters":
        """Return an independent registry with the same handlers."""
        return Adapters(self._handlers)

    def adapt(self, obj: Any) -> Value:
        """Adapt obj using this registry."""
        return adapt(obj, adapters=self)

    @staticmethod
    def _validate(typ: Any, handler: Any) -> None:
        if not isinstance(typ, type):
            raise TypeError(f"typ must be a type, got {fmt_type(typ)}")
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {fmt_type(handler)}")


_DEFAULT_ADAPTERS = Adapters()


# Methods --------------------------------------------------------------------------------------------------------------

def adapt(obj: Any, *, adapters: Adapters | None = None) -> Value:
    """
    Convert any object into the Value Model.

    Adaptation is total: objects of unrecognized shape become verbatim scalars
    via str(obj). Set order is the iteration order of the source, no sorting.

    Args:
        obj: Any Python object.
        adapters: Registry of custom handlers. Defaults to the module registry
            managed by register_adapter() and unregister_adapter().

    Returns:
        Value tree describing obj.

    Raises:
        TypeError: If adapters is not an Adapters instance, or if a handler or a
            to_value() hook returns something that cannot be adapted.

    Examples:
        >>> adapt([1, "a"])
        SequenceValue(items=(ScalarValue(text='1', is_string=False), ScalarValue(text='a', is_string=True)))
        >>> adapt(True)
        ScalarValue(text='true', is_string=False)
    """
    if adapters is None:
        adapters = _DEFAULT_ADAPTERS
    elif not isinstance(adapters, Adapters):
        raise TypeError(f"adapters must be an Adapters instance, got {fmt_type(adapters)}")
    return _Adaptation(adapters).adapt(obj)


def default_adapters() -> Adapters:
    """Return the module registry used when no adapters are passed."""
    return _DEFAULT_ADAPTERS


def register_adapter(typ: type, handler: Handler | None = None):
    """
    Register a handler in the module registry.

    Can be called directly or used as a decorator on the handler.

    Examples:
        >>> register_adapter(frozenset, as_sequence)        # doctest: +SKIP

        >>> @register_adapter(Point)                        # doctest: +SKIP
        ... def _point(p, adapt):
        ...     return TupleValue((adapt(p.x), adapt(p.y)))
    """
    if handler is None:
        def decorator(fn: Handler) -> Handler:
            _DEFAULT_ADAPTERS.add(typ, fn)
            return fn

        return decorator

    _DEFAULT_ADAPTERS.add(typ, handler)
    return handler


def unregister_adapter(typ: type) -> None:
    """Remove a handler from the module registry, if any."""
    _DEFAULT_ADAPTERS.remove(typ)


# Private Classes ------------------------------------------------------------------------------------------------------

class _Adaptation:
    """Single adapt() run: a registry plus the ids of containers currently being adapted."""

    def __init__(self, adapters: Adapters):
        self.adapters = adapters
        self._active: set[int] = set()

    def adapt(self, obj: Any) -> Value:
        if is_value(obj):
            return obj

        handler = self.adapters.get(obj)
        if handler is not None:
            return self._guarded(obj, lambda: self._checked(handler(obj, self.adapt), source=handler))

        hook = getattr(obj, "to_value", None)
        if callable(hook) and not isinstance(obj, type):
            return self._guarded(obj, lambda: self._from_hook(obj, hook))

        if isinstance(obj, str):
            return ScalarValue(str.__str__(obj), is_string=True)

        if isinstance(obj, (bytes, bytearray, memoryview)):
            return ScalarValue(bytes(obj).decode("utf-8", errors="backslashreplace"), is_string=True)

        if isinstance(obj, bool):
            return ScalarValue("true" if obj else "false")

        if isinstance(obj, (abc.Mapping, abc.ItemsView)):
            return self._guarded(obj, lambda: as_mapping(obj, self.adapt))

        if isinstance(obj, tuple):
            return self._guarded(obj, lambda: as_tuple(obj, self.adapt))

        if is_dataclass(obj) and not isinstance(obj, type):
            return self._guarded(obj, lambda: TupleValue(self.adapt(getattr(obj, f.name)) for f in fields(obj)))

        if isinstance(obj, abc.Set):
            return self._guarded(obj, lambda: as_set(obj, self.adapt))

        if isinstance(obj, abc.Iterable):
            return self._guarded(obj, lambda: as_sequence(obj, self.adapt))

        return ScalarValue(str(obj))

    def _guarded(self, obj: Any, build: Callable[[], Value]) -> Value:
        key = id(obj)
        if key in self._active:
            return ScalarValue(CYCLE_MARKER)
        self._active.add(key)
        try:
            return build()
        finally:
            self._active.discard(key)

    def _from_hook(self, obj: Any, hook: Callable[[], Any]) -> Value:
        result = hook()
        if is_value(result):
            return result
        if result is obj:
            raise TypeError(f"{class_name(obj)}.to_value() must not return the object itself")
        return self.adapt(result)

    @staticmethod
    def _checked(result: Any, source: Callable) -> Value:
        if not is_value(result):
            name = getattr(source, "__name__", class_name(source))
            raise TypeError(f"adapter {name} must return a Value, got {fmt_type(result)}")
        return result
