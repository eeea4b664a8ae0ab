"""
Timing helpers: human-readable durations, nested timed blocks, call timing.

    fmt_duration(3 * 3600 + 2 * 60 + 1.001)     → '03:02:01.001'
    fmt_duration(0.042)                         → '42ms'

    with block("load") as b:                    # 'load: 1.204s' on exit
        with b.child("parse"):                  # '    parse: 310ms' on exit
            ...

    calls("rng", 1000, random.random)           → CallInfo, prints as
                                                  'rng: total: 95µs avg: 95ns, min: 70ns, max: 4µs'

Nesting depth is an explicit parameter carried by Block.child(), there is no
shared indentation counter. Reports go to the `contio.timed` logger at INFO
level unless an emit callable (e.g. print) is given.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import datetime as dt
import functools
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type

logger = logging.getLogger(__name__)

Emit = Callable[[str], Any]

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S


# Classes --------------------------------------------------------------------------------------------------------------

class Block:
    """
    A running timed block.

    Attributes:
        name: Label printed in the report line.
        depth: Nesting level; the report is indented by depth * indent spaces.
        indent: Spaces per nesting level.
    """

    def __init__(self, name: str, *, depth: int = 0, indent: int = 4, emit: Emit | None = None):
        if not isinstance(depth, int) or depth < 0:
            raise ValueError(f"depth must be a non-negative int, got {depth!r}")
        if not isinstance(indent, int) or indent < 0:
            raise ValueError(f"indent must be a non-negative int, got {indent!r}")
        self.name = str(name)
        self.depth = depth
        self.indent = indent
        self._emit = emit
        self._start_ns = time.perf_counter_ns()
        self._end_ns: int | None = None

    @property
    def elapsed(self) -> float:
        """Seconds since the block started, frozen once the block is closed."""
        end = self._end_ns if self._end_ns is not None else time.perf_counter_ns()
        return (end - self._start_ns) / _NS_PER_S

    def child(self, name: str = "local_block"):
        """Open a nested block one level deeper, reporting to the same sink."""
        return block(name, depth=self.depth + 1, indent=self.indent, emit=self._emit)

    def report(self) -> str:
        return f"{' ' * (self.depth * self.indent)}{self.name}: {fmt_duration(self.elapsed)}"

    def close(self) -> str:
        """Stop the clock and emit the report line. Returns the line."""
        if self._end_ns is None:
            self._end_ns = time.perf_counter_ns()
        line = self.report()
        _emit_line(line, self._emit)
        return line


@dataclass(frozen=True)
class CallInfo:
    """
    Statistics of repeated calls, all durations in seconds.

    Examples:
        >>> print(CallInfo("noop", count=2, total=0.002, avg=0.001, min=0.0005, max=0.0015))
        noop: total:   2ms avg:   1ms, min: 500µs, max:   1ms
    """
    name: str
    count: int = 0
    total: float = 0.0
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0

    def __str__(self) -> str:
        return (f"{self.name}: total: {fmt_duration(self.total):>5} avg: {fmt_duration(self.avg):>5}, "
                f"min: {fmt_duration(self.min):>5}, max: {fmt_duration(self.max):>5}")


# Methods --------------------------------------------------------------------------------------------------------------

def fmt_duration(duration: float | int | dt.timedelta) -> str:
    """
    Format a duration in a human-readable way.

    Units are chosen by magnitude and smaller parts are truncated:
        < 1µs   → '350ns'
        < 1ms   → '12µs'
        < 1s    → '42ms'
        < 1min  → '5.057s'
        else    → '03:02:01.001'  (hours:minutes:seconds.milliseconds)

    Args:
        duration: Seconds as int/float, or a datetime.timedelta.

    Raises:
        TypeError: If duration is not a number or timedelta.
        ValueError: If duration is negative or not finite.

    Examples:
        >>> fmt_duration(3 * 3600 + 2 * 60 + 1.001)
        '03:02:01.001'
        >>> fmt_duration(dt.timedelta(milliseconds=42, microseconds=103))
        '42ms'
    """
    ns = _to_ns(duration)

    if ns < _NS_PER_US:
        return f"{ns}ns"
    if ns < _NS_PER_MS:
        return f"{ns // _NS_PER_US}µs"
    if ns < _NS_PER_S:
        return f"{ns // _NS_PER_MS}ms"
    if ns < _NS_PER_MIN:
        seconds, rest = divmod(ns, _NS_PER_S)
        return f"{seconds}.{rest // _NS_PER_MS:03d}s"

    ms = ns // _NS_PER_MS
    seconds, ms = divmod(ms, 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{ms:03d}"


@contextmanager
def block(name: str = "local_block", *, depth: int = 0, indent: int = 4, emit: Emit | None = None) -> Iterator[Block]:
    """
    Measure the time spent inside a with-block and report it on exit.

    The report is emitted even if the block raises; the exception propagates.

    Args:
        name: Label of the block.
        depth: Nesting level used for indentation. Block.child() increments it.
        indent: Spaces per nesting level.
        emit: Callable receiving the report line. Defaults to the module logger.
    """
    b = Block(name, depth=depth, indent=indent, emit=emit)
    try:
        yield b
    finally:
        b.close()


def call(name: str, func: Callable[..., Any], *args: Any, emit: Emit | None = None, **kwargs: Any) -> Any:
    """
    Time a single call of func and return its result.

    Examples:
        >>> call("sum", sum, [1, 2, 3], emit=print)          # doctest: +SKIP
        sum: 1µs
        6
    """
    if not callable(func):
        raise TypeError(f"func must be callable, got {fmt_type(func)}")
    with block(name, emit=emit):
        return func(*args, **kwargs)


def timed(name: str | None = None, *, emit: Emit | None = None):
    """
    Decorator timing every call of the decorated function.

    Examples:
        >>> @timed(emit=print)                                # doctest: +SKIP
        ... def work():
        ...     return 42
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        label = name or getattr(func, "__qualname__", getattr(func, "__name__", "call"))

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return call(label, func, *args, emit=emit, **kwargs)

        return wrapper

    return decorator


def calls(name: str, count: int, func: Callable[[], Any]) -> CallInfo:
    """
    Call func count times and collect total, average, min and max durations.

    Args:
        name: Label of the measurement.
        count: Number of calls. Zero returns zeroed statistics without calling func.
        func: Callable taking no arguments.

    Raises:
        TypeError: If count is not an int or func is not callable.
        ValueError: If count is negative.
    """
    if not isinstance(count, int) or isinstance(count, bool):
        raise TypeError(f"count must be int, got {fmt_type(count)}")
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if not callable(func):
        raise TypeError(f"func must be callable, got {fmt_type(func)}")

    if count == 0:
        return CallInfo(str(name))

    durations: list[int] = []
    for _ in range(count):
        start = time.perf_counter_ns()
        func()
        durations.append(time.perf_counter_ns() - start)

    total = sum(durations)
    return CallInfo(
        name=str(name),
        count=count,
        total=total / _NS_PER_S,
        avg=total / count / _NS_PER_S,
        min=min(durations) / _NS_PER_S,
        max=max(durations) / _NS_PER_S,
    )


# Private Methods ------------------------------------------------------------------------------------------------------

def _emit_line(line: str, emit: Emit | None) -> None:
    if emit is None:
        logger.info(line)
    else:
        emit(line)


def _to_ns(duration: Any) -> int:
    if isinstance(duration, dt.timedelta):
        ns = (duration.days * 86_400 + duration.seconds) * _NS_PER_S + duration.microseconds * _NS_PER_US
    elif isinstance(duration, (int, float)) and not isinstance(duration, bool):
        if duration != duration or duration in (float("inf"), float("-inf")):
            raise ValueError(f"duration must be finite, got {duration!r}")
        ns = round(duration * _NS_PER_S)
    else:
        raise TypeError(f"duration must be seconds or timedelta, got {fmt_type(duration)}")

    if ns < 0:
        raise ValueError(f"duration must be non-negative, got {duration!r}")
    return ns
