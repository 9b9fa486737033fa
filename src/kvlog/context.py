"""
Key/value context handling.

Context travels as a flat sequence of alternating keys and values. Callers
may pass pairs positionally, a single mapping, or keyword arguments; all of
them end up in the same even-length tuple.
"""

from collections.abc import Mapping
from typing import Any, Callable, Sequence

ERROR_KEY = "LOG15_ERROR"
ODD_ARGS_MESSAGE = "Normalized odd number of arguments by adding nil"


class Ctx(dict):
    """
    Mapping of key/value pairs to pass as context in one argument.

    Key order in the output is not guaranteed to follow insertion order
    once merged into a logger's context, so don't rely on it.
    """

    def to_list(self) -> list[Any]:
        arr: list[Any] = []
        for k, v in self.items():
            arr.append(k)
            arr.append(v)
        return arr


class Lazy:
    """
    Defers computing an expensive value until a formatter renders it.

    Placed in a logger's own context (via Logger.new), it reports the
    current value on every write.
    """

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[[], Any]):
        if not callable(fn):
            raise TypeError(f"Lazy requires a callable, got {type(fn).__name__}")
        self.fn = fn

    def evaluate(self) -> Any:
        return self.fn()

    def __repr__(self) -> str:
        return f"Lazy({self.fn!r})"


def normalize(ctx: Sequence[Any]) -> list[Any]:
    """
    Turn caller-supplied context into an even-length key/value list.

    A lone mapping is expanded into pairs. An odd-length input gets
    (None, ERROR_KEY, ODD_ARGS_MESSAGE) appended instead of failing, so a
    bad call site shows up in the output rather than raising.
    """
    if len(ctx) == 1 and isinstance(ctx[0], Mapping):
        m = ctx[0]
        items = m.to_list() if isinstance(m, Ctx) else _mapping_to_list(m)
    else:
        items = list(ctx)

    if len(items) % 2 != 0:
        items.extend((None, ERROR_KEY, ODD_ARGS_MESSAGE))
    return items


def flatten_kwargs(kw: Mapping[str, Any]) -> list[Any]:
    """Keyword arguments as a flat key/value list, in call order."""
    return _mapping_to_list(kw)


def new_context(prefix: Sequence[Any], suffix: Sequence[Any], kw: Mapping[str, Any] | None = None) -> tuple:
    """prefix ++ normalize(suffix) ++ kw pairs, as a new tuple."""
    merged = list(prefix)
    merged.extend(normalize(suffix))
    if kw:
        merged.extend(flatten_kwargs(kw))
    return tuple(merged)


def _mapping_to_list(m: Mapping[Any, Any]) -> list[Any]:
    arr: list[Any] = []
    for k, v in m.items():
        arr.append(k)
        arr.append(v)
    return arr
