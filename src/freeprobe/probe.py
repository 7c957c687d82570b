"""Speculative forcing of values that may turn out to stand for "no value".

A terminal payload is either `Resolved` (already evaluated) or `Deferred`
(a zero-argument computation). Forcing either one may hit the poisoned probe
value, which raises `Abort`. `probe` is the only place that catches it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final, NoReturn


class Abort(BaseException):
    """Signal raised when a poisoned value is forced.

    Derives from `BaseException` so that `except Exception` clauses in effect
    code cannot intercept it; only `probe` does.
    """


@dataclass(frozen=True, slots=True)
class Resolved[T]:
    """A payload that has been evaluated to `value`."""

    value: T


@dataclass(frozen=True, slots=True)
class Deferred[T]:
    """A payload whose value is produced by calling `thunk`."""

    thunk: Callable[[], T]


type Payload[T] = Resolved[T] | Deferred[T]


class Aborted:
    """Outcome of a probe whose evaluation hit the abort signal."""

    _instance: "Aborted | None" = None

    def __new__(cls) -> "Aborted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABORTED"

    def __bool__(self) -> bool:
        return False


ABORTED: Final = Aborted()


def betray(*_: Any, **__: Any) -> NoReturn:
    """Raise the abort signal, whatever the arguments."""
    raise Abort


class Poisoned:
    """The poisoned probe value.

    Handed to continuation-returning functions in place of a real argument.
    Any attempt to inspect it raises `Abort`, so a function that merely passes
    it along (or ignores it) can be followed, while one that branches on it
    cannot. Looking up a private or dunder attribute raises `AttributeError`
    instead, so introspection such as `hasattr` or `issubclass` stays safe
    outside `probe`.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "POISON"

    def __getattr__(self, name: str) -> NoReturn:
        if name.startswith("_"):
            raise AttributeError(name)
        raise Abort


for _name in (
    "__bool__", "__len__", "__iter__", "__contains__", "__getitem__", "__call__",
    "__hash__", "__str__", "__format__", "__bytes__", "__int__", "__float__",
    "__complex__", "__index__", "__round__", "__trunc__", "__floor__", "__ceil__",
    "__eq__", "__ne__", "__lt__", "__le__", "__gt__", "__ge__",
    "__neg__", "__pos__", "__abs__", "__invert__",
    "__add__", "__radd__", "__sub__", "__rsub__", "__mul__", "__rmul__",
    "__matmul__", "__rmatmul__", "__truediv__", "__rtruediv__",
    "__floordiv__", "__rfloordiv__", "__mod__", "__rmod__", "__divmod__",
    "__rdivmod__", "__pow__", "__rpow__", "__lshift__", "__rlshift__",
    "__rshift__", "__rrshift__", "__and__", "__rand__", "__or__", "__ror__",
    "__xor__", "__rxor__", "__enter__", "__exit__",
):  # fmt: skip
    setattr(Poisoned, _name, betray)
del _name


POISON: Final = Poisoned()


def probe[T](thunk: Callable[[], T]) -> Resolved[T] | Aborted:
    """Evaluate `thunk`, converting the abort signal into `ABORTED`.

    The produced value is forced too: a thunk that hands back the poisoned
    value itself counts as having forced it. Every other exception propagates.
    """
    try:
        value = thunk()
        if isinstance(value, Poisoned):
            raise Abort
    except Abort:
        return ABORTED
    return Resolved(value)


def force[T](payload: Payload[T]) -> T:
    """Evaluate a payload outside of `probe`; may raise `Abort`."""
    match payload:
        case Resolved(value=value):
            return value
        case Deferred(thunk=thunk):
            return thunk()
        case _:
            raise TypeError(f"Expected Resolved or Deferred payload, got {payload!r}.")


def resolve[T](payload: Payload[T]) -> Resolved[T] | Aborted:
    """Force a terminal payload, reporting whether it actually holds a value."""
    if isinstance(payload, Resolved) and not isinstance(payload.value, Poisoned):
        return payload
    return probe(lambda: force(payload))
