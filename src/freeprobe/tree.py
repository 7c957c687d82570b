"""The three-state effect tree: `Done`, `Suspended` and `Failed`."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final

from .effects import fmap
from .probe import Aborted, Deferred, Payload, Resolved, betray, probe, resolve


class EffectTree[A]:
    """A suspended computation whose pending effects are plain data.

    Trees are immutable; every combinator builds a new tree. Terminal payloads
    are forced speculatively before they are used, so a payload that turns out
    to be poisoned makes the whole branch `Failed` instead of raising.
    """

    __slots__ = ()

    def map[B](self, f: Callable[[A], B]) -> "EffectTree[B]":
        match self:
            case Done(value=payload):
                match resolve(payload):
                    case Resolved(value=value):
                        return _guarded(lambda: pure(f(value)))
                    case _:
                        return FAILED
            case Suspended(descriptor=descriptor):
                return Suspended(fmap(descriptor, lambda tree: tree.map(f)))
            case _:
                return FAILED

    def bind[B](self, f: Callable[[A], "EffectTree[B]"]) -> "EffectTree[B]":
        match self:
            case Done(value=payload):
                match resolve(payload):
                    case Resolved(value=value):
                        return _guarded(lambda: f(value))
                    case _:
                        return FAILED
            case Suspended(descriptor=descriptor):
                return Suspended(fmap(descriptor, lambda tree: tree.bind(f)))
            case _:
                return FAILED

    def ap(self, other: "EffectTree[Any]") -> "EffectTree[Any]":
        """Apply the function this tree produces to the value `other` produces."""
        match self, other:
            case Failed(), _:
                return FAILED
            case Done(value=payload), Done(value=argument):
                function, value = resolve(payload), resolve(argument)
                if isinstance(function, Aborted) or isinstance(value, Aborted):
                    return FAILED
                return _guarded(lambda: pure(function.value(value.value)))
            case Done(value=payload), Suspended(descriptor=descriptor):
                match resolve(payload):
                    case Resolved(value=function):
                        return Suspended(fmap(descriptor, lambda tree: tree.map(function)))
                    case _:
                        return FAILED
            case Suspended(descriptor=descriptor), _:
                return Suspended(fmap(descriptor, lambda tree: tree.ap(other)))
            case _:
                return FAILED

    def alt(self, other: "EffectTree[A]") -> "EffectTree[A]":
        """Left-biased choice: `other` only replaces a `Failed` tree."""
        if isinstance(self, Failed):
            return other
        return self

    def __or__(self, other: "EffectTree[A]") -> "EffectTree[A]":
        return self.alt(other)


@dataclass(frozen=True, slots=True)
class Done[A](EffectTree[A]):
    """A finished computation.

    `Done(x)` stores `Resolved(x)`, unless `x` already is a `Resolved` or
    `Deferred` payload. Use `pure` for values that may themselves be payloads.
    """

    value: Payload[A]

    def __post_init__(self) -> None:
        if not isinstance(self.value, (Resolved, Deferred)):
            object.__setattr__(self, "value", Resolved(self.value))


@dataclass(frozen=True, slots=True)
class Suspended[A](EffectTree[A]):
    """One pending effect whose descriptor embeds the rest of the computation."""

    descriptor: Any


@dataclass(frozen=True, slots=True)
class Failed[A](EffectTree[A]):
    """A computation with no result."""


FAILED: Final[Failed[Any]] = Failed()


def _guarded[B](build: Callable[[], EffectTree[B]]) -> EffectTree[B]:
    match probe(build):
        case Resolved(value=tree):
            return tree
        case _:
            return FAILED


def pure[A](value: A) -> Done[A]:
    return Done(Resolved(value))


def defer[A](thunk: Callable[[], A]) -> Done[A]:
    """A terminal tree whose value is computed when it is first forced."""
    return Done(Deferred(thunk))


def treachery() -> Done[Any]:
    """A terminal tree whose payload raises the abort signal when forced.

    Binding through it yields `Failed`; analyzing it yields no result.
    """
    return Done(Deferred(betray))


def wrap[A](descriptor: Any) -> Suspended[A]:
    """Suspend on a descriptor whose continuation slot already holds a tree."""
    return Suspended(descriptor)


def lift(descriptor: Any) -> Suspended[Any]:
    """Suspend on a single effect, finishing with whatever value fills its slot.

    `lift(Say("hi", None))` is `Suspended(Say("hi", Done(None)))`.
    """
    return Suspended(fmap(descriptor, pure))
