"""Plain two-state free trees and their embedding into effect trees."""

from dataclasses import dataclass
from typing import Any

from .effects import fmap
from .tree import EffectTree, Suspended, pure


class FreeTree[A]:
    """A suspended computation that cannot fail: either `Pure` or `Free`."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Pure[A](FreeTree[A]):
    value: A


@dataclass(frozen=True, slots=True)
class Free[A](FreeTree[A]):
    descriptor: Any


def lift_free(descriptor: Any) -> Free[Any]:
    return Free(fmap(descriptor, Pure))


def embed[A](tree: FreeTree[A]) -> EffectTree[A]:
    """Convert a plain free tree into an effect tree, losing nothing."""
    match tree:
        case Pure(value=value):
            return pure(value)
        case Free(descriptor=descriptor):
            return Suspended(fmap(descriptor, embed))
        case _:
            raise TypeError(f"Expected a Pure or Free tree, got {tree!r}.")
