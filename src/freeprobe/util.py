from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Snoc[T]:
    """A persistent list that grows at the end; `last` is the newest item."""

    init: "Snoc[T] | None"
    last: T


@dataclass(frozen=True, slots=True)
class Cons[T]:
    """A persistent list that is consumed from the front."""

    head: T
    tail: "Cons[T] | None"


def prepend[T](items: Snoc[T] | None, rest: Cons[T] | None) -> Cons[T] | None:
    """Put `items`, oldest first, in front of `rest` without copying `rest`."""
    while items is not None:
        rest = Cons(items.last, rest)
        items = items.init
    return rest
