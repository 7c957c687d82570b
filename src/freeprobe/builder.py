"""Building effect trees without quadratic rebinding.

Binding directly on an `EffectTree` rebuilds the whole prefix of the tree each
time, so a long left-nested chain of binds costs quadratic work. A `Builder`
instead records pending continuations and composes them, materializing the
tree once in `build`.
"""

from collections.abc import Callable
from typing import Any

from .effects import Effect, Slot, fmap, slot_of
from .probe import Resolved, probe, resolve
from .tree import FAILED, Done, EffectTree, Failed, Suspended, lift, pure
from .util import Cons, Snoc, prepend

type Continuation = Callable[[Any], "Builder[Any] | EffectTree[Any]"]


class Builder[A]:
    """An effect tree under construction.

    `bind` only records the continuation; nothing is evaluated until `build`.
    """

    __slots__ = ("_tree", "_pending")

    def __init__(self, tree: EffectTree[Any], pending: Snoc[Continuation] | None = None):
        self._tree = tree
        self._pending = pending

    @classmethod
    def pure(cls, value: A) -> "Builder[A]":
        return cls(pure(value))

    @classmethod
    def fail(cls) -> "Builder[Any]":
        return cls(FAILED)

    @classmethod
    def send(cls, descriptor: Effect[Any]) -> "Builder[Any]":
        """A single effect; the result is whatever fills its continuation slot."""
        return cls(lift(descriptor))

    @classmethod
    def of(cls, tree: EffectTree[A]) -> "Builder[A]":
        return cls(tree)

    def bind[B](self, f: Callable[[A], "Builder[B] | EffectTree[B]"]) -> "Builder[B]":
        return Builder(self._tree, Snoc(self._pending, f))

    def map[B](self, f: Callable[[A], B]) -> "Builder[B]":
        return self.bind(lambda value: pure(f(value)))

    def then[B](self, other: "Builder[B]") -> "Builder[B]":
        return self.bind(lambda _: other)

    def alt(self, other: "Builder[A]") -> "Builder[A]":
        """Left-biased choice; `other` is only built if this builder fails."""

        def choose(_: Any) -> "Builder[A]":
            left = self.build()
            return other if isinstance(left, Failed) else Builder(left)

        return Builder.pure(None).bind(choose)

    def __or__(self, other: "Builder[A]") -> "Builder[A]":
        return self.alt(other)

    def build(self) -> EffectTree[A]:
        return _materialize(self._tree, prepend(self._pending, None))

    def __repr__(self) -> str:
        return f"Builder({self._tree!r})"


def _materialize(tree: EffectTree[Any], queue: Cons[Continuation] | None) -> EffectTree[Any]:
    # Direct slots are unwound iteratively and rebuilt bottom-up, so long chains
    # do not hit the recursion limit. Function slots stay lazy.
    spine: list[tuple[Slot, Any]] = []
    node = tree
    while queue is not None:
        if isinstance(node, Done):
            step = _continue(node, queue.head)
            if step is None:
                node = FAILED
                break
            node, queue = step._tree, prepend(step._pending, queue.tail)
        elif isinstance(node, Suspended):
            descriptor = node.descriptor
            slot = _direct_slot(descriptor)
            if slot is None:
                node = Suspended(fmap(descriptor, lambda sub, rest=queue: _materialize(sub, rest)))
                break
            spine.append((slot, descriptor))
            node = getattr(descriptor, slot.name)
        else:
            break

    for slot, descriptor in reversed(spine):
        node = Suspended(slot.replace(descriptor, node))
    return node


def _continue(node: Done[Any], f: Continuation) -> "Builder[Any] | None":
    match resolve(node.value):
        case Resolved(value=value):
            step = probe(lambda: f(value))
        case _:
            return None
    if not isinstance(step, Resolved):
        return None
    result = step.value
    if isinstance(result, EffectTree):
        return Builder(result)
    if not isinstance(result, Builder):
        raise TypeError(f"Continuation must return a Builder or EffectTree, got {result!r}.")
    return result


def _direct_slot(descriptor: Any) -> Slot | None:
    if not isinstance(descriptor, Effect):
        return None
    slot = slot_of(type(descriptor))
    return slot if slot.kind == "direct" else None
