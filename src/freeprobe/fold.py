"""Eliminating effect trees into other types.

None of these need a locator: the caller's algebra, transformation or target
already knows how to consume a descriptor.
"""

from collections.abc import Callable, Iterable
from functools import partial
from typing import Any, Final, Protocol

from .effects import Effect, fmap, slot_of
from .probe import Resolved, resolve
from .tree import FAILED, Done, EffectTree, Suspended, pure


class Alternative(Protocol):
    """A target type with a way to inject a value and a way to say "no value"."""

    def pure(self, value: Any) -> Any: ...

    def empty(self) -> Any: ...


class MonadPlus(Alternative, Protocol):
    """An `Alternative` target that can also sequence computations."""

    def bind(self, m: Any, f: Callable[[Any], Any]) -> Any: ...


class ListTarget:
    """Lists as nondeterministic computations."""

    def pure(self, value: Any) -> list[Any]:
        return [value]

    def empty(self) -> list[Any]:
        return []

    def bind(self, m: Iterable[Any], f: Callable[[Any], list[Any]]) -> list[Any]:
        return [result for item in m for result in f(item)]

    def __repr__(self) -> str:
        return "LIST"


class TreeTarget:
    """Effect trees themselves."""

    def pure(self, value: Any) -> EffectTree[Any]:
        return pure(value)

    def empty(self) -> EffectTree[Any]:
        return FAILED

    def bind(self, m: EffectTree[Any], f: Callable[[Any], EffectTree[Any]]) -> EffectTree[Any]:
        return m.bind(f)

    def __repr__(self) -> str:
        return "TREE"


LIST: Final = ListTarget()
TREE: Final = TreeTarget()


def iterate(algebra: Callable[[Any], Any], tree: EffectTree[Any]) -> Any:
    """Tear down a tree with `algebra`; `None` stands for "no value"."""

    def go(node: EffectTree[Any]) -> Any:
        match node:
            case Done(value=payload):
                outcome = resolve(payload)
                return outcome.value if isinstance(outcome, Resolved) else None
            case Suspended(descriptor=descriptor):
                return algebra(fmap(descriptor, go))
            case _:
                return None

    return go(tree)


def iterate_a(
    algebra: Callable[[Any], Any], tree: EffectTree[Any], target: Alternative
) -> Any:
    """Like `iterate`, producing values of an applicative `target`."""

    def go(node: EffectTree[Any]) -> Any:
        match node:
            case Done(value=payload):
                outcome = resolve(payload)
                if isinstance(outcome, Resolved):
                    return target.pure(outcome.value)
                return target.empty()
            case Suspended(descriptor=descriptor):
                return algebra(fmap(descriptor, go))
            case _:
                return target.empty()

    return go(tree)


def iterate_m(algebra: Callable[[Any], Any], tree: EffectTree[Any], target: MonadPlus) -> Any:
    """Like `iterate`, producing values of a monadic `target`.

    Continuations reach the algebra unevaluated: a direct slot holds a
    zero-argument function returning the rest of the computation, and a
    function slot returns it when called. An algebra with side effects thus
    sees the outer effect before any inner one, and may sequence the rest with
    `target.bind`.
    """

    def go(node: EffectTree[Any]) -> Any:
        match node:
            case Done(value=payload):
                outcome = resolve(payload)
                if isinstance(outcome, Resolved):
                    return target.pure(outcome.value)
                return target.empty()
            case Suspended(descriptor=descriptor):
                return algebra(_suspend(descriptor, go))
            case _:
                return target.empty()

    return go(tree)


def _suspend(descriptor: Any, go: Callable[[EffectTree[Any]], Any]) -> Any:
    if isinstance(descriptor, Effect) and slot_of(type(descriptor)).kind == "function":
        return fmap(descriptor, go)
    return fmap(descriptor, lambda node: partial(go, node))


def fold(
    transform: Callable[[Any], Any], tree: EffectTree[Any], target: MonadPlus
) -> Any:
    """Interpret a tree into `target`, mapping each descriptor with `transform`.

    `transform` must not care what the continuation slot holds: it turns a
    descriptor into a `target` computation producing the slot's content, which
    is then sequenced into the rest of the tree.
    """
    match tree:
        case Done(value=payload):
            outcome = resolve(payload)
            if isinstance(outcome, Resolved):
                return target.pure(outcome.value)
            return target.empty()
        case Suspended(descriptor=descriptor):
            return target.bind(transform(descriptor), lambda node: fold(transform, node, target))
        case _:
            return target.empty()


def retract(tree: EffectTree[Any], target: MonadPlus) -> Any:
    """Collapse a tree whose descriptors are themselves `target` computations.

    Left inverse of `lift` and `lift_free` followed by `embed`.
    """
    return fold(lambda descriptor: descriptor, tree, target)


def hoist(transform: Callable[[Any], Any], tree: EffectTree[Any]) -> EffectTree[Any]:
    """Rewrite every descriptor with `transform`, leaving terminal nodes alone."""
    if isinstance(tree, Suspended):
        descriptor = transform(tree.descriptor)
        return Suspended(fmap(descriptor, lambda node: hoist(transform, node)))
    return tree
