"""Best-effort static analysis of effect trees.

The engine follows continuations without running any effect. Function-shaped
continuation slots are called with the poisoned probe value; as long as the
function does not inspect its argument the walk carries on, otherwise the
branch gives up and the analysis reports no result together with the effects
seen so far.

Known limitation: a continuation function that loops or performs side effects
before touching its argument is not detected. Only effect types whose
continuation functions ignore their argument, or hand it on unexamined, give
meaningful results.
"""

import logging
from collections.abc import Callable
from typing import Any, NamedTuple

from .effects import DerivationError, Effect, constructors_of, erase, slot_of
from .probe import Resolved, probe, resolve
from .tree import Done, EffectTree, Failed, Suspended

logger = logging.getLogger(__name__)

type Stepper = Callable[[Any], EffectTree[Any]]


class Analysis(NamedTuple):
    """The outcome of analyzing a tree.

    Attributes:
        result: `Resolved(value)` when the tree finished with a value, `None` otherwise.
        trace: The effects passed through, outermost first, each with its
               continuation replaced by `()`.
    """

    result: Resolved[Any] | None
    trace: list[Any]

    @property
    def complete(self) -> bool:
        return self.result is not None

    @property
    def value(self) -> Any:
        return None if self.result is None else self.result.value


class Locator:
    """Extracts the continuation from descriptors of one effect type.

    Use `derive_locator` to build one; it checks every constructor of the
    effect type up front.
    """

    def __init__(self, effect_type: type[Effect[Any]]):
        self._effect_type = effect_type

    @property
    def effect_type(self) -> type[Effect[Any]]:
        return self._effect_type

    def __call__(self, descriptor: Any) -> Any:
        if not isinstance(descriptor, self._effect_type):
            raise TypeError(
                f"{type(descriptor).__name__!r} is not an effect of type "
                f"{self._effect_type.__name__!r}."
            )
        return slot_of(type(descriptor)).follow(descriptor)

    def __repr__(self) -> str:
        return f"Locator({self._effect_type.__name__})"


def derive_locator(effect_type: type[Effect[Any]]) -> Locator:
    """Derive and validate the continuation locator of an effect type.

    `effect_type` may be a single constructor or a base class whose dataclass
    subclasses form a sum of shapes; each constructor is checked independently.

    Raises:
        DerivationError: If the type has no constructors, or any constructor has
                         zero or several continuation slots.
    """
    if not (isinstance(effect_type, type) and issubclass(effect_type, Effect)):
        raise TypeError(f"Expected an Effect subclass, got {effect_type!r}.")
    constructors = constructors_of(effect_type)
    if not constructors:
        raise DerivationError(
            effect_type, f"'{effect_type.__name__}' declares no effect constructors."
        )
    for constructor in constructors:
        slot_of(constructor)
    return Locator(effect_type)


locate = Locator(Effect)


def analyze[A](stepper: Stepper, tree: EffectTree[A]) -> Analysis:
    """Walk `tree` from the root, recording each effect until the walk ends.

    Args:
        stepper: Maps a suspended descriptor to its continuation tree, usually a
                 `Locator`.
        tree: The tree to analyze.

    Returns:
        The final value, if it could be determined without running effects, and
        the trace of effects encountered in order.

    Raises:
        TypeError: If `stepper` produces something other than an `EffectTree`.
    """
    trace: list[Any] = []
    node: Any = tree
    while True:
        match node:
            case Failed():
                logger.debug("Analysis reached a failed node after %d effects", len(trace))
                return Analysis(None, trace)
            case Done(value=payload):
                outcome = resolve(payload)
                if isinstance(outcome, Resolved):
                    return Analysis(outcome, trace)
                logger.debug("Final value aborted after %d effects", len(trace))
                return Analysis(None, trace)
            case Suspended(descriptor=descriptor):
                trace.append(erase(descriptor))
                step = probe(lambda: stepper(descriptor))
                if not isinstance(step, Resolved):
                    logger.debug(
                        "Continuation of %s depends on its input", type(descriptor).__name__
                    )
                    return Analysis(None, trace)
                node = step.value
            case _:
                raise TypeError(f"Expected an EffectTree, got {node!r}.")


def run_analysis[A](tree: EffectTree[A], locator: Locator | None = None) -> Analysis:
    """Analyze `tree`, following continuations with a derived locator."""
    return analyze(locator if locator is not None else locate, tree)
