"""Best-effort static analysis of programs written as effect trees.

A program is built as data: a tree whose nodes are effect descriptors, each
embedding the rest of the computation. Without running any effect, the tree
can be walked to find which effects it would perform and, when the program
does not depend on their results, what it would return.

Example:

>>> import freeprobe as fp
>>> from collections.abc import Callable
>>>
>>> # Describe the effects; the continuation slot is derived from the annotations
>>> @fp.effect
... class Say[K](fp.Effect[K]):
...     message: str
...     next: K
>>>
>>> @fp.effect
... class Ask[K](fp.Effect[K]):
...     respond: Callable[[int], K]
>>>
>>> # Build a program without running it
>>> program = fp.Suspended(Say("hello", fp.Suspended(Ask(lambda n: fp.Done(n > 0)))))
>>>
>>> # The greeting is found; the answer depends on the user's input
>>> fp.run_analysis(program)
Analysis(result=None, trace=[Say(message='hello', next=()), Ask(respond=())])
"""

from .__version__ import __version__
from .analysis import Analysis, Locator, analyze, derive_locator, locate, run_analysis
from .builder import Builder
from .effects import DerivationError, Effect, Slot, effect, erase, fmap, slot_of
from .fold import (
    LIST,
    TREE,
    Alternative,
    MonadPlus,
    fold,
    hoist,
    iterate,
    iterate_a,
    iterate_m,
    retract,
)
from .plain import Free, FreeTree, Pure, embed, lift_free
from .probe import ABORTED, POISON, Abort, Aborted, Deferred, Poisoned, Resolved, probe, resolve
from .tree import FAILED, Done, EffectTree, Failed, Suspended, defer, lift, pure, treachery, wrap

__all__ = [
    "ABORTED",
    "FAILED",
    "LIST",
    "POISON",
    "TREE",
    "Abort",
    "Aborted",
    "Alternative",
    "Analysis",
    "Builder",
    "Deferred",
    "DerivationError",
    "Done",
    "Effect",
    "EffectTree",
    "Failed",
    "Free",
    "FreeTree",
    "Locator",
    "MonadPlus",
    "Poisoned",
    "Pure",
    "Resolved",
    "Slot",
    "Suspended",
    "__version__",
    "analyze",
    "defer",
    "derive_locator",
    "effect",
    "embed",
    "erase",
    "fmap",
    "fold",
    "hoist",
    "iterate",
    "iterate_a",
    "iterate_m",
    "lift",
    "lift_free",
    "locate",
    "probe",
    "pure",
    "resolve",
    "retract",
    "run_analysis",
    "slot_of",
    "treachery",
    "wrap",
]
