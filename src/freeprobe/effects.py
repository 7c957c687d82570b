import dataclasses as dc
import warnings
from collections.abc import Callable
from functools import singledispatch
from typing import Any, Literal, TypeVar, get_type_hints, overload

from ._typing import (
    callable_arity,
    classify_annotation,
    continuation_parameter,
    format_annotation,
    type_parameter_namespace,
)
from .probe import POISON

C = TypeVar("C", bound=type)  # Effect class being registered


class Effect[K]:
    """Base class for all effect descriptors.

    `K` is the continuation parameter: the type of the single sub-computation
    each constructor embeds, either directly as a field of type `K` or as the
    result of a field of type `Callable[[...], K]`.
    """


class DerivationError(TypeError):
    """Raised when no continuation slot can be derived for an effect constructor."""

    __match_args__ = ("effect_type",)

    def __init__(self, effect_type: type, message: str):
        super().__init__(message)
        self.effect_type = effect_type


@dc.dataclass(frozen=True, slots=True)
class Slot:
    """Where the continuation lives inside an effect constructor."""

    name: str
    kind: Literal["direct", "function"]
    arity: int = 0

    def follow(self, descriptor: Any) -> Any:
        """Extract the continuation, passing the poisoned value to function slots."""
        value = getattr(descriptor, self.name)
        if self.kind == "direct":
            return value
        return value(*([POISON] * self.arity))

    def replace(self, descriptor: Any, continuation: Any) -> Any:
        return dc.replace(descriptor, **{self.name: continuation})

    def map(self, descriptor: Any, f: Callable[[Any], Any]) -> Any:
        value = getattr(descriptor, self.name)
        if self.kind == "direct":
            return self.replace(descriptor, f(value))

        def _continue(*args: Any) -> Any:
            return f(value(*args))

        return self.replace(descriptor, _continue)


def derive_slot(effect_cls: type, continuation: str | None = None) -> Slot:
    """Derive the continuation slot of an effect dataclass from its field annotations.

    Args:
        effect_cls: A dataclass deriving from `Effect[K]`.
        continuation: Optional name of the field holding the continuation. When
                      omitted, the slot must be the last field of the constructor.

    Raises:
        DerivationError: If the constructor has no continuation slot, more than
                         one candidate, a candidate that is not the last field, or
                         refers to the continuation parameter in an unsupported way.
    """
    name = effect_cls.__name__
    param = continuation_parameter(effect_cls, effect_base=Effect)
    if param is None:
        raise DerivationError(
            effect_cls,
            f"Cannot derive a locator for '{name}': no continuation parameter. "
            "Effect constructors must subclass Effect[K] with K a type variable.",
        )

    try:
        hints = get_type_hints(effect_cls, localns=type_parameter_namespace(effect_cls))
    except NameError as e:
        raise DerivationError(
            effect_cls, f"Cannot resolve the field annotations of '{name}': {e}"
        ) from e

    fields = [field for field in dc.fields(effect_cls) if field.init]
    candidates: list[tuple[str, Slot]] = []
    for field in fields:
        annotation = hints.get(field.name, field.type)
        match classify_annotation(annotation, param):
            case None:
                continue
            case "direct":
                candidates.append((field.name, Slot(field.name, "direct")))
            case "function":
                slot = Slot(field.name, "function", callable_arity(annotation))
                candidates.append((field.name, slot))
            case _:
                raise DerivationError(
                    effect_cls,
                    f"Unsupported continuation shape in '{name}': field '{field.name}' has "
                    f"type {format_annotation(annotation)}; expected {param.__name__} or "
                    f"Callable[[...], {param.__name__}].",
                )

    if not candidates:
        raise DerivationError(
            effect_cls,
            f"Missing continuation parameter when deriving a locator for '{name}': "
            f"the constructor has no continuation slot of type {param.__name__}.",
        )
    if len(candidates) > 1:
        names = ", ".join(f"'{field_name}'" for field_name, _ in candidates)
        raise DerivationError(
            effect_cls,
            f"Ambiguous continuation slot in '{name}': fields {names} all hold "
            f"{param.__name__}; exactly one is allowed.",
        )

    field_name, slot = candidates[0]
    if continuation is not None:
        if continuation not in {field.name for field in fields}:
            raise DerivationError(
                effect_cls, f"'{name}' has no field named '{continuation}'."
            )
        if continuation != field_name:
            raise DerivationError(
                effect_cls,
                f"'{name}' declares '{continuation}' as its continuation, but the "
                f"continuation slot of type {param.__name__} is '{field_name}'.",
            )
    elif field_name != fields[-1].name:
        raise DerivationError(
            effect_cls,
            f"Continuation slot '{field_name}' of '{name}' must be its last field; "
            "declare it explicitly with @effect(continuation=...) otherwise.",
        )
    return slot


@overload
def effect(cls: C, /) -> C: ...


@overload
def effect(*, continuation: str | None = None) -> Callable[[C], C]: ...


def effect(cls: Any = None, /, *, continuation: str | None = None) -> Any:
    """Register an effect constructor, deriving its continuation slot.

    The class is turned into a frozen dataclass unless it already is a dataclass.
    Derivation happens once, here, so a malformed effect type fails when it is
    defined rather than when a tree using it is analyzed.

    Example:
        >>> @effect
        ... class Say[K](Effect[K]):
        ...     message: str
        ...     next: K
        >>> Say.__continuation__
        Slot(name='next', kind='direct', arity=0)
    """

    def _register(effect_cls: C) -> C:
        if not (isinstance(effect_cls, type) and issubclass(effect_cls, Effect)):
            raise TypeError(f"@effect must decorate an Effect subclass, got {effect_cls!r}.")
        if "__dataclass_fields__" not in effect_cls.__dict__:
            effect_cls = dc.dataclass(frozen=True)(effect_cls)
        elif not effect_cls.__dataclass_params__.frozen:  # type: ignore[attr-defined]
            warnings.warn(
                f"Effect {effect_cls.__name__} is a mutable dataclass; descriptors "
                "embedded in effect trees should be frozen.",
                RuntimeWarning,
                stacklevel=3,
            )
        effect_cls.__continuation__ = derive_slot(effect_cls, continuation)  # type: ignore[attr-defined]
        return effect_cls

    if cls is None:
        return _register
    return _register(cls)


def slot_of(effect_cls: type) -> Slot:
    """Return the continuation slot of an effect constructor, deriving it on first use."""
    slot = effect_cls.__dict__.get("__continuation__")
    if slot is not None:
        return slot
    if not (issubclass(effect_cls, Effect) and dc.is_dataclass(effect_cls)):
        raise DerivationError(
            effect_cls, f"'{effect_cls.__name__}' is not an effect constructor."
        )
    slot = derive_slot(effect_cls)
    effect_cls.__continuation__ = slot  # type: ignore[attr-defined]
    return slot


def constructors_of(effect_type: type) -> list[type]:
    """All dataclass constructors of an effect type, which may be a sum of shapes."""
    found: list[type] = []
    pending = [effect_type]
    seen: set[type] = set()
    while pending:
        klass = pending.pop()
        if klass in seen:
            continue
        seen.add(klass)
        if dc.is_dataclass(klass):
            found.append(klass)
        pending.extend(klass.__subclasses__())
    return found


@singledispatch
def fmap(descriptor: Any, f: Callable[[Any], Any]) -> Any:
    """Apply `f` to the continuation slot(s) of `descriptor`."""
    if isinstance(descriptor, Effect):
        return slot_of(type(descriptor)).map(descriptor, f)
    raise TypeError(f"No functor instance for {type(descriptor).__name__!r}.")


@fmap.register
def _fmap_list(descriptor: list, f: Callable[[Any], Any]) -> list:
    return [f(item) for item in descriptor]


@singledispatch
def erase(descriptor: Any) -> Any:
    """Replace the continuation of `descriptor` with `()`, keeping its payload."""
    if isinstance(descriptor, Effect):
        return slot_of(type(descriptor)).replace(descriptor, ())
    return fmap(descriptor, lambda _: ())
