import types
from collections.abc import Callable as CallableABC
from typing import TYPE_CHECKING, Any, Literal, TypeVar, Union, get_args, get_origin

if TYPE_CHECKING:  # pragma: no cover - type check only
    from .effects import Effect


_TYPEVAR_TYPE = type(TypeVar("T"))
_UNION_ORIGIN = types.UnionType
_TYPING_UNION = Union

SlotShape = Literal["direct", "function", "unsupported"]


def continuation_parameter(effect_cls: type["Effect[Any]"], *, effect_base: type) -> Any | None:
    """Find the type variable an effect class passes as its continuation parameter.

    The parameter is followed through the generic bases down to `Effect[K]`,
    so `K` is found in `class Say[K](Effect[K])`, in
    `class Say(Console[K], Generic[K])` and in `class Get[S, K](State[S, K])`
    whatever position `State` gives its own continuation parameter.
    """
    for base in effect_cls.__dict__.get("__orig_bases__", ()):
        origin = get_origin(base)
        if not (isinstance(origin, type) and issubclass(origin, effect_base)):
            continue
        args = get_args(base)
        if origin is effect_base:
            candidate = args[0] if args else None
        else:
            inherited = continuation_parameter(origin, effect_base=effect_base)
            params = getattr(origin, "__parameters__", ())
            if inherited not in params:
                continue
            candidate = args[params.index(inherited)]
        if isinstance(candidate, _TYPEVAR_TYPE):
            return candidate

    # Plain subclasses keep the parameter their generic base declares.
    for base in effect_cls.__bases__:
        if base is not effect_base and issubclass(base, effect_base):
            found = continuation_parameter(base, effect_base=effect_base)
            if found is not None:
                return found
    return None


def type_parameter_namespace(effect_cls: type) -> dict[str, Any]:
    namespace: dict[str, Any] = {}
    for klass in reversed(effect_cls.__mro__):
        for param in getattr(klass, "__type_params__", ()):
            namespace[param.__name__] = param
    return namespace


def classify_annotation(annotation: Any, param: Any) -> SlotShape | None:
    """Classify how a field annotation refers to the continuation parameter.

    Returns `None` for payload fields that never mention `param`.
    """
    if annotation is param:
        return "direct"
    if not annotation_contains(annotation, param):
        return None

    if get_origin(annotation) is CallableABC:
        args = get_args(annotation)
        if len(args) == 2:
            param_types, return_type = args
            if (
                return_type is param
                and isinstance(param_types, (list, tuple))
                and not any(annotation_contains(arg, param) for arg in param_types)
            ):
                return "function"
    return "unsupported"


def callable_arity(annotation: Any) -> int:
    param_types, _ = get_args(annotation)
    return len(param_types)


def annotation_contains(annotation: Any, param: Any) -> bool:
    if annotation is param:
        return True
    if isinstance(annotation, (list, tuple)):
        return any(annotation_contains(arg, param) for arg in annotation)
    origin = get_origin(annotation)
    if origin is None:
        return False
    return any(annotation_contains(arg, param) for arg in get_args(annotation))


def format_annotation(annotation: Any) -> str:
    if annotation is Any:
        return "Any"
    if annotation is Ellipsis:
        return "..."
    if isinstance(annotation, list):
        return "[" + ", ".join(format_annotation(arg) for arg in annotation) + "]"
    origin = get_origin(annotation)
    if origin is _UNION_ORIGIN or origin is _TYPING_UNION:
        return " | ".join(format_annotation(arg) for arg in get_args(annotation))
    if origin is not None:
        args = ", ".join(format_annotation(arg) for arg in get_args(annotation))
        name = getattr(origin, "__name__", repr(origin))
        return f"{name}[{args}]"
    if isinstance(annotation, type):
        return annotation.__name__
    return getattr(annotation, "__name__", repr(annotation))
