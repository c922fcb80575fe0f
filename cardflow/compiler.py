"""
Task compiler: generic YAML tree -> typed TaskBody.

Every task definition has the shape

    type: take | order | filter | action | group | flow
    params: <mapping, or a list of task names for group/flow>

Runtime arguments are substituted first (see template.py), then the tree
is validated field by field. A missing field raises FieldAbsentError, which
`or_default` turns into a default value; anything else (wrong type,
unknown tag) propagates to the caller.

The default for `filter.case` lives in DEFAULT_CASE_SENSITIVE and can be
overridden per document by the caller (settings: tasks.filter_case_sensitive).
"""
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from . import template
from .errors import FieldAbsentError, TypeMismatchError, UnrecognizedTagError
from .schema import (
    ActionKind,
    ActionTask,
    CardInfo,
    FilterBy,
    FilterTask,
    FlowTask,
    GroupTask,
    OrderKind,
    OrderTask,
    Place,
    Source,
    SourceKind,
    TakeTask,
    Target,
    TaskBody,
)

# Filters compare case-insensitively unless `case: true` is given.
DEFAULT_CASE_SENSITIVE = False

T = TypeVar("T")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Field readers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def field(node: Any, name: str) -> Any:
    """Return node[name]; FieldAbsentError if missing, TypeMismatchError if node is no mapping."""
    if not isinstance(node, Mapping):
        raise TypeMismatchError(
            f"expected a mapping with '{name}' but got: {node!r}"
        )
    if name not in node or node[name] is None:
        raise FieldAbsentError(name, dict(node))
    return node[name]


def or_default(read: Callable[[], T], default: T) -> T:
    """Run read(); only an absent field falls back to default."""
    try:
        return read()
    except FieldAbsentError:
        return default


_ABSENT = object()


def optional(node: Any, name: str, convert: Callable[[Any], T], default: T) -> T:
    """
    Read node[name] through convert, or return default when it is absent.

    Only the absence of name itself is recovered: a field missing further
    down (e.g. `from: {type: column}` without `source`) still fails.
    """
    value = or_default(lambda: field(node, name), _ABSENT)
    if value is _ABSENT:
        return default
    return convert(value)


def as_string(value: Any) -> str:
    """A tag-like value: must already be a string."""
    if not isinstance(value, str):
        raise TypeMismatchError(f"type should be string but got: {value!r}")
    return value


def as_text(value: Any) -> str:
    """A free-text value: strings, and numbers rendered as text."""
    if isinstance(value, bool):
        raise TypeMismatchError(f"type should be string but got: {value!r}")
    if isinstance(value, (int, float)):
        return str(value)
    return as_string(value)


def as_size(value: Any) -> int:
    """A non-negative integer, or a string of digits left by substitution."""
    if isinstance(value, bool):
        raise TypeMismatchError(f"size should be a number but got: {value!r}")
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    if isinstance(value, int):
        if value < 0:
            raise TypeMismatchError(f"size should not be negative but got: {value}")
        return value
    raise TypeMismatchError(f"size should be a number but got: {value!r}")


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise TypeMismatchError(f"should be bool but got: {value!r}")


def as_steps(value: Any) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise TypeMismatchError(f"type should be a list but got: {value!r}")
    return tuple(as_text(step) for step in value)


def tpe(node: Any) -> str:
    return as_string(field(node, "type"))


def _enum(enum_cls, tag: str):
    try:
        return enum_cls(tag)
    except ValueError:
        raise UnrecognizedTagError(tag) from None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Nested values
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def compile_source(node: Any) -> Source:
    """`{type: pipe|board|column, source: <column name>}`"""
    kind = _enum(SourceKind, tpe(node))
    if kind == SourceKind.COLUMN:
        return Source.of_column(as_text(field(node, "source")))
    return Source(kind)


def compile_place(value: Any) -> Place:
    return _enum(Place, as_string(value))


def compile_target(node: Any) -> Target:
    """`{column: <name>, place?: top|bottom|random}`"""
    column = as_text(field(node, "column"))
    place = optional(node, "place", compile_place, Place.TOP)
    return Target(column=column, place=place)


def compile_card(node: Any) -> CardInfo:
    """`{name: <card name>, desc?: <description>}`"""
    name = as_text(field(node, "name"))
    desc = optional(node, "desc", as_text, "")
    return CardInfo(name=name, desc=desc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Task bodies
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#
# Each compiler receives the `params` node and the case default.


def _take(params: Any, case_sensitive: bool) -> TakeTask:
    src = optional(params, "from", compile_source, Source.pipe())
    place = optional(params, "place", compile_place, Place.TOP)
    size = optional(params, "size", as_size, 0)
    return TakeTask(src=src, size=size, place=place)


def _order(params: Any, case_sensitive: bool) -> OrderTask:
    src = optional(params, "from", compile_source, Source.pipe())
    kind = _enum(OrderKind, tpe(params))
    return OrderTask(kind=kind, src=src)


def _filter(params: Any, case_sensitive: bool) -> FilterTask:
    by = _enum(FilterBy, optional(params, "by", as_string, "name"))
    rhs = as_text(field(params, "rhs"))
    case = optional(params, "case", as_bool, case_sensitive)
    return FilterTask(by=by, value=rhs, case_sensitive=case)


def _action(params: Any, case_sensitive: bool) -> ActionTask:
    kind = _enum(ActionKind, tpe(params))
    if kind == ActionKind.PRINT:
        return ActionTask(kind)
    target = compile_target(field(params, "to"))
    if kind == ActionKind.ADD:
        return ActionTask(kind, target=target, card=compile_card(field(params, "card")))
    return ActionTask(kind, target=target)


def _group(params: Any, case_sensitive: bool) -> GroupTask:
    return GroupTask(steps=as_steps(params))


def _flow(params: Any, case_sensitive: bool) -> FlowTask:
    return FlowTask(steps=as_steps(params))


COMPILERS: Dict[str, Callable[[Any, bool], TaskBody]] = {
    "take": _take,
    "order": _order,
    "filter": _filter,
    "action": _action,
    "group": _group,
    "flow": _flow,
}

# These read their whole definition from `params`; the others can run on defaults.
_PARAMS_REQUIRED = ("group", "flow")


def compile_task(
    node: Any,
    arguments: Optional[Mapping[str, str]] = None,
    *,
    case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
) -> TaskBody:
    """
    Compile one task definition.

    Raises:
        CompileError subclass describing the first problem found.
    """
    node = template.resolve(node, arguments)
    task_type = tpe(node)
    compiler = COMPILERS.get(task_type)
    if compiler is None:
        raise UnrecognizedTagError(task_type)

    if task_type in _PARAMS_REQUIRED:
        params = field(node, "params")
    else:
        params = or_default(lambda: field(node, "params"), {})
    return compiler(params, case_sensitive)
