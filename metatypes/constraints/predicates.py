from __future__ import annotations

import re
from typing import Any, Callable

from ..registry.types import TypePattern, WILDCARD
from .schema import (
    ConstraintKind,
    PlacementCheck,
    PlacementConstraint,
    PlacementContext,
    ValidationCheck,
    ValidationConstraint,
)


PredicateFactory = Callable[[dict[str, Any]], "PlacementCheck | ValidationCheck"]


def _param(params: dict[str, Any], name: str, predicate: str) -> Any:
    if name not in params:
        raise ValueError(f"Predicate '{predicate}' requires parameter '{name}'")
    return params[name]


def _compile(params: dict[str, Any], predicate: str) -> re.Pattern[str]:
    pattern = str(_param(params, "pattern", predicate))
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Predicate '{predicate}': invalid pattern {pattern!r}: {e}") from e


def _values(value: Any) -> list[Any]:
    # Array-valued attributes are checked element by element
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Placement predicates: check(ctx) -> bool, False denies
# ---------------------------------------------------------------------------


def predicate_deny_child_name(params: dict[str, Any]) -> PlacementCheck:
    regex = _compile(params, "deny_child_name")

    def check(ctx: PlacementContext) -> bool:
        return ctx.child_name is None or regex.search(ctx.child_name) is None

    return check


def predicate_require_child_name(params: dict[str, Any]) -> PlacementCheck:
    # Unnamed placements are left to the declarative rules
    regex = _compile(params, "require_child_name")

    def check(ctx: PlacementContext) -> bool:
        return ctx.child_name is None or regex.search(ctx.child_name) is not None

    return check


def predicate_deny_child_type(params: dict[str, Any]) -> PlacementCheck:
    raw = _param(params, "types", "deny_child_type")
    if isinstance(raw, str):
        raw = [raw]
    patterns = [TypePattern.parse(p) for p in raw]

    def check(ctx: PlacementContext) -> bool:
        return not any(ctx.child_is(p) for p in patterns)

    return check


# ---------------------------------------------------------------------------
# Validation predicates: check(node, attr_name, value) -> reason | None
# ---------------------------------------------------------------------------


def predicate_required(params: dict[str, Any]) -> ValidationCheck:
    def check(node: Any, attr_name: str, value: Any) -> str | None:
        if _is_blank(value) or (isinstance(value, (list, tuple)) and not value):
            return f"{attr_name} is required"
        return None

    return check


def predicate_regex(params: dict[str, Any]) -> ValidationCheck:
    regex = _compile(params, "regex")

    def check(node: Any, attr_name: str, value: Any) -> str | None:
        for item in _values(value):
            if item is None:
                continue
            if regex.fullmatch(str(item)) is None:
                return f"{attr_name} value {item!r} does not match pattern {regex.pattern!r}"
        return None

    return check


def predicate_enum(params: dict[str, Any]) -> ValidationCheck:
    raw = _param(params, "values", "enum")
    if isinstance(raw, str):
        raw = [raw]
    case_sensitive = bool(params.get("case_sensitive", True))
    allowed = [str(v) for v in raw]
    folded = set(allowed) if case_sensitive else {v.lower() for v in allowed}

    def check(node: Any, attr_name: str, value: Any) -> str | None:
        for item in _values(value):
            if item is None:
                continue
            text = str(item) if case_sensitive else str(item).lower()
            if text not in folded:
                return f"{attr_name} value {item!r} is not one of: {', '.join(allowed)}"
        return None

    return check


def predicate_length(params: dict[str, Any]) -> ValidationCheck:
    min_len = params.get("min")
    max_len = params.get("max")
    if min_len is None and max_len is None:
        raise ValueError("Predicate 'length' requires 'min' and/or 'max'")

    def check(node: Any, attr_name: str, value: Any) -> str | None:
        for item in _values(value):
            if item is None:
                continue
            size = len(str(item))
            if min_len is not None and size < int(min_len):
                return f"{attr_name} must be at least {min_len} characters (got {size})"
            if max_len is not None and size > int(max_len):
                return f"{attr_name} must be at most {max_len} characters (got {size})"
        return None

    return check


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def predicate_range(params: dict[str, Any]) -> ValidationCheck:
    low = params.get("min")
    high = params.get("max")
    if low is None and high is None:
        raise ValueError("Predicate 'range' requires 'min' and/or 'max'")

    def check(node: Any, attr_name: str, value: Any) -> str | None:
        for item in _values(value):
            if _is_blank(item):
                continue
            number = _number(item)
            if number is None:
                return f"{attr_name} value {item!r} is not a number"
            if low is not None and number < float(low):
                return f"{attr_name} must be >= {low} (got {item})"
            if high is not None and number > float(high):
                return f"{attr_name} must be <= {high} (got {item})"
        return None

    return check


def predicate_positive_int(params: dict[str, Any]) -> ValidationCheck:
    def check(node: Any, attr_name: str, value: Any) -> str | None:
        for item in _values(value):
            if _is_blank(item):
                continue
            if isinstance(item, bool):
                return f"{attr_name} must be a positive integer (got {item!r})"
            try:
                number = int(str(item).strip())
            except ValueError:
                return f"{attr_name} must be a positive integer (got {item!r})"
            if number <= 0:
                return f"{attr_name} must be a positive integer (got {item})"
        return None

    return check


PREDICATES: dict[str, PredicateFactory] = {
    "deny_child_name": predicate_deny_child_name,
    "require_child_name": predicate_require_child_name,
    "deny_child_type": predicate_deny_child_type,
    "required": predicate_required,
    "regex": predicate_regex,
    "enum": predicate_enum,
    "length": predicate_length,
    "range": predicate_range,
    "positive_int": predicate_positive_int,
}

PREDICATE_KINDS: dict[str, ConstraintKind] = {
    "deny_child_name": "placement",
    "require_child_name": "placement",
    "deny_child_type": "placement",
    "required": "validation",
    "regex": "validation",
    "enum": "validation",
    "length": "validation",
    "range": "validation",
    "positive_int": "validation",
}


def _factory(name: str, kind: ConstraintKind) -> PredicateFactory:
    factory = PREDICATES.get(name)
    if factory is None:
        raise ValueError(f"Unknown predicate '{name}'. Known: {', '.join(sorted(PREDICATES))}")
    if PREDICATE_KINDS[name] != kind:
        raise ValueError(f"Predicate '{name}' builds {PREDICATE_KINDS[name]} constraints, not {kind}")
    return factory


def placement_constraint(
    constraint_id: str,
    predicate: str,
    *,
    description: str = "",
    parent: str | TypePattern = WILDCARD,
    child: str | TypePattern = WILDCARD,
    match_descendants: bool = True,
    **params: Any,
) -> PlacementConstraint:
    """Build a PlacementConstraint from a named predicate, e.g. ``deny_child_name``."""
    check = _factory(predicate, "placement")(params)
    return PlacementConstraint(
        constraint_id=constraint_id,
        description=description or f"{predicate}({_describe(params)})",
        check=check,  # type: ignore[arg-type]
        parent=TypePattern.parse(parent),
        child=TypePattern.parse(child),
        match_descendants=match_descendants,
    )


def validation_constraint(
    constraint_id: str,
    predicate: str,
    *,
    description: str = "",
    target: str | TypePattern = WILDCARD,
    attribute: str = WILDCARD,
    match_descendants: bool = True,
    **params: Any,
) -> ValidationConstraint:
    """Build a ValidationConstraint from a named predicate, e.g. ``positive_int``."""
    check = _factory(predicate, "validation")(params)
    return ValidationConstraint(
        constraint_id=constraint_id,
        description=description or f"{predicate}({_describe(params)})",
        check=check,  # type: ignore[arg-type]
        target=TypePattern.parse(target),
        attribute=attribute,
        match_descendants=match_descendants,
    )


def _describe(params: dict[str, Any]) -> str:
    return ", ".join(f"{k}={v!r}" for k, v in sorted(params.items()))


def known_predicates(kind: ConstraintKind | None = None) -> list[str]:
    return sorted(name for name, k in PREDICATE_KINDS.items() if kind is None or k == kind)
