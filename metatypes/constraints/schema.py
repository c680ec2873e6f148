from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping, Protocol, runtime_checkable

from ..registry.types import TypeId, TypePattern, WILDCARD


ConstraintKind = Literal["placement", "validation"]


@runtime_checkable
class MetaNode(Protocol):
    """Anything the enforcer can check: a concrete node of a metadata tree."""

    type_id: TypeId
    name: str


@dataclass(frozen=True)
class NodeRef:
    """Minimal MetaNode for callers that have no tree object at hand."""

    type_id: TypeId
    name: str = ""
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, type_id: TypeId | str, name: str = "", **attributes: Any) -> NodeRef:
        return cls(TypeId.parse(type_id), name, dict(attributes))


def _pattern_hit(pattern: TypePattern, type_id: TypeId, lineage: tuple[TypeId, ...], descendants: bool) -> bool:
    if descendants:
        return any(pattern.matches(t) for t in lineage or (type_id,))
    return pattern.matches(type_id)


@dataclass(frozen=True)
class PlacementContext:
    parent: TypeId
    child: TypeId
    child_name: str | None
    parent_lineage: tuple[TypeId, ...] = ()
    child_lineage: tuple[TypeId, ...] = ()

    def parent_is(self, pattern: TypePattern | TypeId | str) -> bool:
        return _pattern_hit(TypePattern.parse(pattern), self.parent, self.parent_lineage, True)

    def child_is(self, pattern: TypePattern | TypeId | str) -> bool:
        return _pattern_hit(TypePattern.parse(pattern), self.child, self.child_lineage, True)


PlacementCheck = Callable[[PlacementContext], bool]
PlacementApplies = Callable[[PlacementContext], bool]
ValidationCheck = Callable[[Any, str, Any], "str | None"]
ValidationApplies = Callable[[Any, str], bool]


def _require_id(constraint_id: str) -> str:
    cid = str(constraint_id or "").strip()
    if not cid:
        raise ValueError("constraint_id is required")
    return cid


@dataclass(frozen=True)
class PlacementConstraint:
    """
    Imperative placement rule consulted alongside declarative accepts-rules.

    ``check`` returning False denies the placement. A constraint can only
    narrow what the type definitions allow.
    """

    constraint_id: str
    description: str
    check: PlacementCheck
    applies: PlacementApplies | None = None
    parent: TypePattern = field(default_factory=TypePattern)
    child: TypePattern = field(default_factory=TypePattern)
    match_descendants: bool = True

    kind: ConstraintKind = field(default="placement", init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraint_id", _require_id(self.constraint_id))
        object.__setattr__(self, "parent", TypePattern.parse(self.parent))
        object.__setattr__(self, "child", TypePattern.parse(self.child))

    def applies_to(self, ctx: PlacementContext) -> bool:
        if not _pattern_hit(self.parent, ctx.parent, ctx.parent_lineage, self.match_descendants):
            return False
        if not _pattern_hit(self.child, ctx.child, ctx.child_lineage, self.match_descendants):
            return False
        return self.applies is None or bool(self.applies(ctx))

    def allows(self, ctx: PlacementContext) -> bool:
        return bool(self.check(ctx))


@dataclass(frozen=True)
class ValidationConstraint:
    """
    Predicate over a proposed attribute value.

    ``check(node, attr_name, value)`` returns None when the value passes and
    a human-readable reason when it does not.
    """

    constraint_id: str
    description: str
    check: ValidationCheck
    applies: ValidationApplies | None = None
    target: TypePattern = field(default_factory=TypePattern)
    attribute: str = WILDCARD
    match_descendants: bool = True

    kind: ConstraintKind = field(default="validation", init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraint_id", _require_id(self.constraint_id))
        object.__setattr__(self, "target", TypePattern.parse(self.target))
        object.__setattr__(self, "attribute", str(self.attribute or WILDCARD).strip() or WILDCARD)

    def applies_to(
        self, node: Any, attr_name: str, lineage: tuple[TypeId, ...] = (), type_id: TypeId | None = None
    ) -> bool:
        """``type_id`` defaults to ``node.type_id``; pass it when ``node`` is a bare TypeId or string."""
        if self.attribute != WILDCARD and self.attribute != attr_name:
            return False
        if type_id is None:
            type_id = TypeId.parse(getattr(node, "type_id", node))
        if not _pattern_hit(self.target, type_id, lineage, self.match_descendants):
            return False
        return self.applies is None or bool(self.applies(node, attr_name))

    def validate(self, node: Any, attr_name: str, value: Any) -> str | None:
        return self.check(node, attr_name, value)


Constraint = PlacementConstraint | ValidationConstraint


# Ruleset data (loaded from TOML, turned into constraints by predicate factories)


@dataclass(frozen=True)
class Predicate:
    name: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConstraintDef:
    id: str
    kind: ConstraintKind
    description: str = ""
    selector: dict[str, Any] = field(default_factory=dict)
    predicate: Predicate = field(default_factory=lambda: Predicate(name="noop"))


@dataclass(frozen=True)
class RulesetDef:
    ruleset_id: str
    version: int
    description: str | None = None
    constraints: list[ConstraintDef] = field(default_factory=list)
