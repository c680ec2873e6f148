"""
Core records of the type registry.

Everything here is immutable: a TypeDefinition is a value, and the registry
replaces values wholesale when a type is extended or re-resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from ..errors import InvalidTypeIdError

WILDCARD = "*"

# Attribute value types and the attr subtype each one is stored as
VALUE_TYPES: dict[str, str] = {
    "string": "string",
    "int": "int",
    "long": "long",
    "double": "double",
    "boolean": "boolean",
    "class": "class",
    "properties": "properties",
    "stringarray": "stringarray",
    "any": WILDCARD,
}


def _clean(value: Any, what: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InvalidTypeIdError(f"{what} must be a non-empty string")
    return text


def _matches(pattern: str, actual: str | None) -> bool:
    if pattern == WILDCARD:
        return True
    return actual is not None and pattern == actual


@dataclass(frozen=True, order=True)
class TypeId:
    """Concrete (type, subtype) key of a registered kind, e.g. ``field.long``."""

    type: str
    subtype: str

    def __post_init__(self) -> None:
        t = _clean(self.type, "type")
        s = _clean(self.subtype, "subtype")
        if WILDCARD in (t, s):
            raise InvalidTypeIdError(f"Wildcards are not allowed in a type id: {t}.{s}")
        object.__setattr__(self, "type", t)
        object.__setattr__(self, "subtype", s)

    @classmethod
    def parse(cls, text: "str | TypeId") -> TypeId:
        """Parse ``"type.subtype"``; TypeId values pass through unchanged."""
        if isinstance(text, TypeId):
            return text
        raw = (text or "").strip()
        if "." not in raw:
            raise InvalidTypeIdError(f"Expected 'type.subtype', got {text!r}")
        type_, subtype = raw.split(".", 1)
        return cls(type_, subtype)

    @property
    def qualified_name(self) -> str:
        return f"{self.type}.{self.subtype}"

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class TypePattern:
    """(type, subtype) pair where either side may be ``*``."""

    type: str = WILDCARD
    subtype: str = WILDCARD

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _clean(self.type, "type pattern"))
        object.__setattr__(self, "subtype", _clean(self.subtype, "subtype pattern"))

    @classmethod
    def parse(cls, text: "str | TypePattern | TypeId") -> TypePattern:
        if isinstance(text, TypePattern):
            return text
        if isinstance(text, TypeId):
            return cls(text.type, text.subtype)
        raw = (text or "").strip()
        if raw == WILDCARD:
            return cls()
        if "." not in raw:
            raise ValueError(f"Expected 'type.subtype' pattern, got {text!r}")
        type_, subtype = raw.split(".", 1)
        return cls(type_, subtype)

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in (self.type, self.subtype)

    def matches(self, type_id: TypeId) -> bool:
        return _matches(self.type, type_id.type) and _matches(self.subtype, type_id.subtype)

    def __str__(self) -> str:
        return f"{self.type}.{self.subtype}"


@dataclass(frozen=True)
class ChildRule:
    """A parent's declaration that it accepts children of a given kind."""

    child_type: str = WILDCARD
    child_subtype: str = WILDCARD
    name_pattern: str = WILDCARD
    required: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "child_type", _clean(self.child_type, "child_type"))
        object.__setattr__(self, "child_subtype", _clean(self.child_subtype, "child_subtype"))
        object.__setattr__(self, "name_pattern", _clean(self.name_pattern, "name_pattern"))

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.child_type, self.child_subtype, self.name_pattern)

    @property
    def specificity(self) -> int:
        score = 0
        if self.name_pattern != WILDCARD:
            score += 4
        if self.child_subtype != WILDCARD:
            score += 2
        if self.child_type != WILDCARD:
            score += 1
        return score

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.key

    def matches(self, child_type: str, child_subtype: str, child_name: str | None) -> bool:
        return (
            _matches(self.child_type, child_type)
            and _matches(self.child_subtype, child_subtype)
            and _matches(self.name_pattern, child_name)
        )

    def describe(self) -> str:
        parts = ["required" if self.required else "optional"]
        if self.child_type == "attr":
            parts.append("attribute")
        elif self.child_type == WILDCARD:
            parts.append("child")
        else:
            parts.append(self.child_type)
        if self.name_pattern != WILDCARD:
            parts.append(f"'{self.name_pattern}'")
        if self.child_subtype != WILDCARD:
            parts.append(f"of type {self.child_subtype}")
        return " ".join(parts)

    def __str__(self) -> str:
        return f"{self.child_type}.{self.child_subtype}[{self.name_pattern}]"


@dataclass(frozen=True)
class ParentRule:
    """A child's declaration of which parents it may be placed under."""

    parent_type: str = WILDCARD
    parent_subtype: str = WILDCARD
    expected_name: str = WILDCARD

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_type", _clean(self.parent_type, "parent_type"))
        object.__setattr__(self, "parent_subtype", _clean(self.parent_subtype, "parent_subtype"))
        object.__setattr__(self, "expected_name", _clean(self.expected_name, "expected_name"))

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.parent_type, self.parent_subtype, self.expected_name)

    def matches(self, parent: TypeId, child_name: str | None) -> bool:
        return (
            _matches(self.parent_type, parent.type)
            and _matches(self.parent_subtype, parent.subtype)
            and _matches(self.expected_name, child_name)
        )

    def matches_parent(self, parent: TypeId) -> bool:
        """Type/subtype half of ``matches``; the expected name is not consulted."""
        return _matches(self.parent_type, parent.type) and _matches(self.parent_subtype, parent.subtype)

    def __str__(self) -> str:
        return f"{self.parent_type}.{self.parent_subtype}[{self.expected_name}]"


@dataclass(frozen=True)
class AttributeSpec:
    """Schema entry for one attribute of a type."""

    name: str
    value_type: str = "string"
    required: bool = False
    allowed_values: frozenset[str] | None = None
    array_allowed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _clean(self.name, "attribute name"))
        value_type = _clean(self.value_type, "value_type").lower()
        if value_type not in VALUE_TYPES:
            raise ValueError(
                f"Unknown value_type {value_type!r} for attribute {self.name!r}; "
                f"expected one of {sorted(VALUE_TYPES)}"
            )
        object.__setattr__(self, "value_type", value_type)
        if self.allowed_values is not None:
            object.__setattr__(self, "allowed_values", frozenset(str(v) for v in self.allowed_values))

    @property
    def attr_subtype(self) -> str:
        return VALUE_TYPES[self.value_type]

    def as_child_rule(self) -> ChildRule:
        return ChildRule("attr", self.attr_subtype, self.name, self.required)


class Resolution(str, Enum):
    """Inheritance state of a TypeDefinition."""

    ROOT = "root"  # no parent
    RESOLVED = "resolved"
    DEFERRED = "deferred"  # some ancestor is not registered (yet)
    CYCLIC = "cyclic"


def merge_rules(direct: Iterable[Any], inherited: Iterable[Any]) -> tuple[Any, ...]:
    """Direct rules first; an inherited rule is dropped when a nearer one has the same key."""
    out: list[Any] = []
    seen: set[tuple[str, str, str]] = set()
    for rule in (*direct, *inherited):
        if rule.key in seen:
            continue
        seen.add(rule.key)
        out.append(rule)
    return tuple(out)


def merge_attributes(
    direct: Iterable[AttributeSpec], inherited: Iterable[AttributeSpec]
) -> tuple[AttributeSpec, ...]:
    out: list[AttributeSpec] = []
    seen: set[str] = set()
    for spec in (*direct, *inherited):
        if spec.name in seen:
            continue
        seen.add(spec.name)
        out.append(spec)
    return tuple(out)


@dataclass(frozen=True)
class TypeDefinition:
    """
    Declaration of one registered kind.

    The ``inherited_*`` fields, ``ancestors`` and ``resolution`` are derived by
    the registry from the parent chain; providers never set them.
    """

    type_id: TypeId
    parent: TypeId | None = None
    description: str = ""
    direct_accepts_children: tuple[ChildRule, ...] = ()
    direct_accepts_parents: tuple[ParentRule, ...] = ()
    attributes: tuple[AttributeSpec, ...] = ()
    scope: str | None = None
    inherited_accepts_children: tuple[ChildRule, ...] = ()
    inherited_accepts_parents: tuple[ParentRule, ...] = ()
    inherited_attributes: tuple[AttributeSpec, ...] = ()
    ancestors: tuple[TypeId, ...] = ()
    resolution: Resolution = Resolution.ROOT
    extended_by: tuple[str, ...] = field(default=(), compare=False)

    @property
    def qualified_name(self) -> str:
        return self.type_id.qualified_name

    @property
    def has_parent(self) -> bool:
        return self.parent is not None

    @property
    def is_resolved(self) -> bool:
        return self.resolution in (Resolution.ROOT, Resolution.RESOLVED)

    @property
    def lineage(self) -> tuple[TypeId, ...]:
        """This type followed by its resolved ancestors, nearest first."""
        return (self.type_id, *self.ancestors)

    @property
    def accepts_children(self) -> tuple[ChildRule, ...]:
        return merge_rules(self.direct_accepts_children, self.inherited_accepts_children)

    @property
    def accepts_parents(self) -> tuple[ParentRule, ...]:
        return merge_rules(self.direct_accepts_parents, self.inherited_accepts_parents)

    @property
    def all_attributes(self) -> tuple[AttributeSpec, ...]:
        return merge_attributes(self.attributes, self.inherited_attributes)

    @property
    def attribute_schema(self) -> dict[str, AttributeSpec]:
        return {spec.name: spec for spec in self.all_attributes}

    def is_a(self, other: TypeId) -> bool:
        return other in self.lineage

    def __str__(self) -> str:
        parent = f" extends {self.parent}" if self.parent else ""
        return f"TypeDefinition[{self.type_id}{parent}, children={len(self.accepts_children)}]"
