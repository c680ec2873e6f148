"""
Draft builders for type definitions.

TypeDefinitionBuilder configures a new type inside ``register_type``.
TypeExtensionBuilder is what ``find_type`` hands to a later provider: it
collects additions and, on commit, the registry swaps in a new merged
TypeDefinition value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from .types import AttributeSpec, ChildRule, ParentRule, TypeDefinition, TypeId, WILDCARD

if TYPE_CHECKING:
    from .registry import MetaDataRegistry


class _RuleSet:
    """Ordered rule/attribute collection; re-declaring a key replaces the earlier entry."""

    def __init__(self) -> None:
        self.children: dict[tuple[str, str, str], ChildRule] = {}
        self.parents: dict[tuple[str, str, str], ParentRule] = {}
        self.attributes: dict[str, AttributeSpec] = {}

    def add_child(self, rule: ChildRule) -> None:
        self.children[rule.key] = rule

    def add_parent(self, rule: ParentRule) -> None:
        self.parents[rule.key] = rule

    def add_attribute(self, spec: AttributeSpec) -> None:
        self.attributes[spec.name] = spec
        self.add_child(spec.as_child_rule())


class _RuleMixin:
    _rules: _RuleSet

    def accepts_children(
        self,
        child_type: str = WILDCARD,
        child_subtype: str = WILDCARD,
        name: str = WILDCARD,
        *,
        required: bool = False,
    ):
        self._rules.add_child(ChildRule(child_type, child_subtype, name, required))
        return self

    def accepts_named_children(self, child_type: str, child_subtype: str, name: str):
        return self.accepts_children(child_type, child_subtype, name)

    def required_child(self, child_type: str, child_subtype: str, name: str):
        return self.accepts_children(child_type, child_subtype, name, required=True)

    def accepts_parents(
        self,
        parent_type: str = WILDCARD,
        parent_subtype: str = WILDCARD,
        expected_name: str = WILDCARD,
    ):
        self._rules.add_parent(ParentRule(parent_type, parent_subtype, expected_name))
        return self

    def attribute(
        self,
        name: str,
        value_type: str = "string",
        *,
        required: bool = False,
        allowed_values: Iterable[str] | None = None,
        array_allowed: bool = False,
    ):
        """Declare an attribute; the type then also accepts ``attr.<value_type>`` named ``name``."""
        self._rules.add_attribute(
            AttributeSpec(
                name=name,
                value_type=value_type,
                required=required,
                allowed_values=frozenset(allowed_values) if allowed_values is not None else None,
                array_allowed=array_allowed,
            )
        )
        return self

    def optional_attribute(self, name: str, value_type: str = "string", **kwargs):
        return self.attribute(name, value_type, required=False, **kwargs)

    def required_attribute(self, name: str, value_type: str = "string", **kwargs):
        return self.attribute(name, value_type, required=True, **kwargs)

    def optional_attributes(self, value_type: str, *names: str):
        for name in names:
            self.attribute(name, value_type)
        return self


class TypeDefinitionBuilder(_RuleMixin):
    """Mutable draft of a TypeDefinition; never visible to readers."""

    def __init__(self, type_id: TypeId | str, *, description: str = "", parent: TypeId | str | None = None):
        self.type_id = TypeId.parse(type_id)
        self._description = description
        self._parent = TypeId.parse(parent) if parent is not None else None
        self._rules = _RuleSet()

    @classmethod
    def from_definition(cls, definition: TypeDefinition) -> TypeDefinitionBuilder:
        builder = cls(definition.type_id, description=definition.description, parent=definition.parent)
        for rule in definition.direct_accepts_children:
            builder._rules.add_child(rule)
        for rule in definition.direct_accepts_parents:
            builder._rules.add_parent(rule)
        for spec in definition.attributes:
            builder._rules.attributes[spec.name] = spec
        return builder

    def description(self, text: str) -> TypeDefinitionBuilder:
        self._description = text or ""
        return self

    def inherits_from(self, parent: TypeId | str, parent_subtype: str | None = None) -> TypeDefinitionBuilder:
        """Set the parent: ``inherits_from("field.base")`` or ``inherits_from("field", "base")``."""
        if parent_subtype is not None:
            self._parent = TypeId(str(parent), parent_subtype)
        else:
            self._parent = TypeId.parse(parent)
        return self

    def build(self, scope: str | None = None) -> TypeDefinition:
        return TypeDefinition(
            type_id=self.type_id,
            parent=self._parent,
            description=self._description,
            direct_accepts_children=tuple(self._rules.children.values()),
            direct_accepts_parents=tuple(self._rules.parents.values()),
            attributes=tuple(self._rules.attributes.values()),
            scope=scope,
        )

    def __repr__(self) -> str:
        return (
            f"TypeDefinitionBuilder[{self.type_id}, children={len(self._rules.children)}, "
            f"parents={len(self._rules.parents)}, attributes={len(self._rules.attributes)}]"
        )


@dataclass(frozen=True)
class TypeExtension:
    """Additions one scope contributed to an existing type."""

    scope: str | None
    children: tuple[ChildRule, ...] = ()
    parents: tuple[ParentRule, ...] = ()
    attributes: tuple[AttributeSpec, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.children or self.parents or self.attributes)


class TypeExtensionBuilder(_RuleMixin):
    """
    Extension draft returned by ``MetaDataRegistry.find_type``.

    Nothing is visible to readers until ``commit()``; used as a context
    manager it commits on a clean exit and discards on error.
    """

    def __init__(self, registry: "MetaDataRegistry", existing: TypeDefinition):
        self._registry = registry
        self._existing = existing
        self._rules = _RuleSet()
        self._committed = False

    @property
    def type_id(self) -> TypeId:
        return self._existing.type_id

    @property
    def description(self) -> str:
        return self._existing.description

    @property
    def parent(self) -> TypeId | None:
        return self._existing.parent

    def to_extension(self, scope: str | None) -> TypeExtension:
        return TypeExtension(
            scope=scope,
            children=tuple(self._rules.children.values()),
            parents=tuple(self._rules.parents.values()),
            attributes=tuple(self._rules.attributes.values()),
        )

    def commit(self, scope: str | None = None) -> TypeDefinition:
        """Publish the additions; returns the new stored definition."""
        if self._committed:
            raise RuntimeError(f"Extension of {self.type_id} already committed")
        definition = self._registry._commit_extension(self.type_id, self, scope)
        self._committed = True
        return definition

    def __enter__(self) -> TypeExtensionBuilder:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and not self._committed:
            self.commit()
