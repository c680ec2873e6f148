"""
Tests for ConstraintEnforcer.

Key properties:
1. check_value runs schema checks, then validation constraints in order; first failure wins
2. check_placement raises PlacementDeniedError and never changes registry state
3. Checking can be switched off globally or per type family
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from metatypes.constraints import NodeRef, ValidationConstraint, validation_constraint
from metatypes.constraints.enforcer import SCHEMA_ALLOWED_VALUES, SCHEMA_ARRAY, SCHEMA_VALUE_TYPE
from metatypes.errors import ConstraintViolationError, PlacementDeniedError
from metatypes.registry import MetaDataRegistry, TypeId


@dataclass
class FieldNode:
    """Stand-in for a node of a loaded metadata tree."""

    type_id: TypeId
    name: str


@pytest.fixture
def fields(registry: MetaDataRegistry) -> MetaDataRegistry:
    registry.register_type("object.base", lambda d: d.accepts_children("field"))
    registry.register_type(
        "field.base",
        lambda d: d.optional_attribute("required", "boolean").optional_attribute(
            "visibility", allowed_values=["public", "private"]
        ),
    )
    registry.register_type(
        "field.string",
        lambda d: (
            d.inherits_from("field.base")
            .optional_attribute("maxLength", "int")
            .optional_attribute("tags", "stringarray")
            .attribute("aliases", "string", array_allowed=True)
        ),
    )
    return registry


def test_positive_int_constraint(fields: MetaDataRegistry) -> None:
    fields.add_constraint(
        validation_constraint(
            "field.max-length-positive",
            "positive_int",
            target="field.*",
            attribute="maxLength",
        )
    )
    node = FieldNode(TypeId("field", "string"), "email")
    enforcer = fields.enforcer

    with pytest.raises(ConstraintViolationError) as exc_info:
        enforcer.check_value(node, "maxLength", "-5")
    assert exc_info.value.constraint_id == "field.max-length-positive"
    assert exc_info.value.attribute == "maxLength"

    enforcer.check_value(node, "maxLength", "100")
    assert enforcer.is_value_valid(node, "maxLength", 100)


@pytest.mark.parametrize("node", ["field.string", TypeId("field", "string")])
def test_check_value_accepts_bare_type_ids(fields: MetaDataRegistry, node) -> None:
    fields.add_constraint(
        validation_constraint("max-pos", "positive_int", target="field.*", attribute="maxLength")
    )
    enforcer = fields.enforcer

    with pytest.raises(ConstraintViolationError) as exc_info:
        enforcer.check_value(node, "maxLength", "-5")
    assert exc_info.value.constraint_id == "max-pos"

    enforcer.check_value(node, "maxLength", "100")
    assert [v.constraint_id for v in enforcer.violations(node, "maxLength", "0")] == ["max-pos"]
    assert enforcer.is_value_valid(node, "maxLength", 7)


def test_first_failing_constraint_short_circuits(fields: MetaDataRegistry) -> None:
    calls: list[str] = []

    def failing(cid: str):
        def check(node, attr_name, value):
            calls.append(cid)
            return f"{cid} failed"

        return check

    fields.add_constraints(
        [
            ValidationConstraint("first", "first check", failing("first"), attribute="maxLength"),
            ValidationConstraint("second", "second check", failing("second"), attribute="maxLength"),
        ]
    )
    node = NodeRef.of("field.string", "email")

    with pytest.raises(ConstraintViolationError) as exc_info:
        fields.enforcer.check_value(node, "maxLength", "10")
    assert exc_info.value.constraint_id == "first"
    assert calls == ["first"]

    violations = fields.enforcer.violations(node, "maxLength", "10")
    assert [v.constraint_id for v in violations] == ["first", "second"]


def test_constraint_targets_descendants(fields: MetaDataRegistry) -> None:
    fields.add_constraint(
        validation_constraint("base.length", "length", target="field.base", attribute="*", max=5)
    )
    assert not fields.enforcer.is_value_valid(NodeRef.of("field.string"), "maxLength", "123456")
    assert fields.enforcer.is_value_valid(NodeRef.of("object.base"), "extends", "123456")


def test_constraint_applies_predicate(fields: MetaDataRegistry) -> None:
    fields.add_constraint(
        ValidationConstraint(
            "id.upper",
            "id fields must be upper case",
            lambda node, attr, value: None if str(value).isupper() else "not upper case",
            applies=lambda node, attr: node.name == "id",
        )
    )
    assert not fields.enforcer.is_value_valid(NodeRef.of("field.string", "id"), "defaultValue", "abc")
    assert fields.enforcer.is_value_valid(NodeRef.of("field.string", "name"), "defaultValue", "abc")


def test_schema_value_type(fields: MetaDataRegistry) -> None:
    node = NodeRef.of("field.string")
    enforcer = fields.enforcer

    with pytest.raises(ConstraintViolationError) as exc_info:
        enforcer.check_value(node, "maxLength", "ten")
    assert exc_info.value.constraint_id == SCHEMA_VALUE_TYPE

    assert not enforcer.is_value_valid(node, "maxLength", str(2**40))
    assert not enforcer.is_value_valid(node, "required", "maybe")
    assert enforcer.is_value_valid(node, "required", "true")
    assert enforcer.is_value_valid(node, "required", False)


def test_schema_allowed_values(fields: MetaDataRegistry) -> None:
    node = NodeRef.of("field.string")
    with pytest.raises(ConstraintViolationError) as exc_info:
        fields.enforcer.check_value(node, "visibility", "protected")
    assert exc_info.value.constraint_id == SCHEMA_ALLOWED_VALUES
    fields.enforcer.check_value(node, "visibility", "private")


def test_schema_arrays(fields: MetaDataRegistry) -> None:
    node = NodeRef.of("field.string")
    enforcer = fields.enforcer

    with pytest.raises(ConstraintViolationError) as exc_info:
        enforcer.check_value(node, "maxLength", [1, 2])
    assert exc_info.value.constraint_id == SCHEMA_ARRAY

    assert enforcer.is_value_valid(node, "aliases", ["a", "b"])
    assert enforcer.is_value_valid(node, "tags", ["x", "y"])
    assert enforcer.is_value_valid(node, "tags", "x,y")
    assert not enforcer.is_value_valid(node, "tags", [1, 2])


def test_undeclared_attribute_only_runs_constraints(fields: MetaDataRegistry) -> None:
    assert fields.enforcer.is_value_valid(NodeRef.of("field.string"), "unknownAttr", object())


def test_check_placement_allowed_and_denied(fields: MetaDataRegistry) -> None:
    enforcer = fields.enforcer
    parent = NodeRef.of("object.base", "Customer")
    generation = fields.generation

    enforcer.check_placement(parent, "field", "string", "email")
    assert enforcer.can_place("object.base", "field", "string", "email")

    with pytest.raises(PlacementDeniedError) as exc_info:
        enforcer.check_placement(parent, "object", "base", "nested")
    error = exc_info.value
    assert error.parent == TypeId("object", "base")
    assert error.child == TypeId("object", "base")
    assert error.constraint_id is None
    assert "field.*[*]" in error.supported
    assert fields.generation == generation


def test_check_add_child(fields: MetaDataRegistry) -> None:
    parent = NodeRef.of("object.base", "Customer")
    fields.enforcer.check_add_child(parent, NodeRef.of("field.string", "email"))
    with pytest.raises(PlacementDeniedError):
        fields.enforcer.check_add_child(NodeRef.of("field.string", "email"), parent)


def test_checking_switches(fields: MetaDataRegistry) -> None:
    enforcer = fields.enforcer
    node = NodeRef.of("field.string")

    enforcer.set_checking_enabled(False, family="field")
    assert not enforcer.is_checking_enabled("field")
    assert enforcer.is_checking_enabled("object")
    assert enforcer.is_value_valid(node, "maxLength", "ten")
    assert enforcer.can_place("field.string", "object", "base", "x")
    assert not enforcer.can_place("object.base", "object", "base", "x")

    enforcer.set_checking_enabled(True, family="field")
    assert not enforcer.is_value_valid(node, "maxLength", "ten")

    enforcer.set_checking_enabled(False)
    assert not enforcer.enabled
    assert enforcer.can_place("object.base", "object", "base", "x")
    enforcer.set_checking_enabled(True)
    assert enforcer.is_checking_enabled()


def test_enforcer_rejects_untyped_targets(fields: MetaDataRegistry) -> None:
    with pytest.raises(TypeError):
        fields.enforcer.check_value(object(), "maxLength", "1")
