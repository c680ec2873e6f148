from __future__ import annotations

from pathlib import Path

import pytest

from metatypes.constraints import (
    PREDICATES,
    PlacementConstraint,
    ValidationConstraint,
    build_constraints,
    load_ruleset,
    load_rulesets,
    placement_constraint,
    validation_constraint,
)
from metatypes.constraints.predicates import known_predicates
from metatypes.errors import ConstraintViolationError, PlacementDeniedError, RegistrationConflictError
from metatypes.registry import MetaDataRegistry, TypeId


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


NAMING_RULESET = """
ruleset_id = "ruleset/naming"
version = 1
description = "Naming conventions"

[[constraints]]
id = "field.no-leading-digit"
kind = "placement"
description = "Field names may not start with a digit"
selector = { child = "field.base" }
predicate = { name = "deny_child_name", params = { pattern = "^\\\\d" } }

[[constraints]]
id = "field.max-length-positive"
description = "maxLength must be a positive integer"
selector = { target = "field.*", attribute = "maxLength" }
predicate = { name = "positive_int" }
"""


def test_load_ruleset(tmp_path: Path) -> None:
    path = tmp_path / "naming.toml"
    _write(path, NAMING_RULESET)

    ruleset = load_ruleset(path)

    assert ruleset.ruleset_id == "ruleset/naming"
    assert ruleset.version == 1
    assert ruleset.description == "Naming conventions"
    assert [c.id for c in ruleset.constraints] == ["field.no-leading-digit", "field.max-length-positive"]
    # kind defaults to the predicate's kind
    assert ruleset.constraints[1].kind == "validation"
    assert ruleset.constraints[0].predicate.params == {"pattern": "^\\d"}


def test_ruleset_constraints_enforced(tmp_path: Path, registry: MetaDataRegistry) -> None:
    path = tmp_path / "naming.toml"
    _write(path, NAMING_RULESET)
    registry.register_type("object.base", lambda d: d.accepts_children("field"))
    registry.register_type("field.base")
    registry.register_type("field.string", lambda d: d.inherits_from("field.base"))

    constraints = build_constraints(load_ruleset(path))
    assert isinstance(constraints[0], PlacementConstraint)
    assert isinstance(constraints[1], ValidationConstraint)
    assert registry.add_constraints(constraints) == 2

    with pytest.raises(PlacementDeniedError):
        registry.enforcer.check_placement("object.base", "field", "string", "1stName")
    registry.enforcer.check_placement("object.base", "field", "string", "firstName")

    with pytest.raises(ConstraintViolationError) as exc_info:
        registry.enforcer.check_value(TypeId("field", "string"), "maxLength", "0")
    assert exc_info.value.constraint_id == "field.max-length-positive"


def test_load_rulesets_in_file_order(tmp_path: Path) -> None:
    first = tmp_path / "a.toml"
    second = tmp_path / "b.toml"
    _write(first, NAMING_RULESET)
    _write(
        second,
        """
ruleset_id = "ruleset/views"
version = 2

[[constraints]]
id = "view.label-length"
selector = { target = "view.*", attribute = "label" }
predicate = { name = "length", params = { max = 40 } }
""",
    )
    constraints = load_rulesets([first, second])
    assert [c.constraint_id for c in constraints] == [
        "field.no-leading-digit",
        "field.max-length-positive",
        "view.label-length",
    ]


@pytest.mark.parametrize(
    "body, message",
    [
        ('version = 1\n', "ruleset_id"),
        ('ruleset_id = "r"\nversion = 0\n', "version"),
        (
            'ruleset_id = "r"\nversion = 1\n[[constraints]]\nid = "x"\npredicate = { name = "nope" }\n',
            "unknown predicate",
        ),
        (
            'ruleset_id = "r"\nversion = 1\n[[constraints]]\nid = "x"\nkind = "placement"\n'
            'predicate = { name = "regex", params = { pattern = "a" } }\n',
            "validation predicate",
        ),
        ('ruleset_id = "r"\nversion = 1\n[[constraints]]\npredicate = { name = "required" }\n', "needs an id"),
        ("not toml = = =", "Invalid ruleset TOML"),
    ],
)
def test_invalid_rulesets(tmp_path: Path, body: str, message: str) -> None:
    path = tmp_path / "bad.toml"
    _write(path, body)
    with pytest.raises(ValueError) as exc_info:
        load_ruleset(path)
    assert message in str(exc_info.value)


def test_bad_predicate_params_rejected_at_build() -> None:
    with pytest.raises(ValueError):
        validation_constraint("x", "regex", pattern="(")
    with pytest.raises(ValueError):
        validation_constraint("x", "range")
    with pytest.raises(ValueError):
        placement_constraint("x", "positive_int")


def test_constraint_ids_unique_across_kinds(registry: MetaDataRegistry) -> None:
    registry.add_constraint(placement_constraint("shared", "deny_child_name", pattern="x"))
    with pytest.raises(RegistrationConflictError):
        registry.add_constraint(validation_constraint("shared", "required"))
    assert len(registry.get_all_validation_constraints()) == 0


def test_add_constraint_rejects_non_constraints(registry: MetaDataRegistry) -> None:
    with pytest.raises(TypeError):
        registry.add_constraint("not a constraint")  # type: ignore[arg-type]


def test_validation_predicates() -> None:
    node = object()
    enum = PREDICATES["enum"]({"values": ["Asc", "Desc"], "case_sensitive": False})
    assert enum(node, "order", "asc") is None
    assert enum(node, "order", "up") is not None

    regex = PREDICATES["regex"]({"pattern": r"[a-z]+"})
    assert regex(node, "code", "abc") is None
    assert regex(node, "code", "abc1") is not None
    assert regex(node, "code", ["ab", "c"]) is None

    required = PREDICATES["required"]({})
    assert required(node, "name", "  ") == "name is required"
    assert required(node, "name", []) == "name is required"
    assert required(node, "name", "x") is None

    length = PREDICATES["length"]({"min": 2, "max": 3})
    assert length(node, "code", "a") is not None
    assert length(node, "code", "abcd") is not None
    assert length(node, "code", "abc") is None

    in_range = PREDICATES["range"]({"min": 0, "max": 10})
    assert in_range(node, "n", "-1") is not None
    assert in_range(node, "n", 10) is None
    assert in_range(node, "n", "ten") is not None
    assert in_range(node, "n", "") is None


def test_known_predicates() -> None:
    assert known_predicates("placement") == ["deny_child_name", "deny_child_type", "require_child_name"]
    assert "positive_int" in known_predicates("validation")
    assert set(known_predicates()) == set(PREDICATES)
