"""Field types: ``field.base`` and the concrete field kinds, plus field naming and bounds constraints."""

from __future__ import annotations

import re
from typing import Any

from ..constraints.predicates import placement_constraint, validation_constraint
from ..constraints.schema import ValidationConstraint
from ..registry.builder import TypeDefinitionBuilder
from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry

IDENTIFIER = r"^[a-zA-Z][a-zA-Z0-9_]*$"

# subtype -> (description, attributes as (name, value_type))
FIELD_SUBTYPES: dict[str, tuple[str, tuple[tuple[str, str], ...]]] = {
    "string": (
        "String field with length and pattern validation",
        (("pattern", "string"), ("maxLength", "int"), ("minLength", "int")),
    ),
    "int": ("Integer field with range validation", (("minValue", "int"), ("maxValue", "int"))),
    "long": ("Long field with range validation", (("minValue", "long"), ("maxValue", "long"))),
    "short": ("Short field with range validation", (("minValue", "int"), ("maxValue", "int"))),
    "byte": ("Byte field with range validation", (("minValue", "int"), ("maxValue", "int"))),
    "double": (
        "Double field with range and precision validation",
        (("minValue", "double"), ("maxValue", "double"), ("precision", "int")),
    ),
    "float": (
        "Float field with range and precision validation",
        (("minValue", "double"), ("maxValue", "double"), ("precision", "int")),
    ),
    "boolean": ("Boolean field for true/false values", ()),
    "date": ("Date field with format support", (("format", "string"), ("dateFormat", "string"))),
    "class": ("Class field for class references", ()),
    "object": ("Object field referencing another object type", (("objectRef", "string"),)),
    "objectArray": ("Array of objects of a referenced type", (("objectRef", "string"),)),
    "stringArray": ("Array of strings", ()),
}


def _valid_regex(node: Any, attr_name: str, value: Any) -> str | None:
    try:
        re.compile(str(value))
    except re.error as e:
        return f"{attr_name} is not a valid regular expression: {e}"
    return None


def _field_base(d: TypeDefinitionBuilder) -> None:
    d.description("Base field metadata with common field attributes")
    d.inherits_from("metadata.base")
    d.accepts_parents("metadata", "base")
    d.accepts_parents("loader")
    d.accepts_parents("object")
    d.optional_attribute("required", "boolean")
    d.optional_attribute("defaultValue")
    d.optional_attribute("defaultView")
    d.optional_attribute("isOptional", "boolean")
    d.optional_attribute("isReadOnly", "boolean")
    d.accepts_children("validator")
    d.accepts_children("view")


class FieldTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="field-types",
            dependencies=frozenset({"core-types", "attribute-types"}),
            priority=800,
            description=f"field.base + {len(FIELD_SUBTYPES)} concrete field types",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type("field.base", _field_base)
        for subtype, (description, attributes) in FIELD_SUBTYPES.items():

            def build(d: TypeDefinitionBuilder, text=description, attrs=attributes) -> None:
                d.description(text).inherits_from("field.base")
                for name, value_type in attrs:
                    d.optional_attribute(name, value_type)

            registry.register_type(f"field.{subtype}", build)

        registry.add_constraints(
            [
                placement_constraint(
                    "field.name-identifier",
                    "require_child_name",
                    description="Field names must be identifiers",
                    child="field.*",
                    pattern=IDENTIFIER,
                ),
                validation_constraint(
                    "field.max-length-positive",
                    "positive_int",
                    description="maxLength must be a positive integer",
                    target="field.*",
                    attribute="maxLength",
                ),
                validation_constraint(
                    "field.min-length-non-negative",
                    "range",
                    description="minLength must not be negative",
                    target="field.*",
                    attribute="minLength",
                    min=0,
                ),
                ValidationConstraint(
                    constraint_id="field.pattern-compiles",
                    description="pattern must be a valid regular expression",
                    check=_valid_regex,
                    target="field.string",  # type: ignore[arg-type]
                    attribute="pattern",
                ),
            ]
        )
