"""Validator types attached to fields and objects."""

from __future__ import annotations

from ..constraints.predicates import validation_constraint
from ..registry.builder import TypeDefinitionBuilder
from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry


def _validator_base(d: TypeDefinitionBuilder) -> None:
    d.description("Base validator metadata")
    d.inherits_from("metadata.base")
    d.accepts_parents("field")
    d.accepts_parents("object")
    d.accepts_parents("metadata", "base")
    d.optional_attribute("msg")


class ValidatorTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="validator-types",
            dependencies=frozenset({"core-types", "field-types"}),
            priority=700,
            description="validator.base + required, regex, numeric, length and array validators",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type("validator.base", _validator_base)
        registry.register_type(
            "validator.required",
            lambda d: d.description("Value must be present").inherits_from("validator.base"),
        )
        registry.register_type(
            "validator.regex",
            lambda d: (
                d.description("Value must match a regular expression")
                .inherits_from("validator.base")
                .required_attribute("mask")
            ),
        )
        registry.register_type(
            "validator.numeric",
            lambda d: d.description("Value must be numeric").inherits_from("validator.base"),
        )
        registry.register_type(
            "validator.length",
            lambda d: (
                d.description("Value length must be within min/max")
                .inherits_from("validator.base")
                .optional_attribute("min", "int")
                .optional_attribute("max", "int")
            ),
        )
        registry.register_type(
            "validator.array",
            lambda d: (
                d.description("Array size must be within minSize/maxSize")
                .inherits_from("validator.base")
                .optional_attribute("minSize", "int")
                .optional_attribute("maxSize", "int")
            ),
        )
        registry.add_constraints(
            [
                validation_constraint(
                    "validator.length-min-non-negative",
                    "range",
                    description="Length validator minimum must not be negative",
                    target="validator.length",
                    attribute="min",
                    min=0,
                ),
                validation_constraint(
                    "validator.array-min-size-non-negative",
                    "range",
                    description="Array validator minimum size must not be negative",
                    target="validator.array",
                    attribute="minSize",
                    min=0,
                ),
            ]
        )
