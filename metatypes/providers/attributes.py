"""Attribute types: ``attr.base`` plus one subtype per attribute value type."""

from __future__ import annotations

from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry

ATTRIBUTE_SUBTYPES: dict[str, str] = {
    "string": "String attribute for text values",
    "int": "Integer attribute for numeric values",
    "long": "Long attribute for large numeric values",
    "double": "Double attribute for decimal values",
    "boolean": "Boolean attribute for true/false values",
    "class": "Class attribute for class references",
    "properties": "Properties attribute for key-value pairs",
    "stringarray": "String array attribute for collections of strings",
}

# Attributes may be attached to any of these families
ATTRIBUTE_PARENTS = ("metadata", "loader", "field", "object", "key", "validator", "view", "attr")


class AttributeTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="attribute-types",
            dependencies=frozenset({"core-types"}),
            priority=750,
            description=f"attr.base + {len(ATTRIBUTE_SUBTYPES)} concrete attribute types",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        def attr_base(d):
            d.description("Base attribute metadata").inherits_from("metadata.base")
            for family in ATTRIBUTE_PARENTS:
                d.accepts_parents(family)

        registry.register_type("attr.base", attr_base)
        for subtype, description in ATTRIBUTE_SUBTYPES.items():
            registry.register_type(
                f"attr.{subtype}",
                lambda d, text=description: d.description(text).inherits_from("attr.base"),
            )
