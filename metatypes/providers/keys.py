"""Key types: primary, foreign and secondary keys declared on objects."""

from __future__ import annotations

from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry


class KeyTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="key-types",
            dependencies=frozenset({"core-types", "object-types"}),
            priority=650,
            description="key.base + primary, foreign and secondary keys",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type(
            "key.base",
            lambda d: (
                d.description("Base key metadata")
                .inherits_from("metadata.base")
                .accepts_parents("object")
                .accepts_parents("metadata")
                .required_attribute("keys", "stringarray")
            ),
        )
        registry.register_type(
            "key.primary",
            lambda d: d.description("Primary key").inherits_from("key.base"),
        )
        registry.register_type(
            "key.secondary",
            lambda d: d.description("Secondary (alternate) key").inherits_from("key.base"),
        )
        registry.register_type(
            "key.foreign",
            lambda d: (
                d.description("Foreign key referencing another object")
                .inherits_from("key.base")
                .required_attribute("foreignObjectRef")
                .optional_attribute("foreignKey")
            ),
        )
