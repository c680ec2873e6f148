"""View types: presentation hints attached to fields and objects."""

from __future__ import annotations

from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry


class ViewTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="view-types",
            dependencies=frozenset({"core-types", "field-types"}),
            priority=900,
            description="view.base",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type(
            "view.base",
            lambda d: (
                d.description("Base view metadata")
                .inherits_from("metadata.base")
                .accepts_parents("field")
                .accepts_parents("object")
                .accepts_parents("metadata", "base")
                .optional_attribute("label")
                .optional_attribute("width", "int")
            ),
        )
