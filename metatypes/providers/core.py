"""Root of the taxonomy: ``metadata.base`` and the loader types."""

from __future__ import annotations

import logging

from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry

logger = logging.getLogger(__name__)

TYPE_METADATA = "metadata"
TYPE_LOADER = "loader"
SUBTYPE_BASE = "base"

# Families a loader holds at its top level
LOADER_CHILD_FAMILIES = ("object", "field", "key", "validator", "view")


class CoreTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="core-types",
            priority=0,
            description="metadata.base root type and loader types",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type(
            "metadata.base",
            lambda d: d.description("Root of every metadata type; carries attributes").accepts_children("attr"),
        )

        def loader_base(d):
            d.description("Base loader: the root container of a metadata tree")
            d.inherits_from("metadata.base")
            for family in LOADER_CHILD_FAMILIES:
                d.accepts_children(family)
            d.optional_attribute("package")

        registry.register_type("loader.base", loader_base)
        registry.register_type(
            "loader.simple",
            lambda d: d.description("In-memory loader").inherits_from("loader.base"),
        )
        logger.debug("Registered core types")
