"""Object types: ``object.base`` and the map, pojo and proxy object kinds."""

from __future__ import annotations

from ..constraints.predicates import placement_constraint
from ..registry.builder import TypeDefinitionBuilder
from ..registry.provider import ProviderMetadata, TypeProvider
from ..registry.registry import MetaDataRegistry

# Package-qualified identifier: com.example.Customer
QUALIFIED_IDENTIFIER = r"^[a-zA-Z][a-zA-Z0-9_]*(\.[a-zA-Z][a-zA-Z0-9_]*)*$"


def _object_base(d: TypeDefinitionBuilder) -> None:
    d.description("Base object metadata with common object attributes")
    d.inherits_from("metadata.base")
    d.accepts_parents("metadata", "base")
    d.accepts_parents("loader")
    d.accepts_parents("object")
    d.optional_attribute("extends")
    d.optional_attribute("implements")
    d.optional_attribute("isInterface", "boolean")
    d.optional_attribute("description")
    d.optional_attribute("objectRef")
    for family in ("field", "object", "key", "validator", "view"):
        d.accepts_children(family)


class ObjectTypesProvider(TypeProvider):
    @property
    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            provider_id="object-types",
            dependencies=frozenset({"core-types", "field-types"}),
            priority=600,
            description="object.base + map, pojo and proxy object types",
        )

    def register_types(self, registry: MetaDataRegistry) -> None:
        registry.register_type("object.base", _object_base)
        registry.register_type(
            "object.map",
            lambda d: d.description("Map-backed object with key-value field access").inherits_from("object.base"),
        )
        registry.register_type(
            "object.pojo",
            lambda d: (
                d.description("Class-backed object with attribute access")
                .inherits_from("object.base")
                .optional_attribute("className")
                .optional_attribute("packageName")
            ),
        )
        registry.register_type(
            "object.proxy",
            lambda d: (
                d.description("Proxy object implementing an interface")
                .inherits_from("object.base")
                .optional_attribute("object")
                .optional_attribute("proxyObject")
                .optional_attribute("interfaceName")
            ),
        )
        registry.add_constraint(
            placement_constraint(
                "object.name-identifier",
                "require_child_name",
                description="Object names must be (package-qualified) identifiers",
                child="object.*",
                pattern=QUALIFIED_IDENTIFIER,
            )
        )
