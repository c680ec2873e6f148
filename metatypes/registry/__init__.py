"""
Type registry: type ids, definitions, providers and bootstrap.
"""

from __future__ import annotations

from .types import (
    WILDCARD,
    AttributeSpec,
    ChildRule,
    ParentRule,
    Resolution,
    TypeDefinition,
    TypeId,
    TypePattern,
)
from .builder import TypeDefinitionBuilder, TypeExtension, TypeExtensionBuilder
from .health import RegistryHealthReport
from .provider import (
    ProviderMetadata,
    TypeProvider,
    clear_providers,
    get_provider,
    list_providers,
    register_provider,
)
from .registry import (
    MetaDataRegistry,
    RegistrySnapshot,
    RegistryStats,
    ScopeHandle,
    get_default_registry,
    reset_default_registry,
    set_default_registry,
)
from .bootstrap import (
    DEFAULT_ENTRY_POINT_GROUP,
    BootstrapReport,
    bootstrap_registry,
    discover_providers,
    order_providers,
)

__all__ = [
    "WILDCARD",
    "AttributeSpec",
    "ChildRule",
    "ParentRule",
    "Resolution",
    "TypeDefinition",
    "TypeId",
    "TypePattern",
    "TypeDefinitionBuilder",
    "TypeExtension",
    "TypeExtensionBuilder",
    "RegistryHealthReport",
    "ProviderMetadata",
    "TypeProvider",
    "clear_providers",
    "get_provider",
    "list_providers",
    "register_provider",
    "MetaDataRegistry",
    "RegistrySnapshot",
    "RegistryStats",
    "ScopeHandle",
    "get_default_registry",
    "reset_default_registry",
    "set_default_registry",
    "DEFAULT_ENTRY_POINT_GROUP",
    "BootstrapReport",
    "bootstrap_registry",
    "discover_providers",
    "order_providers",
]
