"""
Type provider SPI and the in-process provider registry.

A provider is one module's unit of registration. Bootstrap orders providers
by their declared dependencies and priority, then calls ``register_types``
on each.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import MetaDataRegistry


@dataclass(frozen=True)
class ProviderMetadata:
    """Static metadata about a provider."""

    provider_id: str  # e.g., "field-types"
    dependencies: frozenset[str] = field(default_factory=frozenset)
    priority: int = 100  # lower loads first among independent providers
    description: str = ""

    def __post_init__(self) -> None:
        pid = str(self.provider_id or "").strip()
        if not pid:
            raise ValueError("provider_id is required")
        object.__setattr__(self, "provider_id", pid)
        object.__setattr__(self, "dependencies", frozenset(str(d).strip() for d in self.dependencies))


class TypeProvider(ABC):
    """
    Base class for type providers.

    Subclasses declare ``metadata`` and populate the registry in
    ``register_types``. Raising from ``register_types`` rolls back that
    provider's registrations; other providers still load.
    """

    @property
    @abstractmethod
    def metadata(self) -> ProviderMetadata:
        """Return static provider metadata."""
        ...

    @abstractmethod
    def register_types(self, registry: "MetaDataRegistry") -> None:
        """Register (or extend) types and constraints."""
        ...

    def get_provider_id(self) -> str:
        return self.metadata.provider_id

    def get_dependencies(self) -> frozenset[str]:
        return self.metadata.dependencies

    def get_priority(self) -> int:
        return self.metadata.priority

    def get_description(self) -> str:
        return self.metadata.description

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.metadata.provider_id!r})"


# Global registry: provider id → provider instance
_PROVIDERS: dict[str, TypeProvider] = {}


def register_provider(provider: TypeProvider) -> TypeProvider:
    """
    Register a provider for discovery by bootstrap.

    Re-registering an id replaces the earlier provider.
    """
    _PROVIDERS[provider.metadata.provider_id] = provider
    return provider


def get_provider(provider_id: str) -> TypeProvider | None:
    return _PROVIDERS.get(provider_id)


def list_providers() -> list[TypeProvider]:
    """Registered providers in registration order."""
    return list(_PROVIDERS.values())


def clear_providers() -> None:
    """Clear all registered providers (for testing)."""
    _PROVIDERS.clear()
