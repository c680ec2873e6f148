"""Built-in providers for the core taxonomy."""

from __future__ import annotations

from ..registry.provider import TypeProvider
from .attributes import AttributeTypesProvider
from .core import CoreTypesProvider
from .fields import FieldTypesProvider
from .keys import KeyTypesProvider
from .objects import ObjectTypesProvider
from .validators import ValidatorTypesProvider
from .views import ViewTypesProvider

BUILTIN_PROVIDERS: tuple[type[TypeProvider], ...] = (
    CoreTypesProvider,
    AttributeTypesProvider,
    FieldTypesProvider,
    ObjectTypesProvider,
    KeyTypesProvider,
    ValidatorTypesProvider,
    ViewTypesProvider,
)


def builtin_providers() -> list[TypeProvider]:
    """Fresh instances of every built-in provider, in discovery order."""
    return [cls() for cls in BUILTIN_PROVIDERS]


__all__ = [
    "BUILTIN_PROVIDERS",
    "builtin_providers",
    "AttributeTypesProvider",
    "CoreTypesProvider",
    "FieldTypesProvider",
    "KeyTypesProvider",
    "ObjectTypesProvider",
    "ValidatorTypesProvider",
    "ViewTypesProvider",
]
