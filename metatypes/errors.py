"""
Exception taxonomy for the type registry and constraint engine.

Registration and enforcement failures are raised to the caller that attempted
the change. Inheritance diagnostics (cyclic / unresolved parents) are also
exceptions so they can be raised, but the registry reports them as values
after bootstrap instead of aborting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .registry.types import TypeId


class MetaTypesError(Exception):
    """Base class for all registry and constraint errors."""


class InvalidTypeIdError(MetaTypesError, ValueError):
    """A type id is empty or uses a wildcard where a concrete id is required."""


class RegistrationConflictError(MetaTypesError):
    """A type id or constraint id is already registered."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Already registered: {key}")


class TypeNotFoundError(MetaTypesError, KeyError):
    """A type id is not present in the registry."""

    def __init__(self, type_id: "TypeId", available: list[str] | None = None):
        self.type_id = type_id
        self.available = list(available or [])
        msg = f"Type '{type_id}' not found"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class CyclicInheritanceError(MetaTypesError):
    """A type is (transitively) its own ancestor."""

    def __init__(self, type_id: "TypeId", cycle: tuple["TypeId", ...]):
        self.type_id = type_id
        self.cycle = tuple(cycle)
        path = " -> ".join(str(t) for t in (*self.cycle, self.cycle[0])) if self.cycle else str(type_id)
        super().__init__(f"Cyclic inheritance for {type_id}: {path}")


class UnresolvedParentError(MetaTypesError):
    """A type's parent chain references a type that is not registered."""

    def __init__(self, type_id: "TypeId", missing: "TypeId", *, pending: bool = False):
        self.type_id = type_id
        self.missing = missing
        self.pending = pending
        if pending:
            detail = f"{missing} is registered but inheritance has not been resolved yet"
        else:
            detail = f"{missing} is not registered"
        super().__init__(f"Type {type_id} cannot resolve parent chain: {detail}")


class ProviderDependencyCycleError(MetaTypesError):
    """Provider dependencies form a cycle; there is no valid load order."""

    def __init__(self, provider_ids: list[str]):
        self.provider_ids = sorted(provider_ids)
        super().__init__(
            f"Circular dependency between providers: {', '.join(self.provider_ids)}"
        )


class ProviderLoadError(MetaTypesError):
    """A provider raised while registering its types."""

    def __init__(self, provider_id: str, cause: BaseException):
        self.provider_id = provider_id
        self.cause = cause
        super().__init__(f"Provider '{provider_id}' failed: {cause}")


class PlacementDeniedError(MetaTypesError):
    """A child may not be attached to a parent."""

    def __init__(
        self,
        parent: "TypeId",
        child: "TypeId",
        child_name: str,
        *,
        constraint_id: str | None = None,
        reason: str = "",
        supported: str = "",
    ):
        self.parent = parent
        self.child = child
        self.child_name = child_name
        self.constraint_id = constraint_id
        self.reason = reason
        self.supported = supported
        msg = f"{parent} does not accept child '{child_name}' of type {child}"
        if constraint_id:
            msg += f" (denied by constraint '{constraint_id}')"
        if reason:
            msg += f": {reason}"
        if supported:
            msg += f". {supported}"
        super().__init__(msg)


class ConstraintViolationError(MetaTypesError):
    """A proposed attribute value failed a validation constraint."""

    def __init__(self, constraint_id: str, reason: str, *, attribute: str = "", value: Any = None):
        self.constraint_id = constraint_id
        self.reason = reason
        self.attribute = attribute
        self.value = value
        super().__init__(f"[{constraint_id}] {reason}")
