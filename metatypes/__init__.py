"""metatypes - runtime type registry and constraint engine for metadata trees."""

__version__ = "0.1.0"

# registry must be imported before constraints (constraints.schema is loaded by it)
from .registry import (
    AttributeSpec,
    BootstrapReport,
    ChildRule,
    MetaDataRegistry,
    ParentRule,
    ProviderMetadata,
    RegistryHealthReport,
    Resolution,
    ScopeHandle,
    TypeDefinition,
    TypeDefinitionBuilder,
    TypeId,
    TypePattern,
    TypeProvider,
    bootstrap_registry,
    get_default_registry,
    register_provider,
    reset_default_registry,
    set_default_registry,
)
from .constraints import (
    ConstraintEnforcer,
    ConstraintFlattener,
    NodeRef,
    PlacementConstraint,
    PlacementContext,
    ValidationConstraint,
    load_rulesets,
    placement_constraint,
    validation_constraint,
)
from .errors import (
    ConstraintViolationError,
    CyclicInheritanceError,
    InvalidTypeIdError,
    MetaTypesError,
    PlacementDeniedError,
    ProviderDependencyCycleError,
    ProviderLoadError,
    RegistrationConflictError,
    TypeNotFoundError,
    UnresolvedParentError,
)

__all__ = [
    "__version__",
    "AttributeSpec",
    "BootstrapReport",
    "ChildRule",
    "MetaDataRegistry",
    "ParentRule",
    "ProviderMetadata",
    "RegistryHealthReport",
    "Resolution",
    "ScopeHandle",
    "TypeDefinition",
    "TypeDefinitionBuilder",
    "TypeId",
    "TypePattern",
    "TypeProvider",
    "bootstrap_registry",
    "get_default_registry",
    "register_provider",
    "reset_default_registry",
    "set_default_registry",
    "ConstraintEnforcer",
    "ConstraintFlattener",
    "NodeRef",
    "PlacementConstraint",
    "PlacementContext",
    "ValidationConstraint",
    "load_rulesets",
    "placement_constraint",
    "validation_constraint",
    "ConstraintViolationError",
    "CyclicInheritanceError",
    "InvalidTypeIdError",
    "MetaTypesError",
    "PlacementDeniedError",
    "ProviderDependencyCycleError",
    "ProviderLoadError",
    "RegistrationConflictError",
    "TypeNotFoundError",
    "UnresolvedParentError",
]
