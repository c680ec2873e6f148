"""
MetaDataRegistry: the central store of type definitions.

Readers never take a lock. All state lives in one immutable ``RegistrySnapshot``
snapshot; mutations copy what they change under ``self._lock`` and publish
a new snapshot with a single attribute assignment. Every published change
bumps ``generation`` so derived caches (the constraint flattener) know to
rebuild.

Inheritance is resolved in two phases. A type whose parent chain is complete
and resolved is resolved at registration. Otherwise it is DEFERRED until
``resolve_deferred_inheritance`` runs (bootstrap calls it once after all
providers), and whatever is still unresolved afterwards is reported by
``unresolved_types`` and ``validate_consistency``.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from ..constraints.schema import PlacementConstraint, ValidationConstraint
from ..errors import (
    CyclicInheritanceError,
    RegistrationConflictError,
    TypeNotFoundError,
    UnresolvedParentError,
)
from .builder import TypeDefinitionBuilder, TypeExtension, TypeExtensionBuilder
from .health import RegistryHealthReport
from .types import (
    AttributeSpec,
    ChildRule,
    Resolution,
    TypeDefinition,
    TypeId,
    merge_attributes,
    merge_rules,
)

if TYPE_CHECKING:
    from ..constraints.enforcer import ConstraintEnforcer
    from ..constraints.flattener import ConstraintFlattener
    from .bootstrap import BootstrapReport
    from .provider import TypeProvider

logger = logging.getLogger(__name__)

# Base types every complete taxonomy is expected to carry
CORE_BASE_TYPES: tuple[str, ...] = ("field.base", "object.base", "attr.base", "validator.base", "key.base")


@dataclass(frozen=True)
class ScopeHandle:
    """Tag grouping the registrations of one loadable/unloadable module."""

    name: str

    def __post_init__(self) -> None:
        if not str(self.name or "").strip():
            raise ValueError("scope name is required")

    def bind(self, owner: Any, registry: "MetaDataRegistry") -> weakref.finalize:
        """Queue this scope for release from ``registry`` once ``owner`` is garbage collected (best effort)."""
        return weakref.finalize(owner, registry.schedule_release, self)

    def __str__(self) -> str:
        return self.name


ScopeLike = ScopeHandle | str | None


def _scope_name(scope: ScopeLike) -> str | None:
    if scope is None:
        return None
    if isinstance(scope, ScopeHandle):
        return scope.name
    return str(scope).strip() or None


@dataclass(frozen=True)
class RegistryStats:
    type_count: int
    families: dict[str, int]
    placement_constraints: int
    validation_constraints: int
    unresolved: int
    extended: int
    generation: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_count": self.type_count,
            "families": dict(self.families),
            "placement_constraints": self.placement_constraints,
            "validation_constraints": self.validation_constraints,
            "unresolved": self.unresolved,
            "extended": self.extended,
            "generation": self.generation,
        }


@dataclass(frozen=True)
class RegistrySnapshot:
    """One published registry state. Never mutated; writers copy the dicts they change."""

    generation: int = 0
    declared: dict[TypeId, TypeDefinition] = field(default_factory=dict)
    extensions: dict[TypeId, tuple[TypeExtension, ...]] = field(default_factory=dict)
    types: dict[TypeId, TypeDefinition] = field(default_factory=dict)
    placement: tuple[PlacementConstraint, ...] = ()
    validation: tuple[ValidationConstraint, ...] = ()
    constraint_scopes: dict[str, str | None] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Inheritance resolution
# ---------------------------------------------------------------------------


def _walk(
    definition: TypeDefinition, types: dict[TypeId, TypeDefinition]
) -> tuple[list[TypeDefinition], tuple[TypeId, ...], TypeId | None]:
    """
    Follow parent pointers from ``definition``.

    Returns (ancestors nearest first, cycle members, first missing ancestor).
    At most one of the last two is set.
    """
    chain: list[TypeDefinition] = []
    seen: list[TypeId] = [definition.type_id]
    current = definition
    while current.parent is not None:
        pid = current.parent
        if pid in seen:
            return chain, tuple(seen[seen.index(pid):]), None
        parent = types.get(pid)
        if parent is None:
            return chain, (), pid
        chain.append(parent)
        seen.append(pid)
        current = parent
    return chain, (), None


def _unresolved(definition: TypeDefinition, resolution: Resolution) -> TypeDefinition:
    return replace(
        definition,
        inherited_accepts_children=(),
        inherited_accepts_parents=(),
        inherited_attributes=(),
        ancestors=(),
        resolution=resolution,
    )


def _resolve(definition: TypeDefinition, types: dict[TypeId, TypeDefinition]) -> TypeDefinition:
    """Compute the inherited view of ``definition`` against the current ``types``."""
    chain, cycle, missing = _walk(definition, types)
    if cycle:
        return _unresolved(definition, Resolution.CYCLIC)
    if missing is not None:
        return _unresolved(definition, Resolution.DEFERRED)
    if not chain:
        return _unresolved(definition, Resolution.ROOT)
    if any(not ancestor.is_resolved for ancestor in chain):
        return _unresolved(definition, Resolution.DEFERRED)
    return replace(
        definition,
        inherited_accepts_children=merge_rules((), (r for a in chain for r in a.direct_accepts_children)),
        inherited_accepts_parents=merge_rules((), (r for a in chain for r in a.direct_accepts_parents)),
        inherited_attributes=merge_attributes((), (s for a in chain for s in a.attributes)),
        ancestors=tuple(a.type_id for a in chain),
        resolution=Resolution.RESOLVED,
    )


def _settle(types: dict[TypeId, TypeDefinition], candidates: Iterable[TypeId]) -> tuple[list[TypeId], list[TypeId]]:
    """
    Resolve ``candidates`` in place until nothing changes.

    Returns (newly resolved, cyclic). Candidates that stay unresolved are
    left DEFERRED or marked CYCLIC.
    """
    pending = [tid for tid in candidates if tid in types]
    resolved: list[TypeId] = []
    progress = True
    while pending and progress:
        progress = False
        remaining: list[TypeId] = []
        for tid in pending:
            result = _resolve(types[tid], types)
            if result.is_resolved:
                types[tid] = result
                resolved.append(tid)
                progress = True
            else:
                remaining.append(tid)
        pending = remaining

    cyclic: list[TypeId] = []
    for tid in pending:
        types[tid] = _resolve(types[tid], types)
        if types[tid].resolution is Resolution.CYCLIC:
            cyclic.append(tid)
    return resolved, cyclic


def _overlay(base: Iterable[Any], additions: Iterable[Any], key: Callable[[Any], Any]) -> tuple[Any, ...]:
    """Later entries replace earlier ones with the same key, keeping the original position."""
    out: dict[Any, Any] = {key(item): item for item in base}
    for item in additions:
        out[key(item)] = item
    return tuple(out.values())


def _apply_extensions(definition: TypeDefinition, extensions: Iterable[TypeExtension]) -> TypeDefinition:
    children = definition.direct_accepts_children
    parents = definition.direct_accepts_parents
    attributes = definition.attributes
    extended_by = list(definition.extended_by)
    for ext in extensions:
        children = _overlay(children, ext.children, lambda r: r.key)
        parents = _overlay(parents, ext.parents, lambda r: r.key)
        attributes = _overlay(attributes, ext.attributes, lambda s: s.name)
        if ext.scope and ext.scope not in extended_by:
            extended_by.append(ext.scope)
    return replace(
        definition,
        direct_accepts_children=children,
        direct_accepts_parents=parents,
        attributes=attributes,
        extended_by=tuple(extended_by),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class MetaDataRegistry:
    """
    Central store of TypeDefinitions and constraint objects.

    Construct one per process (or per test) and pass it to consumers.
    ``get_default_registry()`` exists for top-level wiring only.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self._lock = threading.RLock()
        self._state = RegistrySnapshot()
        self._released: deque[str] = deque()
        self._local = threading.local()
        self._bootstrap_lock = threading.RLock()
        self._bootstrap_report: BootstrapReport | None = None
        self._flattener: ConstraintFlattener | None = None
        self._enforcer: ConstraintEnforcer | None = None

    # -- snapshot ------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._state.generation

    def snapshot(self) -> RegistrySnapshot:
        """The current immutable state; consistent for as long as the caller holds it."""
        return self._state

    def _publish(self, state: RegistrySnapshot, **changes: Any) -> RegistrySnapshot:
        new_state = replace(state, generation=state.generation + 1, **changes)
        self._state = new_state
        return new_state

    # -- scopes --------------------------------------------------------------

    def _scope_stack(self) -> list[str | None]:
        stack = getattr(self._local, "scopes", None)
        if stack is None:
            stack = []
            self._local.scopes = stack
        return stack

    @property
    def current_scope(self) -> str | None:
        stack = self._scope_stack()
        return stack[-1] if stack else None

    def _effective_scope(self, scope: ScopeLike) -> str | None:
        name = _scope_name(scope)
        return name if name is not None else self.current_scope

    @contextmanager
    def scoped(self, scope: ScopeLike) -> Iterator[str | None]:
        """Tag every registration made by this thread inside the block with ``scope``."""
        stack = self._scope_stack()
        stack.append(_scope_name(scope))
        try:
            yield stack[-1]
        finally:
            stack.pop()

    # -- registration --------------------------------------------------------

    def register_type(
        self,
        type_id: TypeId | str,
        build: Callable[[TypeDefinitionBuilder], Any] | None = None,
        *,
        scope: ScopeLike = None,
    ) -> TypeDefinition:
        """
        Register a new type; ``build`` configures the draft definition.

        Raises RegistrationConflictError when the id is already present; the
        existing registration is left untouched.
        """
        tid = TypeId.parse(type_id)
        draft = TypeDefinitionBuilder(tid)
        if build is not None:
            build(draft)
        definition = draft.build(scope=self._effective_scope(scope))

        with self._lock:
            self._drain_released()
            state = self._state
            if tid in state.declared:
                raise RegistrationConflictError(str(tid), f"Type {tid} is already registered")

            types = dict(state.types)
            resolved = _resolve(definition, types)
            types[tid] = resolved
            if resolved.resolution is Resolution.CYCLIC:
                _, cycle, _ = _walk(definition, types)
                for member in cycle:
                    types[member] = _unresolved(types[member], Resolution.CYCLIC)
                logger.warning("%s", CyclicInheritanceError(tid, cycle))
            elif resolved.resolution is Resolution.DEFERRED:
                logger.debug("Deferred inheritance for %s (parent %s)", tid, definition.parent)
            else:
                logger.debug("Registered type %s", tid)

            declared = dict(state.declared)
            declared[tid] = definition
            self._publish(state, declared=declared, types=types)
        return resolved

    def find_type(self, type_id: TypeId | str) -> TypeExtensionBuilder:
        """Return an extension draft for an existing type; commit it to publish."""
        tid = TypeId.parse(type_id)
        definition = self._state.types.get(tid)
        if definition is None:
            raise TypeNotFoundError(tid, sorted(self.get_registered_type_names()))
        return TypeExtensionBuilder(self, definition)

    def _commit_extension(
        self, type_id: TypeId, draft: TypeExtensionBuilder, scope: ScopeLike
    ) -> TypeDefinition:
        extension = draft.to_extension(self._effective_scope(scope))
        with self._lock:
            self._drain_released()
            state = self._state
            current = state.types.get(type_id)
            if current is None:
                raise TypeNotFoundError(type_id)
            if extension.is_empty:
                return current

            types = dict(state.types)
            merged = _apply_extensions(current, (extension,))
            types[type_id] = _resolve(merged, types) if current.is_resolved else merged
            # Inherited views are built from ancestors' direct rules, so only
            # descendants of the extended type need recomputing.
            for tid, definition in state.types.items():
                if type_id in definition.ancestors:
                    types[tid] = _resolve(definition, types)

            extensions = dict(state.extensions)
            extensions[type_id] = (*extensions.get(type_id, ()), extension)
            self._publish(state, types=types, extensions=extensions)
            logger.debug(
                "Extended %s (+%d children, +%d parents, +%d attributes) scope=%s",
                type_id,
                len(extension.children),
                len(extension.parents),
                len(extension.attributes),
                extension.scope,
            )
            return types[type_id]

    def resolve_deferred_inheritance(self) -> int:
        """
        Resolve every deferred type whose parent chain is now complete.

        Returns the number of newly resolved types; calling it again with
        nothing to do returns 0 and does not change the generation.
        """
        with self._lock:
            self._drain_released()
            state = self._state
            pending = [tid for tid, d in state.types.items() if d.resolution is Resolution.DEFERRED]
            if not pending:
                return 0

            types = dict(state.types)
            resolved, cyclic = _settle(types, pending)
            for tid in cyclic:
                if state.types[tid].resolution is not Resolution.CYCLIC:
                    _, cycle, _ = _walk(types[tid], types)
                    logger.warning("%s", CyclicInheritanceError(tid, cycle))
            if resolved or cyclic:
                self._publish(state, types=types)
            if resolved:
                logger.info("Resolved deferred inheritance for %d type(s)", len(resolved))
            return len(resolved)

    def add_constraint(
        self, constraint: PlacementConstraint | ValidationConstraint, *, scope: ScopeLike = None
    ) -> None:
        """Register a placement or validation constraint; ids are unique across both kinds."""
        if not isinstance(constraint, (PlacementConstraint, ValidationConstraint)):
            raise TypeError(f"Not a constraint: {constraint!r}")
        scope_name = self._effective_scope(scope)
        with self._lock:
            self._drain_released()
            state = self._state
            cid = constraint.constraint_id
            if cid in state.constraint_scopes:
                raise RegistrationConflictError(cid, f"Constraint '{cid}' is already registered")

            constraint_scopes = dict(state.constraint_scopes)
            constraint_scopes[cid] = scope_name
            if isinstance(constraint, PlacementConstraint):
                self._publish(
                    state,
                    placement=(*state.placement, constraint),
                    constraint_scopes=constraint_scopes,
                )
            else:
                self._publish(
                    state,
                    validation=(*state.validation, constraint),
                    constraint_scopes=constraint_scopes,
                )
        logger.debug("Added %s constraint %s", constraint.kind, cid)

    def add_constraints(
        self, constraints: Iterable[PlacementConstraint | ValidationConstraint], *, scope: ScopeLike = None
    ) -> int:
        count = 0
        for constraint in constraints:
            self.add_constraint(constraint, scope=scope)
            count += 1
        return count

    def release_scope(self, scope: ScopeLike) -> int:
        """
        Purge every type, extension and constraint tagged with ``scope``.

        Remaining types are re-merged and re-resolved. Types that were waiting
        for ``resolve_deferred_inheritance`` keep waiting. Returns the number
        of purged entries.
        """
        name = _scope_name(scope)
        if name is None:
            raise ValueError("release_scope requires a scope")

        with self._lock:
            self._drain_released()
            return self._release_locked(name)

    def schedule_release(self, scope: ScopeLike) -> None:
        """
        Queue ``scope`` for release by the next mutation (or ``release_pending_scopes``).

        Never takes the lock, so it is safe from a garbage-collection callback
        that fires while this thread is inside a mutation.
        """
        name = _scope_name(scope)
        if name is not None:
            self._released.append(name)

    def release_pending_scopes(self) -> int:
        """Apply queued scope releases now; returns the number of purged entries."""
        with self._lock:
            return self._drain_released()

    def _drain_released(self) -> int:
        # Caller holds self._lock and has not read self._state yet.
        purged = 0
        while True:
            try:
                name = self._released.popleft()
            except IndexError:
                return purged
            purged += self._release_locked(name)

    def _release_locked(self, name: str) -> int:
        state = self._state
        removed_types = [tid for tid, d in state.declared.items() if d.scope == name]
        removed_exts = sum(1 for exts in state.extensions.values() for ext in exts if ext.scope == name)
        removed_constraints = [cid for cid, s in state.constraint_scopes.items() if s == name]
        purged = len(removed_types) + removed_exts + len(removed_constraints)
        if not purged:
            return 0

        declared = {tid: d for tid, d in state.declared.items() if d.scope != name}
        extensions: dict[TypeId, tuple[TypeExtension, ...]] = {}
        for tid, exts in state.extensions.items():
            kept = tuple(ext for ext in exts if ext.scope != name)
            if kept and tid in declared:
                extensions[tid] = kept

        types = {
            tid: _unresolved(_apply_extensions(d, extensions.get(tid, ())), Resolution.DEFERRED)
            for tid, d in declared.items()
        }
        previous = state.types
        held = {tid for tid in types if tid in previous and not previous[tid].is_resolved}
        _settle(types, [tid for tid in types if tid not in held])
        # Types that were held back stay held back (or surface as cyclic).
        for tid in held:
            result = _resolve(types[tid], types)
            if result.resolution is not Resolution.CYCLIC:
                result = _unresolved(result, Resolution.DEFERRED)
            types[tid] = result

        dropped = set(removed_constraints)
        self._publish(
            state,
            declared=declared,
            extensions=extensions,
            types=types,
            placement=tuple(c for c in state.placement if c.constraint_id not in dropped),
            validation=tuple(c for c in state.validation if c.constraint_id not in dropped),
            constraint_scopes={cid: s for cid, s in state.constraint_scopes.items() if cid not in dropped},
        )
        logger.info(
            "Released scope %s: %d type(s), %d extension(s), %d constraint(s)",
            name,
            len(removed_types),
            removed_exts,
            len(removed_constraints),
        )
        return purged

    def clear(self) -> None:
        """Drop all registrations; intended for tests."""
        with self._lock:
            self._released.clear()
            state = self._state
            self._state = RegistrySnapshot(generation=state.generation + 1)
        with self._bootstrap_lock:
            self._bootstrap_report = None
        logger.debug("Registry %s cleared", self.name)

    # -- bootstrap -----------------------------------------------------------

    @property
    def bootstrap_report(self) -> "BootstrapReport | None":
        return self._bootstrap_report

    def ensure_bootstrapped(
        self, providers: Iterable["TypeProvider"] | None = None, **options: Any
    ) -> "BootstrapReport":
        """Run provider bootstrap once for this registry, however many threads ask."""
        report = self._bootstrap_report
        if report is not None:
            return report
        with self._bootstrap_lock:
            if self._bootstrap_report is None:
                from .bootstrap import bootstrap_registry

                self._bootstrap_report = bootstrap_registry(self, providers, **options)
            return self._bootstrap_report

    # -- queries -------------------------------------------------------------

    def get_type_definition(self, type_id: TypeId | str) -> TypeDefinition | None:
        return self._state.types.get(TypeId.parse(type_id))

    def require_type(self, type_id: TypeId | str) -> TypeDefinition:
        tid = TypeId.parse(type_id)
        definition = self._state.types.get(tid)
        if definition is None:
            raise TypeNotFoundError(tid, sorted(self.get_registered_type_names()))
        return definition

    def is_registered(self, type_id: TypeId | str) -> bool:
        return TypeId.parse(type_id) in self._state.types

    def has_type(self, type_name: str) -> bool:
        """True when any subtype of the primary type ``type_name`` is registered."""
        return any(tid.type == type_name for tid in self._state.types)

    def get_all_type_definitions(self) -> list[TypeDefinition]:
        return list(self._state.types.values())

    def get_registered_type_names(self) -> set[str]:
        return {tid.qualified_name for tid in self._state.types}

    def get_types_by_family(self, type_name: str) -> list[TypeDefinition]:
        return [d for tid, d in sorted(self._state.types.items()) if tid.type == type_name]

    def get_families(self) -> list[str]:
        return sorted({tid.type for tid in self._state.types})

    def get_child_rules(self, type_id: TypeId | str) -> tuple[ChildRule, ...]:
        return self.require_type(type_id).accepts_children

    def get_child_rule(
        self, type_id: TypeId | str, child_type: str, child_subtype: str, child_name: str | None
    ) -> ChildRule | None:
        """Most specific effective rule matching the child, or None."""
        matches = [r for r in self.get_child_rules(type_id) if r.matches(child_type, child_subtype, child_name)]
        if not matches:
            return None
        return max(matches, key=lambda r: r.specificity)

    def supported_children_description(self, type_id: TypeId | str) -> str:
        definition = self.get_type_definition(type_id)
        if definition is None:
            return f"Type {type_id} is not registered"
        rules = definition.accepts_children
        if not rules:
            return f"{definition.type_id} accepts no children"
        described = ", ".join(f"{rule} ({rule.describe()})" for rule in rules)
        return f"Supported children of {definition.type_id}: {described}"

    def missing_required_children(
        self, type_id: TypeId | str, present: Iterable[tuple[str, str, str | None]]
    ) -> list[ChildRule]:
        """Required child rules that none of the ``(type, subtype, name)`` children satisfy."""
        children = list(present)
        return [
            rule
            for rule in self.get_child_rules(type_id)
            if rule.required and not any(rule.matches(t, s, n) for t, s, n in children)
        ]

    def missing_required_attributes(self, type_id: TypeId | str, present: Iterable[str]) -> list[str]:
        names = set(present)
        return [
            spec.name
            for spec in self.require_type(type_id).all_attributes
            if spec.required and spec.name not in names
        ]

    def get_attribute_spec(self, type_id: TypeId | str, attr_name: str) -> AttributeSpec | None:
        definition = self.get_type_definition(type_id)
        if definition is None:
            return None
        return definition.attribute_schema.get(attr_name)

    def get_placement_constraints(self) -> list[PlacementConstraint]:
        return list(self._state.placement)

    def get_all_validation_constraints(self) -> list[ValidationConstraint]:
        return list(self._state.validation)

    def get_constraint(self, constraint_id: str) -> PlacementConstraint | ValidationConstraint | None:
        state = self._state
        for constraint in (*state.placement, *state.validation):
            if constraint.constraint_id == constraint_id:
                return constraint
        return None

    # -- placement (delegates to the flattener) --------------------------------

    @property
    def flattener(self) -> "ConstraintFlattener":
        if self._flattener is None:
            with self._lock:
                if self._flattener is None:
                    from ..constraints.flattener import ConstraintFlattener

                    self._flattener = ConstraintFlattener(self)
        return self._flattener

    @property
    def enforcer(self) -> "ConstraintEnforcer":
        if self._enforcer is None:
            with self._lock:
                if self._enforcer is None:
                    from ..constraints.enforcer import ConstraintEnforcer

                    self._enforcer = ConstraintEnforcer(self, self.flattener)
        return self._enforcer

    def accepts_child(self, parent_id: TypeId | str, child_id: TypeId | str, child_name: str | None) -> bool:
        parent = TypeId.parse(parent_id)
        child = TypeId.parse(child_id)
        return self.flattener.is_placement_allowed(
            parent.type, parent.subtype, child.type, child.subtype, child_name
        )

    # -- diagnostics ---------------------------------------------------------

    def unresolved_types(self) -> list[UnresolvedParentError | CyclicInheritanceError]:
        types = self._state.types
        problems: list[UnresolvedParentError | CyclicInheritanceError] = []
        for tid, definition in sorted(types.items()):
            if definition.is_resolved:
                continue
            chain, cycle, missing = _walk(definition, types)
            if cycle:
                problems.append(CyclicInheritanceError(tid, cycle))
            elif missing is not None:
                problems.append(UnresolvedParentError(tid, missing))
            else:
                pending = next((a.type_id for a in chain if not a.is_resolved), definition.parent)
                problems.append(UnresolvedParentError(tid, pending, pending=True))
        return problems

    def stats(self) -> RegistryStats:
        state = self._state
        families: dict[str, int] = {}
        for tid in state.types:
            families[tid.type] = families.get(tid.type, 0) + 1
        return RegistryStats(
            type_count=len(state.types),
            families=dict(sorted(families.items())),
            placement_constraints=len(state.placement),
            validation_constraints=len(state.validation),
            unresolved=sum(1 for d in state.types.values() if not d.is_resolved),
            extended=len(state.extensions),
            generation=state.generation,
        )

    def validate_consistency(self) -> RegistryHealthReport:
        """Structural health check: unresolved inheritance, missing base types, core types."""
        types = self._state.types
        report = RegistryHealthReport()

        subtypes: dict[str, set[str]] = {}
        for tid in types:
            subtypes.setdefault(tid.type, set()).add(tid.subtype)
        report.add_metadata("total_types", len(types))
        report.add_metadata("primary_types", len(subtypes))

        without_base = sorted(t for t, subs in subtypes.items() if "base" not in subs)
        report.add_metadata("types_without_base", without_base)
        for family in without_base:
            report.add_warning(f"Type family '{family}' missing recommended base subtype")
            report.add_recommendation(f"Consider adding {family}.base for inheritance support")
        if subtypes:
            report.add_metadata(
                "base_type_compliance",
                f"{len(subtypes) - len(without_base)}/{len(subtypes)} type families have base subtypes",
            )

        chains = [f"{d.type_id} -> {d.parent}" for _, d in sorted(types.items()) if d.parent is not None]
        report.add_metadata("types_with_inheritance", len(chains))
        report.add_metadata("inheritance_chains", chains)
        if types and not chains:
            report.add_warning("No types use inheritance; consider base types for shared attributes")

        problems = self.unresolved_types()
        if problems:
            report.add_error(f"Unresolved inheritance: {len(problems)} type(s) cannot resolve their parent chain")
            for problem in problems:
                report.add_error(str(problem))

        missing_core = [name for name in CORE_BASE_TYPES if TypeId.parse(name) not in types]
        if missing_core:
            report.add_warning(f"Missing core base types: {', '.join(missing_core)}")
            report.add_recommendation("Enable the built-in providers or register the core base types")
        return report

    def __contains__(self, type_id: object) -> bool:
        if isinstance(type_id, (TypeId, str)):
            try:
                return self.is_registered(type_id)
            except ValueError:
                return False
        return False

    def __len__(self) -> int:
        return len(self._state.types)

    def __repr__(self) -> str:
        state = self._state
        return f"MetaDataRegistry[{self.name}, types={len(state.types)}, generation={state.generation}]"


# ---------------------------------------------------------------------------
# Default instance (top-level wiring only)
# ---------------------------------------------------------------------------

_default_registry: MetaDataRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> MetaDataRegistry:
    """Process-wide registry, built and bootstrapped on first use."""
    global _default_registry
    registry = _default_registry
    if registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = MetaDataRegistry()
            registry = _default_registry
    registry.ensure_bootstrapped()
    return registry


def set_default_registry(registry: MetaDataRegistry | None) -> None:
    global _default_registry
    with _default_lock:
        _default_registry = registry


def reset_default_registry() -> None:
    set_default_registry(None)
