"""
Constraint flattener: placement decisions from one precomputed table.

For every registered parent type the table holds an exact-key index of its
effective accepts-children rules (direct plus inherited) and the placement
constraints whose parent selector applies to it. A lookup probes at most
eight wildcard combinations of (type, subtype, name), most specific first,
then runs the pre-bucketed constraints.

The table is immutable and tagged with the registry generation it was built
from. When the registry moves on, the next query builds a fresh table and
swaps it in with one assignment; readers never see a half-built table.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..registry.types import ChildRule, TypeDefinition, TypeId, WILDCARD
from .schema import PlacementConstraint, PlacementContext

if TYPE_CHECKING:
    from ..registry.registry import MetaDataRegistry, RegistrySnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementDecision:
    allowed: bool
    rule: ChildRule | None = None
    constraint_id: str | None = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class _ParentEntry:
    definition: TypeDefinition
    rules: dict[tuple[str, str, str], ChildRule]
    constraints: tuple[PlacementConstraint, ...]


@dataclass(frozen=True)
class FlatTable:
    generation: int
    entries: dict[TypeId, _ParentEntry]
    definitions: dict[TypeId, TypeDefinition]
    constraints: tuple[PlacementConstraint, ...]

    @property
    def rule_count(self) -> int:
        return sum(len(e.rules) for e in self.entries.values())


def _probe_keys(child_type: str, child_subtype: str, child_name: str | None) -> list[tuple[str, str, str]]:
    # Ordered by ChildRule.specificity: name 4, subtype 2, type 1
    names = [child_name, WILDCARD] if child_name is not None and child_name != WILDCARD else [WILDCARD]
    keys: list[tuple[str, str, str]] = []
    for name in names:
        for subtype in (child_subtype, WILDCARD):
            for type_ in (child_type, WILDCARD):
                keys.append((type_, subtype, name))
    return keys


def _constraint_covers_parent(constraint: PlacementConstraint, definition: TypeDefinition) -> bool:
    if constraint.match_descendants:
        return any(constraint.parent.matches(t) for t in definition.lineage)
    return constraint.parent.matches(definition.type_id)


def build_table(snapshot: "RegistrySnapshot") -> FlatTable:
    entries: dict[TypeId, _ParentEntry] = {}
    for tid, definition in snapshot.types.items():
        rules: dict[tuple[str, str, str], ChildRule] = {}
        for rule in definition.accepts_children:
            rules.setdefault(rule.key, rule)
        constraints = tuple(c for c in snapshot.placement if _constraint_covers_parent(c, definition))
        entries[tid] = _ParentEntry(definition=definition, rules=rules, constraints=constraints)
    return FlatTable(
        generation=snapshot.generation,
        entries=entries,
        definitions=dict(snapshot.types),
        constraints=snapshot.placement,
    )


class ConstraintFlattener:
    """Answers placement questions from a lazily rebuilt flat table."""

    def __init__(self, registry: "MetaDataRegistry"):
        self._registry = registry
        self._lock = threading.Lock()
        self._table: FlatTable | None = None
        self.rebuilds = 0

    def table(self) -> FlatTable:
        """Current table, rebuilt first if the registry changed since the last build."""
        table = self._table
        if table is not None and table.generation == self._registry.generation:
            return table
        with self._lock:
            snapshot = self._registry.snapshot()
            table = self._table
            if table is None or table.generation != snapshot.generation:
                table = build_table(snapshot)
                self._table = table
                self.rebuilds += 1
                logger.debug(
                    "Rebuilt placement table: generation=%d parents=%d rules=%d constraints=%d",
                    table.generation,
                    len(table.entries),
                    table.rule_count,
                    len(table.constraints),
                )
            return table

    def invalidate(self) -> None:
        with self._lock:
            self._table = None

    # -- lookups -------------------------------------------------------------

    def evaluate(self, parent: TypeId, child: TypeId, child_name: str | None) -> PlacementDecision:
        """Full placement decision: declarative rules, accepts-parents, then constraints."""
        table = self.table()
        entry = table.entries.get(parent)
        if entry is None:
            return PlacementDecision(False, reason=f"parent type {parent} is not registered")

        rule = None
        for key in _probe_keys(child.type, child.subtype, child_name):
            rule = entry.rules.get(key)
            if rule is not None:
                break
        if rule is None:
            return PlacementDecision(False, reason=f"no accepts-children rule of {parent} matches")

        child_def = table.definitions.get(child)
        if child_def is not None:
            parent_rules = child_def.accepts_parents
            if parent_rules and not any(r.matches(parent, child_name) for r in parent_rules):
                return PlacementDecision(
                    False, rule=rule, reason=f"{child} does not accept {parent} as a parent"
                )

        if entry.constraints:
            ctx = PlacementContext(
                parent=parent,
                child=child,
                child_name=child_name,
                parent_lineage=entry.definition.lineage,
                child_lineage=child_def.lineage if child_def is not None else (child,),
            )
            for constraint in entry.constraints:
                if constraint.applies_to(ctx) and not constraint.allows(ctx):
                    return PlacementDecision(
                        False,
                        rule=rule,
                        constraint_id=constraint.constraint_id,
                        reason=constraint.description,
                    )
        return PlacementDecision(True, rule=rule)

    def is_placement_allowed(
        self,
        parent_type: str,
        parent_subtype: str,
        child_type: str,
        child_subtype: str,
        child_name: str | None,
    ) -> bool:
        return self.evaluate(
            TypeId(parent_type, parent_subtype), TypeId(child_type, child_subtype), child_name
        ).allowed

    def valid_child_types(self, parent: TypeId | str) -> list[TypeId]:
        """Registered types that may be placed under ``parent`` under some name."""
        table = self.table()
        pid = TypeId.parse(parent)
        entry = table.entries.get(pid)
        if entry is None:
            return []
        out = []
        for tid, definition in sorted(table.definitions.items()):
            names = [
                r.name_pattern
                for r in entry.rules.values()
                if r.child_type in (WILDCARD, tid.type) and r.child_subtype in (WILDCARD, tid.subtype)
            ]
            if not names:
                continue
            parent_rules = [r for r in definition.accepts_parents if r.matches_parent(pid)]
            if definition.accepts_parents and not any(
                WILDCARD in (name, r.expected_name) or name == r.expected_name
                for r in parent_rules
                for name in names
            ):
                continue
            out.append(tid)
        return out

    def valid_parent_types(self, child: TypeId | str) -> list[TypeId]:
        """Registered types that accept ``child`` under some name."""
        cid = TypeId.parse(child)
        return [pid for pid in sorted(self.table().entries) if cid in self.valid_child_types(pid)]

    def statistics(self) -> dict[str, Any]:
        table = self.table()
        return {
            "generation": table.generation,
            "parents": len(table.entries),
            "rules": table.rule_count,
            "placement_constraints": len(table.constraints),
            "rebuilds": self.rebuilds,
        }
