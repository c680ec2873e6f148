"""Placement and validation constraints (rules as data, predicates as code)."""

from __future__ import annotations

from .schema import (
    MetaNode,
    NodeRef,
    PlacementConstraint,
    PlacementContext,
    ValidationConstraint,
)
from .predicates import PREDICATES, placement_constraint, validation_constraint
from .load import build_constraints, load_ruleset, load_rulesets
from .flattener import ConstraintFlattener, FlatTable, PlacementDecision
from .enforcer import ConstraintEnforcer

__all__ = [
    "MetaNode",
    "NodeRef",
    "PlacementConstraint",
    "PlacementContext",
    "ValidationConstraint",
    "PREDICATES",
    "placement_constraint",
    "validation_constraint",
    "build_constraints",
    "load_ruleset",
    "load_rulesets",
    "ConstraintFlattener",
    "FlatTable",
    "PlacementDecision",
    "ConstraintEnforcer",
]
