"""
ConstraintEnforcer: the single choke point tree mutations call before committing.

Both checks are pure. They read the current registry snapshot and the
proposed operation, raise on denial, and change nothing, so callers may run
them speculatively.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..errors import ConstraintViolationError, PlacementDeniedError
from ..registry.types import AttributeSpec, TypeId
from .flattener import ConstraintFlattener, PlacementDecision

if TYPE_CHECKING:
    from ..registry.registry import MetaDataRegistry

logger = logging.getLogger(__name__)

SCHEMA_VALUE_TYPE = "schema.value-type"
SCHEMA_ALLOWED_VALUES = "schema.allowed-values"
SCHEMA_ARRAY = "schema.array"

_INT_BOUNDS = {"int": (-(2**31), 2**31 - 1), "long": (-(2**63), 2**63 - 1)}
_BOOLEAN_WORDS = {"true", "false"}


def _as_type_id(target: Any) -> TypeId:
    if isinstance(target, (TypeId, str)):
        return TypeId.parse(target)
    type_id = getattr(target, "type_id", None)
    if isinstance(type_id, TypeId):
        return type_id
    raise TypeError(f"Expected a TypeId, 'type.subtype' string or node with type_id, got {target!r}")


def _value_type_error(spec: AttributeSpec, value: Any) -> str | None:
    """Reason ``value`` is not a valid ``spec.value_type`` scalar, or None."""
    kind = spec.value_type
    if kind == "any":
        return None
    if kind == "string":
        return None if isinstance(value, str) else f"expected a string, got {type(value).__name__}"
    if kind in _INT_BOUNDS:
        if isinstance(value, bool):
            return f"expected {kind}, got boolean"
        try:
            number = value if isinstance(value, int) else int(str(value).strip())
        except ValueError:
            return f"expected {kind}, got {value!r}"
        low, high = _INT_BOUNDS[kind]
        if not low <= number <= high:
            return f"{number} is out of range for {kind}"
        return None
    if kind == "double":
        if isinstance(value, bool):
            return "expected double, got boolean"
        if isinstance(value, (int, float)):
            return None
        try:
            float(str(value).strip())
        except ValueError:
            return f"expected double, got {value!r}"
        return None
    if kind == "boolean":
        if isinstance(value, bool) or str(value).strip().lower() in _BOOLEAN_WORDS:
            return None
        return f"expected boolean, got {value!r}"
    if kind == "class":
        text = str(value).strip() if isinstance(value, str) else ""
        if text and all(part.isidentifier() for part in text.split(".")):
            return None
        return f"expected a dotted class name, got {value!r}"
    if kind == "properties":
        return None if isinstance(value, (dict, str)) else f"expected properties, got {type(value).__name__}"
    return None


class ConstraintEnforcer:
    """Placement and value checks over a registry's current state."""

    def __init__(self, registry: "MetaDataRegistry", flattener: ConstraintFlattener | None = None):
        self._registry = registry
        self._flattener = flattener if flattener is not None else registry.flattener
        self.enabled = True
        self._disabled_families: frozenset[str] = frozenset()

    @property
    def flattener(self) -> ConstraintFlattener:
        return self._flattener

    # -- switches ------------------------------------------------------------

    def set_checking_enabled(self, enabled: bool, family: str | None = None) -> None:
        """Turn all checks, or the checks for one type family, on or off."""
        if family is None:
            self.enabled = bool(enabled)
        elif enabled:
            self._disabled_families = self._disabled_families - {family}
        else:
            self._disabled_families = self._disabled_families | {family}
        logger.debug("Constraint checking %s for %s", "enabled" if enabled else "disabled", family or "all types")

    def is_checking_enabled(self, family: str | None = None) -> bool:
        if not self.enabled:
            return False
        return family is None or family not in self._disabled_families

    # -- placement -----------------------------------------------------------

    def evaluate_placement(
        self, parent: Any, child_type: str, child_subtype: str, child_name: str | None
    ) -> PlacementDecision:
        parent_id = _as_type_id(parent)
        if not self.is_checking_enabled(parent_id.type):
            return PlacementDecision(True, reason="checking disabled")
        return self._flattener.evaluate(parent_id, TypeId(child_type, child_subtype), child_name)

    def check_placement(self, parent: Any, child_type: str, child_subtype: str, child_name: str | None) -> None:
        """
        Raise PlacementDeniedError unless the child may be attached to ``parent``.

        ``parent`` is a node (anything with ``type_id``), a TypeId or a
        ``"type.subtype"`` string.
        """
        decision = self.evaluate_placement(parent, child_type, child_subtype, child_name)
        if decision.allowed:
            return
        parent_id = _as_type_id(parent)
        supported = ""
        if decision.constraint_id is None:
            supported = self._registry.supported_children_description(parent_id)
        raise PlacementDeniedError(
            parent_id,
            TypeId(child_type, child_subtype),
            child_name or "",
            constraint_id=decision.constraint_id,
            reason=decision.reason,
            supported=supported,
        )

    def check_add_child(self, parent: Any, child: Any) -> None:
        child_id = _as_type_id(child)
        self.check_placement(parent, child_id.type, child_id.subtype, getattr(child, "name", None))

    def can_place(self, parent: Any, child_type: str, child_subtype: str, child_name: str | None) -> bool:
        return self.evaluate_placement(parent, child_type, child_subtype, child_name).allowed

    # -- values --------------------------------------------------------------

    def violations(self, node: Any, attr_name: str, value: Any) -> list[ConstraintViolationError]:
        """Every failing check for the proposed value, in evaluation order."""
        node_id = _as_type_id(node)
        if not self.is_checking_enabled(node_id.type):
            return []

        found: list[ConstraintViolationError] = []
        definition = self._registry.get_type_definition(node_id)
        spec = definition.attribute_schema.get(attr_name) if definition is not None else None
        if spec is not None:
            found.extend(self._schema_violations(spec, attr_name, value))

        lineage = definition.lineage if definition is not None else (node_id,)
        for constraint in self._registry.get_all_validation_constraints():
            if not constraint.applies_to(node, attr_name, lineage, type_id=node_id):
                continue
            reason = constraint.validate(node, attr_name, value)
            if reason:
                found.append(
                    ConstraintViolationError(constraint.constraint_id, reason, attribute=attr_name, value=value)
                )
        return found

    def check_value(self, node: Any, attr_name: str, proposed_value: Any) -> None:
        """
        Raise ConstraintViolationError for the first failing check.

        Schema checks from the node type's AttributeSpec run first, then every
        applicable ValidationConstraint in registration order.
        """
        node_id = _as_type_id(node)
        if not self.is_checking_enabled(node_id.type):
            return

        definition = self._registry.get_type_definition(node_id)
        spec = definition.attribute_schema.get(attr_name) if definition is not None else None
        if spec is not None:
            for violation in self._schema_violations(spec, attr_name, proposed_value):
                raise violation

        lineage = definition.lineage if definition is not None else (node_id,)
        for constraint in self._registry.get_all_validation_constraints():
            if not constraint.applies_to(node, attr_name, lineage, type_id=node_id):
                continue
            reason = constraint.validate(node, attr_name, proposed_value)
            if reason:
                raise ConstraintViolationError(
                    constraint.constraint_id, reason, attribute=attr_name, value=proposed_value
                )

    def is_value_valid(self, node: Any, attr_name: str, value: Any) -> bool:
        try:
            self.check_value(node, attr_name, value)
        except ConstraintViolationError:
            return False
        return True

    def _schema_violations(self, spec: AttributeSpec, attr_name: str, value: Any) -> list[ConstraintViolationError]:
        if value is None:
            return []
        if spec.value_type == "stringarray":
            # Either a comma-separated string or a sequence of strings
            if isinstance(value, str) or (
                isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
            ):
                return []
            return [
                ConstraintViolationError(
                    SCHEMA_VALUE_TYPE, f"{attr_name}: expected a list of strings", attribute=attr_name, value=value
                )
            ]
        if isinstance(value, (list, tuple)):
            if not spec.array_allowed:
                return [
                    ConstraintViolationError(
                        SCHEMA_ARRAY, f"{attr_name} does not accept multiple values", attribute=attr_name, value=value
                    )
                ]
            items = list(value)
        else:
            items = [value]

        for item in items:
            problem = _value_type_error(spec, item)
            if problem:
                return [
                    ConstraintViolationError(
                        SCHEMA_VALUE_TYPE, f"{attr_name}: {problem}", attribute=attr_name, value=value
                    )
                ]
            if spec.allowed_values is not None and str(item) not in spec.allowed_values:
                allowed = ", ".join(sorted(spec.allowed_values))
                return [
                    ConstraintViolationError(
                        SCHEMA_ALLOWED_VALUES,
                        f"{attr_name} value {item!r} is not one of: {allowed}",
                        attribute=attr_name,
                        value=value,
                    )
                ]
        return []
