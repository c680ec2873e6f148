"""
CLI commands for type registry introspection and constraint checks.

Commands:
- metatypes types            - List registered types
- metatypes type-info        - Show detailed info for one type
- metatypes providers        - Show provider load order and status
- metatypes check-placement  - Ask whether a child may be placed under a parent
- metatypes check-value      - Validate a proposed attribute value
- metatypes health           - Structural health report
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..constraints.schema import NodeRef
from ..errors import ConstraintViolationError, MetaTypesError, PlacementDeniedError, TypeNotFoundError
from ..registry.registry import MetaDataRegistry
from ..registry.types import TypeDefinition, TypeId

console = Console()
err = Console(stderr=True)


def _type_summary(definition: TypeDefinition) -> dict[str, Any]:
    return {
        "type_id": str(definition.type_id),
        "parent": str(definition.parent) if definition.parent else None,
        "description": definition.description,
        "resolution": definition.resolution.value,
        "scope": definition.scope,
    }


# ============================================================================
# metatypes types
# ============================================================================


def run_types(registry: MetaDataRegistry, *, family: str | None = None, json_output: bool = False) -> int:
    """
    List registered types, optionally restricted to one family.

    Returns:
        Exit code (0 = success, 1 = unknown family)
    """
    definitions = registry.get_types_by_family(family) if family else registry.get_all_type_definitions()
    if family and not definitions:
        err.print(f"No types registered in family '{family}'", style="bold red")
        return 1

    if json_output:
        print(json.dumps([_type_summary(d) for d in definitions], indent=2))
        return 0

    table = Table(title="Type Registry" if not family else f"Type Registry: {family}")
    table.add_column("Type", style="cyan")
    table.add_column("Parent")
    table.add_column("Description")
    table.add_column("Status")

    for definition in definitions:
        table.add_row(
            str(definition.type_id),
            str(definition.parent) if definition.parent else "-",
            definition.description,
            definition.resolution.value,
            style=None if definition.is_resolved else "yellow",
        )

    console.print(table)
    stats = registry.stats()
    console.print(
        f"\n[dim]Total: {stats.type_count} types in {len(stats.families)} families, "
        f"{stats.placement_constraints + stats.validation_constraints} constraints[/dim]"
    )
    return 0


# ============================================================================
# metatypes type-info
# ============================================================================


def run_type_info(registry: MetaDataRegistry, type_name: str, *, json_output: bool = False) -> int:
    """
    Show inheritance, child rules, parent rules and attributes of one type.

    Returns:
        Exit code (0 = success, 1 = type not found)
    """
    try:
        definition = registry.require_type(type_name)
    except (TypeNotFoundError, ValueError) as e:
        err.print(str(e), style="bold red")
        return 1

    if json_output:
        output = _type_summary(definition)
        output.update(
            {
                "ancestors": [str(a) for a in definition.ancestors],
                "accepts_children": [
                    {"rule": str(r), "required": r.required, "inherited": r not in definition.direct_accepts_children}
                    for r in definition.accepts_children
                ],
                "accepts_parents": [str(r) for r in definition.accepts_parents],
                "attributes": [
                    {
                        "name": a.name,
                        "value_type": a.value_type,
                        "required": a.required,
                        "allowed_values": sorted(a.allowed_values) if a.allowed_values is not None else None,
                        "array_allowed": a.array_allowed,
                    }
                    for a in definition.all_attributes
                ],
                "extended_by": list(definition.extended_by),
            }
        )
        print(json.dumps(output, indent=2))
        return 0

    console.print(f"\n[bold cyan]{definition.type_id}[/bold cyan]")
    if definition.description:
        console.print(f"  {definition.description}")
    console.print(f"  Status: {definition.resolution.value}")
    if definition.ancestors:
        console.print(f"  Lineage: {' -> '.join(str(t) for t in definition.lineage)}")
    elif definition.parent:
        console.print(f"  Parent: {definition.parent} [yellow](not resolved)[/yellow]")
    if definition.extended_by:
        console.print(f"  Extended by: {', '.join(definition.extended_by)}")

    if definition.accepts_children:
        table = Table(title="Accepts children")
        table.add_column("Rule", style="cyan")
        table.add_column("Required")
        table.add_column("Source")
        for rule in definition.accepts_children:
            inherited = rule not in definition.direct_accepts_children
            table.add_row(escape(str(rule)), "Yes" if rule.required else "No", "inherited" if inherited else "direct")
        console.print(table)

    if definition.accepts_parents:
        console.print("  Accepts parents: " + escape(", ".join(str(r) for r in definition.accepts_parents)))

    if definition.all_attributes:
        table = Table(title="Attributes")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("Required")
        table.add_column("Allowed values")
        for spec in definition.all_attributes:
            table.add_row(
                spec.name,
                spec.value_type + ("[]" if spec.array_allowed else ""),
                "Yes" if spec.required else "No",
                ", ".join(sorted(spec.allowed_values or ())) or "-",
            )
        console.print(table)
    return 0


# ============================================================================
# metatypes providers
# ============================================================================


def run_providers(registry: MetaDataRegistry, *, json_output: bool = False) -> int:
    """
    Show the last bootstrap of ``registry``: load order and per-provider status.

    Returns:
        Exit code (0 = all providers loaded, 1 = failures or unresolved types)
    """
    report = registry.ensure_bootstrapped()

    if json_output:
        print(
            json.dumps(
                {
                    "order": report.order,
                    "loaded": report.loaded,
                    "failed": report.failed,
                    "skipped": report.skipped,
                    "resolved": report.resolved,
                    "unresolved": [str(p) for p in report.unresolved],
                },
                indent=2,
            )
        )
        return 0 if report.ok else 1

    table = Table(title="Type Providers")
    table.add_column("#", justify="right")
    table.add_column("Provider", style="cyan")
    table.add_column("Status")
    for index, pid in enumerate(report.order, start=1):
        if pid in report.failed:
            table.add_row(str(index), pid, f"[red]failed[/red] {report.failed[pid]}")
        else:
            table.add_row(str(index), pid, "[green]loaded[/green]")
    for pid in report.skipped:
        table.add_row("-", pid, "[dim]disabled[/dim]")
    console.print(table)

    for problem in report.unresolved:
        err.print(str(problem), style="yellow")
    console.print(f"\n[dim]{report.summary()}[/dim]")
    return 0 if report.ok else 1


# ============================================================================
# metatypes check-placement / check-value
# ============================================================================


def run_check_placement(
    registry: MetaDataRegistry,
    parent: str,
    child: str,
    child_name: str | None,
    *,
    json_output: bool = False,
) -> int:
    """
    Check whether ``child`` named ``child_name`` may be placed under ``parent``.

    Returns:
        Exit code (0 = allowed, 1 = denied or bad input)
    """
    try:
        parent_id = TypeId.parse(parent)
        child_id = TypeId.parse(child)
    except ValueError as e:
        err.print(str(e), style="bold red")
        return 1

    decision = registry.enforcer.evaluate_placement(parent_id, child_id.type, child_id.subtype, child_name)
    if json_output:
        print(
            json.dumps(
                {
                    "parent": str(parent_id),
                    "child": str(child_id),
                    "name": child_name,
                    "allowed": decision.allowed,
                    "rule": str(decision.rule) if decision.rule else None,
                    "constraint_id": decision.constraint_id,
                    "reason": decision.reason,
                },
                indent=2,
            )
        )
        return 0 if decision.allowed else 1

    if decision.allowed:
        via = f" (via {decision.rule})" if decision.rule else ""
        console.print("[green]Allowed[/green]: " + escape(f"{child_id}[{child_name or '*'}] under {parent_id}{via}"))
        return 0

    try:
        registry.enforcer.check_placement(parent_id, child_id.type, child_id.subtype, child_name)
    except PlacementDeniedError as e:
        console.print("[red]Denied[/red]: " + escape(str(e)))
    return 1


def run_check_value(
    registry: MetaDataRegistry,
    type_name: str,
    attr_name: str,
    value: str,
    *,
    node_name: str = "",
    json_output: bool = False,
) -> int:
    """
    Validate a proposed attribute value against schema and validation constraints.

    Returns:
        Exit code (0 = valid, 1 = violations or bad input)
    """
    try:
        node = NodeRef.of(type_name, node_name)
    except ValueError as e:
        err.print(str(e), style="bold red")
        return 1

    found: list[ConstraintViolationError] = registry.enforcer.violations(node, attr_name, value)
    if json_output:
        print(
            json.dumps(
                {
                    "type": str(node.type_id),
                    "attribute": attr_name,
                    "value": value,
                    "valid": not found,
                    "violations": [{"constraint_id": v.constraint_id, "reason": v.reason} for v in found],
                },
                indent=2,
            )
        )
        return 0 if not found else 1

    if not found:
        console.print("[green]Valid[/green]: " + escape(f"{node.type_id}.{attr_name} = {value!r}"))
        return 0
    for violation in found:
        console.print("[red]Violation[/red] " + escape(str(violation)))
    return 1


# ============================================================================
# metatypes health
# ============================================================================


def run_health(registry: MetaDataRegistry, *, strict: bool = False, json_output: bool = False) -> int:
    """
    Print the registry health report.

    Returns:
        Exit code (0 = sound, 1 = errors; with ``strict`` warnings also fail)
    """
    try:
        report = registry.validate_consistency()
    except MetaTypesError as e:
        err.print(f"Health check failed: {e}", style="bold red")
        return 1

    if json_output:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        style = "green" if report.is_structurally_sound else "red"
        for line in report.generate_summary().splitlines():
            console.print(line, style=style if line.startswith(("EXCELLENT", "GOOD", "POOR")) else None, markup=False)

    if not report.is_structurally_sound:
        return 1
    if strict and report.warnings:
        return 1
    return 0
