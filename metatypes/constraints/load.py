from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from .predicates import PREDICATE_KINDS, PREDICATES, placement_constraint, validation_constraint
from .schema import Constraint, ConstraintDef, Predicate, RulesetDef


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def load_ruleset(path: Path) -> RulesetDef:
    """
    Load a constraint ruleset from TOML.

    The schema is intentionally small: constraints are data, predicates are
    code. Unknown predicate names are rejected at load time.
    """
    import tomllib

    try:
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid ruleset TOML in {path}: {e}") from e

    ruleset_id = str(data.get("ruleset_id", "")).strip()
    if not ruleset_id:
        raise ValueError("ruleset_id is required")

    version = int(data.get("version", 0))
    if version <= 0:
        raise ValueError("version must be a positive integer")

    constraints: list[ConstraintDef] = []
    for raw in data.get("constraints", []):
        if not isinstance(raw, dict):
            continue

        constraint_id = str(raw.get("id", "")).strip()
        if not constraint_id:
            raise ValueError(f"{ruleset_id}: every constraint needs an id")

        pred_raw = _coerce_dict(raw.get("predicate"))
        pred_name = str(pred_raw.get("name", "")).strip()
        if pred_name not in PREDICATES:
            raise ValueError(
                f"{ruleset_id}/{constraint_id}: unknown predicate {pred_name!r}. "
                f"Known: {', '.join(sorted(PREDICATES))}"
            )
        pred_params = _coerce_dict(pred_raw.get("params"))

        kind = str(raw.get("kind", PREDICATE_KINDS[pred_name])).strip()
        if kind != PREDICATE_KINDS[pred_name]:
            raise ValueError(
                f"{ruleset_id}/{constraint_id}: predicate {pred_name!r} is a "
                f"{PREDICATE_KINDS[pred_name]} predicate, not {kind}"
            )

        description = raw.get("description")
        constraints.append(
            ConstraintDef(
                id=constraint_id,
                kind=kind,  # type: ignore[arg-type]
                description=str(description) if isinstance(description, str) else "",
                selector=_coerce_dict(raw.get("selector")),
                predicate=Predicate(name=pred_name, params=pred_params),
            )
        )

    return RulesetDef(
        ruleset_id=ruleset_id,
        version=version,
        description=(str(data.get("description")) if isinstance(data.get("description"), str) else None),
        constraints=constraints,
    )


def build_constraint(defn: ConstraintDef) -> Constraint:
    selector = defn.selector
    descendants = bool(selector.get("match_descendants", True))
    if defn.kind == "placement":
        return placement_constraint(
            defn.id,
            defn.predicate.name,
            description=defn.description,
            parent=str(selector.get("parent", "*")),
            child=str(selector.get("child", "*")),
            match_descendants=descendants,
            **defn.predicate.params,
        )
    return validation_constraint(
        defn.id,
        defn.predicate.name,
        description=defn.description,
        target=str(selector.get("target", "*")),
        attribute=str(selector.get("attribute", "*")),
        match_descendants=descendants,
        **defn.predicate.params,
    )


def build_constraints(ruleset: RulesetDef) -> list[Constraint]:
    return [build_constraint(defn) for defn in ruleset.constraints]


def load_rulesets(paths: Iterable[Path]) -> list[Constraint]:
    """Load several ruleset files and build their constraints, in file order."""
    out: list[Constraint] = []
    for path in paths:
        out.extend(build_constraints(load_ruleset(Path(path))))
    return out
