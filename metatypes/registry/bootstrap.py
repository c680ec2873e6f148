"""
Provider discovery and bootstrap.

Phase 1 runs every provider in dependency order (Kahn's algorithm, ties broken
by priority and then discovery order). Phase 2 resolves deferred inheritance
once; anything still unresolved is reported, not retried.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from importlib.metadata import EntryPoint, entry_points
from typing import TYPE_CHECKING, Any, Iterable

from ..errors import (
    CyclicInheritanceError,
    ProviderDependencyCycleError,
    ProviderLoadError,
    UnresolvedParentError,
)
from .provider import TypeProvider, list_providers
from .registry import ScopeHandle

if TYPE_CHECKING:
    from .registry import MetaDataRegistry

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT_GROUP = "metatypes.providers"


@dataclass
class BootstrapReport:
    order: list[str] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    resolved: int = 0
    unresolved: list[UnresolvedParentError | CyclicInheritanceError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.unresolved

    def summary(self) -> str:
        parts = [f"{len(self.loaded)} provider(s) loaded"]
        if self.failed:
            parts.append(f"{len(self.failed)} failed ({', '.join(sorted(self.failed))})")
        if self.skipped:
            parts.append(f"{len(self.skipped)} disabled")
        parts.append(f"{self.resolved} deferred type(s) resolved")
        if self.unresolved:
            parts.append(f"{len(self.unresolved)} unresolved")
        return ", ".join(parts)


def _instantiate(obj: Any, source: str) -> TypeProvider:
    if isinstance(obj, TypeProvider):
        return obj
    if callable(obj):
        provider = obj()
        if isinstance(provider, TypeProvider):
            return provider
    raise TypeError(f"{source} did not produce a TypeProvider (got {type(obj).__name__})")


def _entry_point_providers(group: str) -> list[TypeProvider]:
    providers: list[TypeProvider] = []
    eps: Iterable[EntryPoint] = entry_points(group=group)
    for ep in eps:
        try:
            providers.append(_instantiate(ep.load(), f"Entry point '{ep.name}'"))
        except Exception:
            # A broken plugin must not block the rest of the taxonomy.
            logger.exception("Failed to load provider entry point %s (%s)", ep.name, ep.value)
    return providers


def discover_providers(
    *,
    include_builtin: bool = True,
    entry_point_group: str | None = DEFAULT_ENTRY_POINT_GROUP,
) -> list[TypeProvider]:
    """
    Collect providers in discovery order.

    Built-ins first, then providers registered in-process with
    ``register_provider``, then entry points from ``entry_point_group``.
    """
    providers: list[TypeProvider] = []
    if include_builtin:
        from ..providers import builtin_providers

        providers.extend(builtin_providers())
    providers.extend(list_providers())
    if entry_point_group:
        providers.extend(_entry_point_providers(entry_point_group))
    return providers


def order_providers(providers: Iterable[TypeProvider]) -> list[TypeProvider]:
    """
    Topologically sort providers by dependency.

    Duplicate ids keep the first provider. Dependencies on unknown providers
    are ignored with a warning. Raises ProviderDependencyCycleError when no
    valid order exists.
    """
    by_id: dict[str, TypeProvider] = {}
    index: dict[str, int] = {}
    for provider in providers:
        pid = provider.metadata.provider_id
        if pid in by_id:
            logger.warning("Duplicate provider id %s; keeping %r, ignoring %r", pid, by_id[pid], provider)
            continue
        by_id[pid] = provider
        index[pid] = len(index)

    # in_degree[x] = number of known providers x depends on
    in_degree: dict[str, int] = {}
    dependents: dict[str, list[str]] = {pid: [] for pid in by_id}
    for pid, provider in by_id.items():
        deps = set()
        for dep in provider.metadata.dependencies:
            if dep == pid:
                raise ProviderDependencyCycleError([pid])
            if dep not in by_id:
                logger.warning("Provider %s depends on unknown provider %s; ignoring dependency", pid, dep)
                continue
            deps.add(dep)
        in_degree[pid] = len(deps)
        for dep in deps:
            dependents[dep].append(pid)

    def key(pid: str) -> tuple[int, int, str]:
        return (by_id[pid].metadata.priority, index[pid], pid)

    heap = [key(pid) for pid, degree in in_degree.items() if degree == 0]
    heapq.heapify(heap)
    ordered: list[TypeProvider] = []
    while heap:
        _, _, pid = heapq.heappop(heap)
        ordered.append(by_id[pid])
        for dependent in dependents[pid]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(heap, key(dependent))

    if len(ordered) != len(by_id):
        stuck = [pid for pid, degree in in_degree.items() if degree > 0]
        raise ProviderDependencyCycleError(stuck)
    return ordered


def provider_scope(provider: TypeProvider) -> ScopeHandle:
    return ScopeHandle(f"provider:{provider.metadata.provider_id}")


def run_provider(registry: "MetaDataRegistry", provider: TypeProvider) -> None:
    """
    Run one provider inside its own scope.

    On failure its partial registrations are rolled back and ProviderLoadError
    is raised with the original exception as ``cause``.
    """
    scope = provider_scope(provider)
    try:
        with registry.scoped(scope):
            provider.register_types(registry)
    except Exception as exc:
        registry.release_scope(scope)
        raise ProviderLoadError(provider.metadata.provider_id, exc) from exc


def bootstrap_registry(
    registry: "MetaDataRegistry",
    providers: Iterable[TypeProvider] | None = None,
    *,
    include_builtin: bool = True,
    entry_point_group: str | None = DEFAULT_ENTRY_POINT_GROUP,
    disabled: Iterable[str] = (),
) -> BootstrapReport:
    """
    Populate ``registry`` from providers.

    When ``providers`` is None they are discovered. A provider that raises is
    logged, rolled back and recorded in the report; bootstrap continues.
    A dependency cycle between providers aborts before any provider runs.
    """
    if providers is None:
        providers = discover_providers(include_builtin=include_builtin, entry_point_group=entry_point_group)

    report = BootstrapReport()
    disabled_ids = {str(d).strip() for d in disabled}
    candidates: list[TypeProvider] = []
    for provider in providers:
        if provider.metadata.provider_id in disabled_ids:
            report.skipped.append(provider.metadata.provider_id)
            continue
        candidates.append(provider)

    ordered = order_providers(candidates)
    report.order = [p.metadata.provider_id for p in ordered]
    logger.debug("Provider load order: %s", ", ".join(report.order))

    for provider in ordered:
        pid = provider.metadata.provider_id
        try:
            run_provider(registry, provider)
        except ProviderLoadError as exc:
            logger.exception("Provider %s failed; its registrations were rolled back", pid)
            report.failed[pid] = f"{type(exc.cause).__name__}: {exc.cause}"
            continue
        report.loaded.append(pid)

    report.resolved = registry.resolve_deferred_inheritance()
    report.unresolved = registry.unresolved_types()
    for problem in report.unresolved:
        logger.warning("%s", problem)

    logger.info("Bootstrap of registry %s: %s", registry.name, report.summary())
    return report
