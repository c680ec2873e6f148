"""
Tests for provider ordering and bootstrap.

Key properties:
1. Dependencies load first; ties break by priority, then discovery order
2. A failing provider is rolled back and skipped; the rest still load
3. A provider dependency cycle aborts before any provider runs
"""

from __future__ import annotations

import logging
import threading

import pytest

from metatypes.errors import ProviderDependencyCycleError, ProviderLoadError
from metatypes.registry import (
    MetaDataRegistry,
    ProviderMetadata,
    TypeProvider,
    bootstrap_registry,
    discover_providers,
    get_default_registry,
    get_provider,
    list_providers,
    order_providers,
    register_provider,
    set_default_registry,
)
from metatypes.registry.bootstrap import run_provider


class StubProvider(TypeProvider):
    """Provider that registers ``<id>.base`` (or runs ``action``)."""

    def __init__(self, provider_id: str, deps=(), priority: int = 100, action=None):
        self._metadata = ProviderMetadata(
            provider_id=provider_id,
            dependencies=frozenset(deps),
            priority=priority,
            description=f"stub {provider_id}",
        )
        self._action = action
        self.calls = 0

    @property
    def metadata(self) -> ProviderMetadata:
        return self._metadata

    def register_types(self, registry: MetaDataRegistry) -> None:
        self.calls += 1
        if self._action is not None:
            self._action(registry)
        else:
            registry.register_type(f"{self._metadata.provider_id}.base")


def _ids(providers) -> list[str]:
    return [p.metadata.provider_id for p in providers]


# -----------------------------------------------------------------------------
# Provider SPI
# -----------------------------------------------------------------------------


def test_provider_getters() -> None:
    provider = StubProvider("alpha", deps={"core"}, priority=5)
    assert provider.get_provider_id() == "alpha"
    assert provider.get_dependencies() == frozenset({"core"})
    assert provider.get_priority() == 5
    assert provider.get_description() == "stub alpha"


def test_provider_metadata_requires_id() -> None:
    with pytest.raises(ValueError):
        ProviderMetadata(provider_id="  ")


def test_register_provider_global_registry() -> None:
    provider = register_provider(StubProvider("alpha"))
    assert get_provider("alpha") is provider
    assert list_providers() == [provider]
    assert get_provider("missing") is None


# -----------------------------------------------------------------------------
# Ordering
# -----------------------------------------------------------------------------


def test_dependencies_load_first() -> None:
    ordered = order_providers(
        [
            StubProvider("c", deps={"b"}),
            StubProvider("b", deps={"a"}),
            StubProvider("a"),
        ]
    )
    assert _ids(ordered) == ["a", "b", "c"]


def test_ties_break_by_priority_then_discovery_order() -> None:
    ordered = order_providers(
        [
            StubProvider("late", priority=900),
            StubProvider("second", priority=10),
            StubProvider("first", priority=10),
            StubProvider("early", priority=1),
        ]
    )
    assert _ids(ordered) == ["early", "second", "first", "late"]


def test_priority_never_overrides_dependencies() -> None:
    ordered = order_providers(
        [
            StubProvider("base", priority=999),
            StubProvider("plugin", deps={"base"}, priority=0),
        ]
    )
    assert _ids(ordered) == ["base", "plugin"]


def test_dependency_cycle_is_fatal() -> None:
    with pytest.raises(ProviderDependencyCycleError) as exc_info:
        order_providers(
            [
                StubProvider("a", deps={"b"}),
                StubProvider("b", deps={"a"}),
                StubProvider("c"),
            ]
        )
    assert exc_info.value.provider_ids == ["a", "b"]


def test_self_dependency_is_a_cycle() -> None:
    with pytest.raises(ProviderDependencyCycleError):
        order_providers([StubProvider("a", deps={"a"})])


def test_unknown_dependency_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        ordered = order_providers([StubProvider("a", deps={"ghost"})])
    assert _ids(ordered) == ["a"]
    assert "ghost" in caplog.text


def test_duplicate_provider_id_keeps_first() -> None:
    first = StubProvider("a", priority=1)
    second = StubProvider("a", priority=2)
    ordered = order_providers([first, second])
    assert ordered == [first]


# -----------------------------------------------------------------------------
# Bootstrap
# -----------------------------------------------------------------------------


def test_bootstrap_runs_providers_and_resolves_deferred(registry: MetaDataRegistry) -> None:
    # The plugin's type inherits from a type its (later-ordered) sibling registers
    plugin = StubProvider(
        "plugin",
        priority=1,
        action=lambda r: r.register_type("widget.button", lambda d: d.inherits_from("widget.base")),
    )
    widgets = StubProvider("widget", priority=2)

    report = bootstrap_registry(registry, [plugin, widgets], include_builtin=False)

    assert report.order == ["plugin", "widget"]
    assert report.loaded == ["plugin", "widget"]
    assert report.resolved == 1
    assert report.ok
    assert registry.get_type_definition("widget.button").is_resolved


def test_failing_provider_is_rolled_back(registry: MetaDataRegistry, caplog: pytest.LogCaptureFixture) -> None:
    def half_then_fail(reg: MetaDataRegistry) -> None:
        reg.register_type("broken.base")
        raise RuntimeError("boom")

    providers = [StubProvider("core"), StubProvider("broken", deps={"core"}, action=half_then_fail)]
    providers.append(StubProvider("after", deps={"core"}))

    with caplog.at_level(logging.ERROR):
        report = bootstrap_registry(registry, providers)

    assert report.loaded == ["core", "after"]
    assert report.failed == {"broken": "RuntimeError: boom"}
    assert not report.ok
    assert not registry.is_registered("broken.base")
    assert registry.is_registered("after.base")
    assert "broken" in caplog.text


def test_run_provider_raises_provider_load_error(registry: MetaDataRegistry) -> None:
    def fail(reg: MetaDataRegistry) -> None:
        raise KeyError("missing")

    with pytest.raises(ProviderLoadError) as exc_info:
        run_provider(registry, StubProvider("bad", action=fail))
    assert exc_info.value.provider_id == "bad"
    assert isinstance(exc_info.value.cause, KeyError)


def test_bootstrap_cycle_aborts_before_running(registry: MetaDataRegistry) -> None:
    a = StubProvider("a", deps={"b"})
    b = StubProvider("b", deps={"a"})
    with pytest.raises(ProviderDependencyCycleError):
        bootstrap_registry(registry, [a, b])
    assert a.calls == 0 and b.calls == 0
    assert len(registry) == 0


def test_bootstrap_reports_unresolved(registry: MetaDataRegistry) -> None:
    orphan = StubProvider(
        "orphan", action=lambda r: r.register_type("widget.button", lambda d: d.inherits_from("widget.base"))
    )
    report = bootstrap_registry(registry, [orphan])

    assert report.loaded == ["orphan"]
    assert len(report.unresolved) == 1
    assert not report.ok
    assert "1 unresolved" in report.summary()


def test_bootstrap_skips_disabled(registry: MetaDataRegistry) -> None:
    report = bootstrap_registry(registry, [StubProvider("a"), StubProvider("b")], disabled=["b"])
    assert report.loaded == ["a"]
    assert report.skipped == ["b"]
    assert not registry.is_registered("b.base")


def test_provider_registrations_are_scoped(registry: MetaDataRegistry) -> None:
    bootstrap_registry(registry, [StubProvider("alpha")])
    assert registry.get_type_definition("alpha.base").scope == "provider:alpha"
    assert registry.release_scope("provider:alpha") == 1


def test_discover_providers_order() -> None:
    registered = register_provider(StubProvider("extra"))
    providers = discover_providers(include_builtin=True, entry_point_group=None)
    ids = _ids(providers)
    assert ids[0] == "core-types"
    assert ids[-1] == "extra"
    assert providers[-1] is registered


def test_discover_providers_without_builtins() -> None:
    assert discover_providers(include_builtin=False, entry_point_group=None) == []


def test_ensure_bootstrapped_runs_once(registry: MetaDataRegistry) -> None:
    provider = StubProvider("once")
    first = registry.ensure_bootstrapped([provider], include_builtin=False)
    second = registry.ensure_bootstrapped([provider], include_builtin=False)
    assert first is second
    assert provider.calls == 1
    assert registry.bootstrap_report is first


def test_ensure_bootstrapped_concurrent_callers(registry: MetaDataRegistry) -> None:
    provider = StubProvider("shared")
    barrier = threading.Barrier(8)
    reports = []

    def worker() -> None:
        barrier.wait()
        reports.append(registry.ensure_bootstrapped([provider], include_builtin=False))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert provider.calls == 1
    assert all(r is reports[0] for r in reports)


def test_default_registry_is_bootstrapped_lazily() -> None:
    custom = MetaDataRegistry("custom")
    set_default_registry(custom)
    register_provider(StubProvider("plugin"))

    registry = get_default_registry()

    assert registry is custom
    assert registry.is_registered("field.base")
    assert registry.is_registered("plugin.base")
