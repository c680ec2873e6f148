"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from metatypes.registry import MetaDataRegistry, clear_providers, reset_default_registry


@pytest.fixture(autouse=True)
def _isolated_provider_registry():
    """Providers registered in one test must not leak into the next."""
    clear_providers()
    reset_default_registry()
    yield
    clear_providers()
    reset_default_registry()


@pytest.fixture
def registry() -> MetaDataRegistry:
    """An empty, isolated registry."""
    return MetaDataRegistry("test")


@pytest.fixture
def bootstrapped() -> MetaDataRegistry:
    """A registry populated by the built-in providers only."""
    reg = MetaDataRegistry("builtin")
    reg.ensure_bootstrapped(entry_point_group=None)
    return reg
