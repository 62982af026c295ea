"""Shared fixtures for pipeline stage tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from codedistill.distill._internal.parsing.registry import AdapterRegistry
from codedistill.distill.builder import SymbolModelBuilder
from codedistill.distill.models import SourceUnit


@pytest.fixture
def build_unit(registry: AdapterRegistry) -> Callable[..., SourceUnit]:
    """Parse and build a SourceUnit; language follows the path extension."""

    def _build(source: str, path: str = "Test.java") -> SourceUnit:
        adapter = registry.for_source(path)
        return SymbolModelBuilder().build(adapter.parse(source, path))

    return _build
