"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides the shared grammar registry and Java fixtures.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local codedistill package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of codedistill modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("codedistill"):
        del sys.modules[module_name]

from codedistill.distill._internal.parsing.registry import (  # noqa: E402
    AdapterRegistry,
    default_registry,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def registry() -> AdapterRegistry:
    """One registry per session so grammars load once."""
    return default_registry()


@pytest.fixture
def java_fixture() -> Callable[[str], str]:
    """Read a Java fixture by file name."""

    def _read(name: str) -> str:
        return (FIXTURES_DIR / "java" / name).read_text(encoding="utf-8")

    return _read
