"""Source discovery for the batch driver.

Directories are walked with dependency, cache and VCS directories pruned.
Only files whose extension some registered adapter claims are collected;
explicitly named files are always included and left to the pipeline to
reject if their language is unsupported.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from codedistill.distill._internal.parsing.registry import AdapterRegistry
from codedistill.distill.ops import SourceInput

log = structlog.get_logger()

PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        # Python
        "venv",
        ".venv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".eggs",
        "site-packages",
        # Java / JVM
        "target",
        ".gradle",
        ".idea",
        # JavaScript
        "node_modules",
        # Generic build output
        "build",
        "dist",
        "out",
    )
)


def discover(paths: Iterable[Path], registry: AdapterRegistry) -> list[Path]:
    """Expand files and directories into a sorted, de-duplicated file list."""
    extensions = registry.extensions()
    found: set[Path] = set()
    for path in paths:
        if path.is_file():
            found.add(path)
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            # Prune in place so os.walk never descends
            dirnames[:] = [d for d in dirnames if d not in PRUNABLE_DIRS]
            for filename in filenames:
                if Path(filename).suffix.lstrip(".").lower() in extensions:
                    found.add(Path(dirpath) / filename)
    files = sorted(found)
    log.debug("sources_discovered", count=len(files))
    return files


def read_sources(files: Iterable[Path], language: str | None = None) -> list[SourceInput]:
    """Read files as UTF-8; undecodable bytes are replaced, not fatal."""
    return [
        SourceInput(
            path=str(f),
            text=f.read_text(encoding="utf-8", errors="replace"),
            language=language,
        )
        for f in files
    ]
