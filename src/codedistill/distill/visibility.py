"""Visibility Filter: prune declarations below a threshold, then recompute usage.

Pruning is top-down: a declaration below the threshold is removed together
with its whole subtree. Local and anonymous classes are part of the body
that contains them and share its fate.

Usage is then recomputed from scratch over ``fresh()`` import copies, using
only reference tokens owned by surviving declarations (or by no declaration
at all). An import therefore stays exactly when some surviving region still
references it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from codedistill.distill.models import (
    Declaration,
    ImportEntry,
    ReferenceToken,
    ResolutionResult,
    SourceUnit,
    Visibility,
)
from codedistill.distill.resolver import UsageResolver

log = structlog.get_logger()


@dataclass
class FilterResult:
    unit: SourceUnit
    pruned: list[Declaration] = field(default_factory=list)
    dropped_imports: list[ImportEntry] = field(default_factory=list)
    resolution: ResolutionResult = field(default_factory=ResolutionResult)


class VisibilityFilter:
    def __init__(self, resolver: UsageResolver | None = None) -> None:
        self.resolver = resolver or UsageResolver()

    def filter(self, unit: SourceUnit, min_visibility: str | Visibility) -> FilterResult:
        """Prune ``unit`` in place and drop imports nothing surviving uses."""
        threshold = (
            min_visibility
            if isinstance(min_visibility, Visibility)
            else Visibility.threshold(min_visibility)
        )

        pruned: list[Declaration] = []
        unit.declarations = self._prune(unit.declarations, threshold, pruned)

        surviving = {decl.uid for decl in unit.walk()}
        tokens: list[ReferenceToken] = [
            t for t in unit.references if t.owner_uid is None or t.owner_uid in surviving
        ]

        fresh = [entry.fresh() for entry in unit.imports]
        resolution = self.resolver.resolve(
            unit.declarations,
            fresh,
            tokens,
            language=unit.language,
            local_names=unit.local_names,
            file_path=unit.path,
        )
        dropped = resolution.unused
        unit.imports = [entry for entry in fresh if entry.used]
        unit.references = tokens

        log.debug(
            "unit_filtered",
            file=unit.path,
            threshold=threshold.name.lower(),
            pruned=len(pruned),
            dropped_imports=len(dropped),
        )
        return FilterResult(
            unit=unit, pruned=pruned, dropped_imports=dropped, resolution=resolution
        )

    def _prune(
        self,
        declarations: list[Declaration],
        threshold: Visibility,
        pruned: list[Declaration],
    ) -> list[Declaration]:
        kept: list[Declaration] = []
        for decl in declarations:
            if decl.is_local or decl.is_anonymous:
                kept.append(decl)
                continue
            if decl.visibility < threshold:
                pruned.append(decl)
                continue
            decl.children = self._prune(decl.children, threshold, pruned)
            kept.append(decl)
        return kept
