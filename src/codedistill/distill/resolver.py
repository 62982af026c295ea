"""Usage Resolver: decides, per import, whether code actually uses it.

Resolution of one code reference, in order:

1. Qualified reference (``a.b.Name``): marks a non-static direct import whose
   path is, or ends with, the qualified form. Never falls back to wildcards.
2. Bare reference: direct imports bound to the same simple name. Static
   imports only answer value references (calls, field reads); the rest
   answer either role. A top-level import shadows a nested-type import of
   the same simple name, and ``import a`` shadows ``import a.b`` for the
   bare ``a``; the dotted import is used through its qualified segment
   instead. When several candidates remain the reference is
   ambiguous: the most recently declared import is marked and an
   ``ambiguous_reference`` diagnostic is recorded.
3. No direct match: names the file binds itself and names the language
   provides implicitly are settled. Anything else is attributed to
   plausible wildcard imports according to the wildcard policy
   (``first``, ``all`` or ``none``). Type-like names consider type
   wildcards, value names consider static wildcards.

Documentation references never mark anything. Once code references are
exhausted, unused imports that are mentioned in documentation are reported
as ``documentation_only``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

import structlog

from codedistill.config.models import ResolverConfig
from codedistill.distill._internal.parsing.packs import LanguagePack, get_pack
from codedistill.distill.diagnostics import DiagnosticCollector, DiagnosticKind, Severity
from codedistill.distill.models import (
    Declaration,
    ImportEntry,
    ReferenceContext,
    ReferenceRole,
    ReferenceToken,
    ResolutionResult,
)

log = structlog.get_logger()


def _is_type_like(token: ReferenceToken) -> bool:
    if token.role is ReferenceRole.TYPE:
        return True
    name = token.name
    return name[:1].isupper() and not name.isupper()


def _binds_package_root(entry: ImportEntry) -> bool:
    """`import a.b` binds `a` without importing `a` itself."""
    return (
        entry.module is None
        and not entry.has_alias
        and entry.path.startswith(entry.name + ".")
    )


class UsageResolver:
    """Marks ImportEntry.used from a reference stream."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self.config = config or ResolverConfig()

    def resolve(
        self,
        declarations: Iterable[Declaration],
        imports: list[ImportEntry],
        references: Iterable[ReferenceToken],
        *,
        language: str,
        local_names: Iterable[str] = (),
        diagnostics: DiagnosticCollector | None = None,
        file_path: str = "<memory>",
    ) -> ResolutionResult:
        """Resolve usage in place on ``imports`` and report what stays unused.

        Args:
            declarations: The unit's declaration forest (its names are local)
            imports: Entries to mark; ``used`` only ever goes from False to True
            references: Code and documentation tokens
            language: Language id, for implicit names and wildcard semantics
            local_names: Further names bound by the file (variables, parameters)
            diagnostics: Collector to report into; a private one when omitted
            file_path: Used for diagnostics only
        """
        collector = diagnostics if diagnostics is not None else DiagnosticCollector(file_path)
        start = len(collector)
        pack = get_pack(language)

        known = set(local_names)
        for root in declarations:
            known.update(decl.name for decl in root.walk())

        by_name: dict[str, list[ImportEntry]] = defaultdict(list)
        wildcards: list[ImportEntry] = []
        for entry in sorted(imports, key=lambda e: e.order):
            if entry.is_wildcard:
                wildcards.append(entry)
            else:
                by_name[entry.name].append(entry)
        direct = [e for e in imports if not e.is_wildcard]

        doc_tokens: list[ReferenceToken] = []
        heuristic_hits: dict[int, int] = defaultdict(int)

        for token in references:
            if token.context is ReferenceContext.DOCUMENTATION:
                doc_tokens.append(token)
                continue
            if token.qualifier:
                self._resolve_qualified(token, direct)
                continue
            if self._resolve_direct(token, by_name.get(token.name, ()), collector):
                continue
            if token.name in known or (pack is not None and token.name in pack.implicit_names):
                continue
            for entry in self._wildcard_candidates(token, wildcards, pack):
                entry.mark_used(token)
                heuristic_hits[entry.order] += 1

        for entry in wildcards:
            hits = heuristic_hits.get(entry.order)
            if hits:
                collector.add(
                    DiagnosticKind.WILDCARD_HEURISTIC,
                    f"'{entry.display}' assumed used by {hits} unresolved reference(s)",
                    severity=Severity.INFO,
                    line=entry.line,
                    import_path=entry.display,
                    references=hits,
                    policy=self.config.wildcard_policy,
                )

        unused = [e for e in sorted(imports, key=lambda e: e.order) if not e.used]
        if self.config.report_documentation_only:
            self._report_documentation_only(unused, doc_tokens, collector)

        log.debug(
            "imports_resolved",
            file=collector.file_path,
            imports=len(imports),
            unused=len(unused),
            policy=self.config.wildcard_policy,
        )
        return ResolutionResult(unused=unused, diagnostics=collector.items[start:])

    @staticmethod
    def _resolve_qualified(token: ReferenceToken, direct: list[ImportEntry]) -> None:
        qualified = token.qualified_name
        for entry in direct:
            if entry.is_static:
                continue
            if entry.path == qualified or entry.path.endswith("." + qualified):
                entry.mark_used(token)

    def _resolve_direct(
        self,
        token: ReferenceToken,
        entries: Iterable[ImportEntry],
        collector: DiagnosticCollector,
    ) -> bool:
        candidates = [
            e for e in entries if not e.is_static or token.role is ReferenceRole.VALUE
        ]
        if not candidates:
            return False
        top_level = [e for e in candidates if not e.is_nested_type] or candidates
        roots = [e for e in top_level if _binds_package_root(e)]
        if roots and len(roots) < len(top_level):
            top_level = [e for e in top_level if not _binds_package_root(e)]
        elif len(roots) > 1:
            # `import a.b` and `import a.c` share `a`; the attribute after it decides
            return True
        chosen = max(top_level, key=lambda e: e.order)
        if len(top_level) > 1:
            collector.add(
                DiagnosticKind.AMBIGUOUS_REFERENCE,
                f"'{token.name}' matches {len(top_level)} imports "
                f"({', '.join(e.path for e in top_level)}); using {chosen.path}",
                line=token.line,
                column=token.column + 1,
                name=token.name,
                candidates=[e.path for e in top_level],
                chosen=chosen.path,
            )
            log.warning(
                "import_ambiguous",
                file=collector.file_path,
                name=token.name,
                line=token.line,
                chosen=chosen.path,
            )
        chosen.mark_used(token)
        return True

    def _wildcard_candidates(
        self,
        token: ReferenceToken,
        wildcards: list[ImportEntry],
        pack: LanguagePack | None,
    ) -> list[ImportEntry]:
        if not wildcards or self.config.wildcard_policy == "none":
            return []
        if pack is not None and pack.untyped_wildcards:
            pool = wildcards
        elif _is_type_like(token):
            pool = [w for w in wildcards if not w.is_static]
        else:
            pool = [w for w in wildcards if w.is_static]
        if not pool:
            return []
        return pool[:1] if self.config.wildcard_policy == "first" else pool

    @staticmethod
    def _report_documentation_only(
        unused: list[ImportEntry],
        doc_tokens: list[ReferenceToken],
        collector: DiagnosticCollector,
    ) -> None:
        if not doc_tokens:
            return
        names = {t.name for t in doc_tokens}
        qualified = {t.qualified_name for t in doc_tokens}
        for entry in unused:
            if entry.is_wildcard:
                continue
            if entry.name in names or entry.path in qualified:
                collector.add(
                    DiagnosticKind.DOCUMENTATION_ONLY,
                    f"'{entry.path}' is only referenced in documentation; consider removing it",
                    severity=Severity.INFO,
                    line=entry.line,
                    import_path=entry.path,
                )
