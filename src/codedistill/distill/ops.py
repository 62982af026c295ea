"""Pipeline and batch driver.

``Distiller`` runs one file through adapter, builder, resolver, visibility
filter and emitter. Source-level failures (syntax errors, unsupported
languages) end that file's pipeline with a diagnostic; the emitter never
runs on a unit whose parse failed.

``BatchDistiller`` fans files out over a bounded thread pool. Every worker
owns its file's data; the only shared mutable state is the ResultSink,
which is lock-protected. A failure in one worker is converted to an
``internal_error`` diagnostic and never affects its siblings.
"""

from __future__ import annotations

import contextvars
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from codedistill.config.models import DistillerConfig
from codedistill.core.errors import (
    CodeDistillError,
    InternalError,
    SourceSyntaxError,
    UnsupportedLanguageError,
)
from codedistill.core.logging import get_run_id, set_run_id
from codedistill.distill._internal.parsing.registry import AdapterRegistry, default_registry
from codedistill.distill.builder import SymbolModelBuilder
from codedistill.distill.diagnostics import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    Severity,
)
from codedistill.distill.emitter import DistillationEmitter
from codedistill.distill.models import DetailLevel
from codedistill.distill.resolver import UsageResolver
from codedistill.distill.visibility import VisibilityFilter

log = structlog.get_logger()


class FileStatus(str, Enum):
    OK = "ok"
    SYNTAX_ERROR = "syntax_error"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SourceInput:
    path: str
    text: str
    language: str | None = None  # None: detect from extension


@dataclass
class FileResult:
    path: str
    language: str | None
    status: FileStatus
    text: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    unused_imports: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "status": self.status.value,
            "text": self.text,
            "unused_imports": self.unused_imports,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def resolve_worker_count(max_workers: int) -> int:
    """0 means 80% of the CPU cores, never less than one worker."""
    if max_workers > 0:
        return max_workers
    return max(1, int((os.cpu_count() or 1) * 0.8))


class Distiller:
    """Runs the per-file pipeline."""

    def __init__(
        self,
        config: DistillerConfig | None = None,
        registry: AdapterRegistry | None = None,
    ) -> None:
        self.config = config or DistillerConfig()
        self.registry = registry or default_registry()
        self.builder = SymbolModelBuilder()
        self.resolver = UsageResolver(self.config.resolver)
        self.visibility = VisibilityFilter(self.resolver)
        self.emitter = DistillationEmitter(self.config.distill.include_docstrings)

    def distill(self, source: SourceInput) -> FileResult:
        """Distill one file. Source-level errors become diagnostics, not exceptions."""
        collector = DiagnosticCollector(source.path)
        language = source.language

        try:
            adapter = self.registry.for_source(source.path, source.language)
            language = adapter.language
            parsed = adapter.parse(source.text, source.path)
        except UnsupportedLanguageError as e:
            collector.from_error(e)
            log.warning("file_unsupported", file=source.path, language=source.language)
            return FileResult(
                source.path, language, FileStatus.UNSUPPORTED, diagnostics=collector.items
            )
        except SourceSyntaxError as e:
            collector.from_error(e)
            log.warning("file_syntax_error", file=source.path, line=e.line, column=e.column)
            return FileResult(
                source.path, language, FileStatus.SYNTAX_ERROR, diagnostics=collector.items
            )

        unit = self.builder.build(parsed)
        resolution = self.resolver.resolve(
            unit.declarations,
            unit.imports,
            unit.references,
            language=unit.language,
            local_names=unit.local_names,
            diagnostics=collector,
            file_path=unit.path,
        )
        filtered = self.visibility.filter(unit, self.config.distill.min_visibility)
        text = self.emitter.emit(filtered.unit, DetailLevel(self.config.distill.detail_level))

        unused = sorted(
            {e.display for e in resolution.unused} | {e.display for e in filtered.dropped_imports}
        )
        log.debug(
            "file_distilled",
            file=source.path,
            language=language,
            pruned=len(filtered.pruned),
            unused_imports=len(unused),
        )
        return FileResult(
            path=source.path,
            language=language,
            status=FileStatus.OK,
            text=text,
            diagnostics=collector.items,
            unused_imports=unused,
        )


class ResultSink:
    """Thread-safe aggregation point for worker results."""

    def __init__(self, total: int) -> None:
        self._lock = threading.Lock()
        self._results: list[FileResult | None] = [None] * total
        self._counts: dict[FileStatus, int] = {status: 0 for status in FileStatus}

    def put(self, index: int, result: FileResult) -> None:
        with self._lock:
            self._results[index] = result
            self._counts[result.status] += 1

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {status.value: n for status, n in self._counts.items()}

    def results(self) -> list[FileResult]:
        with self._lock:
            missing = [i for i, r in enumerate(self._results) if r is None]
            if missing:
                raise InternalError.unexpected("results missing after batch", indexes=missing)
            return [r for r in self._results if r is not None]


@dataclass
class BatchResult:
    results: list[FileResult]
    counts: dict[str, int]
    run_id: str
    elapsed_sec: float

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for r in self.results for d in r.diagnostics]

    @property
    def outputs(self) -> list[FileResult]:
        return [r for r in self.results if r.ok]


class BatchDistiller:
    """Distills many files concurrently with per-file failure isolation."""

    def __init__(self, distiller: Distiller | None = None, max_workers: int | None = None) -> None:
        self.distiller = distiller or Distiller()
        configured = self.distiller.config.batch.max_workers if max_workers is None else max_workers
        self.max_workers = resolve_worker_count(configured)

    def run(
        self,
        inputs: list[SourceInput],
        abort: threading.Event | None = None,
    ) -> BatchResult:
        """Distill every input; results come back in input order.

        Setting ``abort`` stops workers that have not started yet; each of
        them reports an ``aborted`` result instead.
        """
        start = time.monotonic()
        run_id = get_run_id() or set_run_id()
        sink = ResultSink(len(inputs))
        log.info("batch_started", files=len(inputs), workers=self.max_workers)

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="codedistill-worker"
        ) as executor:
            futures: dict[Future[FileResult], int] = {}
            for index, source in enumerate(inputs):
                ctx = contextvars.copy_context()
                futures[executor.submit(ctx.run, self._work, source, abort)] = index

            for future in as_completed(futures):
                index = futures[future]
                try:
                    result = future.result()
                except Exception as e:  # noqa: BLE001
                    result = self._failed(inputs[index], e)
                sink.put(index, result)

        batch = BatchResult(
            results=sink.results(),
            counts=sink.counts(),
            run_id=run_id,
            elapsed_sec=time.monotonic() - start,
        )
        log.info(
            "batch_completed",
            files=len(inputs),
            elapsed_sec=round(batch.elapsed_sec, 3),
            **batch.counts,
        )
        return batch

    def _work(self, source: SourceInput, abort: threading.Event | None) -> FileResult:
        if abort is not None and abort.is_set():
            return FileResult(source.path, source.language, FileStatus.ABORTED)
        with structlog.contextvars.bound_contextvars(file=source.path):
            try:
                return self.distiller.distill(source)
            except CodeDistillError as e:
                return self._failed(source, e)

    @staticmethod
    def _failed(source: SourceInput, error: Exception) -> FileResult:
        collector = DiagnosticCollector(source.path)
        if isinstance(error, CodeDistillError):
            wrapped = error
        else:
            wrapped = InternalError.unexpected(
                f"{type(error).__name__}: {error}", path=source.path
            )
        collector.add(
            DiagnosticKind.INTERNAL_ERROR,
            wrapped.message,
            severity=Severity.ERROR,
            code=wrapped.code.value,
        )
        log.error(
            "file_failed", file=source.path, error=str(wrapped), error_type=type(error).__name__
        )
        return FileResult(
            source.path, source.language, FileStatus.FAILED, diagnostics=collector.items
        )
