"""Distillation pipeline: parse, model, resolve imports, filter, emit."""

from codedistill.distill.models import (
    Declaration,
    DeclarationKind,
    DetailLevel,
    ImportEntry,
    ReferenceContext,
    ReferenceRole,
    ReferenceToken,
    ResolutionResult,
    SourceUnit,
    TypeParameter,
    Visibility,
)
from codedistill.distill.diagnostics import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    Severity,
)
from codedistill.distill.builder import SymbolModelBuilder
from codedistill.distill.resolver import UsageResolver
from codedistill.distill.visibility import FilterResult, VisibilityFilter
from codedistill.distill.emitter import DistillationEmitter
from codedistill.distill.ops import (
    BatchDistiller,
    BatchResult,
    Distiller,
    FileResult,
    FileStatus,
    SourceInput,
)
from codedistill.distill.discovery import discover, read_sources

__all__ = [
    # Models
    "Declaration",
    "DeclarationKind",
    "DetailLevel",
    "ImportEntry",
    "ReferenceContext",
    "ReferenceRole",
    "ReferenceToken",
    "ResolutionResult",
    "SourceUnit",
    "TypeParameter",
    "Visibility",
    # Diagnostics
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "Severity",
    # Stages
    "DistillationEmitter",
    "FilterResult",
    "SymbolModelBuilder",
    "UsageResolver",
    "VisibilityFilter",
    # Driver
    "BatchDistiller",
    "BatchResult",
    "Distiller",
    "FileResult",
    "FileStatus",
    "SourceInput",
    "discover",
    "read_sources",
]
