"""Diagnostics collected while distilling a file.

A DiagnosticCollector is threaded explicitly through the pipeline stages of
one file. Nothing is reported through globals; the batch driver gathers the
collectors of all files once their workers finish.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from codedistill.core.errors import CodeDistillError, ErrorCode

log = structlog.get_logger()


class DiagnosticKind(str, Enum):
    SYNTAX_ERROR = "syntax_error"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    AMBIGUOUS_REFERENCE = "ambiguous_reference"
    WILDCARD_HEURISTIC = "wildcard_heuristic"
    DOCUMENTATION_ONLY = "documentation_only"
    INTERNAL_ERROR = "internal_error"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_ERROR_KINDS = {
    ErrorCode.SOURCE_SYNTAX_ERROR: DiagnosticKind.SYNTAX_ERROR,
    ErrorCode.UNSUPPORTED_LANGUAGE: DiagnosticKind.UNSUPPORTED_LANGUAGE,
    ErrorCode.GRAMMAR_UNAVAILABLE: DiagnosticKind.UNSUPPORTED_LANGUAGE,
}

_ERROR_SEVERITY = {
    DiagnosticKind.SYNTAX_ERROR: Severity.ERROR,
    DiagnosticKind.UNSUPPORTED_LANGUAGE: Severity.WARNING,
    DiagnosticKind.INTERNAL_ERROR: Severity.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    severity: Severity
    message: str
    file_path: str
    line: int | None = None
    column: int | None = None
    details: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file_path,
            "line": self.line,
            "column": self.column,
            "details": self.details,
        }

    def __str__(self) -> str:
        where = self.file_path
        if self.line is not None:
            where = f"{where}:{self.line}"
            if self.column is not None:
                where = f"{where}:{self.column}"
        return f"{where}: {self.severity.value}: {self.message}"


class DiagnosticCollector:
    """Ordered diagnostics for a single file."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self._items: list[Diagnostic] = []

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[Diagnostic]:
        return list(self._items)

    def add(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        severity: Severity = Severity.WARNING,
        line: int | None = None,
        column: int | None = None,
        **details: Any,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            kind=kind,
            severity=severity,
            message=message,
            file_path=self.file_path,
            line=line,
            column=column,
            details=details,
        )
        self._items.append(diagnostic)
        log.debug("diagnostic", kind=kind.value, file=self.file_path, line=line)
        return diagnostic

    def from_error(self, error: CodeDistillError) -> Diagnostic:
        """Record a file-scoped error raised by a pipeline stage."""
        kind = _ERROR_KINDS.get(error.code, DiagnosticKind.INTERNAL_ERROR)
        line = error.details.get("line")
        column = error.details.get("column")
        return self.add(
            kind,
            error.message,
            severity=_ERROR_SEVERITY[kind],
            line=line,
            column=column,
            code=error.code.value,
        )

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._items if d.kind is kind]
