"""CodeDistill error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Source (parsing, language support)
- 9xxx: Internal

Only ``ConfigError`` is fatal to a run. Source errors are scoped to a single
file and are converted to diagnostics by the pipeline.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Source (3xxx)
    SOURCE_SYNTAX_ERROR = 3001
    UNSUPPORTED_LANGUAGE = 3002
    GRAMMAR_UNAVAILABLE = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CodeDistillError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeDistillError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class SourceSyntaxError(CodeDistillError):
    """A source file could not be parsed cleanly."""

    @property
    def file_path(self) -> str:
        return str(self.details.get("path", ""))

    @property
    def line(self) -> int:
        return int(self.details.get("line", 0))

    @property
    def column(self) -> int:
        return int(self.details.get("column", 0))

    @classmethod
    def at(cls, path: str, line: int, column: int, reason: str) -> "SourceSyntaxError":
        return cls(
            code=ErrorCode.SOURCE_SYNTAX_ERROR,
            message=f"{path}:{line}:{column}: {reason}",
            details={"path": path, "line": line, "column": column, "reason": reason},
        )


class UnsupportedLanguageError(CodeDistillError):
    """No adapter is registered for a file's language."""

    @classmethod
    def for_language(cls, path: str, language: str | None) -> "UnsupportedLanguageError":
        shown = language or "unknown"
        return cls(
            code=ErrorCode.UNSUPPORTED_LANGUAGE,
            message=f"No language adapter registered for '{shown}' ({path})",
            details={"path": path, "language": shown},
        )

    @classmethod
    def grammar_unavailable(cls, language: str, module: str) -> "UnsupportedLanguageError":
        return cls(
            code=ErrorCode.GRAMMAR_UNAVAILABLE,
            message=f"Grammar for '{language}' is not installed (import {module} failed)",
            details={"language": language, "module": module},
        )


class InternalError(CodeDistillError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
