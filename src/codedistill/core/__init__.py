"""Core module exports."""

from codedistill.core.errors import (
    CodeDistillError,
    ConfigError,
    ErrorCode,
    InternalError,
    SourceSyntaxError,
    UnsupportedLanguageError,
)
from codedistill.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CodeDistillError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "SourceSyntaxError",
    "UnsupportedLanguageError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
