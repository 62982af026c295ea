"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEDISTILL__SECTION__KEY)
3. Repo YAML (.codedistill.yaml)
4. Global YAML (~/.config/codedistill/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODEDISTILL__<SECTION>__<KEY>=<VALUE>

Examples:
    CODEDISTILL__LOGGING__LEVEL=DEBUG
    CODEDISTILL__DISTILL__MIN_VISIBILITY=public
    CODEDISTILL__RESOLVER__WILDCARD_POLICY=all
    CODEDISTILL__BATCH__MAX_WORKERS=4
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
MinVisibility = Literal["public", "protected", "package", "all"]
DetailLevelName = Literal["signatures", "signatures+fields", "full-minus-bodies"]
WildcardPolicy = Literal["first", "all", "none"]

# Spellings accepted for min_visibility in addition to the canonical names.
_VISIBILITY_ALIASES = {
    "public+protected": "protected",
    "public+protected+package": "package",
    "public+protected+internal": "package",
    "internal": "package",
    "private": "all",
}

_DETAIL_ALIASES = {
    "signatures-only": "signatures",
    "fields": "signatures+fields",
    "full": "full-minus-bodies",
}


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEDISTILL__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every file and every resolved import.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class DistillConfig(BaseModel):
    """What survives distillation.

    Env vars:
        CODEDISTILL__DISTILL__MIN_VISIBILITY: public, protected, package or all
        CODEDISTILL__DISTILL__DETAIL_LEVEL: signatures, signatures+fields, full-minus-bodies
        CODEDISTILL__DISTILL__INCLUDE_DOCSTRINGS: Keep Javadoc and docstrings (true/false)
    """

    model_config = ConfigDict(frozen=True)

    min_visibility: MinVisibility = Field(
        default="all",
        description="Lowest visibility kept. Declarations below it are pruned with "
        "their whole subtree, and imports only they used are dropped.",
    )
    detail_level: DetailLevelName = Field(
        default="signatures+fields",
        description="How much of each surviving declaration is emitted. "
        "Bodies are never emitted.",
    )
    include_docstrings: bool = Field(
        default=True,
        description="Emit the doc comment or docstring of each surviving declaration.",
    )

    @field_validator("min_visibility", mode="before")
    @classmethod
    def normalize_visibility(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            return _VISIBILITY_ALIASES.get(key, key)
        return v

    @field_validator("detail_level", mode="before")
    @classmethod
    def normalize_detail(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            return _DETAIL_ALIASES.get(key, key)
        return v


class ResolverConfig(BaseModel):
    """Import usage resolution.

    Env vars:
        CODEDISTILL__RESOLVER__WILDCARD_POLICY: first, all or none
    """

    model_config = ConfigDict(frozen=True)

    wildcard_policy: WildcardPolicy = Field(
        default="first",
        description="How an unresolved name is attributed to wildcard imports. "
        "'first' marks the first plausible wildcard, 'all' marks every plausible "
        "wildcard, 'none' never marks a wildcard.",
    )
    report_documentation_only: bool = Field(
        default=True,
        description="Emit a diagnostic for unused imports that are only mentioned "
        "in comments or docstrings.",
    )


class BatchConfig(BaseModel):
    """Batch execution.

    Env vars:
        CODEDISTILL__BATCH__MAX_WORKERS: Worker threads (0 = 80% of CPU cores)
    """

    model_config = ConfigDict(frozen=True)

    max_workers: int = Field(
        default=0,
        description="Worker threads for a batch. 0 picks 80% of CPU cores (at least 1).",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_workers must be >= 0, got {v}")
        return v


class DistillerConfig(BaseModel):
    """Root configuration for CodeDistill.

    All settings can be configured via:
    1. Environment variables: CODEDISTILL__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    distill: DistillConfig = Field(default_factory=DistillConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
