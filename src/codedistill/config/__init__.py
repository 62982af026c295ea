"""Config module exports."""

from codedistill.config.loader import CodeDistillSettings, load_config, with_overrides
from codedistill.config.models import (
    BatchConfig,
    DistillConfig,
    DistillerConfig,
    LoggingConfig,
    ResolverConfig,
)

__all__ = [
    "load_config",
    "with_overrides",
    "CodeDistillSettings",
    "DistillerConfig",
    "DistillConfig",
    "ResolverConfig",
    "BatchConfig",
    "LoggingConfig",
]
