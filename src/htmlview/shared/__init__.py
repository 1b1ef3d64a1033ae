"""Shared utilities for htmlview.

This module provides configuration objects, diagnostics, the exception hierarchy and
logging helpers used across all processing layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    ApiConfig,
    ConfigError,
    ConfigValidationError,
    CursorConfig,
    GlobalConfig,
    ProcessorConfig,
    TreeConfig,
)
from .errors import (
    HtmlParseError,
    HtmlViewError,
    MarkupError,
    ResourceResolutionError,
    StructureError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ApiConfig",
    "ConfigError",
    "ConfigValidationError",
    "CursorConfig",
    "GlobalConfig",
    "ProcessorConfig",
    "TreeConfig",
    "HtmlParseError",
    "HtmlViewError",
    "MarkupError",
    "ResourceResolutionError",
    "StructureError",
    "CorrelationLogger",
    "get_logger",
]
