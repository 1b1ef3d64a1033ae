"""Diagnostic and metric types shared by the htmlview processing layers."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Non-fatal problems, parsing continued
    ERROR = auto()      # Errors that affected part of the output
    CRITICAL = auto()   # Fatal errors, no document produced


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-ready dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position is not None:
            result["position"] = self.position
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Counters collected while building one document."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    characters_processed: int = 0
    events_consumed: int = 0
    logical_elements_created: int = 0
    physical_nodes_created: int = 0
    inline_runs_created: int = 0
    interruptions: int = 0
    resumptions: int = 0
    stylesheet_requests: int = 0
    style_sheets_ingested: int = 0

    @property
    def events_per_second(self) -> float:
        """Calculate cursor events consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_consumed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "memory_used_bytes": self.memory_used_bytes,
            "characters_processed": self.characters_processed,
            "events_consumed": self.events_consumed,
            "logical_elements_created": self.logical_elements_created,
            "physical_nodes_created": self.physical_nodes_created,
            "inline_runs_created": self.inline_runs_created,
            "interruptions": self.interruptions,
            "resumptions": self.resumptions,
            "stylesheet_requests": self.stylesheet_requests,
            "style_sheets_ingested": self.style_sheets_ingested,
        }
