"""Style engine and resource request boundary for htmlview."""

from .resources import RecordingRequestHandler, RequestHandler, ResourceRequest
from .stylesheet import (
    INHERITED_PROPERTIES,
    CompoundSelector,
    Selector,
    StyleEngine,
    StyleRule,
    StyleSheet,
    parse_declarations,
    parse_selector,
)

__all__ = [
    "INHERITED_PROPERTIES",
    "CompoundSelector",
    "RecordingRequestHandler",
    "RequestHandler",
    "ResourceRequest",
    "Selector",
    "StyleEngine",
    "StyleRule",
    "StyleSheet",
    "parse_declarations",
    "parse_selector",
]
