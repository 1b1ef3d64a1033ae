"""Page and per-parse context records.

``PageContext`` describes the environment a document is rendered into and outlives
parse calls. ``ParseContext`` is created at the start of every parse call and passed
explicitly to every tree-building routine, so no parse state lives on the builder.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Type
from urllib.parse import urljoin, urlsplit

from htmlview.shared import (
    CorrelationLogger,
    DiagnosticEntry,
    DiagnosticSeverity,
    HtmlParseError,
    PerformanceMetrics,
    ResourceResolutionError,
    StructureError,
    TreeConfig,
)
from htmlview.style import RecordingRequestHandler, RequestHandler, StyleEngine, StyleSheet
from htmlview.tokenization import EventKind, TokenCursor

from .elements import LogicalElement
from .factory import DefaultNodeFactory, NodeFactory

if TYPE_CHECKING:
    from .builder import Document


@dataclass
class PageContext:
    """Collaborators and base location for the documents of one page."""

    base_uri: Optional[str] = None
    style_engine: StyleEngine = field(default_factory=StyleSheet)
    request_handler: RequestHandler = field(default_factory=RecordingRequestHandler)
    node_factory: NodeFactory = field(default_factory=DefaultNodeFactory)

    def create_uri(self, href: Optional[str]) -> str:
        """Resolve ``href`` against the base location.

        Raises:
            ResourceResolutionError: If the location is empty or malformed
        """
        location = (href or "").strip()
        if not location:
            raise ResourceResolutionError("Empty resource location", href)
        try:
            urlsplit(location)
            resolved = urljoin(self.base_uri or "", location)
            urlsplit(resolved)
        except ValueError as e:
            raise ResourceResolutionError(f"Malformed resource location: {e}", href) from e
        return resolved


@dataclass
class ParseContext:
    """State of one parse call."""

    cursor: TokenCursor
    page: PageContext
    document: "Document"
    logger: CorrelationLogger
    config: TreeConfig = field(default_factory=TreeConfig)
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None
    depth: int = 0

    def fail(self, message: str,
             error_class: Type[HtmlParseError] = StructureError) -> HtmlParseError:
        """Build a fatal error positioned at the cursor; the caller raises it."""
        return error_class(message, self.cursor.position_description())

    def unexpected(self, routine: str) -> HtmlParseError:
        kind = self.cursor.event_kind.name
        return self.fail(f"Unexpected {kind} in {routine}")

    def expect(self, *kinds: EventKind) -> None:
        """Raise StructureError unless the cursor sits on one of ``kinds``."""
        if self.cursor.event_kind not in kinds:
            expected = " or ".join(kind.name for kind in kinds)
            raise self.fail(f"Expected {expected}, found {self.cursor.event_kind.name}")

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track recursion depth against ``TreeConfig.max_depth``."""
        if self.depth >= self.config.max_depth:
            raise self.fail(f"Maximum nesting depth {self.config.max_depth} exceeded")
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def link(self, logical_container: Optional[LogicalElement],
             element: LogicalElement) -> None:
        """Attach ``element`` to its logical container or to the document root."""
        if logical_container is None:
            self.document.logical_root.append(element)
        else:
            logical_container.append(element)
        self.metrics.logical_elements_created += 1

    def add_diagnostic(self, severity: DiagnosticSeverity, message: str, component: str,
                       details: Optional[Dict[str, Any]] = None) -> None:
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=self.cursor.position_description(),
            details=details,
            correlation_id=self.correlation_id,
        ))
