"""Document construction from a token cursor.

``HtmlTreeBuilder`` turns the event stream of a ``TokenCursor`` into a pair of trees:
the logical element tree rooted at ``Document.logical_root`` and the physical node
tree rooted at ``Document.physical_root``. Styles are applied to the logical tree
once the whole document has been read.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from htmlview.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    HtmlParseError,
    PerformanceMetrics,
    TreeConfig,
    get_logger,
)
from htmlview.tokenization import EventKind, TokenCursor

from .container import parse_container_content
from .context import PageContext, ParseContext
from .elements import LogicalElement, VirtualElement
from .nodes import ContainerNode, InlineRun, PhysicalNode

LOGICAL_ROOT_NAME = "#document"
PHYSICAL_ROOT_NAME = "#root"


@dataclass(eq=False)
class Document:
    """A parsed document: logical element tree plus physical node tree."""

    logical_root: VirtualElement = field(
        default_factory=lambda: VirtualElement(LOGICAL_ROOT_NAME)
    )
    physical_root: ContainerNode = field(
        default_factory=lambda: ContainerNode(PHYSICAL_ROOT_NAME)
    )
    title: Optional[str] = None
    base_uri: Optional[str] = None

    def iter_elements(self) -> Iterator[LogicalElement]:
        """Iterate all logical elements below the root in document order."""
        for child in self.logical_root.children:
            yield from child.iter()

    def iter_nodes(self) -> List[PhysicalNode]:
        return self.physical_root.iter_nodes()

    def find(self, name: str) -> Optional[LogicalElement]:
        return self.logical_root.find(name)

    def find_all(self, name: str) -> List[LogicalElement]:
        return self.logical_root.find_all(name)

    def get_element_by_id(self, element_id: str) -> Optional[LogicalElement]:
        for element in self.iter_elements():
            if element.element_id == element_id:
                return element
        return None

    def style_roots(self) -> List[LogicalElement]:
        """Logical elements owning the top-level physical content.

        These are the elements styles are applied to, once each and in order.
        """
        roots: List[LogicalElement] = []
        for node in self.physical_root.children:
            if isinstance(node, InlineRun):
                candidates: List[LogicalElement] = list(node.top_level_elements())
            elif node.element is not None:
                candidates = [node.element]
            else:
                continue
            # An interrupted element appears in several top-level runs
            roots.extend(element for element in candidates if element not in roots)
        return roots

    @property
    def total_elements(self) -> int:
        return sum(1 for _ in self.iter_elements())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "base_uri": self.base_uri,
            "logical": self.logical_root.to_dict(),
            "physical": self.physical_root.to_dict(),
        }


@dataclass
class ParseResult:
    """Outcome of one parse call with diagnostics and performance counters.

    ``document`` is None only when parsing failed fatally under never-fail mode.
    """

    document: Optional[Document] = None
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def logical_tree(self) -> Optional[VirtualElement]:
        return self.document.logical_root if self.document else None

    @property
    def physical_tree(self) -> Optional[ContainerNode]:
        return self.document.physical_root if self.document else None

    @property
    def element_count(self) -> int:
        return self.document.total_elements if self.document else 0

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Compact statistics for reporting."""
        return {
            "success": self.success,
            "title": self.document.title if self.document else None,
            "element_count": self.element_count,
            "physical_node_count": len(self.document.iter_nodes()) if self.document else 0,
            "diagnostic_count": len(self.diagnostics),
            "processing_time_ms": self.performance.processing_time_ms,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "correlation_id": self.correlation_id,
            "document": self.document.to_dict() if self.document else None,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "performance": self.performance.to_dict(),
        }


class HtmlTreeBuilder:
    """Builds documents from token cursors.

    The builder holds configuration only. Every call creates its own
    ``ParseContext``, so one builder may be reused for any number of documents.
    """

    def __init__(self, config: Optional[TreeConfig] = None,
                 correlation_id: Optional[str] = None) -> None:
        """Initialize tree builder.

        Args:
            config: Tree building configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or TreeConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_tree_builder")

    def parse(self, cursor: TokenCursor,
              page_context: Optional[PageContext] = None) -> Document:
        """Build a document from a fresh cursor.

        Raises:
            HtmlParseError: On malformed markup or structure the builder cannot
                interpret; no partial document is returned
        """
        return self.build(cursor, page_context).document

    def build(self, cursor: TokenCursor,
              page_context: Optional[PageContext] = None) -> ParseResult:
        """Build a document and report diagnostics and metrics alongside it.

        Raises:
            HtmlParseError: As for ``parse``
        """
        start_time = time.time()
        page = page_context or PageContext()
        correlation_id = self.correlation_id
        logger = self.logger
        ctx = ParseContext(
            cursor=cursor,
            page=page,
            document=Document(base_uri=page.base_uri),
            logger=logger,
            config=self.config,
            correlation_id=correlation_id,
        )

        logger.info("Starting tree building", extra={"base_uri": page.base_uri})
        try:
            self._build_document(ctx)
        except HtmlParseError as e:
            logger.exception(
                "Tree building failed",
                extra={"position": e.position, "events_consumed": cursor.events_consumed},
            )
            raise

        metrics = ctx.metrics
        metrics.processing_time_ms = (time.time() - start_time) * 1000
        metrics.events_consumed = cursor.events_consumed
        metrics.characters_processed = getattr(cursor, "characters", 0)

        result = ParseResult(
            document=ctx.document,
            diagnostics=ctx.diagnostics,
            performance=metrics,
            correlation_id=correlation_id,
        )
        repairs = getattr(cursor, "repairs", 0)
        if repairs:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Markup nesting repaired {repairs} time(s)",
                "token_cursor",
                details={"repairs": repairs},
            )

        logger.info(
            "Tree building completed",
            extra={
                "logical_elements": metrics.logical_elements_created,
                "physical_nodes": metrics.physical_nodes_created,
                "processing_time_ms": metrics.processing_time_ms,
            },
        )
        return result

    def _build_document(self, ctx: ParseContext) -> None:
        cursor = ctx.cursor
        ctx.expect(EventKind.START_DOCUMENT)
        cursor.advance()

        parse_container_content(ctx, ctx.document.physical_root, None)

        if cursor.event_kind is not EventKind.END_DOCUMENT:
            raise ctx.fail(f"Unexpected end tag </{cursor.tag_name}> at document level")

        if self.config.apply_styles:
            self._apply_styles(ctx)

    def _apply_styles(self, ctx: ParseContext) -> None:
        """Apply styles once per element owning top-level physical content."""
        for element in ctx.document.style_roots():
            try:
                ctx.page.style_engine.apply(element, None)
            except Exception:
                ctx.logger.warning("Style application failed",
                                   extra={"element": element.name}, exc_info=True)
                ctx.add_diagnostic(DiagnosticSeverity.WARNING,
                                   f"Style application failed for <{element.name}>",
                                   "style", details={"element": element.name})
