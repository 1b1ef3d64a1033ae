"""Integration adapters for exporting parse results.

``DictAdapter`` produces a JSON-ready dictionary of both trees. ``LxmlAdapter``
renders the physical tree back into an ``lxml.etree`` element tree, naming each
element after the logical element that owns it; inline elements are rebuilt from
the spans recorded in each inline run. lxml is an optional dependency imported
lazily.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from htmlview.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from htmlview.tree import (
    ChoiceNode,
    ContainerNode,
    InlineRun,
    ParseResult,
    PhysicalNode,
    TextSpan,
)

EXPORT_ROOT_TAG = "document"


class AdapterType(Enum):
    """Types of integration adapters."""

    DATA_STRUCTURE = auto()  # Plain Python structures
    XML_LIBRARY = auto()     # XML processing libraries (lxml)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is available."""

    @abstractmethod
    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert a parse result to the target representation."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning("Conversion failed", extra={"error": error_message})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class DictAdapter(IntegrationAdapter):
    """Adapter producing the JSON-ready dictionary form of a result."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="dict",
            version="1.0.0",
            adapter_type=AdapterType.DATA_STRUCTURE,
            target_library="builtins",
            description="Both trees, diagnostics and metrics as nested dictionaries",
        )

    def is_available(self) -> bool:
        return True

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        start_time = time.time()
        converted = parse_result.to_dict()
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=parse_result,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"keys": sorted(converted)},
        )


class LxmlAdapter(IntegrationAdapter):
    """Adapter rendering the physical tree as an lxml.etree element tree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Physical tree rendered as lxml.etree elements",
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert a parse result to an ``lxml.etree`` element.

        Returns:
            ConversionResult whose ``converted_data`` is the root element
        """
        start_time = time.time()

        if not parse_result.success or parse_result.document is None:
            return self._create_error_result(
                "ParseResult is not successful or has no document",
                parse_result,
                (time.time() - start_time) * 1000
            )

        try:
            import lxml.etree as ET

            document = parse_result.document
            root = ET.Element(EXPORT_ROOT_TAG)
            if document.title is not None:
                root.set("title", document.title)
            self._append_children(root, document.physical_root, ET)
        except (ImportError, ValueError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert to lxml: {e}",
                parse_result,
                (time.time() - start_time) * 1000
            )

        return ConversionResult(
            success=True,
            converted_data=root,
            original_data=parse_result,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={
                "lxml_version": ET.LXML_VERSION,
                "element_count": sum(1 for _ in root.iter()) - 1,
            }
        )

    def _append_children(self, parent: Any, container: ContainerNode, ET: Any) -> None:
        for node in container.children:
            if isinstance(node, InlineRun):
                self._append_run(parent, node, ET)
            else:
                self._append_node(parent, node, ET)

    def _append_node(self, parent: Any, node: PhysicalNode, ET: Any) -> None:
        tag = node.element.name if node.element is not None else node.name
        attributes = node.element.attributes if node.element is not None else node.attributes
        element = ET.SubElement(parent, tag, attrib=dict(attributes))

        if isinstance(node, ContainerNode):
            self._append_children(element, node, ET)
        elif isinstance(node, ChoiceNode):
            for index, (label, value) in enumerate(zip(node.options, node.values)):
                option = ET.SubElement(element, "option", attrib={"value": value})
                if index == node.selection:
                    option.set("selected", "selected")
                option.text = label
        else:
            text = getattr(node, "text", "")
            if text:
                element.text = text

    def _append_run(self, parent: Any, run: InlineRun, ET: Any) -> None:
        text = run.text
        top_level = [span for span in run.spans if span.parent is None]
        self._append_segment(parent, run, text, 0, len(text), top_level, ET)

    def _append_segment(self, parent: Any, run: InlineRun, text: str, start: int,
                        stop: int, spans: List[TextSpan], ET: Any) -> None:
        """Emit ``text[start:stop]`` with ``spans`` as nested elements."""
        position = start
        for span in spans:
            span_end = min(span.end if span.end is not None else stop, stop)
            span_start = min(span.start, span_end)
            _append_text(parent, text[position:span_start])
            element = ET.SubElement(parent, span.element.name,
                                    attrib=dict(span.element.attributes))
            nested = [child for child in run.spans if child.parent is span]
            self._append_segment(element, run, text, span_start, span_end, nested, ET)
            position = max(position, span_end)
        _append_text(parent, text[position:stop])


def _append_text(parent: Any, text: str) -> None:
    """Append ``text`` after the last child of ``parent`` (or as its text)."""
    if not text:
        return
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Returns:
            Adapter instance if registered and available, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        with self._lock:
            classes = list(self._adapters.values())
        adapters = [adapter_class() for adapter_class in classes]
        return [adapter.metadata for adapter in adapters if adapter.is_available()]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()
_adapter_registry.register(DictAdapter)
_adapter_registry.register(LxmlAdapter)


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance, or None if unknown or unavailable."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    return _adapter_registry.list_available_adapters()
