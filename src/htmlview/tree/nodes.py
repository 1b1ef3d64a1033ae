"""Physical render-tree nodes.

These are the widget-layer objects produced by a node factory. A node belongs to at
most one parent container; nodes wrapped by a ``ViewElement`` carry an ``element``
back-reference used when styles are applied.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .elements import LogicalElement, TextElement

# HTML whitespace only; U+00A0 and other Unicode spaces are content.
_WHITESPACE_RUN = re.compile(r"[ \t\n\r\f]+")


def contains_text(text: str) -> bool:
    """Check whether ``text`` holds anything besides insignificant whitespace."""
    return any(char > " " for char in text)


def normalize_whitespace(text: str, preceding: str = "") -> str:
    """Collapse whitespace runs in ``text`` to single spaces.

    A leading space is dropped when ``preceding`` is empty or already ends in a
    space, so fragments appended one after another never produce double spaces.
    """
    collapsed = _WHITESPACE_RUN.sub(" ", text)
    if collapsed.startswith(" ") and (not preceding or preceding.endswith(" ")):
        collapsed = collapsed[1:]
    return collapsed


class NodeKind(Enum):
    """Kinds of physical nodes."""

    CONTAINER = auto()   # Generic block layout hosting child nodes
    TEXT_RUN = auto()    # One run of inline text and inline elements
    BUTTON = auto()
    CHECKBOX = auto()
    TEXT_FIELD = auto()  # Single line input
    TEXT_AREA = auto()   # The free-text input; receives trailing content
    CHOICE = auto()      # Fixed-choice container (select)


@dataclass(eq=False)
class PhysicalNode:
    """Base class for all render-tree nodes."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    parent: Optional["ContainerNode"] = field(default=None, repr=False)
    element: Optional["LogicalElement"] = field(default=None, repr=False)

    @property
    def kind(self) -> NodeKind:
        raise NotImplementedError

    @property
    def is_container(self) -> bool:
        return self.kind is NodeKind.CONTAINER

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.name, "name": self.name}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        return result


@dataclass(eq=False)
class ContainerNode(PhysicalNode):
    """Block layout node; the only node kind that hosts children."""

    children: List[PhysicalNode] = field(default_factory=list)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.CONTAINER

    def add_node(self, node: PhysicalNode) -> None:
        """Attach ``node`` as the last child."""
        if node.parent is not None:
            raise ValueError(f"Node <{node.name}> is already attached to a container")
        node.parent = self
        self.children.append(node)

    def iter_nodes(self) -> List[PhysicalNode]:
        """All nodes below this one in document order."""
        nodes: List[PhysicalNode] = []
        for child in self.children:
            nodes.append(child)
            if isinstance(child, ContainerNode):
                nodes.extend(child.iter_nodes())
        return nodes

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(eq=False)
class TextSpan:
    """The extent of one text element inside one inline run.

    An element interrupted by block content gets one span per run it appears in.
    """

    element: "TextElement"
    run: "InlineRun"
    start: int
    parent: Optional["TextSpan"] = field(default=None, repr=False)
    end: Optional[int] = None

    @property
    def sealed(self) -> bool:
        return self.end is not None

    @property
    def text(self) -> str:
        stop = self.end if self.end is not None else len(self.run.raw_text)
        return self.run.raw_text[self.start:stop]


@dataclass(eq=False)
class InlineRun(PhysicalNode):
    """Physical node hosting one contiguous run of text and inline elements."""

    name: str = "#text-run"
    spans: List[TextSpan] = field(default_factory=list, init=False)
    _parts: List[str] = field(default_factory=list, init=False, repr=False)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.TEXT_RUN

    @property
    def raw_text(self) -> str:
        """Accumulated text including a pending trailing separator space."""
        return "".join(self._parts)

    @property
    def text(self) -> str:
        """Display text with the redundant trailing space trimmed."""
        return self.raw_text.rstrip(" ")

    def append_normalized(self, text: str) -> str:
        """Append ``text`` after whitespace normalization.

        Returns:
            The fragment actually appended (possibly empty)
        """
        fragment = normalize_whitespace(text, self.raw_text)
        if fragment:
            self._parts.append(fragment)
        return fragment

    def open_span(self, element: "TextElement",
                  parent: Optional[TextSpan] = None) -> TextSpan:
        """Start a span for ``element`` at the current end of the run."""
        span = TextSpan(element=element, run=self, start=len(self.raw_text), parent=parent)
        self.spans.append(span)
        return span

    def top_level_elements(self) -> List["TextElement"]:
        """Elements whose span in this run is not nested in another span."""
        elements: List["TextElement"] = []
        for span in self.spans:
            if span.parent is None and span.element not in elements:
                elements.append(span.element)
        return elements

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["text"] = self.text
        result["spans"] = [
            {"element": span.element.name, "text": span.text.strip()}
            for span in self.spans
        ]
        return result


@dataclass(eq=False)
class ButtonNode(PhysicalNode):
    text: str = ""

    @property
    def kind(self) -> NodeKind:
        return NodeKind.BUTTON

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["text"] = self.text
        return result


@dataclass(eq=False)
class CheckBoxNode(PhysicalNode):
    text: str = ""
    checked: bool = False

    @property
    def kind(self) -> NodeKind:
        return NodeKind.CHECKBOX

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["text"] = self.text
        result["checked"] = self.checked
        return result


@dataclass(eq=False)
class TextInputNode(PhysicalNode):
    """Editable text; ``multiline`` marks the free-text input (textarea)."""

    text: str = ""
    multiline: bool = False

    @property
    def kind(self) -> NodeKind:
        return NodeKind.TEXT_AREA if self.multiline else NodeKind.TEXT_FIELD

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["text"] = self.text
        return result


@dataclass(eq=False)
class ChoiceNode(PhysicalNode):
    """Fixed-choice container holding labeled options and one selection."""

    options: List[str] = field(default_factory=list)
    values: List[str] = field(default_factory=list)
    selection: int = -1

    @property
    def kind(self) -> NodeKind:
        return NodeKind.CHOICE

    @property
    def selected_option(self) -> Optional[str]:
        if 0 <= self.selection < len(self.options):
            return self.options[self.selection]
        return None

    def add_option(self, label: str, value: Optional[str] = None) -> int:
        """Append an option and return its ordinal."""
        self.options.append(label)
        self.values.append(label if value is None else value)
        return len(self.options) - 1

    def select(self, index: int) -> None:
        if not 0 <= index < len(self.options):
            raise IndexError(f"Option index {index} out of range")
        self.selection = index

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["options"] = list(self.options)
        result["selection"] = self.selection
        return result
