"""Logical (semantic) document elements.

The logical tree mirrors the document structure independently of how content is
split across physical nodes. It is the tree the style engine walks.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Union

from .nodes import InlineRun, PhysicalNode, TextSpan


class ElementKind(Enum):
    """Discriminator of the logical element variants."""

    VIRTUAL = auto()  # Grouping only, no physical counterpart
    VIEW = auto()     # Owns exactly one physical node
    TEXT = auto()     # Member of one or more inline runs


@dataclass(eq=False)
class LogicalElement:
    """Common part of all logical elements."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["LogicalElement"] = field(default_factory=list)
    parent: Optional["LogicalElement"] = field(default=None, repr=False)
    computed_style: Dict[str, str] = field(default_factory=dict, repr=False)

    kind = ElementKind.VIRTUAL

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Element name cannot be empty")
        for child in self.children:
            child.parent = self

    def append(self, child: "LogicalElement") -> None:
        """Append ``child`` as the last logical child."""
        if not isinstance(child, LogicalElement):
            raise TypeError("Child must be a LogicalElement instance")
        if child.parent is not None:
            raise ValueError(f"Element <{child.name}> already has a parent")
        child.parent = self
        self.children.append(child)

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        self.attributes[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    @property
    def element_id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def classes(self) -> List[str]:
        return self.attributes.get("class", "").split()

    @property
    def raw_text(self) -> str:
        """Concatenated run text below this element, separator spaces included."""
        return "".join(child.raw_text for child in self.children)

    @property
    def text_content(self) -> str:
        """Text of all text elements below this element without edge separators."""
        return self.raw_text.strip(" ")

    def iter(self) -> Iterator["LogicalElement"]:
        """Depth-first iteration starting with this element."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find(self, name: str) -> Optional["LogicalElement"]:
        """First descendant (excluding self) named ``name``."""
        for element in self.iter():
            if element is not self and element.name == name:
                return element
        return None

    def find_all(self, name: str) -> List["LogicalElement"]:
        return [
            element for element in self.iter()
            if element is not self and element.name == name
        ]

    def get_depth(self) -> int:
        """Depth in the logical tree (root = 0)."""
        depth = 0
        parent = self.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        return depth

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.name, "name": self.name}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(eq=False)
class VirtualElement(LogicalElement):
    """Logical-only grouping element."""

    kind = ElementKind.VIRTUAL


@dataclass(eq=False)
class ViewElement(LogicalElement):
    """Logical element backed by exactly one physical node.

    The node is fixed at construction and receives a back-reference to this
    element.
    """

    node: Optional[PhysicalNode] = field(default=None, repr=False)

    kind = ElementKind.VIEW

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.node is None:
            raise ValueError("ViewElement requires a physical node")
        if self.node.element is not None:
            raise ValueError(f"Node <{self.node.name}> is already wrapped by an element")
        self.node.element = self


@dataclass(eq=False)
class TextElement(LogicalElement):
    """Inline element living in one or more inline runs.

    ``content`` holds normalized text fragments and nested text elements in
    document order. An element interrupted by block content keeps its logical
    identity and continues in a new span of a later run.
    """

    content: List[Union[str, "TextElement"]] = field(default_factory=list)
    spans: List[TextSpan] = field(default_factory=list, repr=False)

    kind = ElementKind.TEXT

    @property
    def current_span(self) -> Optional[TextSpan]:
        return self.spans[-1] if self.spans else None

    @property
    def run(self) -> Optional[InlineRun]:
        """The run the element currently appends to."""
        span = self.current_span
        return span.run if span is not None else None

    @property
    def runs(self) -> List[InlineRun]:
        runs: List[InlineRun] = []
        for span in self.spans:
            if span.run not in runs:
                runs.append(span.run)
        return runs

    @property
    def sealed(self) -> bool:
        span = self.current_span
        return span is not None and span.sealed

    @property
    def text_fragments(self) -> List[str]:
        return [part for part in self.content if isinstance(part, str)]

    @property
    def raw_text(self) -> str:
        return "".join(
            part if isinstance(part, str) else part.raw_text
            for part in self.content
        )

    def open_in(self, run: InlineRun, parent: Optional[TextSpan] = None) -> TextSpan:
        """Start (or continue) this element in ``run``."""
        span = run.open_span(self, parent)
        self.spans.append(span)
        return span

    def append_normalized(self, text: str) -> str:
        """Append normalized ``text`` to the current run and to ``content``."""
        run = self.run
        if run is None:
            raise ValueError(f"Text element <{self.name}> is not placed in a run")
        fragment = run.append_normalized(text)
        if fragment:
            self.content.append(fragment)
        return fragment

    def add_child(self, name: str, attributes: Optional[Dict[str, str]] = None) -> "TextElement":
        """Create a nested text element in the current run."""
        if self.run is None:
            raise ValueError(f"Text element <{self.name}> is not placed in a run")
        child = TextElement(name, dict(attributes or {}))
        self.append(child)
        self.content.append(child)
        child.open_in(self.run, self.current_span)
        return child

    def end(self) -> None:
        """Seal the current span at the current end of its run."""
        span = self.current_span
        if span is not None and not span.sealed:
            span.end = len(span.run.raw_text)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.pop("children", None)
        result["content"] = [
            part if isinstance(part, str) else part.to_dict()
            for part in self.content
        ]
        return result
