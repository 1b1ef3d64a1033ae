"""Tree construction for htmlview.

This module builds the logical element tree and the physical node tree of a
document from a token cursor.
"""

from .builder import (
    Document,
    HtmlTreeBuilder,
    ParseResult,
)
from .container import parse_container_content
from .context import PageContext, ParseContext
from .elements import (
    ElementKind,
    LogicalElement,
    TextElement,
    ViewElement,
    VirtualElement,
)
from .factory import DefaultNodeFactory, NodeFactory
from .inline import build_inline_subtree, resume_or_start
from .nodes import (
    ButtonNode,
    CheckBoxNode,
    ChoiceNode,
    ContainerNode,
    InlineRun,
    NodeKind,
    PhysicalNode,
    TextInputNode,
    TextSpan,
    contains_text,
    normalize_whitespace,
)
from .options import collect_options
from .text import collect_text_content

__all__ = [
    "Document",
    "HtmlTreeBuilder",
    "ParseResult",
    "parse_container_content",
    "PageContext",
    "ParseContext",
    "ElementKind",
    "LogicalElement",
    "TextElement",
    "ViewElement",
    "VirtualElement",
    "DefaultNodeFactory",
    "NodeFactory",
    "build_inline_subtree",
    "resume_or_start",
    "ButtonNode",
    "CheckBoxNode",
    "ChoiceNode",
    "ContainerNode",
    "InlineRun",
    "NodeKind",
    "PhysicalNode",
    "TextInputNode",
    "TextSpan",
    "contains_text",
    "normalize_whitespace",
    "collect_options",
    "collect_text_content",
]
