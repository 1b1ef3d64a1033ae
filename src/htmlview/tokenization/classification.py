"""Static content classification of HTML tag names.

The classification is a property of the tag name alone; it never depends on the
document being parsed.
"""

from enum import Enum, auto
from typing import Callable, Dict, FrozenSet


class ContentClass(Enum):
    """How the tree builder treats the content of a tag."""

    LOGICAL = auto()      # Semantic grouping only, no physical counterpart
    INLINE_FLOW = auto()  # Content joins the surrounding inline text run
    NONE = auto()         # No special classification (block or dedicated handling)


LOGICAL_TAGS: FrozenSet[str] = frozenset({
    "head", "body", "form", "thead", "tbody", "tfoot", "colgroup", "noscript",
})

INLINE_FLOW_TAGS: FrozenSet[str] = frozenset({
    "a", "abbr", "acronym", "b", "bdi", "bdo", "big", "br", "cite", "code", "data",
    "del", "dfn", "em", "font", "i", "ins", "kbd", "label", "mark", "q", "s", "samp",
    "small", "span", "strike", "strong", "sub", "sup", "time", "tt", "u", "var", "wbr",
})

# Leaf tag that is routed into inline runs although it is not inline-flow content.
IMAGE_TAG = "img"

# Elements that never have content; the cursor synthesizes their end tag.
VOID_TAGS: FrozenSet[str] = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta",
    "param", "source", "track", "wbr",
})

TAG_CLASSIFICATION: Dict[str, ContentClass] = {
    **{name: ContentClass.LOGICAL for name in LOGICAL_TAGS},
    **{name: ContentClass.INLINE_FLOW for name in INLINE_FLOW_TAGS},
}


def classify_tag(tag_name: str) -> ContentClass:
    """Look up the content classification of ``tag_name``."""
    return TAG_CLASSIFICATION.get(tag_name.lower(), ContentClass.NONE)


def is_inline_tag(tag_name: str,
                  classify: Callable[[str], ContentClass] = classify_tag) -> bool:
    """Check whether ``tag_name`` is placed inside inline runs.

    ``classify`` lets a cursor substitute its own classification table.
    """
    return tag_name == IMAGE_TAG or classify(tag_name) is ContentClass.INLINE_FLOW
