"""Token cursors for htmlview.

Key Components:
    TokenCursor: Abstract forward-only cursor consumed by the tree builder
    HtmlTokenCursor: Default cursor tokenizing HTML with nesting checks
    EventListCursor: Cursor over a prepared event sequence
    ContentClass: Static per-tag content classification
"""

from .classification import (
    IMAGE_TAG,
    INLINE_FLOW_TAGS,
    LOGICAL_TAGS,
    VOID_TAGS,
    ContentClass,
    classify_tag,
    is_inline_tag,
)
from .cursor import (
    CursorEvent,
    EventKind,
    EventListCursor,
    HtmlTokenCursor,
    TokenCursor,
    end_tag,
    start_tag,
    text_event,
)

__all__ = [
    "IMAGE_TAG",
    "INLINE_FLOW_TAGS",
    "LOGICAL_TAGS",
    "VOID_TAGS",
    "ContentClass",
    "CursorEvent",
    "EventKind",
    "EventListCursor",
    "HtmlTokenCursor",
    "TokenCursor",
    "classify_tag",
    "end_tag",
    "is_inline_tag",
    "start_tag",
    "text_event",
]
