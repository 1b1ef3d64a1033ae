"""Pull-style token cursors consumed by the tree builder.

A cursor always sits on exactly one event. ``advance()`` moves it forward; once it
reaches ``END_DOCUMENT`` it stays there. The default ``HtmlTokenCursor`` tokenizes
HTML with the standard library ``html.parser`` and checks element nesting while the
events are pulled, so a malformed document fails at the position of the problem.
"""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from html.parser import HTMLParser
from typing import Deque, Dict, Iterable, List, Optional, TextIO, Tuple, Union

from htmlview.shared import CursorConfig, MarkupError, get_logger

from .classification import VOID_TAGS, ContentClass, classify_tag

TEXT_PREVIEW_LENGTH = 20

logger = get_logger(__name__, component="token_cursor")


class EventKind(Enum):
    """Kinds of events a cursor can sit on."""

    START_DOCUMENT = auto()  # Pseudo-root token before the first advance
    START_TAG = auto()
    END_TAG = auto()
    TEXT = auto()
    END_DOCUMENT = auto()


@dataclass(frozen=True)
class CursorEvent:
    """One markup event with its source position."""

    kind: EventKind
    name: str = ""
    attributes: Tuple[Tuple[str, str], ...] = ()
    text: str = ""
    line: int = 1
    column: int = 1
    synthetic: bool = False
    self_closing: bool = False

    def describe(self) -> str:
        """Describe the event the way error messages show it."""
        if self.kind is EventKind.START_TAG:
            detail = f" <{self.name}>"
        elif self.kind is EventKind.END_TAG:
            detail = f" </{self.name}>"
        elif self.kind is EventKind.TEXT:
            preview = self.text[:TEXT_PREVIEW_LENGTH]
            if len(self.text) > TEXT_PREVIEW_LENGTH:
                preview += "..."
            detail = f" {preview!r}"
        else:
            detail = ""
        return f"{self.kind.name}{detail} @{self.line}:{self.column}"


def start_tag(name: str, attributes: Optional[Dict[str, str]] = None,
              line: int = 1, column: int = 1) -> CursorEvent:
    """Build a START_TAG event."""
    return CursorEvent(
        EventKind.START_TAG,
        name=name,
        attributes=tuple((attributes or {}).items()),
        line=line,
        column=column,
    )


def end_tag(name: str, line: int = 1, column: int = 1) -> CursorEvent:
    """Build an END_TAG event."""
    return CursorEvent(EventKind.END_TAG, name=name, line=line, column=column)


def text_event(text: str, line: int = 1, column: int = 1) -> CursorEvent:
    """Build a TEXT event."""
    return CursorEvent(EventKind.TEXT, text=text, line=line, column=column)


class TokenCursor(ABC):
    """Forward-only view over a stream of markup events."""

    def __init__(self) -> None:
        self._event = CursorEvent(EventKind.START_DOCUMENT)
        self.events_consumed = 0

    @abstractmethod
    def _next_event(self) -> CursorEvent:
        """Produce the event following the current one."""

    def advance(self) -> EventKind:
        """Move to the next event and return its kind."""
        if self._event.kind is not EventKind.END_DOCUMENT:
            self._event = self._next_event()
            self.events_consumed += 1
        return self._event.kind

    @property
    def current(self) -> CursorEvent:
        """The event the cursor sits on."""
        return self._event

    @property
    def event_kind(self) -> EventKind:
        return self._event.kind

    @property
    def tag_name(self) -> str:
        """Tag name of the current START_TAG or END_TAG event."""
        if self._event.kind not in (EventKind.START_TAG, EventKind.END_TAG):
            raise MarkupError("Cursor is not on a tag", self.position_description())
        return self._event.name

    @property
    def text(self) -> str:
        """Payload of the current TEXT event."""
        if self._event.kind is not EventKind.TEXT:
            raise MarkupError("Cursor is not on text", self.position_description())
        return self._event.text

    @property
    def attribute_count(self) -> int:
        return len(self._event.attributes)

    def attribute_name(self, index: int) -> str:
        return self._event.attributes[index][0]

    def attribute_value_at(self, index: int) -> str:
        return self._event.attributes[index][1]

    def attribute_value(self, name: str) -> Optional[str]:
        """Value of attribute ``name`` on the current tag, or None when absent."""
        for attr_name, value in self._event.attributes:
            if attr_name == name:
                return value
        return None

    def attributes(self) -> Dict[str, str]:
        """Snapshot of the current tag's attributes in source order."""
        return dict(self._event.attributes)

    def classify(self, tag_name: str) -> ContentClass:
        """Static content classification of ``tag_name``."""
        return classify_tag(tag_name)

    def position_description(self) -> str:
        return self._event.describe()


class EventListCursor(TokenCursor):
    """Cursor over a prepared sequence of events.

    Useful for feeding the tree builder from another tokenizer. An ``END_DOCUMENT``
    event is appended when the sequence does not end with one.
    """

    def __init__(self, events: Iterable[CursorEvent]) -> None:
        super().__init__()
        self._events: Deque[CursorEvent] = deque(events)

    def _next_event(self) -> CursorEvent:
        if self._events:
            return self._events.popleft()
        return CursorEvent(EventKind.END_DOCUMENT, line=self._event.line,
                           column=self._event.column)


class _EventCollector(HTMLParser):
    """Collects raw html.parser callbacks as cursor events."""

    def __init__(self, merge_adjacent_text: bool) -> None:
        super().__init__(convert_charrefs=True)
        self.events: List[CursorEvent] = []
        self.comment_count = 0
        self._merge_adjacent_text = merge_adjacent_text

    def _position(self) -> Tuple[int, int]:
        line, offset = self.getpos()
        return line, offset + 1

    def _start(self, tag: str, attrs: List[Tuple[str, Optional[str]]],
               self_closing: bool) -> None:
        unique: Dict[str, str] = {}
        for name, value in attrs:
            if name not in unique:
                unique[name] = "" if value is None else value
        line, column = self._position()
        self.events.append(CursorEvent(
            EventKind.START_TAG,
            name=tag,
            attributes=tuple(unique.items()),
            line=line,
            column=column,
            self_closing=self_closing,
        ))

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._start(tag, attrs, self_closing=False)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._start(tag, attrs, self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        line, column = self._position()
        self.events.append(CursorEvent(EventKind.END_TAG, name=tag, line=line, column=column))

    def handle_data(self, data: str) -> None:
        if not data:
            return
        previous = self.events[-1] if self.events else None
        if (
            self._merge_adjacent_text
            and previous is not None
            and previous.kind is EventKind.TEXT
        ):
            self.events[-1] = CursorEvent(
                EventKind.TEXT,
                text=previous.text + data,
                line=previous.line,
                column=previous.column,
            )
            return
        line, column = self._position()
        self.events.append(CursorEvent(EventKind.TEXT, text=data, line=line, column=column))

    def handle_comment(self, data: str) -> None:
        self.comment_count += 1


class HtmlTokenCursor(TokenCursor):
    """Token cursor over an HTML document.

    Void elements (``<br>``, ``<img>``, ``<input>`` ...) and self-closing tags get a
    synthesized END_TAG immediately after their START_TAG. Comments, doctype
    declarations and processing instructions never surface as events.

    With ``CursorConfig.strict_nesting`` (the default) a mismatched end tag or an
    element left open at the end of input raises ``MarkupError``. Otherwise the
    cursor repairs the nesting: an end tag matching an open ancestor closes the
    elements above it, an end tag matching nothing is dropped, and open elements are
    closed at the end of input.
    """

    def __init__(self, source: Union[str, TextIO],
                 config: Optional[CursorConfig] = None) -> None:
        super().__init__()
        self.config = config or CursorConfig()
        content = source.read() if hasattr(source, "read") else source
        if not isinstance(content, str):
            raise MarkupError(
                f"HtmlTokenCursor expects text input, got {type(content).__name__}"
            )
        self.characters = len(content)

        collector = _EventCollector(self.config.merge_adjacent_text)
        try:
            collector.feed(content)
            collector.close()
        except (AssertionError, ValueError) as e:
            raise MarkupError(f"Tokenizer failure: {e}") from e

        self.comment_count = collector.comment_count
        self.repairs = 0
        self._raw: Deque[CursorEvent] = deque(collector.events)
        self._pending: Deque[CursorEvent] = deque()
        self._open: List[CursorEvent] = []
        self._end_line, self._end_column = collector.getpos()

    def _next_event(self) -> CursorEvent:
        if self._pending:
            return self._pending.popleft()

        while self._raw:
            event = self._raw.popleft()
            if event.kind is EventKind.START_TAG:
                if event.name in VOID_TAGS or event.self_closing:
                    self._pending.append(self._synthetic_end(event.name, event))
                else:
                    self._open.append(event)
                return event
            if event.kind is EventKind.END_TAG:
                closing = self._close(event)
                if closing is not None:
                    return closing
                continue
            return event

        return self._finish()

    def _close(self, event: CursorEvent) -> Optional[CursorEvent]:
        """Match an end tag against the open elements."""
        if self._open and self._open[-1].name == event.name:
            self._open.pop()
            return event
        if event.name in VOID_TAGS:
            # </br> and friends carry no structure
            return None

        expected = self._open[-1].name if self._open else None
        if self.config.strict_nesting:
            if expected is None:
                message = f"Unexpected end tag </{event.name}> with no open element"
            else:
                message = f"Unexpected end tag </{event.name}>, expected </{expected}>"
            raise MarkupError(message, event.describe())

        self.repairs += 1
        if not any(opened.name == event.name for opened in self._open):
            logger.debug(
                "Dropped unmatched end tag",
                extra={"tag": event.name, "position": event.describe()},
            )
            return None

        while self._open[-1].name != event.name:
            opened = self._open.pop()
            self._pending.append(self._synthetic_end(opened.name, event))
        self._open.pop()
        self._pending.append(event)
        return self._pending.popleft()

    def _finish(self) -> CursorEvent:
        end = CursorEvent(EventKind.END_DOCUMENT, line=self._end_line,
                          column=self._end_column + 1)
        if self._open:
            if self.config.strict_nesting:
                unclosed = self._open[-1]
                raise MarkupError(f"Unclosed element <{unclosed.name}>", unclosed.describe())
            while self._open:
                opened = self._open.pop()
                self.repairs += 1
                self._pending.append(self._synthetic_end(opened.name, end))
            self._pending.append(end)
            return self._pending.popleft()
        return end

    @staticmethod
    def _synthetic_end(name: str, at: CursorEvent) -> CursorEvent:
        return CursorEvent(EventKind.END_TAG, name=name, line=at.line,
                           column=at.column, synthetic=True)
