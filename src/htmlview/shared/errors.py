"""Exception hierarchy for htmlview.

A parse call either completes or raises exactly one ``HtmlParseError``. Resource
resolution problems are reported with ``ResourceResolutionError`` and are always
caught before they reach the caller of a parse.
"""

from typing import Optional


class HtmlViewError(Exception):
    """Base exception for all htmlview errors."""


class HtmlParseError(HtmlViewError):
    """Fatal error that aborts a whole parse call.

    Attributes:
        position: Cursor position description at the time of the failure
    """

    def __init__(self, message: str, position: Optional[str] = None) -> None:
        self.message = message
        self.position = position
        if position:
            super().__init__(f"{message} ({position})")
        else:
            super().__init__(message)


class MarkupError(HtmlParseError):
    """Tokenizer, input or malformed-markup failure."""


class StructureError(HtmlParseError):
    """An event kind occurred where the grammar of the dispatch point forbids it."""


class ResourceResolutionError(HtmlViewError):
    """A resource location could not be resolved (non-fatal)."""

    def __init__(self, message: str, location: Optional[str] = None) -> None:
        super().__init__(message)
        self.location = location
