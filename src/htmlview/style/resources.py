"""Resource request handlers.

Requests are fire-and-forget: the tree builder never waits for a result and any
failure inside a handler is the handler's concern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from htmlview.shared import get_logger

if TYPE_CHECKING:
    from htmlview.tree.builder import Document

logger = get_logger(__name__, component="resources")


class RequestHandler(ABC):
    """Receives resource requests issued while a document is parsed."""

    @abstractmethod
    def request_stylesheet(self, document: "Document", location: str) -> None:
        """Ask for the style sheet at ``location`` to be loaded for ``document``."""


@dataclass(frozen=True)
class ResourceRequest:
    kind: str
    location: str
    document: Optional["Document"] = None


class RecordingRequestHandler(RequestHandler):
    """Records requests so an embedding application can fetch them later."""

    def __init__(self) -> None:
        self.requests: List[ResourceRequest] = []

    def request_stylesheet(self, document: "Document", location: str) -> None:
        logger.debug("Style sheet requested", extra={"location": location})
        self.requests.append(ResourceRequest("stylesheet", location, document))

    @property
    def locations(self) -> List[str]:
        return [request.location for request in self.requests]

    def clear(self) -> None:
        self.requests.clear()
