"""Tests for resource requests, page context and per-parse context."""

import pytest

from htmlview.shared import (
    DiagnosticSeverity,
    ResourceResolutionError,
    StructureError,
    TreeConfig,
    get_logger,
)
from htmlview.style import RecordingRequestHandler, StyleSheet
from htmlview.tokenization import EventListCursor, start_tag
from htmlview.tree import (
    DefaultNodeFactory,
    Document,
    PageContext,
    ParseContext,
    VirtualElement,
)


class TestRecordingRequestHandler:
    """Test suite for RecordingRequestHandler."""

    def test_records_requests(self) -> None:
        """Test that requests are kept in order."""
        handler = RecordingRequestHandler()
        document = Document()
        handler.request_stylesheet(document, "http://a/1.css")
        handler.request_stylesheet(document, "http://a/2.css")

        assert handler.locations == ["http://a/1.css", "http://a/2.css"]
        assert handler.requests[0].kind == "stylesheet"
        assert handler.requests[0].document is document

    def test_clear(self) -> None:
        """Test forgetting recorded requests."""
        handler = RecordingRequestHandler()
        handler.request_stylesheet(Document(), "x.css")
        handler.clear()
        assert handler.requests == []


class TestPageContext:
    """Test suite for PageContext."""

    def test_defaults(self) -> None:
        """Test default collaborators."""
        page = PageContext()

        assert page.base_uri is None
        assert isinstance(page.style_engine, StyleSheet)
        assert isinstance(page.request_handler, RecordingRequestHandler)
        assert isinstance(page.node_factory, DefaultNodeFactory)

    def test_collaborators_are_not_shared(self) -> None:
        """Test that each page gets its own default collaborators."""
        assert PageContext().style_engine is not PageContext().style_engine

    @pytest.mark.parametrize("href,expected", [
        ("a.css", "http://example.com/dir/a.css"),
        ("../b.css", "http://example.com/b.css"),
        ("/c.css", "http://example.com/c.css"),
        (" https://cdn.example.org/d.css ", "https://cdn.example.org/d.css"),
    ])
    def test_create_uri(self, href, expected) -> None:
        """Test resolution against the base location."""
        page = PageContext(base_uri="http://example.com/dir/page.html")
        assert page.create_uri(href) == expected

    def test_create_uri_without_base(self) -> None:
        """Test that relative locations stay relative without a base."""
        assert PageContext().create_uri("a.css") == "a.css"

    @pytest.mark.parametrize("href", [None, "", "   "])
    def test_create_uri_empty(self, href) -> None:
        """Test that empty locations cannot be resolved."""
        with pytest.raises(ResourceResolutionError, match="Empty resource location"):
            PageContext().create_uri(href)

    def test_create_uri_malformed(self) -> None:
        """Test that malformed locations cannot be resolved."""
        with pytest.raises(ResourceResolutionError, match="Malformed") as exc_info:
            PageContext().create_uri("http://[bad")
        assert exc_info.value.location == "http://[bad"


class TestParseContext:
    """Test suite for ParseContext."""

    @pytest.fixture
    def ctx(self) -> ParseContext:
        cursor = EventListCursor([start_tag("div")])
        cursor.advance()
        return ParseContext(
            cursor=cursor,
            page=PageContext(),
            document=Document(),
            logger=get_logger("htmlview.test"),
            config=TreeConfig(max_depth=2),
            correlation_id="cid",
        )

    def test_fail_is_positioned(self, ctx) -> None:
        """Test that errors carry the cursor position."""
        error = ctx.fail("Broken")
        assert isinstance(error, StructureError)
        assert error.position == "START_TAG <div> @1:1"

    def test_unexpected(self, ctx) -> None:
        """Test the message for an event the routine cannot handle."""
        assert ctx.unexpected("option list").message == "Unexpected START_TAG in option list"

    def test_nested_limit(self, ctx) -> None:
        """Test depth tracking and its limit."""
        with ctx.nested():
            with ctx.nested():
                assert ctx.depth == 2
                with pytest.raises(StructureError, match="Maximum nesting depth 2 exceeded"):
                    with ctx.nested():
                        pass
        assert ctx.depth == 0

    def test_link(self, ctx) -> None:
        """Test attaching elements to a container or the document root."""
        top = VirtualElement("form")
        inner = VirtualElement("tbody")
        ctx.link(None, top)
        ctx.link(top, inner)

        assert ctx.document.logical_root.children == [top]
        assert top.children == [inner]
        assert ctx.metrics.logical_elements_created == 2

    def test_add_diagnostic(self, ctx) -> None:
        """Test diagnostics recorded at the cursor position."""
        ctx.add_diagnostic(DiagnosticSeverity.WARNING, "Odd", "style", {"k": 1})
        diagnostic = ctx.diagnostics[0]

        assert diagnostic.position == "START_TAG <div> @1:1"
        assert diagnostic.correlation_id == "cid"
        assert diagnostic.details == {"k": 1}
