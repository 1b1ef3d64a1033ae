"""Tests for document tree building.

Covers container dispatch, inline runs with interruption and resumption, opaque
and resource tags, form controls and the fatal error paths of the builder.
"""

import logging
from unittest.mock import Mock

import pytest

from htmlview.shared import (
    CursorConfig,
    DiagnosticSeverity,
    MarkupError,
    StructureError,
    TreeConfig,
)
from htmlview.style import RecordingRequestHandler, StyleSheet
from htmlview.tokenization import (
    ContentClass,
    EventKind,
    EventListCursor,
    HtmlTokenCursor,
    end_tag,
    start_tag,
    text_event,
)
from htmlview.tree import (
    ButtonNode,
    CheckBoxNode,
    ChoiceNode,
    ContainerNode,
    Document,
    HtmlTreeBuilder,
    InlineRun,
    PageContext,
    TextElement,
    TextInputNode,
    ViewElement,
    VirtualElement,
)

BASE_URI = "http://example.com/docs/page.html"


def build(html, config=None, page=None):
    """Build a ParseResult for ``html`` with a strict cursor."""
    page = page or PageContext(base_uri=BASE_URI)
    return HtmlTreeBuilder(config).build(HtmlTokenCursor(html), page)


def top_nodes(result):
    return result.document.physical_root.children


class TestDocumentStructure:
    """Test the overall shape of built documents."""

    def test_empty_document(self) -> None:
        """Test that empty input yields two empty roots."""
        result = build("")

        assert result.success
        assert result.document.logical_root.children == []
        assert result.document.physical_root.children == []
        assert result.document.title is None
        assert result.document.base_uri == BASE_URI

    def test_block_creates_view_element(self) -> None:
        """Test that a block tag owns exactly one container node."""
        result = build("<div id='main' class='wide'>Hello</div>")
        div = result.document.find("div")

        assert isinstance(div, ViewElement)
        assert isinstance(div.node, ContainerNode)
        assert div.node.parent is result.document.physical_root
        assert div.node.element is div
        assert div.attributes == {"id": "main", "class": "wide"}
        assert result.document.get_element_by_id("main") is div

    def test_text_in_block_forms_run(self) -> None:
        """Test that text inside a block becomes one normalized run."""
        result = build("<div>  a \n b </div>")
        run = result.document.find("div").node.children[0]

        assert isinstance(run, InlineRun)
        assert run.text == "a b"

    def test_top_level_text_is_ignored(self) -> None:
        """Test that loose text outside any element produces no run."""
        result = build("hello<div></div> world")
        assert [node.name for node in top_nodes(result)] == ["div"]

    def test_whitespace_only_text_is_ignored(self) -> None:
        """Test that whitespace between blocks never creates runs."""
        result = build("<div>\n  <p>x</p>\n  <p>y</p>\n</div>")
        div_node = result.document.find("div").node
        assert [node.name for node in div_node.children] == ["p", "p"]

    def test_html_is_transparent(self) -> None:
        """Test that html adds neither an element nor a node."""
        result = build("<html><div></div></html>")

        assert [el.name for el in result.document.logical_root.children] == ["div"]
        assert [node.name for node in top_nodes(result)] == ["div"]

    def test_logical_tags_have_no_node(self) -> None:
        """Test that logical grouping tags only appear in the logical tree."""
        result = build("<body><form id='f'><div>x</div></form></body>")
        document = result.document
        body = document.find("body")
        form = document.find("form")
        div = document.find("div")

        assert isinstance(body, VirtualElement)
        assert isinstance(form, VirtualElement)
        assert form.parent is body
        assert div.parent is form
        assert form.element_id == "f"
        # The block lands directly in the physical root
        assert div.node.parent is document.physical_root

    def test_text_after_logical_content_follows_its_nodes(self) -> None:
        """Test that text around a logical tag keeps document order."""
        result = build("<body>A<form>x</form>B</body>")
        runs = [(node.kind.name, node.text) for node in top_nodes(result)]

        assert runs == [("TEXT_RUN", "A"), ("TEXT_RUN", "x"), ("TEXT_RUN", "B")]

    def test_empty_logical_tag_keeps_run(self) -> None:
        """Test that a logical tag without nodes does not split the run."""
        result = build("<body>A<form></form>B</body>")
        assert [node.text for node in top_nodes(result)] == ["AB"]

    def test_full_page(self) -> None:
        """Test a complete page with head and body."""
        html = (
            "<!DOCTYPE html><html><head><title> My \n Page </title></head>"
            "<body><h1>Title</h1><p>Some <b>bold</b> text.</p></body></html>"
        )
        result = build(html)
        document = result.document

        assert document.title == "My Page"
        assert document.find("title") is None
        assert [node.name for node in top_nodes(result)] == ["h1", "p"]
        assert document.find("p").text_content == "bold"
        assert document.find("p").node.children[0].text == "Some bold text."

    def test_counts_and_metrics(self) -> None:
        """Test element counts and the metrics of a build."""
        result = build("<div><p>a <b>b</b></p></div>")
        metrics = result.performance

        assert result.element_count == 3
        assert metrics.logical_elements_created == 3
        assert metrics.physical_nodes_created == 3
        assert metrics.inline_runs_created == 1
        assert metrics.events_consumed > 0
        assert metrics.characters_processed == len("<div><p>a <b>b</b></p></div>")

    def test_to_dict(self) -> None:
        """Test the dictionary form of a document."""
        data = build("<title>T</title><p>x</p>").document.to_dict()

        assert data["title"] == "T"
        assert data["logical"]["children"][0]["name"] == "p"
        assert data["physical"]["children"][0]["kind"] == "CONTAINER"
        assert data["physical"]["children"][0]["children"][0]["text"] == "x"

    def test_idempotent(self) -> None:
        """Test that equal input gives structurally equal documents."""
        html = "<div><b>A<p>x</p>B</b><select><option>1</option></select></div>"
        builder = HtmlTreeBuilder()
        first = builder.parse(HtmlTokenCursor(html))
        second = builder.parse(HtmlTokenCursor(html))

        assert first.to_dict() == second.to_dict()
        assert first is not second


class TestInlineRuns:
    """Test inline content, interruption and resumption."""

    def test_inline_and_text_share_run(self) -> None:
        """Test that consecutive inline content shares one run."""
        result = build("<p><b>A</b> B <i>C</i></p>")
        p = result.document.find("p")
        runs = p.node.children

        assert len(runs) == 1
        assert runs[0].text == "A B C"
        assert [child.name for child in p.children] == ["b", "i"]
        assert all(isinstance(child, TextElement) for child in p.children)

    def test_text_content_trims_edge_whitespace(self) -> None:
        """Test whitespace normalization of inline element text."""
        bold = build("<body><b>  a \n b </b></body>").document.find("b")

        assert bold.text_content == "a b"
        # The run keeps the separator for text that may follow
        assert bold.raw_text == "a b "
        assert bold.run.text == "a b"

    def test_nested_text_content_keeps_inner_separators(self) -> None:
        """Test that only the outer edges of nested text are trimmed."""
        document = build("<p><b> x <i>y </i></b>z</p>").document

        assert document.find("i").text_content == "y"
        assert document.find("b").text_content == "x y"
        assert document.find("p").text_content == "x y"
        assert document.find("p").node.children[0].text == "x y z"

    def test_cursor_classification_places_custom_tags(self) -> None:
        """Test that the cursor's own classification is used for inline placement."""
        class WidgetCursor(EventListCursor):
            def classify(self, tag_name):
                if tag_name == "widget":
                    return ContentClass.INLINE_FLOW
                return super().classify(tag_name)

        document = HtmlTreeBuilder().parse(WidgetCursor([
            start_tag("p"), text_event("a"), start_tag("widget"), text_event("w"),
            end_tag("widget"), start_tag("widget"), start_tag("div"), end_tag("div"),
            end_tag("widget"), end_tag("p"),
        ]))
        p = document.find("p")

        assert [child.name for child in p.children] == ["widget", "widget", "div"]
        assert isinstance(p.children[0], TextElement)
        assert p.node.children[0].text == "aw"

    def test_top_level_inline_element(self) -> None:
        """Test inline content outside any block."""
        result = build("<b>bold</b>")
        bold = result.document.find("b")

        assert bold.parent is result.document.logical_root
        assert bold.run is top_nodes(result)[0]
        assert bold.text_content == "bold"

    def test_nested_inline_elements(self) -> None:
        """Test nesting of inline elements inside one run."""
        result = build("<p><a href='x'>go <em>now</em></a></p>")
        link = result.document.find("a")
        emphasis = result.document.find("em")

        assert emphasis.parent is link
        assert link.content == ["go ", emphasis]
        assert link.attributes == {"href": "x"}
        assert emphasis.current_span.parent is link.current_span

    def test_image_joins_run(self) -> None:
        """Test that images are placed in inline runs."""
        result = build("<p>a<img src='i.png'>b</p>")
        p = result.document.find("p")
        image = result.document.find("img")

        assert len(p.node.children) == 1
        assert isinstance(image, TextElement)
        assert image.attributes == {"src": "i.png"}
        assert p.node.children[0].text == "ab"

    def test_block_ends_run(self) -> None:
        """Test that block content ends the pending run."""
        result = build("<div>a<p>b</p>c</div>")
        kinds = [type(node) for node in result.document.find("div").node.children]
        assert kinds == [InlineRun, ContainerNode, InlineRun]

    def test_interrupted_element_resumes(self) -> None:
        """Test that an inline element continues after interrupting block content."""
        result = build("<b>A<div>x</div>B</b>")
        document = result.document
        bold = document.find("b")
        first, div_node, second = top_nodes(result)

        assert isinstance(first, InlineRun)
        assert isinstance(second, InlineRun)
        assert div_node.name == "div"
        assert [child.name for child in document.logical_root.children] == ["b", "div"]
        assert bold.content == ["A", "B"]
        assert bold.runs == [first, second]
        assert first.text == "A"
        assert second.text == "B"
        assert result.performance.interruptions == 1
        assert result.performance.resumptions == 1

    def test_nested_interruption_keeps_identity(self) -> None:
        """Test resumption of a stack of open inline elements."""
        result = build("<p><b>A<i>B<div>x</div>C</i>D</b></p>")
        bold = result.document.find("b")
        italic = result.document.find("i")
        runs = [node for node in result.document.find("p").node.children
                if isinstance(node, InlineRun)]

        assert bold.content == ["A", italic, "D"]
        assert italic.content == ["B", "C"]
        assert bold.text_content == "ABCD"
        assert len(runs) == 2
        assert runs[0].text == "AB"
        assert runs[1].text == "CD"
        # The resumed italic span nests in the resumed bold span
        assert italic.spans[1].parent is bold.spans[1]

    def test_interrupted_element_closed_without_more_text(self) -> None:
        """Test that an end tag right after the block closes the open element."""
        result = build("<p><b>A<div>x</div></b>tail</p>")
        bold = result.document.find("b")
        runs = [node for node in result.document.find("p").node.children
                if isinstance(node, InlineRun)]

        assert bold.content == ["A"]
        assert runs[-1].text == "tail"
        assert runs[-1].spans == []

    def test_style_roots_deduplicate_interrupted_elements(self) -> None:
        """Test that an interrupted element is styled once."""
        document = build("<b>A<div>x</div>B</b>").document
        assert [element.name for element in document.style_roots()] == ["b", "div"]


class TestFormControls:
    """Test widget creation for form controls."""

    def test_inputs(self) -> None:
        """Test button, checkbox and text inputs."""
        result = build(
            "<form><input type='submit' value='Send'>"
            "<input type='checkbox' checked><input name='q' value='x'></form>"
        )
        button, checkbox, field = top_nodes(result)

        assert isinstance(button, ButtonNode) and button.text == "Send"
        assert isinstance(checkbox, CheckBoxNode) and checkbox.checked
        assert isinstance(field, TextInputNode) and field.text == "x"
        assert button.element.parent is result.document.find("form")

    def test_select_options(self) -> None:
        """Test option collection and the initial selection."""
        result = build(
            "<select name='n'>\n  <option value='1'>One</option>\n"
            "  <option selected> Two  <b>2</b></option>\n</select>"
        )
        choice = top_nodes(result)[0]

        assert isinstance(choice, ChoiceNode)
        assert choice.options == ["One", "Two 2"]
        assert choice.values == ["1", "Two 2"]
        assert choice.selection == 1

    def test_textarea_receives_content(self) -> None:
        """Test that the free-text input receives its text verbatim."""
        result = build("<textarea>\nline one\n  line two</textarea>")
        assert top_nodes(result)[0].text == "line one\n  line two"

    def test_content_of_other_views_is_discarded(self, caplog) -> None:
        """Test that trailing content of non-textarea views is dropped."""
        cursor = EventListCursor([
            start_tag("input", {"type": "text", "value": "v"}),
            text_event("stray"),
            end_tag("input"),
        ])
        with caplog.at_level(logging.DEBUG, logger="htmlview.tree"):
            document = HtmlTreeBuilder().parse(cursor)

        assert document.physical_root.children[0].text == "v"
        assert any(r.getMessage() == "Ignored view content" for r in caplog.records)


class TestOpaqueAndResources:
    """Test script, title, style and link handling."""

    def test_script_content_is_skipped(self) -> None:
        """Test that script content produces no output."""
        result = build("<div><script>if (a < b) { x(); }</script>ok</div>")
        div = result.document.find("div")

        assert result.document.find("script") is None
        assert div.node.children[0].text == "ok"

    def test_title_not_recorded_when_disabled(self) -> None:
        """Test the record_title switch."""
        result = build("<title>T</title>", TreeConfig(record_title=False))
        assert result.document.title is None

    def test_style_is_ingested_and_applied(self) -> None:
        """Test that embedded style rules reach the elements."""
        result = build(
            "<style>p { color: red } .big { font-size: 20px }</style>"
            "<p class='big'>Hi <b>there</b></p>"
        )
        p = result.document.find("p")
        bold = result.document.find("b")

        assert p.computed_style == {"color": "red", "font-size": "20px"}
        assert bold.computed_style == {"color": "red", "font-size": "20px"}
        assert result.performance.style_sheets_ingested == 1

    def test_styles_not_applied_when_disabled(self) -> None:
        """Test the apply_styles switch."""
        result = build("<style>p { color: red }</style><p>x</p>",
                       TreeConfig(apply_styles=False))
        assert result.document.find("p").computed_style == {}

    def test_style_engine_sees_base_uri(self) -> None:
        """Test the arguments passed to a custom style engine."""
        engine = Mock()
        page = PageContext(base_uri=BASE_URI, style_engine=engine)
        result = build("<style>p{}</style><p>x</p>", page=page)

        engine.ingest.assert_called_once_with("p{}", BASE_URI)
        engine.apply.assert_called_once_with(result.document.find("p"), None)

    def test_failing_style_engine_is_diagnosed(self) -> None:
        """Test that style engine failures never abort the parse."""
        engine = Mock()
        engine.ingest.side_effect = RuntimeError("bad css")
        engine.apply.side_effect = RuntimeError("bad apply")
        page = PageContext(style_engine=engine)
        result = build("<style>x</style><p>x</p>", page=page)

        components = [diag.component for diag in result.diagnostics]
        assert result.success
        assert components == ["style", "style"]

    def test_stylesheet_link_requests_resolved_location(self) -> None:
        """Test that linked style sheets are requested with resolved locations."""
        handler = RecordingRequestHandler()
        page = PageContext(base_uri=BASE_URI, request_handler=handler)
        result = build(
            "<head><link rel='Stylesheet alternate' href='css/a.css'>"
            "<link rel='icon' href='favicon.ico'></head>",
            page=page,
        )

        assert handler.locations == ["http://example.com/docs/css/a.css"]
        assert handler.requests[0].document is result.document
        assert result.performance.stylesheet_requests == 1

    def test_unresolvable_stylesheet_is_diagnosed(self) -> None:
        """Test that a malformed link location is reported and skipped."""
        handler = RecordingRequestHandler()
        page = PageContext(base_uri=BASE_URI, request_handler=handler)
        result = build("<link rel='stylesheet' href='http://[bad'><p>x</p>", page=page)

        assert handler.requests == []
        assert result.success
        assert result.document.find("p") is not None
        warnings = result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert [diag.component for diag in warnings] == ["stylesheet_link"]
        assert not result.has_errors()

    def test_failing_request_handler_is_diagnosed(self) -> None:
        """Test that request handler failures never abort the parse."""
        handler = Mock()
        handler.request_stylesheet.side_effect = OSError("offline")
        page = PageContext(base_uri=BASE_URI, request_handler=handler)
        result = build("<link rel='stylesheet' href='a.css'>", page=page)

        assert result.performance.stylesheet_requests == 0
        assert result.diagnostics[0].details == {"location": "http://example.com/docs/a.css"}


class TestBuilderErrors:
    """Test fatal error paths."""

    def test_markup_error_propagates(self) -> None:
        """Test that cursor failures abort the build."""
        with pytest.raises(MarkupError, match="Unclosed element <div>"):
            build("<div>")

    def test_end_tag_at_document_level(self) -> None:
        """Test an end tag with no open container."""
        cursor = EventListCursor([end_tag("p")])
        with pytest.raises(StructureError, match=r"Unexpected end tag </p> at document level"):
            HtmlTreeBuilder().parse(cursor)

    def test_mismatched_block_end_tag(self) -> None:
        """Test a block closed by the wrong end tag."""
        cursor = EventListCursor([start_tag("div"), end_tag("span")])
        with pytest.raises(StructureError, match=r"End tag </span> does not close <div>"):
            HtmlTreeBuilder().parse(cursor)

    def test_mismatched_inline_end_tag(self) -> None:
        """Test an inline element closed by the wrong end tag."""
        cursor = EventListCursor([
            start_tag("div"), start_tag("b"), text_event("x"), end_tag("i"),
        ])
        with pytest.raises(StructureError, match=r"End tag </i> does not close <b>"):
            HtmlTreeBuilder().parse(cursor)

    def test_missing_start_document(self) -> None:
        """Test that the cursor must be fresh."""
        cursor = EventListCursor([start_tag("p"), end_tag("p")])
        cursor.advance()
        with pytest.raises(StructureError, match="Expected START_DOCUMENT"):
            HtmlTreeBuilder().parse(cursor)

    def test_maximum_depth(self) -> None:
        """Test the nesting limit."""
        html = "<div>" * 5 + "x" + "</div>" * 5
        with pytest.raises(StructureError, match="Maximum nesting depth 3 exceeded"):
            build(html, TreeConfig(max_depth=3))

    def test_error_is_logged(self, caplog) -> None:
        """Test that fatal errors are logged with their position."""
        with caplog.at_level(logging.ERROR, logger="htmlview.tree.builder"):
            with pytest.raises(StructureError):
                HtmlTreeBuilder().parse(EventListCursor([end_tag("p")]))
        assert caplog.records[-1].getMessage() == "Tree building failed"


class TestCursorContract:
    """Test how the builder drives the cursor."""

    def test_consumes_every_event(self) -> None:
        """Test that the builder reads the stream to END_DOCUMENT."""
        events = [
            start_tag("div"), start_tag("b"), text_event("A"),
            start_tag("p"), text_event("x"), end_tag("p"),
            text_event("B"), end_tag("b"), end_tag("div"),
        ]
        cursor = EventListCursor(events)
        document = HtmlTreeBuilder().parse(cursor)

        assert cursor.event_kind is EventKind.END_DOCUMENT
        assert cursor.events_consumed == len(events) + 1
        assert document.find("b").text_content == "AB"

    def test_repairs_are_reported(self) -> None:
        """Test the diagnostic for nesting repaired by a relaxed cursor."""
        cursor = HtmlTokenCursor("<div><p>x</div>", CursorConfig(strict_nesting=False))
        result = HtmlTreeBuilder().build(cursor)

        assert result.success
        assert result.diagnostics[-1].component == "token_cursor"
        assert result.diagnostics[-1].details == {"repairs": 1}

    def test_builder_is_reusable_with_shared_page(self) -> None:
        """Test that one page context collects rules across documents."""
        sheet = StyleSheet()
        page = PageContext(style_engine=sheet)
        builder = HtmlTreeBuilder()
        builder.build(HtmlTokenCursor("<style>p { color: blue }</style>"), page)
        document = builder.parse(HtmlTokenCursor("<p>x</p>"), page)

        assert len(sheet.rules) == 1
        assert document.find("p").computed_style == {"color": "blue"}
        assert isinstance(document, Document)
