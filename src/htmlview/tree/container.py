"""Container content dispatch.

``parse_container_content`` is the main loop of the tree builder. It places block
content into physical containers, groups logical-only tags, hands inline content to
the inline run builder and routes opaque and resource tags to their handlers.
"""

from typing import Optional

from htmlview.shared import DiagnosticSeverity, ResourceResolutionError
from htmlview.tokenization import ContentClass, EventKind, is_inline_tag

from .context import ParseContext
from .elements import LogicalElement, ViewElement, VirtualElement
from .inline import OpenElementStack, resume_or_start
from .nodes import ChoiceNode, ContainerNode, InlineRun, NodeKind, contains_text, normalize_whitespace
from .options import collect_options
from .text import collect_text_content

TRANSPARENT_TAGS = frozenset({"html"})
LINK_TAG = "link"
STYLE_TAG = "style"
TITLE_TAG = "title"
OPAQUE_TAGS = frozenset({"script", STYLE_TAG, TITLE_TAG})


def parse_container_content(ctx: ParseContext, physical: ContainerNode,
                            logical: Optional[LogicalElement]) -> None:
    """Parse the children of a container element.

    Consecutive inline content at this level shares one inline run; block content
    ends the run. An inline element interrupted by block content stays open on this
    level's element stack and is resumed by the next inline content, or closed when
    its end tag shows up here.

    Precondition: on the first child event or on the closing tag.
    Postcondition: on the container's closing tag or on END_DOCUMENT; the caller
    consumes the closing tag.
    """
    cursor = ctx.cursor
    pending_run: Optional[InlineRun] = None
    stack: OpenElementStack = []

    while True:
        kind = cursor.event_kind
        if kind is EventKind.END_DOCUMENT:
            break
        if kind is EventKind.END_TAG:
            if _close_open_inline(ctx, stack):
                continue
            break

        if kind is EventKind.START_TAG:
            name = cursor.tag_name
            if name in TRANSPARENT_TAGS:
                cursor.advance()
                with ctx.nested():
                    parse_container_content(ctx, physical, logical)
                _consume_end_tag(ctx, name)
            elif name == LINK_TAG:
                _request_stylesheet(ctx)
                cursor.advance()
                collect_text_content(ctx)
                _consume_end_tag(ctx, name)
            elif name in OPAQUE_TAGS:
                _parse_opaque(ctx, name)
            elif cursor.classify(name) is ContentClass.LOGICAL:
                node_count = len(physical.children)
                _parse_logical(ctx, physical, logical)
                # Nodes of the grouped content end the run so later text stays after them
                if len(physical.children) != node_count:
                    pending_run = None
            elif is_inline_tag(name, cursor.classify):
                if pending_run is None:
                    pending_run = _new_run(ctx, physical)
                with ctx.nested():
                    resume_or_start(ctx, pending_run, logical, stack)
            else:
                pending_run = None
                _parse_block(ctx, physical, logical)

        elif kind is EventKind.TEXT:
            if contains_text(cursor.text) and (logical is not None or stack):
                if pending_run is None:
                    pending_run = _new_run(ctx, physical)
                if stack:
                    with ctx.nested():
                        resume_or_start(ctx, pending_run, logical, stack)
                else:
                    pending_run.append_normalized(cursor.text)
                    cursor.advance()
            else:
                cursor.advance()

        else:
            raise ctx.unexpected("container content")


def _close_open_inline(ctx: ParseContext, stack: OpenElementStack) -> bool:
    """Consume an end tag that closes an interrupted inline element."""
    name = ctx.cursor.tag_name
    for index in range(len(stack) - 1, -1, -1):
        if stack[index].name == name:
            for element in stack[index:]:
                element.end()
            del stack[index:]
            ctx.cursor.advance()
            return True
    return False


def _consume_end_tag(ctx: ParseContext, name: str) -> None:
    """Move past the closing tag of ``name``."""
    ctx.expect(EventKind.END_TAG)
    if ctx.cursor.tag_name != name:
        raise ctx.fail(f"End tag </{ctx.cursor.tag_name}> does not close <{name}>")
    ctx.cursor.advance()


def _new_run(ctx: ParseContext, physical: ContainerNode) -> InlineRun:
    run = InlineRun()
    physical.add_node(run)
    ctx.metrics.inline_runs_created += 1
    ctx.metrics.physical_nodes_created += 1
    return run


def _request_stylesheet(ctx: ParseContext) -> None:
    """Issue a fire-and-forget style sheet request for the current link tag."""
    cursor = ctx.cursor
    rel = (cursor.attribute_value("rel") or "").lower().split()
    href = cursor.attribute_value("href")
    if "stylesheet" not in rel or href is None:
        return

    try:
        location = ctx.page.create_uri(href)
    except ResourceResolutionError:
        ctx.logger.warning("Error resolving stylesheet URL", extra={"href": href},
                           exc_info=True)
        ctx.add_diagnostic(DiagnosticSeverity.WARNING,
                           f"Unresolvable stylesheet location: {href}",
                           "stylesheet_link", details={"href": href})
        return

    try:
        ctx.page.request_handler.request_stylesheet(ctx.document, location)
    except Exception:
        ctx.logger.warning("Stylesheet request failed", extra={"location": location},
                           exc_info=True)
        ctx.add_diagnostic(DiagnosticSeverity.WARNING,
                           f"Stylesheet request failed: {location}",
                           "stylesheet_link", details={"location": location})
        return
    ctx.metrics.stylesheet_requests += 1


def _parse_opaque(ctx: ParseContext, name: str) -> None:
    """Consume script, title or style content; style source goes to the style engine."""
    ctx.cursor.advance()
    with ctx.nested():
        text = collect_text_content(ctx)

    if name == STYLE_TAG:
        try:
            ctx.page.style_engine.ingest(text, ctx.page.base_uri)
        except Exception:
            ctx.logger.warning("Style source rejected by style engine", exc_info=True)
            ctx.add_diagnostic(DiagnosticSeverity.WARNING,
                               "Style source rejected by style engine", "style")
        else:
            ctx.metrics.style_sheets_ingested += 1
    elif name == TITLE_TAG and ctx.config.record_title:
        ctx.document.title = normalize_whitespace(text).strip()

    _consume_end_tag(ctx, name)


def _parse_logical(ctx: ParseContext, physical: ContainerNode,
                   logical: Optional[LogicalElement]) -> None:
    """Add a logical grouping level without physical effect."""
    cursor = ctx.cursor
    name = cursor.tag_name
    element = VirtualElement(name, cursor.attributes())
    ctx.link(logical, element)
    cursor.advance()
    with ctx.nested():
        parse_container_content(ctx, physical, element)
    _consume_end_tag(ctx, name)


def _parse_block(ctx: ParseContext, physical: ContainerNode,
                 logical: Optional[LogicalElement]) -> None:
    """Create the node for a block tag and parse its content by node kind."""
    cursor = ctx.cursor
    name = cursor.tag_name
    node = ctx.page.node_factory.create_node(name, cursor.attributes())
    physical.add_node(node)
    ctx.metrics.physical_nodes_created += 1

    element = ViewElement(name, node=node)
    for index in range(cursor.attribute_count):
        element.set_attribute(cursor.attribute_name(index), cursor.attribute_value_at(index))
    ctx.link(logical, element)
    cursor.advance()

    with ctx.nested():
        if isinstance(node, ContainerNode):
            parse_container_content(ctx, node, element)
        elif isinstance(node, ChoiceNode):
            collect_options(ctx, node)
        else:
            content = collect_text_content(ctx)
            if node.kind is NodeKind.TEXT_AREA:
                # A newline right after the start tag is not part of the value
                node.text = content[1:] if content.startswith("\n") else content
            elif contains_text(content):
                ctx.logger.debug("Ignored view content",
                                 extra={"tag": name, "content": content.strip()})

    _consume_end_tag(ctx, name)
