"""Inline run building with interruption and resumption.

An inline element can be interrupted by block content nested inside it in the
markup. The element is then sealed in its current run and stays on the open-element
stack; the next inline content at the same level reopens every stacked element in a
new run and continues appending to the same logical elements. Only an element's own
end tag removes it from the stack.

The stack is owned by the container routine and passed down explicitly.
"""

from typing import List, Optional

from htmlview.tokenization import EventKind, is_inline_tag

from .context import ParseContext
from .elements import LogicalElement, TextElement
from .nodes import InlineRun

OpenElementStack = List[TextElement]


def resume_or_start(ctx: ParseContext, run: InlineRun,
                    logical_container: Optional[LogicalElement],
                    stack: OpenElementStack) -> None:
    """Add the content at the cursor to ``run``.

    With a non-empty ``stack`` the stacked elements are reopened in ``run``
    (outermost first, each nested in the previous) and parsing continues inside the
    innermost one until the stacked elements are closed or interrupted again.
    Otherwise a TEXT event is appended to the run directly and a START_TAG starts a
    new top-level element of the run.

    Precondition: on a TEXT or inline START_TAG event.
    Postcondition: on the first event not consumed, which is an interrupting block
    START_TAG if the stack is non-empty on return.
    """
    cursor = ctx.cursor
    if stack:
        ctx.metrics.resumptions += 1
        ctx.logger.debug(
            "Resuming interrupted inline elements",
            extra={"open_elements": [element.name for element in stack]},
        )
        parent_span = None
        for element in stack:
            parent_span = element.open_in(run, parent_span)
        while stack:
            if not continue_inline_content(ctx, stack[-1], stack):
                return
        return

    kind = cursor.event_kind
    if kind is EventKind.TEXT:
        run.append_normalized(cursor.text)
        cursor.advance()
    elif kind is EventKind.START_TAG:
        element = TextElement(cursor.tag_name)
        ctx.link(logical_container, element)
        element.open_in(run)
        build_inline_subtree(ctx, element, stack)
    else:
        raise ctx.unexpected("inline run")


def build_inline_subtree(ctx: ParseContext, element: TextElement,
                         stack: OpenElementStack) -> bool:
    """Parse the content of the inline element whose opening tag is current.

    Precondition: on the element's opening tag.
    Postcondition: past the element's closing tag when True is returned (the element
    is popped from ``stack``); on the interrupting block START_TAG when False is
    returned (the element and any open descendants stay on ``stack``).
    """
    cursor = ctx.cursor
    stack.append(element)
    for index in range(cursor.attribute_count):
        element.set_attribute(cursor.attribute_name(index), cursor.attribute_value_at(index))
    cursor.advance()
    return continue_inline_content(ctx, element, stack)


def continue_inline_content(ctx: ParseContext, element: TextElement,
                            stack: OpenElementStack) -> bool:
    """Parse inline content until ``element`` closes or block content interrupts it.

    Precondition: inside ``element``, which is the innermost entry of ``stack``.
    Postcondition: as for ``build_inline_subtree``.
    """
    cursor = ctx.cursor
    while cursor.event_kind is not EventKind.END_TAG:
        kind = cursor.event_kind
        if kind is EventKind.TEXT:
            element.append_normalized(cursor.text)
            cursor.advance()
        elif kind is EventKind.START_TAG:
            name = cursor.tag_name
            if not is_inline_tag(name, ctx.cursor.classify):
                element.end()
                ctx.metrics.interruptions += 1
                ctx.logger.debug(
                    "Inline element interrupted by block content",
                    extra={"element": element.name, "block": name},
                )
                return False
            with ctx.nested():
                child = element.add_child(name)
                ctx.metrics.logical_elements_created += 1
                closed = build_inline_subtree(ctx, child, stack)
            if not closed:
                element.end()
                return False
        else:
            raise ctx.unexpected(f"inline element <{element.name}>")

    if cursor.tag_name != element.name:
        raise ctx.fail(f"End tag </{cursor.tag_name}> does not close <{element.name}>")
    element.end()
    stack.pop()
    cursor.advance()
    return True
