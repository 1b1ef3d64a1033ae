"""Option collection for fixed-choice containers."""

from htmlview.tokenization import EventKind

from .context import ParseContext
from .nodes import ChoiceNode, normalize_whitespace
from .text import collect_text_content

OPTION_TAG = "option"
SELECTED_ATTRIBUTE = "selected"


def collect_options(ctx: ParseContext, choice: ChoiceNode) -> None:
    """Fill ``choice`` with the options of the current container.

    Each item's text is flattened; the last item marked ``selected`` becomes the
    initial selection. Non-option children and whitespace between items are
    ignored.

    Precondition: on the container's first child or its closing tag.
    Postcondition: on the container's closing tag.
    """
    cursor = ctx.cursor
    while cursor.event_kind is not EventKind.END_TAG:
        kind = cursor.event_kind
        if kind is EventKind.START_TAG:
            name = cursor.tag_name
            selected = cursor.attribute_value(SELECTED_ATTRIBUTE) is not None
            value = cursor.attribute_value("value")
            with ctx.nested():
                cursor.advance()
                content = collect_text_content(ctx)
            cursor.advance()
            if name == OPTION_TAG:
                index = choice.add_option(normalize_whitespace(content).strip(), value)
                if selected:
                    choice.select(index)
            else:
                ctx.logger.debug("Ignored non-option child", extra={"tag": name})
        elif kind is EventKind.TEXT:
            cursor.advance()
        else:
            raise ctx.unexpected("option list")
