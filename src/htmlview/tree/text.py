"""Text accumulation for opaque element content."""

from htmlview.tokenization import EventKind

from .context import ParseContext


def collect_text_content(ctx: ParseContext) -> str:
    """Concatenate the text content of the current element.

    Nested tags are traversed to keep the cursor aligned but contribute only their
    text.

    Precondition: behind the opening tag.
    Postcondition: on the element's closing tag.
    """
    cursor = ctx.cursor
    parts = []
    while cursor.event_kind is not EventKind.END_TAG:
        kind = cursor.event_kind
        if kind is EventKind.START_TAG:
            with ctx.nested():
                cursor.advance()
                parts.append(collect_text_content(ctx))
            cursor.advance()
        elif kind is EventKind.TEXT:
            parts.append(cursor.text)
            cursor.advance()
        else:
            raise ctx.unexpected("text content")
    return "".join(parts)
