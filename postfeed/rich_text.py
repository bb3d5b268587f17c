from collections.abc import Mapping
from typing import Any

from postfeed.errors import RichTextError


def as_text(rich_text: Any, separator: str = " ") -> str:
    """Render a Prismic rich-text structure as plain text.

    Blocks without a ``text`` entry (images, embeds) contribute nothing.
    """
    if not isinstance(rich_text, list):
        raise RichTextError(f"Expected a list of rich-text blocks, got {type(rich_text).__name__}")

    parts: list[str] = []
    for block in rich_text:
        if not isinstance(block, Mapping):
            raise RichTextError(f"Rich-text block is not an object: {block!r}")
        text = block.get("text")
        if isinstance(text, str):
            parts.append(text)

    return separator.join(parts)
