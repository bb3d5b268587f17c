import logging
import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from postfeed.errors import RichTextError, TransformError
from postfeed.models import Post, RawDocument
from postfeed.rich_text import as_text

logger = logging.getLogger(__name__)

SHORT_EXCERPT_LENGTH = 200
LONG_EXCERPT_LENGTH = 600
LONG_EXCERPT_EVERY = 4
ELLIPSIS = "..."

WORDS_PER_MINUTE = 265
ILLUSTRATIVE_IMAGE_COUNT = 1

DEFAULT_TIMEZONE = "America/Sao_Paulo"

_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def find_excerpt_source(content: Any) -> str:
    """Return the text of the first paragraph block, or an empty string."""
    if not isinstance(content, list):
        raise RichTextError("Content is not a list of rich-text blocks")

    for block in content:
        if isinstance(block, Mapping) and block.get("type") == "paragraph":
            text = block.get("text")
            return text if isinstance(text, str) else ""
    return ""


def excerpt_length(position: int) -> int:
    if position % LONG_EXCERPT_EVERY == 0:
        return LONG_EXCERPT_LENGTH
    return SHORT_EXCERPT_LENGTH


def build_excerpt(source: str, position: int) -> str:
    """Truncate ``source`` for the post at 1-based ``position`` in its batch.

    Sources of SHORT_EXCERPT_LENGTH characters or fewer get no excerpt at all.
    """
    if len(source) <= SHORT_EXCERPT_LENGTH:
        return ""
    return f"{source[: excerpt_length(position)]}{ELLIPSIS}"


def image_time_cost(image_count: int = ILLUSTRATIVE_IMAGE_COUNT) -> int:
    """Seconds spent looking at images: 12s for the first, one less per image down to 3s."""
    return sum(12 - i if i <= 9 else 3 for i in range(image_count))


def estimate_time_of_read(content: Any) -> int:
    word_count = len(as_text(content).split())
    seconds = word_count / WORDS_PER_MINUTE * 60 + image_time_cost()
    # half-up, not banker's rounding
    return math.floor(seconds / 60 + 0.5)


def parse_publication_date(value: Any) -> datetime:
    """Parse a Prismic timestamp such as ``2021-06-01T12:00:00+0000``."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a timestamp string, got {type(value).__name__}")
    # Prismic sends "+0000" style offsets
    return datetime.fromisoformat(_COMPACT_OFFSET_RE.sub(r"\1:\2", value))


def format_updated_at(timestamp: datetime, timezone: str = DEFAULT_TIMEZONE) -> str:
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(ZoneInfo(timezone))
    return timestamp.strftime("%d/%m/%Y")


def image_url(image: Any) -> str:
    if isinstance(image, Mapping) and isinstance(image.get("url"), str):
        return image["url"]
    return ""


def render_tag(tags: Any, uid: str | None = None) -> str:
    """Plain text of the tags field; absent or unreadable tags render as ``""``."""
    if not tags:
        return ""
    try:
        return as_text(tags)
    except RichTextError as e:
        logger.warning(f"Ignoring malformed tags on document {uid}: {e}")
        return ""


def transform_document(
    document: RawDocument,
    position: int,
    *,
    timezone: str = DEFAULT_TIMEZONE,
) -> Post:
    """Build the display record for ``document`` at 1-based ``position`` in its batch."""
    if not document.uid:
        raise TransformError("Document has no uid", uid=document.id)

    data = document.data
    try:
        title = as_text(data.title)
        excerpt_source = find_excerpt_source(data.content)
        time_of_read = estimate_time_of_read(data.content)
    except RichTextError as e:
        raise TransformError(f"Malformed document {document.uid}: {e}", uid=document.uid) from e

    try:
        published_at = parse_publication_date(document.last_publication_date)
    except ValueError as e:
        raise TransformError(
            f"Bad publication date on document {document.uid}: {e}", uid=document.uid
        ) from e

    return Post(
        slug=document.uid,
        title=title,
        excerpt=build_excerpt(excerpt_source, position),
        tag=render_tag(data.tags, document.uid),
        image=image_url(data.image),
        time_of_read=time_of_read,
        updated_at=format_updated_at(published_at, timezone),
    )


def transform_batch(
    documents: Iterable[RawDocument],
    *,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[Post]:
    """Transform a response batch in order, skipping documents that cannot be displayed."""
    posts = []
    for position, document in enumerate(documents, start=1):
        try:
            posts.append(transform_document(document, position, timezone=timezone))
        except TransformError as e:
            logger.warning(f"Skipping document at position {position}: {e}")
    return posts
