import logging
from typing import Any

from fastmcp import FastMCP

from postfeed.config import settings
from postfeed.controller import PostFeedController
from postfeed.errors import RepositoryQueryError
from postfeed.models import FeedQueryConfig
from postfeed.prismic_client import PrismicAPIClient

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "lostCode Posts MCP",
    instructions=(
        "lostCode is a programming blog. Use these tools to browse its posts page by page "
        "and to run full-text searches over them."
    ),
)

# One feed per process: the server backs a single reader, like one open page view.
_feed_controller: PostFeedController | None = None


async def get_feed_controller() -> PostFeedController:
    global _feed_controller
    if _feed_controller is None:
        _feed_controller = PostFeedController(
            PrismicAPIClient(), FeedQueryConfig.from_settings(settings)
        )
    return _feed_controller


def _snapshot(controller: PostFeedController) -> dict[str, Any]:
    return {
        "posts": [post.model_dump() for post in controller.posts],
        "has_more": controller.has_more,
        "is_searching": controller.is_searching,
        "search_term": controller.search_term,
        "empty": controller.is_empty,
    }


@mcp.tool()
async def list_posts() -> dict[str, Any]:
    """
    Return the posts loaded so far.

    Returns:
        Loaded posts, whether more pages exist, and the active search term
    """
    controller = await get_feed_controller()
    return _snapshot(controller)


@mcp.tool()
async def load_more_posts() -> dict[str, Any]:
    """
    Load the next page of posts for the active search, if any.

    Returns:
        The load status and all posts loaded so far
    """
    controller = await get_feed_controller()
    try:
        status = await controller.load_more()
    except RepositoryQueryError as e:
        logger.warning(f"Loading more posts failed: {e}")
        return {"error": str(e), **_snapshot(controller)}

    return {"status": status, **_snapshot(controller)}


@mcp.tool()
async def search_posts(term: str = "") -> dict[str, Any]:
    """
    Run a full-text search over the blog posts.

    Args:
        term: Search text; an empty string clears the search (default: "")

    Returns:
        The first page of matching posts
    """
    controller = await get_feed_controller()
    try:
        status = await controller.search(term)
    except RepositoryQueryError as e:
        logger.warning(f"Search for {term!r} failed: {e}")
        return {"error": str(e), **_snapshot(controller)}

    return {"status": status, **_snapshot(controller)}
