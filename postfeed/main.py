import asyncio
import logging

from postfeed.mcp_server import get_feed_controller, mcp

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def load_initial_posts_background() -> None:
    """Load the first page in the background without blocking server startup."""
    try:
        logger.info("Loading first page of posts...")
        controller = await get_feed_controller()
        await controller.load_initial()
        logger.info(f"First page loaded with {len(controller.posts)} posts")
    except Exception as e:
        logger.error(f"Error loading first page of posts: {e}")


async def main() -> None:
    """Main function to run the MCP HTTP server."""
    logger.info("Starting lostCode posts MCP server on http://localhost:8000")

    # Start the initial load (non-blocking)
    initial_load = asyncio.create_task(load_initial_posts_background())

    await mcp.run_http_async(port=8000, host="0.0.0.0", path="/")
    await initial_load


if __name__ == "__main__":
    asyncio.run(main())
