import logging
from dataclasses import dataclass, field
from typing import Literal, Protocol

from postfeed.models import FeedQueryConfig, Post, QueryRequest, QueryResponse
from postfeed.transformer import transform_batch

logger = logging.getLogger(__name__)

LoadMoreStatus = Literal["appended", "exhausted", "skipped", "superseded"]
SearchStatus = Literal["applied", "superseded"]


class DocumentRepository(Protocol):
    """Anything that can answer a paged predicate query, e.g. ``PrismicAPIClient``."""

    async def query(self, request: QueryRequest) -> QueryResponse:
        """Run ``request``; raise ``RepositoryQueryError`` on failure."""
        ...


@dataclass
class ListState:
    # page 1 is fetched by the first load_more until a seed or search lands
    current_page: int = 1
    posts: list[Post] = field(default_factory=list)
    search_term: str = ""
    has_more: bool = True
    is_searching: bool = False


class PostFeedController:
    """Accumulates pages of posts and runs searches against a document repository.

    Every request is tagged with the generation that was current when it was
    issued. ``search``, ``load_initial`` and ``seed`` start a new generation, so
    responses to older requests are dropped instead of being merged into the
    fresh list. At most one ``load_more`` per generation is in flight.

    State is only mutated synchronously after a response arrives, so a failed
    query leaves it exactly as it was.
    """

    def __init__(self, repository: DocumentRepository, config: FeedQueryConfig) -> None:
        self.repository = repository
        self.config = config
        self._state = ListState()
        self._generation = 0
        self._pending_load: int | None = None

    @property
    def posts(self) -> tuple[Post, ...]:
        return tuple(self._state.posts)

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    @property
    def is_searching(self) -> bool:
        return self._state.is_searching

    @property
    def search_term(self) -> str:
        return self._state.search_term

    @property
    def current_page(self) -> int:
        return self._state.current_page

    @property
    def is_empty(self) -> bool:
        """True when a finished query left nothing to show."""
        return not self._state.is_searching and not self._state.posts and not self._state.has_more

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _replace_posts(self, response: QueryResponse, term: str) -> None:
        self._state = ListState(
            current_page=2,
            posts=transform_batch(response.results, timezone=self.config.display_timezone),
            search_term=term,
            has_more=response.results_size > 0,
            is_searching=False,
        )

    def seed(self, response: QueryResponse) -> None:
        """Initialize the list from a first page fetched elsewhere."""
        self._next_generation()
        self._replace_posts(response, "")
        logger.info(f"Seeded feed with {len(self._state.posts)} posts")

    async def load_initial(self) -> None:
        """Fetch the first, unfiltered page and initialize the list from it."""
        generation = self._next_generation()
        try:
            response = await self.repository.query(self.config.build_request(page=1))
        except Exception:
            # a search this load superseded can no longer clear the flag
            if generation == self._generation:
                self._state.is_searching = False
            raise

        if generation != self._generation:
            logger.debug("Discarding superseded initial page")
            return

        self._replace_posts(response, "")
        logger.info(f"Loaded initial page with {len(self._state.posts)} posts")

    async def load_more(self) -> LoadMoreStatus:
        """Fetch the next page for the active search term and append it."""
        if self._state.is_searching or not self._state.has_more:
            return "skipped"

        generation = self._generation
        if self._pending_load == generation:
            logger.debug("Ignoring load_more while another page is in flight")
            return "skipped"

        page = self._state.current_page
        request = self.config.build_request(page=page, term=self._state.search_term)

        self._pending_load = generation
        try:
            response = await self.repository.query(request)
        finally:
            if self._pending_load == generation:
                self._pending_load = None

        if generation != self._generation:
            logger.debug(f"Discarding stale page {page}")
            return "superseded"

        if not response.results_size:
            self._state.has_more = False
            logger.debug(f"No more posts after page {page - 1}")
            return "exhausted"

        posts = transform_batch(response.results, timezone=self.config.display_timezone)
        self._state.posts = [*self._state.posts, *posts]
        self._state.current_page = page + 1
        logger.debug(f"Appended {len(posts)} posts from page {page}")
        return "appended"

    async def search(self, term: str) -> SearchStatus:
        """Replace the list with the first page matching ``term``; ``""`` clears the filter."""
        generation = self._next_generation()
        self._state.is_searching = True
        logger.info(f"Searching posts for {term!r}")

        try:
            response = await self.repository.query(self.config.build_request(page=1, term=term))
        except Exception:
            if generation == self._generation:
                self._state.is_searching = False
            raise

        if generation != self._generation:
            logger.debug(f"Discarding superseded search for {term!r}")
            return "superseded"

        self._replace_posts(response, term)
        logger.info(f"Search for {term!r} returned {len(self._state.posts)} posts")
        return "applied"
