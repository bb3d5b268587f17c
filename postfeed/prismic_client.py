import logging
import time
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from postfeed.config import settings
from postfeed.errors import RepositoryQueryError
from postfeed.models import QueryRequest, QueryResponse

logger = logging.getLogger(__name__)


class PrismicAPIClient:
    def __init__(
        self,
        api_endpoint: str | None = None,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        ref_ttl: float | None = None,
    ) -> None:
        self.api_endpoint = (api_endpoint or settings.prismic_api_endpoint).rstrip("/")
        self.access_token = access_token or settings.prismic_access_token
        self.client = httpx.AsyncClient(timeout=settings.request_timeout, transport=transport)
        self.ref_ttl = settings.master_ref_ttl if ref_ttl is None else ref_ttl
        self._master_ref: str | None = None
        self._master_ref_fetched_at = 0.0

    async def __aenter__(self) -> "PrismicAPIClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _auth_params(self) -> dict[str, str]:
        if self.access_token:
            return {"access_token": self.access_token}
        return {}

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.query_retry_attempts),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise RepositoryQueryError(f"Unexpected payload from {url}")
        return data

    async def get_master_ref(self) -> str:
        """Resolve the ref of the currently published content release."""
        if (
            self._master_ref is not None
            and time.monotonic() - self._master_ref_fetched_at < self.ref_ttl
        ):
            return self._master_ref

        try:
            data = await self._get_json(self.api_endpoint, self._auth_params())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching Prismic API refs: {e}")
            raise RepositoryQueryError(f"Could not resolve master ref: {e}") from e

        try:
            master_ref = next(
                str(ref["ref"]) for ref in data.get("refs", []) if ref.get("isMasterRef")
            )
        except StopIteration:
            raise RepositoryQueryError("Prismic API did not return a master ref") from None
        except (KeyError, AttributeError, TypeError) as e:
            logger.error(f"Malformed refs in Prismic API response: {e!r}")
            raise RepositoryQueryError(f"Malformed refs in API response: {e!r}") from e

        self._master_ref = master_ref
        self._master_ref_fetched_at = time.monotonic()
        logger.debug(f"Using master ref {master_ref}")
        return master_ref

    def invalidate_master_ref(self) -> None:
        self._master_ref = None

    async def query(self, request: QueryRequest) -> QueryResponse:
        ref = await self.get_master_ref()

        params = {
            "ref": ref,
            "q": f"[{request.predicate}]",
            "page": str(request.page),
            "pageSize": str(request.page_size),
            "fetch": ",".join(request.fetch_fields),
            "orderings": request.orderings,
            **self._auth_params(),
        }

        url = f"{self.api_endpoint}/documents/search"

        try:
            data = await self._get_json(url, params)
            response = QueryResponse.model_validate(data)
        except httpx.HTTPStatusError as e:
            # the cached ref may belong to a release that no longer exists
            self.invalidate_master_ref()
            logger.error(f"Error querying Prismic (page {request.page}): {e}")
            raise RepositoryQueryError(f"Query for page {request.page} failed: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            # ValidationError and JSON decode errors are both ValueErrors
            logger.error(f"Error querying Prismic (page {request.page}): {e}")
            raise RepositoryQueryError(f"Query for page {request.page} failed: {e}") from e

        logger.debug(
            f"Fetched {response.results_size} documents for page {request.page} "
            f"with predicate {request.predicate}"
        )
        return response
