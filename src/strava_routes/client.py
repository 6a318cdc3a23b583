"""Strava API client for paginated activity retrieval."""

import logging
import types
from typing import Any, Protocol

import httpx

from .errors import UpstreamApiError
from .pagination import MAX_PAGES, PER_PAGE, FetchResult, build_page_params

logger = logging.getLogger(__name__)


class StravaAuthContext(Protocol):
    """What the client needs from whoever owns the credentials."""

    @property
    def access_token(self) -> str:
        """Current Strava API access token."""
        ...

    async def ensure_fresh(self) -> None:
        """Renew the access token if it is about to expire."""
        ...


class StravaClient:
    """Async HTTP client for the Strava activities API."""

    BASE_URL = "https://www.strava.com/api/v3"

    def __init__(
        self,
        context: StravaAuthContext,
        *,
        per_page: int = PER_PAGE,
        max_pages: int = MAX_PAGES,
        timeout: float = 30.0,
    ):
        """Initialize the Strava API client."""
        self.context = context
        self.per_page = per_page
        self.max_pages = max_pages
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "StravaClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=self.timeout,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()

    def _get_headers(self) -> dict[str, str]:
        """Get authorization headers for API requests."""
        return {"Authorization": f"Bearer {self.context.access_token}"}

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """
        Make an authenticated request to the Strava API.

        The token is re-validated before every request so long paginated
        fetches survive an expiry mid-loop.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        await self.context.ensure_fresh()

        try:
            response = await self._client.request(
                method,
                endpoint,
                headers=self._get_headers(),
                **kwargs,
            )
        except httpx.RequestError as e:
            raise UpstreamApiError(f"Request failed: {str(e)}") from e

        if not response.is_success:
            raise UpstreamApiError(
                f"Strava API error {response.status_code}: {response.text}",
                response.status_code,
                response.text,
            )
        return response

    async def fetch_activities(
        self,
        after: int | None = None,
        before: int | None = None,
    ) -> FetchResult:
        """Fetch all activities in a time window, page by page.

        Pages are requested strictly in order starting at 1. Retrieval stops
        at the first short page or after ``max_pages`` pages; in the latter
        case the result is flagged as truncated. Any failed page aborts the
        whole fetch.

        Args:
            after: Only activities starting after this epoch second
            before: Only activities starting before this epoch second

        Returns:
            FetchResult with activities in the order Strava returned them

        Raises:
            UpstreamApiError: If any page request fails
            NotAuthenticatedError: If the context holds no access token
        """
        result = FetchResult()

        for page in range(1, self.max_pages + 1):
            params = build_page_params(page, per_page=self.per_page, after=after, before=before)
            response = await self._request("GET", "/athlete/activities", params=params)

            try:
                batch = response.json()
            except ValueError as e:
                raise UpstreamApiError(
                    f"Strava API returned invalid JSON: {e}", response.status_code, response.text
                ) from e
            if not isinstance(batch, list):
                raise UpstreamApiError(
                    "Strava API returned an unexpected activities payload",
                    response.status_code,
                    response.text,
                )

            result.activities.extend(batch)
            result.pages_fetched = page

            if len(batch) < self.per_page:
                break
        else:
            result.truncated = True
            logger.warning(
                "Activity fetch stopped at page cap (%d pages, %d activities)",
                self.max_pages,
                len(result.activities),
            )

        return result
