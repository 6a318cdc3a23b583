"""Pagination limits and results for activity retrieval."""

from dataclasses import dataclass, field
from typing import Any, Required, TypedDict

# Max allowed by the Strava API
PER_PAGE = 200
# Hard stop against runaway pagination: at most MAX_PAGES * PER_PAGE activities
MAX_PAGES = 20


class PageParams(TypedDict, total=False):
    """Query parameters for one ``/athlete/activities`` request."""

    page: Required[int]
    per_page: Required[int]
    after: int
    before: int


def build_page_params(
    page: int,
    *,
    per_page: int = PER_PAGE,
    after: int | None = None,
    before: int | None = None,
) -> PageParams:
    """Build query parameters for a page, omitting unbounded sides."""
    params: PageParams = {"page": page, "per_page": per_page}
    if after is not None:
        params["after"] = after
    if before is not None:
        params["before"] = before
    return params


@dataclass
class FetchResult:
    """Activities gathered across pages.

    ``truncated`` is set when the page cap stopped retrieval while the last
    page was still full, i.e. more activities may exist in the window.
    """

    activities: list[dict[str, Any]] = field(default_factory=list)
    pages_fetched: int = 0
    truncated: bool = False
