"""Type definitions for the JSON bodies returned by the HTTP API."""

from typing import NotRequired, TypedDict


class RouteData(TypedDict):
    """One activity route as sent to the map view."""

    id: int | None
    name: str | None
    sport_type: str | None
    start_date: str | None
    distance: float | None
    polyline: str


class GridCellData(TypedDict):
    """Heatmap cell."""

    latitude: float
    longitude: float
    weight: int


class ActivitiesResponse(TypedDict):
    """Body of ``GET /api/activities``."""

    activities: list[RouteData]
    sport_types: list[str]
    truncated: bool


class HeatmapResponse(TypedDict):
    """Body of ``GET /api/heatmap``."""

    cells: list[GridCellData]
    routes: int
    truncated: bool


class SessionResponse(TypedDict):
    """Body of ``GET /api/session``."""

    authenticated: bool
    athlete_name: str | None


class ErrorResponse(TypedDict):
    """Structure for error responses."""

    error: str
    message: NotRequired[str]
