"""Activity normalization and client-side filtering.

Raw activities from ``/athlete/activities`` are kept as plain dicts; only
the handful of fields the map needs are projected into RouteRecords.
"""

from collections.abc import Iterable
from typing import Any

from .models import RouteRecord

ALL_SPORTS = "all"


def _summary_polyline(activity: Any) -> str | None:
    if not isinstance(activity, dict):
        return None
    activity_map = activity.get("map")
    if not isinstance(activity_map, dict):
        return None
    polyline = activity_map.get("summary_polyline")
    if isinstance(polyline, str) and polyline:
        return polyline
    return None


def normalize_activities(activities: Iterable[Any]) -> list[RouteRecord]:
    """Project raw activities to RouteRecords, dropping those without a route.

    Activities without a non-empty ``map.summary_polyline`` (manual entries,
    trainer rides, privacy-zoned activities) are skipped. The specific
    ``sport_type`` is preferred over the legacy ``type`` field. Input order
    is preserved and this function never raises.
    """
    routes: list[RouteRecord] = []
    for activity in activities:
        polyline = _summary_polyline(activity)
        if polyline is None:
            continue
        routes.append(
            RouteRecord(
                id=activity.get("id"),
                name=activity.get("name"),
                sport_type=activity.get("sport_type") or activity.get("type"),
                start_date=activity.get("start_date"),
                distance=activity.get("distance"),
                polyline=polyline,
            )
        )
    return routes


def filter_by_sport(routes: Iterable[RouteRecord], sport_type: str | None) -> list[RouteRecord]:
    """Keep routes of one sport type (case-insensitive).

    ``None``, an empty string or ``"all"`` keeps every route.
    """
    if not sport_type or sport_type.strip().lower() == ALL_SPORTS:
        return list(routes)

    wanted = sport_type.strip().lower()
    return [route for route in routes if (route.sport_type or "").lower() == wanted]


def sport_types(routes: Iterable[RouteRecord]) -> list[str]:
    """Sorted distinct sport types present in the routes."""
    names = {(route.sport_type or "").strip() for route in routes}
    return sorted(name for name in names if name)
