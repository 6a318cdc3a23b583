"""Heatmap aggregation of decoded activity routes.

Summary polylines are coarsely sampled, so long straight segments would
otherwise show up as two isolated hot spots. Segments are densified with
evenly spaced points before every point is snapped onto a grid.
"""

import logging
import math
from collections.abc import Iterable, Iterator, Sequence

from .errors import MalformedPathError
from .models import GridCell, RouteRecord
from .polyline import Coordinate, decode_polyline

logger = logging.getLogger(__name__)

# Degree-space spacing between interpolated points (~55 m)
DENSIFY_STEP_DEGREES = 0.0005
# Decimal places kept for cell keys (~11 m cells)
GRID_PRECISION = 4


def densify(coordinates: Sequence[Coordinate]) -> Iterator[Coordinate]:
    """Yield every coordinate plus interpolated points between neighbours.

    Between each consecutive pair, ``floor(distance / DENSIFY_STEP_DEGREES)``
    extra points are inserted at equal fractions of the segment. Distance is
    planar in degree space.
    """
    for i, current in enumerate(coordinates):
        yield current
        if i + 1 >= len(coordinates):
            break
        following = coordinates[i + 1]
        d_lat = following.latitude - current.latitude
        d_lng = following.longitude - current.longitude
        distance = math.hypot(d_lat, d_lng)
        steps = max(0, math.floor(distance / DENSIFY_STEP_DEGREES))
        for s in range(1, steps + 1):
            fraction = s / (steps + 1)
            yield Coordinate(
                current.latitude + d_lat * fraction,
                current.longitude + d_lng * fraction,
            )


def _snap(value: float, precision: int) -> float:
    # Half-up rounding
    factor = 10**precision
    return math.floor(value * factor + 0.5) / factor


class DensityGrid:
    """Point counts keyed by coordinates rounded to a fixed precision."""

    def __init__(self, precision: int = GRID_PRECISION) -> None:
        self.precision = precision
        self._weights: dict[tuple[float, float], int] = {}

    def add(self, point: Coordinate) -> None:
        key = (_snap(point.latitude, self.precision), _snap(point.longitude, self.precision))
        self._weights[key] = self._weights.get(key, 0) + 1

    def extend(self, points: Iterable[Coordinate]) -> None:
        for point in points:
            self.add(point)

    def __len__(self) -> int:
        return len(self._weights)

    @property
    def total_weight(self) -> int:
        return sum(self._weights.values())

    def cells(self) -> list[GridCell]:
        return [
            GridCell(latitude=lat, longitude=lng, weight=weight)
            for (lat, lng), weight in self._weights.items()
        ]


def aggregate_routes(routes: Iterable[RouteRecord]) -> list[GridCell]:
    """Build heatmap cells from the polylines of the given routes.

    Routes are independent: one with a malformed polyline is logged and
    skipped while the rest still contribute.
    """
    grid = DensityGrid()
    for route in routes:
        try:
            coordinates = decode_polyline(route.polyline)
        except MalformedPathError as e:
            logger.warning("Skipping route %s in heatmap: %s", route.id, e)
            continue
        grid.extend(densify(coordinates))
    return grid.cells()
