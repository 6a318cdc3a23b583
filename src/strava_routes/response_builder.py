"""Builders for the JSON bodies returned by the HTTP API."""

from typing import cast

from .models import GridCell, RouteRecord
from .pagination import FetchResult
from .types import (
    ActivitiesResponse,
    ErrorResponse,
    GridCellData,
    HeatmapResponse,
    RouteData,
    SessionResponse,
)


class ResponseBuilder:
    """Builder for standardized JSON responses."""

    @staticmethod
    def build_activities_response(
        routes: list[RouteRecord], available_sports: list[str], fetched: FetchResult
    ) -> ActivitiesResponse:
        """Build the route list.

        Args:
            routes: Routes after sport filtering
            available_sports: Sports present in the unfiltered window, for the selector
            fetched: Fetch result, for the truncation flag
        """
        return {
            "activities": [cast(RouteData, route.as_dict()) for route in routes],
            "sport_types": available_sports,
            "truncated": fetched.truncated,
        }

    @staticmethod
    def build_heatmap_response(
        cells: list[GridCell], route_count: int, fetched: FetchResult
    ) -> HeatmapResponse:
        return {
            "cells": [cast(GridCellData, cell.as_dict()) for cell in cells],
            "routes": route_count,
            "truncated": fetched.truncated,
        }

    @staticmethod
    def build_session_response(authenticated: bool, athlete_name: str | None) -> SessionResponse:
        return {"authenticated": authenticated, "athlete_name": athlete_name}

    @staticmethod
    def build_error_response(error_type: str, message: str | None = None) -> ErrorResponse:
        """Build standardized error response.

        Args:
            error_type: Machine-readable error code (e.g. "not_authenticated")
            message: Optional human-readable detail
        """
        response: ErrorResponse = {"error": error_type}
        if message:
            response["message"] = message
        return response
