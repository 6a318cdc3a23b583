"""Data models for Strava OAuth tokens, routes and heatmap cells."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


class TokenResponse(BaseModel):
    """OAuth token endpoint response.

    Refresh responses may omit the athlete and, depending on the provider's
    rotation policy, the refresh token.
    """

    model_config = ConfigDict(extra="ignore")

    token_type: str | None = None
    access_token: str
    refresh_token: str | None = None
    expires_at: int
    expires_in: int | None = None
    athlete: dict[str, Any] | None = None


class TokenRecord(BaseModel):
    """Strava credentials held in the browser session.

    Frozen: token lifecycle operations always return a new record rather
    than patching fields, so access token and expiry never drift apart.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: str
    expires_at: int
    athlete: dict[str, Any] | None = None

    @classmethod
    def from_token_response(
        cls, token: TokenResponse, previous: TokenRecord | None = None
    ) -> TokenRecord:
        """Build a record from a token response, carrying over what it omits."""
        refresh_token = token.refresh_token
        athlete = token.athlete
        if previous is not None:
            refresh_token = refresh_token or previous.refresh_token
            athlete = athlete if athlete is not None else previous.athlete
        return cls(
            access_token=token.access_token,
            refresh_token=refresh_token or "",
            expires_at=token.expires_at,
            athlete=athlete,
        )

    @property
    def athlete_name(self) -> str | None:
        if not self.athlete or not self.athlete.get("firstname"):
            return None
        return f"{self.athlete['firstname']} {self.athlete.get('lastname') or ''}".strip()


@dataclass(frozen=True, slots=True)
class RouteRecord:
    """Minimal activity projection sent to the map view."""

    id: int | None
    name: str | None
    sport_type: str | None
    start_date: str | None
    distance: float | None
    polyline: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class GridCell:
    """Heatmap cell: rounded coordinates and the number of points inside."""

    latitude: float
    longitude: float
    weight: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
