"""HTTP routes: Strava login flow and the activities API."""

from __future__ import annotations

import html
import logging

from starlette.requests import Request
from starlette.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Route

from .auth import StravaAppConfig, TokenLifecycleManager, is_authenticated
from .client import StravaClient
from .errors import (
    AuthExchangeError,
    AuthorizationDeniedError,
    InvalidStateError,
    InvalidTimeBoundError,
    MissingCodeError,
    NotAuthenticatedError,
    UpstreamApiError,
)
from .filters import filter_by_sport, normalize_activities, sport_types
from .heatmap import aggregate_routes
from .models import RouteRecord
from .pagination import FetchResult
from .response_builder import ResponseBuilder
from .session import BrowserSession, SessionTokenContext
from .time_utils import parse_time_bound, validate_window

logger = logging.getLogger(__name__)


class StravaRoutesHandlers:
    """Request handlers bound to the app configuration and token manager."""

    def __init__(self, app_config: StravaAppConfig, tokens: TokenLifecycleManager) -> None:
        self.app_config = app_config
        self.tokens = tokens

    def get_routes(self) -> list[Route]:
        return [
            Route("/", self.index, methods=["GET"]),
            Route("/auth", self.authorize, methods=["GET"]),
            Route("/oauth/callback", self.complete_authorization, methods=["GET"]),
            Route("/logout", self.logout, methods=["POST"]),
            Route("/api/session", self.session_status, methods=["GET"]),
            Route("/api/activities", self.activities, methods=["GET"]),
            Route("/api/heatmap", self.heatmap, methods=["GET"]),
        ]

    # OAuth flow

    async def authorize(self, request: Request) -> Response:
        """Start the Strava OAuth flow."""
        session = BrowserSession(request.session)
        state, url = self.tokens.begin_authorization()
        session.store_state(state)
        return RedirectResponse(url, status_code=302)

    async def complete_authorization(self, request: Request) -> Response:
        """Handle Strava's callback and install the token record in the session."""
        session = BrowserSession(request.session)
        query = request.query_params
        expected_state = session.pop_state()

        try:
            record = await self.tokens.complete_authorization(
                expected_state=expected_state,
                state=query.get("state"),
                code=query.get("code"),
                error=query.get("error"),
            )
        except (AuthorizationDeniedError, InvalidStateError, MissingCodeError) as e:
            logger.warning("Rejected OAuth callback: %s", e.message)
            return PlainTextResponse(e.message, status_code=400)
        except AuthExchangeError as e:
            logger.error("OAuth code exchange failed: %s", e.message)
            return PlainTextResponse("OAuth error. See server logs for details.", status_code=500)

        session.login(record)
        return RedirectResponse("/", status_code=302)

    async def logout(self, request: Request) -> Response:
        BrowserSession(request.session).clear()
        return RedirectResponse("/", status_code=302)

    # API

    async def session_status(self, request: Request) -> Response:
        record = BrowserSession(request.session).token
        authenticated = is_authenticated(record)
        return JSONResponse(
            ResponseBuilder.build_session_response(
                authenticated, record.athlete_name if record else None
            )
        )

    async def activities(self, request: Request) -> Response:
        """Return the athlete's routes within ``after``/``before``."""
        result = await self._load_routes(request)
        if isinstance(result, Response):
            return result
        routes, fetched = result
        selected = filter_by_sport(routes, request.query_params.get("sport_type"))
        return JSONResponse(
            ResponseBuilder.build_activities_response(selected, sport_types(routes), fetched)
        )

    async def heatmap(self, request: Request) -> Response:
        """Return heatmap cells for the athlete's routes within ``after``/``before``."""
        result = await self._load_routes(request)
        if isinstance(result, Response):
            return result
        routes, fetched = result
        selected = filter_by_sport(routes, request.query_params.get("sport_type"))
        cells = aggregate_routes(selected)
        return JSONResponse(ResponseBuilder.build_heatmap_response(cells, len(selected), fetched))

    async def _load_routes(
        self, request: Request
    ) -> tuple[list[RouteRecord], FetchResult] | Response:
        """Fetch and normalize routes, or build the error response."""
        session = BrowserSession(request.session)
        if not session.is_authenticated:
            return self._error("not_authenticated", status_code=401)

        query = request.query_params
        try:
            after = parse_time_bound(query.get("after"), "after")
            before = parse_time_bound(query.get("before"), "before")
            validate_window(after, before)
        except InvalidTimeBoundError as e:
            return self._error("invalid_request", e.message, status_code=400)

        context = SessionTokenContext(session, self.tokens)
        try:
            async with StravaClient(context, max_pages=self.app_config.strava_max_pages) as client:
                fetched = await client.fetch_activities(after=after, before=before)
        except NotAuthenticatedError:
            return self._error("not_authenticated", status_code=401)
        except UpstreamApiError as e:
            logger.error("Fetching activities failed: %s", e.message)
            return self._error("server_error", e.message, status_code=500)

        return normalize_activities(fetched.activities), fetched

    @staticmethod
    def _error(error_type: str, message: str | None = None, *, status_code: int) -> Response:
        return JSONResponse(
            ResponseBuilder.build_error_response(error_type, message), status_code=status_code
        )

    # Landing page

    async def index(self, request: Request) -> Response:
        """Minimal status page with login or logout controls."""
        record = BrowserSession(request.session).token
        if record is not None and is_authenticated(record):
            name = html.escape(record.athlete_name or "Athlete")
            body = f"""
    <p>Logged in as <strong>{name}</strong>.</p>
    <p>Routes: <code>/api/activities?after=YYYY-MM-DD&amp;before=YYYY-MM-DD</code></p>
    <form method="post" action="/logout"><button type="submit">Logout</button></form>"""
        else:
            body = """
    <p>Please log in first.</p>
    <p><a href="/auth">Log in with Strava</a></p>"""

        content = f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Strava Routes</title>
  </head>
  <body>
    <h1>Strava Routes</h1>{body}
  </body>
</html>
"""
        return HTMLResponse(content)
