"""OAuth configuration, code exchange and token refresh for Strava."""

from __future__ import annotations

import asyncio
import enum
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import (
    AuthExchangeError,
    AuthorizationDeniedError,
    InvalidStateError,
    MissingCodeError,
    RefreshFailure,
)
from .models import TokenRecord, TokenResponse

logger = logging.getLogger(__name__)

DEFAULT_STRAVA_SCOPES = ["activity:read", "activity:read_all"]

# Tokens expiring within this many seconds are renewed before use
REFRESH_AHEAD_SECONDS = 300


class StravaAppConfig(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    strava_client_id: str = ""
    strava_client_secret: str = ""
    strava_oauth_scopes: str | None = None
    strava_max_pages: int = Field(default=20, ge=1)
    base_url: str = "http://localhost:3000"
    session_secret: str = Field(default_factory=lambda: secrets.token_hex(32))
    session_max_age: int = 24 * 60 * 60
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_credentials(self) -> StravaAppConfig:
        """Validate that required credentials are configured."""
        if not self.strava_client_id or self.strava_client_id == "your_client_id_here":
            raise ValueError("STRAVA_CLIENT_ID is not configured. Please set it in your .env file.")
        if not self.strava_client_secret or self.strava_client_secret == "your_client_secret_here":
            raise ValueError(
                "STRAVA_CLIENT_SECRET is not configured. Please set it in your .env file."
            )
        return self

    @property
    def scopes(self) -> list[str]:
        """Scopes to request from Strava."""
        if self.strava_oauth_scopes:
            scopes = [s.strip() for s in self.strava_oauth_scopes.split(",") if s.strip()]
            return scopes or DEFAULT_STRAVA_SCOPES
        return DEFAULT_STRAVA_SCOPES


class StravaOAuthService:
    """Talk to Strava's OAuth endpoints."""

    AUTH_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"

    def __init__(self, app_config: StravaAppConfig, timeout: float = 30.0) -> None:
        self.app_config = app_config
        self.base_url = app_config.base_url.rstrip("/")
        self.redirect_uri = f"{self.base_url}/oauth/callback"
        self.scopes = app_config.scopes
        self.timeout = timeout

    def build_authorization_url(self, state: str) -> str:
        """Generate the Strava authorization URL for the given state."""
        params = {
            "client_id": self.app_config.strava_client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": ",".join(self.scopes),
            "approval_prompt": "auto",
            "state": state,
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    async def request_token(self, grant: dict[str, str]) -> httpx.Response:
        """POST a grant to the token endpoint with the client credentials."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                self.TOKEN_URL,
                data={
                    "client_id": self.app_config.strava_client_id,
                    "client_secret": self.app_config.strava_client_secret,
                    **grant,
                },
            )


class RefreshStatus(enum.StrEnum):
    """How ``ensure_fresh`` left the token record."""

    UNCHANGED = "unchanged"
    REFRESHED = "refreshed"
    FAILED = "failed"


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of ``TokenLifecycleManager.ensure_fresh``.

    ``record`` is always the record the caller should keep: the new one
    after a refresh, the untouched one otherwise.
    """

    status: RefreshStatus
    record: TokenRecord | None
    error: RefreshFailure | None = None

    @property
    def changed(self) -> bool:
        return self.status is RefreshStatus.REFRESHED


def is_authenticated(record: TokenRecord | None) -> bool:
    """A session is authenticated when it holds a non-empty access token."""
    return bool(record and record.access_token)


class TokenLifecycleManager:
    """Own the Strava token lifecycle for browser sessions.

    Token records are immutable; every operation returns the record the
    caller should persist. Refreshes are single-flight per session key so
    concurrent requests from one session never race on a rotating refresh
    token.
    """

    def __init__(
        self,
        oauth_service: StravaOAuthService,
        *,
        refresh_ahead: int = REFRESH_AHEAD_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.oauth_service = oauth_service
        self.refresh_ahead = refresh_ahead
        self._clock = clock
        self._inflight: dict[str, asyncio.Task[RefreshOutcome]] = {}

    # Authorization-code flow

    def begin_authorization(self) -> tuple[str, str]:
        """Create a fresh OAuth state.

        Returns:
            Tuple of (state to store in the session, authorize URL to redirect to)
        """
        state = secrets.token_hex(16)
        return state, self.oauth_service.build_authorization_url(state)

    async def complete_authorization(
        self,
        *,
        expected_state: str | None,
        state: str | None,
        code: str | None,
        error: str | None = None,
    ) -> TokenRecord:
        """Validate a callback and exchange its code.

        Raises:
            AuthorizationDeniedError: The athlete declined on Strava
            InvalidStateError: ``state`` does not match the stored value
            MissingCodeError: No authorization code was supplied
            AuthExchangeError: Strava rejected the code
        """
        if error:
            raise AuthorizationDeniedError(f"Strava authorization failed: {error}", 400)
        if not expected_state or not state:
            raise InvalidStateError("Missing OAuth state.", 400)
        if not secrets.compare_digest(expected_state.encode(), state.encode()):
            raise InvalidStateError("OAuth session expired or invalid state.", 400)
        if not code:
            raise MissingCodeError("Missing authorization code.", 400)
        return await self.exchange(code)

    async def exchange(self, code: str) -> TokenRecord:
        """Exchange an authorization code for a token record."""
        try:
            response = await self.oauth_service.request_token(
                {"code": code, "grant_type": "authorization_code"}
            )
        except httpx.HTTPError as e:
            raise AuthExchangeError(f"Network error while contacting Strava: {e}") from e

        if not response.is_success:
            raise AuthExchangeError(
                f"Token exchange failed: {response.status_code}", response.status_code
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthExchangeError(
                f"Unexpected token response: {e}", response.status_code
            ) from e

        record = TokenRecord.from_token_response(token)
        logger.info("Exchanged authorization code for athlete %s", record.athlete_name or "?")
        return record

    # Refresh

    def needs_refresh(self, record: TokenRecord) -> bool:
        """True when ``record`` expires within the refresh-ahead window."""
        return record.expires_at - int(self._clock()) <= self.refresh_ahead

    async def ensure_fresh(
        self, record: TokenRecord | None, key: str | None = None
    ) -> RefreshOutcome:
        """Refresh ``record`` when it is within the refresh-ahead window.

        Never raises for a failed refresh: the stale record is returned with
        a FAILED status and the failure is logged, so the next API call
        reports the problem instead of the whole request failing here.

        Args:
            record: Current token record, or None for an anonymous session
            key: Session key used to share an in-flight refresh; defaults to
                the refresh token itself
        """
        if record is None or not self.needs_refresh(record):
            return RefreshOutcome(RefreshStatus.UNCHANGED, record)

        key = key or record.refresh_token
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(record))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[RefreshOutcome]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _refresh(self, record: TokenRecord) -> RefreshOutcome:
        try:
            response = await self.oauth_service.request_token(
                {"grant_type": "refresh_token", "refresh_token": record.refresh_token}
            )
        except httpx.HTTPError as e:
            return self._refresh_failed(record, RefreshFailure(f"Token refresh failed: {e}"))

        if not response.is_success:
            return self._refresh_failed(
                record,
                RefreshFailure(
                    f"Token refresh failed: {response.status_code} {response.text}",
                    response.status_code,
                ),
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            return self._refresh_failed(
                record, RefreshFailure(f"Unexpected refresh response: {e}", response.status_code)
            )

        logger.debug("Refreshed Strava token, new expiry %s", token.expires_at)
        return RefreshOutcome(
            RefreshStatus.REFRESHED, TokenRecord.from_token_response(token, previous=record)
        )

    @staticmethod
    def _refresh_failed(record: TokenRecord, failure: RefreshFailure) -> RefreshOutcome:
        logger.error("%s", failure.message)
        return RefreshOutcome(RefreshStatus.FAILED, record, failure)
