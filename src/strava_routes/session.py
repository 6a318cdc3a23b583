"""Browser session state and the per-request Strava auth context.

The session itself is a signed cookie managed by Starlette's
``SessionMiddleware``; this module only decides what goes into it.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import MutableMapping
from typing import Any

from pydantic import ValidationError

from .auth import TokenLifecycleManager, is_authenticated
from .errors import NotAuthenticatedError
from .models import TokenRecord

logger = logging.getLogger(__name__)

TOKEN_KEY = "strava"
STATE_KEY = "oauth_state"
SESSION_ID_KEY = "sid"


class BrowserSession:
    """Typed access to the cookie-backed session mapping."""

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self._data = data

    @property
    def token(self) -> TokenRecord | None:
        raw = self._data.get(TOKEN_KEY)
        if not raw:
            return None
        try:
            return TokenRecord.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding unreadable token record from session")
            self._data.pop(TOKEN_KEY, None)
            return None

    @token.setter
    def token(self, record: TokenRecord | None) -> None:
        if record is None:
            self._data.pop(TOKEN_KEY, None)
        else:
            self._data[TOKEN_KEY] = record.model_dump(mode="json")

    @property
    def session_key(self) -> str | None:
        return self._data.get(SESSION_ID_KEY)

    @property
    def is_authenticated(self) -> bool:
        return is_authenticated(self.token)

    def store_state(self, state: str) -> None:
        """Remember the OAuth state, superseding any earlier one."""
        self._data[STATE_KEY] = state

    def pop_state(self) -> str | None:
        """Consume the stored OAuth state."""
        return self._data.pop(STATE_KEY, None)

    def login(self, record: TokenRecord) -> None:
        """Install a freshly exchanged token under a new session key."""
        self._data[SESSION_ID_KEY] = secrets.token_urlsafe(16)
        self.token = record

    def clear(self) -> None:
        self._data.clear()


class SessionTokenContext:
    """Per-request bridge between a browser session and the token manager.

    Supplies the bearer token to ``StravaClient`` and writes refreshed
    records back into the session.
    """

    def __init__(self, session: BrowserSession, tokens: TokenLifecycleManager) -> None:
        self.session = session
        self._tokens = tokens

    @property
    def access_token(self) -> str:
        record = self.session.token
        if record is None or not record.access_token:
            raise NotAuthenticatedError("Not authenticated with Strava.", 401)
        return record.access_token

    async def ensure_fresh(self) -> None:
        """Refresh the session's Strava token if it is close to expiry."""
        outcome = await self._tokens.ensure_fresh(self.session.token, key=self.session.session_key)
        if outcome.changed:
            self.session.token = outcome.record
