"""Exception types raised across the Strava routes service."""


class StravaRoutesError(Exception):
    """Base class for all service errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthExchangeError(StravaRoutesError):
    """The token endpoint rejected an authorization code."""


class RefreshFailure(StravaRoutesError):
    """A refresh-token grant failed. Reported, never raised to request handlers."""


class InvalidStateError(StravaRoutesError):
    """OAuth callback state does not match the value stored in the session."""


class MissingCodeError(StravaRoutesError):
    """OAuth callback arrived without an authorization code."""


class AuthorizationDeniedError(StravaRoutesError):
    """The athlete declined the authorization request on Strava."""


class NotAuthenticatedError(StravaRoutesError):
    """The session carries no usable access token."""


class UpstreamApiError(StravaRoutesError):
    """The activities endpoint returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.body = body
        super().__init__(message, status_code)


class InvalidTimeBoundError(StravaRoutesError, ValueError):
    """An ``after``/``before`` query value could not be parsed."""


class MalformedPathError(ValueError):
    """An encoded polyline is truncated or contains invalid characters."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} (at offset {position})")
