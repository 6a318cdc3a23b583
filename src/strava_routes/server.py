"""Strava Routes server - Main entry point."""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware

from .auth import StravaAppConfig, StravaOAuthService, TokenLifecycleManager
from .http_app import StravaRoutesHandlers

# Load environment variables
load_dotenv()

SESSION_COOKIE = "strava-routes"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stdout at the configured level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app(
    app_config: StravaAppConfig | None = None,
    tokens: TokenLifecycleManager | None = None,
) -> Starlette:
    """Create the Starlette application.

    Args:
        app_config: Configuration; read from the environment when omitted
        tokens: Token manager; built from the configuration when omitted

    Returns:
        Configured Starlette instance with cookie sessions
    """
    app_config = app_config or StravaAppConfig()
    tokens = tokens or TokenLifecycleManager(StravaOAuthService(app_config))
    handlers = StravaRoutesHandlers(app_config, tokens)

    middleware = [
        Middleware(
            SessionMiddleware,
            secret_key=app_config.session_secret,
            session_cookie=SESSION_COOKIE,
            max_age=app_config.session_max_age,
            same_site="lax",
            https_only=app_config.base_url.startswith("https://"),
        )
    ]

    app = Starlette(routes=handlers.get_routes(), middleware=middleware)
    app.state.config = app_config
    app.state.tokens = tokens
    return app


def main():
    """Main entry point for the Strava Routes server."""
    parser = argparse.ArgumentParser(description="Strava Routes server")
    parser.add_argument("--host", type=str, default=None, help="Bind address (default: HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3000)")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    app_config = StravaAppConfig()
    configure_logging(args.log_level or app_config.log_level)

    host = args.host or app_config.host
    port = args.port or app_config.port
    logger.info("Strava Routes running on %s", app_config.base_url)

    uvicorn.run(create_app(app_config), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
