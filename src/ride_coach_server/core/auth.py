"""API key authentication for service-to-service requests.

A single shared key from config (API_KEY env var). When no key is
configured the API is open, which suits a single-athlete self-hosted setup.
"""

import secrets
from typing import Any

import structlog
from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers import BaseRouteHandler

from ride_coach_server.core.config import settings

logger = structlog.get_logger()


def validate_api_key(key: str) -> bool:
    """Validate an API key against the configured key.

    Uses constant-time comparison to prevent timing attacks.

    Args:
        key: The API key to validate

    Returns:
        True if valid, False otherwise
    """
    if not settings.api_key:
        return False

    return secrets.compare_digest(key, settings.api_key)


def _extract_api_key(connection: ASGIConnection[Any, Any, Any, Any]) -> str | None:
    """Extract API key from request headers.

    Args:
        connection: The ASGI connection

    Returns:
        The API key string or None if not found
    """
    # Try X-API-Key header first
    api_key = connection.headers.get("X-API-Key")

    if not api_key:
        # Try Authorization: Bearer header
        auth_header = connection.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            api_key = auth_header[7:]

    return api_key


async def api_key_guard(
    connection: ASGIConnection[Any, Any, Any, Any], _: BaseRouteHandler
) -> None:
    """Litestar guard that validates API key from request header.

    If no API_KEY is configured, authentication is skipped (open access).

    Args:
        connection: The ASGI connection
        _: The route handler (unused)

    Raises:
        NotAuthorizedException: If API key is required but missing/invalid
    """
    if not settings.api_key:
        logger.debug("No API_KEY configured - authentication disabled")
        return

    api_key = _extract_api_key(connection)

    if not api_key:
        logger.warning("API request without authentication", path=connection.url.path)
        raise NotAuthorizedException("Missing API key. Use X-API-Key header.")

    if not validate_api_key(api_key):
        logger.warning("API request with invalid key", path=connection.url.path)
        raise NotAuthorizedException("Invalid API key")
