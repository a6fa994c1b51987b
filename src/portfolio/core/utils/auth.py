"""Shared-secret admin authentication.

The admin exchanges the configured password for a bearer token derived
from it with HMAC-SHA256. Tokens never expire; changing `ADMIN_PASSWORD`
revokes every token issued before.
"""

import hashlib
import hmac
from collections.abc import Mapping
from typing import Any

from aws_lambda_powertools import Logger

from portfolio.core.config import PortfolioSettings
from portfolio.core.models.errors import UnauthorizedError
from portfolio.core.utils.constants import AUTH_TOKEN_CONTEXT

logger = Logger(UTC=True)

BEARER_PREFIX = "bearer "


def derive_token(password: str) -> str:
    return hmac.new(password.encode("utf-8"), AUTH_TOKEN_CONTEXT, hashlib.sha256).hexdigest()


def _configured_password(settings: PortfolioSettings) -> str:
    if settings.admin_password is None:
        logger.warning("Admin request rejected, ADMIN_PASSWORD is not configured")
        raise UnauthorizedError(message="Admin access is not configured")
    return settings.admin_password.get_secret_value()


def issue_token(password: str, settings: PortfolioSettings) -> str:
    """Return the bearer token for a correct password.

    Raises:
        UnauthorizedError: If the password is wrong or none is configured.
    """
    expected = _configured_password(settings)
    if not hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
        logger.info("Admin login failed")
        raise UnauthorizedError(message="Invalid password")
    return derive_token(expected)


def bearer_token(headers: Mapping[str, Any] | None) -> str | None:
    for name, value in (headers or {}).items():
        if name.lower() == "authorization" and isinstance(value, str):
            if value.lower().startswith(BEARER_PREFIX):
                return value[len(BEARER_PREFIX):].strip()
    return None


def require_admin(event: Mapping[str, Any], settings: PortfolioSettings) -> None:
    """Reject the request unless it carries the admin bearer token.

    Raises:
        UnauthorizedError: If the token is missing or does not match.
    """
    token = bearer_token(event.get("headers"))
    if not token:
        raise UnauthorizedError(message="Authentication required")

    expected = derive_token(_configured_password(settings))
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise UnauthorizedError(message="Invalid or expired token")
