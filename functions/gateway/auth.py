"""
Bearer token gate for protected routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from gateway.dependencies import get_token_service
from gateway.errors import AuthenticationError, ForbiddenError
from gateway.security import InvalidTokenError, TokenClaims, TokenService

logger = logging.getLogger(__name__)


def extract_token(authorization: Optional[str]) -> str:
    """Return the second whitespace-separated segment of the header."""
    if not authorization:
        raise AuthenticationError("Authorization header missing")
    parts = authorization.split()
    if len(parts) < 2 or not parts[1]:
        raise AuthenticationError("Token missing")
    return parts[1]


def require_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    token = extract_token(authorization)
    try:
        claims = tokens.verify(token)
    except InvalidTokenError as exc:
        logger.warning("JWT verification error on %s: %s", request.url.path, exc)
        raise ForbiddenError("Invalid or expired token") from exc
    request.state.user = claims
    return claims
