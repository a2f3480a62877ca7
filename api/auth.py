"""
API authentication for the ERP gateway.

A single shared token (ERP_GATEWAY_API_TOKEN) guards every business
route. The token is read from the settings on app.state, so tests and
deployments configure it the same way.

Token extraction order:
1. Authorization: Bearer <token> header
2. X-API-Token header
3. api_token query parameter (for testing)

Usage:
    from api.auth import require_auth

    router = APIRouter(dependencies=[Depends(require_auth)])
"""

import logging
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


def _get_token_from_request(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    x_token = request.headers.get("X-API-Token")
    if x_token:
        return x_token

    query_token = request.query_params.get("api_token")
    if query_token:
        return query_token

    return None


def _expected_token(request: Request) -> str | None:
    settings = getattr(request.app.state, "settings", None)
    return settings.api_token if settings else None


async def require_auth(
    request: Request, credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """
    Dependency that requires a valid token.

    Returns the token on success. Raises HTTPException 401 on failure.
    If no token is configured, WARNS but allows (development mode).
    """
    expected = _expected_token(request)

    if not expected:
        logger.warning(
            "ERP_GATEWAY_API_TOKEN not set - authentication disabled! "
            "Set it in production."
        )
        return "auth_disabled"

    provided = _get_token_from_request(request)
    if not provided:
        logger.warning(f"Auth failed: no token provided for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Bearer token in Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(provided, expected):
        logger.warning(f"Auth failed: invalid token for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Auth succeeded for {request.url.path}")
    return provided
