"""
API key authentication and role gating.

Identity is established upstream; this service only needs to know which role a
caller holds. Each configured key maps to one role:

- SCORER_API_KEY -> "scorer" (ball recording, innings and match transitions)
- ADMIN_API_KEY  -> "admin"  (everything a scorer can do, plus corrections)
"""
import hmac
from typing import Callable, Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from starlette.requests import Request

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

API_KEY_NAME = "X-API-Key"

ROLE_SCORER = "scorer"
ROLE_ADMIN = "admin"

api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


def resolve_role(api_key: Optional[str]) -> Optional[str]:
    """
    Map an API key to its role.

    Returns:
        "admin", "scorer", or None when the key matches neither
    """
    if not api_key:
        return None
    if settings.ADMIN_API_KEY and hmac.compare_digest(api_key, settings.ADMIN_API_KEY):
        return ROLE_ADMIN
    if settings.SCORER_API_KEY and hmac.compare_digest(api_key, settings.SCORER_API_KEY):
        return ROLE_SCORER
    return None


def get_caller_role(request: Request, api_key: Optional[str] = Security(api_key_header)) -> str:
    """
    Resolve the caller's role from the X-API-Key header.

    Raises:
        HTTPException: 401 if the key is missing, 403 if it is unknown
    """
    if not settings.auth_enabled():
        if settings.is_production():
            logger.warning("No role keys configured in production - rejecting request")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key required. Configure SCORER_API_KEY and ADMIN_API_KEY."
            )
        logger.debug("Role keys not configured - allowing request as admin in development mode")
        return ROLE_ADMIN

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"API key missing. Provide {API_KEY_NAME} header."
        )

    role = resolve_role(api_key)
    if role is None:
        logger.warning(f"Invalid API key attempt from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key."
        )
    return role


def require_role(*roles: str) -> Callable[..., str]:
    """
    Build a dependency that admits callers holding one of ``roles``.

    Admin satisfies every role.

    Usage:
        @router.post("/innings/{inning_id}/balls")
        def record_ball(role: str = Depends(require_role("scorer"))):
            ...
    """
    allowed = set(roles)

    def dependency(role: str = Security(get_caller_role)) -> str:
        if role == ROLE_ADMIN or role in allowed:
            return role
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{role}' may not perform this action. Requires one of: {', '.join(sorted(allowed))}"
        )

    return dependency


require_scorer = require_role(ROLE_SCORER)
require_admin = require_role(ROLE_ADMIN)
