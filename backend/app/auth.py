"""Bearer-token authentication for operator endpoints.

Tokens are HS256 JWTs signed with the platform's shared ``JWT_SECRET`` via
python-jose.  The aggregator only validates them; user accounts and logins
live in the main platform.  A token must carry ``sub`` and a ``role`` claim.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JWT configuration
# ---------------------------------------------------------------------------
JWT_SECRET = os.getenv(
    "JWT_SECRET",
    "aggregator-dev-secret-change-in-production",
)
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = 24

ADMIN_ROLES = ("admin", "service_role")

# ---------------------------------------------------------------------------
# HTTPBearer scheme
# ---------------------------------------------------------------------------
security = HTTPBearer(auto_error=False)


def create_access_token(user_data: dict[str, Any], expires_in: timedelta | None = None) -> str:
    """Create a signed JWT carrying the user's id, email and role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_data["id"],
        "email": user_data.get("email", ""),
        "role": user_data.get("role", "user"),
        "exp": now + (expires_in or timedelta(hours=JWT_EXPIRY_HOURS)),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict[str, Any]:
    """FastAPI dependency -- extract and validate the Bearer JWT."""
    token: str | None = credentials.credentials if credentials is not None else None

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        client_ip = request.client.host if request.client else "unknown"
        logger.warning("JWT validation failed from %s: %s", client_ip, exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    user_id: str = payload.get("sub", "")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return {
        "id": user_id,
        "email": payload.get("email", ""),
        "role": payload.get("role", ""),
    }


async def require_admin(
    current_user: dict = Depends(get_current_user),
) -> dict:
    """FastAPI dependency that enforces admin-level access.

    Raises :class:`~fastapi.HTTPException` with status 403 if the
    authenticated user does not have the ``admin`` or ``service_role`` role.
    """
    if current_user.get("role", "") not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
