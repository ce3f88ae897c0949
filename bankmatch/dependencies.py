# bankmatch/dependencies.py

"""
Authentication dependencies for FastAPI.

Validates Supabase JWTs for user-facing endpoints and the shared cron
secret for the scheduler endpoint.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from bankmatch.config import get_settings
from bankmatch.database import get_supabase_admin

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Return the id of the Supabase user the bearer token belongs to.

    Sync on purpose: FastAPI runs it in a threadpool.
    """
    try:
        user_response = get_supabase_admin().auth.get_user(credentials.credentials)
    except Exception:
        raise _unauthorized("Invalid or expired token")

    user = user_response.user if user_response else None
    if user is None:
        raise _unauthorized("Invalid or expired token")
    return user.id


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """
    Check the scheduler's bearer token.

    When no CRON_SECRET is configured the endpoint is open.
    """
    cron_secret = get_settings().cron_secret
    if cron_secret and authorization != f"Bearer {cron_secret}":
        raise _unauthorized("Unauthorized")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )
