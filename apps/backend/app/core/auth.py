import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

logger = logging.getLogger(__name__)

_basic = HTTPBasic(auto_error=False, realm="Admin Area")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
    )


def require_admin(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic),
) -> str:
    """
    HTTP Basic guard for admin routes. Skipped entirely in development.
    """
    settings = request.app.state.settings
    if settings.is_development:
        return "development"

    if credentials is None:
        raise _unauthorized("Authentication required")

    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    pass_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    if not (user_ok and pass_ok):
        logger.warning("Admin authentication failed for %s", credentials.username)
        raise _unauthorized("Invalid credentials")

    return credentials.username
