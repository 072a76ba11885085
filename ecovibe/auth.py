"""
Admin authentication: credential checks and the session guard.
"""

from __future__ import annotations

import hmac
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request
from passlib.context import CryptContext

from ecovibe.config import Settings, get_settings
from ecovibe.dependencies import get_session_store
from ecovibe.sessions import SessionStore

logger = logging.getLogger(__name__)

# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@lru_cache(maxsize=4)
def _hash_for(password_hash: Optional[str], password: str) -> str:
    return password_hash or pwd_context.hash(password)


def admin_password_hash(settings: Settings) -> str:
    """Configured hash, or a hash of the plain admin password."""
    return _hash_for(settings.admin_password_hash, settings.admin_password)


def check_credentials(
    settings: Settings, email: str, password: str, passcode: Optional[str] = None
) -> bool:
    if (email or "").strip().lower() != settings.admin_email.lower():
        return False
    if not pwd_context.verify(password or "", admin_password_hash(settings)):
        return False
    if settings.admin_passcode:
        return hmac.compare_digest(passcode or "", settings.admin_passcode)
    return True


def request_token(request: Request, settings: Settings) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    authorization = request.headers.get("authorization")
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return request.cookies.get(settings.session_cookie_name)


def is_authenticated(request: Request, sessions: SessionStore, settings: Settings) -> bool:
    token = request_token(request, settings)
    return bool(token) and sessions.is_valid(token)


def require_admin(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
) -> str:
    settings = get_settings()
    token = request_token(request, settings)
    if not token or not sessions.is_valid(token):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return token


def login(
    settings: Settings,
    sessions: SessionStore,
    email: str,
    password: str,
    passcode: Optional[str] = None,
) -> Optional[str]:
    """Return a new session token, or None when the credentials are wrong."""
    if not check_credentials(settings, email, password, passcode):
        logger.warning("Failed admin login for %s", email)
        return None
    token = sessions.create(settings.admin_email)
    logger.info("Admin signed in: %s", settings.admin_email)
    return token
