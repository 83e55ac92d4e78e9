# auth_service/sessions.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request, Response
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import AppConfig

from .database import get_db
from .errors import Unauthorized
from .models import User
from .store import UserStore

logger = logging.getLogger(__name__)

SESSION_MAX_AGE = AppConfig.SESSION_EXPIRE_DAYS * 24 * 60 * 60


def create_session_token(user: User, now: Optional[datetime] = None) -> str:
    # whole seconds, so exp - iat is exactly the session lifetime once encoded
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    claims = {
        "userId": user.id,
        "phone": user.phone,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=AppConfig.SESSION_EXPIRE_DAYS),
    }
    return jwt.encode(claims, AppConfig.AUTH_SECRET_KEY, algorithm=AppConfig.ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Return the claims of a valid, unexpired token, else None."""
    try:
        claims = jwt.decode(token, AppConfig.AUTH_SECRET_KEY, algorithms=[AppConfig.ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected session token: %s", e)
        return None
    # jose still accepts a token in the second it expires
    if claims.get("exp", 0) <= datetime.now(timezone.utc).timestamp():
        return None
    return claims


def issue_session(request: Request, response: Response, user: User, now: Optional[datetime] = None) -> str:
    token = create_session_token(user, now)
    response.set_cookie(
        AppConfig.SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=request.url.scheme == "https" or AppConfig.is_production(),
        samesite="lax",
    )
    return token


def clear_session(response: Response):
    response.delete_cookie(AppConfig.SESSION_COOKIE_NAME, httponly=True, samesite="lax")


def resolve_session(request: Request, db: Session) -> Optional[User]:
    token = request.cookies.get(AppConfig.SESSION_COOKIE_NAME)
    if not token:
        return None
    claims = decode_session_token(token)
    if not claims or not claims.get("userId"):
        return None
    return UserStore.find_by_id(db, claims["userId"])


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = resolve_session(request, db)
    if user is None:
        raise Unauthorized()
    return user
