"""
Caller identity for API routes.

Sessions are issued by the external auth system as signed JWTs whose `sub`
is the user's email. Routes receive the resolved User explicitly through
these dependencies; nothing reads a global "current user".
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session, select

from app.database import get_session
from app.models.user import User

load_dotenv()

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("AUTH_SECRET_KEY", "dev-only-change-me")
ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
TOKEN_EXPIRE_MINUTES = int(os.getenv("AUTH_TOKEN_EXPIRE_MINUTES", "720"))

_bearer = HTTPBearer(auto_error=False)


def create_access_token(email: str, expires_minutes: Optional[int] = None) -> str:
    """Sign a session token for `email` (used by scripts and tests)."""
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else TOKEN_EXPIRE_MINUTES
    )
    return jwt.encode({"sub": email, "exp": expires}, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: Session = Depends(get_session),
) -> Optional[User]:
    """Resolve the caller from the bearer token, or None if absent/invalid."""
    if credentials is None:
        return None

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    email = payload.get("sub")
    if not email:
        return None

    return session.exec(select(User).where(User.email == email)).first()


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_manager(user: User = Depends(require_user)) -> User:
    if not user.is_manager:
        raise HTTPException(status_code=403, detail="Manager access only")
    return user
