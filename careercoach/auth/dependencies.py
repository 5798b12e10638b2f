import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from careercoach.auth.context import ANONYMOUS, CallerContext
from careercoach.config import settings
from careercoach.database import get_db
from careercoach.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def verify_token(token: str) -> Optional[dict]:
    """Decode a JWT from the identity provider, or return None if it is invalid."""
    if not settings.JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is not set; rejecting bearer token")
        return None

    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options
        )
    except jwt.PyJWTError as e:
        logger.info("Token verification failed: %s", e)
        return None


def get_caller_context(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> CallerContext:
    """Resolve the caller; anonymous when there is no valid token or no matching user."""
    if not creds:
        return ANONYMOUS

    payload = verify_token(creds.credentials)
    if payload is None:
        return ANONYMOUS

    external_id = payload.get("sub")
    if not external_id:
        logger.info("Token payload missing 'sub'")
        return ANONYMOUS

    user = db.query(User).filter(User.external_id == str(external_id)).first()
    if user is None:
        logger.info("No user record for subject %s", external_id)
        return ANONYMOUS
    return CallerContext(user_id=user.id)


def get_token_subject(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """Subject of a valid token, even when no local user exists yet (onboarding)."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not creds:
        raise credentials_exception

    payload = verify_token(creds.credentials)
    if payload is None or not payload.get("sub"):
        raise credentials_exception
    return str(payload["sub"])
