"""Authentication module: FastAPI dependencies resolving the caller.

Public interface:
    ``require_auth``  returns AuthContext or raises 401.
    ``optional_auth`` always returns AuthContext and never raises. A missing,
                      malformed or expired token yields the anonymous context
                      so public reads keep working.

Project roles are not part of the context; they are looked up per project
by ``permission_service`` because every project has its own role table.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..models.user import User

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved caller identity. ``user_id`` is None for anonymous callers."""

    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = AuthContext()


def _caller(credentials: Optional[HTTPAuthorizationCredentials], db: Session) -> AuthContext:
    if credentials is None:
        raise AuthenticationError("Missing authentication token")
    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.query(User).filter(User.user_id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return AuthContext(user_id=user.user_id, email=user.email)


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    return _caller(credentials, db)


def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    if credentials is None:
        return ANONYMOUS
    try:
        return _caller(credentials, db)
    except AuthenticationError as e:
        logger.info("Treating caller as anonymous: %s", e.message)
        return ANONYMOUS
