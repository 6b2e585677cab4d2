"""Authentication service: accounts, password hashing, wallet login.

All password operations use bcrypt via passlib. Passwords are never stored
or logged in plaintext. The service layer owns user lifecycle; endpoints
are thin wrappers.

Wallet login trusts a ``WalletTokenVerifier`` to vouch for the submitted
email. Whether an account has already been linked is answered from the
``linked_identities`` table for that account only.
"""

import logging
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from ..core.identity import WalletTokenVerifier
from ..exceptions import AuthenticationError, ValidationError
from ..models.user import LinkedIdentity, User
from ..repositories import new_id
from . import audit_service

logger = logging.getLogger(__name__)

# NIST SP 800-63B recommends at least 8 characters.
MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Valid email address required", field="email")
    return email


def register_user(db: Session, email: str, password: str, display_name: str) -> User:
    """Create a new user account.

    Raises ValidationError if the email is already taken or inputs are invalid.
    """
    email = _normalize_email(email)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password must be at least 8 characters", field="password")
    if not display_name.strip():
        raise ValidationError("Display name required", field="display_name")

    if get_user_by_email(db, email) is not None:
        raise ValidationError("Email already registered", field="email")

    user = User(
        user_id=new_id(),
        display_name=display_name.strip(),
        email=email,
        password_hash=bcrypt.hash(password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.user_id})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on invalid email, wrong password, or inactive account.
    """
    email = (email or "").strip().lower()
    user = get_user_by_email(db, email)

    if user is None or user.password_hash is None:
        raise AuthenticationError("Invalid email or password")

    if not bcrypt.verify(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return user


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.user_id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def is_linked(db: Session, user_id: str, provider: str) -> bool:
    """Whether *user_id* already has an identity from *provider*."""
    return (
        db.query(LinkedIdentity)
        .filter(LinkedIdentity.user_id == user_id, LinkedIdentity.provider == provider)
        .first()
        is not None
    )


def wallet_login(
    db: Session,
    verifier: WalletTokenVerifier,
    email: str,
    id_token: str,
    display_name: Optional[str] = None,
) -> tuple[User, bool]:
    """Sign in with a wallet id token, creating the account on first use.

    Returns ``(user, already_linked)``. *already_linked* is True when this
    account had been linked to the same provider before this call.

    Raises:
        AuthenticationError: the verifier rejected the token, or the account
            is deactivated.
    """
    email = _normalize_email(email)
    identity = verifier.verify(email, id_token)
    if identity is None:
        raise AuthenticationError("Wallet token could not be verified")

    user = get_user_by_email(db, identity.email)
    if user is None:
        user = User(
            user_id=new_id(),
            display_name=(display_name or "").strip() or identity.email.split("@")[0],
            email=identity.email,
            password_hash=None,
            is_active=True,
        )
        db.add(user)
        db.flush()
        logger.info("User created from wallet login", extra={"user_id": user.user_id})
    elif not user.is_active:
        raise AuthenticationError("Account is deactivated")

    already_linked = is_linked(db, user.user_id, identity.provider)
    if not already_linked:
        db.add(LinkedIdentity(
            user_id=user.user_id,
            provider=identity.provider,
            external_id=identity.external_id,
        ))
    db.commit()
    db.refresh(user)

    audit_service.log(
        db, user.user_id, "wallet_login", "user",
        resource_id=user.user_id,
        details={"provider": identity.provider, "first_link": not already_linked},
    )
    return user, already_linked
