"""Authentication API endpoints.

    POST /api/auth/register      create an email/password account
    POST /api/auth/login         authenticate and receive a JWT
    POST /api/auth/wallet-login  authenticate with a wallet id token
    GET  /api/auth/me            current user
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..core.identity import WalletTokenVerifier, build_wallet_verifier
from ..core.token_factory import create_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..services import audit_service, auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# --- Request/Response schemas ---


class RegisterRequest(BaseModel):
    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    display_name: str = Field(..., description="Display name")

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "alice@example.com", "password": "securepass", "display_name": "Alice"}]
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class WalletLoginRequest(BaseModel):
    email: str
    id_token: str = Field(..., min_length=1)
    display_name: Optional[str] = None


class UserResponse(BaseModel):
    user_id: str
    display_name: str
    email: str
    is_active: bool

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class WalletLoginResponse(LoginResponse):
    already_linked: bool


class MeResponse(BaseModel):
    user: UserResponse


def get_wallet_verifier() -> WalletTokenVerifier:
    return build_wallet_verifier(settings)


def _issue_token(user) -> str:
    return create_token(
        subject=user.user_id,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.token_expire_hours,
        claims={"email": user.email},
    )


# --- Endpoints ---


@router.post("/register", response_model=UserResponse, status_code=201, summary="Register a new user")
def register_user(body: RegisterRequest, db: Session = Depends(get_db)):
    return auth_service.register_user(db, body.email, body.password, body.display_name)


@router.post("/login", response_model=LoginResponse, summary="Authenticate and receive JWT")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.email, body.password)
    audit_service.log(db, user.user_id, "login", "user", resource_id=user.user_id)
    return LoginResponse(token=_issue_token(user), user=UserResponse.model_validate(user))


@router.post("/wallet-login", response_model=WalletLoginResponse, summary="Authenticate with a wallet")
def wallet_login(
    body: WalletLoginRequest,
    db: Session = Depends(get_db),
    verifier: WalletTokenVerifier = Depends(get_wallet_verifier),
):
    """Sign in (creating the account on first use) with a provider id token.

    ``already_linked`` tells the client whether this account had been linked
    to the wallet before this request.
    """
    user, already_linked = auth_service.wallet_login(
        db, verifier, body.email, body.id_token, display_name=body.display_name
    )
    return WalletLoginResponse(
        token=_issue_token(user),
        user=UserResponse.model_validate(user),
        already_linked=already_linked,
    )


@router.get("/me", response_model=MeResponse, summary="Get current user info")
def get_me(auth: AuthContext = Depends(require_auth), db: Session = Depends(get_db)):
    user = auth_service.get_user_by_id(db, auth.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return MeResponse(user=UserResponse.model_validate(user))
