"""HS256 JWT encoding and verification, as plain functions.

Session tokens are issued by ``/api/auth`` and read by ``core.auth``;
wallet providers sign their id tokens the same way, which is what
``identity.HmacWalletVerifier`` checks with ``decode_claims``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    """What a valid session token says about its bearer."""
    sub: str
    email: Optional[str]
    exp: datetime


def _segment(obj: dict) -> bytes:
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=")


def _unsegment(segment: bytes) -> Any:
    return json.loads(base64.urlsafe_b64decode(segment + b"=" * (-len(segment) % 4)))


def _signature(secret: str, signing_input: bytes) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def create_token(
    subject: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
    claims: Optional[dict[str, Any]] = None,
    issuer: str = "deepvest",
) -> str:
    """Sign a token for *subject*.

    *claims* are merged under the registered ones (``sub``, ``iat``, ``exp``,
    ``iss`` always win). A negative *expires_hours* yields an already
    expired token. Only HS256 is implemented; anything else is a ValueError.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued_at = int(time.time())
    payload = {
        **(claims or {}),
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + expires_hours * 3600,
        "iss": issuer,
    }
    signing_input = _segment(_HEADER) + b"." + _segment(payload)
    signature = base64.urlsafe_b64encode(_signature(secret, signing_input)).rstrip(b"=")
    return (signing_input + b"." + signature).decode()


def decode_claims(token: str, secret: str, algorithm: str = "HS256") -> Optional[dict[str, Any]]:
    """The claim set of *token*, or ``None`` unless it is a well-formed,
    correctly signed, unexpired HS256 token."""
    if algorithm != "HS256" or not secret:
        return None
    try:
        header_seg, payload_seg, signature_seg = token.encode().split(b".")
        if _unsegment(header_seg).get("alg") != "HS256":
            return None
        signature = base64.urlsafe_b64decode(signature_seg + b"=" * (-len(signature_seg) % 4))
        if not hmac.compare_digest(_signature(secret, header_seg + b"." + payload_seg), signature):
            return None
        claims = _unsegment(payload_seg)
        if not isinstance(claims, dict) or time.time() > float(claims.get("exp", 0)):
            return None
    except (ValueError, TypeError, AttributeError):
        # Wrong segment count, bad base64 or JSON, non-object header, odd exp.
        return None
    return claims


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Session token payload, or ``None`` if the token is not usable."""
    claims = decode_claims(token, secret, algorithm)
    if claims is None or not claims.get("sub"):
        return None
    return TokenPayload(
        sub=str(claims["sub"]),
        email=claims.get("email"),
        exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )
