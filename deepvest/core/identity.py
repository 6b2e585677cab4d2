"""Wallet identity verification.

The wallet login endpoint receives an ``(email, id_token)`` pair from the
browser. A ``WalletTokenVerifier`` decides whether the token really vouches
for that email. Two implementations exist:

``HmacWalletVerifier``
    Production verifier. The id token must be an HS256 JWT signed with the
    shared ``WALLET_PROVIDER_SECRET`` whose ``email`` claim matches the
    submitted email (case-insensitive) and whose ``sub`` is the wallet's
    external id.

``AcceptAllWalletVerifier``
    Test-only. Accepts any non-empty token. ``build_wallet_verifier`` refuses
    to construct it unless ``ENVIRONMENT=test``.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .config import ConfigurationError, Environment, Settings, WalletVerifierKind
from .token_factory import decode_claims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity vouched for by the wallet provider."""
    email: str
    external_id: str
    provider: str


class WalletTokenVerifier(Protocol):
    def verify(self, email: str, id_token: str) -> Optional[VerifiedIdentity]:
        ...


class HmacWalletVerifier:
    """Checks provider-signed HS256 id tokens."""

    provider = "wallet"

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError(
                "WALLET_PROVIDER_SECRET is required for the hmac wallet verifier"
            )
        self._secret = secret

    def verify(self, email: str, id_token: str) -> Optional[VerifiedIdentity]:
        claims = decode_claims(id_token, self._secret)
        if claims is None:
            logger.info("Wallet token rejected: bad signature or expired")
            return None

        claimed = str(claims.get("email") or "").strip().lower()
        if not claimed or claimed != email.strip().lower():
            logger.info("Wallet token rejected: email claim mismatch")
            return None

        return VerifiedIdentity(
            email=claimed,
            external_id=str(claims.get("sub") or claimed),
            provider=self.provider,
        )


class AcceptAllWalletVerifier:
    """TEST ONLY. Trusts any non-empty token for any email."""

    provider = "wallet-test"

    def verify(self, email: str, id_token: str) -> Optional[VerifiedIdentity]:
        if not id_token or not email:
            return None
        normalized = email.strip().lower()
        return VerifiedIdentity(email=normalized, external_id=normalized, provider=self.provider)


def build_wallet_verifier(config: Settings) -> WalletTokenVerifier:
    """Construct the verifier selected by configuration.

    Raises:
        ConfigurationError: accept-all requested outside the test environment,
            or hmac requested without a secret.
    """
    if config.wallet_verifier == WalletVerifierKind.ACCEPT_ALL:
        if config.environment != Environment.TEST:
            raise ConfigurationError(
                "The accept-all wallet verifier is only available with ENVIRONMENT=test"
            )
        logger.warning("Using accept-all wallet verifier (test environment)")
        return AcceptAllWalletVerifier()
    return HmacWalletVerifier(config.wallet_provider_secret)
