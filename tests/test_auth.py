"""Tests for session tokens, wallet verification and the /api/auth endpoints."""

import pytest

from deepvest.api.auth_routes import get_wallet_verifier
from deepvest.core.config import ConfigurationError, Environment, Settings, WalletVerifierKind
from deepvest.core.identity import (
    AcceptAllWalletVerifier,
    HmacWalletVerifier,
    build_wallet_verifier,
)
from deepvest.core.token_factory import create_token, decode_claims, decode_token
from deepvest.main import app
from deepvest.models.user import LinkedIdentity

from .conftest import make_user

SECRET = "unit-test-secret"


class TestTokenFactory:

    def test_round_trip(self):
        token = create_token("user-1", SECRET, claims={"email": "a@example.com"})
        payload = decode_token(token, SECRET)
        assert payload.sub == "user-1"
        assert payload.email == "a@example.com"

    def test_wrong_secret(self):
        token = create_token("user-1", SECRET)
        assert decode_token(token, "another-secret") is None

    def test_expired(self):
        token = create_token("user-1", SECRET, expires_hours=-1)
        assert decode_token(token, SECRET) is None

    def test_tampered_payload(self):
        header, _, signature = create_token("user-1", SECRET).split(".")
        forged_body = create_token("admin", SECRET).split(".")[1]
        assert decode_claims(f"{header}.{forged_body}.{signature}", SECRET) is None

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "!!!.###.$$$"])
    def test_garbage(self, token):
        assert decode_token(token, SECRET) is None

    def test_only_hs256(self):
        with pytest.raises(ValueError):
            create_token("user-1", SECRET, algorithm="RS256")


class TestWalletVerifiers:

    def test_hmac_accepts_matching_email(self):
        token = create_token("wallet-42", SECRET, claims={"email": "Alice@Example.com"})
        identity = HmacWalletVerifier(SECRET).verify("alice@example.com", token)
        assert identity.email == "alice@example.com"
        assert identity.external_id == "wallet-42"
        assert identity.provider == "wallet"

    def test_hmac_rejects_email_mismatch(self):
        token = create_token("wallet-42", SECRET, claims={"email": "mallory@example.com"})
        assert HmacWalletVerifier(SECRET).verify("alice@example.com", token) is None

    def test_hmac_rejects_bad_signature(self):
        token = create_token("wallet-42", "someone-else", claims={"email": "alice@example.com"})
        assert HmacWalletVerifier(SECRET).verify("alice@example.com", token) is None

    def test_hmac_needs_secret(self):
        with pytest.raises(ConfigurationError):
            HmacWalletVerifier("")

    def test_accept_all(self):
        verifier = AcceptAllWalletVerifier()
        assert verifier.verify("Bob@Example.com", "anything").email == "bob@example.com"
        assert verifier.verify("bob@example.com", "") is None

    def test_accept_all_refused_outside_tests(self):
        config = Settings(
            environment=Environment.DEVELOPMENT,
            wallet_verifier=WalletVerifierKind.ACCEPT_ALL,
        )
        with pytest.raises(ConfigurationError):
            build_wallet_verifier(config)
        with pytest.raises(ConfigurationError):
            config.validate_production_config()

    def test_builder_defaults_to_hmac(self):
        config = Settings(
            environment=Environment.DEVELOPMENT,
            wallet_verifier=WalletVerifierKind.HMAC,
            wallet_provider_secret=SECRET,
        )
        assert isinstance(build_wallet_verifier(config), HmacWalletVerifier)


class TestAuthApi:

    def test_register_login_me(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"email": "Carol@Example.com", "password": "correct-horse", "display_name": "Carol"},
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "carol@example.com"

        resp = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "correct-horse"})
        assert resp.status_code == 200
        token = resp.json()["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["display_name"] == "Carol"

    def test_duplicate_registration(self, client, owner):
        resp = client.post(
            "/api/auth/register",
            json={"email": owner.email, "password": "correct-horse", "display_name": "Again"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_short_password(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"email": "dan@example.com", "password": "short", "display_name": "Dan"},
        )
        assert resp.status_code == 400

    def test_wrong_password(self, client, db):
        make_user(db, email="erin@example.com", password="right-password")
        resp = client.post("/api/auth/login", json={"email": "erin@example.com", "password": "wrong-password"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401
        bad = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert bad.status_code == 401


class TestWalletLogin:

    def test_first_login_creates_account_then_reports_link(self, client, db):
        body = {"email": "Frank@Example.com", "id_token": "signed-by-wallet", "display_name": "Frank"}

        first = client.post("/api/auth/wallet-login", json=body)
        assert first.status_code == 200
        assert first.json()["already_linked"] is False
        assert first.json()["user"]["email"] == "frank@example.com"
        assert first.json()["token"]

        second = client.post("/api/auth/wallet-login", json=body)
        assert second.json()["already_linked"] is True
        assert second.json()["user"]["user_id"] == first.json()["user"]["user_id"]

        assert db.query(LinkedIdentity).count() == 1

    def test_existing_password_account_gets_linked(self, client, owner):
        resp = client.post("/api/auth/wallet-login", json={"email": owner.email, "id_token": "tok"})
        assert resp.status_code == 200
        assert resp.json()["user"]["user_id"] == owner.user_id
        assert resp.json()["already_linked"] is False

    def test_link_state_is_per_account(self, client, owner, other):
        client.post("/api/auth/wallet-login", json={"email": owner.email, "id_token": "tok"})
        resp = client.post("/api/auth/wallet-login", json={"email": other.email, "id_token": "tok"})
        assert resp.json()["already_linked"] is False

    def test_deactivated_account_refused(self, client, db, owner):
        owner.is_active = False
        db.commit()
        resp = client.post("/api/auth/wallet-login", json={"email": owner.email, "id_token": "tok"})
        assert resp.status_code == 401

    def test_rejected_token(self, client):
        app.dependency_overrides[get_wallet_verifier] = lambda: HmacWalletVerifier(SECRET)
        try:
            resp = client.post(
                "/api/auth/wallet-login",
                json={"email": "gina@example.com", "id_token": "forged"},
            )
        finally:
            app.dependency_overrides.pop(get_wallet_verifier, None)
        assert resp.status_code == 401

    def test_hmac_token_accepted(self, client):
        app.dependency_overrides[get_wallet_verifier] = lambda: HmacWalletVerifier(SECRET)
        token = create_token("wallet-7", SECRET, claims={"email": "hank@example.com"})
        try:
            resp = client.post("/api/auth/wallet-login", json={"email": "hank@example.com", "id_token": token})
        finally:
            app.dependency_overrides.pop(get_wallet_verifier, None)
        assert resp.status_code == 200
        assert resp.json()["user"]["display_name"] == "hank"
