"""Tests for token minting, the session verifier, and principal loading."""

from docvault.core.principal import Principal, TokenSessionVerifier
from docvault.core.token_factory import create_token, decode_token
from tests.conftest import auth_headers


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("alice", "admin", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "alice"
        assert payload.role == "admin"

    def test_wrong_secret_returns_none(self):
        token = create_token("alice", "user", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("alice", "user", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None

    def test_empty_subject_returns_none(self):
        token = create_token("", "user", "secret")
        assert decode_token(token, "secret") is None


class TestTokenSessionVerifier:

    def test_verifies_valid_token(self):
        verifier = TokenSessionVerifier("secret")
        principal = verifier.verify(create_token("bob", "user", "secret"))
        assert principal == Principal(id="bob", role="user")

    def test_unknown_role_claim_downgraded_to_user(self):
        verifier = TokenSessionVerifier("secret")
        principal = verifier.verify(create_token("bob", "superuser", "secret"))
        assert principal.role == "user"
        assert principal.is_admin is False

    def test_invalid_token_returns_none(self):
        assert TokenSessionVerifier("secret").verify("garbage") is None


class TestPrincipalDependencies:

    def test_admin_role_loaded_from_database(self, client, admin):
        # Token says "user"; the users table says admin.
        resp = client.get("/api/audit", headers=auth_headers("root", role="user"))
        assert resp.status_code == 200

    def test_missing_token_on_protected_route(self, client):
        resp = client.get("/api/users/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"
