"""Tests for the token minting script."""

from docvault.core.config import settings
from docvault.core.token_factory import decode_token
from scripts.mint_token import main, mint


class TestMintToken:

    def test_token_carries_database_role(self, admin):
        payload = decode_token(mint("root"), settings.jwt_secret_key)
        assert payload.sub == "root"
        assert payload.role == "admin"

    def test_lookup_by_email(self, bob):
        payload = decode_token(mint(email="bob@example.com"), settings.jwt_secret_key)
        assert payload.sub == "bob"

    def test_minted_token_authenticates(self, client, alice):
        resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {mint('alice')}"})
        assert resp.status_code == 200

    def test_main_prints_token(self, alice, capsys):
        assert main(["alice", "--hours", "1"]) == 0
        token = capsys.readouterr().out.strip()
        assert decode_token(token, settings.jwt_secret_key).sub == "alice"

    def test_unknown_user_fails(self, capsys):
        assert main(["ghost"]) == 1
        assert "User not found" in capsys.readouterr().err

    def test_deactivated_user_fails(self, make_user, capsys):
        make_user("dave", is_active=False)
        assert main(["dave"]) == 1
        assert "deactivated" in capsys.readouterr().err
