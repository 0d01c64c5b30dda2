"""Tests for password hashing and session token helpers."""

from app.core.security import generate_session_token, hash_password, hash_token, verify_password


class TestPasswords:
    def test_hash_verifies(self):
        hashed = hash_password("s3cret-passphrase")

        assert hashed != "s3cret-passphrase"
        assert verify_password("s3cret-passphrase", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestSessionTokens:
    def test_tokens_are_unique_and_url_safe(self):
        tokens = {generate_session_token() for _ in range(50)}

        assert len(tokens) == 50
        assert all(len(t) >= 43 and "/" not in t and "+" not in t for t in tokens)

    def test_token_hash_is_stable_sha256_hex(self):
        digest = hash_token("abc")

        assert digest == hash_token("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
