"""Unit tests for opaque token hashing."""

from authcore.services import hash_token, tokens_match


class TestTokenHashing:
    """Tests for hash_token and tokens_match."""

    def test_hash_is_sha256_hex(self):
        """Digests are 64 lowercase hex characters and deterministic."""
        digest = hash_token("some-token")
        assert len(digest) == 64
        assert digest == hash_token("some-token")
        assert int(digest, 16) >= 0

    def test_match(self):
        """A raw token matches its own digest only."""
        digest = hash_token("token-a")
        assert tokens_match("token-a", digest)
        assert not tokens_match("token-b", digest)

    def test_missing_stored_hash(self):
        """Nothing matches a cleared hash."""
        assert not tokens_match("token-a", None)
        assert not tokens_match("token-a", "")
