"""Tests for log sanitization helpers."""

from utils.sanitize import hash_identifier, mask_ip, sanitize_user_id


class TestHashIdentifier:
    def test_hash_empty_string(self):
        assert hash_identifier("") == "h:empty"

    def test_hash_is_stable(self):
        assert hash_identifier("user-1") == hash_identifier("user-1")

    def test_hash_different_inputs(self):
        assert hash_identifier("user-1") != hash_identifier("user-2")

    def test_hash_length(self):
        assert len(hash_identifier("user-1", length=12)) == len("h:") + 12


class TestMaskIp:
    def test_mask_valid_ip(self):
        assert mask_ip("192.168.1.100") == "192.***.***.**"

    def test_mask_invalid_ip(self):
        assert mask_ip("::1") == "***.***.***.***"


class TestSanitizeUserId:
    def test_missing_actor_is_anonymous(self):
        assert sanitize_user_id(None) == "anonymous"
        assert sanitize_user_id("") == "anonymous"

    def test_actor_id_hashed(self):
        result = sanitize_user_id("user-12345-abcde")
        assert result.startswith("h:")
        assert "user-12345" not in result
