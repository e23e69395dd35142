# tests/test_encryption.py
"""
Tests for secret decryption.

Covers:
    - Key length checks at construction
    - encrypt()/decrypt() envelopes
    - Pass-through of non-enveloped values
    - Fatal failures for broken envelopes
    - decrypt_tree() recursion
"""

import re

import pytest

from confbind.encryption import SecretDecryptor, decrypt
from confbind.exceptions import DecryptionError, EncryptionKeyError

KEY = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def helper():
    return SecretDecryptor(KEY)


class TestKey:

    @pytest.mark.parametrize("key", ["short", KEY + "x", ""])
    def test_wrong_length_rejected(self, key):
        with pytest.raises(EncryptionKeyError):
            SecretDecryptor(key)

    def test_bytes_key_accepted(self):
        SecretDecryptor(b"\x00" * 32)


class TestEncryptDecrypt:

    @pytest.mark.parametrize("plain", ["s3cret", "", "ünïcødé ✓", "a" * 100, "ENC(looks:like)"])
    def test_decrypt_inverts_encrypt(self, helper, plain):
        assert helper.decrypt(helper.encrypt(plain)) == plain

    def test_envelope_format(self, helper):
        assert re.fullmatch(r"ENC\([0-9a-f]{32}:[0-9a-f]+\)", helper.encrypt("value"))

    def test_random_iv(self, helper):
        assert helper.encrypt("same") != helper.encrypt("same")

    def test_plain_value_unchanged(self, helper):
        assert helper.decrypt("just a string") == "just a string"
        assert helper.decrypt("ENC(no-colon)") == "ENC(no-colon)"

    def test_trailing_newline_is_not_an_envelope(self, helper):
        """A YAML block scalar keeps its newline; such a value is not decrypted."""
        value = helper.encrypt("secret") + "\n"
        assert not helper.is_encrypted(value)
        assert helper.decrypt(value) == value

    def test_multiline_value_unchanged(self, helper):
        value = f"{helper.encrypt('a')}\n{helper.encrypt('b')}"
        assert helper.decrypt(value) == value

    def test_non_string_unchanged(self, helper):
        assert helper.decrypt(5) == 5

    def test_is_encrypted(self, helper):
        assert helper.is_encrypted(helper.encrypt("x"))
        assert not helper.is_encrypted("plain")
        assert not helper.is_encrypted(None)

    def test_bad_hex_is_fatal(self, helper):
        with pytest.raises(DecryptionError):
            helper.decrypt("ENC(00112233445566778899aabbccddeeff:zz)")

    def test_bad_iv_length_is_fatal(self, helper):
        with pytest.raises(DecryptionError):
            helper.decrypt("ENC(abcd:00112233445566778899aabbccddeeff)")

    def test_unaligned_ciphertext_is_fatal(self, helper):
        with pytest.raises(DecryptionError):
            helper.decrypt("ENC(00112233445566778899aabbccddeeff:abcd)")


class TestDecryptTree:

    def test_recurses_mappings_and_lists(self, helper):
        tree = {
            "db": {"password": helper.encrypt("pw"), "user": "admin", "port": 5432},
            "tokens": [helper.encrypt("t1"), "t2"],
        }
        assert helper.decrypt_tree(tree) == {
            "db": {"password": "pw", "user": "admin", "port": 5432},
            "tokens": ["t1", "t2"],
        }

    def test_module_level_helper(self, helper):
        assert decrypt({"k": helper.encrypt("v")}, KEY) == {"k": "v"}
