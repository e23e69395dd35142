# confbind/encryption.py
"""
confbind.encryption
-------------------

Decryption of secret values embedded in configuration.

Encrypted scalars use the envelope ``ENC(<ivHex>:<cipherHex>)``: AES-256 in
CBC mode with PKCS7 padding, a random 16-byte IV per value, and a shared
32-byte key. Strings that are not enveloped pass through untouched.
"""

import logging
import os
import re
from typing import Any, Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import DecryptionError, EncryptionKeyError

log = logging.getLogger(__name__)

ENVELOPE_PATTERN = re.compile(r'ENC\(([^:]+):(.+)\)')

KEY_LENGTH = 32
IV_LENGTH = 16


class SecretDecryptor:
    """
    Encrypts and decrypts ``ENC(iv:cipher)`` envelopes with a fixed key.

    Args:
        secret_key: Exactly 32 bytes (or a 32-character ASCII string).

    Raises:
        EncryptionKeyError: If the key is not 32 bytes long.
    """

    def __init__(self, secret_key: Union[str, bytes]):
        key = secret_key.encode('utf-8') if isinstance(secret_key, str) else bytes(secret_key)
        if len(key) != KEY_LENGTH:
            raise EncryptionKeyError(f"Secret key must be {KEY_LENGTH} bytes long, got {len(key)}")
        self._key = key

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encrypt(self, value: str) -> str:
        """Encrypt `value` into an ``ENC(iv:cipher)`` envelope."""
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(value.encode('utf-8')) + padder.finalize()
        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"ENC({iv.hex()}:{ciphertext.hex()})"

    @staticmethod
    def is_encrypted(value: Any) -> bool:
        return isinstance(value, str) and ENVELOPE_PATTERN.fullmatch(value) is not None

    def decrypt(self, value: Any) -> Any:
        """
        Decrypt an enveloped string; anything else is returned unchanged.

        Raises:
            DecryptionError: If the envelope is well-formed but cannot be
                decrypted with this key.
        """
        if not isinstance(value, str):
            return value
        match = ENVELOPE_PATTERN.fullmatch(value)
        if not match:
            return value

        try:
            iv = bytes.fromhex(match.group(1))
            ciphertext = bytes.fromhex(match.group(2))
            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode('utf-8')
        except ValueError as e:
            # bad hex, IV length, block alignment, padding and UTF-8 all raise ValueError
            raise DecryptionError(f"Failed to decrypt configuration value: {e}") from e

    def decrypt_tree(self, tree: Any) -> Any:
        """Return a copy of `tree` with every enveloped string decrypted."""
        if isinstance(tree, str):
            return self.decrypt(tree)
        if isinstance(tree, list):
            return [self.decrypt_tree(item) for item in tree]
        if isinstance(tree, dict):
            return {key: self.decrypt_tree(value) for key, value in tree.items()}
        return tree


def decrypt(tree: Any, key: Union[str, bytes]) -> Any:
    """Decrypt every enveloped scalar in `tree` with `key`."""
    return SecretDecryptor(key).decrypt_tree(tree)
