"""Payload encryption for durable ticket storage.

The cipher wraps the serialized collection on its way into and out of a
key-value slot. It fails open in both directions: an encryption failure
stores plaintext, and anything that does not decrypt (wrong key, corrupted
token, or a plaintext payload written before encryption was enabled) is
handed back verbatim. The wrapper cannot tell a tampered token from one
that was never encrypted.
"""

import logging
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

# Built-in key used when no key is configured. Light obfuscation only:
# anyone with the source can read the data. Set TATUA_CIPHER_KEY instead.
DEFAULT_CIPHER_KEY = "1BwRbdWJ9A0R0dFC1ZtrpUw93WBjhn93nede7VO9GgI="


class PayloadCipher:
    """Fail-open symmetric encryption of string payloads."""

    def __init__(self, key: Optional[Union[str, bytes]] = None):
        """Initialize the cipher.

        Args:
            key: URL-safe base64 encoded 32-byte Fernet key. An invalid key
                does not raise here; every operation then fails open.
        """
        key = key or DEFAULT_CIPHER_KEY
        self._fernet: Optional[Fernet] = None
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid cipher key, payloads will be stored unencrypted: {e}")

    @staticmethod
    def generate_key() -> str:
        """Return a fresh random key suitable for TATUA_CIPHER_KEY."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext``; return it unchanged if encryption fails."""
        if self._fernet is None:
            return plaintext
        try:
            return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        except Exception as e:
            logger.error(f"Payload encryption failed, storing plaintext: {e}")
            return plaintext

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt ``ciphertext``; return it unchanged if it does not decrypt."""
        if self._fernet is None:
            return ciphertext
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Payload decryption failed, using raw payload: {type(e).__name__}")
            return ciphertext

        if not plaintext:
            logger.warning("Payload decrypted to an empty string, using raw payload")
            return ciphertext
        return plaintext
