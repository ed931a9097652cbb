"""AES-256-GCM encryption for integration configs at rest.

Ciphertext format is ``iv:authTag:ciphertext`` with every part hex-encoded,
so records written by other services sharing the same key stay readable.
"""

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from flowrun.exceptions import CredentialError

logger = logging.getLogger(__name__)

IV_LENGTH = 16
TAG_LENGTH = 16
KEY_HEX_LENGTH = 64


def generate_key() -> str:
    """Return a fresh 32-byte key as a 64-char hex string."""
    return AESGCM.generate_key(bit_length=256).hex()


class IntegrationEncryption:
    """Symmetric encryption wrapper using AES-256-GCM with a random 16-byte IV per write.

    If no key is supplied an ephemeral key is generated and a WARNING logged;
    data encrypted with that key is unrecoverable after restart. Set
    ``FLOWRUN_INTEGRATION_ENCRYPTION_KEY`` (64 hex characters) in production.
    """

    def __init__(self, key: str = "") -> None:
        if not key:
            self._aead = AESGCM(bytes.fromhex(generate_key()))
            logger.warning(
                "IntegrationEncryption: no encryption key provided, generated an ephemeral key. "
                "Integration configs will be unrecoverable after process restart. "
                "Set FLOWRUN_INTEGRATION_ENCRYPTION_KEY to a persistent 64-character hex key."
            )
            return
        if len(key) != KEY_HEX_LENGTH:
            raise CredentialError(
                f"Encryption key must be a {KEY_HEX_LENGTH}-character hex string (32 bytes), got {len(key)} characters"
            )
        try:
            self._aead = AESGCM(bytes.fromhex(key))
        except ValueError as exc:
            raise CredentialError(f"Invalid encryption key: {exc}") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext* and return ``iv:authTag:ciphertext`` (hex)."""
        iv = os.urandom(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        """Decrypt an ``iv:authTag:ciphertext`` string.

        Raises:
            CredentialError: if the token is malformed, tampered with, or was
                encrypted under a different key.
        """
        parts = token.split(":") if isinstance(token, str) else []
        if len(parts) != 3:
            raise CredentialError("Decryption failed: invalid encrypted data format")
        try:
            iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        except ValueError as exc:
            raise CredentialError("Decryption failed: parts are not valid hex") from exc
        if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
            raise CredentialError("Decryption failed: invalid IV or auth tag length")
        try:
            return self._aead.decrypt(iv, ciphertext + tag, None).decode("utf-8")
        except InvalidTag as exc:
            raise CredentialError("Decryption failed: invalid or tampered token") from exc
