"""
registry/crypto.py

Fernet-based encryption for the clinical payload of each case.

Key lifecycle
-------------
The key is passed explicitly or read from the environment variable
CASE_REGISTRY_DATA_KEY.  It must be a URL-safe base64-encoded 32-byte key
as produced by ``Fernet.generate_key()``.

If neither is available, a fresh key is generated and held in memory only
(suitable for local demo / testing).  A warning is emitted so the operator
knows data will not survive a process restart.
"""

import json
import logging
import os

from cryptography.fernet import Fernet, InvalidToken

from registry.config import DATA_KEY_ENV
from registry.errors import StorageError

logger = logging.getLogger(__name__)


class PayloadCipher:
    """Encrypts JSON-serialisable dicts into Fernet tokens and back."""

    def __init__(self, key: str | bytes | None = None):
        if key is None:
            key = os.environ.get(DATA_KEY_ENV)
            if key:
                logger.debug("Fernet key loaded from environment variable '%s'.", DATA_KEY_ENV)
        if not key:
            key = Fernet.generate_key()
            logger.warning(
                "%s is not set. A temporary in-memory Fernet key has been generated. "
                "Encrypted case payloads will NOT be recoverable after process restart.",
                DATA_KEY_ENV,
            )
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)

    def encrypt_json(self, data: dict) -> str:
        """
        Serialize *data* to JSON, encrypt it, and return the token as text.

        Raises:
            TypeError: If *data* contains non-serialisable types.
        """
        plaintext = json.dumps(data, ensure_ascii=False).encode("utf-8")
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt_json(self, token: str) -> dict:
        """
        Decrypt a token produced by :meth:`encrypt_json`.

        Raises:
            StorageError: If the token is corrupted or was encrypted with a
                different key.
        """
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            logger.error("Fernet decryption failed: wrong key or corrupted token.")
            raise StorageError("Case payload could not be decrypted.") from exc
        return json.loads(plaintext.decode("utf-8"))
