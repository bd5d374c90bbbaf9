"""
Secrets management for the developer helper modules.

Secrets resolve from ``DEVHELPER_SECRET_<KEY>`` environment variables first,
then from a JSON file. File values are Fernet tokens encrypted with a key
derived from the master key, or ``{"encrypted": false, "value": ...}`` objects
for secrets stored in plain text.
"""

import base64
import json
import os
import threading
from typing import Any, Dict, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import HelperConfig, get_config
from .errors import SecretNotFoundError, SecurityError
from .logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "DEVHELPER_SECRET_"
_KDF_SALT = b"developer_helper_secrets"
_KDF_ITERATIONS = 100_000


class SecretsManager:
    """
    Reads and writes secrets for the helper modules.
    """

    def __init__(self, master_key: Optional[str] = None, secrets_file: Optional[str] = None,
                 config: Optional[HelperConfig] = None):
        """
        Args:
            master_key: Master key for encryption/decryption; falls back to
                ``DEVHELPER_MASTER_KEY``.
            secrets_file: Path of the encrypted secrets file; falls back to
                ``DEVHELPER_SECRETS_FILE``.
        """
        config = config or get_config()
        self.master_key = master_key or config.master_key
        if not self.master_key:
            raise ValueError("Master key is required")

        self.secrets_file = secrets_file or config.secrets_file
        self._file_lock = threading.Lock()
        self._fernet = self._create_fernet()

    def _create_fernet(self) -> Fernet:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_KDF_SALT,
            iterations=_KDF_ITERATIONS,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self.master_key.encode()))
        return Fernet(key)

    def encrypt_secret(self, secret: str) -> str:
        """Encrypt a secret into a Fernet token."""
        try:
            return self._fernet.encrypt(secret.encode()).decode()
        except (TypeError, AttributeError) as e:
            logger.error("Failed to encrypt secret", error=str(e))
            raise SecurityError("Failed to encrypt secret") from e

    def decrypt_secret(self, encrypted_secret: str) -> str:
        """Decrypt a token produced by ``encrypt_secret``."""
        try:
            return self._fernet.decrypt(encrypted_secret.encode()).decode()
        except (InvalidToken, TypeError, AttributeError, UnicodeDecodeError) as e:
            logger.error("Failed to decrypt secret", error=str(e) or type(e).__name__)
            raise SecurityError("Failed to decrypt secret") from e

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a secret by key.

        Args:
            key: Secret key
            default: Value returned when the secret is not configured

        Returns:
            Secret value or default
        """
        secret = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if secret:
            return secret

        secrets = self._read_file()
        if key in secrets:
            stored = secrets[key]
            if isinstance(stored, dict) and stored.get("encrypted") is False and isinstance(stored.get("value"), str):
                return stored["value"]
            try:
                return self.decrypt_secret(stored)
            except SecurityError:
                logger.warning("Ignoring undecryptable secret", key=key, secrets_file=self.secrets_file)

        return default

    def try_get_secret(self, key: str) -> Tuple[bool, Optional[str]]:
        value = self.get_secret(key)
        return value is not None, value

    def require_secret(self, key: str) -> str:
        """Like ``get_secret`` but raises ``SecretNotFoundError`` when missing."""
        value = self.get_secret(key)
        if value is None:
            raise SecretNotFoundError(key)
        return value

    def set_secret(self, key: str, value: str, encrypt: bool = True) -> None:
        """
        Store a secret in the secrets file.

        Args:
            key: Secret key
            value: Secret value
            encrypt: Whether to encrypt the secret; plain values are stored
                tagged so they read back without decryption
        """
        stored_value: Any = self.encrypt_secret(value) if encrypt else {"encrypted": False, "value": value}

        with self._file_lock:
            secrets = self._read_file()
            secrets[key] = stored_value
            try:
                with open(self.secrets_file, "w", encoding="utf-8") as f:
                    json.dump(secrets, f, indent=2)
            except OSError as e:
                logger.error("Failed to save secret", key=key, error=str(e))
                raise

        logger.info("Secret saved", key=key, secrets_file=self.secrets_file)

    def rotate_secret(self, key: str, new_value: str) -> None:
        """Replace a secret's value."""
        if self.get_secret(key) is not None:
            logger.info("Rotating secret", key=key)

        self.set_secret(key, new_value)
        logger.info("Secret rotated successfully", key=key)

    def list_secrets(self) -> Dict[str, bool]:
        """
        List all available secrets.

        Returns:
            Dictionary mapping secret keys to availability status
        """
        secrets: Dict[str, bool] = {}

        for env_key in os.environ:
            if env_key.upper().startswith(ENV_PREFIX) and len(env_key) > len(ENV_PREFIX):
                secrets[env_key[len(ENV_PREFIX):].lower()] = True

        for key in self._read_file():
            secrets[key] = True

        return secrets

    def _read_file(self) -> Dict[str, Any]:
        if not self.secrets_file or not os.path.exists(self.secrets_file):
            return {}
        try:
            with open(self.secrets_file, "r", encoding="utf-8") as f:
                secrets = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read secrets file", secrets_file=self.secrets_file, error=str(e))
            return {}
        if not isinstance(secrets, dict):
            logger.warning("Secrets file does not hold a JSON object", secrets_file=self.secrets_file)
            return {}
        return secrets


# Global secrets manager instance
_secrets_manager: Optional[SecretsManager] = None


def get_secrets_manager() -> SecretsManager:
    """Get the global secrets manager instance."""
    global _secrets_manager
    if _secrets_manager is None:
        _secrets_manager = SecretsManager()
    return _secrets_manager


def init_secrets_manager(master_key: Optional[str] = None, secrets_file: Optional[str] = None) -> SecretsManager:
    """Initialize the global secrets manager."""
    global _secrets_manager
    _secrets_manager = SecretsManager(master_key, secrets_file)
    return _secrets_manager
