"""
Security helpers: password hashing, JWT, symmetric encryption, sanitizing.

Primitives come from ``cryptography``, ``PyJWT`` and ``nh3``; nothing here
implements its own cryptography.
"""

import base64
import binascii
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
import nh3
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import HelperConfig, get_config
from .errors import InvalidArgumentError, SecurityError
from .logging import log_debug, log_error

JWT_ALGORITHM = "HS256"

_SALT_BYTES = 16
_PASSWORD_HASH_BYTES = 32
_AES_KEY_BYTES = 32
_AES_BLOCK_BITS = 128
_AES_KDF_ITERATIONS = 10_000


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _password_kdf(salt: bytes, iterations: int, length: int = _PASSWORD_HASH_BYTES) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=length, salt=salt, iterations=iterations)


def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{name} must be a string", details={name: type(value).__name__})
    return value


def hash_password(password: str, config: Optional[HelperConfig] = None) -> str:
    """Hash a password with PBKDF2-HMAC-SHA256.

    Returns ``"<salt>.<hash>"``, both base64 encoded.
    """
    _require_text(password, "password")
    iterations = (config or get_config()).password_hash_iterations
    salt = os.urandom(_SALT_BYTES)
    digest = _password_kdf(salt, iterations).derive(password.encode("utf-8"))
    return f"{_b64encode(salt)}.{_b64encode(digest)}"


def verify_password(password: str, hashed_password: str, config: Optional[HelperConfig] = None) -> bool:
    """Check a password against ``hash_password`` output; malformed hashes never match."""
    if not isinstance(password, str) or not isinstance(hashed_password, str):
        return False

    parts = hashed_password.split(".")
    if len(parts) != 2:
        return False

    try:
        salt = base64.b64decode(parts[0], validate=True)
        expected = base64.b64decode(parts[1], validate=True)
    except (binascii.Error, ValueError):
        return False
    if not salt or not expected:
        return False

    iterations = (config or get_config()).password_hash_iterations
    try:
        _password_kdf(salt, iterations, length=len(expected)).verify(password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True


def generate_jwt_token(
    subject: Any,
    secret_key: str,
    expires_in: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
    config: Optional[HelperConfig] = None,
) -> str:
    """Issue an HS256 token for ``subject``."""
    _require_text(secret_key, "secret_key")
    if not secret_key:
        raise InvalidArgumentError("secret_key must not be empty")
    config = config or get_config()
    now = datetime.now(timezone.utc)

    claims = dict(extra_claims or {})
    claims.update(
        {
            "sub": str(subject),
            "name": str(subject),
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + (expires_in or config.jwt_default_lifetime),
            "iss": config.jwt_issuer,
            "aud": config.jwt_audience,
        }
    )
    return jwt.encode(claims, secret_key, algorithm=JWT_ALGORITHM)


def validate_jwt_token(token: str, secret_key: str, config: Optional[HelperConfig] = None) -> Optional[Dict[str, Any]]:
    """Return the token's claims, or ``None`` if it is invalid or expired."""
    config = config or get_config()
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[JWT_ALGORITHM],
            audience=config.jwt_audience,
            issuer=config.jwt_issuer,
            leeway=0,
            options={"require": ["exp", "iat", "iss", "aud", "sub"]},
        )
    except jwt.InvalidTokenError as exc:
        log_debug("JWT validation failed", error=str(exc))
        return None


def _derive_aes_key(key: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=_AES_KEY_BYTES,
        salt=salt,
        iterations=_AES_KDF_ITERATIONS,
    )
    return kdf.derive(key.encode("utf-8"))


def encrypt(plain_text: str, key: str) -> str:
    """AES-256-CBC encrypt ``plain_text``.

    The result is base64 of ``salt || iv || ciphertext``; salt and IV are
    random per call.
    """
    _require_text(plain_text, "plain_text")
    _require_text(key, "key")
    try:
        salt = os.urandom(_SALT_BYTES)
        iv = os.urandom(_AES_BLOCK_BITS // 8)
        padder = padding.PKCS7(_AES_BLOCK_BITS).padder()
        padded = padder.update(plain_text.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(_derive_aes_key(key, salt)), modes.CBC(iv)).encryptor()
        cipher_text = encryptor.update(padded) + encryptor.finalize()
        return _b64encode(salt + iv + cipher_text)
    except Exception as exc:
        log_error(f"Failed to encrypt text: {exc}", exc_info=exc)
        raise SecurityError("Encryption failed") from exc


def decrypt(cipher_text: str, key: str) -> str:
    """Reverse ``encrypt``; a wrong key or tampered input raises ``SecurityError``."""
    _require_text(cipher_text, "cipher_text")
    _require_text(key, "key")
    iv_bytes = _AES_BLOCK_BITS // 8
    try:
        raw = base64.b64decode(cipher_text, validate=True)
        if len(raw) < _SALT_BYTES + iv_bytes + iv_bytes:
            raise ValueError("cipher text is too short")
        salt, iv, body = raw[:_SALT_BYTES], raw[_SALT_BYTES:_SALT_BYTES + iv_bytes], raw[_SALT_BYTES + iv_bytes:]
        decryptor = Cipher(algorithms.AES(_derive_aes_key(key, salt)), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        unpadder = padding.PKCS7(_AES_BLOCK_BITS).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except Exception as exc:
        log_error(f"Failed to decrypt text: {exc}", exc_info=exc)
        raise SecurityError("Decryption failed") from exc


def sanitize_html(html: str) -> str:
    """Strip scripts, event handlers and other unsafe markup."""
    return nh3.clean(_require_text(html, "html"))


def sanitize_sql(value: str) -> str:
    """Escape quotes and drop comment/statement separators.

    Not a substitute for parameterized queries.
    """
    return (
        _require_text(value, "value")
        .replace("'", "''")
        .replace("--", "")
        .replace(";", "")
        .replace("/*", "")
        .replace("*/", "")
    )
