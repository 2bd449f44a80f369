# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Password-at-rest encryption for saved configuration files.

Passwords stored in lenses-cli.yml (basic auth and Kerberos with-password)
are encrypted with AES-256-GCM before the file is written and decrypted
right after it is read.

Key sources (in priority order):
1. LENSES_ENCRYPTION_KEY environment variable (base64-encoded 32 bytes)
2. SHA-256 digest of the context host

Values without the "ENC:" prefix are returned unchanged by the decrypt
functions, so hand-written configuration files with plain passwords keep
working.

Usage:
    from lenses_client.encryption import encrypt_credentials, decrypt_credentials

    encrypt_credentials(client_config)   # before writing
    decrypt_credentials(client_config)   # after reading
"""

from __future__ import annotations

import base64
import hashlib
import os
import secrets
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import ConfigError

if TYPE_CHECKING:
    from .client_config import ClientConfig

# AES-GCM constants
NONCE_SIZE = 12  # 96 bits recommended for GCM
TAG_SIZE = 16  # 128 bits authentication tag
KEY_SIZE = 32  # 256 bits for AES-256

# Prefix to identify encrypted values
ENCRYPTED_PREFIX = "ENC:"

KEY_ENV = "LENSES_ENCRYPTION_KEY"


class EncryptionError(ConfigError):
    """Raised when encryption/decryption fails."""

    pass


def generate_key() -> str:
    """Generate a new random encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for LENSES_ENCRYPTION_KEY.
    """
    return base64.b64encode(secrets.token_bytes(KEY_SIZE)).decode()


def derive_key(key_base: str) -> bytes:
    """Return the configured key, or a 32-byte key derived from key_base.

    Raises:
        EncryptionError: If LENSES_ENCRYPTION_KEY is set but invalid.
    """
    key_b64 = os.environ.get(KEY_ENV)
    if key_b64:
        try:
            key = base64.b64decode(key_b64, validate=True)
        except ValueError as e:
            raise EncryptionError(f"Invalid {KEY_ENV}: {e}") from e
        if len(key) != KEY_SIZE:
            raise EncryptionError(f"{KEY_ENV} must be {KEY_SIZE} bytes (got {len(key)})")
        return key
    return hashlib.sha256(key_base.encode("utf-8")).digest()


def is_encrypted(value: str) -> bool:
    """Check if a value is encrypted (has ENC: prefix)."""
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def encrypt_value_with_key(plaintext: str, key: bytes) -> str:
    """Encrypt a string value using the provided key.

    Args:
        plaintext: The value to encrypt.
        key: 32-byte AES-256 key.

    Returns:
        Encrypted value with "ENC:" prefix. Empty and already encrypted
        values are returned unchanged.
    """
    if not plaintext or is_encrypted(plaintext):
        return plaintext

    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Key must be {KEY_SIZE} bytes")

    nonce = secrets.token_bytes(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)

    encoded = base64.b64encode(nonce + ciphertext).decode("ascii")
    return f"{ENCRYPTED_PREFIX}{encoded}"


def decrypt_value_with_key(encrypted: str, key: bytes) -> str:
    """Decrypt a value produced by encrypt_value_with_key().

    Args:
        encrypted: The encrypted value (with "ENC:" prefix).
        key: 32-byte AES-256 key.

    Returns:
        Decrypted plaintext. Values without the prefix are returned as-is.
    """
    if not encrypted or not is_encrypted(encrypted):
        return encrypted

    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Key must be {KEY_SIZE} bytes")

    encoded = encrypted[len(ENCRYPTED_PREFIX) :]
    try:
        encrypted_data = base64.b64decode(encoded, validate=True)
    except ValueError as e:
        raise EncryptionError(f"Invalid encrypted data format: {e}") from e

    if len(encrypted_data) < NONCE_SIZE + TAG_SIZE:
        raise EncryptionError("Encrypted data too short")

    nonce = encrypted_data[:NONCE_SIZE]
    ciphertext = encrypted_data[NONCE_SIZE:]

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise EncryptionError("Decryption failed: wrong key or corrupted value") from e
    return plaintext.decode("utf-8")


def _password_holder(cfg: ClientConfig):
    """Return the object carrying a password in cfg's authentication, if any."""
    if cfg.basic_auth is not None:
        return cfg.basic_auth
    kerberos = cfg.kerberos_auth
    if kerberos is not None and kerberos.with_password is not None:
        return kerberos.with_password
    return None


def encrypt_credentials(cfg: ClientConfig) -> None:
    """Encrypt the password of cfg in place, keyed on its host."""
    holder = _password_holder(cfg)
    if holder is not None and holder.password:
        holder.password = encrypt_value_with_key(holder.password, derive_key(cfg.host))


def decrypt_credentials(cfg: ClientConfig) -> None:
    """Decrypt the password of cfg in place, keyed on its host."""
    holder = _password_holder(cfg)
    if holder is not None and holder.password:
        holder.password = decrypt_value_with_key(holder.password, derive_key(cfg.host))


__all__ = [
    "ENCRYPTED_PREFIX",
    "EncryptionError",
    "decrypt_credentials",
    "decrypt_value_with_key",
    "derive_key",
    "encrypt_credentials",
    "encrypt_value_with_key",
    "generate_key",
    "is_encrypted",
]
