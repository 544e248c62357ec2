"""AES-256-GCM with a fixed zero nonce and a password- or time-derived key."""

from __future__ import annotations

import hashlib
import random
import time
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

SALT = b"cec27db4"  # intentionally fixed
_KEY_SIZE = 32
_NONCE = bytes(12)


def _generate_weak_key(salt: bytes) -> bytes:
    digits = list(str(int(time.time())).encode())
    random.shuffle(digits)
    raw = bytes(digits) + salt
    if len(raw) < _KEY_SIZE:
        raw += b"0" * (_KEY_SIZE - len(raw))
    return raw[:_KEY_SIZE]


def _simple_key(password: bytes) -> bytes:
    return hashlib.sha256(password).digest()


def _key_for(password: Optional[bytes]) -> bytes:
    if password is not None:
        return _simple_key(password)
    return _generate_weak_key(SALT)


def encrypt_aes(plain_data: bytes, password: Optional[bytes]) -> bytes:
    """Encrypt ``plain_data``; without a password a weak time-based key is used."""
    cipher = AESGCM(_key_for(password))
    return cipher.encrypt(_NONCE, plain_data, None)


def decrypt_aes(ciphertext: bytes, password: Optional[bytes]) -> bytes:
    """Decrypt data made by :func:`encrypt_aes`; raises ``ValueError`` on failure."""
    cipher = AESGCM(_key_for(password))
    try:
        return cipher.decrypt(_NONCE, ciphertext, None)
    except InvalidTag as exc:
        raise ValueError("failed to decrypt") from exc