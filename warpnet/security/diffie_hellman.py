"""Diffie-Hellman key agreement with AES-256-GCM encryption of messages."""

from __future__ import annotations

import base64
import binascii
import secrets
import threading
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

# 2048-bit MODP group (RFC 3526, group 14).
MODP_2048_PRIME = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
    "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
    "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
    "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
    "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
    "15728E5A8AACAA68FFFFFFFFFFFFFFFF",
    16,
)
GENERATOR = 2
NONCE_SIZE = 12
KEY_SIZE = 32  # AES-256


class ReplayAttackError(ValueError):
    """Raised when a message reuses the nonce of the message before it."""

    def __init__(self, message: str = "replay attack detected"):
        super().__init__(message)


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def _derive_key(shared_secret: bytes, salt: Optional[bytes]) -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=KEY_SIZE, salt=salt or None, info=b"")
    return hkdf.derive(shared_secret)


def _b64decode(text: str, what: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"decoding {what}: {exc}") from exc


class DiffieHellmanEncrypter:
    """One side of a key exchange; after it, encrypts and decrypts messages.

    Encrypted messages travel as ``base64(ciphertext):base64(nonce)``.
    """

    def __init__(self) -> None:
        self._private_key = secrets.randbelow(MODP_2048_PRIME - 2) + 1
        self._public_key = _int_to_bytes(pow(GENERATOR, self._private_key, MODP_2048_PRIME))
        self._aes_key: Optional[bytes] = None
        self._last_nonce: Optional[bytes] = None
        self._lock = threading.Lock()

    @property
    def public_key(self) -> bytes:
        """This side's public key, big-endian without leading zero bytes."""
        return self._public_key

    def _cipher(self) -> AESGCM:
        if self._aes_key is None:
            raise ValueError("shared secret is not computed")
        return AESGCM(self._aes_key)

    def encrypt_message(self, plaintext: bytes) -> bytes:
        """Encrypt ``plaintext`` under the shared key with a fresh random nonce."""
        cipher = self._cipher()
        nonce = secrets.token_bytes(NONCE_SIZE)
        ciphertext = cipher.encrypt(nonce, bytes(plaintext), None)
        payload = f"{base64.b64encode(ciphertext).decode()}:{base64.b64encode(nonce).decode()}"
        return payload.encode()

    def decrypt_message(self, encrypted_message: bytes) -> bytes:
        """Decrypt a message made by :meth:`encrypt_message` on the other side."""
        text = bytes(encrypted_message).decode("utf-8", errors="replace")
        parts = text.split(":", 1)
        if len(parts) != 2:
            raise ValueError(f"invalid client message format: {text}")
        ciphertext = _b64decode(parts[0], "text")
        nonce = _b64decode(parts[1], "nonce")

        with self._lock:
            if nonce == self._last_nonce:
                raise ReplayAttackError()
            self._last_nonce = nonce

        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"aesgcm decrypt: invalid nonce size {len(nonce)}")
        cipher = self._cipher()
        try:
            return cipher.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise ValueError(f"aesgcm decrypt: message authentication failed {ciphertext.hex()}") from exc

    def compute_shared_secret(self, client_public_key: bytes, salt: Optional[bytes]) -> None:
        """Derive the AES key from the peer's public key and ``salt``."""
        with self._lock:
            self._last_nonce = None
        peer = int.from_bytes(bytes(client_public_key), "big")
        if not 1 < peer < MODP_2048_PRIME - 1:
            raise ValueError("computing shared secret: invalid public key")
        shared = _int_to_bytes(pow(peer, self._private_key, MODP_2048_PRIME))
        self._aes_key = _derive_key(shared, salt)