"""Deterministic Ed25519 key derivation from a seed."""

import hashlib

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

# Identifiers mixed into the seed: SHA-256 hash algorithm and Ed25519 key type.
_HASH_ALGO_SHA256 = 5
_KEY_TYPE_ED25519 = 1


def generate_key_from_seed(seed: bytes) -> Ed25519PrivateKey:
    """Derive an Ed25519 private key from ``seed``; the same seed gives the same key."""
    if not seed:
        raise ValueError("seed is empty")
    material = bytes(seed) + bytes([_HASH_ALGO_SHA256, _KEY_TYPE_ED25519])
    return Ed25519PrivateKey.from_private_bytes(hashlib.sha256(material).digest())