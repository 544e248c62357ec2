import pytest

from warpnet.security import weak_aes
from warpnet.security.weak_aes import decrypt_aes, encrypt_aes

MESSAGE = b"Hello, this is a secret message."


def test_aes_encrypt_decrypt_success():
    password = b"password"
    cipher_data = encrypt_aes(MESSAGE, password)
    out = decrypt_aes(cipher_data, password)
    assert out == MESSAGE


def test_ciphertext_carries_tag_and_is_deterministic():
    password = b"password"
    first = encrypt_aes(MESSAGE, password)
    assert len(first) == len(MESSAGE) + 16
    assert encrypt_aes(MESSAGE, password) == first
    assert MESSAGE not in first


def test_wrong_password_fails():
    cipher_data = encrypt_aes(MESSAGE, b"password")
    with pytest.raises(ValueError, match="failed to decrypt"):
        decrypt_aes(cipher_data, b"secret")


def test_tampered_ciphertext_fails():
    password = b"password"
    cipher_data = bytearray(encrypt_aes(MESSAGE, password))
    cipher_data[0] ^= 0xFF
    with pytest.raises(ValueError):
        decrypt_aes(bytes(cipher_data), password)


def test_empty_password_differs_from_no_password():
    with_empty = encrypt_aes(MESSAGE, b"")
    assert decrypt_aes(with_empty, b"") == MESSAGE


def test_weak_key_shape():
    key = weak_aes._generate_weak_key(weak_aes.SALT)
    assert len(key) == 32
    assert weak_aes.SALT in key


def test_encrypt_without_password_produces_ciphertext():
    cipher_data = encrypt_aes(MESSAGE, None)
    assert len(cipher_data) == len(MESSAGE) + 16