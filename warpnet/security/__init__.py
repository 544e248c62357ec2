"""Hashing, AES encryption, Diffie-Hellman exchange and key derivation helpers."""