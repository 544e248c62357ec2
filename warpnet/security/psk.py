"""Network pre-shared key derived from the network name, code base and version."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Optional, Union

import semver

from warpnet.security.hashing import convert_to_sha256

_SPB_FOUNDING = -((133129 << 16) + 51200)
_ENTROPY_ROUNDS = 1000


class PSK(bytes):
    """A pre-shared key; its string form is lower-case hex."""

    def __str__(self) -> str:
        return self.hex()


def _walk_and_hash(directory: Any, rel: str, digest: "hashlib._Hash") -> None:
    for entry in sorted(directory.iterdir(), key=lambda e: e.name):
        path = entry.name if rel == "." else f"{rel}/{entry.name}"
        digest.update(hashlib.sha256(path.encode()).digest())
        if entry.is_dir():
            _walk_and_hash(entry, path, digest)
        else:
            digest.update(hashlib.sha256(entry.read_bytes()).digest())


def get_codebase_hash(root: Union[str, os.PathLike, Any]) -> bytes:
    """Hash a directory tree: every relative path and every file's content, in name order."""
    if isinstance(root, (str, os.PathLike)):
        root = Path(root)
    digest = hashlib.sha256()
    _walk_and_hash(root, ".", digest)
    return digest.digest()


def generate_anchored_entropy() -> bytes:
    """Return a fixed 32-byte value: a thousand SHA-256 rounds over a constant."""
    data = str(_SPB_FOUNDING).encode()
    for _ in range(_ENTROPY_ROUNDS):
        data = hashlib.sha256(data).digest()
    return data


def generate_psk(
    codebase: Optional[Union[str, os.PathLike, Any]],
    version: Optional[Union[str, semver.Version]],
    network: str,
    is_testnet: bool,
) -> PSK:
    """Derive the network's pre-shared key.

    On a test network the key depends on the network name only; otherwise it
    also depends on the code base and the major version.
    """
    if is_testnet:
        return PSK(convert_to_sha256(network.encode()))
    if codebase is None or version is None:
        raise ValueError("psk: codebase or version required")
    if isinstance(version, str):
        version = semver.Version.parse(version)
    code_hash = get_codebase_hash(codebase)
    seed = network.encode() + code_hash + str(version.major).encode() + generate_anchored_entropy()
    return PSK(convert_to_sha256(seed))