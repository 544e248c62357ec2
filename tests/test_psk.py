import pytest

from warpnet.security.hashing import convert_to_sha256
from warpnet.security.psk import (
    PSK,
    generate_anchored_entropy,
    generate_psk,
    get_codebase_hash,
)


@pytest.fixture
def codebase(tmp_path):
    (tmp_path / "main.txt").write_bytes(b"main")
    sub = tmp_path / "pkg"
    sub.mkdir()
    (sub / "a.txt").write_bytes(b"alpha")
    (sub / "b.txt").write_bytes(b"beta")
    return tmp_path


def test_testnet_psk_depends_on_network_only():
    psk = generate_psk(None, None, "testnet", True)
    assert psk == convert_to_sha256(b"testnet")
    assert str(psk) == convert_to_sha256(b"testnet").hex()


def test_missing_codebase_or_version_rejected(codebase):
    with pytest.raises(ValueError, match="codebase or version required"):
        generate_psk(None, "1.0.0", "warpnet", False)
    with pytest.raises(ValueError, match="codebase or version required"):
        generate_psk(codebase, None, "warpnet", False)


def test_psk_deterministic_and_major_only(codebase):
    first = generate_psk(codebase, "1.2.3", "warpnet", False)
    assert len(first) == 32
    assert generate_psk(codebase, "1.9.0", "warpnet", False) == first
    assert generate_psk(codebase, "2.0.0", "warpnet", False) != first
    assert generate_psk(codebase, "1.2.3", "other", False) != first


def test_psk_changes_with_file_content(codebase):
    before = generate_psk(codebase, "1.0.0", "warpnet", False)
    (codebase / "pkg" / "a.txt").write_bytes(b"changed")
    assert generate_psk(codebase, "1.0.0", "warpnet", False) != before


def test_codebase_hash_changes_on_rename(codebase):
    before = get_codebase_hash(codebase)
    assert get_codebase_hash(str(codebase)) == before
    (codebase / "main.txt").rename(codebase / "renamed.txt")
    assert get_codebase_hash(codebase) != before


def test_anchored_entropy_fixed():
    entropy = generate_anchored_entropy()
    assert len(entropy) == 32
    assert generate_anchored_entropy() == entropy


def test_psk_string_is_hex():
    assert str(PSK(b"\x00\xab")) == "00ab"


def test_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        get_codebase_hash(tmp_path / "absent")