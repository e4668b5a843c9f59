import base64
import hashlib

import pytest

from thumbmap.core.fingerprint import fingerprint, normalize_base64


def test_full_hash_is_base64_sha256():
    fp = fingerprint(b"hello")
    assert fp.full_hash == base64.b64encode(hashlib.sha256(b"hello").digest()).decode()
    assert len(fp.full_hash) == 44


def test_empty_input():
    fp = fingerprint(b"")
    assert fp.full_hash == "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="
    assert fp.file_hash == "47DEQpj8HB"


def test_stable_and_sensitive():
    data = bytes(range(256)) * 10
    assert fingerprint(data) == fingerprint(bytes(data))

    changed = bytearray(data)
    changed[1000] ^= 1
    assert fingerprint(bytes(changed)).full_hash != fingerprint(data).full_hash


@pytest.mark.parametrize("size", [0, 1, 100, 8192, 8193, 50000])
def test_file_hash_is_url_safe(size):
    fp = fingerprint(bytes(i % 251 for i in range(size)))
    assert len(fp.file_hash) <= 10
    assert not set(fp.file_hash) & set("+/=")
    assert fp.file_hash == normalize_base64(fp.full_hash[:10])


def test_normalize_base64():
    assert normalize_base64("ab+c/d==") == "ab-c_d"
    assert normalize_base64("abc") == "abc"
