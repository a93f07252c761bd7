"""
Hashing Unit Tests
Tests for spv/crypto/hashing.py

Covers:
1. Double SHA-256 against known vectors
2. Parent hashing is order sensitive
3. Display hex is the byte-reversed internal form
4. Strict parsing of hash and plain hex strings
"""
import hashlib

import pytest

from spv.crypto.hashing import (
    HASH32_SIZE,
    double_sha256,
    from_hex,
    hash_concat,
    hash_from_str,
    hash_to_str,
    is_hash32,
    sha256,
    to_hex,
)


class TestDigests:
    """Tests for raw digest helpers."""

    def test_sha256_known_vector(self):
        assert sha256(b"hello").hex() == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_double_sha256_is_sha256_twice(self):
        data = b"merkle"
        expected = hashlib.sha256(hashlib.sha256(data).digest()).digest()
        assert double_sha256(data) == expected

    def test_double_sha256_empty(self):
        assert double_sha256(b"").hex() == (
            "5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456"
        )

    def test_digest_size(self):
        assert len(double_sha256(b"x")) == HASH32_SIZE


class TestHashConcat:
    """Tests for parent hashing."""

    def test_parent_is_double_sha_of_concatenation(self):
        left = sha256(b"left")
        right = sha256(b"right")
        assert hash_concat(left, right) == double_sha256(left + right)

    def test_order_matters(self):
        left = sha256(b"a")
        right = sha256(b"b")
        assert hash_concat(left, right) != hash_concat(right, left)


class TestHashText:
    """Tests for display hex conversion."""

    def test_display_form_is_reversed(self):
        value = bytes(range(32))
        assert hash_to_str(value) == value[::-1].hex()

    def test_round_trip(self):
        value = sha256(b"round trip")
        assert hash_from_str(hash_to_str(value)) == value

    def test_from_str_reverses(self):
        text = "01" + "00" * 31
        assert hash_from_str(text) == bytes(31) + b"\x01"

    def test_to_str_rejects_wrong_length(self):
        with pytest.raises(ValueError, match="32 bytes"):
            hash_to_str(b"\x00" * 31)

    @pytest.mark.parametrize("text", ["", "00" * 31, "00" * 33, "zz" * 32])
    def test_from_str_rejects_invalid(self, text):
        with pytest.raises(ValueError):
            hash_from_str(text)

    def test_from_str_rejects_whitespace(self):
        text = "  " + "ab" * 31
        assert len(text) == 64
        with pytest.raises(ValueError, match="only hex characters"):
            hash_from_str(text)

    def test_is_hash32(self):
        assert is_hash32(bytes(32))
        assert is_hash32(bytearray(32))
        assert not is_hash32(bytes(31))
        assert not is_hash32("00" * 32)


class TestPlainHex:
    """Tests for unreversed hex helpers."""

    def test_round_trip(self):
        data = b"\x01\x02\xff"
        assert to_hex(data) == "0102ff"
        assert from_hex("0102ff") == data

    def test_odd_length_rejected(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("abc")

    def test_invalid_characters_rejected(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("zz")

    def test_whitespace_rejected(self):
        with pytest.raises(ValueError, match="only hex characters"):
            from_hex("ab cd ")
