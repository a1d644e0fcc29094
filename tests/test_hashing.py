"""
Tests for content hashing.
"""

import hashlib

import pytest

from drgen.core.integrity.hashing import byte_length, digest, encode


class TestHashing:
    def test_known_digest(self):
        assert digest("hello") == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_text_and_bytes_agree(self):
        assert digest("héllo") == digest("héllo".encode("utf-8"))
        assert digest(b"\x00\xff") == hashlib.sha256(b"\x00\xff").hexdigest()

    def test_byte_length_counts_encoded_bytes(self):
        assert byte_length("abc") == 3
        assert byte_length("é") == 2
        assert byte_length("決定") == 6
        assert byte_length("") == 0

    def test_digest_is_lowercase_hex(self):
        value = digest("anything")
        assert len(value) == 64
        assert value == value.lower()

    def test_lone_surrogate_is_rejected(self):
        """Malformed text raises instead of being replaced."""
        with pytest.raises(UnicodeEncodeError):
            encode("bad \ud800 text")

    def test_bytes_pass_through(self):
        data = b"raw"
        assert encode(data) is data
