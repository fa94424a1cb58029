"""CipherStreamCodec: round trip, fresh IVs, tamper detection, framing errors, key validation."""

import os

import pytest

from docvault.domain.exceptions import PayloadTooLargeError
from docvault.security.cipher import (
    BLOCK_SIZE,
    IV_LENGTH,
    CipherStreamCodec,
    max_ciphertext_length,
)
from docvault.security.exceptions import ConfigurationError, DecryptionError

KEY = bytes(range(32))
MAX_BYTES = 4096


@pytest.fixture
def codec():
    return CipherStreamCodec(KEY, max_plaintext_bytes=MAX_BYTES)


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 1000, MAX_BYTES])
def test_round_trip(codec, size):
    plaintext = os.urandom(size)
    encoded = codec.encode(plaintext)
    assert codec.decode(encoded) == plaintext


def test_encoded_layout_is_iv_then_whole_blocks(codec):
    encoded = codec.encode(b"0123456789")
    assert len(encoded) > IV_LENGTH
    assert (len(encoded) - IV_LENGTH) % BLOCK_SIZE == 0
    assert len(encoded) <= max_ciphertext_length(MAX_BYTES)


def test_each_encode_draws_fresh_iv(codec):
    a = codec.encode(b"same payload")
    b = codec.encode(b"same payload")
    assert a[:IV_LENGTH] != b[:IV_LENGTH]
    assert a != b


def test_flipping_any_byte_is_detected(codec):
    encoded = codec.encode(b"0123456789")
    for i in range(len(encoded)):
        tampered = bytearray(encoded)
        tampered[i] ^= 0x01
        with pytest.raises(DecryptionError):
            codec.decode(bytes(tampered))


def test_wrong_key_is_detected(codec):
    other = CipherStreamCodec(bytes(reversed(KEY)), max_plaintext_bytes=MAX_BYTES)
    with pytest.raises(DecryptionError):
        other.decode(codec.encode(b"secret"))


def test_shorter_than_iv_rejected(codec):
    with pytest.raises(DecryptionError):
        codec.decode(b"\x00" * (IV_LENGTH - 1))


def test_iv_without_body_rejected(codec):
    with pytest.raises(DecryptionError):
        codec.decode(os.urandom(IV_LENGTH))


def test_misaligned_body_rejected(codec):
    encoded = codec.encode(b"0123456789")
    with pytest.raises(DecryptionError):
        codec.decode(encoded[:-1])


def test_encode_over_limit_raises_payload_too_large(codec):
    with pytest.raises(PayloadTooLargeError):
        codec.encode(b"x" * (MAX_BYTES + 1))


def test_decode_over_limit_raises_payload_too_large(codec):
    oversized = os.urandom(max_ciphertext_length(MAX_BYTES) + BLOCK_SIZE)
    with pytest.raises(PayloadTooLargeError):
        codec.decode(oversized)


@pytest.mark.parametrize("key", [b"", b"short", bytes(31), bytes(33)])
def test_key_must_be_32_bytes(key):
    with pytest.raises(ConfigurationError):
        CipherStreamCodec(key, max_plaintext_bytes=MAX_BYTES)


def test_from_hex_builds_codec():
    codec = CipherStreamCodec.from_hex(KEY.hex(), MAX_BYTES)
    assert codec.decode(codec.encode(b"abc")) == b"abc"


@pytest.mark.parametrize("hex_key", [None, "", "   ", "zz" * 32, "ab" * 16])
def test_from_hex_fails_fast_on_bad_key(hex_key):
    with pytest.raises(ConfigurationError):
        CipherStreamCodec.from_hex(hex_key, MAX_BYTES)
