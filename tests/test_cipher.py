import os

import pytest

from gmsm.cipher import BLOCK_SIZE, SM4Cipher, SM4Error

# Standard example from the SM4 specification.
KEY = bytes.fromhex("0123456789abcdeffedcba9876543210")
PLAIN = bytes.fromhex("0123456789abcdeffedcba9876543210")
CIPHER = bytes.fromhex("681edf34d206965e86b3e94f536e4246")


def test_standard_vector_encrypt():
    assert SM4Cipher(KEY).encrypt_block(PLAIN) == CIPHER


def test_standard_vector_decrypt():
    assert SM4Cipher(KEY).decrypt_block(CIPHER) == PLAIN


def test_block_size():
    assert SM4Cipher(KEY).block_size() == BLOCK_SIZE == 16


@pytest.mark.parametrize("seed", range(5))
def test_round_trip_random(seed):
    key = os.urandom(16)
    block = os.urandom(16)
    cipher = SM4Cipher(key)
    encrypted = cipher.encrypt_block(block)
    assert len(encrypted) == 16
    assert cipher.decrypt_block(encrypted) == block


def test_accepts_bytearray_and_memoryview():
    cipher = SM4Cipher(bytearray(KEY))
    assert cipher.encrypt_block(memoryview(PLAIN)) == CIPHER


def test_different_keys_give_different_output():
    other = SM4Cipher(bytes(16)).encrypt_block(PLAIN)
    assert other != CIPHER
    assert len(other) == 16


def test_repeated_encryption_round_trip():
    cipher = SM4Cipher(KEY)
    data = PLAIN
    for _ in range(10):
        data = cipher.encrypt_block(data)
    for _ in range(10):
        data = cipher.decrypt_block(data)
    assert data == PLAIN


@pytest.mark.parametrize("size", [0, 8, 15, 17, 32])
def test_invalid_key_size(size):
    with pytest.raises(SM4Error, match=f"invalid key size {size}"):
        SM4Cipher(bytes(size))


@pytest.mark.parametrize("size", [0, 15, 17])
def test_invalid_block_size_encrypt(size):
    with pytest.raises(SM4Error):
        SM4Cipher(KEY).encrypt_block(bytes(size))


@pytest.mark.parametrize("size", [1, 31])
def test_invalid_block_size_decrypt(size):
    with pytest.raises(SM4Error):
        SM4Cipher(KEY).decrypt_block(bytes(size))


def test_error_is_value_error():
    with pytest.raises(ValueError):
        SM4Cipher(b"short")