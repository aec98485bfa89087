"""SM4 in Galois/Counter Mode."""

from __future__ import annotations

from collections.abc import Iterator

from gmsm.cipher import BLOCK_SIZE, SM4Cipher

__all__ = ["get_h", "ghash", "get_y0", "gcm_encrypt", "gcm_decrypt", "sm4_gcm"]

_R = 0xE1 << 120


def get_h(key: bytes) -> bytes:
    """Return the GHASH subkey: the encryption of the all-zero block."""
    return SM4Cipher(key).encrypt_block(bytes(BLOCK_SIZE))


def _gf_mult(x: int, y: int) -> int:
    z = 0
    v = x
    for i in range(127, -1, -1):
        if (y >> i) & 1:
            z ^= v
        v = (v >> 1) ^ _R if v & 1 else v >> 1
    return z


def _padded_blocks(data: bytes) -> Iterator[int]:
    """Yield zero-padded blocks; empty data still yields one zero block."""
    if not data:
        yield 0
        return
    for start in range(0, len(data), BLOCK_SIZE):
        yield int.from_bytes(data[start : start + BLOCK_SIZE].ljust(BLOCK_SIZE, b"\x00"), "big")


def ghash(h: bytes, aad: bytes, ciphertext: bytes) -> bytes:
    """Compute GHASH over the additional data and the ciphertext.

    The closing length block holds the byte lengths of both inputs.
    """
    aad = bytes(aad)
    ciphertext = bytes(ciphertext)
    hv = int.from_bytes(h, "big")
    x = 0
    for block in _padded_blocks(aad):
        x = _gf_mult(x ^ block, hv)
    for block in _padded_blocks(ciphertext):
        x = _gf_mult(x ^ block, hv)
    lengths = int.from_bytes(
        len(aad).to_bytes(8, "big") + len(ciphertext).to_bytes(8, "big"), "big"
    )
    x = _gf_mult(x ^ lengths, hv)
    return x.to_bytes(BLOCK_SIZE, "big")


def get_y0(h: bytes, iv: bytes) -> bytes:
    """Return the initial counter block J0 for the given IV."""
    iv = bytes(iv)
    if len(iv) == 12:
        return iv + b"\x00\x00\x00\x01"
    return ghash(h, b"", iv)


def _increment(counter: bytes) -> bytes:
    """Advance the counter across the whole block.

    A byte that reaches 0xff (other than the last) is cleared and carries.
    """
    out = bytearray(counter)
    last = len(out) - 1
    carry = 0
    for i in range(last, -1, -1):
        if i == last:
            total = out[i] + 1
        else:
            total = (out[i] + carry) & 0xFF
        if total < 0xFF or (i == last and total == 0xFF):
            out[i] = total
            carry = 0
        else:
            out[i] = 0
            carry = 1
    return bytes(out)


def _keystream(cipher: SM4Cipher, y0: bytes, length: int) -> bytes:
    count = max(1, -(-length // BLOCK_SIZE))
    counter = y0
    blocks = []
    for _ in range(count):
        counter = _increment(counter)
        blocks.append(cipher.encrypt_block(counter))
    return b"".join(blocks)[:length]


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def _tag(cipher: SM4Cipher, h: bytes, y0: bytes, aad: bytes, ciphertext: bytes) -> bytes:
    return _xor(cipher.encrypt_block(y0), ghash(h, aad, ciphertext))


def gcm_encrypt(key: bytes, iv: bytes, plaintext: bytes, aad: bytes) -> tuple[bytes, bytes]:
    """Encrypt and authenticate; return (ciphertext, tag)."""
    cipher = SM4Cipher(key)
    plaintext = bytes(plaintext)
    h = get_h(key)
    y0 = get_y0(h, iv)
    ciphertext = _xor(plaintext, _keystream(cipher, y0, len(plaintext)))
    return ciphertext, _tag(cipher, h, y0, bytes(aad), ciphertext)


def gcm_decrypt(key: bytes, iv: bytes, ciphertext: bytes, aad: bytes) -> tuple[bytes, bytes]:
    """Decrypt; return (plaintext, tag) where tag is the one the data should carry."""
    cipher = SM4Cipher(key)
    ciphertext = bytes(ciphertext)
    h = get_h(key)
    y0 = get_y0(h, iv)
    tag = _tag(cipher, h, y0, bytes(aad), ciphertext)
    plaintext = _xor(ciphertext, _keystream(cipher, y0, len(ciphertext)))
    return plaintext, tag


def sm4_gcm(
    key: bytes, iv: bytes, data: bytes, aad: bytes, encrypt: bool
) -> tuple[bytes, bytes]:
    """Encrypt or decrypt in GCM mode, returning the output and its tag."""
    if encrypt:
        return gcm_encrypt(key, iv, data, aad)
    return gcm_decrypt(key, iv, data, aad)