"""SM4 block cipher modes: ECB, CBC, CFB and OFB with PKCS#7 padding."""

from __future__ import annotations

from collections.abc import Iterator

from gmsm.cipher import BLOCK_SIZE, SM4Cipher, SM4Error

__all__ = [
    "pkcs7_pad",
    "pkcs7_unpad",
    "set_iv",
    "get_iv",
    "sm4_cbc",
    "sm4_ecb",
    "sm4_ecb_no_padding",
    "sm4_cfb",
    "sm4_ofb",
]

_default_iv = bytes(BLOCK_SIZE)


def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append PKCS#7 padding; a full block is added to aligned input."""
    size = block_size - len(data) % block_size
    return bytes(data) + bytes([size]) * size


def pkcs7_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Strip PKCS#7 padding, raising SM4Error when it is malformed."""
    data = bytes(data)
    if not data:
        raise SM4Error("Invalid pkcs7 padding (len(padtext) == 0)")
    size = data[-1]
    if size > block_size or size == 0:
        raise SM4Error("Invalid pkcs7 padding (unpadding > BlockSize || unpadding == 0)")
    if size > len(data) or any(b != size for b in data[-size:]):
        raise SM4Error("Invalid pkcs7 padding (pad[i] != unpadding)")
    return data[:-size]


def set_iv(iv: bytes) -> None:
    """Set the IV used by the chained modes when none is passed explicitly."""
    global _default_iv
    iv = bytes(iv)
    if len(iv) != BLOCK_SIZE:
        raise SM4Error("SM4: invalid iv size")
    _default_iv = iv


def get_iv() -> bytes:
    """Return the IV used when none is passed explicitly."""
    return _default_iv


def _resolve_iv(iv: bytes | None) -> bytes:
    if iv is None:
        return _default_iv
    iv = bytes(iv)
    if len(iv) != BLOCK_SIZE:
        raise SM4Error("SM4: invalid iv size")
    return iv


def _blocks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), BLOCK_SIZE):
        yield data[start : start + BLOCK_SIZE]


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def _aligned(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) % BLOCK_SIZE:
        raise SM4Error(f"SM4: input length {len(data)} is not a multiple of {BLOCK_SIZE}")
    return data


def sm4_ecb(key: bytes, data: bytes, encrypt: bool) -> bytes:
    """Encrypt or decrypt in ECB mode with PKCS#7 padding."""
    cipher = SM4Cipher(key)
    if encrypt:
        return b"".join(cipher.encrypt_block(b) for b in _blocks(pkcs7_pad(bytes(data))))
    plain = b"".join(cipher.decrypt_block(b) for b in _blocks(_aligned(data)))
    return pkcs7_unpad(plain)


def sm4_ecb_no_padding(key: bytes, data: bytes, encrypt: bool) -> bytes:
    """Encrypt or decrypt block-aligned data in ECB mode without padding."""
    cipher = SM4Cipher(key)
    transform = cipher.encrypt_block if encrypt else cipher.decrypt_block
    return b"".join(transform(b) for b in _blocks(_aligned(data)))


def sm4_cbc(key: bytes, data: bytes, encrypt: bool, iv: bytes | None = None) -> bytes:
    """Encrypt or decrypt in CBC mode with PKCS#7 padding."""
    cipher = SM4Cipher(key)
    chain = _resolve_iv(iv)
    out = []
    if encrypt:
        for block in _blocks(pkcs7_pad(bytes(data))):
            chain = cipher.encrypt_block(_xor(block, chain))
            out.append(chain)
        return b"".join(out)
    for block in _blocks(_aligned(data)):
        out.append(_xor(cipher.decrypt_block(block), chain))
        chain = block
    return pkcs7_unpad(b"".join(out))


def sm4_cfb(key: bytes, data: bytes, encrypt: bool, iv: bytes | None = None) -> bytes:
    """Encrypt or decrypt in full-block CFB mode with PKCS#7 padding."""
    cipher = SM4Cipher(key)
    feedback = _resolve_iv(iv)
    out = []
    if encrypt:
        for block in _blocks(pkcs7_pad(bytes(data))):
            feedback = _xor(cipher.encrypt_block(feedback), block)
            out.append(feedback)
        return b"".join(out)
    for block in _blocks(_aligned(data)):
        out.append(_xor(cipher.encrypt_block(feedback), block))
        feedback = block
    return pkcs7_unpad(b"".join(out))


def sm4_ofb(key: bytes, data: bytes, encrypt: bool, iv: bytes | None = None) -> bytes:
    """Encrypt or decrypt in OFB mode with PKCS#7 padding."""
    cipher = SM4Cipher(key)
    stream = _resolve_iv(iv)
    source = pkcs7_pad(bytes(data)) if encrypt else _aligned(data)
    out = []
    for block in _blocks(source):
        stream = cipher.encrypt_block(stream)
        out.append(_xor(stream, block))
    result = b"".join(out)
    return result if encrypt else pkcs7_unpad(result)