"""Storing SM4 keys as PEM, optionally encrypted with a password."""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from gmsm.cipher import SM4Error

__all__ = [
    "read_key_from_pem",
    "read_key_from_pem_file",
    "write_key_to_pem",
    "write_key_to_pem_file",
]

_PLAIN_TYPE = "SM4 KEY"
_ENCRYPTED_TYPE = "SM4 ENCRYPTED KEY"
_WRITE_CIPHER = "AES-256-CBC"
_AES_BLOCK = 16
_AES_KEY_SIZES = {"AES-128-CBC": 16, "AES-192-CBC": 24, "AES-256-CBC": 32}
_LINE_LENGTH = 64
_BEGIN = re.compile(rb"-----BEGIN ([^\r\n]*?)-----[ \t]*\r?\n")


@dataclass
class _PemBlock:
    type: str
    data: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def encrypted(self) -> bool:
        return "DEK-Info" in self.headers


def _as_bytes(password: bytes | str | None) -> bytes | None:
    if password is None:
        return None
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


def _decode_pem(data: bytes) -> _PemBlock | None:
    """Return the first well-formed PEM block in data, or None."""
    data = bytes(data)
    for begin in _BEGIN.finditer(data):
        block_type = begin.group(1)
        end_marker = b"-----END " + block_type + b"-----"
        end = data.find(end_marker, begin.end())
        if end < 0:
            continue
        lines = data[begin.end() : end].splitlines()
        headers: dict[str, str] = {}
        body_start = 0
        for line in lines:
            if b":" not in line:
                break
            key, _, value = line.partition(b":")
            headers[key.strip().decode("latin-1")] = value.strip().decode("latin-1")
            body_start += 1
        body = b"".join(line.strip() for line in lines[body_start:])
        try:
            decoded = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            continue
        return _PemBlock(block_type.decode("latin-1"), decoded, headers)
    return None


def _encode_pem(block: _PemBlock) -> bytes:
    lines = [f"-----BEGIN {block.type}-----"]
    if block.headers:
        ordered = sorted(block.headers.items(), key=lambda kv: (kv[0] != "Proc-Type", kv[0]))
        lines.extend(f"{key}: {value}" for key, value in ordered)
        lines.append("")
    encoded = base64.b64encode(block.data).decode("ascii")
    lines.extend(
        encoded[start : start + _LINE_LENGTH] for start in range(0, len(encoded), _LINE_LENGTH)
    )
    lines.append(f"-----END {block.type}-----")
    return ("\n".join(lines) + "\n").encode("ascii")


def _derive_key(password: bytes, salt: bytes, size: int) -> bytes:
    """Derive a key the way legacy OpenSSL PEM encryption does (MD5, one round)."""
    out = b""
    digest = b""
    while len(out) < size:
        digest = hashlib.md5(digest + password + salt).digest()
        out += digest
    return out[:size]


def _aes_cbc(key: bytes, iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(iv))


def _encrypt_block(block_type: str, data: bytes, password: bytes) -> _PemBlock:
    iv = os.urandom(_AES_BLOCK)
    key = _derive_key(password, iv[:8], _AES_KEY_SIZES[_WRITE_CIPHER])
    pad = _AES_BLOCK - len(data) % _AES_BLOCK
    encryptor = _aes_cbc(key, iv).encryptor()
    body = encryptor.update(data + bytes([pad]) * pad) + encryptor.finalize()
    headers = {"Proc-Type": "4,ENCRYPTED", "DEK-Info": f"{_WRITE_CIPHER},{iv.hex()}"}
    return _PemBlock(block_type, body, headers)


def _decrypt_block(block: _PemBlock, password: bytes) -> bytes:
    dek = block.headers.get("DEK-Info")
    if dek is None:
        raise SM4Error("x509: no DEK-Info header in block")
    mode, sep, hex_iv = dek.partition(",")
    if not sep:
        raise SM4Error("x509: malformed DEK-Info header")
    key_size = _AES_KEY_SIZES.get(mode)
    if key_size is None:
        raise SM4Error("x509: unknown encryption mode")
    try:
        iv = bytes.fromhex(hex_iv)
    except ValueError as exc:
        raise SM4Error("x509: malformed DEK-Info header") from exc
    if len(iv) != _AES_BLOCK:
        raise SM4Error("x509: incorrect IV size")
    if len(block.data) % _AES_BLOCK:
        raise SM4Error("x509: encrypted PEM data is not a multiple of the block size")
    key = _derive_key(password, iv[:8], key_size)
    decryptor = _aes_cbc(key, iv).decryptor()
    plain = decryptor.update(block.data) + decryptor.finalize()
    if not plain:
        raise SM4Error("x509: invalid padding")
    pad = plain[-1]
    if pad == 0 or pad > _AES_BLOCK or pad > len(plain):
        raise SM4Error("x509: decryption password incorrect")
    if any(b != pad for b in plain[-pad:]):
        raise SM4Error("x509: decryption password incorrect")
    return plain[:-pad]


def read_key_from_pem(data: bytes, password: bytes | str | None = None) -> bytes:
    """Return the SM4 key held in PEM data, decrypting it when it is encrypted."""
    block = _decode_pem(data)
    if block is None:
        raise SM4Error("SM4: pem decode failed")
    if block.encrypted:
        if block.type != _ENCRYPTED_TYPE:
            raise SM4Error("SM4: unknown type")
        secret = _as_bytes(password)
        if secret is None:
            raise SM4Error("SM4: need passwd")
        return _decrypt_block(block, secret)
    if block.type != _PLAIN_TYPE:
        raise SM4Error("SM4: unknown type")
    return block.data


def read_key_from_pem_file(path: str | os.PathLike, password: bytes | str | None = None) -> bytes:
    """Return the SM4 key held in a PEM file."""
    return read_key_from_pem(Path(path).read_bytes(), password)


def write_key_to_pem(key: bytes, password: bytes | str | None = None) -> bytes:
    """Encode an SM4 key as PEM; with a password it is encrypted with AES-256-CBC."""
    key = bytes(key)
    secret = _as_bytes(password)
    if secret is not None:
        return _encode_pem(_encrypt_block(_ENCRYPTED_TYPE, key, secret))
    return _encode_pem(_PemBlock(_PLAIN_TYPE, key))


def write_key_to_pem_file(
    path: str | os.PathLike, key: bytes, password: bytes | str | None = None
) -> None:
    """Encode an SM4 key as PEM and write it to path."""
    Path(path).write_bytes(write_key_to_pem(key, password))