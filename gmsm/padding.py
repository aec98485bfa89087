"""PKCS#7 padding on streams and stream encryption with block modes."""

from __future__ import annotations

from typing import BinaryIO, Protocol

__all__ = [
    "PaddingError",
    "PKCS7PaddingReader",
    "PKCS7PaddingWriter",
    "p7_block_decrypt",
    "p7_block_encrypt",
]

_CHUNK = 1024


class PaddingError(ValueError):
    """Raised when PKCS#7 padding or block alignment is invalid."""


class _BlockMode(Protocol):
    def block_size(self) -> int: ...

    def crypt_blocks(self, data: bytes) -> bytes: ...


class PKCS7PaddingReader:
    """A readable stream yielding the source's bytes followed by PKCS#7 padding."""

    def __init__(self, stream: BinaryIO, block_size: int) -> None:
        if not 0 < block_size < 256:
            raise PaddingError(f"invalid block size {block_size}")
        self._stream = stream
        self._block_size = block_size
        self._consumed = 0
        self._padding: bytes | None = None

    def _read_source(self, size: int) -> bytes:
        if size < 0:
            data = self._stream.read()
            data = bytes(data) if data else b""
            self._consumed += len(data)
            self._start_padding()
            return data
        parts = []
        wanted = size
        while wanted > 0:
            chunk = self._stream.read(wanted)
            if not chunk:
                self._start_padding()
                break
            parts.append(bytes(chunk))
            wanted -= len(chunk)
        data = b"".join(parts)
        self._consumed += len(data)
        return data

    def _start_padding(self) -> None:
        if self._padding is None:
            size = self._block_size - self._consumed % self._block_size
            self._padding = bytes([size]) * size

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes (all when size is negative); b"" at the end."""
        data = b""
        if self._padding is None:
            data = self._read_source(size)
            if self._padding is None:
                return data
        remaining = -1 if size < 0 else size - len(data)
        if remaining < 0:
            tail, self._padding = self._padding, b""
        else:
            tail, self._padding = self._padding[:remaining], self._padding[remaining:]
        return data + tail


class PKCS7PaddingWriter:
    """A writable stream that strips PKCS#7 padding from the last block on final()."""

    def __init__(self, stream: BinaryIO, block_size: int) -> None:
        self._stream = stream
        self._block_size = block_size
        self._cache = bytearray()

    def write(self, data: bytes) -> int:
        """Forward all but the last block's worth of data; return len(data)."""
        self._cache += data
        excess = len(self._cache) - self._block_size
        if excess > 0:
            self._stream.write(bytes(self._cache[:excess]))
            del self._cache[:excess]
        return len(data)

    def final(self) -> None:
        """Write the held block without its padding."""
        block = bytes(self._cache)
        if len(block) != self._block_size:
            raise PaddingError("invalid PKCS7 padding")
        if not block:
            return
        size = block[-1]
        if size > self._block_size or size == 0:
            raise PaddingError("invalid PKCS7 padding")
        self._stream.write(block[: len(block) - size])
        self._cache.clear()


def _crypt_stream(mode: _BlockMode, read, write) -> None:
    block_size = mode.block_size()
    pending = b""
    while True:
        chunk = read(_CHUNK)
        if not chunk:
            break
        pending += bytes(chunk)
        aligned = len(pending) - len(pending) % block_size
        if aligned:
            write(mode.crypt_blocks(pending[:aligned]))
            pending = pending[aligned:]
    if pending:
        raise PaddingError(f"input is not a multiple of the block size {block_size}")


def p7_block_decrypt(decrypter: _BlockMode, instream: BinaryIO, outstream: BinaryIO) -> None:
    """Decrypt instream into outstream, removing the PKCS#7 padding."""
    writer = PKCS7PaddingWriter(outstream, decrypter.block_size())
    _crypt_stream(decrypter, instream.read, writer.write)
    writer.final()


def p7_block_encrypt(encrypter: _BlockMode, instream: BinaryIO, outstream: BinaryIO) -> None:
    """PKCS#7-pad instream, encrypt it and write the result to outstream."""
    reader = PKCS7PaddingReader(instream, encrypter.block_size())
    _crypt_stream(encrypter, reader.read, outstream.write)