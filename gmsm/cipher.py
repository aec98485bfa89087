"""The SM4 block cipher: key schedule and single-block encryption."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["BLOCK_SIZE", "SM4Error", "SM4Cipher"]

BLOCK_SIZE = 16

_MASK32 = 0xFFFFFFFF

_FK = (0xA3B1BAC6, 0x56AA3350, 0x677D9197, 0xB27022DC)

# CK[i] byte j is (4*i + j) * 7 mod 256.
_CK = tuple(
    int.from_bytes(bytes(((4 * i + j) * 7) & 0xFF for j in range(4)), "big")
    for i in range(32)
)

_SBOX = bytes.fromhex(
    "d690e9fecce13db716b614c228fb2c05"
    "2b679a762abe04c3aa44132649860699"
    "9c4250f491ef987a33540b43edcfac62"
    "e4b31ca9c908e89580df94fa758f3fa6"
    "4707a7fcf37317ba83593c19e6854fa8"
    "686b81b27164da8bf8eb0f4b70569d35"
    "1e240e5e6358d1a225227c3b01217887"
    "d40046579fd327524c3602e7a0c4c89e"
    "eabf8ad240c738b5a3f7f2cef96115a1"
    "e0ae5da49b341a55ad933230f58cb1e3"
    "1df6e22e8266ca60c02923ab0d534e6f"
    "d5db3745defd8e2f03ff6a726d6c5b51"
    "8d1baf92bbddbc7f11d95c411f105ad8"
    "0ac13188a5cd7bbd2d74d012b8e5b4b0"
    "8969974a0c96777e65b9f109c56ec684"
    "18f07dec3adc4d2079ee5f3ed7cb3948"
)


class SM4Error(ValueError):
    """Raised for an invalid SM4 key, block or parameter."""


def _rotl(x: int, n: int) -> int:
    return ((x << n) | (x >> (32 - n))) & _MASK32


def _tau(a: int) -> int:
    """Apply the S-box to each byte of a 32-bit word."""
    return int.from_bytes(bytes(_SBOX[b] for b in a.to_bytes(4, "big")), "big")


def _round_transform(a: int) -> int:
    b = _tau(a)
    return b ^ _rotl(b, 2) ^ _rotl(b, 10) ^ _rotl(b, 18) ^ _rotl(b, 24)


def _key_transform(a: int) -> int:
    b = _tau(a)
    return b ^ _rotl(b, 13) ^ _rotl(b, 23)


def _words(block: bytes) -> list[int]:
    return [int.from_bytes(block[i : i + 4], "big") for i in range(0, 16, 4)]


def _generate_subkeys(key: bytes) -> tuple[int, ...]:
    k = [w ^ f for w, f in zip(_words(key), _FK)]
    subkeys = []
    for ck in _CK:
        rk = k[0] ^ _key_transform(k[1] ^ k[2] ^ k[3] ^ ck)
        subkeys.append(rk)
        k = [k[1], k[2], k[3], rk]
    return tuple(subkeys)


def _crypt(subkeys: Iterable[int], block: bytes) -> bytes:
    x = _words(block)
    for rk in subkeys:
        x = [x[1], x[2], x[3], x[0] ^ _round_transform(x[1] ^ x[2] ^ x[3] ^ rk)]
    return b"".join(w.to_bytes(4, "big") for w in reversed(x))


class SM4Cipher:
    """An SM4 cipher bound to one 16-byte key."""

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != BLOCK_SIZE:
            raise SM4Error(f"SM4: invalid key size {len(key)}")
        self._subkeys = _generate_subkeys(key)

    def block_size(self) -> int:
        """Return the cipher's block size in bytes."""
        return BLOCK_SIZE

    @staticmethod
    def _check_block(block: bytes) -> bytes:
        block = bytes(block)
        if len(block) != BLOCK_SIZE:
            raise SM4Error(f"SM4: invalid block size {len(block)}")
        return block

    def encrypt_block(self, block: bytes) -> bytes:
        """Encrypt exactly one 16-byte block."""
        return _crypt(self._subkeys, self._check_block(block))

    def decrypt_block(self, block: bytes) -> bytes:
        """Decrypt exactly one 16-byte block."""
        return _crypt(reversed(self._subkeys), self._check_block(block))