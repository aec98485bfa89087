# gmsm

The SM4 block cipher in pure Python, with modes of operation built on it,
PKCS#7 padding for streams, and PEM storage for keys.

## Modules

- `gmsm.cipher`: `SM4Cipher(key)` is the raw 128-bit block cipher. It has
  `encrypt_block`, `decrypt_block` and `block_size()`, which returns 16. The
  key and each block must be exactly 16 bytes. Any other length raises
  `SM4Error`, which is a subclass of `ValueError`. `BLOCK_SIZE` is 16.
- `gmsm.modes`: one-shot helpers that take `(key, data, encrypt)`.
  - `sm4_ecb`, `sm4_cbc`, `sm4_cfb` and `sm4_ofb` add PKCS#7 padding when
    they encrypt and remove it when they decrypt.
  - `sm4_ecb_no_padding` works only on data whose length is a whole number
    of blocks.
  - CBC, CFB (full-block feedback) and OFB accept an optional `iv`. If you
    leave it out, they use a module-wide default IV. The default starts as
    16 zero bytes, and you change or read it with `set_iv` and `get_iv`.
  - `pkcs7_pad(data, block_size=16)` and `pkcs7_unpad(data, block_size=16)`
    are also available.
  - Decrypting data that is not block-aligned or that has bad padding raises
    `SM4Error`.
- `gmsm.gcm`: Galois/Counter mode.
  - `gcm_encrypt(key, iv, plaintext, aad)` returns `(ciphertext, tag)`.
  - `gcm_decrypt(key, iv, ciphertext, aad)` returns `(plaintext, tag)`.
  - `sm4_gcm(key, iv, data, aad, encrypt)` calls one of the two.
  - The helpers `get_h`, `ghash` and `get_y0` are exposed as well.
- `gmsm.padding`: PKCS#7 padding on file-like objects.
  - `PKCS7PaddingReader(stream, block_size)` returns the stream's bytes
    followed by the padding.
  - `PKCS7PaddingWriter(stream, block_size)` holds back the last block and
    writes it without its padding when you call `final()`. Invalid padding
    raises `PaddingError`.
  - `p7_block_encrypt(encrypter, instream, outstream)` and
    `p7_block_decrypt(decrypter, instream, outstream)` join these to a block
    mode. The mode is any object with `block_size()` and
    `crypt_blocks(data) -> bytes`.
- `gmsm.pemkeys`: `write_key_to_pem(key, password=None)` and
  `read_key_from_pem(data, password=None)`, plus the `_file` variants that
  take a path.
  - Without a password the key is stored as an `SM4 KEY` block.
  - With a password it becomes an `SM4 ENCRYPTED KEY` block. The block is
    encrypted with AES-256-CBC under a legacy OpenSSL-style key derivation,
    using the `cryptography` library.
  - Reading an encrypted block without a password, or a block of another
    type, raises `SM4Error`.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
from gmsm.cipher import SM4Cipher
from gmsm.modes import sm4_cbc, sm4_ecb

key = bytes(range(16))
iv = bytes(16)

block = SM4Cipher(key).encrypt_block(b"0123456789abcdef")
assert SM4Cipher(key).decrypt_block(block) == b"0123456789abcdef"

ciphertext = sm4_cbc(key, b"hello world", True, iv)
assert sm4_cbc(key, ciphertext, False, iv) == b"hello world"

assert sm4_ecb(key, sm4_ecb(key, b"data", True), False) == b"data"
```

```python
from gmsm.gcm import gcm_decrypt, gcm_encrypt

key = bytes(range(16))
nonce = bytes(12)

ciphertext, tag = gcm_encrypt(key, nonce, b"message", b"header")
plaintext, expected = gcm_decrypt(key, nonce, ciphertext, b"header")
assert plaintext == b"message" and expected == tag
```

```python
from gmsm.pemkeys import read_key_from_pem, write_key_to_pem

key = bytes(range(16))
password = b"password"
pem = write_key_to_pem(key, password)
assert read_key_from_pem(pem, password) == key
```

## What it does not do

- `gcm_decrypt` does not check the tag. It returns the tag the data ought to
  carry, so compare it with the tag you received before you trust the
  plaintext.
- The GCM here differs from standard GCM in two ways, so its ciphertexts and
  tags are not interchangeable with other GCM implementations:
  - The closing GHASH block holds the lengths in bytes, not bits.
  - The counter carries across the whole 16-byte block in its own way.
- The package ships no block-mode object for `p7_block_encrypt` and
  `p7_block_decrypt`. You supply one.
- There is no command-line tool. Everything is used as a library.