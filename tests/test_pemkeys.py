import pytest

from gmsm.cipher import SM4Error
from gmsm.pemkeys import (
    read_key_from_pem,
    read_key_from_pem_file,
    write_key_to_pem,
    write_key_to_pem_file,
)

KEY = bytes(range(16))
PASSWORD = "password"


def test_plain_pem_layout():
    pem = write_key_to_pem(KEY)
    assert pem == (
        b"-----BEGIN SM4 KEY-----\n"
        b"AAECAwQFBgcICQoLDA0ODw==\n"
        b"-----END SM4 KEY-----\n"
    )


def test_plain_round_trip():
    assert read_key_from_pem(write_key_to_pem(KEY)) == KEY


def test_plain_read_ignores_password():
    password = PASSWORD
    assert read_key_from_pem(write_key_to_pem(KEY), password=password) == KEY


def test_encrypted_headers():
    password = PASSWORD
    text = write_key_to_pem(KEY, password=password).decode("ascii")
    lines = text.splitlines()
    assert lines[0] == "-----BEGIN SM4 ENCRYPTED KEY-----"
    assert lines[1] == "Proc-Type: 4,ENCRYPTED"
    assert lines[2].startswith("DEK-Info: AES-256-CBC,")
    assert len(lines[2].split(",")[1]) == 32
    assert lines[-1] == "-----END SM4 ENCRYPTED KEY-----"


def test_encrypted_round_trip():
    password = PASSWORD
    pem = write_key_to_pem(KEY, password=password)
    assert read_key_from_pem(pem, password=password) == KEY


def test_encrypted_round_trip_bytes_password():
    password = PASSWORD.encode()
    pem = write_key_to_pem(KEY, password=password)
    assert read_key_from_pem(pem, password=password) == KEY


def test_encrypted_needs_password():
    password = PASSWORD
    pem = write_key_to_pem(KEY, password=password)
    with pytest.raises(SM4Error, match="need passwd"):
        read_key_from_pem(pem)


def test_encrypted_with_wrong_type_rejected():
    password = PASSWORD
    pem = write_key_to_pem(KEY, password=password).replace(b"SM4 ENCRYPTED KEY", b"OTHER KEY")
    with pytest.raises(SM4Error, match="unknown type"):
        read_key_from_pem(pem, password=password)


def test_plain_with_wrong_type_rejected():
    pem = write_key_to_pem(KEY).replace(b"SM4 KEY", b"RSA KEY")
    with pytest.raises(SM4Error, match="unknown type"):
        read_key_from_pem(pem)


def test_not_pem_rejected():
    with pytest.raises(SM4Error, match="pem decode failed"):
        read_key_from_pem(b"nothing to see here")


def test_misaligned_encrypted_body_rejected():
    password = PASSWORD
    pem = (
        b"-----BEGIN SM4 ENCRYPTED KEY-----\n"
        b"Proc-Type: 4,ENCRYPTED\n"
        b"DEK-Info: AES-256-CBC,00000000000000000000000000000000\n"
        b"\n"
        b"AAECAwQ=\n"
        b"-----END SM4 ENCRYPTED KEY-----\n"
    )
    with pytest.raises(SM4Error, match="multiple of the block size"):
        read_key_from_pem(pem, password=password)


def test_unknown_encryption_mode_rejected():
    password = PASSWORD
    pem = write_key_to_pem(KEY, password=password).replace(b"AES-256-CBC", b"RC2-CBC")
    with pytest.raises(SM4Error, match="unknown encryption mode"):
        read_key_from_pem(pem, password=password)


def test_file_round_trip_plain(tmp_path):
    path = tmp_path / "key.pem"
    write_key_to_pem_file(path, KEY)
    assert read_key_from_pem_file(path) == KEY
    assert path.read_bytes().startswith(b"-----BEGIN SM4 KEY-----")


def test_file_round_trip_encrypted(tmp_path):
    password = PASSWORD
    path = tmp_path / "key.pem"
    write_key_to_pem_file(str(path), KEY, password=password)
    assert read_key_from_pem_file(str(path), password=password) == KEY


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_key_from_pem_file(tmp_path / "absent.pem")


def test_pem_found_after_leading_text():
    pem = b"leading text\n" + write_key_to_pem(KEY)
    assert read_key_from_pem(pem) == KEY