"""SM4 block cipher with ECB, CBC, CFB, OFB and GCM modes, PKCS#7 stream padding and PEM key storage."""

__version__ = "0.1.0"
__all__ = ["cipher", "modes", "gcm", "padding", "pemkeys"]