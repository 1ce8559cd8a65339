"""
Symmetric encryption helpers for store exports.

    key        = SHA-256(secret)                 # 32 bytes → AES-256
    ciphertext = AES-256-CBC(key, iv, PKCS7(plaintext))

A fresh 16-byte IV is drawn from os.urandom for every encryption; reusing an IV
under the same key would leak equality of plaintext prefixes.
"""

import hashlib
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from gadget_tracker.exceptions import DecryptionError

__all__ = ["IV_SIZE", "derive_key", "new_iv", "encrypt", "decrypt"]

logger = logging.getLogger(__name__)

IV_SIZE = 16                                  # AES block size in bytes
_BLOCK_BITS = algorithms.AES.block_size       # 128


def derive_key(secret: str) -> bytes:
    """Deterministically derive a 32-byte AES key from *secret*."""
    return hashlib.sha256(secret.encode("utf-8")).digest()


def new_iv() -> bytes:
    return os.urandom(IV_SIZE)


def encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """PKCS7-pad *plaintext* and encrypt it with AES-CBC."""
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Decrypt AES-CBC *ciphertext* and strip PKCS7 padding.

    Raises:
        DecryptionError: wrong key, wrong IV length, truncated ciphertext
                         or invalid padding.
    """
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        logger.debug("AES-CBC decryption failed: %s", exc)
        raise DecryptionError("unable to decrypt export (wrong secret or corrupt data)") from exc
