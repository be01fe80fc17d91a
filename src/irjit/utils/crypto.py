"""AES-256 payload encryption for embedded IR.

The key schedule matches what the Windows CryptoAPI produces for
``CryptDeriveKey(CALG_AES_256)`` over a SHA-256 hash: the 32-byte digest of
the key material is the AES key, the mode is CBC with an all-zero IV, and the
last block carries PKCS#7 padding.
"""

from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from irjit.errors import DecryptionError

BLOCK_SIZE = 16
KEY_SIZE = 32
_ZERO_IV = bytes(BLOCK_SIZE)

# Raw bitcode and the bitcode wrapper header.
BITCODE_MAGIC = b"BC\xc0\xde"
BITCODE_WRAPPER_MAGIC = b"\xde\xc0\x17\x0b"


def derive_key(key_material: bytes) -> bytes:
    """SHA-256 the key material into a 256-bit AES key."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(key_material)
    return digest.finalize()


def generate_key_material() -> bytes:
    return secrets.token_bytes(KEY_SIZE)


def is_bitcode(data: bytes) -> bool:
    return data[:4] in (BITCODE_MAGIC, BITCODE_WRAPPER_MAGIC)


def looks_like_ir(data: bytes) -> bool:
    """Bitcode by magic, or text that decodes as UTF-8."""
    if is_bitcode(data):
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _cipher(key_material: bytes) -> Cipher:
    return Cipher(algorithms.AES(derive_key(key_material)), modes.CBC(_ZERO_IV))


def encrypt(plaintext: bytes, key_material: bytes) -> bytes:
    """Encrypt *plaintext* so that :func:`decrypt` with the same key recovers it."""
    if not key_material:
        raise ValueError("key material must not be empty")
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _cipher(key_material).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(ciphertext: bytes, key_material: bytes) -> bytes:
    """Decrypt an embedded IR payload.

    Raises DecryptionError instead of returning partial or garbage output:
    empty inputs, a length that is not a whole number of blocks, a padding
    check that fails (wrong key or tampered data), an empty plaintext, or a
    plaintext that is neither bitcode nor text.
    """
    if not key_material:
        raise DecryptionError("empty key")
    if not ciphertext:
        raise DecryptionError("empty ciphertext")
    if len(ciphertext) % BLOCK_SIZE:
        raise DecryptionError(
            f"malformed ciphertext: {len(ciphertext)} bytes is not a multiple "
            f"of the {BLOCK_SIZE}-byte block size"
        )

    decryptor = _cipher(key_material).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        plaintext = unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise DecryptionError("key rejected: invalid padding after decryption") from exc

    if not plaintext:
        raise DecryptionError("decryption produced no data")
    if not looks_like_ir(plaintext):
        raise DecryptionError("key rejected: plaintext is neither bitcode nor text IR")
    return plaintext
