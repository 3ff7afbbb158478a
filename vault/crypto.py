"""
Cryptographic operations for PassVault.

This module provides the primitives the vault engine relies on:
- Key derivation using Argon2id (memory-hard KDF) with a per-vault salt
- Field-level authenticated encryption using AES-GCM, rendered as hex
- A verification token used to check a passphrase without storing it
- Best-effort erasure of key material held in mutable buffers

Every encrypted field carries its own random nonce and authentication tag, so
tampering with a stored record is detected when the field is decoded.
"""

import os
import re
import base64
import ctypes
from typing import Tuple, Optional, Dict, Any

# Cryptography library imports for modern cryptographic primitives
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from . import config

# ==============================================================================
# CRYPTOGRAPHIC CONSTANTS
# ==============================================================================

# Size of cryptographic salt in bytes (256 bits for Argon2)
SALT_SIZE = 32

# Size of AES-GCM nonce in bytes (96 bits as recommended for AES-GCM)
NONCE_SIZE = 12

# Size of AES-GCM authentication tag in bytes (128 bits)
TAG_SIZE = 16

# Size of encryption key in bytes (256 bits for AES-256)
KEY_SIZE = 32

# Size of the random verification token sealed into the vault metadata
VERIFICATION_TOKEN_SIZE = 32

_HEX_PATTERN = re.compile(r'^[0-9a-f]*$')

# ==============================================================================
# CUSTOM EXCEPTION CLASSES
# ==============================================================================

class CipherError(Exception):
    """
    Raised when an encrypted field cannot be decoded.

    Covers malformed hex input, truncated ciphertext and authentication
    failures (wrong key or tampered data).
    """
    pass

# ==============================================================================
# KEY DERIVATION FUNCTIONS
# ==============================================================================

def default_kdf_params() -> Dict[str, int]:
    """Return the configured Argon2id cost parameters."""
    return {
        'time_cost': config.ARGON2_TIME_COST,
        'memory_cost': config.ARGON2_MEMORY_COST,
        'parallelism': config.ARGON2_PARALLELISM,
    }


def derive_master_key(password: str,
                      salt: Optional[bytes] = None,
                      params: Optional[Dict[str, int]] = None) -> Tuple[bytes, bytes]:
    """
    Derive a master key from a passphrase using Argon2id.

    The Argon2id output is passed through HKDF bound to the "encryption"
    context, so the key used by the field cipher is never the raw KDF output.

    Args:
        password (str): Master passphrase (encoded to UTF-8)
        salt (bytes, optional): Per-vault salt. A random SALT_SIZE salt is
            generated when omitted.
        params (dict, optional): Argon2id costs with keys 'time_cost',
            'memory_cost' (KiB) and 'parallelism'. Defaults to the config values.

    Returns:
        Tuple[bytes, bytes]:
            - master_key: KEY_SIZE bytes of AES-256 key material
            - salt: The salt used for derivation

    Security Notes:
        - The same passphrase and salt always yield the same key, which is what
          lets the verification token confirm a passphrase on unlock
        - The salt is vault metadata, not a secret
    """
    if salt is None:
        salt = generate_salt()

    if params is None:
        params = default_kdf_params()

    kdf = Argon2id(
        salt=salt,
        length=KEY_SIZE,
        iterations=params['time_cost'],
        lanes=params['parallelism'],
        memory_cost=params['memory_cost'],
    )

    key = kdf.derive(password.encode("utf-8"))

    return (derive_hkdf_key(key, b"encryption"), salt)


def derive_hkdf_key(key_material: bytes, info: bytes) -> bytes:
    """
    Apply HKDF-SHA256 to key material, binding it to the given context.

    Args:
        key_material (bytes): Input key material from Argon2
        info (bytes): Context label, e.g. b"encryption"

    Returns:
        bytes: KEY_SIZE derived key
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=None,  # Argon2 already consumed the salt
        info=info,
    )
    return hkdf.derive(key_material)


def generate_salt() -> bytes:
    """Generate a random SALT_SIZE salt with os.urandom()."""
    return os.urandom(SALT_SIZE)

# ==============================================================================
# SYMMETRIC ENCRYPTION / DECRYPTION
# ==============================================================================

def _normalize_aes_key(key: bytes) -> bytes:
    """
    Extract exactly KEY_SIZE bytes of AES-256 key material.

    Raises:
        ValueError: If key is shorter than KEY_SIZE
    """
    if len(key) < KEY_SIZE:
        raise ValueError("Encryption key too short for AES-256")
    return bytes(key[:KEY_SIZE])


def encrypt_data(encryption_key: bytes,
                 data: bytes,
                 associated_data: Optional[bytes] = None) -> Tuple[bytes, bytes, bytes]:
    """
    Encrypt data using AES-GCM authenticated encryption.

    Args:
        encryption_key (bytes): At least KEY_SIZE bytes; only the first
            KEY_SIZE are used
        data (bytes): Plaintext
        associated_data (bytes, optional): Authenticated but unencrypted data

    Returns:
        Tuple[bytes, bytes, bytes]: (nonce, ciphertext, tag)
    """
    encryption_key = _normalize_aes_key(encryption_key)

    # Fresh random nonce for every message
    nonce = os.urandom(NONCE_SIZE)

    aesgcm = AESGCM(encryption_key)
    ciphertext_with_tag = aesgcm.encrypt(nonce, data, associated_data)

    ciphertext = ciphertext_with_tag[:-TAG_SIZE]
    tag = ciphertext_with_tag[-TAG_SIZE:]

    return nonce, ciphertext, tag


def decrypt_data(encryption_key: bytes,
                 nonce: bytes,
                 ciphertext: bytes,
                 tag: bytes,
                 associated_data: Optional[bytes] = None) -> Optional[bytes]:
    """
    Decrypt and verify data encrypted with AES-GCM.

    Returns:
        Optional[bytes]: Plaintext if the tag verifies, None otherwise.
    """
    encryption_key = _normalize_aes_key(encryption_key)
    aesgcm = AESGCM(encryption_key)

    try:
        return aesgcm.decrypt(nonce, ciphertext + tag, associated_data)
    except InvalidTag:
        # Wrong key or tampered data
        return None

# ==============================================================================
# FIELD-LEVEL CODEC
# ==============================================================================

def encrypt_field(master_key: bytes, plaintext: str) -> str:
    """
    Encrypt a single text field and render it as lowercase hex.

    The rendered value is hex(nonce || ciphertext || tag): two zero-padded
    lowercase digits per byte and no separators, so it can never contain the
    record delimiter '|' or a newline.

    Args:
        master_key (bytes): Master key from derive_master_key()
        plaintext (str): Field value

    Returns:
        str: Hex-encoded encrypted field
    """
    nonce, ciphertext, tag = encrypt_data(master_key[:KEY_SIZE], plaintext.encode("utf-8"))
    return (nonce + ciphertext + tag).hex()


def decrypt_field(master_key: bytes, hex_value: str) -> str:
    """
    Reverse encrypt_field().

    Raises:
        CipherError: If the value is not even-length lowercase hex, is too short
            to hold a nonce and tag, or fails authentication.
    """
    if len(hex_value) % 2 or not _HEX_PATTERN.match(hex_value):
        raise CipherError("Encrypted field is not valid hex")

    raw = bytes.fromhex(hex_value)
    if len(raw) < NONCE_SIZE + TAG_SIZE:
        raise CipherError("Encrypted field is truncated")

    nonce = raw[:NONCE_SIZE]
    ciphertext = raw[NONCE_SIZE:-TAG_SIZE]
    tag = raw[-TAG_SIZE:]

    plaintext = decrypt_data(master_key[:KEY_SIZE], nonce, ciphertext, tag)
    if plaintext is None:
        raise CipherError("Encrypted field failed authentication")

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CipherError(f"Encrypted field is not UTF-8 text: {e}")

# ==============================================================================
# PASSPHRASE VERIFICATION
# ==============================================================================

def create_verification_token(master_key: bytes) -> Dict[str, str]:
    """
    Seal a random token under the master key for later passphrase checks.

    Returns:
        dict: Base64 'token', 'nonce' and 'tag' ready for JSON metadata.
    """
    token = os.urandom(VERIFICATION_TOKEN_SIZE)
    nonce, ciphertext, tag = encrypt_data(master_key[:KEY_SIZE], token)
    return {
        'token': base64.b64encode(ciphertext).decode('ascii'),
        'nonce': base64.b64encode(nonce).decode('ascii'),
        'tag': base64.b64encode(tag).decode('ascii'),
    }


def verify_verification_token(master_key: bytes, verifier: Dict[str, Any]) -> bool:
    """
    Check a candidate master key against a sealed verification token.

    The key is correct only if the token decrypts and authenticates. The
    plaintext passphrase is never compared.
    """
    try:
        ciphertext = base64.b64decode(verifier['token'])
        nonce = base64.b64decode(verifier['nonce'])
        tag = base64.b64decode(verifier['tag'])
    except (KeyError, TypeError, ValueError):
        return False

    if len(master_key) < KEY_SIZE or len(nonce) != NONCE_SIZE:
        return False

    decrypted = decrypt_data(master_key[:KEY_SIZE], nonce, ciphertext, tag)
    return decrypted is not None and len(decrypted) == VERIFICATION_TOKEN_SIZE

# ==============================================================================
# KEY MATERIAL ERASURE
# ==============================================================================

def secure_erase_bytes(data: bytearray) -> None:
    """
    Overwrite a mutable buffer with zeros.

    Python may still hold copies elsewhere (immutable bytes objects, interpreter
    caches); this only clears the buffer that is passed in.
    """
    if not data:
        return

    for i in range(len(data)):
        data[i] = 0

    ctypes.memset(
        ctypes.addressof(ctypes.c_char.from_buffer(data)),
        0,
        len(data)
    )
