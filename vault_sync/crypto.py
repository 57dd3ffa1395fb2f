"""
Vault Crypto Core — Key derivation, encryption/decryption, and serialization.

Implements password-based encryption for the synchronized vault:
- Key derivation: PBKDF2-HMAC-SHA256(password, salt, 310000) → 256-bit key
- Encryption: AES-256-GCM → [salt 16B|iv 12B|ciphertext + tag 16B] → base64

Security Note:
    Never log passwords, derived keys, plaintext or envelope values.
    Salt and IV are drawn fresh from os.urandom on every encryption, so
    the same (vault, password) pair never yields the same envelope.
"""
import os
import base64
import asyncio
import binascii
import logging
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import DecryptionError

logger = logging.getLogger("vault_sync.crypto")

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit IV
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256
PBKDF2_ITERATIONS = 310_000
HEADER_SIZE = SALT_SIZE + NONCE_SIZE

# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    password: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """Derive a 32-byte AES-GCM key from a master password.

    Args:
        password: Master password (UTF-8 text).
        salt: 16 random bytes stored next to the ciphertext.
        iterations: PBKDF2 work factor.

    Returns:
        32-byte derived key.

    Raises:
        ValueError: If salt is not exactly 16 bytes.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(
            f"salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


# ---------------------------------------------------------------------------
# Envelope encryption (byte level)
# ---------------------------------------------------------------------------

def seal(plaintext: bytes, password: str) -> bytes:
    """Encrypt plaintext into a self-describing envelope.

    Format: [salt 16B][iv 12B][encrypted_payload + GCM_tag 16B]

    Args:
        plaintext: Data to encrypt.
        password: Master password.

    Returns:
        Envelope bytes.
    """
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password, salt)
    ct = AESGCM(key).encrypt(nonce, plaintext, None)
    return salt + nonce + ct


def open_envelope(envelope: bytes, password: str) -> bytes:
    """Verify and decrypt an envelope produced by :func:`seal`.

    Raises:
        DecryptionError: If the envelope is too short, the password is wrong
            or the data was modified. The causes are not distinguished.
    """
    if len(envelope) < HEADER_SIZE:
        raise DecryptionError()
    salt = envelope[:SALT_SIZE]
    nonce = envelope[SALT_SIZE:HEADER_SIZE]
    ct = envelope[HEADER_SIZE:]
    key = derive_key(password, salt)
    try:
        return AESGCM(key).decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionError() from err


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Any) -> bytes:
    """Serialize a JSON value to canonical bytes for encryption.

    Supports: str, int, float, dict, list, bool, None. Mapping keys are sorted.
    """
    return orjson.dumps(value, option=orjson.OPT_SORT_KEYS)


def deserialize_value(data: bytes) -> Any:
    """Deserialize bytes produced by :func:`serialize_value`."""
    return orjson.loads(data)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def encode_envelope(envelope: bytes) -> str:
    return base64.b64encode(envelope).decode("ascii")


def decode_envelope(text: str) -> bytes:
    """Decode base64 envelope text, mapping malformed input to DecryptionError.

    Whitespace and line breaks inside the text are ignored.
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("ascii")
        compact = "".join(text.split())
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError, TypeError, AttributeError) as err:
        raise DecryptionError() from err


async def encrypt(plaintext: Any, password: str) -> str:
    """Encrypt a vault object with a master password.

    Key derivation and AES-GCM run in a worker thread so the event loop is
    not blocked by the PBKDF2 work factor.

    Args:
        plaintext: JSON-serializable vault object.
        password: Master password.

    Returns:
        Base64 envelope text.
    """
    data = serialize_value(plaintext)
    envelope = await asyncio.to_thread(seal, data, password)
    logger.debug("Encrypted vault payload (%d bytes)", len(envelope))
    return encode_envelope(envelope)


async def decrypt(envelope: str, password: str) -> Any:
    """Decrypt base64 envelope text back to the vault object.

    Args:
        envelope: Base64 text produced by :func:`encrypt`.
        password: Master password.

    Returns:
        Decrypted vault object.

    Raises:
        DecryptionError: On malformed input, wrong password or tampering.
    """
    raw = decode_envelope(envelope)
    if len(raw) < HEADER_SIZE:
        raise DecryptionError()
    plaintext = await asyncio.to_thread(open_envelope, raw, password)
    try:
        return deserialize_value(plaintext)
    except orjson.JSONDecodeError as err:
        raise DecryptionError() from err
