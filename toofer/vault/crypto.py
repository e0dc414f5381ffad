"""
Vault Cipher — passphrase-derived authenticated encryption of a vault.

Key derivation: PBKDF2-HMAC-SHA256(passphrase, salt 16B, 100 000 iterations)
→ 256-bit key → AES-GCM (96-bit nonce, 128-bit tag).

Stored record (all base64 text)::

    {"iv": nonce, "data": ciphertext || tag, "salt": salt}

The KDF parameters are not recorded per record; changing them requires a
new record format.

Security Note:
    Never log passphrases, plaintext or ciphertext values.
    A wrong passphrase and corrupted data raise the same AuthenticationError.
"""
import os
import base64
import asyncio
import binascii
import logging

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import AuthenticationError, PreconditionError
from ..models import EncryptedVault

logger = logging.getLogger("toofer.vault")

ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16


# ---------------------------------------------------------------------------
# Provider checks
# ---------------------------------------------------------------------------

def _provider_supported() -> bool:
    """Return whether the provider offers PBKDF2-HMAC-SHA256 and AES-GCM."""
    try:
        PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=bytes(SALT_SIZE),
            iterations=1,
        )
        AESGCM(bytes(KEY_LENGTH))
    except UnsupportedAlgorithm:
        return False
    return True


def ensure_secure_context() -> None:
    """Fail before touching key material if the provider is incomplete.

    Raises:
        PreconditionError: If PBKDF2 or AES-GCM is unavailable.
    """
    if not _provider_supported():
        raise PreconditionError(
            "Cryptography provider lacks PBKDF2-HMAC-SHA256 or AES-GCM support"
        )


# ---------------------------------------------------------------------------
# Text encoding
# ---------------------------------------------------------------------------

def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: str, salt: bytes) -> bytes:
    """Derive a 32-byte AES key from a passphrase.

    Args:
        passphrase: User passphrase (UTF-8 encoded before stretching).
        salt: Per-record random salt.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, passphrase: str) -> EncryptedVault:
    """Encrypt a serialized account list under a passphrase.

    A fresh salt and nonce are drawn on every call.

    Args:
        plaintext: Serialized account list.
        passphrase: User passphrase.

    Returns:
        New EncryptedVault record.
    """
    ensure_secure_context()
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(passphrase, salt)
    ct = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return EncryptedVault(
        iv=_b64encode(nonce),
        data=_b64encode(ct),
        salt=_b64encode(salt),
    )


def decrypt(vault: EncryptedVault, passphrase: str) -> str:
    """Decrypt a vault record.

    Args:
        vault: Record produced by ``encrypt``.
        passphrase: User passphrase.

    Returns:
        The original UTF-8 plaintext.

    Raises:
        AuthenticationError: Wrong passphrase or corrupted record.
    """
    ensure_secure_context()
    try:
        salt = _b64decode(vault.salt)
        nonce = _b64decode(vault.iv)
        ct = _b64decode(vault.data)
    except (binascii.Error, ValueError):
        raise AuthenticationError() from None
    if len(nonce) != NONCE_SIZE or len(ct) < TAG_SIZE:
        raise AuthenticationError()
    key = derive_key(passphrase, salt)
    try:
        plaintext = AESGCM(key).decrypt(nonce, ct, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError):
        logger.debug("Vault record failed authentication")
        raise AuthenticationError() from None


async def encrypt_async(plaintext: str, passphrase: str) -> EncryptedVault:
    """``encrypt`` off the event loop; suspends while the KDF runs."""
    return await asyncio.to_thread(encrypt, plaintext, passphrase)


async def decrypt_async(vault: EncryptedVault, passphrase: str) -> str:
    """``decrypt`` off the event loop; suspends while the KDF runs."""
    return await asyncio.to_thread(decrypt, vault, passphrase)
