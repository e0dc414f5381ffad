"""Toofer Vault — passphrase-encrypted multi-vault storage.

Security Note (Threat Model):
    Decrypted accounts and the unlock passphrase live in process memory
    while a session is unlocked. A memory dump of the process could expose
    them. This is an accepted limitation; ``VaultStore.lock()`` drops both.
"""

from .store import VaultStore
from .config import VaultConfig, build_storage
from .crypto import encrypt, decrypt, ensure_secure_context
from .storage import BaseStorage, MemoryStorage, FileStorage, RedisStorage

__all__ = [
    "VaultStore",
    "VaultConfig",
    "build_storage",
    "encrypt",
    "decrypt",
    "ensure_secure_context",
    "BaseStorage",
    "MemoryStorage",
    "FileStorage",
    "RedisStorage",
]
