"""Toofer.

Two-factor authentication accounts in passphrase-encrypted local vaults.
"""
from .version import __version__
from .exceptions import (
    TooferError,
    FormatError,
    AuthenticationError,
    NotFoundError,
    PreconditionError,
    VaultLockedError,
)
from .models import Account, EncryptedVault, VaultInfo
from .session import VaultSession

__all__ = (
    "__version__",
    "TooferError",
    "FormatError",
    "AuthenticationError",
    "NotFoundError",
    "PreconditionError",
    "VaultLockedError",
    "Account",
    "EncryptedVault",
    "VaultInfo",
    "VaultSession",
)
