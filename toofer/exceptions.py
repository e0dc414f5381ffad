"""Toofer exception hierarchy."""


class TooferError(Exception):
    """Base class for every error raised by Toofer."""


class FormatError(TooferError, ValueError):
    """Malformed OTPAuth URI or base32 secret."""


class AuthenticationError(TooferError):
    """Vault could not be decrypted.

    Raised for a wrong passphrase and for corrupted data alike; the two
    cases are intentionally not distinguished.
    """

    def __init__(self, message: str = "Unable to unlock vault: wrong passphrase or corrupted data"):
        super().__init__(message)


class NotFoundError(TooferError, KeyError):
    """Missing vault id or legacy record."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep plain messages.
        return str(self.args[0]) if self.args else ""


class PreconditionError(TooferError, RuntimeError):
    """Cryptography provider lacks PBKDF2 or AEAD support."""


class VaultLockedError(TooferError):
    """Session operation attempted while no vault is unlocked."""
