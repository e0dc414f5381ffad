"""
Toofer data model — accounts, vault metadata and encrypted vault records.

All persisted records are JSON encoded with orjson; the field names on disk
(``createdAt`` included) are kept stable so existing vaults stay readable.

Security Note:
    ``Account.secret`` is raw shared key material. Never log it.
"""
import time
import uuid
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import FormatError


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


def normalize_secret(secret: str) -> str:
    """Strip whitespace and upper-case a base32 secret."""
    return "".join(secret.split()).upper()


class Account(BaseModel):
    """A two-factor account: who it is for and the shared secret."""

    id: str = Field(default_factory=new_id)
    name: str
    issuer: str
    secret: str

    @field_validator("secret")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_secret(v)

    @classmethod
    def new(cls, name: str, issuer: str, secret: str) -> "Account":
        """Create an account with a freshly allocated id."""
        return cls(id=new_id(), name=name, issuer=issuer, secret=secret)

    def __repr__(self) -> str:
        # keep the secret out of tracebacks and logs
        return f"<Account id={self.id!r} issuer={self.issuer!r} name={self.name!r}>"

    __str__ = __repr__


class EncryptedVault(BaseModel):
    """One authenticated ciphertext over a serialized account list.

    Every field is base64 text. Instances are immutable: each save
    produces a new record with fresh salt and nonce.
    """

    model_config = ConfigDict(frozen=True)

    iv: str
    data: str
    salt: str

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump())

    @classmethod
    def from_json(cls, raw: bytes | str) -> "EncryptedVault":
        return cls.model_validate(orjson.loads(raw))


class VaultInfo(BaseModel):
    """Plaintext metadata for one vault."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    created_at: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        alias="createdAt",
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def dump_accounts(accounts: list[Account]) -> str:
    """Serialize an account list to the JSON text that gets encrypted."""
    return orjson.dumps([a.model_dump() for a in accounts]).decode("utf-8")


def load_accounts(data: str | bytes) -> list[Account]:
    """Deserialize a decrypted account list.

    Raises:
        FormatError: If the plaintext is not a JSON list of accounts.
    """
    try:
        items: Any = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise FormatError(f"Vault payload is not valid JSON: {err}") from err
    if not isinstance(items, list):
        raise FormatError("Vault payload must be a list of accounts")
    try:
        return [Account.model_validate(item) for item in items]
    except ValueError as err:
        raise FormatError(f"Vault payload holds an invalid account: {err}") from err


def dump_index(vaults: list[VaultInfo]) -> bytes:
    return orjson.dumps([v.model_dump(by_alias=True) for v in vaults])


def load_index(raw: bytes | str) -> list[VaultInfo]:
    """Deserialize the vault index.

    Raises:
        ValueError: If the index is not valid JSON or holds invalid entries.
    """
    items = orjson.loads(raw)
    if not isinstance(items, list):
        raise ValueError("Vault index must be a list")
    return [VaultInfo.model_validate(item) for item in items]
