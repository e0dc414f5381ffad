"""
Vault Configuration — storage selection and record key names.

Reads settings from environment variables:
    TOOFER_STORAGE_BACKEND = memory | file   (default: file)
    TOOFER_DATA_DIR = <directory for file storage>
    TOOFER_DEFAULT_VAULT_NAME = <name given to migrated legacy vaults>

Security Note:
    Configuration never carries passphrases or key material.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from .. import conf
from .storage import BaseStorage, FileStorage, MemoryStorage

logger = logging.getLogger("toofer.vault")


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    storage_backend: str = Field(default="file")
    data_dir: str = Field(default=conf.DATA_DIR)
    index_key: str = Field(default=conf.VAULTS_INDEX_KEY, min_length=1)
    vault_prefix: str = Field(default=conf.VAULT_PREFIX, min_length=1)
    legacy_key: str = Field(default=conf.LEGACY_VAULT_KEY, min_length=1)
    default_vault_name: str = Field(default=conf.DEFAULT_VAULT_NAME, min_length=1)

    @field_validator("storage_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend is supported."""
        v = v.lower()
        if v not in ("memory", "file"):
            raise ValueError(f"Unsupported storage backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_key_layout(self) -> "VaultConfig":
        """Ensure index and legacy keys cannot be mistaken for vault blobs."""
        for name in ("index_key", "legacy_key"):
            key = getattr(self, name)
            if key.startswith(self.vault_prefix):
                raise ValueError(
                    f"{name} {key!r} must not start with vault_prefix "
                    f"{self.vault_prefix!r}"
                )
        if self.index_key == self.legacy_key:
            raise ValueError("index_key and legacy_key must differ")
        return self

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        return cls(
            storage_backend=os.environ.get("TOOFER_STORAGE_BACKEND", "file"),
            data_dir=os.environ.get("TOOFER_DATA_DIR", conf.DATA_DIR),
            default_vault_name=os.environ.get(
                "TOOFER_DEFAULT_VAULT_NAME", conf.DEFAULT_VAULT_NAME
            ),
        )

    def vault_key(self, vault_id: str) -> str:
        """Storage key of the encrypted blob for ``vault_id``."""
        return f"{self.vault_prefix}{vault_id}"


def build_storage(config: VaultConfig) -> BaseStorage:
    """Return the storage backend named by the configuration."""
    if config.storage_backend == "memory":
        logger.debug("Using in-memory vault storage")
        return MemoryStorage()
    logger.debug("Using file vault storage at %s", config.data_dir)
    return FileStorage(config.data_dir)
