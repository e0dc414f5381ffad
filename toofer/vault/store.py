"""
VaultStore — multi-vault lifecycle over a key-value byte storage.

Provides the public API for the vault system:
- ``list_vaults()`` / ``has_vault()`` — enumerate the plaintext index
- ``create_vault()`` / ``save_vault()`` / ``load_vault()`` — encrypted blobs
- ``delete_vault()`` / ``rename_vault()`` — lifecycle and metadata
- ``migrate_legacy()`` — fold the pre-index single vault into the index
- ``reconcile()`` — repair the index after an interrupted two-key write
- ``unlock()`` / ``lock()`` / ``save()`` — the in-memory session

Storage layout::

    toofer_vaults          -> JSON [VaultInfo, ...]   (plaintext index)
    toofer_vault_<id>      -> JSON EncryptedVault     (one per vault)
    toofer_vault           -> JSON EncryptedVault     (legacy, unindexed)

Index and blob are written separately, blob first, with no multi-key
transaction. A crash between the two writes leaves an orphan blob or a
dangling index entry; ``reconcile()`` drops the latter and reports the former.

Security Note:
    Never log passphrases, secrets, plaintext or ciphertext values. Only log
    vault ids, names and counts.
"""
import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..exceptions import AuthenticationError, NotFoundError, VaultLockedError
from ..models import (
    Account,
    EncryptedVault,
    VaultInfo,
    dump_accounts,
    dump_index,
    load_accounts,
    load_index,
    new_id,
)
from ..otp import validate_secret
from ..session import VaultSession
from .config import VaultConfig
from .crypto import decrypt_async, encrypt_async
from .storage import BaseStorage

logger = logging.getLogger("toofer.vault")


class VaultStore:
    """Encrypted multi-vault store bound to one storage backend.

    Every vault is an EncryptedVault blob plus a VaultInfo entry in the
    plaintext index. Operations are issued sequentially by one session;
    concurrent writers on the same storage can lose updates.
    """

    def __init__(
        self,
        storage: BaseStorage,
        config: Optional[VaultConfig] = None,
        session: Optional[VaultSession] = None,
    ):
        self._storage = storage
        self._config = config or VaultConfig()
        self._session = session or VaultSession()

    def __repr__(self) -> str:
        return f"<VaultStore storage={self._storage!r} session={self._session!r}>"

    @property
    def storage(self) -> BaseStorage:
        return self._storage

    @property
    def session(self) -> VaultSession:
        return self._session

    # ------------------------------------------------------------------
    # Index helpers
    # ------------------------------------------------------------------

    def _blob_key(self, vault_id: str) -> str:
        """Storage key of a vault blob.

        Raises:
            NotFoundError: If the id cannot name a stored vault.
        """
        key = self._config.vault_key(vault_id)
        if not self._storage.is_valid_key(key):
            raise NotFoundError(f"Vault not found: {vault_id}")
        return key

    async def _save_index(self, vaults: list[VaultInfo]) -> None:
        await self._storage.set(self._config.index_key, dump_index(vaults))

    async def _read_blob(self, key: str) -> Optional[EncryptedVault]:
        """Read an EncryptedVault record; None if the key is absent.

        Raises:
            AuthenticationError: If the record cannot be parsed.
        """
        raw = await self._storage.get(key)
        if raw is None:
            return None
        try:
            return EncryptedVault.from_json(raw)
        except (ValueError, ValidationError):
            raise AuthenticationError() from None

    async def _decrypt_accounts(
        self, vault: EncryptedVault, passphrase: str
    ) -> list[Account]:
        plaintext = await decrypt_async(vault, passphrase)
        return load_accounts(plaintext)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_vaults(self) -> list[VaultInfo]:
        """Return the vault index in insertion order.

        A missing or unparsable index yields an empty list.
        """
        raw = await self._storage.get(self._config.index_key)
        if not raw:
            return []
        try:
            return load_index(raw)
        except (ValueError, ValidationError) as err:
            logger.warning("Vault index is unreadable, treating as empty: %s", err)
            return []

    async def get_vault_info(self, vault_id: str) -> Optional[VaultInfo]:
        for info in await self.list_vaults():
            if info.id == vault_id:
                return info
        return None

    async def has_legacy_vault(self) -> bool:
        return await self._storage.exists(self._config.legacy_key)

    async def has_vault(self) -> bool:
        """True if any indexed vault or a legacy record exists."""
        if await self.list_vaults():
            return True
        return await self.has_legacy_vault()

    async def create_vault(
        self, name: str, accounts: list[Account], passphrase: str
    ) -> str:
        """Encrypt ``accounts`` into a new vault and index it.

        Args:
            name: Display name of the vault.
            accounts: Initial accounts (may be empty).
            passphrase: Passphrase protecting the vault.

        Returns:
            The new vault id.
        """
        vault_id = new_id()
        info = VaultInfo(id=vault_id, name=name)
        encrypted = await encrypt_async(dump_accounts(accounts), passphrase)

        # blob first, then index
        await self._storage.set(self._config.vault_key(vault_id), encrypted.to_json())
        vaults = await self.list_vaults()
        vaults.append(info)
        await self._save_index(vaults)

        logger.info(
            "Vault created: id=%s name=%r accounts=%d", vault_id, name, len(accounts),
        )
        return vault_id

    async def save_vault(
        self, vault_id: str, accounts: list[Account], passphrase: str
    ) -> None:
        """Re-encrypt ``accounts`` with fresh salt and nonce, replacing the blob.

        Raises:
            NotFoundError: If ``vault_id`` cannot name a stored vault.
        """
        key = self._blob_key(vault_id)
        encrypted = await encrypt_async(dump_accounts(accounts), passphrase)
        await self._storage.set(key, encrypted.to_json())
        logger.debug("Vault saved: id=%s accounts=%d", vault_id, len(accounts))

    async def load_vault(self, vault_id: str, passphrase: str) -> list[Account]:
        """Decrypt and return the accounts of a vault.

        Raises:
            NotFoundError: If no blob exists for ``vault_id`` or the id is
                malformed.
            AuthenticationError: Wrong passphrase or corrupted blob.
        """
        vault = await self._read_blob(self._blob_key(vault_id))
        if vault is None:
            raise NotFoundError(f"Vault not found: {vault_id}")
        return await self._decrypt_accounts(vault, passphrase)

    async def delete_vault(self, vault_id: str) -> None:
        """Remove the blob, then the index entry.

        A malformed id has no blob; any index entry under it is still dropped.
        """
        try:
            key = self._blob_key(vault_id)
        except NotFoundError:
            key = None
        if key is not None:
            await self._storage.delete(key)
        vaults = await self.list_vaults()
        remaining = [v for v in vaults if v.id != vault_id]
        if len(remaining) != len(vaults):
            await self._save_index(remaining)
        if self._session.vault_id == vault_id:
            self._session.lock()
        logger.info("Vault deleted: id=%s", vault_id)

    async def rename_vault(self, vault_id: str, new_name: str) -> None:
        """Rename a vault in the index. No-op if the id is absent."""
        vaults = await self.list_vaults()
        for info in vaults:
            if info.id == vault_id:
                info.name = new_name
                await self._save_index(vaults)
                logger.info("Vault renamed: id=%s name=%r", vault_id, new_name)
                return
        logger.debug("Rename ignored, vault not indexed: id=%s", vault_id)

    async def migrate_legacy(self, passphrase: str) -> str:
        """Move the legacy single-vault record into the index.

        Raises:
            NotFoundError: If there is no legacy record (already migrated).
            AuthenticationError: Wrong passphrase or corrupted record.

        Returns:
            Id of the new vault.
        """
        legacy = await self._read_blob(self._config.legacy_key)
        if legacy is None:
            raise NotFoundError("No legacy vault to migrate")
        accounts = await self._decrypt_accounts(legacy, passphrase)
        vault_id = await self.create_vault(
            self._config.default_vault_name, accounts, passphrase,
        )
        await self._storage.delete(self._config.legacy_key)
        logger.info(
            "Legacy vault migrated: id=%s accounts=%d", vault_id, len(accounts),
        )
        return vault_id

    async def clear(self) -> None:
        """Remove every vault blob, the index and the legacy record."""
        blob_keys = await self._storage.keys(self._config.vault_prefix)
        for key in blob_keys:
            await self._storage.delete(key)
        await self._storage.delete(self._config.index_key)
        await self._storage.delete(self._config.legacy_key)
        self._session.lock()
        logger.warning("All vaults cleared (%d blob(s) removed)", len(blob_keys))

    async def reconcile(self) -> list[str]:
        """Repair the index after an interrupted create or delete.

        Index entries without a blob are dropped. Blobs without an index
        entry are left in place and reported.

        Returns:
            Ids of orphan blobs.
        """
        prefix = self._config.vault_prefix
        blob_ids = {
            key[len(prefix):] for key in await self._storage.keys(prefix)
        }
        vaults = await self.list_vaults()
        kept = [v for v in vaults if v.id in blob_ids]
        if len(kept) != len(vaults):
            dropped = [v.id for v in vaults if v.id not in blob_ids]
            logger.warning(
                "Dropping %d index entr(y/ies) with no vault data: %s",
                len(dropped), dropped,
            )
            await self._save_index(kept)
        indexed = {v.id for v in kept}
        orphans = sorted(blob_ids - indexed)
        for orphan in orphans:
            logger.warning("Vault data without index entry: id=%s", orphan)
        return orphans

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _require_unlocked(self) -> VaultSession:
        if not self._session.unlocked:
            raise VaultLockedError("No vault is unlocked")
        return self._session

    async def unlock(self, vault_id: str, passphrase: str) -> list[Account]:
        """Load a vault into the session.

        On failure the session is left untouched.
        """
        accounts = await self.load_vault(vault_id, passphrase)
        self._session.open(vault_id, passphrase, accounts)
        logger.info("Vault unlocked: id=%s accounts=%d", vault_id, len(accounts))
        return self._session.accounts

    def lock(self) -> None:
        """Reset the session."""
        vault_id = self._session.vault_id
        self._session.lock()
        if vault_id:
            logger.info("Vault locked: id=%s", vault_id)

    async def save(self) -> None:
        """Persist the session accounts under the session passphrase."""
        session = self._require_unlocked()
        await self.save_vault(session.vault_id, session.accounts, session.passphrase)
        session.is_changed = False

    async def add_account(self, account: Account) -> Account:
        """Add an account to the unlocked vault and persist.

        Raises:
            FormatError: If the secret holds no base32 key material.
        """
        session = self._require_unlocked()
        validate_secret(account.secret)
        session.add_account(account)
        await self.save()
        return account

    async def update_account(self, account_id: str, **updates: Any) -> Account:
        """Edit an account of the unlocked vault and persist.

        Raises:
            NotFoundError: If the account is not in the session.
            FormatError: If a new secret holds no base32 key material.
        """
        session = self._require_unlocked()
        if "secret" in updates:
            updates["secret"] = validate_secret(updates["secret"])
        updated = session.update_account(account_id, **updates)
        if updated is None:
            raise NotFoundError(f"Account not found: {account_id}")
        await self.save()
        return updated

    async def delete_account(self, account_id: str) -> None:
        """Remove an account from the unlocked vault and persist.

        Raises:
            NotFoundError: If the account is not in the session.
        """
        if not self._require_unlocked().delete_account(account_id):
            raise NotFoundError(f"Account not found: {account_id}")
        await self.save()
