from typing import Any, Optional
from collections.abc import Iterator
from datetime import datetime, timezone

from .models import Account


class VaultSession:
    """Unlocked vault state for one logical session.

    Holds the decrypted accounts, the passphrase used to unlock and the
    active vault id. Never persisted; ``lock()`` resets every field.
    """

    def __init__(self) -> None:
        self.lock()

    def __repr__(self) -> str:
        return (
            f'<Toofer-Session [unlocked:{self.unlocked}, vault:{self.vault_id!r}] '
            f'accounts={len(self._accounts)}>'
        )

    # --- Lifecycle ---

    def open(self, vault_id: str, passphrase: str, accounts: list[Account]) -> None:
        """Mark the session unlocked for ``vault_id``."""
        self._vault_id = vault_id
        self._passphrase = passphrase
        self._accounts = list(accounts)
        self._unlocked = True
        self._changed = False
        self._unlocked_at = datetime.now(timezone.utc)

    def lock(self) -> None:
        """Forget accounts, passphrase and vault id."""
        self._accounts: list[Account] = []
        self._passphrase = ''
        self._vault_id = ''
        self._unlocked = False
        self._changed = False
        self._unlocked_at: Optional[datetime] = None

    # --- Properties ---

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    @property
    def vault_id(self) -> str:
        return self._vault_id

    @property
    def passphrase(self) -> str:
        return self._passphrase

    @property
    def unlocked_at(self) -> Optional[datetime]:
        return self._unlocked_at

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    @accounts.setter
    def accounts(self, value: list[Account]) -> None:
        self._accounts = list(value)
        self._changed = True

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    # --- Accounts ---

    def get_account(self, account_id: str) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def add_account(self, account: Account) -> None:
        self._accounts.append(account)
        self._changed = True

    def update_account(self, account_id: str, **updates: Any) -> Optional[Account]:
        """Replace fields of an account; returns the updated account.

        ``id`` cannot be changed. Unknown ids are ignored.
        """
        updates.pop('id', None)
        for index, account in enumerate(self._accounts):
            if account.id == account_id:
                # re-validate so secrets stay normalized
                updated = Account.model_validate({**account.model_dump(), **updates})
                self._accounts[index] = updated
                self._changed = True
                return updated
        return None

    def delete_account(self, account_id: str) -> bool:
        before = len(self._accounts)
        self._accounts = [a for a in self._accounts if a.id != account_id]
        deleted = len(self._accounts) != before
        if deleted:
            self._changed = True
        return deleted

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(list(self._accounts))

    def __contains__(self, account_id: object) -> bool:
        return self.get_account(str(account_id)) is not None
