"""
SyncCoordinator — Fetch-decrypt and encrypt-store of one vault.

Lifecycle of a vault held by the coordinator:

    UNINITIALIZED --load()--> LOADED --mutation--> DIRTY --save()--> SYNCED
                                                     ^                  |
                                                     +----mutation------+

A failed ``save()`` leaves the vault DIRTY; nothing is retried here.

Security Note:
    The master password is passed per call and never kept on the instance.
"""
import logging
from enum import Enum
from typing import Any, Callable, Optional

from .crypto import encrypt, decrypt
from .data import VaultData
from .exceptions import VaultStateError
from .store import ABSENT, RemoteBlobStore

logger = logging.getLogger("vault_sync.sync")


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    DIRTY = "dirty"
    SYNCED = "synced"


class SyncCoordinator:
    """Ties the cipher and the remote store together for one vault entry.

    Args:
        store: Remote store holding the encrypted payload.
        key: Identity passed to the store's naming strategy (None for
            single-vault deployments).
    """

    def __init__(self, store: RemoteBlobStore, key: Optional[str] = None):
        self._store = store
        self._key = key
        self._data: Optional[VaultData] = None
        self._state = SyncState.UNINITIALIZED

    @property
    def data(self) -> VaultData:
        if self._data is None:
            raise VaultStateError("Vault has not been loaded")
        return self._data

    @property
    def state(self) -> SyncState:
        if self._data is not None and self._data.is_changed:
            return SyncState.DIRTY
        return self._state

    def mark_dirty(self) -> None:
        """Flag the vault as changed after an in-place nested mutation."""
        self.data.changed()

    async def load(self, password: str) -> VaultData:
        """Fetch and decrypt the vault.

        A missing remote entry yields a new, empty vault.

        Raises:
            TransportError: If the remote document cannot be read.
            DecryptionError: If the password is wrong or the data corrupted.
            VaultError: If the decrypted contents are not a vault object.
        """
        payload = await self._store.fetch(self._key)
        if payload is ABSENT:
            data = VaultData(new=True)
        else:
            contents = await decrypt(payload, password)
            data = VaultData.from_dict(contents)
        self._data = data
        self._state = SyncState.LOADED
        logger.info(
            "Vault loaded (%s): %d item(s)",
            "new" if data.new else "existing", len(data.items_list),
        )
        return data

    async def save(self, password: str) -> None:
        """Encrypt and store the current vault.

        Raises:
            VaultStateError: If called before ``load()``.
            TransportError: If the update fails; the vault is left DIRTY.
        """
        data = self.data
        # encrypt serializes before its first suspension point
        generation = data.generation
        try:
            payload = await encrypt(data.to_dict(), password)
            await self._store.store(self._key, payload)
        except Exception:
            data.changed()
            raise
        if data.stored(generation):
            self._state = SyncState.SYNCED
            logger.info("Vault saved: %d item(s)", len(data.items_list))
        else:
            logger.info("Vault saved; changed again while saving")

    async def update(
        self,
        password: str,
        mutate: Callable[[VaultData], Any],
    ) -> VaultData:
        """Apply ``mutate`` to the loaded vault and save it."""
        data = self.data
        mutate(data)
        data.changed()
        await self.save(password)
        return data
