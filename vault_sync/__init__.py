"""Vault Sync — Client-side encrypted vault synchronization.

Security Note (Threat Model):
    The vault is encrypted before leaving the device; the remote document
    only ever sees base64 envelopes. The decrypted vault lives in process
    memory while loaded. Concurrent writers to the same entry overwrite one
    another (last writer wins); there is no conflict detection.
"""

from .version import __version__
from .exceptions import (
    VaultError,
    ConfigError,
    TransportError,
    DecryptionError,
    VaultStateError,
)
from .conf import StoreConfig
from .crypto import derive_key, encrypt, decrypt
from .naming import EntryNaming, FixedEntry, PerIdentityEntry
from .store import ABSENT, RemoteBlobStore
from .data import VaultData
from .sync import SyncCoordinator, SyncState

__all__ = [
    "__version__",
    "VaultError",
    "ConfigError",
    "TransportError",
    "DecryptionError",
    "VaultStateError",
    "StoreConfig",
    "derive_key",
    "encrypt",
    "decrypt",
    "EntryNaming",
    "FixedEntry",
    "PerIdentityEntry",
    "ABSENT",
    "RemoteBlobStore",
    "VaultData",
    "SyncCoordinator",
    "SyncState",
]
