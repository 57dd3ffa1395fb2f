"""Vault Sync exceptions.

Missing remote entries are not errors: ``RemoteBlobStore.fetch`` returns
``ABSENT`` for them.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for all vault_sync errors."""

    def __init__(self, message: Optional[str] = None, *args):
        self.message = message or self.__doc__
        super().__init__(self.message, *args)

    def __str__(self) -> str:
        return self.message


class ConfigError(VaultError):
    """Required store credentials are missing or empty."""


class TransportError(VaultError):
    """The remote document store could not be reached or refused the request."""

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class DecryptionError(VaultError):
    """Could not decrypt data: password may be incorrect or data corrupted."""


class VaultStateError(VaultError):
    """Operation not allowed in the current sync state."""
