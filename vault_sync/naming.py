"""Entry naming strategies for the remote document.

A deployment either keeps one vault per document (``FixedEntry``) or one
vault per identity (``PerIdentityEntry``). The store is parameterized by
one of them at construction time.
"""
from abc import ABC, abstractmethod
from typing import Optional


DEFAULT_ENTRY_NAME = "vault.json"


class EntryNaming(ABC):
    """Maps a caller key to a document entry name and its owner metadata."""

    @abstractmethod
    def entry_name(self, key: Optional[str] = None) -> str:
        """Name of the document entry holding the vault for ``key``."""

    def owner(self, key: Optional[str] = None) -> Optional[str]:
        return None


class FixedEntry(EntryNaming):
    """Single-vault deployment: every key maps to the same entry."""

    def __init__(self, name: str = DEFAULT_ENTRY_NAME):
        if not name:
            raise ValueError("Entry name cannot be empty")
        self.name = name

    def entry_name(self, key: Optional[str] = None) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<FixedEntry {self.name!r}>"


class PerIdentityEntry(EntryNaming):
    """Multi-vault deployment: one entry per user identity.

    ``alice`` maps to ``alice.json`` with the default suffix.
    """

    def __init__(self, suffix: str = ".json"):
        self.suffix = suffix

    def _validate(self, key: Optional[str]) -> str:
        if not key or not key.strip():
            raise ValueError("An identity is required for per-identity entries")
        if "/" in key:
            raise ValueError("Identity cannot contain '/'")
        return key

    def entry_name(self, key: Optional[str] = None) -> str:
        return f"{self._validate(key)}{self.suffix}"

    def owner(self, key: Optional[str] = None) -> Optional[str]:
        return self._validate(key)

    def __repr__(self) -> str:
        return f"<PerIdentityEntry *{self.suffix}>"
