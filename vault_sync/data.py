import uuid
from typing import Any, Optional
from collections.abc import Iterator, Mapping, MutableMapping

from .exceptions import VaultError

ITEMS_KEY = 'items'


def _check_items(value: Any) -> list:
    if not isinstance(value, list):
        raise VaultError(
            f"Vault '{ITEMS_KEY}' must be a list, got {type(value).__name__}"
        )
    return value


class VaultData(MutableMapping[str, Any]):
    """Vault dict-like object.

    Holds the decrypted vault contents. Any mutation through the mapping
    interface or the item helpers marks the vault as changed, so the sync
    coordinator knows it needs to be saved.

    Every change also bumps ``generation``; a save records the generation it
    serialized and only clears the change flag if no newer change happened
    while it was in flight.

    The default shape is ``{"items": []}``; each item is a dict carrying an
    ``id`` key.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        new: bool = False
    ) -> None:
        self._data: dict[str, Any] = {ITEMS_KEY: []}
        if data is not None:
            self._data.update(data)
        _check_items(self._data[ITEMS_KEY])
        # new: the vault has never been stored remotely
        self._new = new
        self._changed = False
        self._generation = 0

    def __repr__(self) -> str:
        return (
            f'<VaultData [new:{self.new}, changed:{self.is_changed}] '
            f'keys={list(self._data.keys())}, items={len(self.items_list)}>'
        )

    # --- Properties ---

    @property
    def new(self) -> bool:
        return self._new

    @property
    def empty(self) -> bool:
        return not self.items_list and set(self._data) <= {ITEMS_KEY}

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        if value:
            self.changed()
        else:
            self._changed = False

    def changed(self) -> None:
        self._changed = True
        self._generation += 1

    def stored(self, generation: Optional[int] = None) -> bool:
        """Mark the vault as persisted remotely.

        Args:
            generation: generation that was serialized for the store; when
                newer changes exist the vault stays changed.

        Returns:
            True if the vault is now in sync with the stored copy.
        """
        self._new = False
        if generation is None or generation == self._generation:
            self._changed = False
        return not self._changed

    def invalidate(self) -> None:
        """Clear all vault data."""
        self._data = {ITEMS_KEY: []}
        self.changed()

    # --- Items helpers ---

    @property
    def items_list(self) -> list[dict]:
        return self._data.setdefault(ITEMS_KEY, [])

    def add_item(self, item: Mapping[str, Any]) -> dict:
        """Append an item, assigning an ``id`` if it has none."""
        record = dict(item)
        record.setdefault('id', uuid.uuid4().hex)
        self.items_list.append(record)
        self.changed()
        return record

    def find_item(self, item_id: str) -> Optional[dict]:
        for record in self.items_list:
            if isinstance(record, dict) and record.get('id') == item_id:
                return record
        return None

    def update_item(self, item_id: str, **fields) -> dict:
        record = self.find_item(item_id)
        if record is None:
            raise KeyError(item_id)
        record.update(fields)
        self.changed()
        return record

    def remove_item(self, item_id: str) -> dict:
        record = self.find_item(item_id)
        if record is None:
            raise KeyError(item_id)
        self.items_list.remove(record)
        self.changed()
        return record

    # --- Serialization helpers ---

    def to_dict(self) -> dict:
        """Return the plain object that gets encrypted."""
        return self._data

    @classmethod
    def from_dict(cls, data: Any) -> 'VaultData':
        """Build a loaded (unchanged) vault from a decrypted object.

        Raises:
            VaultError: If data is not a JSON object or its items are not a list.
        """
        if not isinstance(data, Mapping):
            raise VaultError(
                f"Vault contents must be a JSON object, got {type(data).__name__}"
            )
        return cls(data=data)

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key == ITEMS_KEY:
            _check_items(value)
        self._data[key] = value
        self.changed()

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.changed()
