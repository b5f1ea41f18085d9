"""Best-effort persistence of field mappings and last-used selections."""

import json
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from ticket_sync.mapping.fields import FieldMapping

MAPPING_KEY_PREFIX = "fieldMapping_"
LAST_SELECTION_KEYS = {
    "group": "lastSelectedSite",
    "table": "lastSelectedList",
}


def mapping_key(group_id: str, table_id: str) -> str:
    return f"{MAPPING_KEY_PREFIX}{group_id}_{table_id}"


class MappingStore:
    """Key-value store for mappings, held in memory.

    Subclasses persist the entries by overriding ``_read`` and ``_write``.
    Storage failures are logged and never propagate.
    """

    def __init__(self):
        self._entries: Dict[str, object] = {}

    def save(self, group_id: str, table_id: str, mapping: FieldMapping) -> None:
        """Save the mapping for a site/list pair."""
        self._set(mapping_key(group_id, table_id), dict(mapping))

    def load(self, group_id: str, table_id: str) -> Optional[FieldMapping]:
        """Load the mapping for a site/list pair, or None if none is saved."""
        stored = self._get(mapping_key(group_id, table_id))
        if not isinstance(stored, dict):
            return None
        return {str(key): str(value) for key, value in stored.items() if value}

    def delete(self, group_id: str, table_id: str) -> None:
        self._remove(mapping_key(group_id, table_id))

    def save_last_selection(self, kind: str, entry_id: str, name: str) -> None:
        """Remember the last selected site (``kind="group"``) or list (``"table"``)."""
        self._set(LAST_SELECTION_KEYS[kind], {"id": entry_id, "name": name})

    def load_last_selection(self, kind: str) -> Optional[Dict[str, str]]:
        stored = self._get(LAST_SELECTION_KEYS[kind])
        if not isinstance(stored, dict) or "id" not in stored:
            return None
        return {"id": stored["id"], "name": stored.get("name", "")}

    def clear_all(self) -> None:
        """Remove every saved mapping and selection."""
        entries = self._load_entries()
        if entries is None:
            entries = {}
        selection_keys = set(LAST_SELECTION_KEYS.values())
        kept = {
            key: value for key, value in entries.items()
            if not key.startswith(MAPPING_KEY_PREFIX) and key not in selection_keys
        }
        self._store_entries(kept)

    def _get(self, key: str):
        entries = self._load_entries()
        if entries is None:
            return None
        return entries.get(key)

    def _set(self, key: str, value) -> None:
        entries = self._load_entries()
        if entries is None:
            # Unreadable store; start over rather than lose the write
            entries = {}
        entries[key] = value
        self._store_entries(entries)

    def _remove(self, key: str) -> None:
        entries = self._load_entries()
        if entries is None or key not in entries:
            return
        del entries[key]
        self._store_entries(entries)

    def _load_entries(self) -> Optional[Dict[str, object]]:
        try:
            return self._read()
        except Exception as e:
            logger.error(f"Error loading mapping store: {e}")
            return None

    def _store_entries(self, entries: Dict[str, object]) -> None:
        try:
            self._write(entries)
        except Exception as e:
            logger.error(f"Error saving mapping store: {e}")

    def _read(self) -> Dict[str, object]:
        return dict(self._entries)

    def _write(self, entries: Dict[str, object]) -> None:
        self._entries = dict(entries)


class JsonFileMappingStore(MappingStore):
    """Mapping store backed by a JSON file."""

    def __init__(self, path: str = "data/field_mappings.json"):
        super().__init__()
        self.path = Path(path)

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    def _write(self, entries: Dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(entries, f, indent=2)
