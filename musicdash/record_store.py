"""
Key-value record store for play counts and listening sessions.
Uses JSON for persistence across runs (optional).
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import NotFound

logger = logging.getLogger(__name__)


@dataclass
class Record:
    """A named document of a given record type."""

    record_type: str
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)
    modified_at: Optional[str] = None

    def get(self, key: str, default=None):
        return self.fields.get(key, default)

    def to_dict(self) -> dict:
        return {
            "record_type": self.record_type,
            "name": self.name,
            "fields": self.fields,
            "modified_at": self.modified_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        return cls(
            record_type=data.get("record_type", ""),
            name=data.get("name", ""),
            fields=dict(data.get("fields", {})),
            modified_at=data.get("modified_at"),
        )


class RecordStore:
    """
    Document store keyed by record name.

    For CLI: Pass store_file to persist between runs.
    For tests: Use without store_file for in-memory only (no disk writes).
    """

    def __init__(self, store_file: Optional[str] = None):
        self._store_file = Path(store_file) if store_file else None
        self._records: Dict[str, Record] = {}

        if self._store_file and self._store_file.exists():
            self._load_from_file()

    def _load_from_file(self):
        """Load records from the JSON file."""
        if not self._store_file:
            return

        try:
            with open(self._store_file) as f:
                data = json.load(f)
            self._records = {
                name: Record.from_dict(raw) for name, raw in data.get("records", {}).items()
            }
        except (json.JSONDecodeError, OSError) as e:
            # Invalid or unreadable file, start fresh
            logger.warning(f"Could not load record store {self._store_file}: {e}")

    def save_to_file(self, path: Optional[str] = None):
        """Save all records to the JSON file."""
        target = Path(path) if path else self._store_file
        if not target:
            return

        target.parent.mkdir(parents=True, exist_ok=True)
        data = {"records": {name: r.to_dict() for name, r in self._records.items()}}
        with open(target, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, name: str) -> Record:
        """Fetch a record by name. Raises NotFound on a miss."""
        record = self._records.get(name)
        if record is None:
            raise NotFound(f"No record named {name!r}")
        return copy.deepcopy(record)

    def get_many(self, names: List[str]) -> List[Record]:
        """Fetch the records that exist, in the order requested."""
        return [copy.deepcopy(self._records[n]) for n in names if n in self._records]

    def save(self, record: Record) -> Record:
        """Insert or replace a record."""
        stored = copy.deepcopy(record)
        stored.modified_at = datetime.now().isoformat()
        self._records[stored.name] = stored
        self._auto_save()
        return copy.deepcopy(stored)

    def delete(self, name: str):
        if self._records.pop(name, None) is not None:
            self._auto_save()

    def query(
        self,
        record_type: str,
        predicate: Optional[Callable[[Record], bool]] = None,
        sort_key: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Records of one type, optionally filtered, sorted by a field and limited."""
        matches = [
            copy.deepcopy(r)
            for r in self._records.values()
            if r.record_type == record_type and (predicate is None or predicate(r))
        ]
        if sort_key:
            matches.sort(key=lambda r: r.fields.get(sort_key) or "", reverse=descending)
        if limit is not None:
            matches = matches[:limit]
        return matches

    def get_stats(self) -> dict:
        """Record counts per type."""
        stats: Dict[str, int] = {}
        for record in self._records.values():
            stats[record.record_type] = stats.get(record.record_type, 0) + 1
        return stats

    def _auto_save(self):
        """Auto-save to file if configured."""
        if self._store_file:
            self.save_to_file()
