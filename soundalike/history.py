"""
Recent-search history kept behind a small key-value store.

The history is stored as one JSON blob under HISTORY_KEY, so any store that
can get and set a string works.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Protocol

from soundalike.models import SearchHistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = "search_history"
MAX_HISTORY_ENTRIES = 10


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store, mainly for tests and one-off runs."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """
    Store backed by a single JSON file mapping keys to string blobs.

    The parent directory is created on first write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)


class SearchHistory:
    """Most-recent-first list of analyzed URLs, deduplicated by URL."""

    def __init__(self, store: KeyValueStore, max_entries: int = MAX_HISTORY_ENTRIES):
        self.store = store
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def entries(self) -> list[SearchHistoryEntry]:
        blob = self.store.get(HISTORY_KEY)
        if not blob:
            return []

        try:
            raw_entries = json.loads(blob)
            return [SearchHistoryEntry.from_dict(raw) for raw in raw_entries]
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Ignoring corrupt search history: %s", e)
            return []

    def _save(self, entries: list[SearchHistoryEntry]) -> None:
        self.store.set(HISTORY_KEY, json.dumps([e.to_dict() for e in entries]))

    def add(
        self,
        url: str,
        title: str,
        artist: str,
        timestamp: str | None = None,
    ) -> SearchHistoryEntry:
        """
        Record a successful analysis, promoting the URL if already present.

        Args:
            url: Analyzed video URL.
            title: Resolved song title.
            artist: Resolved artist.
            timestamp: ISO timestamp, defaults to now.

        Returns:
            The new entry.
        """
        entry = SearchHistoryEntry(
            url=url,
            title=title,
            artist=artist,
            timestamp=timestamp or datetime.now().isoformat(timespec="seconds"),
        )

        with self._lock:
            entries = [e for e in self.entries() if e.url != url]
            entries.insert(0, entry)
            self._save(entries[: self.max_entries])

        return entry

    def clear(self) -> None:
        with self._lock:
            self._save([])
