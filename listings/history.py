"""
Search history persisted in a small JSON key/value file.
"""
import json
import logging
import os
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SEARCH_HISTORY_KEY = "yeoyeo_search_history"
MAX_HISTORY_ITEMS = 10


class JsonFileStorage:
    """
    Durable string key/value store backed by one JSON object on disk.

    Behaves like browser localStorage: values are strings, a missing key reads
    as None. An unreadable file reads as empty and is replaced on the next
    write; other I/O errors propagate to the caller.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        try:
            data = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            logger.warning(f"Discarding unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Discarding storage file that is not a JSON object: {self.path}")
            return {}
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class SearchHistory:
    """Most-recent-first, de-duplicated list of past queries, capped at 10."""

    def __init__(self, storage, key: str = SEARCH_HISTORY_KEY, max_items: int = MAX_HISTORY_ITEMS):
        self.storage = storage
        self.key = key
        self.max_items = max_items

    def get_all(self) -> List[str]:
        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return []
            history = json.loads(raw)
        except Exception as e:
            logger.error(f"Failed to get search history: {e}")
            return []

        if not isinstance(history, list):
            logger.error("Failed to get search history: stored value is not a list")
            return []
        return [item for item in history if isinstance(item, str)]

    def save(self, query: str) -> None:
        if not query or not query.strip():
            return

        try:
            history = self.get_all()
            updated = [query] + [item for item in history if item != query]
            self.storage.set_item(self.key, json.dumps(updated[: self.max_items], ensure_ascii=False))
        except Exception as e:
            logger.error(f"Failed to save search history: {e}")

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except Exception as e:
            logger.error(f"Failed to clear search history: {e}")
