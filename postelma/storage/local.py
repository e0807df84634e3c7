"""
Local storage implementations for development and tests.

These are in-memory or filesystem-based implementations
that work without any external services.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from postelma.config import Settings
from postelma.storage.base import MetadataStorage

logger = logging.getLogger(__name__)


def _matches(doc: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(doc.get(key) == value for key, value in filters.items())


def _stamp(id: str, data: dict[str, Any]) -> dict[str, Any]:
    return {
        **data,
        "_id": id,
        "_updated_at": datetime.now(timezone.utc).isoformat(),
    }


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage for development and tests."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if collection not in self._data:
            self._data[collection] = {}
        self._data[collection][id] = _stamp(id, copy.deepcopy(data))

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if collection not in self._data:
            return []

        results = [
            copy.deepcopy(doc)
            for doc in self._data[collection].values()
            if _matches(doc, filters)
        ]

        # Apply pagination
        return results[offset:offset + limit]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        if collection in self._data and id in self._data[collection]:
            self._data[collection][id].update(copy.deepcopy(updates))
            self._data[collection][id]["_updated_at"] = datetime.now(timezone.utc).isoformat()
            return True
        return False


# =============================================================================
# JSON File Metadata Storage
# =============================================================================


class JsonFileMetadataStorage(MetadataStorage):
    """
    One JSON file per collection under `base_path`.

    Stands in for the browser key-value store: good enough for a single
    process, no locking across processes.
    """

    def __init__(self, base_path: str = "./data/metadata"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _collection_path(self, collection: str) -> Path:
        return self.base_path / f"{collection}.json"

    def _load(self, collection: str) -> dict[str, dict[str, Any]]:
        path = self._collection_path(collection)
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, collection: str, docs: dict[str, dict[str, Any]]) -> None:
        path = self._collection_path(collection)
        fd, tmp_path = tempfile.mkstemp(dir=self.base_path, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(docs, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {len(docs)} documents to {path}")

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        docs = self._load(collection)
        docs[id] = _stamp(id, data)
        self._write(collection, docs)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        return self._load(collection).get(id)

    async def delete(self, collection: str, id: str) -> bool:
        docs = self._load(collection)
        if id not in docs:
            return False
        del docs[id]
        self._write(collection, docs)
        return True

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        results = [doc for doc in self._load(collection).values() if _matches(doc, filters)]
        return results[offset:offset + limit]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        docs = self._load(collection)
        if id not in docs:
            return False
        docs[id].update(updates)
        docs[id]["_updated_at"] = datetime.now(timezone.utc).isoformat()
        self._write(collection, docs)
        return True


# =============================================================================
# Factory
# =============================================================================


def create_storage(settings: Settings) -> MetadataStorage:
    """Create the metadata storage selected by settings."""
    if settings.storage_backend == "json":
        logger.info(f"Using JSON file storage in {settings.data_dir}")
        return JsonFileMetadataStorage(f"{settings.data_dir}/metadata")
    return InMemoryMetadataStorage()
