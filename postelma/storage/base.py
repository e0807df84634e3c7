"""
Storage abstraction layer.

All persistence goes through this interface so the backend can be
swapped (in-memory for tests, JSON files locally, a real database in
production) without touching the access-control core, which never
talks to storage at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class MetadataStorage(ABC):
    """
    Storage for structured documents (users, social accounts, invitations).

    Implementations make no durability promises beyond their own backend.
    """

    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save a document to a collection."""
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional equality filters."""
        pass

    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""
        pass


# =============================================================================
# Collection Names
# =============================================================================


class Collections:
    """Standard collection names."""

    USERS = "users"
    SOCIAL_ACCOUNTS = "social_accounts"
    INVITATIONS = "invitations"


async def query_all(
    storage: MetadataStorage,
    collection: str,
    filters: dict[str, Any] | None = None,
    page_size: int = 100,
) -> list[dict[str, Any]]:
    """Page through `query` until the collection is exhausted."""
    results: list[dict[str, Any]] = []
    offset = 0
    while True:
        page = await storage.query(collection, filters, limit=page_size, offset=offset)
        results.extend(page)
        if len(page) < page_size:
            return results
        offset += page_size
