"""
Storage abstractions.

- MetadataStorage → injected repository for users, accounts, invitations
- InMemoryMetadataStorage → tests
- JsonFileMetadataStorage → local development
"""

from postelma.storage.base import (
    Collections,
    MetadataStorage,
    query_all,
)
from postelma.storage.local import (
    InMemoryMetadataStorage,
    JsonFileMetadataStorage,
    create_storage,
)

__all__ = [
    "MetadataStorage",
    "Collections",
    "query_all",
    "InMemoryMetadataStorage",
    "JsonFileMetadataStorage",
    "create_storage",
]
