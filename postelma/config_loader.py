"""
Seed data loader.

Loads users and social accounts from a YAML fixture into storage so a
fresh workspace (or a demo) starts with a known team.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from postelma.auth.context import user_from_document
from postelma.core.models import SocialAccount, User
from postelma.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent / "fixtures" / "seed.yaml"


class SeedLoader:
    """
    Loads a seed file and saves its records through MetadataStorage.

    Records are validated with the same models the services use, so an
    unknown role in a fixture raises UnknownRoleError. Nothing is saved
    unless every record in the file validates.
    """

    def __init__(self, storage: MetadataStorage):
        self.storage = storage

    async def load(self, path: Path | str | None = None) -> dict[str, int]:
        """
        Load a seed file.

        Returns:
            Dict with counts of each record type loaded
        """
        path = Path(path) if path else DEFAULT_SEED_FILE
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Validate the whole file before anything is written
        users = [user_from_document(r) for r in data.get("users", [])]
        accounts = [SocialAccount.model_validate(r) for r in data.get("social_accounts", [])]

        counts = {
            "users": await self._save_users(users),
            "social_accounts": await self._save_accounts(accounts),
        }
        logger.info(f"Loaded seed data from {path}: {counts}")
        return counts

    async def load_users(self, records: list[dict[str, Any]]) -> int:
        return await self._save_users([user_from_document(r) for r in records])

    async def load_accounts(self, records: list[dict[str, Any]]) -> int:
        return await self._save_accounts([SocialAccount.model_validate(r) for r in records])

    async def _save_users(self, users: list[User]) -> int:
        for user in users:
            await self.storage.save(Collections.USERS, user.id, user.model_dump(mode="json"))
        return len(users)

    async def _save_accounts(self, accounts: list[SocialAccount]) -> int:
        for account in accounts:
            await self.storage.save(
                Collections.SOCIAL_ACCOUNTS,
                account.id,
                account.model_dump(mode="json"),
            )
        return len(accounts)


async def load_seed(storage: MetadataStorage, path: Path | str | None = None) -> dict[str, int]:
    """Convenience function to load a seed file into storage."""
    return await SeedLoader(storage).load(path)
