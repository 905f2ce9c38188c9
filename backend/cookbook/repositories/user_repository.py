"""
User repository: profiles and favorites in the users collection.
"""

import logging
from typing import List

from cookbook.constants import USER_NOT_FOUND, USERS_COLLECTION
from cookbook.records import User
from cookbook.repositories.base import guarded, run_blocking
from cookbook.result import RepositoryError, Result
from cookbook.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def _load(self, user_id: str) -> User:
        data = await run_blocking(self.store.get, USERS_COLLECTION, user_id)
        if data is None:
            raise RepositoryError(USER_NOT_FOUND)
        return User.from_map(data)

    async def get_user_by_id(self, user_id: str) -> Result[User]:
        return await guarded(logger, f"Loading user {user_id}", lambda: self._load(user_id))

    async def update_user_profile(self, user_id: str, name: str) -> Result[None]:
        return await guarded(
            logger,
            f"Updating profile of {user_id}",
            lambda: run_blocking(self.store.update, USERS_COLLECTION, user_id, {"name": name}),
        )

    async def add_to_favorites(self, user_id: str, recipe_id: str) -> Result[None]:
        return await guarded(
            logger,
            f"Adding favorite {recipe_id} for {user_id}",
            lambda: run_blocking(
                self.store.array_union, USERS_COLLECTION, user_id, "favorites", recipe_id
            ),
        )

    async def remove_from_favorites(self, user_id: str, recipe_id: str) -> Result[None]:
        return await guarded(
            logger,
            f"Removing favorite {recipe_id} for {user_id}",
            lambda: run_blocking(
                self.store.array_remove, USERS_COLLECTION, user_id, "favorites", recipe_id
            ),
        )

    async def is_recipe_favorite(self, user_id: str, recipe_id: str) -> Result[bool]:
        async def _check():
            user = await self._load(user_id)
            return recipe_id in user.favorites

        return await guarded(logger, f"Checking favorite {recipe_id}", _check)

    async def get_favorite_recipe_ids(self, user_id: str) -> Result[List[str]]:
        async def _ids():
            user = await self._load(user_id)
            return user.favorites

        return await guarded(logger, f"Loading favorites of {user_id}", _ids)
