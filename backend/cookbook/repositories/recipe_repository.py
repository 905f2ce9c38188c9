"""
Recipe repository.

Reads, filters and writes the recipes collection. Feed queries (all, by
category, by creator) are live: they re-emit whenever the collection
changes. Search and by-id lookups are one-shot.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

from cookbook.constants import RECIPE_NOT_FOUND, RECIPES_COLLECTION
from cookbook.records import Recipe
from cookbook.repositories.base import error_from, guarded, run_blocking
from cookbook.result import Error, Loading, RepositoryError, Result, Success
from cookbook.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def decode_recipes(documents: Iterable[Dict[str, Any]]) -> List[Recipe]:
    """Decode documents, skipping any that cannot be read."""
    recipes = []
    for data in documents:
        try:
            recipes.append(Recipe.from_map(data))
        except (TypeError, AttributeError) as e:
            logger.warning(f"Skipping unreadable recipe document: {e}")
    return recipes


def matches_query(recipe: Recipe, query: str) -> bool:
    """Case-insensitive substring match on name or description."""
    needle = query.strip().casefold()
    if not needle:
        return True
    return needle in recipe.name.casefold() or needle in recipe.description.casefold()


def chunked(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class RecipeRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    # --- Live feeds ---

    def get_all_recipes(self) -> AsyncIterator[Result[List[Recipe]]]:
        """All recipes, newest first."""
        return self._live_query("all recipes")

    def get_recipes_by_category(self, category: str) -> AsyncIterator[Result[List[Recipe]]]:
        return self._live_query(f"category '{category}'", where={"category": category})

    def get_recipes_by_user(self, user_id: str) -> AsyncIterator[Result[List[Recipe]]]:
        return self._live_query(f"recipes of {user_id}", where={"createdBy": user_id})

    async def _live_query(
        self, description: str, where: Optional[Dict[str, str]] = None
    ) -> AsyncIterator[Result[List[Recipe]]]:
        yield Loading
        # Subscribe before the first read so no change slips in between
        with self.store.notifier.subscribe(RECIPES_COLLECTION) as subscription:
            while True:
                try:
                    documents = await run_blocking(
                        self.store.query,
                        RECIPES_COLLECTION,
                        where=where,
                        order_by="createdAt",
                        descending=True,
                    )
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Live query for {description} failed: {e}", exc_info=True)
                    yield error_from(e)
                else:
                    yield Success(decode_recipes(documents))
                await subscription.wait()

    # --- One-shot reads ---

    async def get_recipe_by_id(self, recipe_id: str) -> Result[Recipe]:
        async def _get():
            data = await run_blocking(self.store.get, RECIPES_COLLECTION, recipe_id)
            if data is None:
                raise RepositoryError(RECIPE_NOT_FOUND)
            return Recipe.from_map(data)

        return await guarded(logger, f"Loading recipe {recipe_id}", _get)

    async def search_recipes(self, query: str) -> Result[List[Recipe]]:
        """
        Fetch the whole collection and filter it here.

        The store has no text index, so every search is a full read.
        """
        async def _search():
            documents = await run_blocking(self.store.query, RECIPES_COLLECTION)
            return [r for r in decode_recipes(documents) if matches_query(r, query)]

        return await guarded(logger, f"Search for '{query}'", _search)

    async def get_recipes_by_ids(self, recipe_ids: List[str]) -> Result[List[Recipe]]:
        """
        Batch lookup used for favorites.

        The store's 'in' filter takes at most batch_limit values, so the ids
        are queried in chunks and the results concatenated.
        """
        if not recipe_ids:
            return Success([])

        async def _fetch():
            chunks = chunked(list(recipe_ids), self.store.batch_limit)
            logger.debug(f"Fetching {len(recipe_ids)} recipes in {len(chunks)} queries")
            recipes: List[Recipe] = []
            for chunk in chunks:
                documents = await run_blocking(
                    self.store.query, RECIPES_COLLECTION, where_in=("recipeId", chunk)
                )
                recipes.extend(decode_recipes(documents))
            return recipes

        return await guarded(logger, "Batch recipe lookup", _fetch)

    # --- Writes ---

    async def add_recipe(self, recipe: Recipe) -> Result[str]:
        """Store a new recipe under a generated id and return the id."""
        async def _add():
            recipe_id = self.store.new_id()
            stored = recipe.copy(recipe_id=recipe_id)
            await run_blocking(self.store.set, RECIPES_COLLECTION, recipe_id, stored.to_map())
            logger.info(f"Recipe added: {recipe_id}")
            return recipe_id

        return await guarded(logger, "Adding recipe", _add)

    async def update_recipe(self, recipe: Recipe) -> Result[None]:
        if not recipe.recipe_id:
            return Error.of("Recipe id is required for an update")

        async def _update():
            await run_blocking(
                self.store.set, RECIPES_COLLECTION, recipe.recipe_id, recipe.to_map()
            )

        return await guarded(logger, f"Updating recipe {recipe.recipe_id}", _update)

    async def delete_recipe(self, recipe_id: str) -> Result[None]:
        return await guarded(
            logger,
            f"Deleting recipe {recipe_id}",
            lambda: run_blocking(self.store.delete, RECIPES_COLLECTION, recipe_id),
        )
