"""
View-model for the recipe list, detail, edit and search screens.

Each state slot is fed by at most one task at a time: starting a new feed,
search or category filter cancels the previous producer of recipes_state.
"""

import asyncio
import logging
from typing import List, Optional

from cookbook.records import Recipe
from cookbook.repositories import (
    AuthRepository,
    RecipeRepository,
    StorageRepository,
    UserRepository,
)
from cookbook.result import Loading, Result, Success
from cookbook.state import MutableState
from cookbook.viewmodels.base import ViewModel

logger = logging.getLogger(__name__)

# Task keys, one per state slot
RECIPES = "recipes"
RECIPE = "recipe"
USER_RECIPES = "user_recipes"
FAVORITE_RECIPES = "favorite_recipes"
SAVE = "save"
DELETE = "delete"
FAVORITE = "favorite"


class RecipeViewModel(ViewModel):
    def __init__(
        self,
        auth_repository: AuthRepository,
        recipe_repository: RecipeRepository,
        user_repository: UserRepository,
        storage_repository: StorageRepository,
        autoload: bool = True,
    ):
        super().__init__()
        self.auth_repository = auth_repository
        self.recipe_repository = recipe_repository
        self.user_repository = user_repository
        self.storage_repository = storage_repository

        self.recipes_state: MutableState[Result[List[Recipe]]] = MutableState(Loading)
        self.recipe_state: MutableState[Optional[Result[Recipe]]] = MutableState(None)
        self.save_recipe_state: MutableState[Optional[Result[str]]] = MutableState(None)
        self.delete_recipe_state: MutableState[Optional[Result[None]]] = MutableState(None)
        self.user_recipes_state: MutableState[Result[List[Recipe]]] = MutableState(Loading)
        self.favorite_recipes_state: MutableState[Result[List[Recipe]]] = MutableState(Loading)
        self.is_favorite = MutableState(False)
        self.selected_category: MutableState[Optional[str]] = MutableState(None)

        if autoload:
            self.load_all_recipes()

    # --- Feeds ---

    def load_all_recipes(self) -> asyncio.Task:
        return self.launch(
            self.collect_into(self.recipe_repository.get_all_recipes(), self.recipes_state),
            key=RECIPES,
        )

    def load_recipes_by_category(self, category: str) -> asyncio.Task:
        self.selected_category.set(category)
        return self.launch(
            self.collect_into(
                self.recipe_repository.get_recipes_by_category(category), self.recipes_state
            ),
            key=RECIPES,
        )

    def clear_category_filter(self) -> asyncio.Task:
        self.selected_category.set(None)
        return self.load_all_recipes()

    def search_recipes(self, query: str) -> asyncio.Task:
        """One-shot search; a blank query goes back to the unfiltered live feed."""
        if not query or not query.strip():
            return self.load_all_recipes()

        async def _search():
            self.recipes_state.set(Loading)
            self.recipes_state.set(await self.recipe_repository.search_recipes(query))

        return self.launch(_search(), key=RECIPES)

    def load_user_recipes(self) -> Optional[asyncio.Task]:
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return None
        return self.launch(
            self.collect_into(
                self.recipe_repository.get_recipes_by_user(user_id), self.user_recipes_state
            ),
            key=USER_RECIPES,
        )

    def load_favorite_recipes(self) -> Optional[asyncio.Task]:
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return None

        async def _favorites():
            self.favorite_recipes_state.set(Loading)
            ids = await self.user_repository.get_favorite_recipe_ids(user_id)
            if not ids.is_success:
                self.favorite_recipes_state.set(ids)
            elif not ids.data:
                self.favorite_recipes_state.set(Success([]))
            else:
                self.favorite_recipes_state.set(
                    await self.recipe_repository.get_recipes_by_ids(ids.data)
                )

        return self.launch(_favorites(), key=FAVORITE_RECIPES)

    # --- Detail ---

    def load_recipe(self, recipe_id: str) -> asyncio.Task:
        async def _load():
            self.recipe_state.set(Loading)
            result = await self.recipe_repository.get_recipe_by_id(recipe_id)
            self.recipe_state.set(result)
            if result.is_success:
                await self._check_if_favorite(recipe_id)

        return self.launch(_load(), key=RECIPE)

    async def _check_if_favorite(self, recipe_id: str) -> None:
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return
        result = await self.user_repository.is_recipe_favorite(user_id, recipe_id)
        if result.is_success:
            self.is_favorite.set(result.data)

    def toggle_favorite(self, recipe_id: str) -> Optional[asyncio.Task]:
        """Flip the favorite flag; the flag only changes when the write succeeds."""
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return None

        async def _toggle():
            if self.is_favorite.value:
                result = await self.user_repository.remove_from_favorites(user_id, recipe_id)
                if result.is_success:
                    self.is_favorite.set(False)
            else:
                result = await self.user_repository.add_to_favorites(user_id, recipe_id)
                if result.is_success:
                    self.is_favorite.set(True)

        return self.launch(_toggle(), key=FAVORITE)

    # --- Writes ---

    def add_recipe(self, recipe: Recipe, image: Optional[bytes] = None) -> Optional[asyncio.Task]:
        """Upload the image (if any), then store the recipe as the current user's."""
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return None

        async def _add():
            self.save_recipe_state.set(Loading)
            image_url = ""
            if image is not None:
                upload = await self.storage_repository.upload_recipe_image(image, user_id)
                if not upload.is_success:
                    self.save_recipe_state.set(upload)
                    return
                image_url = upload.data

            stored = recipe.copy(image_url=image_url, created_by=user_id)
            self.save_recipe_state.set(await self.recipe_repository.add_recipe(stored))

        return self.launch(_add(), key=SAVE)

    def update_recipe(
        self, recipe: Recipe, new_image: Optional[bytes] = None
    ) -> Optional[asyncio.Task]:
        """Replace the image when a new one is given, then overwrite the recipe."""
        user_id = self.auth_repository.get_current_user_id()
        if user_id is None:
            return None

        async def _update():
            self.save_recipe_state.set(Loading)
            image_url = recipe.image_url
            if new_image is not None:
                if recipe.image_url:
                    await self.storage_repository.delete_recipe_image(recipe.image_url, user_id)
                upload = await self.storage_repository.upload_recipe_image(
                    new_image, user_id, recipe.recipe_id
                )
                if not upload.is_success:
                    self.save_recipe_state.set(upload)
                    return
                image_url = upload.data

            result = await self.recipe_repository.update_recipe(recipe.copy(image_url=image_url))
            if result.is_success:
                self.save_recipe_state.set(Success(recipe.recipe_id))
            else:
                self.save_recipe_state.set(result)

        return self.launch(_update(), key=SAVE)

    def delete_recipe(self, recipe: Recipe) -> asyncio.Task:
        """Delete the image (outcome ignored), then the recipe document."""
        user_id = self.auth_repository.get_current_user_id()

        async def _delete():
            self.delete_recipe_state.set(Loading)
            if recipe.image_url and user_id is not None:
                await self.storage_repository.delete_recipe_image(recipe.image_url, user_id)
            self.delete_recipe_state.set(
                await self.recipe_repository.delete_recipe(recipe.recipe_id)
            )

        return self.launch(_delete(), key=DELETE)

    # --- Resets ---

    def clear_save_recipe_state(self) -> None:
        self.save_recipe_state.set(None)

    def clear_delete_recipe_state(self) -> None:
        self.delete_recipe_state.set(None)

    def clear_recipe_state(self) -> None:
        self.recipe_state.set(None)
