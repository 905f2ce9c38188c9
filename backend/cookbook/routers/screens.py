"""
Screen sessions over WebSocket.

A connection owns one RecipeViewModel. Every state slot of the view-model
is mirrored to the client as {"slot": name, "state": ...} messages; the
client drives the view-model with {"action": ...} commands.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from cookbook import validation
from cookbook.dependencies import (
    get_auth_repository,
    get_recipe_repository,
    get_storage_repository,
    get_user_repository,
)
from cookbook.records import Recipe
from cookbook.repositories import (
    AuthRepository,
    RecipeRepository,
    StorageRepository,
    UserRepository,
)
from cookbook.result import Result, serialize
from cookbook.schemas import RecipeCreate, RecipeResponse
from cookbook.state import MutableState
from cookbook.viewmodels import RecipeViewModel

logger = logging.getLogger(__name__)

router = APIRouter()

SLOTS = (
    "recipes_state",
    "recipe_state",
    "save_recipe_state",
    "delete_recipe_state",
    "user_recipes_state",
    "favorite_recipes_state",
    "is_favorite",
    "selected_category",
)


def _encode_data(data: Any) -> Any:
    if isinstance(data, Recipe):
        return RecipeResponse.from_record(data).model_dump()
    if isinstance(data, list):
        return [_encode_data(item) for item in data]
    return data


def encode_state(value: Any) -> Any:
    """JSON form of a slot value: results are serialized, plain values pass."""
    if isinstance(value, Result):
        return serialize(value, _encode_data)
    return value


class ScreenSession:
    """Binds one WebSocket to one RecipeViewModel."""

    def __init__(
        self,
        websocket: WebSocket,
        view_model: RecipeViewModel,
        auth: AuthRepository,
        recipes: RecipeRepository,
    ):
        self.websocket = websocket
        self.view_model = view_model
        self.auth = auth
        self.recipes = recipes

    def start(self) -> None:
        for name in SLOTS:
            state = getattr(self.view_model, name)
            self.view_model.launch(self._forward(name, state), key=f"forward:{name}")

    async def _forward(self, name: str, state: MutableState) -> None:
        async for value in state.updates():
            await self.websocket.send_json({"slot": name, "state": encode_state(value)})

    async def send_error(self, message: str) -> None:
        await self.websocket.send_json({"error": message})

    async def handle(self, command: Dict[str, Any]) -> None:
        action = command.get("action")
        vm = self.view_model

        if action == "load_all":
            vm.load_all_recipes()
        elif action == "load_category":
            vm.load_recipes_by_category(str(command.get("category", "")))
        elif action == "clear_category":
            vm.clear_category_filter()
        elif action == "search":
            vm.search_recipes(str(command.get("query", "")))
        elif action == "load_recipe":
            vm.load_recipe(str(command.get("recipe_id", "")))
        elif action == "load_user_recipes":
            vm.load_user_recipes()
        elif action == "load_favorites":
            vm.load_favorite_recipes()
        elif action == "toggle_favorite":
            vm.toggle_favorite(str(command.get("recipe_id", "")))
        elif action == "add_recipe":
            recipe = await self._recipe_from(command)
            if recipe is not None:
                vm.add_recipe(recipe)
        elif action == "update_recipe":
            existing = await self._owned_recipe(str(command.get("recipe_id", "")))
            recipe = await self._recipe_from(command)
            if existing is not None and recipe is not None:
                vm.update_recipe(
                    recipe.copy(
                        recipe_id=existing.recipe_id,
                        image_url=existing.image_url,
                        created_by=existing.created_by,
                        created_at=existing.created_at,
                    )
                )
        elif action == "delete_recipe":
            existing = await self._owned_recipe(str(command.get("recipe_id", "")))
            if existing is not None:
                vm.delete_recipe(existing)
        elif action == "clear_save":
            vm.clear_save_recipe_state()
        elif action == "clear_delete":
            vm.clear_delete_recipe_state()
        elif action == "clear_recipe":
            vm.clear_recipe_state()
        else:
            await self.send_error(f"Unknown action: {action}")

    async def _recipe_from(self, command: Dict[str, Any]):
        data = command.get("recipe")
        if not isinstance(data, dict):
            await self.send_error("Missing recipe")
            return None
        try:
            recipe_in = RecipeCreate.model_validate(data)
        except ValidationError as e:
            await self.send_error(f"Invalid recipe: {e.error_count()} field error(s)")
            return None
        error = validation.validate_recipe(recipe_in.name, recipe_in.ingredients, recipe_in.steps)
        if error:
            await self.send_error(error)
            return None
        return Recipe(
            name=recipe_in.name.strip(),
            description=recipe_in.description,
            category=recipe_in.category,
            cooking_time=recipe_in.cooking_time,
            difficulty=recipe_in.difficulty,
            ingredients=validation.clean_lines(recipe_in.ingredients),
            steps=validation.clean_lines(recipe_in.steps),
        )

    async def _owned_recipe(self, recipe_id: str):
        result = await self.recipes.get_recipe_by_id(recipe_id)
        if not result.is_success:
            await self.send_error(result.message)
            return None
        if result.data.created_by != self.auth.get_current_user_id():
            await self.send_error("Only the creator can modify this recipe")
            return None
        return result.data


@router.websocket("/recipes")
async def recipe_screen(
    websocket: WebSocket,
    token: str = Query(...),
    auth: AuthRepository = Depends(get_auth_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    users: UserRepository = Depends(get_user_repository),
    storage: StorageRepository = Depends(get_storage_repository),
):
    """
    Recipe screen session. Authenticates with ?token=<access token>.
    """
    restored = await auth.restore_session(token)
    if not restored.is_success:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    user_id = auth.get_current_user_id()
    logger.info(f"Screen session opened for {user_id}")

    view_model = RecipeViewModel(auth, recipes, users, storage)
    session = ScreenSession(websocket, view_model, auth, recipes)
    session.start()
    try:
        while True:
            command = await websocket.receive_json()
            if not isinstance(command, dict):
                await session.send_error("Commands must be JSON objects")
                continue
            await session.handle(command)
    except WebSocketDisconnect:
        logger.info(f"Screen session closed for {user_id}")
    except Exception as e:
        logger.error(f"Screen session error for {user_id}: {e}", exc_info=True)
    finally:
        await view_model.close()
