"""
User profile and favorites API endpoints.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends

from cookbook.dependencies import (
    get_current_user,
    get_identity_service,
    get_recipe_repository,
    get_user_repository,
    unwrap,
)
from cookbook.models.account import Account
from cookbook.repositories import RecipeRepository, UserRepository
from cookbook.repositories.base import guarded, run_blocking
from cookbook.schemas import FavoriteStatus, RecipeResponse, UserResponse, UserUpdate
from cookbook.services.identity import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me/favorites", response_model=List[str])
async def list_favorite_ids(
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Any:
    """Favorite recipe ids of the caller."""
    return unwrap(await users.get_favorite_recipe_ids(current_user.id))


@router.get("/me/favorites/recipes", response_model=List[RecipeResponse])
async def list_favorite_recipes(
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> Any:
    """
    Favorite recipes of the caller. Favorites whose recipe was deleted are
    skipped.
    """
    ids = unwrap(await users.get_favorite_recipe_ids(current_user.id))
    found = unwrap(await recipes.get_recipes_by_ids(ids))
    return [RecipeResponse.from_record(r) for r in found]


@router.get("/me/favorites/{recipe_id}", response_model=FavoriteStatus)
async def get_favorite_status(
    recipe_id: str,
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Any:
    is_favorite = unwrap(await users.is_recipe_favorite(current_user.id, recipe_id))
    return {"recipe_id": recipe_id, "is_favorite": is_favorite}


@router.put("/me/favorites/{recipe_id}", response_model=FavoriteStatus)
async def add_favorite(
    recipe_id: str,
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Any:
    """Add a recipe to the caller's favorites. Adding twice is a no-op."""
    unwrap(await users.add_to_favorites(current_user.id, recipe_id))
    return {"recipe_id": recipe_id, "is_favorite": True}


@router.delete("/me/favorites/{recipe_id}", response_model=FavoriteStatus)
async def remove_favorite(
    recipe_id: str,
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Any:
    unwrap(await users.remove_from_favorites(current_user.id, recipe_id))
    return {"recipe_id": recipe_id, "is_favorite": False}


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    identity: IdentityService = Depends(get_identity_service),
) -> Any:
    """Change the caller's display name on the account and the profile."""
    previous_name = current_user.display_name or ""
    unwrap(
        await guarded(
            logger,
            f"Renaming account {current_user.id}",
            lambda: run_blocking(identity.update_display_name, current_user.id, data.name),
        )
    )

    result = await users.update_user_profile(current_user.id, data.name)
    if not result.is_success:
        # Keep account and profile in step
        await guarded(
            logger,
            f"Restoring account name of {current_user.id}",
            lambda: run_blocking(identity.update_display_name, current_user.id, previous_name),
        )
    unwrap(result)
    return UserResponse.from_record(unwrap(await users.get_user_by_id(current_user.id)))


@router.get("/{uid}", response_model=UserResponse)
async def get_user(
    uid: str,
    current_user: Account = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Any:
    """Get a user profile."""
    return UserResponse.from_record(unwrap(await users.get_user_by_id(uid)))
