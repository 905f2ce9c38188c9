"""
Recipe API endpoints.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from cookbook import validation
from cookbook.config import settings
from cookbook.constants import RECIPE_CATEGORIES, RECIPE_DIFFICULTIES
from cookbook.dependencies import (
    get_current_user,
    get_recipe_repository,
    get_storage_repository,
    unwrap,
)
from cookbook.models.account import Account
from cookbook.records import Recipe
from cookbook.repositories import RecipeRepository, StorageRepository
from cookbook.schemas import (
    ImageResponse,
    RecipeBatchRequest,
    RecipeCreate,
    RecipeIdResponse,
    RecipeResponse,
    RecipeUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_recipe(recipe_in: RecipeCreate) -> None:
    error = validation.validate_recipe(recipe_in.name, recipe_in.ingredients, recipe_in.steps)
    if error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error)


async def _owned_recipe(
    recipe_id: str, current_user: Account, recipes: RecipeRepository
) -> Recipe:
    recipe = unwrap(await recipes.get_recipe_by_id(recipe_id))
    if recipe.created_by != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator can modify this recipe",
        )
    return recipe


async def _first_emission(feed) -> Any:
    """Read the first settled result of a live feed, then close it."""
    try:
        async for result in feed:
            if result.is_success or result.is_error:
                return result
    finally:
        await feed.aclose()


@router.get("", response_model=List[RecipeResponse])
async def list_recipes(
    category: Optional[str] = None,
    created_by: Optional[str] = None,
    q: Optional[str] = None,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> Any:
    """
    List recipes, newest first.

    Filters: category, creator, or a case-insensitive text search on name
    and description. A search takes precedence over the other filters.
    """
    if q is not None and q.strip():
        result = await recipes.search_recipes(q)
    elif category:
        result = await _first_emission(recipes.get_recipes_by_category(category))
    elif created_by:
        result = await _first_emission(recipes.get_recipes_by_user(created_by))
    else:
        result = await _first_emission(recipes.get_all_recipes())
    return [RecipeResponse.from_record(r) for r in unwrap(result)]


@router.get("/categories")
async def list_categories(current_user: Account = Depends(get_current_user)) -> Any:
    """Known recipe categories and difficulty levels."""
    return {"categories": RECIPE_CATEGORIES, "difficulties": RECIPE_DIFFICULTIES}


@router.post("/batch", response_model=List[RecipeResponse])
async def get_recipes_batch(
    data: RecipeBatchRequest,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> Any:
    """
    Fetch several recipes by id. Unknown ids are skipped.
    """
    found = unwrap(await recipes.get_recipes_by_ids(data.ids))
    return [RecipeResponse.from_record(r) for r in found]


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> Any:
    """Get a single recipe."""
    return RecipeResponse.from_record(unwrap(await recipes.get_recipe_by_id(recipe_id)))


@router.post("", response_model=RecipeIdResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    recipe_in: RecipeCreate,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
) -> Any:
    """
    Create a recipe owned by the caller.
    """
    _check_recipe(recipe_in)
    recipe = Recipe(
        name=recipe_in.name.strip(),
        description=recipe_in.description,
        category=recipe_in.category,
        cooking_time=recipe_in.cooking_time,
        difficulty=recipe_in.difficulty,
        ingredients=validation.clean_lines(recipe_in.ingredients),
        steps=validation.clean_lines(recipe_in.steps),
        created_by=current_user.id,
    )
    recipe_id = unwrap(await recipes.add_recipe(recipe))
    return {"recipe_id": recipe_id}


@router.put("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: str,
    recipe_in: RecipeUpdate,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    storage: StorageRepository = Depends(get_storage_repository),
) -> Any:
    """
    Overwrite a recipe. Only its creator may do this; creator and creation
    time are kept.
    """
    _check_recipe(recipe_in)
    existing = await _owned_recipe(recipe_id, current_user, recipes)

    image_url = existing.image_url if recipe_in.image_url is None else recipe_in.image_url
    if image_url not in ("", existing.image_url) and not storage.is_owned_by(
        image_url, current_user.id
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Image URL must point to one of your own uploads",
        )
    if existing.image_url and image_url != existing.image_url:
        await storage.delete_recipe_image(existing.image_url, current_user.id)

    updated = existing.copy(
        name=recipe_in.name.strip(),
        description=recipe_in.description,
        category=recipe_in.category,
        cooking_time=recipe_in.cooking_time,
        difficulty=recipe_in.difficulty,
        ingredients=validation.clean_lines(recipe_in.ingredients),
        steps=validation.clean_lines(recipe_in.steps),
        image_url=image_url,
    )
    unwrap(await recipes.update_recipe(updated))
    return RecipeResponse.from_record(updated)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: str,
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    storage: StorageRepository = Depends(get_storage_repository),
) -> None:
    """
    Delete a recipe and its image. Only its creator may do this.
    """
    existing = await _owned_recipe(recipe_id, current_user, recipes)
    # Image deletion never fails the request
    await storage.delete_recipe_image(existing.image_url, current_user.id)
    unwrap(await recipes.delete_recipe(recipe_id))
    logger.info(f"Recipe {recipe_id} deleted by {current_user.id}")


@router.post("/{recipe_id}/image", response_model=ImageResponse)
async def upload_recipe_image(
    recipe_id: str,
    file: UploadFile = File(...),
    current_user: Account = Depends(get_current_user),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    storage: StorageRepository = Depends(get_storage_repository),
) -> Any:
    """
    Upload (or replace) the image of a recipe owned by the caller.
    """
    file_ext = Path(file.filename or "").suffix.lower()
    if file_ext not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(settings.ALLOWED_EXTENSIONS)}",
        )

    existing = await _owned_recipe(recipe_id, current_user, recipes)
    file_content = await file.read()

    upload = await storage.upload_recipe_image(file_content, current_user.id, recipe_id)
    image_url = unwrap(upload)
    if existing.image_url and existing.image_url != image_url:
        await storage.delete_recipe_image(existing.image_url, current_user.id)

    unwrap(await recipes.update_recipe(existing.copy(image_url=image_url)))
    return {"image_url": image_url}
