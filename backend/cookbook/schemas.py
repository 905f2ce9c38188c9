from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from cookbook.records import Recipe, User


# --- Auth ---
class UserCreate(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class Token(BaseModel):
    access_token: str
    token_type: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class AccountResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


# --- User ---
class UserResponse(BaseModel):
    uid: str
    name: str
    email: str
    favorites: List[str] = []

    @classmethod
    def from_record(cls, user: User) -> "UserResponse":
        return cls(uid=user.uid, name=user.name, email=user.email, favorites=user.favorites)


class UserUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)


class FavoriteStatus(BaseModel):
    recipe_id: str
    is_favorite: bool


# --- Recipe ---
class RecipeBase(BaseModel):
    name: str = ""
    description: str = ""
    category: str = ""
    cooking_time: str = ""
    difficulty: str = ""
    ingredients: List[str] = []
    steps: List[str] = []


class RecipeCreate(RecipeBase):
    pass


class RecipeUpdate(RecipeBase):
    image_url: Optional[str] = None


class RecipeResponse(RecipeBase):
    recipe_id: str
    image_url: str = ""
    created_by: str = ""
    created_at: int

    @classmethod
    def from_record(cls, recipe: Recipe) -> "RecipeResponse":
        return cls(
            recipe_id=recipe.recipe_id,
            name=recipe.name,
            description=recipe.description,
            category=recipe.category,
            cooking_time=recipe.cooking_time,
            difficulty=recipe.difficulty,
            ingredients=recipe.ingredients,
            steps=recipe.steps,
            image_url=recipe.image_url,
            created_by=recipe.created_by,
            created_at=recipe.created_at,
        )


class RecipeBatchRequest(BaseModel):
    ids: List[str] = Field(..., max_length=500)


class RecipeIdResponse(BaseModel):
    recipe_id: str


class ImageResponse(BaseModel):
    image_url: str
