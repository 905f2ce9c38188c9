"""
Plain records mirrored 1:1 to stored documents.

Each record encodes itself to the map stored in the document store and
decodes back from it. Decoding never fails: missing or wrong-typed values
fall back to the field defaults.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping


def _now_millis() -> int:
    return int(time.time() * 1000)


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _str_list(data: Mapping[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass
class User:
    """
    User profile stored in the users collection.

    Attributes:
        uid: Identity id, also the document id
        name: Display name
        email: Sign-in email
        favorites: Favorite recipe ids
    """
    uid: str = ""
    name: str = ""
    email: str = ""
    favorites: List[str] = field(default_factory=list)

    def to_map(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "name": self.name,
            "email": self.email,
            "favorites": list(self.favorites),
        }

    @classmethod
    def from_map(cls, data: Mapping[str, Any]) -> "User":
        return cls(
            uid=_str(data, "uid"),
            name=_str(data, "name"),
            email=_str(data, "email"),
            favorites=_str_list(data, "favorites"),
        )


@dataclass
class Recipe:
    """
    Recipe stored in the recipes collection.

    Attributes:
        recipe_id: Generated document id
        name: Recipe title
        description: Free text summary
        category: One of constants.RECIPE_CATEGORIES (not enforced)
        cooking_time: Free text, e.g. "45 min"
        difficulty: One of constants.RECIPE_DIFFICULTIES (not enforced)
        ingredients: Ordered ingredient lines
        steps: Ordered instruction lines
        image_url: Public URL of the recipe image, "" when none
        created_by: Creator identity id
        created_at: Creation time in epoch milliseconds
    """
    recipe_id: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    cooking_time: str = ""
    difficulty: str = ""
    ingredients: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    image_url: str = ""
    created_by: str = ""
    created_at: int = field(default_factory=_now_millis)

    def copy(self, **changes) -> "Recipe":
        return replace(self, **changes)

    def to_map(self) -> Dict[str, Any]:
        return {
            "recipeId": self.recipe_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "cookingTime": self.cooking_time,
            "difficulty": self.difficulty,
            "ingredients": list(self.ingredients),
            "steps": list(self.steps),
            "imageUrl": self.image_url,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_map(cls, data: Mapping[str, Any]) -> "Recipe":
        created_at = data.get("createdAt")
        # bool is an int subclass; a stray True must not become 1 ms
        if not isinstance(created_at, int) or isinstance(created_at, bool):
            created_at = _now_millis()
        return cls(
            recipe_id=_str(data, "recipeId"),
            name=_str(data, "name"),
            description=_str(data, "description"),
            category=_str(data, "category"),
            cooking_time=_str(data, "cookingTime"),
            difficulty=_str(data, "difficulty"),
            ingredients=_str_list(data, "ingredients"),
            steps=_str_list(data, "steps"),
            image_url=_str(data, "imageUrl"),
            created_by=_str(data, "createdBy"),
            created_at=created_at,
        )


@dataclass
class ShoppingItem:
    """Shopping list entry, optionally linked to the recipe it came from."""
    item_id: str = ""
    ingredient: str = ""
    is_checked: bool = False
    recipe_id: str = ""
    recipe_name: str = ""

    def to_map(self) -> Dict[str, Any]:
        return {
            "id": self.item_id,
            "ingredient": self.ingredient,
            "isChecked": self.is_checked,
            "recipeId": self.recipe_id,
            "recipeName": self.recipe_name,
        }

    @classmethod
    def from_map(cls, data: Mapping[str, Any]) -> "ShoppingItem":
        checked = data.get("isChecked")
        return cls(
            item_id=_str(data, "id"),
            ingredient=_str(data, "ingredient"),
            is_checked=checked if isinstance(checked, bool) else False,
            recipe_id=_str(data, "recipeId"),
            recipe_name=_str(data, "recipeName"),
        )
