"""
Repositories: thin wrappers that forward to the identity service, document
store and object storage and report every outcome as a Result.
"""

from cookbook.repositories.auth_repository import AuthRepository
from cookbook.repositories.recipe_repository import RecipeRepository
from cookbook.repositories.storage_repository import StorageRepository
from cookbook.repositories.user_repository import UserRepository

__all__ = [
    "AuthRepository",
    "RecipeRepository",
    "StorageRepository",
    "UserRepository",
]
