"""
Shared API dependencies.

Services are process-wide singletons; repositories are cheap wrappers and
are built per request. Tests swap the service providers through
app.dependency_overrides.
"""

from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from slowapi import Limiter
from slowapi.util import get_remote_address

from cookbook.models.account import Account
from cookbook.repositories import (
    AuthRepository,
    RecipeRepository,
    StorageRepository,
    UserRepository,
)
from cookbook.result import Error, Result
from cookbook.services.document_store import DocumentStore
from cookbook.services.identity import IdentityService, identity_service
from cookbook.services.object_storage import ObjectStorage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")

limiter = Limiter(key_func=get_remote_address)

document_store = DocumentStore()
object_storage = ObjectStorage()


def get_document_store() -> DocumentStore:
    return document_store


def get_identity_service() -> IdentityService:
    return identity_service


def get_object_storage() -> ObjectStorage:
    return object_storage


def get_auth_repository(
    identity: IdentityService = Depends(get_identity_service),
    store: DocumentStore = Depends(get_document_store),
) -> AuthRepository:
    return AuthRepository(identity, store)


def get_recipe_repository(
    store: DocumentStore = Depends(get_document_store),
) -> RecipeRepository:
    return RecipeRepository(store)


def get_user_repository(
    store: DocumentStore = Depends(get_document_store),
) -> UserRepository:
    return UserRepository(store)


def get_storage_repository(
    storage: ObjectStorage = Depends(get_object_storage),
) -> StorageRepository:
    return StorageRepository(storage)


async def get_auth_session(
    token: str = Depends(oauth2_scheme),
    auth: AuthRepository = Depends(get_auth_repository),
) -> AuthRepository:
    """
    Validate the access token and return an auth repository signed in as
    its owner.
    """
    result = await auth.restore_session(token)
    if not result.is_success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth


async def get_current_user(
    session: AuthRepository = Depends(get_auth_session),
) -> Account:
    """
    Validate access token and return current account.
    """
    return session.current_account


def unwrap(result: Result) -> Any:
    """
    Return the Success value or raise the matching HTTPException.

    "not found" errors map to 404, every other error to 400.
    """
    if isinstance(result, Error):
        message = result.message
        code = (
            status.HTTP_404_NOT_FOUND
            if "not found" in message.lower()
            else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(status_code=code, detail=message)
    if not result.is_success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Operation did not complete",
        )
    return result.data
