"""
Pytest configuration - shared fixtures
"""
import asyncio
import os
import sys
import tempfile
from contextlib import aclosing
from typing import Generator, List, Tuple

# Module-level engine and static mount must not touch the working tree
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="cookbook-storage-"))
os.environ.setdefault("STORAGE_BASE_URL", "http://testserver/storage")

# Add backend directory to sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../backend"))

import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from cookbook.core import security
from cookbook.database import Base
from cookbook.models import Account, Document  # noqa: F401
from cookbook.repositories import (
    AuthRepository,
    RecipeRepository,
    StorageRepository,
    UserRepository,
)
from cookbook.services.document_store import DocumentStore
from cookbook.services.identity import IdentityService
from cookbook.services.notifier import ChangeNotifier
from cookbook.services.object_storage import ObjectStorage


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """Low bcrypt cost factor for tests"""
    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(security.bcrypt, "gensalt", lambda rounds=12: real_gensalt(rounds=4))


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite database; worker threads each get their own connection"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def test_db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def change_notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def store(session_factory, change_notifier) -> DocumentStore:
    return DocumentStore(session_factory=session_factory, notifier=change_notifier)


@pytest.fixture
def reset_mailbox() -> List[Tuple[str, str]]:
    """Collects (email, token) pairs handed to the password reset sender"""
    return []


@pytest.fixture
def identity(session_factory, reset_mailbox) -> IdentityService:
    return IdentityService(
        session_factory=session_factory,
        password_reset_sender=lambda email, token: reset_mailbox.append((email, token)),
    )


@pytest.fixture
def storage() -> ObjectStorage:
    """Storage rooted at the directory the app serves under /storage"""
    return ObjectStorage()


@pytest.fixture
def auth_repository(identity, store) -> AuthRepository:
    return AuthRepository(identity, store)


@pytest.fixture
def recipe_repository(store) -> RecipeRepository:
    return RecipeRepository(store)


@pytest.fixture
def user_repository(store) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def storage_repository(storage) -> StorageRepository:
    return StorageRepository(storage)


@pytest.fixture
def wait_for():
    """Wait until a MutableState holds a value matching predicate"""

    async def _wait_for(state, predicate, timeout: float = 3.0):
        async def _watch():
            async with aclosing(state.updates()) as updates:
                async for value in updates:
                    if predicate(value):
                        return value

        return await asyncio.wait_for(_watch(), timeout)

    return _wait_for


# --- API fixtures ---

@pytest.fixture
def client(store, identity, storage) -> Generator[TestClient, None, None]:
    from cookbook.dependencies import (
        get_document_store,
        get_identity_service,
        get_object_storage,
        limiter,
    )
    from cookbook.main import app

    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_identity_service] = lambda: identity
    app.dependency_overrides[get_object_storage] = lambda: storage
    limiter.reset()
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register an account and return its Authorization header"""

    def _register(email="cook@example.com", password="secret1", name="Julia"):
        response = client.post(
            "/api/auth/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "confirm_password": password,
            },
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register
