"""
Tests for the screen view-models
"""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from cookbook.records import Recipe
from cookbook.repositories import AuthRepository, UserRepository
from cookbook.result import Error, Loading, Success
from cookbook.viewmodels import AuthViewModel, RecipeViewModel, ViewModel

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-body"


def make_recipe(name="Pancakes", **fields):
    defaults = dict(
        description="Fluffy breakfast pancakes",
        category="Breakfast",
        ingredients=["flour", "milk"],
        steps=["Mix", "Fry"],
    )
    defaults.update(fields)
    return Recipe(name=name, **defaults)


def is_success(value):
    return value is not None and value.is_success


@pytest.fixture
def auth_mock():
    auth = Mock(spec=AuthRepository)
    auth.sign_in = AsyncMock(return_value=Success("user"))
    auth.sign_up = AsyncMock(return_value=Success("user"))
    auth.reset_password = AsyncMock(return_value=Success(None))
    return auth


@pytest.mark.unit
@pytest.mark.asyncio
class TestViewModelScope:
    """Tests for the task scope"""

    async def test_keyed_launch_cancels_previous(self):
        vm = ViewModel()
        first = vm.launch(asyncio.sleep(10), key="slot")
        second = vm.launch(asyncio.sleep(10), key="slot")

        await asyncio.gather(first, return_exceptions=True)

        assert first.cancelled()
        assert vm.is_active("slot")
        assert vm.active_task_count == 1
        await vm.close()
        assert second.cancelled()

    async def test_close_cancels_everything(self):
        vm = ViewModel()
        tasks = [vm.launch(asyncio.sleep(10)) for _ in range(3)]

        await vm.close()

        assert all(task.cancelled() for task in tasks)
        assert vm.active_task_count == 0

    async def test_launch_after_close(self):
        vm = ViewModel()
        await vm.close()
        with pytest.raises(RuntimeError):
            vm.launch(asyncio.sleep(0))


@pytest.mark.unit
class TestAuthViewModelValidation:
    """Tests for form validation (no backend calls)"""

    def test_sign_in_invalid_email(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("not-an-email")
        vm.update_password("secret1")

        assert vm.sign_in() is None
        assert vm.email_error.value == "Please enter a valid email"
        auth_mock.sign_in.assert_not_called()

    def test_sign_in_short_password(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("cook@example.com")
        vm.update_password("123")

        assert vm.sign_in() is None
        assert vm.password_error.value == "Password must be at least 6 characters"
        auth_mock.sign_in.assert_not_called()

    @pytest.mark.parametrize(
        "email,password,name,confirm,field",
        [
            ("bad", "secret1", "Julia", "secret1", "email_error"),
            ("cook@example.com", "123", "Julia", "123", "password_error"),
            ("cook@example.com", "secret1", "J", "secret1", "name_error"),
            ("cook@example.com", "secret1", "Julia", "secret2", "confirm_password_error"),
        ],
    )
    def test_sign_up_rejected(self, auth_mock, email, password, name, confirm, field):
        vm = AuthViewModel(auth_mock)
        vm.update_email(email)
        vm.update_password(password)
        vm.update_name(name)
        vm.update_confirm_password(confirm)

        assert vm.sign_up() is None
        assert getattr(vm, field).value is not None
        auth_mock.sign_up.assert_not_called()

    def test_editing_clears_error(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.sign_in()
        assert vm.email_error.value == "Email is required"

        vm.update_email("c")
        assert vm.email_error.value is None

    def test_reset_password_requires_email(self, auth_mock):
        vm = AuthViewModel(auth_mock)

        assert vm.reset_password("") is None
        assert vm.reset_password_state.value == Error.of("Please enter your email")
        assert vm.reset_password("nope") is None
        assert vm.reset_password_state.value == Error.of("Please enter a valid email")
        auth_mock.reset_password.assert_not_called()

    def test_clear_form(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("cook@example.com")
        vm.sign_up()

        vm.clear_form()

        assert vm.email.value == ""
        assert vm.name_error.value is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestAuthViewModelActions:
    """Tests for sign in / sign up / reset"""

    async def test_sign_in(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("cook@example.com")
        vm.update_password("secret1")

        await vm.sign_in()

        auth_mock.sign_in.assert_awaited_once_with("cook@example.com", "secret1")
        assert vm.auth_state.value == Success("user")

    async def test_sign_up(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("cook@example.com")
        vm.update_password("secret1")
        vm.update_name("Julia")
        vm.update_confirm_password("secret1")

        await vm.sign_up()

        auth_mock.sign_up.assert_awaited_once_with("cook@example.com", "secret1", "Julia")
        assert vm.auth_state.value == Success("user")

    async def test_reset_password(self, auth_mock):
        vm = AuthViewModel(auth_mock)

        await vm.reset_password("cook@example.com")

        assert vm.reset_password_state.value == Success(None)
        vm.clear_reset_password_state()
        assert vm.reset_password_state.value is None

    async def test_sign_out(self, auth_mock):
        vm = AuthViewModel(auth_mock)
        vm.update_email("cook@example.com")
        vm.update_password("secret1")
        await vm.sign_in()

        vm.sign_out()

        auth_mock.sign_out.assert_called_once()
        assert vm.auth_state.value is Loading
        assert vm.email.value == ""


@pytest_asyncio.fixture
async def signed_in(auth_repository):
    await auth_repository.sign_up("cook@example.com", "secret1", "Julia")
    return auth_repository


@pytest.fixture
def recipe_vm_factory(auth_repository, recipe_repository, user_repository, storage_repository):
    def _factory(autoload=False, users=None):
        return RecipeViewModel(
            auth_repository,
            recipe_repository,
            users or user_repository,
            storage_repository,
            autoload=autoload,
        )

    return _factory


@pytest.mark.unit
@pytest.mark.asyncio
class TestRecipeViewModelFeeds:
    """Tests for recipe feeds, search and favorites list"""

    async def test_autoload(self, recipe_vm_factory, recipe_repository, wait_for):
        await recipe_repository.add_recipe(make_recipe())
        vm = recipe_vm_factory(autoload=True)

        result = await wait_for(vm.recipes_state, is_success)

        assert [r.name for r in result.data] == ["Pancakes"]
        await vm.close()

    async def test_feed_follows_new_recipes(self, recipe_vm_factory, recipe_repository, wait_for):
        vm = recipe_vm_factory()
        vm.load_all_recipes()
        await wait_for(vm.recipes_state, is_success)

        await recipe_repository.add_recipe(make_recipe("Soup"))

        result = await wait_for(vm.recipes_state, lambda v: is_success(v) and v.data)
        assert [r.name for r in result.data] == ["Soup"]
        await vm.close()

    async def test_category_filter(self, recipe_vm_factory, recipe_repository, wait_for):
        await recipe_repository.add_recipe(make_recipe("Pancakes", category="Breakfast"))
        await recipe_repository.add_recipe(make_recipe("Steak", category="Dinner"))
        vm = recipe_vm_factory()

        vm.load_recipes_by_category("Dinner")
        result = await wait_for(vm.recipes_state, is_success)

        assert vm.selected_category.value == "Dinner"
        assert [r.name for r in result.data] == ["Steak"]

        vm.clear_category_filter()
        result = await wait_for(vm.recipes_state, lambda v: is_success(v) and len(v.data) == 2)
        assert vm.selected_category.value is None
        await vm.close()

    async def test_search_replaces_feed(self, recipe_vm_factory, recipe_repository):
        await recipe_repository.add_recipe(make_recipe("Tomato Soup"))
        await recipe_repository.add_recipe(make_recipe("Pancakes", description="Sweet"))
        vm = recipe_vm_factory()
        feed = vm.load_all_recipes()

        search = vm.search_recipes("soup")
        await search
        await asyncio.gather(feed, return_exceptions=True)

        assert feed.cancelled()
        assert [r.name for r in vm.recipes_state.value.data] == ["Tomato Soup"]
        await vm.close()

    async def test_blank_search_restores_feed(self, recipe_vm_factory, recipe_repository, wait_for):
        await recipe_repository.add_recipe(make_recipe("Tomato Soup"))
        await recipe_repository.add_recipe(make_recipe("Pancakes"))
        vm = recipe_vm_factory()
        await vm.search_recipes("soup")

        vm.search_recipes("   ")

        result = await wait_for(vm.recipes_state, lambda v: is_success(v) and len(v.data) == 2)
        assert vm.is_active("recipes")
        assert len(result.data) == 2
        await vm.close()

    async def test_user_recipes(self, signed_in, recipe_vm_factory, recipe_repository, wait_for):
        uid = signed_in.get_current_user_id()
        await recipe_repository.add_recipe(make_recipe("Mine", created_by=uid))
        await recipe_repository.add_recipe(make_recipe("Theirs", created_by="someone"))
        vm = recipe_vm_factory()

        vm.load_user_recipes()
        result = await wait_for(vm.user_recipes_state, is_success)

        assert [r.name for r in result.data] == ["Mine"]
        await vm.close()

    async def test_favorites_empty(self, signed_in, recipe_vm_factory):
        vm = recipe_vm_factory()
        await vm.load_favorite_recipes()
        assert vm.favorite_recipes_state.value == Success([])

    async def test_favorites(self, signed_in, recipe_vm_factory, recipe_repository, user_repository):
        uid = signed_in.get_current_user_id()
        liked = (await recipe_repository.add_recipe(make_recipe("Liked"))).data
        await recipe_repository.add_recipe(make_recipe("Other"))
        await user_repository.add_to_favorites(uid, liked)
        vm = recipe_vm_factory()

        await vm.load_favorite_recipes()

        assert [r.name for r in vm.favorite_recipes_state.value.data] == ["Liked"]

    async def test_signed_out_operations_are_noops(self, recipe_vm_factory):
        vm = recipe_vm_factory()

        assert vm.load_user_recipes() is None
        assert vm.load_favorite_recipes() is None
        assert vm.toggle_favorite("r1") is None
        assert vm.add_recipe(make_recipe()) is None
        assert vm.update_recipe(make_recipe(recipe_id="r1")) is None
        assert vm.save_recipe_state.value is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestRecipeViewModelDetail:
    """Tests for recipe detail and favorite toggling"""

    async def test_load_recipe_checks_favorite(
        self, signed_in, recipe_vm_factory, recipe_repository, user_repository
    ):
        recipe_id = (await recipe_repository.add_recipe(make_recipe())).data
        await user_repository.add_to_favorites(signed_in.get_current_user_id(), recipe_id)
        vm = recipe_vm_factory()

        await vm.load_recipe(recipe_id)

        assert vm.recipe_state.value.data.recipe_id == recipe_id
        assert vm.is_favorite.value is True

    async def test_load_missing_recipe(self, signed_in, recipe_vm_factory):
        vm = recipe_vm_factory()
        await vm.load_recipe("ghost")
        assert vm.recipe_state.value == Error.of("Recipe not found")
        vm.clear_recipe_state()
        assert vm.recipe_state.value is None

    async def test_toggle_twice(self, signed_in, recipe_vm_factory, user_repository):
        uid = signed_in.get_current_user_id()
        vm = recipe_vm_factory()

        await vm.toggle_favorite("r1")
        assert vm.is_favorite.value is True
        assert await user_repository.get_favorite_recipe_ids(uid) == Success(["r1"])

        await vm.toggle_favorite("r1")
        assert vm.is_favorite.value is False
        assert await user_repository.get_favorite_recipe_ids(uid) == Success([])

    async def test_toggle_failure_keeps_state(self, signed_in, recipe_vm_factory):
        users = Mock(spec=UserRepository)
        users.add_to_favorites = AsyncMock(return_value=Error.of("offline"))
        vm = recipe_vm_factory(users=users)

        await vm.toggle_favorite("r1")

        users.add_to_favorites.assert_awaited_once()
        assert vm.is_favorite.value is False


@pytest.mark.unit
@pytest.mark.asyncio
class TestRecipeViewModelWrites:
    """Tests for add, update and delete"""

    async def test_add_with_image(
        self, signed_in, recipe_vm_factory, recipe_repository, storage
    ):
        uid = signed_in.get_current_user_id()
        vm = recipe_vm_factory()

        await vm.add_recipe(make_recipe(), JPEG)

        result = vm.save_recipe_state.value
        assert result.is_success
        stored = (await recipe_repository.get_recipe_by_id(result.data)).data
        assert stored.created_by == uid
        assert stored.image_url.startswith(storage.base_url)
        assert storage.exists(storage.path_from_url(stored.image_url))

    async def test_add_without_image(self, signed_in, recipe_vm_factory, recipe_repository):
        vm = recipe_vm_factory()

        await vm.add_recipe(make_recipe())

        stored = (await recipe_repository.get_recipe_by_id(vm.save_recipe_state.value.data)).data
        assert stored.image_url == ""

    async def test_add_stops_on_upload_error(
        self, signed_in, recipe_vm_factory, recipe_repository
    ):
        vm = recipe_vm_factory()

        await vm.add_recipe(make_recipe(), b"")

        assert vm.save_recipe_state.value == Error.of("Image is empty")
        assert await recipe_repository.search_recipes("") == Success([])
        vm.clear_save_recipe_state()
        assert vm.save_recipe_state.value is None

    async def test_update_replaces_image(
        self, signed_in, recipe_vm_factory, recipe_repository, storage_repository, storage
    ):
        uid = signed_in.get_current_user_id()
        old_url = (await storage_repository.upload_recipe_image(JPEG, uid)).data
        recipe_id = (
            await recipe_repository.add_recipe(make_recipe(created_by=uid, image_url=old_url))
        ).data
        recipe = (await recipe_repository.get_recipe_by_id(recipe_id)).data
        vm = recipe_vm_factory()

        await vm.update_recipe(recipe.copy(name="Better Pancakes"), JPEG)

        assert vm.save_recipe_state.value == Success(recipe_id)
        updated = (await recipe_repository.get_recipe_by_id(recipe_id)).data
        assert updated.name == "Better Pancakes"
        assert updated.image_url.endswith(f"/{uid}/{recipe_id}.jpg")
        assert not storage.exists(storage.path_from_url(old_url))

    async def test_update_without_new_image(self, signed_in, recipe_vm_factory, recipe_repository):
        recipe_id = (await recipe_repository.add_recipe(make_recipe(image_url="http://x/y.jpg"))).data
        recipe = (await recipe_repository.get_recipe_by_id(recipe_id)).data
        vm = recipe_vm_factory()

        await vm.update_recipe(recipe.copy(difficulty="Hard"))

        updated = (await recipe_repository.get_recipe_by_id(recipe_id)).data
        assert updated.difficulty == "Hard"
        assert updated.image_url == "http://x/y.jpg"

    async def test_delete_ignores_image_failure(
        self, signed_in, recipe_vm_factory, recipe_repository
    ):
        recipe_id = (
            await recipe_repository.add_recipe(make_recipe(image_url="http://elsewhere/x.jpg"))
        ).data
        recipe = (await recipe_repository.get_recipe_by_id(recipe_id)).data
        vm = recipe_vm_factory()

        await vm.delete_recipe(recipe)

        assert vm.delete_recipe_state.value == Success(None)
        assert (await recipe_repository.get_recipe_by_id(recipe_id)).is_error
        vm.clear_delete_recipe_state()
        assert vm.delete_recipe_state.value is None

    async def test_close_stops_feeds(self, recipe_vm_factory, change_notifier, wait_for):
        vm = recipe_vm_factory(autoload=True)
        await wait_for(vm.recipes_state, is_success)
        assert change_notifier.subscriber_count("recipes") == 1

        await vm.close()

        assert vm.active_task_count == 0
        assert change_notifier.subscriber_count("recipes") == 0
