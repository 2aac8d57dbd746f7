"""
Tests for the service layer.
Covers authorization of listing writes, image attachment, search validation and authentication.
"""

import pytest
import uuid

from catalog.models.enums import UserRole
from catalog.services import AuthService, PropertyService, admin_only, deny_all
from catalog.storage import InMemoryStorage, StorageBackend
from catalog.utils.exceptions import (
    DuplicateResourceError,
    ForbiddenError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from tests.conftest import PropertyFactory, UserFactory, seed_catalog, titles


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
async def admin_user(memory_storage):
    return await UserFactory.create_user(memory_storage, username="admin", role="admin")


@pytest.fixture
async def regular_user(memory_storage):
    return await UserFactory.create_user(memory_storage, username="visitor")


@pytest.fixture
def admin_service(memory_storage, admin_user) -> PropertyService:
    return PropertyService(memory_storage, authorize=admin_only(admin_user))


@pytest.fixture
def auth_service(memory_storage) -> AuthService:
    return AuthService(memory_storage)


class TestAuthorization:
    """Test the authorization predicates."""

    def test_admin_only(self, admin_user, regular_user):
        assert admin_only(admin_user)("create properties") is True
        assert admin_only(regular_user)("create properties") is False
        assert admin_only(None)("create properties") is False

    def test_deny_all(self):
        assert deny_all("delete properties") is False


class TestPropertyService:
    """Test listing management through the service."""

    @pytest.mark.asyncio
    async def test_admin_manages_listing(self, admin_service: PropertyService):
        created = await admin_service.create_property(PropertyFactory.create_property_data(title="Managed"))
        updated = await admin_service.update_property(created.id, {"status": "pending"})

        assert updated.status.value == "pending"
        assert await admin_service.list_properties() == []
        assert titles(await admin_service.list_properties({"status": "pending"})) == ["Managed"]

        await admin_service.delete_property(created.id)
        with pytest.raises(PropertyNotFoundError):
            await admin_service.get_property(created.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("authorize", [deny_all, None])
    async def test_writes_denied_without_permission(self, memory_storage, regular_user, authorize):
        service = PropertyService(memory_storage, authorize=authorize or admin_only(regular_user))
        existing = await PropertyFactory.create_property(memory_storage)

        with pytest.raises(InsufficientPermissionsError) as exc_info:
            await service.create_property(PropertyFactory.create_property_data())
        assert isinstance(exc_info.value, ForbiddenError)
        assert exc_info.value.status_code == 403

        with pytest.raises(InsufficientPermissionsError):
            await service.update_property(existing.id, {"title": "Hijacked"})
        with pytest.raises(InsufficientPermissionsError):
            await service.delete_property(existing.id)
        with pytest.raises(InsufficientPermissionsError):
            await service.attach_images(existing.id, ["/uploads/x.jpg"])

        assert await memory_storage.get_property(existing.id) == existing

    @pytest.mark.asyncio
    async def test_permission_checked_before_validation(self, memory_storage):
        service = PropertyService(memory_storage)

        with pytest.raises(InsufficientPermissionsError):
            await service.create_property({"title": ""})

    @pytest.mark.asyncio
    async def test_reads_are_open(self, memory_storage):
        await seed_catalog(memory_storage)
        service = PropertyService(memory_storage)

        assert titles(await service.list_properties({"listing_type": "rent", "sort_by": "price_asc"})) == [
            "Studio Centro", "Apartamento Savassi",
        ]
        assert titles(await service.search("  pool  ")) == ["Cobertura Leblon", "Casa Azul"]

    @pytest.mark.asyncio
    async def test_action_passed_to_predicate(self, memory_storage):
        seen = []

        def record_action(action: str) -> bool:
            seen.append(action)
            return True

        service = PropertyService(memory_storage, authorize=record_action)
        prop = await service.create_property(PropertyFactory.create_property_data())
        await service.attach_images(prop.id, [])
        await service.update_property(prop.id, {"featured": True})
        await service.delete_property(prop.id)

        assert seen == ["create properties", "upload images", "update properties", "delete properties"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_search_requires_query(self, memory_storage, query):
        with pytest.raises(ValidationError):
            await PropertyService(memory_storage).search(query)

    @pytest.mark.asyncio
    async def test_get_property_not_found(self, admin_service: PropertyService):
        with pytest.raises(PropertyNotFoundError):
            await admin_service.get_property(str(uuid.uuid4()))


class TestImageAttachment:
    """Test replacing a listing's image references."""

    @pytest.mark.asyncio
    async def test_attach_images_preserves_order(self, admin_service: PropertyService):
        prop = await admin_service.create_property(PropertyFactory.create_property_data(images=["/uploads/old.jpg"]))
        images = ["/uploads/b.jpg", "/uploads/a.jpg", "https://cdn.example.com/c.png"]

        updated = await admin_service.attach_images(prop.id, images)

        assert updated.images == images
        assert (await admin_service.get_property(prop.id)).images == images
        assert updated.title == prop.title

    @pytest.mark.asyncio
    @pytest.mark.parametrize("images", ["/uploads/a.jpg", ["/uploads/a.jpg", 3], None])
    async def test_attach_images_rejects_non_string_lists(self, admin_service: PropertyService, images):
        prop = await admin_service.create_property(PropertyFactory.create_property_data())

        with pytest.raises(ValidationError):
            await admin_service.attach_images(prop.id, images)

    @pytest.mark.asyncio
    async def test_attach_images_missing_property(self, admin_service: PropertyService):
        with pytest.raises(PropertyNotFoundError):
            await admin_service.attach_images(str(uuid.uuid4()), ["/uploads/a.jpg"])


class TestAuthService:
    """Test authentication against any backend."""

    @pytest.mark.asyncio
    async def test_register_and_authenticate(self, storage: StorageBackend):
        service = AuthService(storage)
        user = await service.register_user({"username": "maria", "password": "s3cret!!", "role": "admin"})

        authenticated = await service.authenticate("maria", "s3cret!!")

        assert authenticated == user
        assert authenticated.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_register_duplicate(self, auth_service: AuthService):
        await auth_service.register_user(UserFactory.create_user_data(username="maria"))

        with pytest.raises(DuplicateResourceError):
            await auth_service.register_user(UserFactory.create_user_data(username="maria"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [
        ("maria", "wrong-password"),
        ("nobody", "secret123"),
        ("", "secret123"),
        ("maria", ""),
    ])
    async def test_authenticate_failures(self, auth_service: AuthService, username, password):
        await UserFactory.create_user(auth_service.storage, username="maria")

        assert await auth_service.authenticate(username, password) is None

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service: AuthService):
        user = await UserFactory.create_user(auth_service.storage, username="maria")

        await auth_service.change_password(user.id, "secret123", "new-secret")

        assert await auth_service.authenticate("maria", "new-secret") is not None
        assert await auth_service.authenticate("maria", "secret123") is None

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, auth_service: AuthService):
        user = await UserFactory.create_user(auth_service.storage, username="maria")

        with pytest.raises(ValidationError):
            await auth_service.change_password(user.id, "not-it", "new-secret")

        assert await auth_service.authenticate("maria", "secret123") is not None

    @pytest.mark.asyncio
    async def test_change_password_too_short(self, auth_service: AuthService):
        user = await UserFactory.create_user(auth_service.storage)

        with pytest.raises(ValidationError):
            await auth_service.change_password(user.id, "secret123", "123")

    @pytest.mark.asyncio
    async def test_change_password_unknown_user(self, auth_service: AuthService):
        with pytest.raises(UserNotFoundError):
            await auth_service.change_password(str(uuid.uuid4()), "secret123", "new-secret")
