"""Shared fixtures for catalog tests."""

from decimal import Decimal
from typing import Any

import pytest

from app.application.catalog_service import CatalogService
from app.application.fields import CategoryFields, ItemFields, SubCategoryFields
from app.application.rules import ItemView, SubCategoryView
from app.catalog.stores import InMemoryCatalogStores, reset_memory_stores
from app.domain.entities import Category
from app.domain.value_objects import ImageUpload
from app.infrastructure.blob_store import InMemoryBlobStore, reset_blob_store

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_image(filename: str = "photo.png") -> ImageUpload:
    """Create a small image payload."""
    return ImageUpload(filename=filename, content=PNG_BYTES, content_type="image/png")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset process-wide stores and blob store before each test."""
    reset_memory_stores()
    reset_blob_store(InMemoryBlobStore())
    yield
    reset_memory_stores()
    reset_blob_store()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Blob store with failure injection switches."""
    return InMemoryBlobStore()


@pytest.fixture
def stores() -> InMemoryCatalogStores:
    """Fresh in-memory stores."""
    return InMemoryCatalogStores()


@pytest.fixture
def service(stores: InMemoryCatalogStores, blob_store: InMemoryBlobStore) -> CatalogService:
    """Catalog service over in-memory stores."""
    return CatalogService(stores=stores, blob_store=blob_store, request_id="test-request")


@pytest.fixture
def create_category(service: CatalogService):
    """Factory creating a category and returning it."""

    async def _create(name: str = "Beverages", **fields: Any) -> Category:
        fields.setdefault("description", f"{name} description")
        result = await service.create_category(CategoryFields(name=name, **fields), make_image())
        assert result.success, result.error
        return result.data

    return _create


@pytest.fixture
def create_sub_category(service: CatalogService):
    """Factory creating a sub-category and returning its view."""

    async def _create(category_id: str, name: str = "Hot Drinks", **fields: Any) -> SubCategoryView:
        fields.setdefault("description", f"{name} description")
        result = await service.create_sub_category(
            SubCategoryFields(name=name, category_id=category_id, **fields), make_image()
        )
        assert result.success, result.error
        return result.data

    return _create


@pytest.fixture
def create_item(service: CatalogService):
    """Factory creating an item and returning its view."""

    async def _create(
        category_id: str,
        name: str = "Espresso",
        base_amount: Any = Decimal("3.50"),
        **fields: Any,
    ) -> ItemView:
        fields.setdefault("description", f"{name} description")
        result = await service.create_item(
            ItemFields(name=name, category_id=category_id, base_amount=base_amount, **fields),
            make_image(),
        )
        assert result.success, result.error
        return result.data

    return _create


@pytest.fixture
def image() -> ImageUpload:
    """Image payload for writes."""
    return make_image()
