"""Tests for item operations of the catalog service."""

from decimal import Decimal

import pytest

from app.application.catalog_service import CatalogService, ResultKind
from app.application.fields import ItemFields
from app.application.image_lifecycle import CleanupStatus, ReleaseReason
from app.catalog.stores import InMemoryCatalogStores
from app.domain import ImageUpload, TaxType
from app.domain.exceptions import StoreError
from app.infrastructure.blob_store import InMemoryBlobStore

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
async def beverages(create_category):
    """A taxed category."""
    return await create_category("Beverages", tax_applicability=True, tax=5, tax_type="percentage")


class TestCreateItem:
    """Tests for creating items."""

    async def test_total_amount(self, create_item, beverages) -> None:
        """Total is base amount minus discount."""
        view = await create_item(beverages.id, "Latte", base_amount=100, discount=10)

        assert view.item.total_amount == Decimal("90")
        assert view.category.name == "Beverages"
        assert view.sub_category is None

    async def test_discount_defaults_to_zero(self, create_item, beverages) -> None:
        """Without a discount the total equals the base amount."""
        view = await create_item(beverages.id, "Tea", base_amount="4.20")
        assert view.item.discount == Decimal("0")
        assert view.item.total_amount == Decimal("4.20")

    async def test_discount_above_base(self, create_item, beverages) -> None:
        """A discount larger than the base amount yields a negative total."""
        view = await create_item(beverages.id, "Promo", base_amount=5, discount=8)
        assert view.item.total_amount == Decimal("-3")

    async def test_tax_not_inherited(self, create_item, beverages) -> None:
        """Items carry their own tax fields; nothing is copied from the category."""
        view = await create_item(beverages.id, "Water")
        assert view.item.tax_applicability is False
        assert view.item.tax_type == TaxType.NONE

    async def test_with_sub_category(self, create_item, create_sub_category, beverages) -> None:
        """A sub-category of the same category is accepted and resolved."""
        hot = await create_sub_category(beverages.id, "Hot")

        view = await create_item(beverages.id, "Mocha", sub_category_id=hot.sub_category.id)

        assert view.item.sub_category_id == hot.sub_category.id
        assert view.sub_category.name == "Hot"

    async def test_sub_category_of_other_category(
        self,
        service: CatalogService,
        stores: InMemoryCatalogStores,
        blob_store: InMemoryBlobStore,
        create_category,
        create_sub_category,
        beverages,
        image: ImageUpload,
    ) -> None:
        """A sub-category from another category conflicts and writes nothing."""
        food = await create_category("Food")
        mains = await create_sub_category(food.id, "Mains")
        uploads_before = len(blob_store.blobs)

        result = await service.create_item(
            ItemFields(
                name="Soda",
                description="Fizzy",
                base_amount=2,
                category_id=beverages.id,
                sub_category_id=mains.sub_category.id,
            ),
            image,
        )

        assert result.kind == ResultKind.CONFLICT
        assert result.error_code == "CATEGORY_MISMATCH"
        assert await stores.items.list_all() == []
        assert len(blob_store.blobs) == uploads_before

    async def test_missing_sub_category(
        self, service: CatalogService, beverages, image: ImageUpload
    ) -> None:
        """An unknown sub-category is not found."""
        result = await service.create_item(
            ItemFields(
                name="Soda",
                description="Fizzy",
                base_amount=2,
                category_id=beverages.id,
                sub_category_id=MISSING_ID,
            ),
            image,
        )
        assert result.kind == ResultKind.NOT_FOUND
        assert "Sub-category not found" in result.error

    async def test_missing_category(self, service: CatalogService, image: ImageUpload) -> None:
        """An unknown category is not found."""
        result = await service.create_item(
            ItemFields(name="Soda", description="Fizzy", base_amount=2, category_id=MISSING_ID),
            image,
        )
        assert result.kind == ResultKind.NOT_FOUND

    @pytest.mark.parametrize(
        "fields",
        [
            {"description": "d", "base_amount": 1},
            {"name": "X", "description": "d"},
            {"name": "X", "description": "d", "base_amount": -1},
            {"name": "X", "description": "d", "base_amount": "abc"},
            {"name": "X", "description": "d", "base_amount": 1, "discount": -2},
        ],
    )
    async def test_invalid_fields(
        self, service: CatalogService, beverages, image: ImageUpload, fields
    ) -> None:
        """Missing or malformed fields are validation errors."""
        result = await service.create_item(
            ItemFields(category_id=beverages.id, **fields), image
        )
        assert result.kind == ResultKind.VALIDATION_ERROR


class TestUpdateItem:
    """Tests for updating items."""

    async def test_recompute_on_discount(
        self, service: CatalogService, create_item, beverages
    ) -> None:
        """Changing only the discount recomputes from the stored base amount."""
        view = await create_item(beverages.id, "Latte", base_amount=100, discount=10)

        result = await service.update_item(view.item.id, ItemFields(discount=25))

        assert result.data.item.base_amount == Decimal("100")
        assert result.data.item.total_amount == Decimal("75")

    async def test_recompute_on_base_amount(
        self, service: CatalogService, create_item, beverages
    ) -> None:
        """Changing only the base amount keeps the stored discount."""
        view = await create_item(beverages.id, "Latte", base_amount=100, discount=10)

        result = await service.update_item(view.item.id, ItemFields(base_amount=50))

        assert result.data.item.total_amount == Decimal("40")

    async def test_unrelated_change_keeps_total(
        self, service: CatalogService, create_item, beverages
    ) -> None:
        """Total is unchanged by edits that do not touch amounts."""
        view = await create_item(beverages.id, "Latte", base_amount=100, discount=10)

        result = await service.update_item(view.item.id, ItemFields(name="Flat White"))

        assert result.data.item.name == "Flat White"
        assert result.data.item.total_amount == Decimal("90")

    async def test_set_and_clear_sub_category(
        self, service: CatalogService, create_item, create_sub_category, beverages
    ) -> None:
        """A sub-category can be assigned and cleared."""
        hot = await create_sub_category(beverages.id, "Hot")
        view = await create_item(beverages.id, "Latte")

        assigned = await service.update_item(
            view.item.id, ItemFields(sub_category_id=hot.sub_category.id)
        )
        cleared = await service.update_item(view.item.id, ItemFields(sub_category_id=None))

        assert assigned.data.sub_category.id == hot.sub_category.id
        assert cleared.success
        assert cleared.data.item.sub_category_id is None
        assert cleared.data.sub_category is None

    async def test_sub_category_checked_against_stored_category(
        self,
        service: CatalogService,
        create_category,
        create_item,
        create_sub_category,
        beverages,
    ) -> None:
        """Without a category change, membership is checked against the stored one."""
        food = await create_category("Food")
        mains = await create_sub_category(food.id, "Mains")
        view = await create_item(beverages.id, "Latte")

        result = await service.update_item(
            view.item.id, ItemFields(sub_category_id=mains.sub_category.id)
        )

        assert result.kind == ResultKind.CONFLICT
        assert result.error_code == "CATEGORY_MISMATCH"

    async def test_move_with_matching_sub_category(
        self,
        service: CatalogService,
        create_category,
        create_item,
        create_sub_category,
        beverages,
    ) -> None:
        """Category and sub-category can change together."""
        food = await create_category("Food")
        mains = await create_sub_category(food.id, "Mains")
        view = await create_item(beverages.id, "Soup")

        result = await service.update_item(
            view.item.id,
            ItemFields(category_id=food.id, sub_category_id=mains.sub_category.id),
        )

        assert result.success
        assert result.data.category.name == "Food"
        assert result.data.sub_category.name == "Mains"

    async def test_move_keeping_old_sub_category(
        self,
        service: CatalogService,
        create_category,
        create_item,
        create_sub_category,
        beverages,
    ) -> None:
        """Changing category while keeping a sub-category of the old one conflicts."""
        food = await create_category("Food")
        hot = await create_sub_category(beverages.id, "Hot")
        view = await create_item(beverages.id, "Latte", sub_category_id=hot.sub_category.id)

        result = await service.update_item(view.item.id, ItemFields(category_id=food.id))

        assert result.kind == ResultKind.CONFLICT
        stored = (await service.get_item(view.item.id)).data
        assert stored.item.category_id == beverages.id

    async def test_move_to_missing_category(
        self, service: CatalogService, create_item, beverages
    ) -> None:
        """The new category must exist."""
        view = await create_item(beverages.id, "Latte")
        result = await service.update_item(view.item.id, ItemFields(category_id=MISSING_ID))
        assert result.kind == ResultKind.NOT_FOUND

    async def test_disable_tax(self, service: CatalogService, create_item, beverages) -> None:
        """Disabling tax with a tax value still stores zero."""
        view = await create_item(
            beverages.id, "Wine", tax_applicability=True, tax=8, tax_type="percentage"
        )

        result = await service.update_item(
            view.item.id, ItemFields(tax_applicability=False, tax=8)
        )

        assert result.data.item.tax == Decimal("0")
        assert result.data.item.tax_type == TaxType.NONE

    async def test_replace_image_old_delete_fails(
        self,
        service: CatalogService,
        blob_store: InMemoryBlobStore,
        create_item,
        beverages,
        image: ImageUpload,
    ) -> None:
        """The update succeeds and records the ignored release failure."""
        view = await create_item(beverages.id, "Latte")
        blob_store.fail_deletes = True

        result = await service.update_item(view.item.id, ItemFields(), image)

        assert result.success
        assert result.data.item.image != view.item.image
        assert result.cleanup[0].status == CleanupStatus.FAILED_IGNORED


class TestQueryItems:
    """Tests for item lookup, listing and search."""

    async def test_get_by_id_and_name(
        self, service: CatalogService, create_item, beverages
    ) -> None:
        """Lookup by id and by name return the same data."""
        view = await create_item(beverages.id, "Latte")

        by_id = await service.get_item(view.item.id)
        by_name = await service.get_item("Latte")

        assert by_id.data == by_name.data
        assert by_name.data.item.total_amount == view.item.total_amount

    async def test_list_by_parents(
        self,
        service: CatalogService,
        create_category,
        create_item,
        create_sub_category,
        beverages,
    ) -> None:
        """Items can be listed per category and per sub-category."""
        food = await create_category("Food")
        hot = await create_sub_category(beverages.id, "Hot")
        latte = await create_item(beverages.id, "Latte", sub_category_id=hot.sub_category.id)
        water = await create_item(beverages.id, "Water")
        await create_item(food.id, "Soup")

        by_category = await service.list_items_by_category(beverages.id)
        by_sub = await service.list_items_by_sub_category(hot.sub_category.id)

        assert [v.item.id for v in by_category.data] == [water.item.id, latte.item.id]
        assert [v.item.id for v in by_sub.data] == [latte.item.id]
        assert len((await service.list_items()).data) == 3

    async def test_list_by_missing_parent(self, service: CatalogService) -> None:
        """Listing under unknown parents is not found."""
        assert (await service.list_items_by_category(MISSING_ID)).kind == ResultKind.NOT_FOUND
        assert (
            await service.list_items_by_sub_category(MISSING_ID)
        ).kind == ResultKind.NOT_FOUND

    async def test_search_ranking(self, service: CatalogService, create_item, beverages) -> None:
        """Name matches outrank description matches."""
        await create_item(beverages.id, "Matcha", description="Green tea powder")
        tea = await create_item(beverages.id, "Iced Tea", description="Cold brew")
        await create_item(beverages.id, "Espresso", description="Strong coffee")

        result = await service.search_items("tea")

        assert [v.item.name for v in result.data] == ["Iced Tea", "Matcha"]
        assert result.data[0].item.id == tea.item.id

    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_search_requires_query(self, service: CatalogService, query) -> None:
        """An empty query is a validation error."""
        result = await service.search_items(query)
        assert result.kind == ResultKind.VALIDATION_ERROR

    async def test_delete(
        self, service: CatalogService, blob_store: InMemoryBlobStore, create_item, beverages
    ) -> None:
        """Items are deleted with their image."""
        view = await create_item(beverages.id, "Latte")

        result = await service.delete_item(view.item.id)

        assert result.success
        assert view.item.image.store_id in blob_store.deleted
        assert (await service.get_item(view.item.id)).kind == ResultKind.NOT_FOUND


class TestPersistFailure:
    """Tests for store failures after an upload."""

    async def test_insert_failure_releases_upload(
        self,
        service: CatalogService,
        stores: InMemoryCatalogStores,
        blob_store: InMemoryBlobStore,
        beverages,
        image: ImageUpload,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """The fresh image is rolled back and the failure reported."""

        async def broken_insert(entity):
            raise StoreError("insert", "disk full")

        monkeypatch.setattr(stores.items, "insert", broken_insert)
        uploads_before = set(blob_store.blobs)

        result = await service.create_item(
            ItemFields(name="Latte", description="Milk coffee", base_amount=4, category_id=beverages.id),
            image,
        )

        assert result.kind == ResultKind.STORE_FAILURE
        assert result.error_code == "STORE_ERROR"
        assert [c.reason for c in result.cleanup] == [ReleaseReason.ROLLBACK]
        assert result.cleanup[0].status == CleanupStatus.SUCCEEDED
        assert set(blob_store.blobs) == uploads_before

    async def test_update_failure_releases_new_upload(
        self,
        service: CatalogService,
        stores: InMemoryCatalogStores,
        create_item,
        beverages,
        image: ImageUpload,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """The old image is released before persisting, the new one on failure."""
        view = await create_item(beverages.id, "Latte")

        async def broken_update(entity_id, fields):
            raise StoreError("update", "connection lost")

        monkeypatch.setattr(stores.items, "update", broken_update)

        result = await service.update_item(view.item.id, ItemFields(name="Mocha"), image)

        assert result.kind == ResultKind.STORE_FAILURE
        assert [c.reason for c in result.cleanup] == [ReleaseReason.REPLACED, ReleaseReason.ROLLBACK]

    async def test_update_of_vanished_record_releases_upload(
        self,
        service: CatalogService,
        stores: InMemoryCatalogStores,
        blob_store: InMemoryBlobStore,
        create_item,
        beverages,
        image: ImageUpload,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A record deleted mid-update does not keep the new image."""
        view = await create_item(beverages.id, "Latte")

        async def vanished_update(entity_id, fields):
            return None

        monkeypatch.setattr(stores.items, "update", vanished_update)

        result = await service.update_item(view.item.id, ItemFields(name="Mocha"), image)

        assert result.kind == ResultKind.NOT_FOUND
        assert [c.reason for c in result.cleanup] == [ReleaseReason.REPLACED, ReleaseReason.ROLLBACK]
        assert all(c.succeeded for c in result.cleanup)
        assert set(blob_store.blobs) == {beverages.image.store_id}
