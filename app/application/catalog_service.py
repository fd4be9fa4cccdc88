"""Catalog application service.

The consistency layer in front of the three catalog stores and the blob
store. Every mutation runs in the same order:

- validation and reference checks
- image upload
- release of the replaced image (update only)
- persistence

Failures never propagate: each public operation returns a CatalogResult
carrying a result kind, message and error code.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog

from app.application.fields import CategoryFields, FieldSet, ItemFields, SubCategoryFields
from app.application.image_lifecycle import CleanupOutcome, ImageLifecycle, ReleaseReason
from app.application.rules import (
    CategoryRules,
    EntityRules,
    ItemRules,
    ItemView,
    SubCategoryRules,
    SubCategoryView,
)
from app.catalog.stores import CatalogStores, get_memory_stores
from app.domain.entities import CatalogEntity, Category
from app.domain.exceptions import (
    CatalogError,
    ConflictError,
    NotFoundError,
    StoreError,
    UploadError,
    ValidationError,
)
from app.domain.value_objects import ImageRef, ImageUpload, is_entity_id
from app.infrastructure.blob_store import BlobStore, get_blob_store

logger = structlog.get_logger()

T = TypeVar("T")


# ============================================================================
# Service Result Types
# ============================================================================


class ResultKind(str, Enum):
    """Outcome category reported to the transport layer."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPLOAD_FAILURE = "upload_failure"
    STORE_FAILURE = "store_failure"


# Most specific first
_ERROR_KINDS: list[tuple[type[CatalogError], ResultKind]] = [
    (ValidationError, ResultKind.VALIDATION_ERROR),
    (NotFoundError, ResultKind.NOT_FOUND),
    (ConflictError, ResultKind.CONFLICT),
    (UploadError, ResultKind.UPLOAD_FAILURE),
    (StoreError, ResultKind.STORE_FAILURE),
]


def result_kind(error: CatalogError) -> ResultKind:
    """Map a catalog error to its result kind."""
    for error_type, kind in _ERROR_KINDS:
        if isinstance(error, error_type):
            return kind
    return ResultKind.STORE_FAILURE


@dataclass
class CatalogResult(Generic[T]):
    """Result of a catalog operation.

    Attributes:
        data: Returned entity, view or list on success.
        kind: Outcome category.
        error: Human-readable error message.
        error_code: Machine-readable error code.
        details: Extra error context.
        cleanup: Outcomes of compensating image releases.
    """

    data: T | None = None
    kind: ResultKind = ResultKind.SUCCESS
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    cleanup: list[CleanupOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check whether the operation succeeded."""
        return self.kind == ResultKind.SUCCESS

    @classmethod
    def failure(cls, error: CatalogError, cleanup: list[CleanupOutcome] | None = None) -> "CatalogResult[T]":
        """Build a failed result from a catalog error."""
        return cls(
            kind=result_kind(error),
            error=error.message,
            error_code=error.error_code,
            details=error.details,
            cleanup=cleanup or [],
        )


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Application service for the catalog hierarchy.

    Handles:
    - Create/update/delete of categories, sub-categories and items
    - Owned image upload and release
    - Tax inheritance and the derived item total
    - Lookup by id or name, hierarchical listings and item search
    """

    def __init__(
        self,
        stores: CatalogStores,
        blob_store: BlobStore,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            stores: Category, sub-category and item stores.
            blob_store: Gateway to the external image store.
            request_id: Request ID for correlation.
        """
        self.stores = stores
        self.images = ImageLifecycle(blob_store, request_id=request_id)
        self.request_id = request_id
        self.categories = CategoryRules(stores)
        self.sub_categories = SubCategoryRules(stores)
        self.items = ItemRules(stores)

    # ========================================================================
    # Shared pipeline
    # ========================================================================

    async def _guard(
        self,
        operation: str,
        entity_type: str,
        action: Callable[[list[CleanupOutcome]], Awaitable[T]],
    ) -> CatalogResult[T]:
        """Run an operation and convert catalog errors into a result."""
        cleanup: list[CleanupOutcome] = []
        try:
            data = await action(cleanup)
        except CatalogError as e:
            kind = result_kind(e)
            log = logger.error if kind in (ResultKind.UPLOAD_FAILURE, ResultKind.STORE_FAILURE) else logger.info
            log(
                "Catalog operation failed",
                operation=operation,
                entity_type=entity_type,
                error_code=e.error_code,
                error=e.message,
                request_id=self.request_id,
            )
            return CatalogResult.failure(e, cleanup)
        return CatalogResult(data=data, cleanup=cleanup)

    @staticmethod
    def _require_image(image: ImageUpload | None) -> ImageUpload:
        if image is None or image.is_empty:
            raise ValidationError("Image file is required", field="image")
        return image

    async def _load(self, rules: EntityRules[Any, Any], entity_id: str) -> Any:
        entity = await rules.store.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(rules.entity_type, entity_id)
        return entity

    async def _persist(
        self,
        write: Awaitable[Any],
        uploaded: ImageRef | None,
        cleanup: list[CleanupOutcome],
    ) -> Any:
        """Run a store write, releasing a fresh upload if it fails."""
        try:
            return await write
        except CatalogError:
            if uploaded is not None:
                cleanup.append(await self.images.release(uploaded, ReleaseReason.ROLLBACK))
            raise

    async def _create(
        self,
        rules: EntityRules[Any, T],
        fields: FieldSet,
        image: ImageUpload | None,
    ) -> CatalogResult[T]:
        async def action(cleanup: list[CleanupOutcome]) -> T:
            values = rules.clean(fields.provided())
            rules.check_required(values)
            payload = self._require_image(image)
            context = await rules.check_create(values)

            ref = await self.images.upload(payload)

            async def build_and_insert() -> CatalogEntity:
                return await rules.store.insert(rules.build(values, ref, context))

            entity = await self._persist(build_and_insert(), ref, cleanup)
            logger.info(
                "Catalog entity created",
                entity_type=rules.entity_type,
                entity_id=entity.id,
                name=entity.name,
                request_id=self.request_id,
            )
            return await rules.present_one(entity)

        return await self._guard("create", rules.entity_type, action)

    async def _update(
        self,
        rules: EntityRules[Any, T],
        entity_id: str,
        fields: FieldSet,
        image: ImageUpload | None,
    ) -> CatalogResult[T]:
        async def action(cleanup: list[CleanupOutcome]) -> T:
            current = await self._load(rules, entity_id)
            changes = rules.clean(fields.provided())
            if image is not None:
                self._require_image(image)
            await rules.check_update(current, changes)
            changes = rules.derive_update(current, changes)

            uploaded = None
            if image is not None:
                uploaded = await self.images.upload(image)
                cleanup.append(await self.images.release(current.image, ReleaseReason.REPLACED))
                changes = {**changes, "image": uploaded}

            entity = await self._persist(rules.store.update(entity_id, changes), uploaded, cleanup)
            if entity is None:
                # Deleted since it was loaded
                if uploaded is not None:
                    cleanup.append(await self.images.release(uploaded, ReleaseReason.ROLLBACK))
                raise NotFoundError(rules.entity_type, entity_id)

            logger.info(
                "Catalog entity updated",
                entity_type=rules.entity_type,
                entity_id=entity_id,
                fields=sorted(changes),
                request_id=self.request_id,
            )
            return await rules.present_one(entity)

        return await self._guard("update", rules.entity_type, action)

    async def _delete(self, rules: EntityRules[Any, T], entity_id: str) -> CatalogResult[T]:
        async def action(cleanup: list[CleanupOutcome]) -> T:
            current = await self._load(rules, entity_id)
            await rules.check_delete(current)
            view = await rules.present_one(current)

            cleanup.append(await self.images.release(current.image, ReleaseReason.DELETED))
            if not await rules.store.delete(entity_id):
                raise NotFoundError(rules.entity_type, entity_id)

            logger.info(
                "Catalog entity deleted",
                entity_type=rules.entity_type,
                entity_id=entity_id,
                request_id=self.request_id,
            )
            return view

        return await self._guard("delete", rules.entity_type, action)

    async def _get(self, rules: EntityRules[Any, T], identifier: str) -> CatalogResult[T]:
        async def action(cleanup: list[CleanupOutcome]) -> T:
            key = identifier.strip()
            if not key:
                raise ValidationError("Identifier is required", field="identifier")
            if is_entity_id(key):
                entity = await rules.store.find_by_id(key)
            else:
                entity = await rules.store.find_by_name(key)
            if entity is None:
                raise NotFoundError(rules.entity_type, key)
            return await rules.present_one(entity)

        return await self._guard("get", rules.entity_type, action)

    async def _list(
        self,
        rules: EntityRules[Any, T],
        fetch: Callable[[], Awaitable[Sequence[Any]]],
    ) -> CatalogResult[list[T]]:
        async def action(cleanup: list[CleanupOutcome]) -> list[T]:
            return await rules.present(await fetch())

        return await self._guard("list", rules.entity_type, action)

    async def _require_parent(self, rules: EntityRules[Any, Any], entity_id: str) -> None:
        await self._load(rules, entity_id)

    # ========================================================================
    # Categories
    # ========================================================================

    async def create_category(
        self, fields: CategoryFields, image: ImageUpload | None
    ) -> CatalogResult[Category]:
        """Create a category.

        Args:
            fields: Name, description and optional tax attributes.
            image: Image payload; required.

        Returns:
            CatalogResult with the created category.
        """
        return await self._create(self.categories, fields, image)

    async def update_category(
        self,
        category_id: str,
        fields: CategoryFields,
        image: ImageUpload | None = None,
    ) -> CatalogResult[Category]:
        """Update a category. Only supplied fields change.

        Tax attributes already copied into sub-categories are not touched.
        """
        return await self._update(self.categories, category_id, fields, image)

    async def delete_category(self, category_id: str) -> CatalogResult[Category]:
        """Delete an unreferenced category and release its image."""
        return await self._delete(self.categories, category_id)

    async def get_category(self, identifier: str) -> CatalogResult[Category]:
        """Get a category by ID or exact name."""
        return await self._get(self.categories, identifier)

    async def list_categories(self) -> CatalogResult[list[Category]]:
        """List all categories, newest first."""
        return await self._list(self.categories, self.stores.categories.list_all)

    # ========================================================================
    # Sub-categories
    # ========================================================================

    async def create_sub_category(
        self, fields: SubCategoryFields, image: ImageUpload | None
    ) -> CatalogResult[SubCategoryView]:
        """Create a sub-category under an existing category.

        Tax fields not supplied are copied from the parent category once,
        at creation time.

        Args:
            fields: Name, description, category and optional tax attributes.
            image: Image payload; required.

        Returns:
            CatalogResult with the created sub-category and its category.
        """
        return await self._create(self.sub_categories, fields, image)

    async def update_sub_category(
        self,
        sub_category_id: str,
        fields: SubCategoryFields,
        image: ImageUpload | None = None,
    ) -> CatalogResult[SubCategoryView]:
        """Update a sub-category. Only supplied fields change."""
        return await self._update(self.sub_categories, sub_category_id, fields, image)

    async def delete_sub_category(self, sub_category_id: str) -> CatalogResult[SubCategoryView]:
        """Delete a sub-category no item references and release its image."""
        return await self._delete(self.sub_categories, sub_category_id)

    async def get_sub_category(self, identifier: str) -> CatalogResult[SubCategoryView]:
        """Get a sub-category by ID or name (earliest match for names)."""
        return await self._get(self.sub_categories, identifier)

    async def list_sub_categories(self) -> CatalogResult[list[SubCategoryView]]:
        """List all sub-categories, newest first."""
        return await self._list(self.sub_categories, self.stores.sub_categories.list_all)

    async def list_sub_categories_by_category(
        self, category_id: str
    ) -> CatalogResult[list[SubCategoryView]]:
        """List the sub-categories of an existing category, newest first."""

        async def fetch() -> Sequence[Any]:
            await self._require_parent(self.categories, category_id)
            return await self.stores.sub_categories.find_by_category(category_id)

        return await self._list(self.sub_categories, fetch)

    # ========================================================================
    # Items
    # ========================================================================

    async def create_item(
        self, fields: ItemFields, image: ImageUpload | None
    ) -> CatalogResult[ItemView]:
        """Create an item.

        The sub-category, when given, must belong to the item's category.
        ``total_amount`` is always ``base_amount - discount``.

        Args:
            fields: Item fields; discount defaults to 0.
            image: Image payload; required.

        Returns:
            CatalogResult with the created item and its parents.
        """
        return await self._create(self.items, fields, image)

    async def update_item(
        self,
        item_id: str,
        fields: ItemFields,
        image: ImageUpload | None = None,
    ) -> CatalogResult[ItemView]:
        """Update an item. Only supplied fields change.

        A ``sub_category_id`` of None clears the sub-category.
        """
        return await self._update(self.items, item_id, fields, image)

    async def delete_item(self, item_id: str) -> CatalogResult[ItemView]:
        """Delete an item and release its image."""
        return await self._delete(self.items, item_id)

    async def get_item(self, identifier: str) -> CatalogResult[ItemView]:
        """Get an item by ID or name (earliest match for names)."""
        return await self._get(self.items, identifier)

    async def list_items(self) -> CatalogResult[list[ItemView]]:
        """List all items, newest first."""
        return await self._list(self.items, self.stores.items.list_all)

    async def list_items_by_category(self, category_id: str) -> CatalogResult[list[ItemView]]:
        """List the items of an existing category, newest first."""

        async def fetch() -> Sequence[Any]:
            await self._require_parent(self.categories, category_id)
            return await self.stores.items.find_by_category(category_id)

        return await self._list(self.items, fetch)

    async def list_items_by_sub_category(
        self, sub_category_id: str
    ) -> CatalogResult[list[ItemView]]:
        """List the items of an existing sub-category, newest first."""

        async def fetch() -> Sequence[Any]:
            await self._require_parent(self.sub_categories, sub_category_id)
            return await self.stores.items.find_by_sub_category(sub_category_id)

        return await self._list(self.items, fetch)

    async def search_items(self, query: str | None) -> CatalogResult[list[ItemView]]:
        """Search items by name and description.

        Args:
            query: Free-text query; must not be empty.

        Returns:
            CatalogResult with matching items, most relevant first.
        """

        async def fetch() -> Sequence[Any]:
            text = (query or "").strip()
            if not text:
                raise ValidationError("Search query is required", field="name")
            return await self.stores.items.search(text)

        return await self._list(self.items, fetch)


# ============================================================================
# Service Factory
# ============================================================================


def get_catalog_service(
    stores: CatalogStores | None = None,
    blob_store: BlobStore | None = None,
    request_id: str | None = None,
) -> CatalogService:
    """Get catalog service instance.

    Args:
        stores: Catalog stores; defaults to the in-memory stores.
        blob_store: Image gateway; defaults to the configured blob store.
        request_id: Request ID for correlation.

    Returns:
        CatalogService instance.
    """
    return CatalogService(
        stores=stores or get_memory_stores(),
        blob_store=blob_store or get_blob_store(),
        request_id=request_id,
    )
