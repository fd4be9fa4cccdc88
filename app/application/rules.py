"""Per-entity catalog rules.

The catalog service runs one create/update/delete pipeline for every
entity type. Each rules object plugs the entity-specific parts into it:
input cleaning, reference checks, tax inheritance, the derived total
and the delete guard.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Generic, TypeVar

from app.catalog.stores import CatalogStores, E, EntityStore
from app.domain.entities import Category, Item, SubCategory
from app.domain.exceptions import (
    CategoryMismatchError,
    DuplicateNameError,
    NotFoundError,
    ReferenceInUseError,
    ValidationError,
)
from app.domain.value_objects import (
    ImageRef,
    TaxAttributes,
    TaxType,
    new_id,
    to_amount,
)

V = TypeVar("V")

TAX_FIELDS = ("tax_applicability", "tax", "tax_type")

_LABELS = {
    "name": "name",
    "description": "description",
    "category_id": "category",
    "sub_category_id": "sub-category",
    "base_amount": "base amount",
    "discount": "discount",
    "tax_applicability": "tax applicability",
    "tax": "tax",
    "tax_type": "tax type",
}


# ============================================================================
# Display Views
# ============================================================================


@dataclass(frozen=True)
class ParentRef:
    """A parent reference resolved for display."""

    id: str
    name: str | None


@dataclass
class SubCategoryView:
    """Sub-category with its category resolved."""

    sub_category: SubCategory
    category: ParentRef


@dataclass
class ItemView:
    """Item with its category and sub-category resolved."""

    item: Item
    category: ParentRef
    sub_category: ParentRef | None


class _NameCache:
    """Per-call cache of parent names."""

    def __init__(self, store: EntityStore[Any]) -> None:
        self.store = store
        self._names: dict[str, str | None] = {}

    async def ref(self, entity_id: str) -> ParentRef:
        if entity_id not in self._names:
            parent = await self.store.find_by_id(entity_id)
            self._names[entity_id] = parent.name if parent else None
        return ParentRef(id=entity_id, name=self._names[entity_id])


# ============================================================================
# Base Rules
# ============================================================================


class EntityRules(ABC, Generic[E, V]):
    """Entity-specific hooks for the shared write pipeline.

    Type parameters are the entity and the view returned to callers.
    """

    entity_type: ClassVar[str]
    required_fields: ClassVar[tuple[str, ...]]

    def __init__(self, stores: CatalogStores) -> None:
        """Initialize rules.

        Args:
            stores: Catalog stores used for reference checks.
        """
        self.stores = stores

    @property
    @abstractmethod
    def store(self) -> EntityStore[E]:
        """Store that owns this entity type."""

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def clean(self, values: dict[str, Any]) -> dict[str, Any]:
        """Normalize and type-check supplied fields.

        Args:
            values: Supplied fields.

        Returns:
            Cleaned copy; optional fields given as None are dropped.

        Raises:
            ValidationError: If a field is empty or has the wrong type.
        """
        cleaned: dict[str, Any] = {}
        for name, value in values.items():
            if value is None:
                if name in self.required_fields:
                    raise ValidationError(f"{self._label(name)} is required", field=name)
                if name == "sub_category_id":
                    cleaned[name] = None
                continue

            if name in ("name", "description", "category_id", "sub_category_id"):
                cleaned[name] = self._clean_text(name, value)
            elif name == "tax_applicability":
                if not isinstance(value, bool):
                    raise ValidationError("tax applicability must be true or false", field=name)
                cleaned[name] = value
            elif name == "tax_type":
                cleaned[name] = TaxType.parse(value)
            elif name in ("tax", "base_amount", "discount"):
                cleaned[name] = to_amount(value, field=name)
            else:
                cleaned[name] = value
        return cleaned

    def check_required(self, values: dict[str, Any]) -> None:
        """Reject a create that misses required fields.

        Raises:
            ValidationError: Listing every missing field.
        """
        missing = [name for name in self.required_fields if name not in values]
        if missing:
            labels = ", ".join(self._label(name) for name in missing)
            raise ValidationError(
                f"{self.entity_type} {labels} {'is' if len(missing) == 1 else 'are'} required",
                field=missing[0],
            )

    def _clean_text(self, name: str, value: Any) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"{self._label(name)} must be text", field=name)
        text = value.strip()
        if not text:
            raise ValidationError(f"{self.entity_type} {self._label(name)} cannot be empty", field=name)
        return text

    @staticmethod
    def _label(name: str) -> str:
        return _LABELS.get(name, name)

    # ------------------------------------------------------------------
    # Pipeline hooks
    # ------------------------------------------------------------------

    async def check_create(self, values: dict[str, Any]) -> Any:
        """Validate references for a create.

        Returns:
            Context handed to ``build`` (e.g. the parent category).
        """
        return None

    @abstractmethod
    def build(self, values: dict[str, Any], image: ImageRef, context: Any) -> E:
        """Construct the new entity with derived and defaulted fields."""

    async def check_update(self, current: E, changes: dict[str, Any]) -> None:
        """Validate references for an update."""

    def derive_update(self, current: E, changes: dict[str, Any]) -> dict[str, Any]:
        """Add fields that follow from the supplied changes.

        Returns:
            Changes including derived fields.
        """
        return _normalize_tax_change(current, changes)

    async def check_delete(self, current: E) -> None:
        """Refuse deletes that would leave dangling references."""

    @abstractmethod
    async def present(self, entities: Sequence[E]) -> list[V]:
        """Resolve entities into caller-facing views."""

    async def present_one(self, entity: E) -> V:
        """Resolve a single entity."""
        return (await self.present([entity]))[0]

    # ------------------------------------------------------------------
    # Shared reference checks
    # ------------------------------------------------------------------

    async def _require_category(self, category_id: str, role: str = "parent category") -> Category:
        category = await self.stores.categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError("Category", category_id, role=role)
        return category


def _tax_values(values: dict[str, Any], defaults: TaxAttributes) -> dict[str, Any]:
    """Fill unsupplied tax fields from defaults and normalize the triple."""
    attrs = TaxAttributes(
        applicable=values.get("tax_applicability", defaults.applicable),
        tax=values.get("tax", defaults.tax),
        tax_type=values.get("tax_type", defaults.tax_type),
    ).normalized()
    return {
        "tax_applicability": attrs.applicable,
        "tax": attrs.tax,
        "tax_type": attrs.tax_type,
    }


def _normalize_tax_change(current: Any, changes: dict[str, Any]) -> dict[str, Any]:
    """Clear tax whenever the effective applicability is false.

    Applies to every entity: a write that leaves tax inapplicable stores
    zero tax of type none, whatever tax values were supplied with it.
    """
    if not any(name in changes for name in TAX_FIELDS):
        return changes

    applicable = changes.get("tax_applicability", current.tax_applicability)
    if applicable is False:
        return {**changes, "tax": Decimal("0"), "tax_type": TaxType.NONE}
    return changes


# ============================================================================
# Category
# ============================================================================


class CategoryRules(EntityRules[Category, Category]):
    """Categories: globally unique names, default tax attributes."""

    entity_type = "Category"
    required_fields = ("name", "description")

    @property
    def store(self) -> EntityStore[Category]:
        return self.stores.categories

    async def _check_name_free(self, name: str, own_id: str | None = None) -> None:
        existing = await self.stores.categories.find_by_name(name)
        if existing is not None and existing.id != own_id:
            raise DuplicateNameError("Category", name)

    async def check_create(self, values: dict[str, Any]) -> Any:
        await self._check_name_free(values["name"])
        return None

    def build(self, values: dict[str, Any], image: ImageRef, context: Any) -> Category:
        return Category(
            id=new_id(),
            name=values["name"],
            description=values["description"],
            image=image,
            **_tax_values(values, TaxAttributes()),
        )

    async def check_update(self, current: Category, changes: dict[str, Any]) -> None:
        name = changes.get("name")
        if name is not None and name != current.name:
            await self._check_name_free(name, own_id=current.id)

    async def check_delete(self, current: Category) -> None:
        sub_categories = await self.stores.sub_categories.find_by_category(current.id)
        items = await self.stores.items.find_by_category(current.id)
        if sub_categories or items:
            referenced_by = {}
            if sub_categories:
                referenced_by["sub-categories"] = len(sub_categories)
            if items:
                referenced_by["items"] = len(items)
            raise ReferenceInUseError("Category", current.id, referenced_by)

    async def present(self, entities: Sequence[Category]) -> list[Category]:
        return list(entities)


# ============================================================================
# SubCategory
# ============================================================================


class SubCategoryRules(EntityRules[SubCategory, SubCategoryView]):
    """Sub-categories: existing parent, one-time tax inheritance."""

    entity_type = "SubCategory"
    required_fields = ("name", "description", "category_id")

    @property
    def store(self) -> EntityStore[SubCategory]:
        return self.stores.sub_categories

    async def check_create(self, values: dict[str, Any]) -> Category:
        return await self._require_category(values["category_id"])

    def build(self, values: dict[str, Any], image: ImageRef, context: Any) -> SubCategory:
        parent: Category = context
        # Copy, not link: later parent edits must not reach this record
        return SubCategory(
            id=new_id(),
            name=values["name"],
            description=values["description"],
            image=image,
            category_id=parent.id,
            **_tax_values(values, parent.tax_attributes),
        )

    async def check_update(self, current: SubCategory, changes: dict[str, Any]) -> None:
        category_id = changes.get("category_id")
        if category_id is None or category_id == current.category_id:
            return

        await self._require_category(category_id, role="new category")
        items = await self.stores.items.find_by_sub_category(current.id)
        if items:
            # Moving would break item.sub_category.category == item.category
            raise ReferenceInUseError("SubCategory", current.id, {"items": len(items)})

    async def check_delete(self, current: SubCategory) -> None:
        items = await self.stores.items.find_by_sub_category(current.id)
        if items:
            raise ReferenceInUseError("SubCategory", current.id, {"items": len(items)})

    async def present(self, entities: Sequence[SubCategory]) -> list[SubCategoryView]:
        categories = _NameCache(self.stores.categories)
        return [
            SubCategoryView(sub_category=s, category=await categories.ref(s.category_id))
            for s in entities
        ]


# ============================================================================
# Item
# ============================================================================


@dataclass(frozen=True)
class _ItemParents:
    category: Category
    sub_category: SubCategory | None


class ItemRules(EntityRules[Item, ItemView]):
    """Items: category/sub-category membership and the derived total."""

    entity_type = "Item"
    required_fields = ("name", "description", "base_amount", "category_id")

    @property
    def store(self) -> EntityStore[Item]:
        return self.stores.items

    async def _require_sub_category(self, sub_category_id: str, category_id: str) -> SubCategory:
        sub_category = await self.stores.sub_categories.find_by_id(sub_category_id)
        if sub_category is None:
            raise NotFoundError("SubCategory", sub_category_id, role="sub-category")
        if sub_category.category_id != category_id:
            raise CategoryMismatchError(sub_category_id, category_id)
        return sub_category

    async def check_create(self, values: dict[str, Any]) -> _ItemParents:
        category = await self._require_category(values["category_id"])
        sub_category = None
        if values.get("sub_category_id"):
            sub_category = await self._require_sub_category(values["sub_category_id"], category.id)
        return _ItemParents(category=category, sub_category=sub_category)

    def build(self, values: dict[str, Any], image: ImageRef, context: Any) -> Item:
        parents: _ItemParents = context
        return Item(
            id=new_id(),
            name=values["name"],
            description=values["description"],
            image=image,
            category_id=parents.category.id,
            sub_category_id=parents.sub_category.id if parents.sub_category else None,
            base_amount=values["base_amount"],
            discount=values.get("discount", Decimal("0")),
            **_tax_values(values, TaxAttributes()),
        )

    async def check_update(self, current: Item, changes: dict[str, Any]) -> None:
        category_id = changes.get("category_id", current.category_id)
        if category_id != current.category_id:
            await self._require_category(category_id, role="new category")

        if "sub_category_id" in changes:
            sub_category_id = changes["sub_category_id"]
        else:
            sub_category_id = current.sub_category_id

        # Re-check whenever either side of the membership may have moved
        if sub_category_id and ("sub_category_id" in changes or category_id != current.category_id):
            await self._require_sub_category(sub_category_id, category_id)

    def derive_update(self, current: Item, changes: dict[str, Any]) -> dict[str, Any]:
        changes = super().derive_update(current, changes)
        if "base_amount" in changes or "discount" in changes:
            base_amount = changes.get("base_amount", current.base_amount)
            discount = changes.get("discount", current.discount)
            changes = {**changes, "total_amount": base_amount - discount}
        return changes

    async def present(self, entities: Sequence[Item]) -> list[ItemView]:
        categories = _NameCache(self.stores.categories)
        sub_categories = _NameCache(self.stores.sub_categories)
        views = []
        for item in entities:
            sub_ref = None
            if item.sub_category_id:
                sub_ref = await sub_categories.ref(item.sub_category_id)
            views.append(
                ItemView(
                    item=item,
                    category=await categories.ref(item.category_id),
                    sub_category=sub_ref,
                )
            )
        return views
