"""Store interfaces and in-memory stores for the catalog.

One store per entity type. The catalog service only talks to these
interfaces, so the SQLAlchemy repositories and the in-memory stores
are interchangeable.
"""

import copy
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from app.catalog.search import query_terms, rank
from app.domain.entities import CatalogEntity, Category, Item, SubCategory
from app.domain.exceptions import DuplicateNameError

E = TypeVar("E", bound=CatalogEntity)


# ============================================================================
# Interfaces
# ============================================================================


class EntityStore(ABC, Generic[E]):
    """Operations every catalog store provides."""

    @abstractmethod
    async def find_by_id(self, entity_id: str) -> E | None:
        """Get an entity by ID."""

    @abstractmethod
    async def find_by_name(self, name: str) -> E | None:
        """Get the earliest-created entity with exactly this name."""

    @abstractmethod
    async def list_all(self) -> Sequence[E]:
        """List all entities, newest first."""

    @abstractmethod
    async def insert(self, entity: E) -> E:
        """Persist a new entity."""

    @abstractmethod
    async def update(self, entity_id: str, fields: dict[str, Any]) -> E | None:
        """Apply a partial update.

        Args:
            entity_id: Entity to update.
            fields: Attribute names and their new values.

        Returns:
            Updated entity, or None if absent.
        """

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Delete an entity.

        Returns:
            True if a record was removed.
        """


class CategoryStore(EntityStore[Category]):
    """Store for categories; names are globally unique."""


class SubCategoryStore(EntityStore[SubCategory]):
    """Store for sub-categories."""

    @abstractmethod
    async def find_by_category(self, category_id: str) -> Sequence[SubCategory]:
        """List sub-categories of a category, newest first."""


class ItemStore(EntityStore[Item]):
    """Store for items."""

    @abstractmethod
    async def find_by_category(self, category_id: str) -> Sequence[Item]:
        """List items of a category, newest first."""

    @abstractmethod
    async def find_by_sub_category(self, sub_category_id: str) -> Sequence[Item]:
        """List items of a sub-category, newest first."""

    @abstractmethod
    async def search(self, query: str) -> Sequence[Item]:
        """Search name and description, most relevant first."""


# ============================================================================
# In-Memory Stores
# ============================================================================


class InMemoryStore(EntityStore[E]):
    """Dict-backed store.

    Records are copied on the way in and out so callers never share
    state with the store. Insertion order doubles as creation order.
    """

    def __init__(self) -> None:
        self._records: dict[str, E] = {}

    def _newest_first(self) -> list[E]:
        return [copy.deepcopy(r) for r in reversed(self._records.values())]

    async def find_by_id(self, entity_id: str) -> E | None:
        """Get an entity by ID."""
        record = self._records.get(entity_id)
        return copy.deepcopy(record) if record else None

    async def find_by_name(self, name: str) -> E | None:
        """Get the earliest-created entity with exactly this name."""
        for record in self._records.values():
            if record.name == name:
                return copy.deepcopy(record)
        return None

    async def list_all(self) -> Sequence[E]:
        """List all entities, newest first."""
        return self._newest_first()

    async def insert(self, entity: E) -> E:
        """Persist a new entity."""
        self._check_insert(entity)
        self._records[entity.id] = copy.deepcopy(entity)
        return copy.deepcopy(entity)

    async def update(self, entity_id: str, fields: dict[str, Any]) -> E | None:
        """Apply a partial update."""
        current = self._records.get(entity_id)
        if current is None:
            return None

        updated = copy.deepcopy(current)
        for name, value in fields.items():
            setattr(updated, name, value)
        updated.touch()
        self._check_update(updated)

        self._records[entity_id] = updated
        return copy.deepcopy(updated)

    async def delete(self, entity_id: str) -> bool:
        """Delete an entity."""
        return self._records.pop(entity_id, None) is not None

    def _check_insert(self, entity: E) -> None:
        """Hook for store-level constraints on insert."""

    def _check_update(self, entity: E) -> None:
        """Hook for store-level constraints on update."""


class InMemoryCategoryStore(InMemoryStore[Category], CategoryStore):
    """In-memory category store enforcing unique names."""

    def _check_insert(self, entity: Category) -> None:
        self._check_update(entity)

    def _check_update(self, entity: Category) -> None:
        for record in self._records.values():
            if record.id != entity.id and record.name == entity.name:
                raise DuplicateNameError("Category", entity.name)


class InMemorySubCategoryStore(InMemoryStore[SubCategory], SubCategoryStore):
    """In-memory sub-category store."""

    async def find_by_category(self, category_id: str) -> Sequence[SubCategory]:
        """List sub-categories of a category, newest first."""
        return [s for s in self._newest_first() if s.category_id == category_id]


class InMemoryItemStore(InMemoryStore[Item], ItemStore):
    """In-memory item store."""

    async def find_by_category(self, category_id: str) -> Sequence[Item]:
        """List items of a category, newest first."""
        return [i for i in self._newest_first() if i.category_id == category_id]

    async def find_by_sub_category(self, sub_category_id: str) -> Sequence[Item]:
        """List items of a sub-category, newest first."""
        return [i for i in self._newest_first() if i.sub_category_id == sub_category_id]

    async def search(self, query: str) -> Sequence[Item]:
        """Search name and description, most relevant first."""
        return rank(self._newest_first(), query_terms(query))


# ============================================================================
# Store Bundle
# ============================================================================


@dataclass
class CatalogStores:
    """The three stores the catalog service works with."""

    categories: CategoryStore
    sub_categories: SubCategoryStore
    items: ItemStore


@dataclass
class InMemoryCatalogStores(CatalogStores):
    """Bundle of in-memory stores."""

    categories: InMemoryCategoryStore = field(default_factory=InMemoryCategoryStore)
    sub_categories: InMemorySubCategoryStore = field(default_factory=InMemorySubCategoryStore)
    items: InMemoryItemStore = field(default_factory=InMemoryItemStore)


# Global in-memory stores
_memory_stores: InMemoryCatalogStores | None = None


def get_memory_stores() -> InMemoryCatalogStores:
    """Get the in-memory stores singleton."""
    global _memory_stores
    if _memory_stores is None:
        _memory_stores = InMemoryCatalogStores()
    return _memory_stores


def reset_memory_stores() -> None:
    """Reset the in-memory stores (for testing)."""
    global _memory_stores
    _memory_stores = InMemoryCatalogStores()
