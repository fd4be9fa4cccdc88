"""Catalog repositories for database operations.

SQLAlchemy implementations of the catalog store interfaces. Every
database failure surfaces as a StoreError; a violated unique constraint
on category names surfaces as a DuplicateNameError.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic

from sqlalchemy import Select, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import CategoryModel, ItemModel, SubCategoryModel
from app.catalog.search import query_terms, rank
from app.catalog.stores import (
    E,
    CatalogStores,
    CategoryStore,
    EntityStore,
    ItemStore,
    SubCategoryStore,
)
from app.domain.entities import Category, Item, SubCategory
from app.domain.exceptions import DuplicateNameError, StoreError
from app.domain.value_objects import ImageRef, TaxType


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate entity attribute updates into column values."""
    columns: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "image":
            image: ImageRef = value
            columns["image_store_id"] = image.store_id
            columns["image_url"] = image.url
        elif isinstance(value, TaxType):
            columns[name] = value.value
        else:
            columns[name] = value
    return columns


class SqlAlchemyStore(EntityStore[E], Generic[E]):
    """Generic repository over one catalog table.

    Example usage:
        async with session_scope() as session:
            repo = CategoryRepository(session)
            category = await repo.find_by_name("Beverages")
    """

    model: ClassVar[type[Any]]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _all(self, query: Select[Any]) -> list[E]:
        try:
            result = await self.session.execute(query)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("select", str(e)) from e
        return [row.to_entity() for row in result.scalars().all()]

    async def _get_model(self, entity_id: str) -> Any:
        try:
            return await self.session.get(self.model, entity_id)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("get", str(e)) from e

    async def _flush(self, operation: str, name: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise self._integrity_error(operation, name, e) from e
        except (SQLAlchemyError, OSError) as e:
            await self.session.rollback()
            raise StoreError(operation, str(e)) from e

    def _integrity_error(self, operation: str, name: str, error: IntegrityError) -> Exception:
        return StoreError(operation, str(error.orig))

    async def find_by_id(self, entity_id: str) -> E | None:
        """Get an entity by ID."""
        row = await self._get_model(entity_id)
        return row.to_entity() if row else None

    async def find_by_name(self, name: str) -> E | None:
        """Get the earliest-created entity with exactly this name."""
        query = (
            select(self.model)
            .where(self.model.name == name)
            .order_by(self.model.created_at.asc())
            .limit(1)
        )
        rows = await self._all(query)
        return rows[0] if rows else None

    async def list_all(self) -> Sequence[E]:
        """List all entities, newest first."""
        return await self._all(select(self.model).order_by(self.model.created_at.desc()))

    async def insert(self, entity: E) -> E:
        """Persist a new entity."""
        row = self.model.from_entity(entity)
        self.session.add(row)
        await self._flush("insert", entity.name)
        return row.to_entity()

    async def update(self, entity_id: str, fields: dict[str, Any]) -> E | None:
        """Apply a partial update."""
        row = await self._get_model(entity_id)
        if row is None:
            return None

        for column, value in _to_columns(fields).items():
            setattr(row, column, value)
        row.updated_at = datetime.now(timezone.utc)
        name = row.name

        await self._flush("update", name)
        return row.to_entity()

    async def delete(self, entity_id: str) -> bool:
        """Delete an entity."""
        row = await self._get_model(entity_id)
        if row is None:
            return False

        name = row.name
        await self.session.delete(row)
        await self._flush("delete", name)
        return True


class CategoryRepository(SqlAlchemyStore[Category], CategoryStore):
    """Repository for categories."""

    model = CategoryModel

    def _integrity_error(self, operation: str, name: str, error: IntegrityError) -> Exception:
        # The only constraint a category write can violate is the unique name
        return DuplicateNameError("Category", name)


class SubCategoryRepository(SqlAlchemyStore[SubCategory], SubCategoryStore):
    """Repository for sub-categories."""

    model = SubCategoryModel

    async def find_by_category(self, category_id: str) -> Sequence[SubCategory]:
        """List sub-categories of a category, newest first."""
        query = (
            select(SubCategoryModel)
            .where(SubCategoryModel.category_id == category_id)
            .order_by(SubCategoryModel.created_at.desc())
        )
        return await self._all(query)


class ItemRepository(SqlAlchemyStore[Item], ItemStore):
    """Repository for items."""

    model = ItemModel

    async def find_by_category(self, category_id: str) -> Sequence[Item]:
        """List items of a category, newest first."""
        query = (
            select(ItemModel)
            .where(ItemModel.category_id == category_id)
            .order_by(ItemModel.created_at.desc())
        )
        return await self._all(query)

    async def find_by_sub_category(self, sub_category_id: str) -> Sequence[Item]:
        """List items of a sub-category, newest first."""
        query = (
            select(ItemModel)
            .where(ItemModel.sub_category_id == sub_category_id)
            .order_by(ItemModel.created_at.desc())
        )
        return await self._all(query)

    async def search(self, query: str) -> Sequence[Item]:
        """Search name and description, most relevant first.

        The database narrows candidates with substring matches; ranking
        happens in Python so both backends order results the same way.
        """
        terms = query_terms(query)
        if not terms:
            return []

        conditions = []
        for term in terms:
            pattern = f"%{term}%"
            conditions.append(ItemModel.name.ilike(pattern))
            conditions.append(ItemModel.description.ilike(pattern))

        candidates = await self._all(
            select(ItemModel).where(or_(*conditions)).order_by(ItemModel.created_at.desc())
        )
        return rank(candidates, terms)


def build_repositories(session: AsyncSession) -> CatalogStores:
    """Build the three repositories over one session.

    Args:
        session: Async SQLAlchemy session shared by the repositories.

    Returns:
        Store bundle for the catalog service.
    """
    return CatalogStores(
        categories=CategoryRepository(session),
        sub_categories=SubCategoryRepository(session),
        items=ItemRepository(session),
    )
