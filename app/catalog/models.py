"""SQLAlchemy models for the catalog.

Defines categories, sub_categories and items tables for persistent
storage, plus conversions to and from the domain entities.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.entities import Category, Item, SubCategory
from app.domain.value_objects import AMOUNT_INTEGER_DIGITS, AMOUNT_PLACES, ImageRef, TaxType
from app.infrastructure.database import Base

AMOUNT = Numeric(AMOUNT_INTEGER_DIGITS + AMOUNT_PLACES, AMOUNT_PLACES)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    """Attach UTC to naive timestamps returned by SQLite."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class CatalogColumnsMixin:
    """Columns shared by every catalog table."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_store_id: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def _common(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": ImageRef(store_id=self.image_store_id, url=self.image_url),
            "created_at": _aware(self.created_at),
            "updated_at": _aware(self.updated_at),
        }

    @staticmethod
    def _common_columns(entity: Any) -> dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "image_store_id": entity.image.store_id,
            "image_url": entity.image.url,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }


class CategoryModel(CatalogColumnsMixin, Base):
    """Category row.

    The unique constraint on ``name`` is the authoritative duplicate check.
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    tax_applicability: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tax: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, default=Decimal("0"))
    tax_type: Mapped[str] = mapped_column(String(20), nullable=False, default=TaxType.NONE.value)

    def __repr__(self) -> str:
        """String representation."""
        return f"<CategoryModel(id={self.id}, name={self.name})>"

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryModel":
        """Build a row from a domain entity."""
        return cls(
            **cls._common_columns(category),
            tax_applicability=category.tax_applicability,
            tax=category.tax,
            tax_type=category.tax_type.value,
        )

    def to_entity(self) -> Category:
        """Convert to a domain entity."""
        return Category(
            **self._common(),
            tax_applicability=self.tax_applicability,
            tax=Decimal(self.tax),
            tax_type=TaxType(self.tax_type),
        )


class SubCategoryModel(CatalogColumnsMixin, Base):
    """Sub-category row; tax columns are nullable."""

    __tablename__ = "sub_categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    tax_applicability: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    tax: Mapped[Decimal | None] = mapped_column(AMOUNT, nullable=True)
    tax_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<SubCategoryModel(id={self.id}, name={self.name})>"

    @classmethod
    def from_entity(cls, sub_category: SubCategory) -> "SubCategoryModel":
        """Build a row from a domain entity."""
        return cls(
            **cls._common_columns(sub_category),
            category_id=sub_category.category_id,
            tax_applicability=sub_category.tax_applicability,
            tax=sub_category.tax,
            tax_type=sub_category.tax_type.value if sub_category.tax_type else None,
        )

    def to_entity(self) -> SubCategory:
        """Convert to a domain entity."""
        return SubCategory(
            **self._common(),
            category_id=self.category_id,
            tax_applicability=self.tax_applicability,
            tax=Decimal(self.tax) if self.tax is not None else None,
            tax_type=TaxType(self.tax_type) if self.tax_type else None,
        )


class ItemModel(CatalogColumnsMixin, Base):
    """Item row.

    ``total_amount`` is stored so it can be filtered and sorted on, but
    it is always written by the catalog service.
    """

    __tablename__ = "items"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    tax_applicability: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tax: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, default=Decimal("0"))
    tax_type: Mapped[str] = mapped_column(String(20), nullable=False, default=TaxType.NONE.value)
    base_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    discount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    sub_category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("sub_categories.id"),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ItemModel(id={self.id}, name={self.name})>"

    @classmethod
    def from_entity(cls, item: Item) -> "ItemModel":
        """Build a row from a domain entity."""
        return cls(
            **cls._common_columns(item),
            tax_applicability=item.tax_applicability,
            tax=item.tax,
            tax_type=item.tax_type.value,
            base_amount=item.base_amount,
            discount=item.discount,
            total_amount=item.total_amount,
            category_id=item.category_id,
            sub_category_id=item.sub_category_id,
        )

    def to_entity(self) -> Item:
        """Convert to a domain entity.

        The entity derives its own total from the stored inputs.
        """
        return Item(
            **self._common(),
            tax_applicability=self.tax_applicability,
            tax=Decimal(self.tax),
            tax_type=TaxType(self.tax_type),
            base_amount=Decimal(self.base_amount),
            discount=Decimal(self.discount),
            category_id=self.category_id,
            sub_category_id=self.sub_category_id,
        )
