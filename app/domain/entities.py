"""Domain entities for the catalog hierarchy.

Category → SubCategory → Item. Every entity owns exactly one image and
carries the same tax triple; Item additionally owns the derived
``total_amount``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar

from app.domain.base import Entity
from app.domain.exceptions import ValidationError
from app.domain.value_objects import ImageRef, TaxAttributes, TaxType


@dataclass(kw_only=True, eq=False)
class CatalogEntity(Entity):
    """Fields common to every level of the catalog.

    Attributes:
        name: Display name.
        description: Free-text description.
        image: Owned image reference.
    """

    entity_type: ClassVar[str] = "Entity"

    name: str
    description: str
    image: ImageRef

    def __post_init__(self) -> None:
        """Validate text fields are non-empty after trimming."""
        self.name = self.name.strip()
        self.description = self.description.strip()
        if not self.name:
            raise ValidationError(f"{self.entity_type} name is required", field="name")
        if not self.description:
            raise ValidationError(
                f"{self.entity_type} description is required", field="description"
            )


# ============================================================================
# Category
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Category(CatalogEntity):
    """Top level of the catalog and the source of default tax attributes."""

    entity_type: ClassVar[str] = "Category"

    tax_applicability: bool = False
    tax: Decimal = Decimal("0")
    tax_type: TaxType = TaxType.NONE

    @property
    def tax_attributes(self) -> TaxAttributes:
        """Get the tax triple as a value object."""
        return TaxAttributes(self.tax_applicability, self.tax, self.tax_type)


# ============================================================================
# SubCategory
# ============================================================================


@dataclass(kw_only=True, eq=False)
class SubCategory(CatalogEntity):
    """Second level of the catalog, bound to exactly one category.

    Tax fields hold a one-time copy of the parent's values when the
    caller did not supply them at creation.
    """

    entity_type: ClassVar[str] = "SubCategory"

    category_id: str
    tax_applicability: bool | None = None
    tax: Decimal | None = None
    tax_type: TaxType | None = None


# ============================================================================
# Item
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Item(CatalogEntity):
    """Sellable item, bound to a category and optionally a sub-category.

    Attributes:
        base_amount: Price before discount.
        discount: Amount taken off the base price.
        total_amount: Derived; always ``base_amount - discount``.
        category_id: Owning category.
        sub_category_id: Optional sub-category within the same category.
    """

    entity_type: ClassVar[str] = "Item"

    base_amount: Decimal
    category_id: str
    discount: Decimal = Decimal("0")
    tax_applicability: bool = False
    tax: Decimal = Decimal("0")
    tax_type: TaxType = TaxType.NONE
    sub_category_id: str | None = None
    total_amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        """Validate text fields and derive the total."""
        super().__post_init__()
        self.recompute_total()

    def recompute_total(self) -> Decimal:
        """Recalculate the total from base amount and discount.

        Returns:
            The new total amount.
        """
        self.total_amount = self.base_amount - self.discount
        return self.total_amount
