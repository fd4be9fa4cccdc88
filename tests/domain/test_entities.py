"""Tests for domain entities."""

from decimal import Decimal

import pytest

from app.domain import Category, ImageRef, Item, SubCategory, TaxType, new_id
from app.domain.exceptions import ValidationError


# ============================================================================
# Test Fixtures
# ============================================================================


def make_image_ref() -> ImageRef:
    """Create a test image reference."""
    return ImageRef(store_id="pos-catalog/abc", url="https://img.example/abc.png")


def make_item(**overrides) -> Item:
    """Create a test item."""
    values = {
        "id": new_id(),
        "name": "Espresso",
        "description": "Single shot",
        "image": make_image_ref(),
        "base_amount": Decimal("3.50"),
        "category_id": new_id(),
    }
    values.update(overrides)
    return Item(**values)


# ============================================================================
# CatalogEntity Tests
# ============================================================================


class TestCatalogEntity:
    """Tests for fields shared by every catalog level."""

    def test_name_and_description_are_trimmed(self) -> None:
        """Surrounding whitespace is removed."""
        category = Category(
            id=new_id(),
            name="  Beverages ",
            description="\tDrinks\n",
            image=make_image_ref(),
        )
        assert category.name == "Beverages"
        assert category.description == "Drinks"

    def test_blank_name_rejected(self) -> None:
        """A whitespace-only name is invalid."""
        with pytest.raises(ValidationError) as exc_info:
            Category(id=new_id(), name="   ", description="Drinks", image=make_image_ref())
        assert exc_info.value.field == "name"

    def test_blank_description_rejected(self) -> None:
        """A whitespace-only description is invalid."""
        with pytest.raises(ValidationError) as exc_info:
            SubCategory(
                id=new_id(),
                name="Hot",
                description=" ",
                image=make_image_ref(),
                category_id=new_id(),
            )
        assert exc_info.value.field == "description"

    def test_equality_by_id(self) -> None:
        """Entities with the same id are equal."""
        item_id = new_id()
        assert make_item(id=item_id, name="A") == make_item(id=item_id, name="B")
        assert make_item() != make_item()


# ============================================================================
# Category Tests
# ============================================================================


class TestCategory:
    """Tests for Category."""

    def test_defaults(self) -> None:
        """Tax does not apply unless stated."""
        category = Category(id=new_id(), name="Food", description="Food", image=make_image_ref())
        assert category.tax_applicability is False
        assert category.tax == Decimal("0")
        assert category.tax_type == TaxType.NONE

    def test_tax_attributes(self) -> None:
        """Tax fields are exposed as one value object."""
        category = Category(
            id=new_id(),
            name="Alcohol",
            description="Drinks with alcohol",
            image=make_image_ref(),
            tax_applicability=True,
            tax=Decimal("18"),
            tax_type=TaxType.PERCENTAGE,
        )
        attrs = category.tax_attributes
        assert attrs.applicable is True
        assert attrs.tax == Decimal("18")
        assert attrs.tax_type == TaxType.PERCENTAGE


# ============================================================================
# Item Tests
# ============================================================================


class TestItem:
    """Tests for Item."""

    def test_total_is_base_minus_discount(self) -> None:
        """Total is derived at construction."""
        item = make_item(base_amount=Decimal("10.00"), discount=Decimal("2.50"))
        assert item.total_amount == Decimal("7.50")

    def test_discount_defaults_to_zero(self) -> None:
        """Without a discount the total equals the base amount."""
        item = make_item(base_amount=Decimal("4.20"))
        assert item.discount == Decimal("0")
        assert item.total_amount == Decimal("4.20")

    def test_total_cannot_be_passed_in(self) -> None:
        """total_amount is not a constructor argument."""
        with pytest.raises(TypeError):
            make_item(total_amount=Decimal("99"))

    def test_recompute_total(self) -> None:
        """Changing inputs and recomputing updates the total."""
        item = make_item(base_amount=Decimal("5"))
        item.discount = Decimal("1")
        assert item.recompute_total() == Decimal("4")
        assert item.total_amount == Decimal("4")

    def test_sub_category_optional(self) -> None:
        """Items need not belong to a sub-category."""
        assert make_item().sub_category_id is None
