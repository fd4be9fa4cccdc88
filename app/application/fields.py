"""Input field sets for catalog writes.

Every field defaults to ``UNSET`` so a field set can describe both a
full create and a partial update: only fields the caller actually
supplied are applied. ``None`` is a real value (it clears an item's
sub-category), which is why absence needs its own marker.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Final

from app.domain.value_objects import TaxType


class Unset:
    """Marker type for fields the caller did not supply."""

    _instance: "Unset | None" = None

    def __new__(cls) -> "Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "Unset":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "Unset":
        return self


UNSET: Final = Unset()

Number = Decimal | int | float | str


@dataclass
class FieldSet:
    """Base class for write inputs."""

    def provided(self) -> dict[str, Any]:
        """Get the supplied fields.

        Returns:
            Mapping of field name to value, without unset fields.
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass
class CategoryFields(FieldSet):
    """Category create/update input."""

    name: str | Unset = UNSET
    description: str | Unset = UNSET
    tax_applicability: bool | Unset = UNSET
    tax: Number | Unset = UNSET
    tax_type: TaxType | str | Unset = UNSET


@dataclass
class SubCategoryFields(FieldSet):
    """Sub-category create/update input.

    Tax fields left unset at creation are copied from the parent category.
    """

    name: str | Unset = UNSET
    description: str | Unset = UNSET
    category_id: str | Unset = UNSET
    tax_applicability: bool | None | Unset = UNSET
    tax: Number | None | Unset = UNSET
    tax_type: TaxType | str | None | Unset = UNSET


@dataclass
class ItemFields(FieldSet):
    """Item create/update input.

    ``total_amount`` is deliberately absent; it is always derived.
    """

    name: str | Unset = UNSET
    description: str | Unset = UNSET
    category_id: str | Unset = UNSET
    sub_category_id: str | None | Unset = UNSET
    base_amount: Number | Unset = UNSET
    discount: Number | None | Unset = UNSET
    tax_applicability: bool | None | Unset = UNSET
    tax: Number | None | Unset = UNSET
    tax_type: TaxType | str | None | Unset = UNSET
