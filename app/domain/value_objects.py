"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from app.domain.base import ValueObject
from app.domain.exceptions import ValidationError

# Canonical textual UUID, the native identifier format of every store
_ID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def new_id() -> str:
    """Generate a new entity identifier.

    Returns:
        Random UUID4 as string.
    """
    return str(uuid4())


def is_entity_id(value: str) -> bool:
    """Check whether a string has the stores' native identifier format."""
    return bool(_ID_PATTERN.match(value))


# ============================================================================
# Tax
# ============================================================================


class TaxType(str, Enum):
    """How a tax amount is applied."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "TaxType":
        """Parse a tax type from user input.

        Args:
            value: TaxType or its string value.

        Returns:
            Matching TaxType.

        Raises:
            ValidationError: If value is not a known tax type.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValidationError(
                f"Invalid tax type '{value}'. Allowed: {allowed}", field="tax_type"
            ) from None


@dataclass(frozen=True)
class TaxAttributes(ValueObject):
    """The tax triple shared by every catalog level.

    Attributes:
        applicable: Whether tax applies.
        tax: Tax amount (percentage points or fixed amount).
        tax_type: How the amount is applied.
    """

    applicable: bool = False
    tax: Decimal = Decimal("0")
    tax_type: TaxType = TaxType.NONE

    def normalized(self) -> Self:
        """Return attributes with tax cleared when tax does not apply.

        Returns:
            Self when applicable, otherwise zero tax of type none.
        """
        if self.applicable:
            return self
        return type(self)(applicable=False, tax=Decimal("0"), tax_type=TaxType.NONE)


# ============================================================================
# Images
# ============================================================================


@dataclass(frozen=True)
class ImageRef(ValueObject):
    """Reference to an image held by the blob store.

    Attributes:
        store_id: Blob store identifier (e.g., Cloudinary public_id).
        url: Retrievable URL of the image.
    """

    store_id: str
    url: str

    def __post_init__(self) -> None:
        """Validate both halves of the reference are present."""
        if not self.store_id or not self.url:
            raise ValidationError("Image reference needs both store id and url", field="image")


@dataclass(frozen=True)
class ImageUpload(ValueObject):
    """An image payload waiting to be uploaded.

    Attributes:
        filename: Original file name.
        content: Raw image bytes.
        content_type: MIME type reported by the client.
    """

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def is_empty(self) -> bool:
        """Check whether the payload carries no data."""
        return not self.content


# ============================================================================
# Numbers
# ============================================================================


AMOUNT_PLACES = 2
AMOUNT_INTEGER_DIGITS = 10

_CENT = Decimal(1).scaleb(-AMOUNT_PLACES)
_AMOUNT_LIMIT = Decimal(10) ** AMOUNT_INTEGER_DIGITS


def to_amount(value: Any, field: str) -> Decimal:
    """Convert user input to a non-negative decimal amount.

    Args:
        value: Number or numeric string.
        field: Field name used in error messages.

    Returns:
        Decimal value with exactly AMOUNT_PLACES decimal places.

    Raises:
        ValidationError: If value is not a number, is negative, or does
            not fit AMOUNT_INTEGER_DIGITS digits and AMOUNT_PLACES places.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    if amount >= _AMOUNT_LIMIT:
        raise ValidationError(f"{field} must be less than {_AMOUNT_LIMIT:f}", field=field)
    if amount != amount.quantize(_CENT):
        raise ValidationError(
            f"{field} cannot have more than {AMOUNT_PLACES} decimal places", field=field
        )
    return amount.quantize(_CENT)
