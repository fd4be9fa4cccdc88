"""Domain layer - Entities, value objects and domain exceptions.

This module exports the core building blocks of the catalog:

- **Entities**: Objects with identity (Category, SubCategory, Item)
- **Value Objects**: Immutable objects compared by value (ImageRef, TaxAttributes)
- **Exceptions**: Catalog errors and invariant violations

Example usage:
    from app.domain import Item, ImageRef

    item = Item(
        id=new_id(),
        name="Espresso",
        description="Single shot",
        image=ImageRef(store_id="catalog/espresso", url="https://..."),
        base_amount=Decimal("3.50"),
        discount=Decimal("0.50"),
        category_id=beverages.id,
    )
    print(item.total_amount)  # 3.00
"""

# Base classes
from app.domain.base import Entity, ValueObject

# Entities
from app.domain.entities import CatalogEntity, Category, Item, SubCategory

# Exceptions
from app.domain.exceptions import (
    CatalogError,
    CategoryMismatchError,
    ConflictError,
    DomainError,
    DuplicateNameError,
    NotFoundError,
    ReferenceInUseError,
    StoreError,
    UploadError,
    ValidationError,
)

# Value Objects
from app.domain.value_objects import (
    ImageRef,
    ImageUpload,
    TaxAttributes,
    TaxType,
    is_entity_id,
    new_id,
    to_amount,
)

__all__ = [
    # Base classes
    "Entity",
    "ValueObject",
    # Entities
    "CatalogEntity",
    "Category",
    "Item",
    "SubCategory",
    # Value Objects
    "ImageRef",
    "ImageUpload",
    "TaxAttributes",
    "TaxType",
    "is_entity_id",
    "new_id",
    "to_amount",
    # Exceptions
    "CatalogError",
    "CategoryMismatchError",
    "ConflictError",
    "DomainError",
    "DuplicateNameError",
    "NotFoundError",
    "ReferenceInUseError",
    "StoreError",
    "UploadError",
    "ValidationError",
]
