"""API schemas for the POS Catalog API.

Pydantic models for request/response validation and serialization.
Field names are camelCase on the wire.
"""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.application.fields import CategoryFields, FieldSet, ItemFields, SubCategoryFields


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class ImageSchema(CamelModel):
    """Owned image reference."""

    store_id: str = Field(..., description="Blob store identifier")
    url: str = Field(..., description="Image URL")


class ParentSchema(CamelModel):
    """Parent reference resolved for display."""

    id: str = Field(..., description="Parent ID")
    name: str | None = Field(default=None, description="Parent name")


class CleanupSchema(CamelModel):
    """Outcome of releasing a replaced or deleted image."""

    store_id: str = Field(..., description="Blob store identifier of the released image")
    reason: str = Field(..., description="replaced, deleted or rollback")
    status: str = Field(..., description="succeeded or failed_ignored")
    error: str | None = Field(default=None, description="Blob store error, if any")


class TaxSchema(CamelModel):
    """Tax attributes shared by every catalog level."""

    tax_applicability: bool = Field(..., description="Whether tax applies")
    tax: float = Field(..., description="Tax amount")
    tax_type: str = Field(..., description="percentage, fixed or none")


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryResponse(TaxSchema):
    """Category representation."""

    id: str
    name: str
    description: str
    image: ImageSchema
    created_at: datetime
    updated_at: datetime
    cleanup: list[CleanupSchema] = Field(
        default_factory=list, description="Image releases performed by this write"
    )


class CategoriesListResponse(CamelModel):
    """List of categories."""

    count: int = Field(..., description="Number of categories")
    items: list[CategoryResponse]


# ============================================================================
# SubCategory Schemas
# ============================================================================


class SubCategoryResponse(TaxSchema):
    """Sub-category representation."""

    id: str
    name: str
    description: str
    image: ImageSchema
    category: ParentSchema
    created_at: datetime
    updated_at: datetime
    cleanup: list[CleanupSchema] = Field(
        default_factory=list, description="Image releases performed by this write"
    )


class SubCategoriesListResponse(CamelModel):
    """List of sub-categories."""

    count: int = Field(..., description="Number of sub-categories")
    items: list[SubCategoryResponse]


# ============================================================================
# Item Schemas
# ============================================================================


class ItemResponse(TaxSchema):
    """Item representation."""

    id: str
    name: str
    description: str
    image: ImageSchema
    base_amount: float = Field(..., description="Price before discount")
    discount: float = Field(..., description="Discount amount")
    total_amount: float = Field(..., description="base_amount - discount")
    category: ParentSchema
    sub_category: ParentSchema | None = None
    created_at: datetime
    updated_at: datetime
    cleanup: list[CleanupSchema] = Field(
        default_factory=list, description="Image releases performed by this write"
    )


class ItemsListResponse(CamelModel):
    """List of items."""

    count: int = Field(..., description="Number of items")
    items: list[ItemResponse]


# ============================================================================
# Delete Schemas
# ============================================================================


class DeleteResponse(CamelModel):
    """Result of a delete."""

    id: str = Field(..., description="ID of the deleted record")
    deleted: bool = True
    cleanup: list[CleanupSchema] = Field(default_factory=list)


# ============================================================================
# Form Schemas
# ============================================================================


class CatalogForm(CamelModel):
    """Multipart form fields shared by every catalog write.

    Only fields present in the submitted form are applied. Blank tax
    fields count as absent; blank text fields are kept so they fail
    validation instead of being silently skipped.
    """

    fields_type: ClassVar[type[FieldSet]]
    # Fields where None is a value (clear) rather than "not supplied"
    clearable_fields: ClassVar[tuple[str, ...]] = ()

    name: str | None = None
    description: str | None = None
    tax_applicability: bool | None = None
    tax: str | None = None
    tax_type: str | None = None

    @field_validator("tax_applicability", "tax", "tax_type", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        """Treat an empty form value as not supplied."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_fields(self) -> FieldSet:
        """Convert submitted form values to a service field set."""
        supplied = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None or name in self.clearable_fields
        }
        return self.fields_type(**supplied)


class CategoryForm(CatalogForm):
    """Category create/update form."""

    fields_type: ClassVar[type[FieldSet]] = CategoryFields


class SubCategoryForm(CatalogForm):
    """Sub-category create/update form."""

    fields_type: ClassVar[type[FieldSet]] = SubCategoryFields

    category_id: str | None = Field(default=None, alias="category")


class ItemForm(CatalogForm):
    """Item create/update form."""

    fields_type: ClassVar[type[FieldSet]] = ItemFields
    clearable_fields: ClassVar[tuple[str, ...]] = ("sub_category_id",)

    category_id: str | None = Field(default=None, alias="category")
    sub_category_id: str | None = Field(default=None, alias="subCategory")
    base_amount: str | None = None
    discount: str | None = None

    @field_validator("base_amount", "discount", mode="before")
    @classmethod
    def blank_amount_as_missing(cls, value: Any) -> Any:
        """Treat an empty amount as not supplied."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("sub_category_id", mode="before")
    @classmethod
    def blank_sub_category_clears(cls, value: Any) -> Any:
        """An empty or "null" sub-category means no sub-category."""
        if isinstance(value, str) and value.strip().lower() in ("", "null"):
            return None
        return value
