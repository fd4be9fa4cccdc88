"""Domain exceptions.

All domain-level errors that represent catalog rule violations.
These exceptions are raised by entities, stores and the catalog
service when invariants are violated or references cannot be resolved.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CatalogError(DomainError):
    """Base class for catalog errors.

    Every subclass carries a machine-readable ``error_code`` that the
    service layer copies into its results.
    """

    error_code = "CATALOG_ERROR"


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(CatalogError):
    """Raised when a required field is missing, empty or out of range."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Explanation of what is invalid.
            field: Name of the offending field, if any.
        """
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(CatalogError):
    """Raised when an entity or a referenced parent does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, identifier: str, role: str | None = None) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "Category", "SubCategory").
            identifier: ID or name that failed to resolve.
            role: How the entity was referenced (e.g., "parent category").
        """
        label = role or entity_type
        super().__init__(
            f"{label[0].upper()}{label[1:]} not found: {identifier}",
            details={"entity_type": entity_type, "identifier": identifier},
        )
        self.entity_type = entity_type
        self.identifier = identifier


# ============================================================================
# Conflict Errors
# ============================================================================


class ConflictError(CatalogError):
    """Base class for writes that collide with existing catalog state."""

    error_code = "CONFLICT"


class DuplicateNameError(ConflictError):
    """Raised when a category name is already taken."""

    error_code = "DUPLICATE_NAME"

    def __init__(self, entity_type: str, name: str) -> None:
        """Initialize duplicate name error.

        Args:
            entity_type: Type of entity with the unique name.
            name: The conflicting name.
        """
        super().__init__(
            f"{entity_type} with name '{name}' already exists",
            details={"entity_type": entity_type, "name": name},
        )


class CategoryMismatchError(ConflictError):
    """Raised when a sub-category does not belong to the item's category."""

    error_code = "CATEGORY_MISMATCH"

    def __init__(self, sub_category_id: str, category_id: str) -> None:
        """Initialize category mismatch error.

        Args:
            sub_category_id: The sub-category that was referenced.
            category_id: The category the item is bound to.
        """
        super().__init__(
            f"Sub-category {sub_category_id} does not belong to category {category_id}",
            details={"sub_category_id": sub_category_id, "category_id": category_id},
        )


class ReferenceInUseError(ConflictError):
    """Raised when deleting an entity that other records still reference."""

    error_code = "REFERENCE_IN_USE"

    def __init__(self, entity_type: str, entity_id: str, referenced_by: dict[str, int]) -> None:
        """Initialize reference in use error.

        Args:
            entity_type: Type of the entity being deleted.
            entity_id: ID of the entity being deleted.
            referenced_by: Count of referencing records per entity type.
        """
        refs = ", ".join(f"{count} {kind}" for kind, count in referenced_by.items())
        super().__init__(
            f"{entity_type} {entity_id} is still referenced by {refs}",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "referenced_by": referenced_by,
            },
        )


# ============================================================================
# Infrastructure Errors
# ============================================================================


class UploadError(CatalogError):
    """Raised when the blob store rejects an image upload."""

    error_code = "UPLOAD_FAILED"

    def __init__(self, reason: str) -> None:
        """Initialize upload error.

        Args:
            reason: Error reported by the blob store.
        """
        super().__init__(f"Failed to upload image: {reason}", details={"reason": reason})


class StoreError(CatalogError):
    """Raised when the underlying persistence layer fails."""

    error_code = "STORE_ERROR"

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize store error.

        Args:
            operation: Store operation that failed (e.g., "insert").
            reason: Underlying error message.
        """
        super().__init__(
            f"Store operation '{operation}' failed: {reason}",
            details={"operation": operation, "reason": reason},
        )
