"""Application layer module.

Contains the catalog service (use cases) that orchestrates domain
rules, the catalog stores and the image blob store.
"""

from app.application.catalog_service import (
    CatalogResult,
    CatalogService,
    ResultKind,
    get_catalog_service,
)
from app.application.fields import (
    UNSET,
    CategoryFields,
    ItemFields,
    SubCategoryFields,
)
from app.application.image_lifecycle import (
    CleanupOutcome,
    CleanupStatus,
    ImageLifecycle,
    ReleaseReason,
)
from app.application.rules import ItemView, ParentRef, SubCategoryView

__all__ = [
    "CatalogResult",
    "CatalogService",
    "ResultKind",
    "get_catalog_service",
    "UNSET",
    "CategoryFields",
    "ItemFields",
    "SubCategoryFields",
    "CleanupOutcome",
    "CleanupStatus",
    "ImageLifecycle",
    "ReleaseReason",
    "ItemView",
    "ParentRef",
    "SubCategoryView",
]
