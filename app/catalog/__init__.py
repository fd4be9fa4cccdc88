"""Catalog persistence.

Store interfaces, in-memory stores, SQLAlchemy models and repositories
for the Category → SubCategory → Item hierarchy.
"""

from app.catalog.models import CategoryModel, ItemModel, SubCategoryModel
from app.catalog.repository import (
    CategoryRepository,
    ItemRepository,
    SubCategoryRepository,
    build_repositories,
)
from app.catalog.stores import (
    CatalogStores,
    CategoryStore,
    EntityStore,
    InMemoryCatalogStores,
    ItemStore,
    SubCategoryStore,
    get_memory_stores,
    reset_memory_stores,
)

__all__ = [
    # Models
    "CategoryModel",
    "ItemModel",
    "SubCategoryModel",
    # Interfaces
    "CatalogStores",
    "CategoryStore",
    "EntityStore",
    "ItemStore",
    "SubCategoryStore",
    # In-memory
    "InMemoryCatalogStores",
    "get_memory_stores",
    "reset_memory_stores",
    # Repositories
    "CategoryRepository",
    "ItemRepository",
    "SubCategoryRepository",
    "build_repositories",
]
