"""Item API endpoints.

Provides endpoints for managing sellable items:
- POST /api/items - create an item
- GET /api/items - list items
- GET /api/items/search?name= - search items by name and description
- GET /api/items/category/{category_id} - list items of a category
- GET /api/items/subcategory/{sub_category_id} - list items of a sub-category
- GET /api/items/{identifier} - get an item by ID or name
- PUT /api/items/{id} - update an item
- DELETE /api/items/{id} - delete an item
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import (
    FormPayload,
    cleanup_to_schema,
    get_service,
    item_form,
    raise_for_result,
)
from app.api.schemas import (
    DeleteResponse,
    ErrorResponse,
    ImageSchema,
    ItemResponse,
    ItemsListResponse,
    ParentSchema,
)
from app.application.catalog_service import CatalogService
from app.application.image_lifecycle import CleanupOutcome
from app.application.rules import ItemView

router = APIRouter(prefix="/api/items", tags=["Items"])


# ============================================================================
# Converters
# ============================================================================


def item_to_response(view: ItemView, cleanup: list[CleanupOutcome] | None = None) -> ItemResponse:
    """Convert ItemView to ItemResponse."""
    item = view.item

    sub_category = None
    if view.sub_category:
        sub_category = ParentSchema(id=view.sub_category.id, name=view.sub_category.name)

    return ItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        image=ImageSchema(store_id=item.image.store_id, url=item.image.url),
        tax_applicability=item.tax_applicability,
        tax=float(item.tax),
        tax_type=item.tax_type.value,
        base_amount=float(item.base_amount),
        discount=float(item.discount),
        total_amount=float(item.total_amount),
        category=ParentSchema(id=view.category.id, name=view.category.name),
        sub_category=sub_category,
        created_at=item.created_at,
        updated_at=item.updated_at,
        cleanup=cleanup_to_schema(cleanup or []),
    )


def _list_response(views: list[ItemView]) -> ItemsListResponse:
    items = [item_to_response(v) for v in views]
    return ItemsListResponse(count=len(items), items=items)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Create item",
    description="Create an item; totalAmount is computed as baseAmount - discount.",
)
async def create_item(
    payload: Annotated[FormPayload, Depends(item_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemResponse:
    """Create an item.

    Args:
        payload: Parsed form fields and image.
        service: Catalog service.

    Returns:
        The created item with its category and sub-category.
    """
    result = await service.create_item(payload.fields, payload.image)
    raise_for_result(result)
    return item_to_response(result.data, result.cleanup)


@router.get(
    "",
    response_model=ItemsListResponse,
    summary="List items",
)
async def list_items(
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemsListResponse:
    """List all items, newest first."""
    result = await service.list_items()
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/search",
    response_model=ItemsListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Search items",
    description="Search item names and descriptions, most relevant first.",
)
async def search_items(
    service: Annotated[CatalogService, Depends(get_service)],
    name: str | None = Query(default=None, description="Search text"),
) -> ItemsListResponse:
    """Search items.

    Args:
        service: Catalog service.
        name: Search text; required.

    Returns:
        Matching items, most relevant first.
    """
    result = await service.search_items(name)
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/category/{category_id}",
    response_model=ItemsListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List items of a category",
)
async def list_items_by_category(
    category_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemsListResponse:
    """List the items of a category, newest first."""
    result = await service.list_items_by_category(category_id)
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/subcategory/{sub_category_id}",
    response_model=ItemsListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List items of a sub-category",
)
async def list_items_by_sub_category(
    sub_category_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemsListResponse:
    """List the items of a sub-category, newest first."""
    result = await service.list_items_by_sub_category(sub_category_id)
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/{identifier}",
    response_model=ItemResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get item",
    description="Get an item by ID or name.",
)
async def get_item(
    identifier: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemResponse:
    """Get an item by ID or name."""
    result = await service.get_item(identifier)
    raise_for_result(result)
    return item_to_response(result.data)


@router.put(
    "/{item_id}",
    response_model=ItemResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Update item",
    description="Update supplied fields; an empty subCategory clears the sub-category.",
)
async def update_item(
    item_id: str,
    payload: Annotated[FormPayload, Depends(item_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ItemResponse:
    """Update an item."""
    result = await service.update_item(item_id, payload.fields, payload.image)
    raise_for_result(result)
    return item_to_response(result.data, result.cleanup)


@router.delete(
    "/{item_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete item",
)
async def delete_item(
    item_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> DeleteResponse:
    """Delete an item and release its image."""
    result = await service.delete_item(item_id)
    raise_for_result(result)
    return DeleteResponse(id=item_id, cleanup=cleanup_to_schema(result.cleanup))
