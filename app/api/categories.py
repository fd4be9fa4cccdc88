"""Category API endpoints.

Provides endpoints for managing top-level categories:
- POST /api/categories - create a category (multipart, image required)
- GET /api/categories - list categories
- GET /api/categories/{identifier} - get a category by ID or name
- PUT /api/categories/{id} - update a category
- DELETE /api/categories/{id} - delete an unreferenced category
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import (
    FormPayload,
    category_form,
    cleanup_to_schema,
    get_service,
    raise_for_result,
)
from app.api.schemas import (
    CategoriesListResponse,
    CategoryResponse,
    DeleteResponse,
    ErrorResponse,
    ImageSchema,
)
from app.application.catalog_service import CatalogService
from app.application.image_lifecycle import CleanupOutcome
from app.domain.entities import Category

router = APIRouter(prefix="/api/categories", tags=["Categories"])


# ============================================================================
# Converters
# ============================================================================


def category_to_response(
    category: Category, cleanup: list[CleanupOutcome] | None = None
) -> CategoryResponse:
    """Convert Category to CategoryResponse."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        image=ImageSchema(store_id=category.image.store_id, url=category.image.url),
        tax_applicability=category.tax_applicability,
        tax=float(category.tax),
        tax_type=category.tax_type.value,
        created_at=category.created_at,
        updated_at=category.updated_at,
        cleanup=cleanup_to_schema(cleanup or []),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Create category",
    description="Create a category from a multipart form with an image file.",
)
async def create_category(
    payload: Annotated[FormPayload, Depends(category_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> CategoryResponse:
    """Create a category.

    Args:
        payload: Parsed form fields and image.
        service: Catalog service.

    Returns:
        The created category.
    """
    result = await service.create_category(payload.fields, payload.image)
    raise_for_result(result)
    return category_to_response(result.data, result.cleanup)


@router.get(
    "",
    response_model=CategoriesListResponse,
    summary="List categories",
    description="Get all categories, newest first.",
)
async def list_categories(
    service: Annotated[CatalogService, Depends(get_service)],
) -> CategoriesListResponse:
    """List all categories."""
    result = await service.list_categories()
    raise_for_result(result)
    items = [category_to_response(c) for c in result.data]
    return CategoriesListResponse(count=len(items), items=items)


@router.get(
    "/{identifier}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get category",
    description="Get a category by ID or exact name.",
)
async def get_category(
    identifier: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> CategoryResponse:
    """Get a category by ID or name.

    Raises:
        HTTPException: If no category matches.
    """
    result = await service.get_category(identifier)
    raise_for_result(result)
    return category_to_response(result.data)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Update category",
    description="Update supplied fields; a new image replaces the old one.",
)
async def update_category(
    category_id: str,
    payload: Annotated[FormPayload, Depends(category_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> CategoryResponse:
    """Update a category.

    Sub-categories keep the tax attributes they copied at creation.
    """
    result = await service.update_category(category_id, payload.fields, payload.image)
    raise_for_result(result)
    return category_to_response(result.data, result.cleanup)


@router.delete(
    "/{category_id}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Delete category",
    description="Delete a category no sub-category or item references.",
)
async def delete_category(
    category_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> DeleteResponse:
    """Delete a category and release its image."""
    result = await service.delete_category(category_id)
    raise_for_result(result)
    return DeleteResponse(id=category_id, cleanup=cleanup_to_schema(result.cleanup))
