"""Sub-category API endpoints.

Provides endpoints for managing sub-categories:
- POST /api/subcategories - create under an existing category
- GET /api/subcategories - list sub-categories
- GET /api/subcategories/category/{category_id} - list by category
- GET /api/subcategories/{identifier} - get by ID or name
- PUT /api/subcategories/{id} - update a sub-category
- DELETE /api/subcategories/{id} - delete a sub-category no item uses
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import (
    FormPayload,
    cleanup_to_schema,
    get_service,
    raise_for_result,
    sub_category_form,
)
from app.api.schemas import (
    DeleteResponse,
    ErrorResponse,
    ImageSchema,
    ParentSchema,
    SubCategoriesListResponse,
    SubCategoryResponse,
)
from app.application.catalog_service import CatalogService
from app.application.image_lifecycle import CleanupOutcome
from app.application.rules import SubCategoryView

router = APIRouter(prefix="/api/subcategories", tags=["SubCategories"])


# ============================================================================
# Converters
# ============================================================================


def sub_category_to_response(
    view: SubCategoryView, cleanup: list[CleanupOutcome] | None = None
) -> SubCategoryResponse:
    """Convert SubCategoryView to SubCategoryResponse."""
    sub_category = view.sub_category
    return SubCategoryResponse(
        id=sub_category.id,
        name=sub_category.name,
        description=sub_category.description,
        image=ImageSchema(store_id=sub_category.image.store_id, url=sub_category.image.url),
        category=ParentSchema(id=view.category.id, name=view.category.name),
        tax_applicability=bool(sub_category.tax_applicability),
        tax=float(sub_category.tax or 0),
        tax_type=sub_category.tax_type.value if sub_category.tax_type else "none",
        created_at=sub_category.created_at,
        updated_at=sub_category.updated_at,
        cleanup=cleanup_to_schema(cleanup or []),
    )


def _list_response(views: list[SubCategoryView]) -> SubCategoriesListResponse:
    items = [sub_category_to_response(v) for v in views]
    return SubCategoriesListResponse(count=len(items), items=items)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=SubCategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Create sub-category",
    description="Create a sub-category; unspecified tax fields are copied from the category.",
)
async def create_sub_category(
    payload: Annotated[FormPayload, Depends(sub_category_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> SubCategoryResponse:
    """Create a sub-category.

    Args:
        payload: Parsed form fields and image.
        service: Catalog service.

    Returns:
        The created sub-category with its category.
    """
    result = await service.create_sub_category(payload.fields, payload.image)
    raise_for_result(result)
    return sub_category_to_response(result.data, result.cleanup)


@router.get(
    "",
    response_model=SubCategoriesListResponse,
    summary="List sub-categories",
)
async def list_sub_categories(
    service: Annotated[CatalogService, Depends(get_service)],
) -> SubCategoriesListResponse:
    """List all sub-categories, newest first."""
    result = await service.list_sub_categories()
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/category/{category_id}",
    response_model=SubCategoriesListResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List sub-categories of a category",
)
async def list_sub_categories_by_category(
    category_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> SubCategoriesListResponse:
    """List the sub-categories of a category, newest first."""
    result = await service.list_sub_categories_by_category(category_id)
    raise_for_result(result)
    return _list_response(result.data)


@router.get(
    "/{identifier}",
    response_model=SubCategoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get sub-category",
    description="Get a sub-category by ID or name.",
)
async def get_sub_category(
    identifier: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> SubCategoryResponse:
    """Get a sub-category by ID or name."""
    result = await service.get_sub_category(identifier)
    raise_for_result(result)
    return sub_category_to_response(result.data)


@router.put(
    "/{sub_category_id}",
    response_model=SubCategoryResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Update sub-category",
)
async def update_sub_category(
    sub_category_id: str,
    payload: Annotated[FormPayload, Depends(sub_category_form)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> SubCategoryResponse:
    """Update a sub-category."""
    result = await service.update_sub_category(sub_category_id, payload.fields, payload.image)
    raise_for_result(result)
    return sub_category_to_response(result.data, result.cleanup)


@router.delete(
    "/{sub_category_id}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Delete sub-category",
)
async def delete_sub_category(
    sub_category_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> DeleteResponse:
    """Delete a sub-category and release its image."""
    result = await service.delete_sub_category(sub_category_id)
    raise_for_result(result)
    return DeleteResponse(id=sub_category_id, cleanup=cleanup_to_schema(result.cleanup))
