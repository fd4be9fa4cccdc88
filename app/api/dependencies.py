"""Shared API dependencies.

Builds the catalog service for a request, parses multipart catalog
forms and maps service results onto HTTP errors.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from app.api.schemas import (
    CatalogForm,
    CategoryForm,
    CleanupSchema,
    ItemForm,
    SubCategoryForm,
)
from app.application.catalog_service import (
    CatalogResult,
    CatalogService,
    ResultKind,
    get_catalog_service,
)
from app.application.fields import FieldSet
from app.application.image_lifecycle import CleanupOutcome
from app.catalog.repository import build_repositories
from app.catalog.stores import CatalogStores, get_memory_stores
from app.domain.value_objects import ImageUpload
from app.infrastructure.config import settings
from app.infrastructure.database import session_scope

IMAGE_FIELD = "image"

STATUS_BY_KIND = {
    ResultKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ResultKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ResultKind.CONFLICT: status.HTTP_409_CONFLICT,
    ResultKind.UPLOAD_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ResultKind.STORE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


# ============================================================================
# Service
# ============================================================================


async def get_catalog_stores() -> AsyncGenerator[CatalogStores, None]:
    """Get the stores for the configured backend.

    The database backend opens one session per request; it commits when
    the request finishes.
    """
    if settings.store_backend == "database":
        async with session_scope() as session:
            yield build_repositories(session)
    else:
        yield get_memory_stores()


def get_service(
    request: Request,
    stores: Annotated[CatalogStores, Depends(get_catalog_stores)],
) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_catalog_service(stores=stores, request_id=request_id)


# ============================================================================
# Forms
# ============================================================================


@dataclass
class FormPayload:
    """Parsed multipart body of a catalog write."""

    fields: FieldSet
    image: ImageUpload | None


def form_dependency(form_type: type[CatalogForm]) -> Callable[[Request], Awaitable[FormPayload]]:
    """Build a dependency parsing a multipart body into a form model.

    Args:
        form_type: Form model for the entity being written.

    Returns:
        FastAPI dependency producing a FormPayload.
    """

    async def parse(request: Request) -> FormPayload:
        form = await request.form()
        values: dict[str, Any] = {}
        image = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == IMAGE_FIELD:
                    image = ImageUpload(
                        filename=value.filename or IMAGE_FIELD,
                        content=await value.read(),
                        content_type=value.content_type,
                    )
            else:
                values[key] = value

        try:
            parsed = form_type.model_validate(values)
        except PydanticValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error_code": "VALIDATION_ERROR",
                    "message": "Invalid form fields",
                    "details": {"errors": errors},
                },
            ) from e

        return FormPayload(fields=parsed.to_fields(), image=image)

    return parse


category_form = form_dependency(CategoryForm)
sub_category_form = form_dependency(SubCategoryForm)
item_form = form_dependency(ItemForm)


# ============================================================================
# Results
# ============================================================================


def raise_for_result(result: CatalogResult[Any]) -> None:
    """Raise the HTTP error matching a failed service result.

    Args:
        result: Service result.

    Raises:
        HTTPException: If the result is not a success.
    """
    if result.success:
        return

    raise HTTPException(
        status_code=STATUS_BY_KIND.get(result.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={
            "error_code": result.error_code or "ERROR",
            "message": result.error or "Catalog operation failed",
            "details": result.details,
        },
    )


def cleanup_to_schema(outcomes: list[CleanupOutcome]) -> list[CleanupSchema]:
    """Convert recorded image releases to response schemas."""
    return [
        CleanupSchema(
            store_id=outcome.store_id,
            reason=outcome.reason.value,
            status=outcome.status.value,
            error=outcome.error,
        )
        for outcome in outcomes
    ]
