"""Shared fixtures for API tests."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from httpx import Response

from app.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def client() -> TestClient:
    """Create test client over the in-memory backends."""
    return TestClient(app)


def image_file(filename: str = "photo.png") -> dict[str, tuple[str, bytes, str]]:
    """Multipart file part for the image field."""
    return {"image": (filename, PNG_BYTES, "image/png")}


@pytest.fixture
def post_category(client: TestClient) -> Callable[..., Response]:
    """Post a category form with an image."""

    def _post(name: str = "Beverages", **form: str) -> Response:
        form.setdefault("description", f"{name} description")
        return client.post("/api/categories", data={"name": name, **form}, files=image_file())

    return _post


@pytest.fixture
def category_id(post_category) -> str:
    """ID of a taxed category."""
    response = post_category(taxApplicability="true", tax="5", taxType="percentage")
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def post_sub_category(client: TestClient) -> Callable[..., Response]:
    """Post a sub-category form with an image."""

    def _post(category: str, name: str = "Hot Drinks", **form: str) -> Response:
        form.setdefault("description", f"{name} description")
        return client.post(
            "/api/subcategories",
            data={"name": name, "category": category, **form},
            files=image_file(),
        )

    return _post


@pytest.fixture
def post_item(client: TestClient) -> Callable[..., Response]:
    """Post an item form with an image."""

    def _post(category: str, name: str = "Espresso", **form: str) -> Response:
        form.setdefault("description", f"{name} description")
        form.setdefault("baseAmount", "3.50")
        return client.post(
            "/api/items",
            data={"name": name, "category": category, **form},
            files=image_file(),
        )

    return _post


@pytest.fixture
def image_files() -> dict[str, tuple[str, bytes, str]]:
    """Multipart image part for update requests."""
    return image_file("replacement.png")
