"""Tests for category API endpoints."""

from fastapi.testclient import TestClient

from app.infrastructure.blob_store import get_blob_store

MISSING_ID = "00000000-0000-0000-0000-000000000000"


class TestCreateCategory:
    """Tests for POST /api/categories."""

    def test_create(self, post_category) -> None:
        """Created categories are returned in camelCase with status 201."""
        response = post_category(taxApplicability="true", tax="5", taxType="percentage")

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Beverages"
        assert data["taxApplicability"] is True
        assert data["tax"] == 5.0
        assert data["taxType"] == "percentage"
        assert data["image"]["storeId"].startswith("pos-catalog/")
        assert data["image"]["url"]
        assert "createdAt" in data
        assert data["cleanup"] == []

    def test_tax_defaults(self, post_category) -> None:
        """Without tax fields tax is off."""
        data = post_category().json()
        assert data["taxApplicability"] is False
        assert data["tax"] == 0
        assert data["taxType"] == "none"

    def test_blank_tax_ignored(self, post_category) -> None:
        """Blank tax fields count as absent."""
        response = post_category(tax="", taxType="")
        assert response.status_code == 201
        assert response.json()["taxType"] == "none"

    def test_image_required(self, client: TestClient) -> None:
        """A create without an image file is rejected."""
        response = client.post("/api/categories", data={"name": "Snacks", "description": "d"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "image"
        assert body["request_id"]

    def test_missing_name(self, client: TestClient, image_files) -> None:
        response = client.post("/api/categories", data={"description": "d"}, files=image_files)
        assert response.status_code == 400
        assert "name" in response.json()["message"]

    def test_invalid_tax_applicability(self, post_category) -> None:
        """A non-boolean flag fails form validation."""
        response = post_category(taxApplicability="maybe")

        assert response.status_code == 400
        assert response.json()["details"]["errors"]

    def test_duplicate_name(self, post_category) -> None:
        """Category names are unique."""
        post_category("Snacks")
        response = post_category("Snacks")

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_NAME"

    def test_upload_failure(self, post_category, monkeypatch) -> None:
        """A blob store rejection is a bad gateway."""
        monkeypatch.setattr(get_blob_store(), "fail_uploads", True)

        response = post_category()

        assert response.status_code == 502
        assert response.json()["error_code"] == "UPLOAD_FAILED"


class TestReadCategories:
    """Tests for category lookup and listing."""

    def test_get_by_id_and_name(self, client: TestClient, category_id: str) -> None:
        by_id = client.get(f"/api/categories/{category_id}")
        by_name = client.get("/api/categories/Beverages")

        assert by_id.status_code == 200
        assert by_name.json()["id"] == category_id

    def test_not_found(self, client: TestClient) -> None:
        response = client.get(f"/api/categories/{MISSING_ID}")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "NOT_FOUND"
        assert set(body) == {"error_code", "message", "details", "request_id"}

    def test_list(self, client: TestClient, post_category) -> None:
        """Categories are listed newest first."""
        post_category("First")
        post_category("Second")

        data = client.get("/api/categories").json()

        assert data["count"] == 2
        assert [c["name"] for c in data["items"]] == ["Second", "First"]


class TestUpdateCategory:
    """Tests for PUT /api/categories/{id}."""

    def test_partial_update(self, client: TestClient, category_id: str) -> None:
        """Only supplied fields change."""
        response = client.put(f"/api/categories/{category_id}", data={"description": "Drinks"})

        assert response.status_code == 200
        data = response.json()
        assert data["description"] == "Drinks"
        assert data["name"] == "Beverages"
        assert data["taxType"] == "percentage"

    def test_disable_tax(self, client: TestClient, category_id: str) -> None:
        """Turning tax off clears the amount and type."""
        response = client.put(
            f"/api/categories/{category_id}",
            data={"taxApplicability": "false", "tax": "9"},
        )

        data = response.json()
        assert data["tax"] == 0
        assert data["taxType"] == "none"

    def test_replace_image(self, client: TestClient, category_id: str, image_files) -> None:
        """A new image replaces the old one, which is released."""
        before = client.get(f"/api/categories/{category_id}").json()["image"]

        response = client.put(f"/api/categories/{category_id}", files=image_files)

        data = response.json()
        assert data["image"]["storeId"] != before["storeId"]
        assert data["cleanup"] == [
            {
                "storeId": before["storeId"],
                "reason": "replaced",
                "status": "succeeded",
                "error": None,
            }
        ]

    def test_update_missing(self, client: TestClient) -> None:
        response = client.put(f"/api/categories/{MISSING_ID}", data={"name": "X"})
        assert response.status_code == 404


class TestDeleteCategory:
    """Tests for DELETE /api/categories/{id}."""

    def test_delete(self, client: TestClient, category_id: str) -> None:
        response = client.delete(f"/api/categories/{category_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == category_id
        assert data["deleted"] is True
        assert data["cleanup"][0]["reason"] == "deleted"
        assert client.get(f"/api/categories/{category_id}").status_code == 404

    def test_delete_in_use(self, client: TestClient, category_id: str, post_sub_category) -> None:
        """A category with sub-categories cannot be deleted."""
        post_sub_category(category_id)

        response = client.delete(f"/api/categories/{category_id}")

        assert response.status_code == 409
        assert response.json()["details"]["referenced_by"] == {"sub-categories": 1}
