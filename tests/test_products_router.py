"""
Integration tests for the products API router.
"""
from decimal import Decimal

from tests.conftest import product_named


class TestProductsRouter:
    """Tests for /api/products endpoints."""

    def test_list_products(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 5
        assert data[0]["name"] == "Margherita Pizza"
        assert data[0]["status"] == "Available"
        assert data[0]["recipe"][0]["ingredientName"] == "Mozzarella Cheese"

    def test_search_and_filters(self, client, register):
        register.catalog.set_ingredient_stock("Olive Oil", 0)

        names = [p["name"] for p in client.get("/api/products", params={"q": "bread"}).json()]
        assert names == ["Cheese Bread", "Basil Bread"]

        available = client.get("/api/products", params={"available_only": True}).json()
        assert [p["name"] for p in available] == ["Margherita Pizza", "Pepperoni Pizza"]

        pizzas = client.get("/api/products", params={"category": "Pizza"}).json()
        assert len(pizzas) == 2

    def test_categories(self, client):
        response = client.get("/api/products/categories")
        assert response.json() == ["Pizza", "Pastries", "Beverages"]

    def test_create_product(self, client):
        """New products go to the front with a status derived from stock."""
        response = client.post(
            "/api/products",
            json={
                "name": "Garlic Knots",
                "category": "Pastries",
                "price": "55.00",
                "recipe": [{"ingredientName": "Olive Oil", "quantity": "0.01"}],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert isinstance(data["id"], int)
        assert Decimal(data["price"]) == Decimal("55")
        assert data["status"] == "Available"
        assert client.get("/api/products").json()[0]["name"] == "Garlic Knots"

    def test_create_product_requires_name(self, client):
        response = client.post("/api/products", json={"name": "", "price": "10"})
        assert response.status_code == 422

    def test_create_product_rejects_negative_price(self, client):
        response = client.post("/api/products", json={"name": "Freebie", "price": "-1"})
        assert response.status_code == 422

    def test_update_product(self, client, register):
        target = product_named(register, "Basil Bread")
        response = client.put(
            f"/api/products/{target.id}",
            json={
                "name": "Basil Bread",
                "category": "Pastries",
                "price": "95",
                "recipe": [{"ingredientName": "Saffron", "quantity": "1"}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == target.id
        assert Decimal(data["price"]) == Decimal("95")
        assert data["status"] == "Unavailable"

    def test_update_unknown_product(self, client):
        response = client.put("/api/products/1", json={"name": "Ghost"})
        assert response.status_code == 404
        assert response.json()["error"] == "product_not_found"

    def test_delete_product(self, client, register):
        target = product_named(register, "Tomato Basil Dip")
        response = client.delete(f"/api/products/{target.id}")

        assert response.status_code == 204
        assert register.catalog.get_product(target.id) is None
        assert client.delete(f"/api/products/{target.id}").status_code == 404


class TestProductImages:
    """Tests for product image upload."""

    def test_upload_image(self, client, register):
        target = product_named(register, "Cheese Bread")
        response = client.post(
            f"/api/products/{target.id}/image",
            files={"file": ("bread.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["imageDataUrl"].startswith("data:image/png;base64,")

    def test_rejects_non_image(self, client, register):
        target = product_named(register, "Cheese Bread")
        response = client.post(
            f"/api/products/{target.id}/image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 415

    def test_rejects_large_image(self, client, register):
        target = product_named(register, "Cheese Bread")
        response = client.post(
            f"/api/products/{target.id}/image",
            files={"file": ("huge.jpg", b"\xff" * (2 * 1024 * 1024 + 1), "image/jpeg")},
        )
        assert response.status_code == 413


class TestProductsCsv:
    """Tests for catalog CSV export and import."""

    def test_export(self, client):
        response = client.get("/api/products/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "products.csv" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0] == "name,category,price,imageUrl,recipe,status"
        assert lines[1].startswith("Margherita Pizza,Pizza,350")

    def test_import(self, client):
        content = (
            "name,category,price,imageUrl,recipe,status\n"
            "Calzone,Pizza,300,,Mozzarella Cheese:0.3; Tomato Sauce:0.1,Unavailable\n"
            ",Pizza,1,,,\n"
        ).encode("utf-8")
        response = client.post(
            "/api/products/import",
            files={"file": ("products.csv", content, "text/csv")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["imported"] == 1
        assert data["skippedRows"] == 1
        assert len(data["warnings"]) == 1
        assert data["products"][0]["status"] == "Available"
        assert client.get("/api/products").json()[0]["name"] == "Calzone"
