"""Integration tests for menu, cart and profile endpoints."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

USER_ID = "550e8400-e29b-41d4-a716-446655440000"
MENU_ITEM_ID = "880e8400-e29b-41d4-a716-446655440000"

MENU_ITEM = {
    "id": MENU_ITEM_ID,
    "name": "Nasi Goreng",
    "description": "Dengan telur",
    "price": 15000,
    "image": None,
    "category": "makanan",
    "is_available": True,
    "stock": None,
}


class TestMenuRoutes:
    def test_lists_available_items_without_auth(self, client: TestClient, tables: dict[str, MagicMock]) -> None:
        query = tables["menu_items"].select.return_value
        query.eq.return_value.order.return_value.order.return_value.execute.return_value = MagicMock(data=[MENU_ITEM])

        response = client.get("/api/v1/menu")

        assert response.status_code == 200
        assert response.json()["items"][0]["name"] == "Nasi Goreng"
        query.eq.assert_called_once_with("is_available", True)

    def test_unknown_item_is_404(self, client: TestClient, tables: dict[str, MagicMock]) -> None:
        tables["menu_items"].select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = None

        response = client.get(f"/api/v1/menu/{MENU_ITEM_ID}")

        assert response.status_code == 404


class TestCartRoutes:
    def test_cart_total_uses_current_prices(
        self,
        client: TestClient,
        tables: dict[str, MagicMock],
        auth_headers: dict[str, str],
    ) -> None:
        tables["cart_items"].select.return_value.eq.return_value.order.return_value.execute.return_value = MagicMock(
            data=[{"quantity": 3, "menu_item": MENU_ITEM}]
        )

        response = client.get("/api/v1/cart", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 45000
        assert data["items"][0]["subtotal"] == 45000

    def test_clear_cart(self, client: TestClient, tables: dict[str, MagicMock], auth_headers: dict[str, str]) -> None:
        response = client.delete("/api/v1/cart", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}
        tables["cart_items"].delete.assert_called_once()


class TestProfileRoutes:
    def test_creates_parent_profile_on_first_access(
        self,
        client: TestClient,
        tables: dict[str, MagicMock],
        auth_headers: dict[str, str],
    ) -> None:
        profiles = tables["profiles"]
        profiles.select.return_value.eq.return_value.execute.return_value = MagicMock(data=[])
        profiles.insert.return_value.execute.return_value = MagicMock(
            data=[
                {
                    "id": "990e8400-e29b-41d4-a716-446655440000",
                    "user_id": USER_ID,
                    "name": "Ibu Sari",
                    "email": "parent@example.com",
                    "role": "parent",
                }
            ]
        )

        response = client.get("/api/v1/profiles/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "parent"
        inserted = profiles.insert.call_args[0][0]
        assert inserted["role"] == "parent"
        assert inserted["name"] == "Ibu Sari"
