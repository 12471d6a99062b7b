"""
Tests for the HTTP surface.

Runs the whole application (lifespan included) against a SQLite database:
- Order ingestion from the table-side menu
- Kitchen listing and status transitions
- Table status polling
- Error envelope, body limit, CORS, liveness and startup checks
"""

import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from table_orders.core.config import Settings
from table_orders.core.exceptions import DatabaseUnavailableError
from table_orders.main import create_app
from tests.conftest import make_item


def place_order(client, table="12", items=None):
    response = client.post(
        "/confirmCommande",
        json={"table_numero": table, "items": items or [make_item()]},
    )
    assert response.status_code == 200, response.json()
    return response.json()["commande_id"]


class TestConfirmCommande:
    """POST /confirmCommande"""

    def test_records_order(self, client):
        response = client.post(
            "/confirmCommande",
            json={
                "table_numero": "12",
                "items": [{"plat_nom": "Pasta", "quantite": 2, "prix_unitaire": 10, "prix_total": 20}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["inserted"] == 1
        assert len(data["commande_id"]) == 36

        orders = client.get("/commandes", params={"status": "RECEIVED"}).json()
        assert len(orders) == 1
        assert orders[0]["id"] == data["commande_id"]
        assert orders[0]["table"] == "12"
        assert orders[0]["items"] == [
            {"dish": "Pasta", "qty": 2, "unit": 10, "total": 20, "accomp": [], "comment": ""}
        ]

    def test_counts_every_line(self, client):
        items = [make_item("Pasta"), make_item("Pizza"), make_item("Coke", qty=1, unit=3, total=3)]

        response = client.post("/confirmCommande", json={"table_numero": "5", "items": items})

        assert response.json()["inserted"] == 3

    @pytest.mark.parametrize("payload", [
        {"items": [{"plat_nom": "Pasta"}]},
        {"table_numero": "", "items": [{"plat_nom": "Pasta"}]},
        {"table_numero": "12"},
        {"table_numero": "12", "items": []},
        {"table_numero": "12", "items": "Pasta"},
        [],
    ])
    def test_rejects_invalid_params(self, client, payload):
        response = client.post("/confirmCommande", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Paramètres invalides"}

    def test_rejects_unparsable_body(self, client):
        response = client.post(
            "/confirmCommande",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_out_of_range_quantity_is_a_server_error(self, client):
        response = client.post(
            "/confirmCommande",
            json={"table_numero": "12", "items": [make_item("Pasta", qty=1e300)]},
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Erreur serveur"}
        assert client.get("/commandes").json() == []

    def test_rejects_oversized_body(self, client):
        items = [make_item("x" * 1000) for _ in range(1200)]

        response = client.post("/confirmCommande", json={"table_numero": "12", "items": items})

        assert response.status_code == 413
        assert response.json()["success"] is False
        assert client.get("/commandes").json() == []


class TestListCommandes:
    """GET /commandes"""

    def test_nested_shape(self, client):
        item = make_item("Steak", accompagnements="Frites, Salade", commentaire="Saignant")
        place_order(client, table="3", items=[item])

        order = client.get("/commandes").json()[0]

        assert set(order) == {"id", "table", "createdAt", "status", "messageToClient", "items"}
        assert order["status"] == "RECEIVED"
        assert order["messageToClient"] == ""
        assert order["items"][0]["accomp"] == ["Frites", "Salade"]
        assert order["items"][0]["comment"] == "Saignant"

    def test_created_at_is_epoch_milliseconds(self, client):
        before = int(time.time()) * 1000 - 1000
        place_order(client)

        created_at = client.get("/commandes").json()[0]["createdAt"]

        assert isinstance(created_at, int)
        assert before <= created_at <= int(time.time() * 1000) + 1000
        assert created_at % 1000 == 0

    def test_since_filter(self, client):
        place_order(client)
        created_at = client.get("/commandes").json()[0]["createdAt"]

        assert len(client.get("/commandes", params={"since": created_at}).json()) == 1
        assert client.get("/commandes", params={"since": created_at + 1000}).json() == []

    def test_whole_prices_keep_their_integer_form(self, client):
        items = [make_item("Pasta", qty=2, unit=10, total=20), make_item("Soupe", qty=1, unit=6.5, total=6.5)]
        place_order(client, items=items)

        response = client.get("/commandes")

        assert '"unit":10,"total":20' in response.text
        items = response.json()[0]["items"]
        assert (items[0]["unit"], items[0]["total"]) == (10, 20)
        assert (items[1]["unit"], items[1]["total"]) == (6.5, 6.5)

    def test_bad_since_is_rejected(self, client):
        response = client.get("/commandes", params={"since": "hier"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Paramètres invalides"}

    def test_unknown_status_lists_nothing(self, client):
        place_order(client)

        response = client.get("/commandes", params={"status": "BOGUS"})

        assert response.status_code == 200
        assert response.json() == []

    def test_limit_bounds_lines(self, client):
        place_order(client, items=[make_item("A"), make_item("B"), make_item("C")])

        orders = client.get("/commandes", params={"limit": 2}).json()

        assert [i["dish"] for i in orders[0]["items"]] == ["A", "B"]

    def test_storage_failure_is_a_server_error(self, client, monkeypatch):
        async def failing_execute(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(AsyncSession, "execute", failing_execute)

        response = client.get("/commandes")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Erreur serveur"}


class TestUpdateStatus:
    """PATCH /commandes/{id}/status"""

    def test_updates_status_and_message(self, client):
        order_id = place_order(client, items=[make_item("A"), make_item("B")])

        response = client.patch(
            f"/commandes/{order_id}/status",
            json={"status": "PREPARING", "message": "Dans 10 minutes"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "updated": 2}
        order = client.get("/commandes").json()[0]
        assert order["status"] == "PREPARING"
        assert order["messageToClient"] == "Dans 10 minutes"

    def test_bogus_status_is_rejected(self, client):
        order_id = place_order(client)

        response = client.patch(f"/commandes/{order_id}/status", json={"status": "BOGUS"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Statut invalide"}
        assert client.get("/commandes").json()[0]["status"] == "RECEIVED"

    def test_missing_body_is_an_invalid_status(self, client):
        order_id = place_order(client)

        response = client.patch(f"/commandes/{order_id}/status")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Statut invalide"}

    def test_unknown_order(self, client):
        place_order(client)

        response = client.patch(
            "/commandes/9b2f3c1e-0000-4000-8000-000000000000/status",
            json={"status": "COMPLETED"},
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Commande introuvable"}

    def test_message_cleared_when_omitted(self, client):
        order_id = place_order(client)
        client.patch(f"/commandes/{order_id}/status", json={"status": "PREPARING", "message": "Bientôt"})

        client.patch(f"/commandes/{order_id}/status", json={"status": "COMPLETED"})

        order = client.get("/commandes").json()[0]
        assert order["status"] == "COMPLETED"
        assert order["messageToClient"] == ""


class TestOrderStatus:
    """GET /order-status"""

    def test_table_without_orders(self, client):
        response = client.get("/order-status", params={"table": "99"})

        assert response.status_code == 200
        assert response.json() == {"empty": True}

    def test_latest_order_of_table(self, client):
        order_id = place_order(client, table="12", items=[make_item(), make_item()])
        client.patch(f"/commandes/{order_id}/status", json={"status": "OUT_OF_STOCK", "message": "Plus de pâtes"})

        data = client.get("/order-status", params={"table": "12"}).json()

        assert data["commande_id"] == order_id
        assert data["status"] == "OUT_OF_STOCK"
        assert data["message"] == "Plus de pâtes"
        assert isinstance(data["createdAt"], int)

    def test_repeated_polls_agree(self, client):
        place_order(client, table="12")

        first = client.get("/order-status", params={"table": "12"}).json()
        second = client.get("/order-status", params={"table": "12"}).json()

        assert first == second

    def test_table_is_matched_exactly(self, client):
        spaced = place_order(client, table=" 7 ")

        assert client.get("/order-status", params={"table": "7"}).json() == {"empty": True}
        assert client.get("/order-status", params={"table": " 7 "}).json()["commande_id"] == spaced

    @pytest.mark.parametrize("params", [{}, {"table": ""}])
    def test_missing_table(self, client, params):
        response = client.get("/order-status", params=params)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "table manquante"}


class TestPlumbing:
    """Liveness, health, CORS and startup."""

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "operational"
        assert data["database"] == "healthy"

    def test_cors_preflight_reflects_origin(self, client):
        response = client.options(
            "/confirmCommande",
            headers={
                "Origin": "https://menu.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://menu.example.com"
        assert "PATCH" in response.headers["access-control-allow-methods"]

    def test_startup_fails_without_database(self, tmp_path):
        settings = Settings(
            database_url=f"sqlite+aiosqlite:///{tmp_path}/missing/orders.db",
            _env_file=None,
        )

        with pytest.raises(DatabaseUnavailableError):
            with TestClient(create_app(settings)):
                pass
