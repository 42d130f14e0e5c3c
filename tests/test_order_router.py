"""
Order API - HTTP Tests

Drives the FastAPI application in-process through httpx.
"""
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from app_comandas.main import app
from app_comandas.services.order_service import OrderService
from tests.conftest import COURIER_C, COURIER_D, COURIER_OTHER_STORE, PIZZA, SODA, STORE_ID

pytestmark = [pytest.mark.asyncio]

STORE_HEADERS = {"X-Actor-Id": "100", "X-Actor-Role": "store", "X-Store-Id": str(STORE_ID)}
COURIER_C_HEADERS = {"X-Actor-Id": str(COURIER_C), "X-Actor-Role": "courier"}
COURIER_D_HEADERS = {"X-Actor-Id": str(COURIER_D), "X-Actor-Role": "courier"}
UNGRANTED_HEADERS = {"X-Actor-Id": str(COURIER_OTHER_STORE), "X-Actor-Role": "courier"}
ADMIN_HEADERS = {"X-Actor-Id": "1", "X-Actor-Role": "admin"}


@pytest_asyncio.fixture
async def client(database):
    app.state.database = database
    app.state.order_service = OrderService(database)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


def order_body(quantity=2, product_id=PIZZA):
    return {
        "store_id": STORE_ID,
        "customer": {"name": "Ana", "phone": "600000000", "address": "Calle Mayor 1"},
        "line_items": [{"product_id": product_id, "quantity": quantity}],
    }


async def create(client, **kwargs):
    response = await client.post("/comandas", json=order_body(**kwargs), headers=STORE_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/comandas/health")
        assert response.status_code == 200
        assert response.json() == {"detail": "OK"}


class TestIdentity:

    async def test_missing_headers(self, client):
        response = await client.get("/comandas", params={"store_id": STORE_ID})
        assert response.status_code == 401

    async def test_unknown_role(self, client):
        headers = {"X-Actor-Id": "1", "X-Actor-Role": "tienda"}
        response = await client.get("/comandas", params={"store_id": STORE_ID}, headers=headers)
        assert response.status_code == 401


class TestOrderLifecycle:
    """End-to-end flows over HTTP"""

    async def test_create(self, client):
        body = await create(client)

        assert body["state"] == "pending_dispatch"
        assert Decimal(body["total"]) == Decimal("20")
        assert body["courier_id"] is None
        assert body["line_items"][0]["product_name"] == "Pizza"
        assert Decimal(body["line_items"][0]["unit_price"]) == Decimal("10")

    async def test_create_rejects_zero_quantity(self, client):
        response = await client.post("/comandas", json=order_body(quantity=0), headers=STORE_HEADERS)
        assert response.status_code == 422

    async def test_create_unknown_product(self, client):
        response = await client.post("/comandas", json=order_body(product_id=999), headers=STORE_HEADERS)
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    async def test_claim_and_second_claim(self, client):
        order = await create(client)

        first = await client.post(f"/comandas/{order['id']}/claim", headers=COURIER_C_HEADERS)
        assert first.status_code == 200
        assert first.json()["state"] == "assigned"
        assert first.json()["courier_id"] == COURIER_C

        second = await client.post(f"/comandas/{order['id']}/claim", headers=COURIER_D_HEADERS)
        assert second.status_code == 409
        assert second.json()["error"] == "already_claimed"

    async def test_claim_without_grant(self, client):
        order = await create(client)
        response = await client.post(f"/comandas/{order['id']}/claim", headers=UNGRANTED_HEADERS)
        assert response.status_code == 403
        assert response.json()["error"] == "not_eligible"

    async def test_cancel_needs_note(self, client):
        order = await create(client)
        await client.post(f"/comandas/{order['id']}/claim", headers=COURIER_C_HEADERS)
        url = f"/comandas/{order['id']}/state"

        response = await client.patch(url, json={"state": "cancelled"}, headers=COURIER_C_HEADERS)
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

        response = await client.patch(
            url, json={"state": "cancelled", "note": "client unavailable"}, headers=COURIER_C_HEADERS
        )
        assert response.status_code == 200
        assert response.json()["state"] == "cancelled"
        assert response.json()["failure_note"] == "client unavailable"

    async def test_store_delivers_directly(self, client):
        order = await create(client)
        response = await client.patch(
            f"/comandas/{order['id']}/state", json={"state": "fulfilled"}, headers=STORE_HEADERS
        )
        assert response.status_code == 200
        assert response.json()["failure_note"] == "delivered at store"

        again = await client.patch(
            f"/comandas/{order['id']}/state", json={"state": "cancelled", "note": "x"},
            headers=STORE_HEADERS,
        )
        assert again.status_code == 409
        assert again.json()["error"] == "invalid_transition"

    async def test_unknown_state_literal(self, client):
        order = await create(client)
        response = await client.patch(
            f"/comandas/{order['id']}/state", json={"state": "completada"}, headers=STORE_HEADERS
        )
        assert response.status_code == 422

    async def test_get_missing(self, client):
        response = await client.get("/comandas/999", headers=STORE_HEADERS)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

        response = await client.get("/comandas/999", headers=ADMIN_HEADERS)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_get_forbidden(self, client):
        order = await create(client)
        response = await client.get(f"/comandas/{order['id']}", headers=UNGRANTED_HEADERS)
        assert response.status_code == 403


class TestListing:

    async def test_filters(self, client):
        pizza = await create(client)
        soda = await create(client, product_id=SODA)
        await client.patch(
            f"/comandas/{pizza['id']}/state", json={"state": "fulfilled"}, headers=STORE_HEADERS
        )

        response = await client.get(
            "/comandas", params={"store_id": STORE_ID, "active_only": "true"}, headers=STORE_HEADERS
        )
        assert [o["id"] for o in response.json()] == [soda["id"]]

        response = await client.get(
            "/comandas", params={"store_id": STORE_ID, "product_ids": f"{PIZZA}"},
            headers=STORE_HEADERS,
        )
        assert [o["id"] for o in response.json()] == [pizza["id"]]

        response = await client.get(
            "/comandas", params={"store_id": STORE_ID, "state": "fulfilled"}, headers=STORE_HEADERS
        )
        assert [o["id"] for o in response.json()] == [pizza["id"]]

    async def test_bad_product_ids(self, client):
        response = await client.get(
            "/comandas", params={"store_id": STORE_ID, "product_ids": "1,x"}, headers=STORE_HEADERS
        )
        assert response.status_code == 422

    async def test_courier_board_and_stores(self, client):
        open_order = await create(client)
        taken = await create(client)
        await client.post(f"/comandas/{taken['id']}/claim", headers=COURIER_C_HEADERS)

        response = await client.get(
            "/comandas/courier/board", params={"store_id": STORE_ID}, headers=COURIER_C_HEADERS
        )
        assert response.status_code == 200
        board = response.json()
        assert [o["id"] for o in board["available"]] == [open_order["id"]]
        assert [o["id"] for o in board["assigned"]] == [taken["id"]]

        response = await client.get("/comandas/courier/stores", headers=COURIER_C_HEADERS)
        assert response.json() == {"store_ids": [STORE_ID]}
