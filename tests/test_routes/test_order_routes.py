# tests/test_routes/test_order_routes.py
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from storefront.core.enums import OrderStatus
from storefront.core.exceptions import (
    InsufficientStockError,
    InvalidCartError,
    OrderNotFoundError,
    ProductNotFoundError,
    StoreUnavailableError,
    UnknownOrderError,
)
from storefront.dependencies import get_order_query_service, get_order_service, get_store_service
from storefront.main import app
from storefront.schemas.order import OrderPlaced, OrderRead


@pytest.fixture
def mock_order_service():
    service = AsyncMock()
    app.dependency_overrides[get_order_service] = lambda: service
    return service


@pytest.fixture
def mock_store_service():
    service = AsyncMock()
    service.payment_url.return_value = None
    app.dependency_overrides[get_store_service] = lambda: service
    return service


@pytest.fixture
def mock_query_service():
    service = AsyncMock()
    app.dependency_overrides[get_order_query_service] = lambda: service
    return service


def test_place_order_success(test_client, mock_order_service, mock_store_service):
    mock_order_service.place_order.return_value = OrderPlaced(
        order_id="0b6f6c1e-0000-4000-8000-000000000001", status=OrderStatus.CREATED, total=Decimal("4.50")
    )
    mock_store_service.payment_url.return_value = "https://cash.app/$snakz?amount=4.50"

    response = test_client.post("/api/orders", json={
        "cart": [{"product_id": "X", "quantity": 3}],
        "payment_type": "cashapp",
        "customer_name": "Sam",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["ok"] is True
    assert body["order_id"] == "0b6f6c1e-0000-4000-8000-000000000001"
    assert body["status"] == "created"
    assert body["total"] == "4.50"
    assert body["payment_url"] == "https://cash.app/$snakz?amount=4.50"

    cart, metadata = mock_order_service.place_order.await_args.args
    assert cart == [{"product_id": "X", "quantity": 3}]
    assert metadata.payment_type == "cashapp"
    assert metadata.customer_name == "Sam"
    mock_store_service.payment_url.assert_awaited_once_with("cashapp", Decimal("4.50"))


def test_payment_link_failure_does_not_fail_the_order(test_client, mock_order_service, mock_store_service):
    mock_order_service.place_order.return_value = OrderPlaced(
        order_id="o-1", status=OrderStatus.CREATED, total=Decimal("1.00")
    )
    mock_store_service.payment_url.side_effect = RuntimeError("settings unreadable")

    response = test_client.post("/api/orders", json={"cart": [{"product_id": "X", "quantity": 1}], "payment_type": "venmo"})

    assert response.status_code == 201
    assert response.json()["payment_url"] is None


@pytest.mark.parametrize("error, status_code, code", [
    (InvalidCartError("cart required"), 400, "invalid_cart"),
    (ProductNotFoundError("MISSING"), 400, "product_not_found"),
    (InsufficientStockError("X", requested=3, available=1), 400, "insufficient_stock"),
    (StoreUnavailableError("Order placement timed out"), 500, "store_unavailable"),
    (UnknownOrderError("Order placement failed"), 500, "unknown"),
])
def test_place_order_errors(test_client, mock_order_service, mock_store_service, error, status_code, code):
    mock_order_service.place_order.side_effect = error

    response = test_client.post("/api/orders", json={"cart": [{"product_id": "X", "quantity": 3}]})

    assert response.status_code == status_code
    body = response.json()
    assert body["ok"] is False
    assert body["error"] == code
    mock_store_service.payment_url.assert_not_awaited()


def test_insufficient_stock_names_the_product(test_client, mock_order_service, mock_store_service):
    mock_order_service.place_order.side_effect = InsufficientStockError("X", requested=3, available=1)

    response = test_client.post("/api/orders", json={"cart": [{"product_id": "X", "quantity": 3}]})

    assert response.json()["product_id"] == "X"


def test_list_orders_requires_admin(test_client, mock_query_service):
    response = test_client.get("/api/orders")

    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "auth_required", "detail": "auth required"}
    mock_query_service.list_orders.assert_not_awaited()


def test_list_orders(test_client, mock_query_service, admin_headers):
    mock_query_service.list_orders.return_value = [
        OrderRead(id="o-1", status="paid", payment_type="cash", items=[]),
    ]

    response = test_client.get("/api/orders?status=paid&limit=10", headers=admin_headers)

    assert response.status_code == 200
    assert [o["id"] for o in response.json()["orders"]] == ["o-1"]
    mock_query_service.list_orders.assert_awaited_once_with(limit=10, status="paid")


def test_get_missing_order(test_client, mock_query_service, admin_headers):
    mock_query_service.get_order.side_effect = OrderNotFoundError("Order not found: nope")

    response = test_client.get("/api/orders/nope", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "order_not_found"


def test_patch_order_status(test_client, mock_query_service, admin_headers):
    mock_query_service.update_order.return_value = OrderRead(id="o-1", status="fulfilled")

    response = test_client.patch("/api/orders/o-1", json={"status": "fulfilled"}, headers=admin_headers)

    assert response.status_code == 200
    order_id, update = mock_query_service.update_order.await_args.args
    assert order_id == "o-1"
    assert update.changes() == {"status": OrderStatus.FULFILLED}


def test_patch_order_rejects_unknown_status(test_client, mock_query_service, admin_headers):
    response = test_client.patch("/api/orders/o-1", json={"status": "lost"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
