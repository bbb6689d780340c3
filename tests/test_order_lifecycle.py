from decimal import Decimal

import pytest

from app.core.exceptions import InvalidStatusTransition, NoFieldsProvided, OrderNotFound
from app.api.auth import create_user_token
from app.models import AppUser, AuditLog, Order, OrderLineItem, OrderStatus, Service
from app.schemas.order import OrderUpdate
from app.services import OrderLifecycle


@pytest.fixture
def order_setup(seed, staff_id):
    customer = seed.customer(points=0)
    service = seed.service("4.00")
    order_id = seed.order(customer, staff_id, [(service, 3, "12.00")])
    return {"customer": customer, "service": service, "order_id": order_id}


# ===================== STATUS =====================

@pytest.mark.parametrize("current,new,allowed", [
    (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
    (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
    (OrderStatus.PENDING, OrderStatus.COMPLETED, False),
    (OrderStatus.CONFIRMED, OrderStatus.COMPLETED, True),
    (OrderStatus.CONFIRMED, OrderStatus.PENDING, False),
    (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
    (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED, True),
])
def test_transition_table(current, new, allowed):
    assert OrderLifecycle.can_transition(current, new) is allowed


def test_status_fast_path(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]

    response = client.put(f"/api/orders/{order_id}/status", json={"order_status": "confirmed"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["order"]["order_status"] == "confirmed"
    audit = seed.count(AuditLog)
    assert audit == 1


def test_repeating_current_status_writes_no_audit(client, seed, order_setup, auth_headers):
    url = f"/api/orders/{order_setup['order_id']}/status"

    for _ in range(3):
        response = client.put(url, json={"order_status": "pending"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["order"]["order_status"] == "pending"

    assert seed.count(AuditLog) == 0


def test_illegal_transition_is_rejected(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]

    response = client.put(f"/api/orders/{order_id}/status", json={"order_status": "completed"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidStatusTransition"
    assert seed.get(Order, order_id).order_status == OrderStatus.PENDING


def test_unknown_status_value_is_a_validation_error(client, order_setup, auth_headers):
    response = client.put(
        f"/api/orders/{order_setup['order_id']}/status", json={"order_status": "shipped"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_status_update_of_missing_order_is_404(client, staff_id, auth_headers):
    response = client.put("/api/orders/999/status", json={"order_status": "confirmed"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "OrderNotFound"


def test_mutations_require_staff_token(client, seed, order_setup):
    order_id = order_setup["order_id"]
    url = f"/api/orders/{order_id}/status"

    assert client.put(url, json={"order_status": "confirmed"}).status_code == 401

    customer_user = seed.staff(username="buyer", role="customer")
    token = create_user_token(seed.get(AppUser, customer_user))
    response = client.put(url, json={"order_status": "confirmed"}, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


# ===================== PARTIAL UPDATE =====================

def test_empty_patch_is_rejected(client, order_setup, auth_headers):
    response = client.put(f"/api/orders/{order_setup['order_id']}", json={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "NoFieldsProvided"


def test_patch_ignores_null_status_and_handler():
    assert OrderUpdate(order_status=None, handler_id=None).changes() == {}
    assert OrderUpdate(discount_id=None).changes() == {"discount_id": None}


def test_patch_sets_and_clears_discount(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]
    discount = seed.discount(required_points=5, amount=25)

    set_response = client.put(f"/api/orders/{order_id}", json={"discount_id": discount}, headers=auth_headers)
    assert set_response.status_code == 200
    assert set_response.json()["order"]["discount_id"] == discount
    assert set_response.json()["order"]["payable_price"] == 9.0

    clear_response = client.put(f"/api/orders/{order_id}", json={"discount_id": None}, headers=auth_headers)
    assert clear_response.status_code == 200
    assert clear_response.json()["order"]["discount_id"] is None
    # Changing the discount reference never moves points
    assert seed.points(order_setup["customer"]) == 0


def test_patch_handler_and_status_together(client, seed, order_setup, auth_headers):
    other = seed.staff(username="staff2")

    response = client.put(
        f"/api/orders/{order_setup['order_id']}",
        json={"handler_id": other, "order_status": "cancelled"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["handler_id"] == other
    assert order["order_status"] == "cancelled"


def test_patch_with_unknown_references(client, seed, order_setup, auth_headers):
    url = f"/api/orders/{order_setup['order_id']}"
    retired = seed.discount(required_points=0, is_deleted=True)

    handler = client.put(url, json={"handler_id": 9999}, headers=auth_headers)
    discount = client.put(url, json={"discount_id": retired}, headers=auth_headers)

    assert handler.json()["error"] == "HandlerNotFound"
    assert discount.json()["error"] == "DiscountNotFound"


def test_lifecycle_service_raises_domain_errors(db, order_setup):
    order_id = order_setup["order_id"]

    with pytest.raises(NoFieldsProvided):
        OrderLifecycle.update_order(db, order_id, OrderUpdate())
    with pytest.raises(InvalidStatusTransition):
        OrderLifecycle.update_status(db, order_id, OrderStatus.COMPLETED)
    with pytest.raises(OrderNotFound):
        OrderLifecycle.update_status(db, order_id + 100, OrderStatus.CONFIRMED)


# ===================== SOFT DELETE =====================

def test_delete_is_soft_and_not_repeatable(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]

    first = client.delete(f"/api/orders/{order_id}", headers=auth_headers)
    second = client.delete(f"/api/orders/{order_id}", headers=auth_headers)

    assert first.status_code == 200
    assert second.status_code == 404
    order = seed.get(Order, order_id)
    assert order is not None and order.is_deleted is True
    assert seed.count(OrderLineItem) == 1


def test_deleted_order_is_invisible_to_reads_and_writes(client, order_setup, auth_headers):
    order_id = order_setup["order_id"]
    client.delete(f"/api/orders/{order_id}", headers=auth_headers)

    assert client.get(f"/api/orders/{order_id}").status_code == 404
    assert client.get("/api/orders").json()["pagination"]["total_record"] == 0
    assert client.put(
        f"/api/orders/{order_id}/status", json={"order_status": "confirmed"}, headers=auth_headers
    ).status_code == 404
    assert client.put(f"/api/orders/{order_id}", json={"handler_id": 1}, headers=auth_headers).status_code == 404


# ===================== LINE ITEMS =====================

def test_add_line_item_prices_server_side(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]
    wash = seed.service("7.25", name="Wash")

    response = client.post(
        f"/api/orders/{order_id}/services", json={"service_id": wash, "number_of_unit": 2}, headers=auth_headers
    )

    assert response.status_code == 201
    assert response.json()["service"]["total_price"] == 14.5
    detail = client.get(f"/api/orders/{order_id}").json()
    assert detail["total_order_price"] == 26.5


def test_add_existing_line_item_is_duplicate(client, order_setup, auth_headers):
    response = client.post(
        f"/api/orders/{order_setup['order_id']}/services",
        json={"service_id": order_setup["service"], "number_of_unit": 1},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "DuplicateService"


def test_update_quantity_keeps_captured_price(client, db, order_setup, auth_headers):
    service = db.get(Service, order_setup["service"])
    service.service_price_per_unit = Decimal("100.00")
    db.commit()

    response = client.put(
        f"/api/orders/{order_setup['order_id']}/services/{order_setup['service']}",
        json={"number_of_unit": 5},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["service"] == {
        "service_id": order_setup["service"], "number_of_unit": 5, "total_price": 20.0
    }


def test_cannot_remove_last_line_item(client, seed, order_setup, auth_headers):
    url = f"/api/orders/{order_setup['order_id']}/services/{order_setup['service']}"

    response = client.delete(url, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "EmptyOrder"
    assert seed.count(OrderLineItem) == 1


def test_remove_line_item(client, seed, order_setup, auth_headers):
    order_id = order_setup["order_id"]
    wash = seed.service("7.25", name="Wash")
    client.post(f"/api/orders/{order_id}/services", json={"service_id": wash, "number_of_unit": 1}, headers=auth_headers)

    response = client.delete(f"/api/orders/{order_id}/services/{wash}", headers=auth_headers)

    assert response.status_code == 200
    assert [s["service_id"] for s in client.get(f"/api/orders/{order_id}").json()["services"]] == [order_setup["service"]]


def test_lines_are_frozen_after_completion(client, seed, staff_id, auth_headers):
    customer = seed.customer()
    service = seed.service("4.00")
    order_id = seed.order(customer, staff_id, [(service, 1, "4.00")], status=OrderStatus.COMPLETED)

    response = client.put(
        f"/api/orders/{order_id}/services/{service}", json={"number_of_unit": 2}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "OrderNotEditable"
