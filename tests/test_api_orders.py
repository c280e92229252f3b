"""Tests for checkout and the order endpoints."""

import pytest

from storefront.models.order import Order, OrderStatus
from storefront.models.log import Log


@pytest.fixture
def product(make_product):
    return make_product(price=129.99)


@pytest.fixture
def placed_order(customer_client, product, shipping):
    customer_client.post("/cart/items", json={
        "product_id": product.id, "quantity": 2, "color": "Black", "length": "18 inches",
    })
    response = customer_client.post("/orders", json={"shipping": shipping})
    assert response.status_code == 201, response.text
    return response.json()


class TestCheckout:
    def test_checkout_from_cart_cookie(self, customer_client, placed_order, db):
        assert placed_order["status"] == "PENDING"
        assert placed_order["subtotal"] == 259.98
        assert placed_order["tax"] == 18.2
        assert placed_order["total"] == 288.18
        assert placed_order["items"][0]["color"] == "Black"
        assert placed_order["shipping_address"] == "123 Main St, Apt 4, New York, NY 10001, United States"

        assert customer_client.get("/cart").json()["items"] == []
        assert db.query(Log).filter(Log.action == "ORDER_CREATE").count() == 1

    def test_checkout_with_submitted_lines(self, customer_client, product, shipping):
        customer_client.post("/cart/items", json={
            "product_id": product.id, "quantity": 3, "color": "Black", "length": "18 inches",
        })
        response = customer_client.post("/orders", json={
            "items": [{"product_id": product.id, "name": product.name, "price": 129.99, "quantity": 1,
                       "color": "Black", "length": "18 inches"}],
            "shipping": shipping,
            "coupon_code": "LUSH20",
        })
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["items"][0]["quantity"] == 1
        assert body["discount"] == 26.0
        assert body["tax"] == 9.1
        assert body["total"] == 123.09

    def test_submitted_price_must_match_cart(self, customer_client, product, shipping, db):
        customer_client.post("/cart/items", json={
            "product_id": product.id, "quantity": 1, "color": "Black", "length": "18 inches",
        })
        response = customer_client.post("/orders", json={
            "items": [{"product_id": product.id, "name": product.name, "price": 0.01, "quantity": 1,
                       "color": "Black", "length": "18 inches"}],
            "shipping": shipping,
        })
        assert response.status_code == 400
        assert db.query(Order).count() == 0
        assert len(customer_client.get("/cart").json()["items"]) == 1

    def test_submitted_line_must_be_in_cart(self, customer_client, product, shipping, db):
        response = customer_client.post("/orders", json={
            "items": [{"product_id": product.id, "name": product.name, "price": 129.99, "quantity": 1,
                       "color": "Black", "length": "18 inches"}],
            "shipping": shipping,
        })
        assert response.status_code == 400
        assert db.query(Order).count() == 0

    def test_empty_cart(self, customer_client, shipping, db):
        response = customer_client.post("/orders", json={"shipping": shipping})
        assert response.status_code == 400
        assert db.query(Order).count() == 0

    def test_requires_login(self, client, shipping):
        assert client.post("/orders", json={"shipping": shipping}).status_code == 401

    def test_missing_shipping(self, customer_client):
        assert customer_client.post("/orders", json={}).status_code == 400


class TestOrderHistory:
    def test_own_orders(self, customer_client, placed_order):
        body = customer_client.get("/orders").json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == placed_order["id"]

    def test_other_customer_is_forbidden(self, placed_order, make_user, client):
        make_user(email="other@shop.com")
        client.post("/auth/login", json={"email": "other@shop.com", "password": "password123"})
        assert client.get(f"/orders/{placed_order['id']}").status_code == 403
        assert client.get("/orders").json()["total"] == 0

    def test_missing_order(self, customer_client):
        assert customer_client.get("/orders/999").status_code == 404


class TestAdminOrders:
    def test_ship_with_tracking(self, admin_client, placed_order):
        response = admin_client.put(f"/admin/orders/{placed_order['id']}", json={
            "status": "SHIPPED", "tracking_carrier": "UPS", "tracking_number": "TRK1",
        })
        assert response.status_code == 200
        assert response.json()["status"] == "SHIPPED"
        assert response.json()["tracking_number"] == "TRK1"

    def test_illegal_transition_conflicts(self, admin_client, placed_order, db):
        order_id = placed_order["id"]
        admin_client.put(f"/admin/orders/{order_id}", json={"status": "DELIVERED"})
        response = admin_client.put(f"/admin/orders/{order_id}", json={"status": "PENDING"})
        assert response.status_code == 409
        assert db.get(Order, order_id).status == OrderStatus.DELIVERED

    def test_invalid_status(self, admin_client, placed_order):
        response = admin_client.put(f"/admin/orders/{placed_order['id']}", json={"status": "LOST"})
        assert response.status_code == 400

    def test_filter_by_status(self, admin_client, placed_order):
        assert admin_client.get("/admin/orders", params={"status": "pending"}).json()["total"] == 1
        assert admin_client.get("/admin/orders", params={"status": "SHIPPED"}).json()["total"] == 0
        assert admin_client.get("/admin/orders", params={"status": "nope"}).status_code == 400

    def test_search_by_customer(self, admin_client, placed_order, customer):
        body = admin_client.get("/admin/orders", params={"search": customer.email}).json()
        assert body["total"] == 1
        assert body["items"][0]["user"]["email"] == customer.email
