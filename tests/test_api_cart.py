"""Tests for the cookie-backed cart endpoints."""

from storefront.config import settings


def _add(client, product, quantity=1, color="Black", length="18 inches"):
    return client.post("/cart/items", json={
        "product_id": product.id, "quantity": quantity, "color": color, "length": length,
    })


class TestCartItems:
    def test_add_sets_signed_cookie(self, client, make_product):
        product = make_product(price=129.99)
        response = _add(client, product, quantity=2)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["items"][0]["name"] == product.name
        assert body["items"][0]["line_total"] == 259.98
        assert settings.CART_COOKIE_NAME in response.cookies

    def test_cart_survives_between_requests(self, client, make_product):
        product = make_product()
        _add(client, product)
        _add(client, product, quantity=2)
        body = client.get("/cart").json()
        assert len(body["items"]) == 1
        assert body["count"] == 3

    def test_variants_are_separate_lines(self, make_product, client):
        product = make_product(colors=("Black", "Blonde"))
        _add(client, product, color="Black")
        _add(client, product, color="Blonde")
        assert len(client.get("/cart").json()["items"]) == 2

    def test_unknown_product(self, client):
        response = client.post("/cart/items", json={"product_id": 999, "quantity": 1})
        assert response.status_code == 404

    def test_unavailable_color(self, client, make_product):
        product = make_product(colors=("Black",))
        response = _add(client, product, color="Purple")
        assert response.status_code == 400

    def test_zero_quantity_is_rejected(self, client, make_product):
        product = make_product()
        assert _add(client, product, quantity=0).status_code == 400

    def test_update_to_zero_removes_line(self, client, make_product):
        product = make_product()
        _add(client, product, quantity=2)
        response = client.put("/cart/items", json={
            "product_id": product.id, "color": "Black", "length": "18 inches", "quantity": 0,
        })
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_update_quantity(self, client, make_product):
        product = make_product()
        _add(client, product)
        response = client.put("/cart/items", json={
            "product_id": product.id, "color": "Black", "length": "18 inches", "quantity": 4,
        })
        assert response.json()["count"] == 4

    def test_remove_line(self, client, make_product):
        first = make_product(name="First")
        second = make_product(name="Second")
        _add(client, first)
        _add(client, second)
        response = client.request("DELETE", "/cart/items", json={
            "product_id": first.id, "color": "Black", "length": "18 inches",
        })
        assert [line["name"] for line in response.json()["items"]] == ["Second"]

    def test_clear(self, client, make_product):
        _add(client, make_product())
        response = client.delete("/cart")
        assert response.json()["items"] == []
        assert client.get("/cart").json()["count"] == 0


class TestCartTotals:
    def test_cart_page_has_no_tax(self, client, make_product):
        _add(client, make_product(price=100.0))
        quote = client.get("/cart").json()["quote"]
        assert quote == {"subtotal": 100.0, "shipping": 10.0, "tax": 0.0, "discount": 0.0, "total": 110.0}

    def test_checkout_quote_with_coupon(self, client, make_product):
        _add(client, make_product(price=100.0))
        quote = client.get("/cart/quote", params={"coupon": "LUSH20"}).json()
        assert quote == {"subtotal": 100.0, "shipping": 10.0, "tax": 7.0, "discount": 20.0, "total": 97.0}

    def test_empty_cart_quote(self, client):
        quote = client.get("/cart/quote").json()
        assert quote["total"] == 0.0
        assert quote["shipping"] == 0.0


class TestCookieIntegrity:
    def test_tampered_cookie_gives_empty_cart(self, client):
        client.cookies.set(settings.CART_COOKIE_NAME, "not-a-signed-value")
        response = client.get("/cart")
        assert response.status_code == 200
        assert response.json()["items"] == []
