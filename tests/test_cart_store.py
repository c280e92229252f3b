"""Tests for the client-held cart store."""

import json
import logging

from fastapi import Request, Response

from storefront.services.cart import CartItem, CartStore, CookieStorage, MemoryStorage


def _item(product_id=1, price=50.0, quantity=1, color="Black", length="18 inches"):
    return CartItem(product_id=product_id, name=f"Product {product_id}", price=price,
                    quantity=quantity, color=color, length=length)


def _store(initial=None):
    return CartStore(MemoryStorage(initial), key="cart")


class TestAddItem:
    def test_add_item(self):
        store = _store()
        store.add(_item(quantity=2))
        assert len(store.items) == 1
        assert store.items[0].quantity == 2

    def test_add_same_line_merges_quantity(self):
        store = _store()
        store.add(_item(quantity=1))
        store.add(_item(quantity=2))
        assert len(store.items) == 1
        assert store.items[0].quantity == 3

    def test_different_variant_is_a_new_line(self):
        store = _store()
        store.add(_item(color="Black"))
        store.add(_item(color="Blonde"))
        store.add(_item(length="22 inches"))
        assert len(store.items) == 3
        assert len({line.key for line in store.items}) == 3

    def test_explicit_quantity_overrides_item_quantity(self):
        store = _store()
        store.add(_item(quantity=1), quantity=4)
        assert store.items[0].quantity == 4

    def test_non_positive_quantity_is_ignored(self):
        store = _store()
        store.add(_item(), quantity=0)
        store.add(_item(), quantity=-2)
        assert store.items == []

    def test_added_item_is_copied(self):
        store = _store()
        item = _item(quantity=1)
        store.add(item)
        store.add(_item(quantity=1))
        assert item.quantity == 1


class TestUpdateQuantity:
    def test_update_quantity(self):
        store = _store()
        store.add(_item())
        store.update_quantity(_item(), 5)
        assert store.items[0].quantity == 5

    def test_zero_removes_line(self):
        store = _store()
        store.add(_item())
        store.update_quantity(_item(), 0)
        assert store.items == []

    def test_unknown_line_is_ignored(self):
        store = _store()
        store.add(_item(product_id=1))
        store.update_quantity(_item(product_id=2), 3)
        assert [line.product_id for line in store.items] == [1]
        assert store.items[0].quantity == 1


class TestRemoveAndClear:
    def test_remove_matches_all_options(self):
        store = _store()
        store.add(_item(color="Black"))
        store.add(_item(color="Blonde"))
        store.remove(_item(color="Black"))
        assert [line.color for line in store.items] == ["Blonde"]

    def test_clear(self):
        store = _store()
        store.add(_item(product_id=1))
        store.add(_item(product_id=2))
        store.clear()
        assert store.items == []
        assert store.count == 0


class TestPersistence:
    def test_every_mutation_is_saved(self):
        storage = MemoryStorage()
        store = CartStore(storage)
        store.add(_item(quantity=2))
        saved = json.loads(storage.data["cart"])
        assert saved[0]["quantity"] == 2

        store.clear()
        assert json.loads(storage.data["cart"]) == []

    def test_reload_from_storage(self):
        storage = MemoryStorage()
        CartStore(storage).add(_item(price=20.0, quantity=3))
        reloaded = CartStore(storage)
        assert reloaded.count == 3
        assert reloaded.subtotal == 60.0

    def test_corrupt_payload_yields_empty_cart(self):
        store = _store({"cart": "{not json"})
        assert store.items == []

    def test_invalid_lines_yield_empty_cart(self):
        store = _store({"cart": json.dumps([{"product_id": "abc", "price": -1}])})
        assert store.items == []


class TestTotals:
    def test_count_sums_quantities(self):
        store = _store()
        store.add(_item(product_id=1, quantity=2))
        store.add(_item(product_id=2, quantity=3))
        assert store.count == 5

    def test_quote_uses_lines(self):
        store = _store()
        store.add(_item(price=100.0, quantity=1))
        q = store.quote(include_tax=False)
        assert q.subtotal == 100.0
        assert q.shipping == 10.0
        assert q.tax == 0.0
        assert q.total == 110.0


class TestCookieStorage:
    def _storage(self):
        return CookieStorage(Request({"type": "http", "headers": []}), Response())

    def test_signed_value_reads_back(self):
        storage = self._storage()
        storage.set("cart", "[]")
        assert storage.get("cart") == "[]"
        assert "cart=" in storage.response.headers["set-cookie"]

    def test_oversized_cookie_is_logged(self, caplog):
        storage = self._storage()
        store = CartStore(storage)
        with caplog.at_level(logging.WARNING, logger="storefront.services.cart"):
            for product_id in range(60):
                store.add(_item(product_id=product_id))
        assert any("browsers may discard it" in r.getMessage() for r in caplog.records)

    def test_small_cart_is_not_logged(self, caplog):
        store = CartStore(self._storage())
        with caplog.at_level(logging.WARNING, logger="storefront.services.cart"):
            store.add(_item())
        assert caplog.records == []
