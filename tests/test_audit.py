"""Tests for audit entry helpers."""

from fastapi import Request

from storefront.models.log import Log
from storefront.services.catalog import BulkResult
from storefront.utils.audit import bulk_status, client_ip, order_snapshot, write_log


def _request(headers=(), client=("10.0.0.5", 5000)):
    return Request({
        "type": "http",
        "headers": [(k.encode(), v.encode()) for k, v in headers],
        "client": client,
    })


class TestClientIp:
    def test_direct_client(self):
        assert client_ip(_request()) == "10.0.0.5"

    def test_first_forwarded_hop(self):
        request = _request(headers=[("x-forwarded-for", "203.0.113.9, 10.0.0.1")])
        assert client_ip(request) == "203.0.113.9"

    def test_no_request(self):
        assert client_ip(None) is None


class TestBulkStatus:
    def test_outcomes(self):
        assert bulk_status(BulkResult(requested=2, deleted=2)) == "SUCCESS"
        assert bulk_status(BulkResult(requested=2, deleted=1, failed=1)) == "PARTIAL"
        assert bulk_status(BulkResult(requested=1, failed=1)) == "FAIL"


class TestWriteLog:
    def test_order_entry(self, db, customer, make_product, make_order):
        order = make_order(customer, make_product(), quantity=3)
        entry = write_log(db, _request(), action="ORDER_CREATE", resource="orders",
                          user_id=customer.id, resource_id=order.id,
                          meta={"after": order_snapshot(order)})

        stored = db.get(Log, entry.id)
        assert stored.resource_id == order.id
        assert stored.ip == "10.0.0.5"
        assert stored.actor.email == customer.email
        assert stored.meta["after"]["units"] == 3
        assert stored.meta["after"]["status"] == "PENDING"
