"""
Tests for optimistic wishlist updates and rollback.

Run with: python -m pytest tests/ -v
"""

import asyncio

import httpx
import pytest

from marketplace_mcp.models.wishlist import WishlistItem, WishlistState
from marketplace_mcp.services.wishlist_service import WishlistService


def server_wishlist(*product_ids):
    return {"data": {
        "items": [{"product": {"_id": pid, "title": f"Product {pid}", "price": 5}, "addedAt": "2024-01-01"}
                  for pid in product_ids],
        "itemCount": len(product_ids),
    }}


@pytest.fixture
def wishlist(backend, notifier):
    return WishlistService(backend, notifier)


class TestReads:

    def test_load(self, wishlist, fake_backend):
        fake_backend.on("GET", "/wishlists", json_body=server_wishlist("p1", "p2"))

        result = asyncio.run(wishlist.load())

        assert result.is_ok
        assert [item.product_id for item in wishlist.state.items] == ["p1", "p2"]
        assert wishlist.state.count == 2
        assert wishlist.state.contains("p1")

    def test_check_and_count(self, wishlist, fake_backend):
        fake_backend.on("GET", "/wishlists/check/p1", json_body={"data": {"isInWishlist": True}})
        fake_backend.on("GET", "/wishlists/count", json_body={"data": {"count": 7}})

        assert asyncio.run(wishlist.check("p1")).value is True
        assert asyncio.run(wishlist.get_count()).value == 7

    def test_batch_check(self, wishlist, fake_backend):
        fake_backend.on("POST", "/wishlists/batch-check", json_body={"data": {"p1": True, "p2": False}})

        result = asyncio.run(wishlist.batch_check(["p1", "p2"]))

        assert result.value == {"p1": True, "p2": False}
        assert fake_backend.body(fake_backend.requests[0]) == {"productIds": ["p1", "p2"]}

    def test_batch_check_empty_skips_network(self, wishlist, fake_backend):
        assert asyncio.run(wishlist.batch_check([])).value == {}
        assert fake_backend.requests == []

    def test_load_failure_is_err(self, wishlist, fake_backend):
        fake_backend.fail_connection("GET", "/wishlists")

        assert not asyncio.run(wishlist.load()).is_ok


class TestOptimisticMutations:
    """State changes before the call and is restored on failure."""

    def test_add_is_visible_during_the_call(self, wishlist, fake_backend):
        seen = {}

        def add(request):
            seen["contains"] = wishlist.state.contains("p1")
            seen["count"] = wishlist.state.count
            return httpx.Response(200, json={"success": True})

        fake_backend.on("POST", "/wishlists/add", handler=add)

        result = asyncio.run(wishlist.add("p1"))

        assert result.is_ok
        assert seen == {"contains": True, "count": 1}
        assert wishlist.state.contains("p1")

    def test_add_failure_rolls_back(self, wishlist, fake_backend, notifier):
        fake_backend.on("POST", "/wishlists/add", status=500, json_body={"message": "Product unavailable"})

        result = asyncio.run(wishlist.add("p1"))

        assert not result.is_ok
        assert result.message == "Product unavailable"
        assert not wishlist.state.contains("p1")
        assert wishlist.state.count == 0
        assert notifier.messages("error") == ["Product unavailable"]

    def test_add_failure_without_message_uses_fallback(self, wishlist, fake_backend):
        fake_backend.on("POST", "/wishlists/add", status=500, json_body={})

        assert asyncio.run(wishlist.add("p1")).message == "Failed to add to wishlist"

    def test_remove_failure_restores_item(self, wishlist, fake_backend):
        wishlist.state = WishlistState(items=[WishlistItem(product_id="p1")], count=1, membership={"p1": True})
        fake_backend.on("POST", "/wishlists/remove", status=500, json_body={})

        asyncio.run(wishlist.remove("p1"))

        assert [item.product_id for item in wishlist.state.items] == ["p1"]
        assert wishlist.state.count == 1
        assert wishlist.state.contains("p1")

    def test_server_state_is_adopted(self, wishlist, fake_backend, notifier):
        fake_backend.on("POST", "/wishlists/add", json_body=server_wishlist("p0", "p1"))

        asyncio.run(wishlist.add("p1"))

        assert [item.product_id for item in wishlist.state.items] == ["p0", "p1"]
        assert wishlist.state.items[1].title == "Product p1"
        assert notifier.messages("success") == ["Product added to wishlist"]

    def test_toggle_follows_membership(self, wishlist, fake_backend):
        fake_backend.on("POST", "/wishlists/add", json_body={"success": True})
        fake_backend.on("POST", "/wishlists/remove", json_body={"success": True})

        asyncio.run(wishlist.toggle("p1"))
        assert wishlist.state.contains("p1")

        asyncio.run(wishlist.toggle("p1"))
        assert not wishlist.state.contains("p1")
        assert [r.url.path for r in fake_backend.requests] == ["/wishlists/add", "/wishlists/remove"]

    def test_update_failure_restores_settings(self, wishlist, fake_backend):
        wishlist.state = WishlistState(items=[WishlistItem(product_id="p1")], count=1)
        fake_backend.on("PATCH", "/wishlists/update", status=400, json_body={})

        asyncio.run(wishlist.update("p1", notification_enabled=True, price_alert={"targetPrice": 4}))

        assert wishlist.state.items[0].notification_enabled is False
        assert wishlist.state.items[0].price_alert is None

    def test_clear_failure_restores_everything(self, wishlist, fake_backend):
        wishlist.state = WishlistState(items=[WishlistItem(product_id="p1"), WishlistItem(product_id="p2")],
                                       count=2, membership={"p1": True, "p2": True})
        fake_backend.on("DELETE", "/wishlists/clear", status=500, json_body={})

        asyncio.run(wishlist.clear())

        assert wishlist.state.count == 2
        assert wishlist.state.membership == {"p1": True, "p2": True}

    def test_failed_add_keeps_an_overlapping_add(self, wishlist, fake_backend):
        def add_fails_after_another_add(request):
            # another request adds p1 while this one is in flight
            wishlist.state.items.append(WishlistItem(product_id="p1"))
            wishlist.state.count += 1
            wishlist.state.membership["p1"] = True
            return httpx.Response(500, json={})

        fake_backend.on("POST", "/wishlists/add", handler=add_fails_after_another_add)

        asyncio.run(wishlist.add("p2"))

        assert [item.product_id for item in wishlist.state.items] == ["p1"]
        assert wishlist.state.count == 1
        assert wishlist.state.contains("p1")
        assert not wishlist.state.contains("p2")
