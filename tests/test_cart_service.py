"""
Tests for the persisted cart and the application store lifecycle.

Run with: python -m pytest tests/ -v
"""

from marketplace_mcp.app_state import AppStore
from marketplace_mcp.client_storage import CART_STORAGE_KEY, ClientStorage
from marketplace_mcp.services.cart_service import CartService, CheckoutSource


class TestCart:

    def test_same_variant_merges(self, store, make_item):
        store.cart.add_item(make_item("p1", variant_id="red", quantity=1))

        line, merged = store.cart.add_item(make_item("p1", variant_id="red", quantity=2))

        assert merged
        assert line.quantity == 3
        assert store.cart.cart.item_count == 1

    def test_different_variants_are_separate_lines(self, store, make_item):
        store.cart.add_item(make_item("p1", variant_id="red"))
        store.cart.add_item(make_item("p1", variant_id="blue"))

        assert store.cart.cart.item_count == 2

    def test_quantity_is_capped(self, store, make_item):
        item = make_item("p1", quantity=1)
        item.max_quantity = 3
        line, _ = store.cart.add_item(item)

        updated = store.cart.update_quantity(line.id, 10)

        assert updated.quantity == 3

    def test_quantity_below_one_is_ignored(self, store, make_item):
        line, _ = store.cart.add_item(make_item("p1"))

        assert store.cart.update_quantity(line.id, 0) is None
        assert store.cart.cart.find(line.id).quantity == 1

    def test_new_line_ids(self, storage, make_item):
        cart = CartService(storage, clock=lambda: 1234)

        line, _ = cart.add_item(make_item("p1", variant_id="red"))

        assert line.id == "p1-red-1234"

    def test_remove_and_clear(self, store, make_item):
        line, _ = store.cart.add_item(make_item("p1"))
        store.cart.add_item(make_item("p2"))

        assert store.cart.remove_item(line.id)
        assert not store.cart.remove_item("missing")
        store.cart.clear()
        assert store.cart.cart.is_empty()

    def test_totals(self, store, make_item):
        store.cart.add_item(make_item("p1", price=2.5, quantity=2))
        store.cart.add_item(make_item("p2", price=10))

        summary = store.cart.get_cart_summary()

        assert summary["total_items"] == 3
        assert summary["total_price"] == 15


class TestPersistence:

    def test_cart_survives_restart(self, storage, make_item):
        AppStore(storage).init().cart.add_item(make_item("p1", quantity=2))

        restored = AppStore(storage).init()

        assert [(i.product_id, i.quantity) for i in restored.cart.items] == [("p1", 2)]
        assert storage.local.get_json(CART_STORAGE_KEY)["version"] == 0

    def test_unreadable_cart_is_discarded(self, storage):
        storage.local.set_item(CART_STORAGE_KEY, "{not json")

        store = AppStore(storage).init()

        assert store.cart.cart.is_empty()
        assert storage.local.get_item(CART_STORAGE_KEY) is None


class TestCheckoutSource:

    def test_cart_source_follows_the_cart(self, store, make_item):
        line, _ = store.cart.add_item(make_item("p1"))
        source = CheckoutSource.from_cart(store.cart)

        store.cart.add_item(make_item("p2"))
        store.cart.remove_item(line.id)

        assert not source.is_buy_now
        assert [item.product_id for item in source.items] == ["p2"]

    def test_cart_source_cannot_change_the_cart(self, store, make_item):
        store.cart.add_item(make_item("p1"))

        CheckoutSource.from_cart(store.cart).items.clear()

        assert store.cart.cart.item_count == 1

    def test_buy_now_source(self, make_item):
        source = CheckoutSource.buy_now(make_item("p9"))

        assert source.is_buy_now
        assert [item.product_id for item in source.items] == ["p9"]


class TestAppStore:
    """Explicit lifecycle and the payment flag."""

    def test_processing_listeners(self):
        store = AppStore(ClientStorage()).init()
        changes = []
        subscription = store.subscribe_processing(changes.append)

        store.set_processing_payment(True)
        store.set_processing_payment(True)
        store.set_processing_payment(False)
        subscription.dispose()
        store.set_processing_payment(True)

        assert changes == [True, False]

    def test_teardown_resets_state(self, make_item):
        store = AppStore(ClientStorage()).init()
        store.set_processing_payment(True)
        store.checkout_session = object()

        store.teardown()

        assert not store.initialized
        assert not store.is_processing_payment
        assert store.checkout_session is None
