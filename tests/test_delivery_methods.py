"""
Tests for delivery-method partitioning.

Run with: python -m pytest tests/ -v
"""

from marketplace_mcp.models.checkout import DeliveryMethod
from marketplace_mcp.services.delivery_methods import (
    NO_ITEMS_LABEL,
    PLACE_ORDER_LABEL,
    PROCESSING_LABEL,
    UNASSIGNED_SELLER,
    can_place_order,
    default_delivery_method,
    get_available_delivery_methods,
    get_seller_delivery_options,
    item_supports_delivery_method,
    partition_items,
    place_order_label,
    resolve_delivery_methods
)


class TestItemSupport:
    """Per-item method support."""

    def test_items_without_options_support_every_method(self, make_item):
        item = make_item("p1", with_options=False)

        for method in DeliveryMethod:
            assert item_supports_delivery_method(item, method)

    def test_only_true_flags_count(self, make_item):
        item = make_item("p1", pickup=True, delivery=False, shipping=False)

        assert item_supports_delivery_method(item, DeliveryMethod.PICKUP)
        assert not item_supports_delivery_method(item, DeliveryMethod.DELIVERY)
        assert not item_supports_delivery_method(item, DeliveryMethod.SHIPPING)


class TestAvailableMethods:
    """A method is available when any item supports it."""

    def test_union_across_items(self, make_item):
        items = [
            make_item("p1", pickup=True, delivery=False, shipping=False),
            make_item("p2", pickup=False, delivery=False, shipping=True),
        ]

        available = get_available_delivery_methods(items)

        assert available == {
            DeliveryMethod.PICKUP: True,
            DeliveryMethod.DELIVERY: False,
            DeliveryMethod.SHIPPING: True,
        }

    def test_empty_list_has_nothing_available(self):
        available = get_available_delivery_methods([])

        assert not any(available.values())
        assert default_delivery_method(available) is None

    def test_default_prefers_pickup_then_delivery_then_shipping(self):
        assert default_delivery_method({DeliveryMethod.DELIVERY: True, DeliveryMethod.SHIPPING: True}) \
            == DeliveryMethod.DELIVERY
        assert default_delivery_method({DeliveryMethod.SHIPPING: True}) == DeliveryMethod.SHIPPING


class TestPartition:
    """Supported and unsupported items for a method."""

    def test_partition_is_complementary(self, make_item):
        pickup_only = make_item("p1", pickup=True, delivery=False, shipping=False)
        ship_only = make_item("p2", pickup=False, delivery=False, shipping=True)
        open_item = make_item("p3", with_options=False)

        supported, unsupported = partition_items([pickup_only, ship_only, open_item], DeliveryMethod.SHIPPING)

        assert supported == [ship_only, open_item]
        assert unsupported == [pickup_only]

    def test_resolve_returns_all_three_views(self, make_item):
        items = [make_item("p1", delivery=False), make_item("p2")]

        available, supported, unsupported = resolve_delivery_methods(items, DeliveryMethod.DELIVERY)

        assert available[DeliveryMethod.DELIVERY] is True
        assert [item.product_id for item in supported] == ["p2"]
        assert [item.product_id for item in unsupported] == ["p1"]


class TestSellerOptions:
    """Grouping by seller."""

    def test_groups_items_and_ors_flags(self, make_item):
        items = [
            make_item("p1", seller="a", pickup=True, delivery=False, shipping=False),
            make_item("p2", seller="a", pickup=False, delivery=False, shipping=True),
            make_item("p3", seller="b", pickup=False, delivery=True, shipping=False),
        ]

        options = get_seller_delivery_options(items)

        assert set(options) == {"a", "b"}
        assert (options["a"].pickup, options["a"].delivery, options["a"].shipping) == (True, False, True)
        assert len(options["a"].items) == 2
        assert options["b"].delivery is True

    def test_items_without_seller_are_grouped_together(self, make_item):
        options = get_seller_delivery_options([make_item("p1", seller=None), make_item("p2", seller=None)])

        assert list(options) == [UNASSIGNED_SELLER]


class TestPlaceOrderButton:
    """Place Order is disabled when nothing is supported or a payment is running."""

    def test_no_supported_items(self):
        assert not can_place_order([], is_processing=False)
        assert place_order_label([], is_processing=False) == NO_ITEMS_LABEL

    def test_processing(self, make_item):
        items = [make_item("p1")]

        assert not can_place_order(items, is_processing=True)
        assert place_order_label(items, is_processing=True) == PROCESSING_LABEL

    def test_ready(self, make_item):
        items = [make_item("p1")]

        assert can_place_order(items, is_processing=False)
        assert place_order_label(items, is_processing=False) == PLACE_ORDER_LABEL
