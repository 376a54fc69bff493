"""Application tests for order status changes, cancellation, rating and order queries."""

import json

import pytest
from protean import current_domain

from marketplace.cart.items import AddToCart
from marketplace.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from marketplace.order import queries
from marketplace.order.checkout import Checkout
from marketplace.order.lifecycle import AdvanceOrderStatus, CancelOrder, RateOrder
from marketplace.order.order import Order


@pytest.fixture()
def order_id(user_id, food, delivery_address):
    current_domain.process(
        AddToCart(user_id=user_id, food_id=str(food.id), shop_id=str(food.shop_id), quantity=2),
        asynchronous=False,
    )
    return current_domain.process(
        Checkout(
            user_id=user_id,
            payment_method="card",
            delivery_address=json.dumps(delivery_address),
            phone_number="9876543210",
        ),
        asynchronous=False,
    )


def _advance(order_id, status, requested_by, is_admin=False):
    current_domain.process(
        AdvanceOrderStatus(order_id=order_id, status=status, requested_by=requested_by, is_admin=is_admin),
        asynchronous=False,
    )


def _deliver(order_id, owner_id):
    for status in ("preparing", "out_for_delivery", "delivered"):
        _advance(order_id, status, owner_id)


def _load(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestAdvanceOrderStatus:
    def test_owner_moves_order_along(self, order_id, owner_id):
        _advance(order_id, "preparing", owner_id)
        assert _load(order_id).status == "preparing"

    def test_admin_may_advance(self, order_id, admin_id):
        _advance(order_id, "preparing", admin_id, is_admin=True)
        assert _load(order_id).status == "preparing"

    def test_customer_may_not_advance(self, order_id, user_id):
        with pytest.raises(ForbiddenError):
            _advance(order_id, "preparing", user_id)

    def test_invalid_transition(self, order_id, owner_id):
        with pytest.raises(InvalidStateError):
            _advance(order_id, "delivered", owner_id)
        assert _load(order_id).status == "confirmed"

    def test_delivery_is_stamped(self, order_id, owner_id):
        _deliver(order_id, owner_id)
        order = _load(order_id)
        assert order.status == "delivered"
        assert order.delivered_at is not None

    def test_unknown_order(self, owner_id):
        with pytest.raises(NotFoundError):
            _advance("no-such-order", "preparing", owner_id)


class TestCancelOrder:
    def test_customer_cancels_and_card_payment_is_refunded(self, order_id, user_id):
        current_domain.process(
            CancelOrder(order_id=order_id, requested_by=user_id, reason="Changed my mind"),
            asynchronous=False,
        )
        order = _load(order_id)
        assert order.status == "cancelled"
        assert order.payment_status == "refunded"
        assert order.cancellation_reason == "Changed my mind"

    def test_shop_owner_may_cancel(self, order_id, owner_id):
        current_domain.process(CancelOrder(order_id=order_id, requested_by=owner_id), asynchronous=False)
        assert _load(order_id).status == "cancelled"

    def test_stranger_may_not_cancel(self, order_id):
        with pytest.raises(ForbiddenError):
            current_domain.process(CancelOrder(order_id=order_id, requested_by="stranger-001"), asynchronous=False)

    def test_too_late_to_cancel(self, order_id, owner_id, user_id):
        _advance(order_id, "preparing", owner_id)
        _advance(order_id, "out_for_delivery", owner_id)
        with pytest.raises(InvalidStateError):
            current_domain.process(CancelOrder(order_id=order_id, requested_by=user_id), asynchronous=False)


class TestRateOrder:
    def test_customer_rates_delivered_order(self, order_id, owner_id, user_id):
        _deliver(order_id, owner_id)
        current_domain.process(RateOrder(order_id=order_id, user_id=user_id, rating=4, review="Tasty"), asynchronous=False)

        order = _load(order_id)
        assert order.rating == 4
        assert order.review == "Tasty"

    def test_only_the_customer_rates(self, order_id, owner_id):
        _deliver(order_id, owner_id)
        with pytest.raises(ForbiddenError):
            current_domain.process(RateOrder(order_id=order_id, user_id=owner_id, rating=5), asynchronous=False)

    def test_cannot_rate_undelivered_order(self, order_id, user_id):
        with pytest.raises(InvalidStateError):
            current_domain.process(RateOrder(order_id=order_id, user_id=user_id, rating=5), asynchronous=False)


class TestOrderQueries:
    def test_orders_of_user(self, order_id, user_id):
        orders = queries.orders_of_user(user_id)
        assert [o["id"] for o in orders] == [order_id]
        assert orders[0]["grand_total"] == 260.0
        assert orders[0]["items"][0]["food_name"] == "Paneer Tikka"

    def test_find_by_id_or_number(self, order_id, user_id):
        by_id = queries.find_order(order_id, user_id)
        by_number = queries.find_order(by_id["order_number"], user_id)
        assert by_number["id"] == order_id

    def test_shop_owner_and_admin_see_the_order(self, order_id, owner_id, admin_id):
        assert queries.find_order(order_id, owner_id)["id"] == order_id
        assert queries.find_order(order_id, admin_id, is_admin=True)["id"] == order_id

    def test_strangers_do_not(self, order_id):
        with pytest.raises(ForbiddenError):
            queries.find_order(order_id, "stranger-001")

    def test_unknown_order_number(self, user_id):
        with pytest.raises(NotFoundError):
            queries.find_order("ORD0000000000000000", user_id)

    def test_orders_of_shop(self, order_id, shop, owner_id):
        assert [o["id"] for o in queries.orders_of_shop(shop.id, owner_id)] == [order_id]

    def test_orders_of_shop_is_owner_only(self, order_id, shop, user_id):
        with pytest.raises(ForbiddenError):
            queries.orders_of_shop(shop.id, user_id)
