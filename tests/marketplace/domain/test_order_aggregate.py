"""Tests for the Order aggregate: placement, state machine, cancellation and rating."""

import pytest
from protean.exceptions import ValidationError

from marketplace.exceptions import InvalidStateError
from marketplace.order.events import OrderCancelled, OrderDelivered, OrderPlaced, OrderRated, OrderStatusChanged
from marketplace.order.order import Order, OrderStatus, PaymentStatus


def _place(payment_method="cod", payment_status="pending", **overrides):
    fields = {
        "order_number": "ORD1700000000000042",
        "user_id": "user-001",
        "shop_id": "shop-001",
        "lines": [
            {"food_id": "food-001", "food_name": "Paneer Tikka", "price": 100.0, "quantity": 2, "subtotal": 200.0},
        ],
        "charges": {"total_amount": 200.0, "delivery_fee": 50.0, "taxes": 10.0, "grand_total": 260.0},
        "payment_method": payment_method,
        "payment_status": payment_status,
        "payment_reference": "COD_1700000000000",
        "delivery_address": {"street": "221 Residency Road", "city": "Bengaluru", "state": "KA", "pincode": "560025"},
        "phone_number": "9876543210",
    }
    fields.update(overrides)
    return Order.place(**fields)


def _deliver(order):
    for status in ("preparing", "out_for_delivery", "delivered"):
        order.advance_to(status)
    return order


class TestPlace:
    def test_placed_order_is_confirmed(self):
        order = _place()
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.grand_total == 260.0
        assert order.delivery_time == 45
        assert len(order.items) == 1
        assert order.lines()[0].food_name == "Paneer Tikka"

    def test_estimated_delivery_follows_window(self):
        order = _place(delivery_window_minutes=30)
        delta = order.estimated_delivery_at - order.created_at
        assert delta.total_seconds() == 30 * 60

    def test_raises_order_placed(self):
        order = _place()
        placed = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(placed) == 1
        assert placed[0].grand_total == 260.0

    def test_grand_total_must_add_up(self):
        with pytest.raises(ValidationError):
            _place(charges={"total_amount": 200.0, "delivery_fee": 50.0, "taxes": 10.0, "grand_total": 250.0})

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _place(payment_method="bitcoin")

    def test_delivery_address_requires_pincode(self):
        with pytest.raises(ValidationError):
            _place(delivery_address={"street": "1 Road", "city": "Pune", "state": "MH"})


class TestStateMachine:
    def test_happy_path(self):
        order = _place()
        _deliver(order)

        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivered_at is not None
        changes = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert [e.to_status for e in changes] == ["preparing", "out_for_delivery", "delivered"]
        assert any(isinstance(e, OrderDelivered) for e in order._events)

    def test_cannot_skip_states(self):
        order = _place()
        with pytest.raises(InvalidStateError):
            order.advance_to("delivered")
        assert order.status == OrderStatus.CONFIRMED.value

    def test_delivered_is_terminal(self):
        order = _deliver(_place())
        with pytest.raises(InvalidStateError):
            order.advance_to("preparing")

    def test_cancellation_has_its_own_path(self):
        order = _place()
        with pytest.raises(InvalidStateError):
            order.advance_to("cancelled")


class TestCancel:
    @pytest.mark.parametrize("steps", [[], ["preparing"]])
    def test_cancellable_states(self, steps):
        order = _place()
        for status in steps:
            order.advance_to(status)

        order.cancel(reason="Ordered by mistake")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Ordered by mistake"
        assert any(isinstance(e, OrderCancelled) for e in order._events)

    def test_cannot_cancel_once_out_for_delivery(self):
        order = _place()
        order.advance_to("preparing")
        order.advance_to("out_for_delivery")
        with pytest.raises(InvalidStateError):
            order.cancel()

    def test_completed_payment_is_refunded(self):
        order = _place(payment_method="card", payment_status="completed")
        order.cancel()
        assert order.payment_status == PaymentStatus.REFUNDED.value

    def test_pending_payment_stays_pending(self):
        order = _place()
        order.cancel()
        assert order.payment_status == PaymentStatus.PENDING.value


class TestRate:
    def test_rate_delivered_order(self):
        order = _deliver(_place())
        order.rate(5, review="Hot and quick")

        assert order.rating == 5
        assert order.review == "Hot and quick"
        assert any(isinstance(e, OrderRated) for e in order._events)

    def test_cannot_rate_before_delivery(self):
        order = _place()
        with pytest.raises(InvalidStateError):
            order.rate(4)

    def test_rates_only_once(self):
        order = _deliver(_place())
        order.rate(4)
        with pytest.raises(InvalidStateError):
            order.rate(5)

    def test_rating_out_of_range(self):
        order = _deliver(_place())
        with pytest.raises(ValidationError):
            order.rate(6)
