"""Order aggregate: the immutable record of a checked-out cart.

Line items, charges and delivery details are fixed when the order is placed.
Afterwards only the lifecycle moves:

    pending → confirmed → preparing → out_for_delivery → delivered
    pending / confirmed / preparing → cancelled

A customer may rate a delivered order exactly once.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError
from marketplace.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderRated,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    COD = "cod"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
}

# Orders in these states keep their shop from being closed
ACTIVE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class DeliveryAddress:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=20)
    landmark = String(max_length=255)


@marketplace.value_object(part_of="Order")
class OrderCharges:
    """Item total, delivery fee and tax, locked at checkout."""

    total_amount = Float(required=True, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    taxes = Float(default=0.0, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """An ordered food with its name and price denormalised from the catalogue."""

    food_id = Identifier(required=True)
    food_name = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(required=True, min_value=0.0)
    position = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    user_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = HasMany(OrderItem)
    charges = ValueObject(OrderCharges, required=True)
    delivery_time = Integer(min_value=0)  # minutes
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, required=True)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=50)
    delivery_address = ValueObject(DeliveryAddress, required=True)
    phone_number = String(required=True, max_length=20)
    order_notes = Text()
    estimated_delivery_at = DateTime()
    delivered_at = DateTime()
    cancellation_reason = String(max_length=500)
    rating = Integer(min_value=1, max_value=5)
    review = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def grand_total_must_add_up(self):
        if self.charges is None:
            return
        expected = self.charges.total_amount + self.charges.delivery_fee + self.charges.taxes
        if abs(self.charges.grand_total - expected) > 0.005:
            raise ValidationError({"charges": ["Grand total must equal item total plus delivery fee and taxes"]})

    @invariant.post
    def only_delivered_orders_carry_a_rating(self):
        if self.rating is not None and self.status != OrderStatus.DELIVERED.value:
            raise ValidationError({"rating": ["Only delivered orders can be rated"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        shop_id,
        lines,
        charges,
        payment_method,
        payment_status,
        payment_reference,
        delivery_address,
        phone_number,
        order_notes=None,
        delivery_window_minutes=45,
    ):
        """Create a confirmed order.

        Args:
            lines: dicts with food_id, food_name, price, quantity, subtotal.
            charges: dict with total_amount, delivery_fee, taxes, grand_total.
            delivery_address: dict with street, city, state, pincode and an
                optional landmark.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            shop_id=shop_id,
            items=[OrderItem(position=position, **line) for position, line in enumerate(lines)],
            charges=OrderCharges(**charges),
            delivery_time=delivery_window_minutes,
            status=OrderStatus.CONFIRMED.value,
            payment_method=payment_method,
            payment_status=payment_status,
            payment_reference=payment_reference,
            delivery_address=DeliveryAddress(**delivery_address),
            phone_number=phone_number,
            order_notes=order_notes,
            estimated_delivery_at=now + timedelta(minutes=delivery_window_minutes),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id),
                shop_id=str(shop_id),
                items=json.dumps([{"food_id": str(line["food_id"]), "quantity": line["quantity"]} for line in lines]),
                grand_total=order.charges.grand_total,
                payment_method=payment_method,
                payment_status=payment_status,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------
    def lines(self):
        return sorted(self.items, key=lambda item: item.position or 0)

    @property
    def grand_total(self):
        return self.charges.grand_total

    def involves(self, actor_id):
        return str(self.user_id) == str(actor_id)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def advance_to(self, target_status):
        """Move the order one step along its lifecycle."""
        target = OrderStatus(target_status)
        if target == OrderStatus.CANCELLED:
            raise InvalidStateError({"status": ["Use cancellation to cancel an order"]})
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            if target == OrderStatus.DELIVERED:
                self.delivered_at = now
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=target.value,
                changed_at=now,
            )
        )
        if target == OrderStatus.DELIVERED:
            self.raise_(OrderDelivered(order_id=str(self.id), shop_id=str(self.shop_id), delivered_at=now))

    def cancel(self, reason=None):
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidStateError(
                {
                    "status": [
                        f"Cannot cancel order in {current.value} state. "
                        f"Cancellation is only allowed from: "
                        f"{', '.join(sorted(s.value for s in _CANCELLABLE_STATES))}"
                    ]
                }
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.CANCELLED.value
            self.cancellation_reason = reason
            if self.payment_status == PaymentStatus.COMPLETED.value:
                self.payment_status = PaymentStatus.REFUNDED.value
            self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                payment_status=self.payment_status,
                cancelled_at=now,
            )
        )

    def rate(self, rating, review=None):
        if self.status != OrderStatus.DELIVERED.value:
            raise InvalidStateError({"status": ["Only delivered orders can be rated"]})
        if self.rating is not None:
            raise InvalidStateError({"rating": ["Order has already been rated"]})
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})

        with atomic_change(self):
            self.rating = rating
            self.review = review
            self.updated_at = datetime.now(UTC)

        self.raise_(OrderRated(order_id=str(self.id), shop_id=str(self.shop_id), rating=rating))
