"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a confirmed order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = Text(required=True)  # JSON array of {food_id, quantity}
    grand_total = Float(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; a settled payment is refunded with it."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    payment_status = String(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderRated:
    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    rating = Integer(required=True)
