"""Read-side access to orders, with visibility checks for the caller."""

from protean.utils.globals import current_domain

from marketplace.catalogue.shop import Shop
from marketplace.exceptions import ForbiddenError, NotFoundError
from marketplace.order.order import Order
from marketplace.utils.lookup import get_or_raise


def order_view(order: Order) -> dict:
    address = order.delivery_address
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "shop_id": str(order.shop_id),
        "items": [
            {
                "food_id": str(item.food_id),
                "food_name": item.food_name,
                "price": item.price,
                "quantity": item.quantity,
                "subtotal": item.subtotal,
            }
            for item in order.lines()
        ],
        "total_amount": order.charges.total_amount,
        "delivery_fee": order.charges.delivery_fee,
        "taxes": order.charges.taxes,
        "grand_total": order.charges.grand_total,
        "delivery_time": order.delivery_time,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "payment_reference": order.payment_reference,
        "delivery_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "pincode": address.pincode,
            "landmark": address.landmark,
        },
        "phone_number": order.phone_number,
        "order_notes": order.order_notes,
        "estimated_delivery_at": order.estimated_delivery_at.isoformat() if order.estimated_delivery_at else None,
        "delivered_at": order.delivered_at.isoformat() if order.delivered_at else None,
        "cancellation_reason": order.cancellation_reason,
        "rating": order.rating,
        "review": order.review,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


def orders_of_user(user_id) -> list[dict]:
    return [order_view(o) for o in current_domain.repository_for(Order).orders_of_user(user_id)]


def find_order(identifier, actor_id, is_admin=False) -> dict:
    """One order by id or ``ORD…`` number, visible to its customer, its shop's owner and admins."""
    repo = current_domain.repository_for(Order)
    if str(identifier).startswith("ORD"):
        order = repo.find_by_number(str(identifier))
        if order is None:
            raise NotFoundError({"order_id": ["Order not found"]})
    else:
        order = get_or_raise(Order, identifier, "order_id", "Order not found")

    if not (is_admin or order.involves(actor_id)):
        shop = get_or_raise(Shop, order.shop_id, "shop_id", "Shop not found")
        if str(shop.owner_id) != str(actor_id):
            raise ForbiddenError({"order": ["You are not allowed to view this order"]})
    return order_view(order)


def orders_of_shop(shop_id, actor_id, is_admin=False) -> list[dict]:
    shop = get_or_raise(Shop, shop_id, "shop_id", "Shop not found")
    shop.assert_managed_by(actor_id, is_admin)
    return [order_view(o) for o in current_domain.repository_for(Order).orders_of_shop(shop.id)]
