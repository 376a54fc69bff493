"""Order lifecycle after checkout: status changes, cancellation and rating."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.shop import Shop
from marketplace.domain import marketplace
from marketplace.exceptions import ForbiddenError
from marketplace.order.order import Order, OrderStatus
from marketplace.utils.lookup import get_or_raise

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    reason = String(max_length=500)


@marketplace.command(part_of="Order")
class RateOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    review = Text()


def _load_order(order_id):
    return get_or_raise(Order, order_id, "order_id", "Order not found")


@marketplace.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        order = _load_order(command.order_id)
        shop = get_or_raise(Shop, order.shop_id, "shop_id", "Shop not found")
        shop.assert_managed_by(command.requested_by, command.is_admin)

        previous = order.status
        order.advance_to(command.status)
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
        )

    @handle(CancelOrder)
    def cancel_order(self, command):
        order = _load_order(command.order_id)
        if not (command.is_admin or order.involves(command.requested_by)):
            shop = get_or_raise(Shop, order.shop_id, "shop_id", "Shop not found")
            if str(shop.owner_id) != str(command.requested_by):
                raise ForbiddenError({"order": ["Only the customer, the shop owner or an admin can cancel this order"]})

        order.cancel(reason=command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Cancelled order",
            order_id=str(order.id),
            reason=command.reason,
            payment_status=order.payment_status,
        )

    @handle(RateOrder)
    def rate_order(self, command):
        order = _load_order(command.order_id)
        if not order.involves(command.user_id):
            raise ForbiddenError({"order": ["Only the customer who placed the order can rate it"]})

        order.rate(rating=command.rating, review=command.review)
        current_domain.repository_for(Order).add(order)
        logger.info("Rated order", order_id=str(order.id), rating=command.rating)
