"""Checkout: turns the user's open cart into a confirmed order.

The cart flip, the order insert and the food order counters are all written
by one handler, so they commit or roll back together.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.food import Food
from marketplace.config import settings
from marketplace.domain import marketplace
from marketplace.exceptions import ConflictError, InvalidStateError
from marketplace.order.numbering import allocate_order_number
from marketplace.order.order import DeliveryAddress, Order, PaymentMethod
from marketplace.order.payment import settle
from marketplace.order.pricing import calculate_charges
from marketplace.utils.lookup import get_or_raise

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class Checkout:
    user_id = Identifier(required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    delivery_address = Text(required=True)  # JSON: {street, city, state, pincode, landmark}
    phone_number = String(required=True, max_length=20)
    order_notes = Text()


@marketplace.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(Checkout)
    def checkout(self, command):
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.open_cart_for(command.user_id)
        if cart is None or cart.is_empty:
            raise InvalidStateError({"cart": ["Cart is empty"]})

        try:
            address = json.loads(command.delivery_address)
        except ValueError:
            address = None
        if not isinstance(address, dict):
            raise ValidationError({"delivery_address": ["Delivery address must be an object"]})
        # Validate the address before anything is allocated
        DeliveryAddress(**address)

        shop_ids = cart.shop_ids
        if len(shop_ids) > 1:
            raise ConflictError({"cart": ["Cart holds items from more than one shop; check out one shop at a time"]})

        lines = cart.lines()
        foods = [get_or_raise(Food, line.food_id, "food_id", "Food item not found") for line in lines]

        charges = calculate_charges(cart.total_amount)
        settlement = settle(command.payment_method)

        order = Order.place(
            order_number=allocate_order_number(),
            user_id=command.user_id,
            shop_id=shop_ids[0],
            lines=[
                {
                    "food_id": line.food_id,
                    "food_name": food.name,
                    "price": line.price,
                    "quantity": line.quantity,
                    "subtotal": line.subtotal,
                }
                for line, food in zip(lines, foods)
            ],
            charges=charges.to_dict(),
            payment_method=command.payment_method,
            payment_status=settlement.payment_status,
            payment_reference=settlement.payment_reference,
            delivery_address=address,
            phone_number=command.phone_number,
            order_notes=command.order_notes,
            delivery_window_minutes=settings.DELIVERY_WINDOW_MINUTES,
        )

        cart.check_out()

        food_repo = current_domain.repository_for(Food)
        for line, food in zip(lines, foods):
            food.record_order(line.quantity)
            food_repo.add(food)

        cart_repo.add(cart)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Checked out cart",
            cart_id=str(cart.id),
            order_id=str(order.id),
            order_number=order.order_number,
            grand_total=order.grand_total,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
        )
        return str(order.id)
