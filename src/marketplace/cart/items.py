"""Cart line management: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.food import Food
from marketplace.domain import marketplace
from marketplace.exceptions import NotFoundError
from marketplace.utils.lookup import get_or_raise

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    food_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    item_index = Integer(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    item_index = Integer(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _open_cart(user_id):
    cart = current_domain.repository_for(Cart).open_cart_for(user_id)
    if cart is None:
        raise NotFoundError({"cart": ["Cart not found"]})
    return cart


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        food = get_or_raise(Food, command.food_id, "food_id", "Food item not found")
        food.assert_orderable_from(command.shop_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.open_cart_for(command.user_id)
        if cart is None:
            cart = Cart.create(user_id=command.user_id)
            logger.info("Opened cart", cart_id=str(cart.id), user_id=str(command.user_id))

        cart.add_item(
            food_id=food.id,
            shop_id=food.shop_id,
            price=food.price,
            quantity=command.quantity or 1,
        )
        repo.add(cart)
        logger.info(
            "Added item to cart",
            cart_id=str(cart.id),
            food_id=str(food.id),
            quantity=command.quantity or 1,
            total_amount=cart.total_amount,
        )
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = _open_cart(command.user_id)
        cart.update_item(item_index=command.item_index, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)
        logger.info(
            "Updated cart item",
            cart_id=str(cart.id),
            item_index=command.item_index,
            quantity=command.quantity,
            total_amount=cart.total_amount,
        )
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = _open_cart(command.user_id)
        cart.remove_item(item_index=command.item_index)
        current_domain.repository_for(Cart).add(cart)
        logger.info("Removed item from cart", cart_id=str(cart.id), item_index=command.item_index)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.open_cart_for(command.user_id)
        if cart is None or cart.is_empty:
            return None

        cart.clear()
        repo.add(cart)
        logger.info("Cleared cart", cart_id=str(cart.id))
        return str(cart.id)
