"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartItemAdded:
    """A food was added to the cart, either as a new line or merged into one."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    food_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    quantity = Integer(required=True)
    total_amount = Float(required=True)


@marketplace.event(part_of="Cart")
class CartItemUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_index = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_amount = Float(required=True)


@marketplace.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_index = Integer(required=True)
    food_id = Identifier(required=True)
    total_amount = Float(required=True)


@marketplace.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartCheckedOut:
    """The cart was converted into an order and is closed for good."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    total_amount = Float(required=True)
    checked_out_at = DateTime(required=True)
