"""Read-side views of the open cart: contents, line count and checkout summary."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.food import Food
from marketplace.catalogue.shop import Shop
from marketplace.exceptions import InvalidStateError
from marketplace.order.pricing import calculate_charges


def _line_view(index, item, foods):
    food = foods.get(str(item.food_id))
    return {
        "item_index": index,
        "food_id": str(item.food_id),
        "shop_id": str(item.shop_id),
        "food_name": food.name if food else None,
        "image": food.image if food else None,
        "quantity": item.quantity,
        "price": item.price,
        "subtotal": item.subtotal,
    }


def _existing(aggregate_cls, identifiers):
    # Lines may outlive the catalogue entry they point at.
    repo = current_domain.repository_for(aggregate_cls)
    found = {}
    for identifier in identifiers:
        try:
            found[identifier] = repo.get(identifier)
        except ObjectNotFoundError:
            continue
    return found


def _foods_by_id(cart):
    return _existing(Food, {str(item.food_id) for item in cart.items})


def get_cart(user_id) -> dict:
    """The user's open cart, or an empty placeholder when there is none."""
    cart = current_domain.repository_for(Cart).open_cart_for(user_id)
    if cart is None:
        return {"id": None, "items": [], "total_amount": 0.0, "item_count": 0}

    foods = _foods_by_id(cart)
    return {
        "id": str(cart.id),
        "items": [_line_view(index, item, foods) for index, item in enumerate(cart.lines())],
        "total_amount": cart.total_amount,
        "item_count": cart.item_count,
    }


def cart_count(user_id) -> int:
    cart = current_domain.repository_for(Cart).open_cart_for(user_id)
    return cart.item_count if cart else 0


def cart_summary(user_id) -> dict:
    """Lines grouped by shop plus the charges checkout would apply."""
    cart = current_domain.repository_for(Cart).open_cart_for(user_id)
    if cart is None or cart.is_empty:
        raise InvalidStateError({"cart": ["Cart is empty"]})

    foods = _foods_by_id(cart)
    shops = _existing(Shop, cart.shop_ids)

    groups = {}
    for index, item in enumerate(cart.lines()):
        shop_id = str(item.shop_id)
        if shop_id not in groups:
            shop = shops.get(shop_id)
            groups[shop_id] = {
                "shop_id": shop_id,
                "shop_name": shop.name if shop else None,
                "items": [],
                "shop_subtotal": 0.0,
            }
        groups[shop_id]["items"].append(_line_view(index, item, foods))
        groups[shop_id]["shop_subtotal"] += item.subtotal

    charges = calculate_charges(cart.total_amount)
    return {
        "total_items": cart.item_count,
        "items_by_shop": list(groups.values()),
        **charges.to_dict(),
    }
