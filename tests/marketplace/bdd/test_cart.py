"""BDD tests for managing the open cart."""

from pytest_bdd import parsers, scenarios, then, when

from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from marketplace.cart.summary import get_cart

scenarios("features/cart.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer adds {qty:d} "{dish}" to the cart'))
def add_to_cart(attempt, menu, user_id, dish, qty):
    food = menu[dish]
    attempt(AddToCart(user_id=user_id, food_id=str(food.id), shop_id=str(food.shop_id), quantity=qty))


@when(parsers.cfparse("the customer changes line {index:d} to quantity {qty:d}"))
def change_line(attempt, user_id, index, qty):
    attempt(UpdateCartItem(user_id=user_id, item_index=index, quantity=qty))


@when(parsers.cfparse("the customer removes line {index:d}"))
def remove_line(attempt, user_id, index):
    attempt(RemoveFromCart(user_id=user_id, item_index=index))


@when("the customer clears the cart")
def clear_cart(attempt, user_id):
    attempt(ClearCart(user_id=user_id))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart total is {total:d}"))
def cart_total_is(user_id, total):
    assert get_cart(user_id)["total_amount"] == float(total)


@then(parsers.cfparse("line {index:d} has quantity {qty:d}"))
def line_has_quantity(user_id, index, qty):
    assert get_cart(user_id)["items"][index]["quantity"] == qty
