"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from marketplace.cart.items import AddToCart
from marketplace.cart.summary import get_cart
from marketplace.catalogue.management import ToggleFoodStock


# ---------------------------------------------------------------------------
# Scenario state
# ---------------------------------------------------------------------------
@pytest.fixture()
def menu():
    """Dishes registered by the scenario, keyed by name."""
    return {}


@pytest.fixture()
def outcome():
    """Result or captured error of the last action."""
    return {"result": None, "exc": None}


@pytest.fixture()
def attempt(outcome):
    def _attempt(command):
        try:
            outcome["result"] = current_domain.process(command, asynchronous=False)
        except ValidationError as exc:
            outcome["exc"] = exc

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a verified shop "{name}" serving "{dish}" at {price:d}'))
def _(make_shop, make_food, menu, name, dish, price):
    shop = make_shop(f"owner-{len(menu) + 1:03d}", name=name)
    menu[dish] = make_food(shop, name=dish, price=float(price))


@given(parsers.cfparse('"{dish}" is out of stock'))
def _(menu, dish):
    food = menu[dish]
    current_domain.process(
        ToggleFoodStock(food_id=str(food.id), requested_by=str(food.created_by)),
        asynchronous=False,
    )


@given(parsers.cfparse('the customer has {qty:d} "{dish}" in the cart'))
def _(menu, user_id, dish, qty):
    food = menu[dish]
    current_domain.process(
        AddToCart(user_id=user_id, food_id=str(food.id), shop_id=str(food.shop_id), quantity=qty),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request is rejected with "{message}"'))
def _(outcome, message):
    assert outcome["exc"] is not None, "Expected the request to be rejected"
    messages = [m for values in outcome["exc"].messages.values() for m in values]
    assert message in messages


@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_one_line(user_id, count):
    assert len(get_cart(user_id)["items"]) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(user_id, count):
    assert len(get_cart(user_id)["items"]) == count
