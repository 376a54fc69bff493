"""Food aggregate: a menu item sold by exactly one shop."""

import json
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.catalogue.events import FoodAdded, FoodOrdered, FoodStockToggled, FoodUpdated
from marketplace.domain import marketplace
from marketplace.exceptions import ConflictError, UnavailableError

_UPDATABLE_FIELDS = (
    "name",
    "price",
    "cooking_time",
    "veg",
    "beverage",
    "cuisine",
    "menu_category",
    "image",
)


@marketplace.aggregate
class Food:
    name = String(required=True, max_length=100)
    price = Float(required=True, min_value=1.0)
    cooking_time = Integer(required=True, min_value=1)  # minutes
    in_stock = Boolean(default=True)
    veg = Boolean(default=False)
    beverage = Boolean(default=False)
    cuisine = String(max_length=50, default="International")
    menu_category = String(max_length=50)
    shop_id = Identifier(required=True)
    order_count = Integer(default=0, min_value=0)
    image = String(max_length=500)
    created_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def name_must_have_two_characters(self):
        if self.name is not None and len(self.name.strip()) < 2:
            raise ValidationError({"name": ["Food name must be at least 2 characters long"]})

    @classmethod
    def add_to_menu(
        cls,
        shop_id,
        name,
        price,
        cooking_time,
        menu_category=None,
        cuisine="International",
        veg=False,
        beverage=False,
        image=None,
        created_by=None,
    ):
        now = datetime.now(UTC)
        food = cls(
            shop_id=shop_id,
            name=name,
            price=price,
            cooking_time=cooking_time,
            menu_category=menu_category,
            cuisine=cuisine or "International",
            veg=veg,
            beverage=beverage,
            image=image,
            created_by=created_by,
            in_stock=True,
            order_count=0,
            created_at=now,
            updated_at=now,
        )
        food.raise_(
            FoodAdded(
                food_id=str(food.id),
                shop_id=str(shop_id),
                name=name,
                price=price,
                added_at=now,
            )
        )
        return food

    def assert_orderable_from(self, shop_id):
        """Guard used by the cart: the food must belong to ``shop_id`` and be in stock."""
        if str(self.shop_id) != str(shop_id):
            raise ConflictError({"shop_id": ["Food item does not belong to the specified shop"]})
        if not self.in_stock:
            raise UnavailableError({"food_id": ["Food item is currently unavailable"]})

    def update_details(self, **changes):
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError({"food": [f"Cannot update field(s): {', '.join(sorted(unknown))}"]})

        changed = list(changes)
        with atomic_change(self):
            for field_name in changed:
                setattr(self, field_name, changes[field_name])
            self.updated_at = datetime.now(UTC)

        if changed:
            self.raise_(
                FoodUpdated(
                    food_id=str(self.id),
                    changed_fields=json.dumps(changed),
                    price=self.price,
                )
            )

    def toggle_stock(self):
        self.in_stock = not self.in_stock
        self.updated_at = datetime.now(UTC)
        self.raise_(FoodStockToggled(food_id=str(self.id), in_stock=self.in_stock))

    def record_order(self, quantity):
        self.order_count = (self.order_count or 0) + quantity
        self.raise_(
            FoodOrdered(
                food_id=str(self.id),
                quantity=quantity,
                order_count=self.order_count,
            )
        )
