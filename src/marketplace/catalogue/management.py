"""Shop and menu management by owners and admins: commands and handlers.

Partial updates arrive as a JSON object holding only the fields the caller
sent, so an explicit ``null`` can be told apart from an omitted field.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.food import Food
from marketplace.catalogue.shop import Shop
from marketplace.domain import marketplace
from marketplace.exceptions import ForbiddenError, InvalidStateError
from marketplace.order.order import Order
from marketplace.review.review import Review
from marketplace.utils.lookup import get_or_raise, scan

logger = structlog.get_logger(__name__)

_SHOP_PROFILE_FIELDS = {
    "name",
    "phone",
    "email",
    "image",
    "cover_image",
    "address",
    "longitude",
    "latitude",
    "cuisines",
    "menu_categories",
    "open_time",
    "close_time",
    "delivery_charge",
    "min_order_value",
}


def _changes(payload, allowed):
    changes = json.loads(payload) if payload else {}
    if not isinstance(changes, dict):
        raise ValidationError({"changes": ["Changes must be an object"]})
    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValidationError({"changes": [f"Cannot update field(s): {', '.join(sorted(unknown))}"]})
    return changes


def _managed_shop(shop_id, requested_by, is_admin):
    shop = get_or_raise(Shop, shop_id, "shop_id", "Shop not found")
    shop.assert_managed_by(requested_by, is_admin)
    return shop


def _managed_food(food_id, requested_by, is_admin):
    food = get_or_raise(Food, food_id, "food_id", "Food item not found")
    _managed_shop(food.shop_id, requested_by, is_admin)
    return food


# ---------------------------------------------------------------------------
# Shop commands
# ---------------------------------------------------------------------------
@marketplace.command(part_of="Shop")
class UpdateShop:
    shop_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    changes = Text(required=True)  # JSON object of profile fields


@marketplace.command(part_of="Shop")
class UpdateShopStatus:
    shop_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    online = Boolean()
    delivery_available = Boolean()
    is_active = Boolean()


@marketplace.command(part_of="Shop")
class VerifyShop:
    shop_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    featured = Boolean(default=False)


@marketplace.command(part_of="Shop")
class CloseShop:
    shop_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    permanent = Boolean(default=False)


@marketplace.command_handler(part_of=Shop)
class ManageShopHandler:
    @handle(UpdateShop)
    def update_shop(self, command):
        shop = _managed_shop(command.shop_id, command.requested_by, command.is_admin)
        changes = _changes(command.changes, _SHOP_PROFILE_FIELDS)

        shop.update_profile(**changes)
        current_domain.repository_for(Shop).add(shop)
        logger.info("Updated shop profile", shop_id=str(shop.id), fields=sorted(changes))

    @handle(UpdateShopStatus)
    def update_shop_status(self, command):
        shop = _managed_shop(command.shop_id, command.requested_by, command.is_admin)
        shop.change_status(
            online=command.online,
            delivery_available=command.delivery_available,
            is_active=command.is_active,
        )
        current_domain.repository_for(Shop).add(shop)
        logger.info(
            "Changed shop status",
            shop_id=str(shop.id),
            online=shop.online,
            delivery_available=shop.delivery_available,
            is_active=shop.is_active,
        )

    @handle(VerifyShop)
    def verify_shop(self, command):
        if not command.is_admin:
            raise ForbiddenError({"shop": ["Only admins can verify shops"]})

        shop = get_or_raise(Shop, command.shop_id, "shop_id", "Shop not found")
        shop.verify(featured=command.featured)
        current_domain.repository_for(Shop).add(shop)
        logger.info("Verified shop", shop_id=str(shop.id), featured=shop.is_featured)

    @handle(CloseShop)
    def close_shop(self, command):
        shop = _managed_shop(command.shop_id, command.requested_by, command.is_admin)
        if command.permanent and not command.is_admin:
            raise ForbiddenError({"shop": ["Only admins can permanently delete shops"]})

        if current_domain.repository_for(Order).has_active_orders(shop.id):
            raise InvalidStateError({"shop": ["Cannot close a shop with pending orders"]})

        if not command.permanent:
            shop.deactivate(deactivated_by=command.requested_by)
            current_domain.repository_for(Shop).add(shop)
            logger.info("Deactivated shop", shop_id=str(shop.id), deactivated_by=str(command.requested_by))
            return

        food_repo = current_domain.repository_for(Food)
        foods = scan(Food, shop_id=str(shop.id))
        for food in foods:
            food_repo._dao.delete(food)

        review_repo = current_domain.repository_for(Review)
        reviews = scan(Review, shop_id=str(shop.id))
        for review in reviews:
            review_repo._dao.delete(review)

        current_domain.repository_for(Shop)._dao.delete(shop)
        logger.warning(
            "Deleted shop permanently",
            shop_id=str(shop.id),
            foods_removed=len(foods),
            reviews_removed=len(reviews),
        )


# ---------------------------------------------------------------------------
# Food commands
# ---------------------------------------------------------------------------
@marketplace.command(part_of="Food")
class UpdateFood:
    food_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    changes = Text(required=True)  # JSON object of menu fields


@marketplace.command(part_of="Food")
class ToggleFoodStock:
    food_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@marketplace.command(part_of="Food")
class RemoveFood:
    food_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@marketplace.command_handler(part_of=Food)
class ManageFoodHandler:
    @handle(UpdateFood)
    def update_food(self, command):
        food = _managed_food(command.food_id, command.requested_by, command.is_admin)
        changes = json.loads(command.changes) if command.changes else {}
        if not isinstance(changes, dict):
            raise ValidationError({"changes": ["Changes must be an object"]})

        food.update_details(**changes)
        current_domain.repository_for(Food).add(food)
        logger.info("Updated food", food_id=str(food.id), fields=sorted(changes))

    @handle(ToggleFoodStock)
    def toggle_food_stock(self, command):
        food = _managed_food(command.food_id, command.requested_by, command.is_admin)
        food.toggle_stock()
        current_domain.repository_for(Food).add(food)
        logger.info("Toggled food stock", food_id=str(food.id), in_stock=food.in_stock)
        return food.in_stock

    @handle(RemoveFood)
    def remove_food(self, command):
        food = _managed_food(command.food_id, command.requested_by, command.is_admin)
        current_domain.repository_for(Food)._dao.delete(food)
        logger.info("Removed food from menu", food_id=str(food.id), shop_id=str(food.shop_id))
