"""Shop registration and menu additions: commands and handlers."""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.food import Food
from marketplace.catalogue.shop import Shop
from marketplace.domain import marketplace
from marketplace.utils.lookup import get_or_raise

logger = structlog.get_logger(__name__)


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


@marketplace.command(part_of="Shop")
class RegisterShop:
    owner_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    food_licence = String(required=True, max_length=50)
    phone = String(required=True, max_length=20)
    email = String(required=True, max_length=254)
    address = Text(required=True)  # JSON: {street, city, state, zip_code, country}
    longitude = Float(required=True)
    latitude = Float(required=True)
    cuisines = Text()  # JSON array
    menu_categories = Text()  # JSON array
    image = String(max_length=500)
    cover_image = String(max_length=500)
    open_time = String(max_length=5, default="09:00")
    close_time = String(max_length=5, default="22:00")
    delivery_charge = Float(default=0.0)
    min_order_value = Float(default=0.0)
    delivery_available = Boolean(default=True)


@marketplace.command_handler(part_of=Shop)
class RegisterShopHandler:
    @handle(RegisterShop)
    def register_shop(self, command):
        shop = Shop.register(
            owner_id=command.owner_id,
            name=command.name,
            food_licence=command.food_licence,
            phone=command.phone,
            email=command.email,
            address=_loads(command.address),
            longitude=command.longitude,
            latitude=command.latitude,
            cuisines=_loads(command.cuisines) if command.cuisines else [],
            menu_categories=_loads(command.menu_categories) if command.menu_categories else [],
            image=command.image,
            cover_image=command.cover_image,
            open_time=command.open_time or "09:00",
            close_time=command.close_time or "22:00",
            delivery_charge=command.delivery_charge or 0.0,
            min_order_value=command.min_order_value or 0.0,
            delivery_available=True if command.delivery_available is None else command.delivery_available,
        )
        current_domain.repository_for(Shop).add(shop)
        logger.info("Registered shop", shop_id=str(shop.id), owner_id=str(command.owner_id))
        return str(shop.id)


@marketplace.command(part_of="Food")
class AddFood:
    shop_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    name = String(required=True, max_length=100)
    price = Float(required=True)
    cooking_time = Integer(required=True)
    menu_category = String(max_length=50)
    cuisine = String(max_length=50)
    veg = Boolean(default=False)
    beverage = Boolean(default=False)
    image = String(max_length=500)


@marketplace.command_handler(part_of=Food)
class AddFoodHandler:
    @handle(AddFood)
    def add_food(self, command):
        shop = get_or_raise(Shop, command.shop_id, "shop_id", "Shop not found")
        shop.assert_managed_by(command.requested_by, command.is_admin)

        food = Food.add_to_menu(
            shop_id=shop.id,
            name=command.name,
            price=command.price,
            cooking_time=command.cooking_time,
            menu_category=command.menu_category,
            cuisine=command.cuisine,
            veg=bool(command.veg),
            beverage=bool(command.beverage),
            image=command.image,
            created_by=command.requested_by,
        )
        current_domain.repository_for(Food).add(food)
        logger.info("Added food to menu", food_id=str(food.id), shop_id=str(shop.id))
        return str(food.id)
