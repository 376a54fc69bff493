"""Domain events for the Shop and Food aggregates."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Shop")
class ShopRegistered:
    """A user registered a new shop; it awaits verification."""

    __version__ = 1

    shop_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    name = String(required=True)
    city = String()
    cuisines = Text()  # JSON array
    registered_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopProfileUpdated:
    __version__ = 1

    shop_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON array of field names


@marketplace.event(part_of="Shop")
class ShopStatusChanged:
    """Online, delivery or active flags of a shop changed."""

    __version__ = 1

    shop_id = Identifier(required=True)
    online = Boolean()
    delivery_available = Boolean()
    is_active = Boolean()


@marketplace.event(part_of="Shop")
class ShopVerified:
    __version__ = 1

    shop_id = Identifier(required=True)
    is_featured = Boolean(default=False)
    verified_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopDeactivated:
    __version__ = 1

    shop_id = Identifier(required=True)
    deactivated_by = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopRated:
    """A review moved the shop's running rating average."""

    __version__ = 1

    shop_id = Identifier(required=True)
    rating = Integer(required=True)
    new_average = Float(required=True)
    new_count = Integer(required=True)


@marketplace.event(part_of="Food")
class FoodAdded:
    __version__ = 1

    food_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    added_at = DateTime(required=True)


@marketplace.event(part_of="Food")
class FoodUpdated:
    __version__ = 1

    food_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON array of field names
    price = Float()


@marketplace.event(part_of="Food")
class FoodStockToggled:
    __version__ = 1

    food_id = Identifier(required=True)
    in_stock = Boolean(required=True)


@marketplace.event(part_of="Food")
class FoodOrdered:
    """Food was part of a checked-out order."""

    __version__ = 1

    food_id = Identifier(required=True)
    quantity = Integer(required=True)
    order_count = Integer(required=True)
