"""Read-side access to the catalogue: menus, food listings and shop detail."""

from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from marketplace.catalogue.food import Food
from marketplace.catalogue.shop import Shop
from marketplace.discovery.search import shop_card
from marketplace.order.order import Order, OrderStatus
from marketplace.review.queries import review_view
from marketplace.review.review import Review
from marketplace.utils.lookup import get_or_raise, scan
from marketplace.utils.pagination import paginate

TRENDING_FOOD_MIN_ORDERS = 5
RELATED_FOODS = 6
RECENT_REVIEWS = 10
POPULAR_ITEMS = 5

_FOOD_SORT_FIELDS = ("created_at", "updated_at", "name", "price", "order_count", "cooking_time")


def food_view(food: Food) -> dict:
    return {
        "id": str(food.id),
        "name": food.name,
        "price": food.price,
        "cooking_time": food.cooking_time,
        "in_stock": food.in_stock,
        "veg": food.veg,
        "beverage": food.beverage,
        "cuisine": food.cuisine,
        "menu_category": food.menu_category,
        "shop_id": str(food.shop_id),
        "order_count": food.order_count,
        "image": food.image,
        "created_by": str(food.created_by) if food.created_by else None,
        "created_at": food.created_at.isoformat() if food.created_at else None,
        "updated_at": food.updated_at.isoformat() if food.updated_at else None,
    }


def _newest_first(foods):
    return sorted(foods, key=lambda f: f.created_at, reverse=True)


def _popular_first(foods):
    # Two stable passes: order count desc, then newest first among equals
    return sorted(_newest_first(foods), key=lambda f: f.order_count or 0, reverse=True)


# ---------------------------------------------------------------------------
# Foods
# ---------------------------------------------------------------------------
def list_foods(
    shop_id=None,
    cuisine=None,
    menu_category=None,
    veg=None,
    beverage=None,
    in_stock=None,
    min_price=None,
    max_price=None,
    min_order_count=None,
    search=None,
    sort_by="created_at",
    sort_order="desc",
    page=1,
    limit=12,
) -> dict:
    filters = {}
    if shop_id:
        filters["shop_id"] = str(shop_id)
    if menu_category:
        filters["menu_category"] = menu_category
    for name, value in (("veg", veg), ("beverage", beverage), ("in_stock", in_stock)):
        if value is not None:
            filters[name] = value
    foods = scan(Food, **filters)

    if cuisine:
        foods = [f for f in foods if f.cuisine and cuisine.lower() in f.cuisine.lower()]
    if min_price is not None:
        foods = [f for f in foods if f.price >= min_price]
    if max_price is not None:
        foods = [f for f in foods if f.price <= max_price]
    if min_order_count is not None:
        foods = [f for f in foods if (f.order_count or 0) >= min_order_count]
    if search:
        needle = search.lower()
        foods = [
            f for f in foods if needle in f.name.lower() or (f.cuisine and needle in f.cuisine.lower())
        ]

    sort_field = sort_by if sort_by in _FOOD_SORT_FIELDS else "created_at"
    foods = sorted(
        foods,
        key=lambda f: (getattr(f, sort_field) is not None, getattr(f, sort_field) or 0),
        reverse=(sort_order != "asc"),
    )

    page_foods, pagination = paginate(foods, page, limit)
    return {"foods": [food_view(f) for f in page_foods], "pagination": pagination}


def foods_of_shop(shop_id, in_stock=None, veg=None, beverage=None, menu_category=None, limit=20) -> list[dict]:
    filters = {"shop_id": str(shop_id)}
    if menu_category:
        filters["menu_category"] = menu_category
    for name, value in (("in_stock", in_stock), ("veg", veg), ("beverage", beverage)):
        if value is not None:
            filters[name] = value
    foods = _popular_first(scan(Food, **filters))
    return [food_view(f) for f in foods[: max(1, limit or 1)]]


def get_food(food_id) -> dict:
    """A food plus up to six in-stock foods of the same shop sharing its category or cuisine."""
    food = get_or_raise(Food, food_id, "food_id", "Food item not found")
    related = [
        f
        for f in scan(Food, shop_id=str(food.shop_id), in_stock=True)
        if str(f.id) != str(food.id) and (f.menu_category == food.menu_category or f.cuisine == food.cuisine)
    ]
    return {"food": food_view(food), "related_foods": [food_view(f) for f in related[:RELATED_FOODS]]}


def trending_foods(shop_id=None, limit=10) -> list[dict]:
    filters = {"in_stock": True}
    if shop_id:
        filters["shop_id"] = str(shop_id)
    foods = [f for f in scan(Food, **filters) if (f.order_count or 0) >= TRENDING_FOOD_MIN_ORDERS]
    return [food_view(f) for f in _popular_first(foods)[: max(1, limit or 1)]]


def food_cuisines() -> list[str]:
    return sorted({f.cuisine for f in scan(Food, in_stock=True) if f.cuisine and f.cuisine.strip()})


def food_categories() -> list[str]:
    return sorted({f.menu_category for f in scan(Food, in_stock=True) if f.menu_category})


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------
def _delivered_since(shop_id, since):
    return [
        o
        for o in scan(Order, shop_id=str(shop_id), status=OrderStatus.DELIVERED.value)
        if o.created_at and o.created_at >= since
    ]


def get_shop(shop_id, longitude=None, latitude=None, now=None) -> dict:
    """A shop with its in-stock menu by category, recent reviews and delivery statistics."""
    shop = get_or_raise(Shop, shop_id, "shop_id", "Shop not found")
    now_utc = datetime.now(UTC)

    menu = {}
    for food in sorted(scan(Food, shop_id=str(shop.id), in_stock=True), key=lambda f: f.name):
        menu.setdefault(food.menu_category or "Other", []).append(food_view(food))

    reviews = current_domain.repository_for(Review).reviews_of_shop(shop.id, limit=RECENT_REVIEWS)

    monthly = _delivered_since(shop.id, now_utc - timedelta(days=30))
    stats = {
        "total_orders": len(monthly),
        "avg_delivery_time": (sum(o.delivery_time or 0 for o in monthly) / len(monthly)) if monthly else 0,
        "total_revenue": sum(o.charges.total_amount for o in monthly),
    }

    ordered = {}
    for order in _delivered_since(shop.id, now_utc - timedelta(days=7)):
        for item in order.items:
            ordered[str(item.food_id)] = ordered.get(str(item.food_id), 0) + item.quantity
    foods = {str(f.id): f for f in scan(Food, shop_id=str(shop.id))}
    popular = [
        {**food_view(foods[food_id]), "weekly_quantity": quantity}
        for food_id, quantity in sorted(ordered.items(), key=lambda kv: kv[1], reverse=True)
        if food_id in foods
    ][:POPULAR_ITEMS]

    card = shop_card(shop, longitude, latitude, now=now)
    return {
        "shop": card,
        "menu": [{"category": category, "items": items} for category, items in sorted(menu.items())],
        "reviews": [review_view(r) for r in reviews],
        "popular_items": popular,
        "stats": stats,
        "delivery_info": {
            "available": shop.delivery_available,
            "charge": card["calculated_delivery_charge"],
            "min_order_value": shop.min_order_value,
            "estimated_time": card["estimated_delivery_time"],
        },
    }


def shops_of_owner(owner_id, status=None, page=1, limit=10) -> dict:
    """Shops owned by the caller; ``status`` narrows to active, inactive, verified or unverified."""
    shops = scan(Shop, owner_id=str(owner_id))
    if status == "active":
        shops = [s for s in shops if s.is_active]
    elif status == "inactive":
        shops = [s for s in shops if not s.is_active]
    elif status == "verified":
        shops = [s for s in shops if s.is_verified]
    elif status == "unverified":
        shops = [s for s in shops if not s.is_verified]

    shops = sorted(shops, key=lambda s: s.created_at, reverse=True)
    page_shops, pagination = paginate(shops, page, limit)

    orders = scan(Order)
    cards = []
    for shop in page_shops:
        shop_orders = [o for o in orders if str(o.shop_id) == str(shop.id)]
        cards.append(
            {
                **shop_card(shop),
                "total_orders": len(shop_orders),
                "active_orders": sum(
                    1 for o in shop_orders if o.status not in (OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value)
                ),
                "menu_items": len(scan(Food, shop_id=str(shop.id))),
            }
        )
    return {"shops": cards, "pagination": pagination}
