"""Shop discovery: listing, search, nearby, by cuisine, trending and recommendations.

Only active, verified shops are discoverable. Whenever the caller supplies a
point, every result carries its distance, delivery estimate and the delivery
charge adjusted for that distance.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError

from marketplace.catalogue.shop import Shop
from marketplace.config import settings
from marketplace.discovery.geo import delivery_charge_for, estimated_delivery_minutes
from marketplace.discovery.ranking import (
    rank_recommendations,
    rank_trending,
    recommendation_reason,
    recommendation_score,
    top_preferences,
)
from marketplace.order.order import Order, OrderStatus
from marketplace.utils.lookup import scan
from marketplace.utils.pagination import paginate

logger = structlog.get_logger(__name__)

_SORT_KEYS = {
    "rating": lambda card: card["rating"]["average"],
    "delivery_charge": lambda card: card["delivery_charge"],
    "created_at": lambda card: card["created_at"] or "",
    "name": lambda card: card["name"].lower(),
    "distance": lambda card: card["distance"] if card["distance"] is not None else float("inf"),
    "estimated_delivery_time": lambda card: card["estimated_delivery_time"] or 0,
}


def _require_point(longitude, latitude):
    if longitude is None or latitude is None:
        raise ValidationError({"location": ["Location coordinates are required"]})


def _contains(text, needle):
    return bool(text) and needle in text.lower()


def _matches_text(shop, needle):
    needle = needle.lower()
    return (
        _contains(shop.name, needle)
        or any(_contains(c, needle) for c in shop.cuisine_list)
        or any(_contains(c, needle) for c in shop.menu_category_list)
        or _contains(shop.address.city if shop.address else None, needle)
    )


def shop_card(shop: Shop, longitude=None, latitude=None, now=None) -> dict:
    """Public view of a shop, with delivery details relative to the given point."""
    card = {
        "id": str(shop.id),
        "name": shop.name,
        "image": shop.image,
        "cover_image": shop.cover_image,
        "phone": shop.phone,
        "email": shop.email,
        "address": {
            "street": shop.address.street,
            "city": shop.address.city,
            "state": shop.address.state,
            "zip_code": shop.address.zip_code,
            "country": shop.address.country,
        },
        "location": {"longitude": shop.location.longitude, "latitude": shop.location.latitude},
        "cuisines": shop.cuisine_list,
        "menu_categories": shop.menu_category_list,
        "rating": {
            "average": shop.rating_average,
            "count": shop.rating.count if shop.rating else 0,
        },
        "open_time": shop.open_time,
        "close_time": shop.close_time,
        "delivery_available": shop.delivery_available,
        "online": shop.online,
        "min_order_value": shop.min_order_value,
        "delivery_charge": shop.delivery_charge,
        "is_active": shop.is_active,
        "is_verified": shop.is_verified,
        "is_featured": shop.is_featured,
        "owner_id": str(shop.owner_id),
        "created_at": shop.created_at.isoformat() if shop.created_at else None,
        "is_currently_open": shop.is_open_at(now) if now else shop.is_currently_open,
        "distance": None,
        "estimated_delivery_time": None,
        "calculated_delivery_charge": shop.delivery_charge,
    }
    if longitude is not None and latitude is not None:
        distance = shop.distance_to(longitude, latitude)
        card["distance"] = distance
        card["estimated_delivery_time"] = estimated_delivery_minutes(distance)
        card["calculated_delivery_charge"] = delivery_charge_for(shop.delivery_charge, distance)
    return card


def discoverable_shops(**filters) -> list[Shop]:
    return scan(Shop, is_active=True, is_verified=True, **filters)


def _within(shops, longitude, latitude, max_distance_km, now=None):
    """Cards for shops within range of the point, nearest first."""
    cards = [shop_card(shop, longitude, latitude, now=now) for shop in shops]
    cards = [card for card in cards if card["distance"] <= max_distance_km]
    return sorted(cards, key=lambda card: card["distance"])


def _sorted(cards, sort_by, sort_order):
    key = _SORT_KEYS.get(sort_by, _SORT_KEYS["rating"])
    return sorted(cards, key=key, reverse=(sort_order != "asc"))


# ---------------------------------------------------------------------------
# Listing and search
# ---------------------------------------------------------------------------
def list_shops(
    cuisines=None,
    menu_categories=None,
    min_rating=None,
    featured=None,
    delivery_available=None,
    search=None,
    longitude=None,
    latitude=None,
    max_distance_km=None,
    open_now=False,
    fast_delivery=False,
    sort_by=None,
    sort_order="desc",
    page=1,
    limit=10,
    now=None,
) -> dict:
    shops = discoverable_shops()

    if cuisines:
        wanted = set(cuisines)
        shops = [s for s in shops if wanted & set(s.cuisine_list)]
    if menu_categories:
        wanted = set(menu_categories)
        shops = [s for s in shops if wanted & set(s.menu_category_list)]
    if min_rating is not None:
        shops = [s for s in shops if s.rating_average >= min_rating]
    if featured is not None:
        shops = [s for s in shops if s.is_featured == featured]
    if delivery_available is not None:
        shops = [s for s in shops if s.delivery_available == delivery_available]
    if search:
        shops = [s for s in shops if _matches_text(s, search)]

    has_point = longitude is not None and latitude is not None
    if has_point:
        radius = settings.SEARCH_RADIUS_KM if max_distance_km is None else max_distance_km
        cards = _within(shops, longitude, latitude, radius, now=now)
    else:
        cards = [shop_card(s, now=now) for s in shops]

    if open_now:
        cards = [c for c in cards if c["is_currently_open"]]
    if fast_delivery:
        cards = [
            c
            for c in cards
            if c["estimated_delivery_time"] is not None
            and c["estimated_delivery_time"] <= settings.FAST_DELIVERY_MINUTES
        ]

    if sort_by:
        cards = _sorted(cards, sort_by, sort_order)
    elif not has_point:
        cards = _sorted(cards, "rating", sort_order)

    page_cards, pagination = paginate(cards, page, limit)
    return {"shops": page_cards, "pagination": pagination}


def search_shops(
    query,
    longitude,
    latitude,
    max_distance_km=None,
    limit=20,
    min_rating=None,
    cuisines=None,
    delivery_available=False,
    now=None,
) -> dict:
    _require_point(longitude, latitude)
    radius = settings.SEARCH_RADIUS_KM if max_distance_km is None else max_distance_km

    shops = discoverable_shops()
    if delivery_available:
        shops = [s for s in shops if s.delivery_available]
    if query and query.strip():
        shops = [s for s in shops if _matches_text(s, query.strip())]
    if min_rating is not None:
        shops = [s for s in shops if s.rating_average >= min_rating]
    if cuisines:
        wanted = set(cuisines)
        shops = [s for s in shops if wanted & set(s.cuisine_list)]

    cards = _within(shops, longitude, latitude, radius, now=now)[: max(1, limit or 1)]
    return {"shops": cards, "count": len(cards), "search_query": query}


def nearby_shops(longitude, latitude, max_distance_km=None, limit=20, now=None) -> list[dict]:
    _require_point(longitude, latitude)
    radius = settings.SEARCH_RADIUS_KM if max_distance_km is None else max_distance_km
    return _within(discoverable_shops(), longitude, latitude, radius, now=now)[: max(1, limit or 1)]


def shops_by_cuisine(
    cuisine,
    longitude,
    latitude,
    max_distance_km=None,
    sort_by="rating",
    sort_order="desc",
    page=1,
    limit=20,
    now=None,
) -> dict:
    _require_point(longitude, latitude)
    radius = settings.CUISINE_RADIUS_KM if max_distance_km is None else max_distance_km
    needle = (cuisine or "").lower()

    shops = [s for s in discoverable_shops() if any(_contains(c, needle) for c in s.cuisine_list)]
    cards = _within(shops, longitude, latitude, radius, now=now)
    # Stable sort keeps distance order among ties
    cards = _sorted(cards, sort_by, sort_order)

    page_cards, pagination = paginate(cards, page, limit)
    return {"cuisine": cuisine, "shops": page_cards, "pagination": pagination}


# ---------------------------------------------------------------------------
# Trending
# ---------------------------------------------------------------------------
def weekly_delivered_orders(now=None) -> dict[str, int]:
    """Delivered orders per shop over the trailing trending window."""
    now = now or datetime.now(UTC)
    since = now - timedelta(days=settings.TRENDING_WINDOW_DAYS)
    counts = {}
    for order in scan(Order, status=OrderStatus.DELIVERED.value):
        if order.created_at and order.created_at >= since:
            counts[str(order.shop_id)] = counts.get(str(order.shop_id), 0) + 1
    return counts


def trending_shops(longitude, latitude, limit=10, now=None) -> dict:
    _require_point(longitude, latitude)
    weekly = weekly_delivered_orders(now=now)

    cards = _within(discoverable_shops(online=True), longitude, latitude, settings.TRENDING_RADIUS_KM, now=now)
    candidates = [
        {
            "card": card,
            "rating": card["rating"]["average"],
            "weekly_orders": weekly.get(card["id"], 0),
            "featured": card["is_featured"],
            "distance": card["distance"],
        }
        for card in cards
    ]
    ranked = rank_trending(candidates)

    shops = [
        {**entry["card"], "weekly_orders": entry["weekly_orders"], "badge": entry["badge"]}
        for entry in ranked[: max(1, limit or 1)]
    ]
    logger.debug("Ranked trending shops", candidates=len(cards), trending=len(ranked))
    return {"trending_shops": shops, "count": len(shops)}


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
def user_preferences(user_id) -> tuple[list[str], list[str]]:
    """Top cuisines and categories from the user's most recent delivered orders."""
    delivered = scan(Order, user_id=str(user_id), status=OrderStatus.DELIVERED.value)
    delivered = sorted(delivered, key=lambda o: o.created_at, reverse=True)[: settings.RECOMMENDATION_HISTORY]

    shops = {str(s.id): s for s in scan(Shop)}
    history = []
    for order in delivered:
        shop = shops.get(str(order.shop_id))
        if shop is not None:
            history.append((shop.cuisine_list, shop.menu_category_list))
    return top_preferences(history)


def recommend_shops(user_id, longitude, latitude, limit=10, now=None) -> dict:
    _require_point(longitude, latitude)
    top_cuisines, top_categories = user_preferences(user_id)

    cards = _within(
        discoverable_shops(online=True, delivery_available=True),
        longitude,
        latitude,
        settings.RECOMMENDATION_RADIUS_KM,
        now=now,
    )
    candidates = [
        {
            "card": card,
            "rating": card["rating"]["average"],
            "distance": card["distance"],
            "match_score": recommendation_score(
                card["cuisines"],
                card["menu_categories"],
                top_cuisines,
                top_categories,
                card["rating"]["average"],
                card["is_featured"],
            ),
        }
        for card in cards
    ]

    recommendations = [
        {
            **entry["card"],
            "match_score": entry["match_score"],
            "recommendation_reason": recommendation_reason(entry["match_score"], entry["rating"]),
        }
        for entry in rank_recommendations(candidates)[: max(1, limit or 1)]
    ]
    return {
        "recommendations": recommendations,
        "user_preferences": {"top_cuisines": top_cuisines, "top_categories": top_categories},
    }


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------
POPULAR_CUISINES = [
    "North Indian",
    "South Indian",
    "Chinese",
    "Italian",
    "Continental",
    "Mexican",
    "Thai",
    "Punjabi",
    "Mughlai",
]

POPULAR_MENU_CATEGORIES = [
    "Pizza",
    "Burgers",
    "Biryani",
    "Chinese",
    "Desserts",
    "Beverages",
    "Pasta",
    "Sandwiches",
    "Wraps",
    "Salads",
]


def shop_metadata() -> dict:
    """Distinct cuisines, menu categories and cities across active shops."""
    shops = scan(Shop, is_active=True)
    cuisines = sorted({c for s in shops for c in s.cuisine_list if c and c.strip()})
    categories = sorted({c for s in shops for c in s.menu_category_list if c and c.strip()})
    cities = sorted({s.address.city for s in shops if s.address and s.address.city and s.address.city.strip()})
    return {
        "cuisines": {"all": cuisines, "popular": POPULAR_CUISINES},
        "menu_categories": {"all": categories, "popular": POPULAR_MENU_CATEGORIES},
        "cities": cities,
        "ratings": [4.5, 4.0, 3.5, 3.0],
        "sort_options": [
            {"value": "rating", "label": "Rating"},
            {"value": "delivery_charge", "label": "Delivery Fee"},
            {"value": "created_at", "label": "Newest"},
            {"value": "distance", "label": "Distance"},
        ],
    }
