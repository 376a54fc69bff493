"""Trending and recommendation scoring for shops.

Pure functions over plain values so the scoring rules can be exercised
without a repository. The read-side queries in ``discovery.search`` feed
them.
"""

TRENDING_RATING_FLOOR = 4.0
TRENDING_ORDER_FLOOR = 5
HOT_WEEKLY_ORDERS = 20
TOP_RATED_FLOOR = 4.5
NEARBY_BONUS_RADIUS_KM = 5

HIGHLY_RATED_FLOOR = 4.0
PREFERENCE_MATCH_FLOOR = 3
TOP_PREFERENCES = 5


# ---------------------------------------------------------------------------
# Trending
# ---------------------------------------------------------------------------
def is_trending(rating: float, weekly_orders: int, featured: bool) -> bool:
    return rating >= TRENDING_RATING_FLOOR or weekly_orders >= TRENDING_ORDER_FLOOR or bool(featured)


def trending_score(rating: float, weekly_orders: int, featured: bool, distance_km: float) -> float:
    return (
        2 * rating
        + weekly_orders
        + (5 if featured else 0)
        + (3 if distance_km <= NEARBY_BONUS_RADIUS_KM else 0)
    )


def trending_badge(rating: float, weekly_orders: int, featured: bool) -> str:
    if weekly_orders >= HOT_WEEKLY_ORDERS:
        return "Hot"
    if rating >= TOP_RATED_FLOOR:
        return "Top Rated"
    if featured:
        return "Featured"
    return "Trending"


def rank_trending(candidates: list[dict]) -> list[dict]:
    """Keep trending candidates, highest score first, rating breaking ties.

    Each candidate carries ``rating``, ``weekly_orders``, ``featured`` and
    ``distance``; the kept ones gain ``trending_score`` and ``badge``.
    """
    ranked = []
    for candidate in candidates:
        if not is_trending(candidate["rating"], candidate["weekly_orders"], candidate["featured"]):
            continue
        ranked.append(
            {
                **candidate,
                "trending_score": trending_score(
                    candidate["rating"], candidate["weekly_orders"], candidate["featured"], candidate["distance"]
                ),
                "badge": trending_badge(candidate["rating"], candidate["weekly_orders"], candidate["featured"]),
            }
        )
    return sorted(ranked, key=lambda c: (-c["trending_score"], -c["rating"]))


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
def top_preferences(history, size: int = TOP_PREFERENCES) -> tuple[list[str], list[str]]:
    """First ``size`` distinct cuisines and menu categories, in order of discovery.

    ``history`` yields ``(cuisines, menu_categories)`` pairs, newest order first.
    """
    cuisines, categories = [], []
    for shop_cuisines, shop_categories in history:
        for cuisine in shop_cuisines or []:
            if cuisine not in cuisines:
                cuisines.append(cuisine)
        for category in shop_categories or []:
            if category not in categories:
                categories.append(category)
    return cuisines[:size], categories[:size]


def recommendation_score(
    shop_cuisines,
    shop_categories,
    top_cuisines,
    top_categories,
    rating: float,
    featured: bool,
) -> int:
    return (
        len(set(shop_cuisines or []) & set(top_cuisines))
        + len(set(shop_categories or []) & set(top_categories))
        + (2 if rating >= HIGHLY_RATED_FLOOR else 0)
        + (1 if featured else 0)
    )


def recommendation_reason(score: int, rating: float) -> str:
    if score > PREFERENCE_MATCH_FLOOR:
        return "Based on your preferences"
    if rating >= HIGHLY_RATED_FLOOR:
        return "Highly rated"
    return "Popular nearby"


def rank_recommendations(candidates: list[dict]) -> list[dict]:
    """Best match first, then higher rating, then nearer."""
    return sorted(candidates, key=lambda c: (-c["match_score"], -c["rating"], c["distance"]))
