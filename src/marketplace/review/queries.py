"""Read-side access to shop reviews."""

from protean.utils.globals import current_domain

from marketplace.catalogue.shop import Shop
from marketplace.review.review import Review
from marketplace.utils.lookup import get_or_raise


def review_view(review: Review) -> dict:
    return {
        "id": str(review.id),
        "shop_id": str(review.shop_id),
        "user_id": str(review.user_id),
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


def reviews_of_shop(shop_id, limit: int | None = None) -> list[dict]:
    get_or_raise(Shop, shop_id, "shop_id", "Shop not found")
    return [review_view(r) for r in current_domain.repository_for(Review).reviews_of_shop(shop_id, limit=limit)]
