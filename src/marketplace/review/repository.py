"""Repository for the Review aggregate."""

from marketplace.domain import marketplace
from marketplace.review.review import Review
from marketplace.utils.lookup import SCAN_LIMIT


@marketplace.repository(part_of=Review)
class ReviewRepository:
    def reviews_of_shop(self, shop_id, limit: int | None = None) -> list[Review]:
        """Reviews of a shop, newest first."""
        reviews = self._dao.query.filter(shop_id=str(shop_id)).limit(SCAN_LIMIT).all().items
        reviews = sorted(reviews, key=lambda r: r.created_at, reverse=True)
        return reviews[:limit] if limit else reviews
