"""Review aggregate: an append-only rating of a shop by a user.

Reviews are never edited. Submitting one folds its rating into the shop's
running average in the same unit of work.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer, Text

from marketplace.domain import marketplace
from marketplace.review.events import ReviewSubmitted


@marketplace.aggregate
class Review:
    shop_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text()
    created_at = DateTime()

    @classmethod
    def submit(cls, shop_id, user_id, rating, comment=None):
        now = datetime.now(UTC)
        review = cls(
            shop_id=shop_id,
            user_id=user_id,
            rating=rating,
            comment=comment,
            created_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                shop_id=str(shop_id),
                user_id=str(user_id),
                rating=rating,
                submitted_at=now,
            )
        )
        return review
