"""SubmitReview: rate a shop and move its running average."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.shop import Shop
from marketplace.domain import marketplace
from marketplace.review.review import Review
from marketplace.utils.lookup import get_or_raise

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Review")
class SubmitReview:
    shop_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text()


@marketplace.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        shop = get_or_raise(Shop, command.shop_id, "shop_id", "Shop not found")

        review = Review.submit(
            shop_id=shop.id,
            user_id=command.user_id,
            rating=command.rating,
            comment=command.comment,
        )
        shop.apply_review(command.rating)

        current_domain.repository_for(Review).add(review)
        current_domain.repository_for(Shop).add(shop)

        logger.info(
            "Submitted review",
            review_id=str(review.id),
            shop_id=str(shop.id),
            rating=command.rating,
            new_average=shop.rating.average,
            review_count=shop.rating.count,
        )
        return str(review.id)
