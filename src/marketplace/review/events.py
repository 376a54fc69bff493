"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Review")
class ReviewSubmitted:
    __version__ = 1

    review_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    submitted_at = DateTime(required=True)
